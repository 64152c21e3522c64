import json
import logging

import pytest

from cci.contexts import Contexts, owner_slug
from cci.errors import ContextNotFoundError, DomainError
from cci.models import VcsType

CONTEXTS_RESPONSE = json.dumps(
    {
        "items": [
            {"id": "ctx-1", "name": "deploy", "created_at": "2021-01-01T00:00:00Z"},
            {"id": "ctx-2", "name": "release", "created_at": "2021-02-01T00:00:00Z"},
        ],
        "next_page_token": None,
    }
)


@pytest.fixture
def contexts(rest_client):
    return Contexts(rest_client)


@pytest.mark.parametrize(
    "vcs, expected",
    [("github", "gh/the-org"), ("Bitbucket", "bb/the-org"), (VcsType.GITHUB, "gh/the-org")],
)
def test_owner_slug(vcs, expected):
    assert owner_slug(vcs, "the-org") == expected


def test_owner_slug_rejects_unknown_vcs():
    with pytest.raises(ValueError, match="Unsupported VCS type"):
        owner_slug("gitlab", "the-org")


def test_list_contexts_queries_by_owner_slug(api_server, contexts):
    api_server.respond(200, CONTEXTS_RESPONSE)

    result = contexts.list_contexts("github", "the-org")

    assert [c.name for c in result] == ["deploy", "release"]
    assert api_server.last.method == "GET"
    assert api_server.last.path == "/api/v2/context?owner-slug=gh%2Fthe-org"


def test_get_by_name_finds_context(api_server, contexts):
    api_server.respond(200, CONTEXTS_RESPONSE)

    context = contexts.get_by_name("github", "the-org", "release")

    assert context.id == "ctx-2"


def test_get_by_name_raises_when_missing(api_server, contexts):
    api_server.respond(200, CONTEXTS_RESPONSE)

    with pytest.raises(ContextNotFoundError) as exc_info:
        contexts.get_by_name("github", "the-org", "nope")

    assert exc_info.value.context == {"name": "nope", "owner_slug": "gh/the-org"}


def test_create_context_sends_owner(api_server, contexts):
    api_server.respond(200, '{"id": "ctx-3", "name": "new", "created_at": "2021-03-01T00:00:00Z"}')

    context = contexts.create("bitbucket", "the-org", "new")

    assert context.id == "ctx-3"
    assert api_server.last.method == "POST"
    assert api_server.last.path == "/api/v2/context"
    assert json.loads(api_server.last.body) == {
        "name": "new",
        "owner": {"slug": "bb/the-org", "type": "organization"},
    }


def test_delete_context(api_server, contexts):
    api_server.respond(200, '{"message": "Context deleted."}')

    assert contexts.delete("ctx-1") is None
    assert api_server.last.method == "DELETE"
    assert api_server.last.path == "/api/v2/context/ctx-1"


def test_environment_variables(api_server, contexts):
    api_server.respond(
        200,
        json.dumps(
            {
                "items": [
                    {
                        "variable": "AWS_KEY",
                        "context_id": "ctx-1",
                        "created_at": "2021-01-01T00:00:00Z",
                    }
                ]
            }
        ),
    )

    variables = contexts.environment_variables("ctx-1")

    assert [v.variable for v in variables] == ["AWS_KEY"]
    assert api_server.last.path == "/api/v2/context/ctx-1/environment-variable"


def test_create_environment_variable_puts_value(api_server, contexts):
    api_server.respond(
        200,
        '{"variable": "AWS_KEY", "context_id": "ctx-1", "created_at": "2021-01-01T00:00:00Z"}',
    )

    variable = contexts.create_environment_variable("ctx-1", "AWS_KEY", "s3cr3t")

    assert variable.context_id == "ctx-1"
    assert api_server.last.method == "PUT"
    assert api_server.last.path == "/api/v2/context/ctx-1/environment-variable/AWS_KEY"
    assert api_server.last.body == '{"value":"s3cr3t"}\n'


def test_delete_environment_variable_propagates_domain_errors(api_server, contexts):
    api_server.respond(404, '{"message": "Environment variable not found."}')

    with pytest.raises(DomainError, match="Environment variable not found."):
        contexts.delete_environment_variable("ctx-1", "AWS_KEY")

    assert api_server.last.method == "DELETE"


def test_secret_value_is_never_logged(api_server, contexts, caplog):
    api_server.respond(
        200,
        '{"variable": "AWS_KEY", "context_id": "ctx-1", "created_at": "2021-01-01T00:00:00Z"}',
    )

    with caplog.at_level(logging.DEBUG):
        contexts.create_environment_variable("ctx-1", "AWS_KEY", "super-secret-value")

    assert api_server.last.body == '{"value":"super-secret-value"}\n'
    assert "environment-variable/AWS_KEY" in caplog.text
    assert "super-secret-value" not in caplog.text
