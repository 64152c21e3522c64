"""Context CRUD operations and context environment variables."""

import logging
from urllib.parse import quote

from opentelemetry import trace

from ..errors import ContextNotFoundError
from ..models import (
    Context,
    ContextOwner,
    CreateContextRequest,
    EnvironmentVariable,
    EnvironmentVariableValue,
    Page,
    VcsType,
)
from ..rest import RestClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_OWNER_PREFIXES = {
    VcsType.GITHUB: "gh",
    VcsType.BITBUCKET: "bb",
}


def owner_slug(vcs_type: VcsType | str, organization: str) -> str:
    """
    Build the owner slug used by the context API, e.g. ``gh/my-org``.

    Raises:
        ValueError: If the VCS type has no known slug prefix.
    """
    vcs = VcsType(vcs_type)
    prefix = _OWNER_PREFIXES.get(vcs)
    if prefix is None:
        raise ValueError(f"Unsupported VCS type for contexts: {vcs_type!r}")
    return f"{prefix}/{organization}"


class Contexts:
    """CircleCI context operations."""

    def __init__(self, rest_client: RestClient):
        """Initialize with reference to the REST client."""
        self._client = rest_client

    def list_contexts(self, vcs_type: VcsType | str, organization: str) -> list[Context]:
        """
        Retrieve the contexts owned by an organization.

        Only the first page is returned.

        Returns:
            list[Context]: Contexts in server order.
        """
        slug = owner_slug(vcs_type, organization)
        with tracer.start_as_current_span("cci_list_contexts") as span:
            span.set_attribute("cci.owner_slug", slug)

            request = self._client.new_request("GET", f"context?owner-slug={quote(slug, safe='')}")
            contexts = list(self._client.do_request(request, Page[Context]).value.items)

            span.set_attribute("cci.contexts_count", len(contexts))
            logger.info(f"Retrieved {len(contexts)} contexts for {slug}")
            return contexts

    def get_by_name(self, vcs_type: VcsType | str, organization: str, name: str) -> Context:
        """
        Find a context by name.

        Raises:
            ContextNotFoundError: If the organization has no context with that name.
        """
        for context in self.list_contexts(vcs_type, organization):
            if context.name == name:
                return context
        raise ContextNotFoundError(name, owner_slug(vcs_type, organization))

    def create(self, vcs_type: VcsType | str, organization: str, name: str) -> Context:
        """Create a new context owned by an organization."""
        slug = owner_slug(vcs_type, organization)
        body = CreateContextRequest(name=name, owner=ContextOwner(slug=slug))

        logger.info(f"Creating context '{name}' for {slug}")
        request = self._client.new_request("POST", "context", body)
        context = self._client.do_request(request, Context).value
        logger.info(f"Created context {context.name} (ID: {context.id})")
        return context

    def delete(self, context_id: str) -> None:
        """Delete a context and every environment variable stored in it."""
        logger.info(f"Deleting context {context_id}")
        request = self._client.new_request("DELETE", f"context/{quote(context_id, safe='')}")
        self._client.do_request(request)

    def environment_variables(self, context_id: str) -> list[EnvironmentVariable]:
        """List the environment variables stored in a context. Values are not returned."""
        request = self._client.new_request(
            "GET", f"context/{quote(context_id, safe='')}/environment-variable"
        )
        variables = list(self._client.do_request(request, Page[EnvironmentVariable]).value.items)
        logger.info(f"Retrieved {len(variables)} environment variables for context {context_id}")
        return variables

    def create_environment_variable(
        self, context_id: str, variable: str, value: str
    ) -> EnvironmentVariable:
        """Create or replace an environment variable in a context."""
        logger.info(f"Storing environment variable {variable} in context {context_id}")
        request = self._client.new_request(
            "PUT",
            f"context/{quote(context_id, safe='')}/environment-variable/{quote(variable, safe='')}",
            EnvironmentVariableValue(value=value),
        )
        return self._client.do_request(request, EnvironmentVariable).value

    def delete_environment_variable(self, context_id: str, variable: str) -> None:
        """Remove an environment variable from a context."""
        logger.info(f"Removing environment variable {variable} from context {context_id}")
        request = self._client.new_request(
            "DELETE",
            f"context/{quote(context_id, safe='')}/environment-variable/{quote(variable, safe='')}",
        )
        self._client.do_request(request)
