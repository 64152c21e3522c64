import pytest

from cci.models import Remote
from cci.paths import project_url


def test_project_url():
    remote = Remote(vcs_type="GitHub", organization="the-org", project="the-project")

    assert project_url(remote) == "https://app.circleci.com/pipelines/github/the-org/the-project"


def test_project_url_escapes_segments_and_custom_host():
    remote = Remote(vcs_type="bitbucket", organization="org/x", project="a b")

    assert (
        project_url(remote, "https://ci.example.com/")
        == "https://ci.example.com/pipelines/bitbucket/org%2Fx/a%20b"
    )


def test_project_url_rejects_unsupported_vcs():
    remote = Remote(vcs_type="gitlab", organization="the-org", project="the-project")

    with pytest.raises(ValueError, match="Unsupported VCS type"):
        project_url(remote)
