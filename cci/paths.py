from urllib.parse import quote

from .config import DEFAULT_APP_HOST
from .models import Remote, VcsType


def project_url(remote: Remote, app_host: str = DEFAULT_APP_HOST) -> str:
    """Return the web app URL listing the pipelines of a project."""
    if remote.vcs_type is VcsType.UNKNOWN:
        raise ValueError(f"Unsupported VCS type: {remote.vcs_type.value!r}")
    return "{}/pipelines/{}/{}/{}".format(
        app_host.rstrip("/"),
        quote(remote.vcs_type.value.lower(), safe=""),
        quote(remote.organization, safe=""),
        quote(remote.project, safe=""),
    )
