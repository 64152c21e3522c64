"""Infer the current project from the git ``origin`` remote."""

import logging
import re
import subprocess
from pathlib import Path

from .errors import RemoteDetectionError
from .models import Remote, VcsType

logger = logging.getLogger(__name__)

_HOSTS = {
    "github.com": VcsType.GITHUB,
    "bitbucket.org": VcsType.BITBUCKET,
}

_REMOTE_PATTERNS = [
    # git@github.com:org/project.git, ssh://git@github.com/org/project.git
    re.compile(r"^(?:ssh://)?[\w.-]+@(?P<host>[^:/]+)[:/](?P<path>.+?)(?:\.git)?/?$"),
    # https://github.com/org/project.git, https://user@bitbucket.org/org/project.git
    re.compile(
        r"^(?:https?|git)://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?/?$",
        re.IGNORECASE,
    ),
]


def parse_remote_url(url: str) -> Remote:
    """
    Parse a GitHub or Bitbucket remote URL into a Remote.

    Raises:
        RemoteDetectionError: If the URL is malformed or not hosted on a known provider.
    """
    url = url.strip()
    for pattern in _REMOTE_PATTERNS:
        match = pattern.match(url)
        if match:
            break
    else:
        raise RemoteDetectionError(f"Unrecognised git remote URL: {url}", context={"url": url})

    host = match.group("host").lower()
    vcs_type = _HOSTS.get(host)
    if vcs_type is None:
        raise RemoteDetectionError(
            f"Git remote is hosted on {host}, expected GitHub or Bitbucket",
            context={"url": url, "host": host},
        )

    parts = match.group("path").split("/")
    if len(parts) != 2 or not all(parts):
        raise RemoteDetectionError(
            f"Git remote path must be <organization>/<project>: {url}", context={"url": url}
        )

    remote = Remote(vcs_type=vcs_type, organization=parts[0], project=parts[1])
    logger.debug(f"Parsed remote {url} as {remote}")
    return remote


def infer_project_from_git_remotes(cwd: str | Path | None = None, remote_name: str = "origin") -> Remote:
    """
    Resolve the project of the git repository containing ``cwd``.

    Raises:
        RemoteDetectionError: If git is unavailable, ``cwd`` is not a repository,
            the remote is missing, or its URL is not recognised.
    """
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", remote_name],
            capture_output=True,
            text=True,
            timeout=10,
            cwd=cwd,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise RemoteDetectionError(
            f"Could not run git: {e}", context={"cwd": str(cwd or ".")}, original_exception=e
        ) from e

    if result.returncode != 0:
        raise RemoteDetectionError(
            f"Could not read git remote '{remote_name}': {result.stderr.strip()}",
            context={"cwd": str(cwd or "."), "remote": remote_name},
        )

    return parse_remote_url(result.stdout)
