"""Configuration management for cci-cli with structured settings and validation."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_HOST = "https://circleci.com"
DEFAULT_REST_ENDPOINT = "api/v2"
DEFAULT_APP_HOST = "https://app.circleci.com"
DEFAULT_SETTINGS_PATH = Path.home() / ".circleci" / "cli.yml"


def load_settings_file(path: Path | None = None) -> dict[str, Any]:
    """
    Read the YAML settings file written by the CircleCI CLI.

    Args:
        path: Location of the settings file. Defaults to ~/.circleci/cli.yml,
            overridable with CIRCLECI_CLI_SETTINGS.

    Returns:
        dict: The settings, or an empty dict when the file does not exist.

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping.
    """
    if path is None:
        path = Path(os.getenv("CIRCLECI_CLI_SETTINGS", DEFAULT_SETTINGS_PATH))

    if not path.exists():
        logger.debug(f"No settings file found at {path}")
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Could not read settings file {path}: {e}",
            context={"path": str(path)},
            original_exception=e,
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file {path} must contain a mapping", context={"path": str(path)}
        )

    logger.debug(f"Loaded settings from {path}: keys={sorted(data)}")
    return data


@dataclass
class CciConfig:
    """
    Main configuration class for cci-cli.

    Values are resolved in order: explicit arguments, environment variables,
    the YAML settings file, then defaults.
    """

    host: str | None = None
    rest_endpoint: str | None = None
    token: str | None = None
    app_host: str | None = None
    request_timeout_seconds: float | None = None
    settings_path: Path | None = None

    def __post_init__(self):
        """Load configuration from environment variables and the settings file, then validate."""
        settings = load_settings_file(self.settings_path)

        self.host = (
            self.host or os.getenv("CIRCLECI_CLI_HOST") or settings.get("host") or DEFAULT_HOST
        )
        self.rest_endpoint = (
            self.rest_endpoint
            or os.getenv("CIRCLECI_CLI_REST_ENDPOINT")
            or settings.get("rest_endpoint")
            or DEFAULT_REST_ENDPOINT
        )
        self.token = self.token or os.getenv("CIRCLECI_CLI_TOKEN") or settings.get("token") or ""
        self.app_host = self.app_host or os.getenv("CIRCLECI_CLI_APP_HOST") or DEFAULT_APP_HOST

        if self.request_timeout_seconds is None:
            raw_timeout = os.getenv("CCI_REQUEST_TIMEOUT", "30")
            try:
                self.request_timeout_seconds = float(raw_timeout)
            except ValueError as e:
                raise ConfigurationError(
                    "CCI_REQUEST_TIMEOUT must be a number",
                    context={"CCI_REQUEST_TIMEOUT": raw_timeout},
                    original_exception=e,
                ) from e

        self._validate()

        logger.info(
            f"Configuration loaded: host={self.host}, rest_endpoint={self.rest_endpoint}, "
            f"token={self.masked_token()}, request_timeout={self.request_timeout_seconds}"
        )

    def _validate(self):
        """Validate the complete configuration."""
        if not self.host.startswith(("http://", "https://")):
            raise ConfigurationError(
                "host must be an http(s) URL", context={"host": self.host}
            )

        if self.request_timeout_seconds <= 0:
            raise ConfigurationError(
                "request_timeout_seconds must be positive",
                context={"request_timeout_seconds": self.request_timeout_seconds},
            )

    @classmethod
    def from_env(cls, **overrides) -> "CciConfig":
        """
        Create configuration from environment variables with optional overrides.

        Args:
            **overrides: Configuration values to override

        Returns:
            CciConfig: Configured instance
        """
        return cls(**overrides)

    def masked_token(self) -> str:
        """Show only the first 4 characters of the token for safe logging."""
        if not self.token:
            return "<unset>"
        return self.token[:4] + "..." if len(self.token) > 4 else "***"
