"""CircleCI command-line client package."""

__version__ = "0.1.0"


def user_agent() -> str:
    """Return the User-Agent sent with every API request."""
    return f"cci-cli/{__version__}"
