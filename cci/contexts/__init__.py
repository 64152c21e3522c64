"""Context and context environment variable operations."""

from .contexts import Contexts, owner_slug

__all__ = ["Contexts", "owner_slug"]
