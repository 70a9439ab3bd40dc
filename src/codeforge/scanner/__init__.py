"""Filesystem context serialization."""

from .context import ContextSerializer, generate_context

__all__ = ["ContextSerializer", "generate_context"]
