"""Loader implementations and selection."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .base import LoadError, Loader
from .go_source import GoSourceLoader
from .schema_file import SchemaFileLoader


def default_loaders() -> List[Loader]:
    """Return loader instances in the order they are consulted."""
    return [SchemaFileLoader(), GoSourceLoader()]


def select_loader(identifier: str, loaders: Optional[Sequence[Loader]] = None) -> Loader:
    """Return the first loader that supports ``identifier``."""
    candidates = list(loaders) if loaders is not None else default_loaders()
    for loader in candidates:
        if loader.supports(identifier):
            return loader
    raise LoadError(f"no loader understands package {identifier!r}")


__all__ = [
    "GoSourceLoader",
    "LoadError",
    "Loader",
    "SchemaFileLoader",
    "default_loaders",
    "select_loader",
]
