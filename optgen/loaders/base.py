"""Base classes for loaders that produce record descriptors."""

from abc import ABC, abstractmethod
from pathlib import Path

from ..models import PackageInfo, SourcePackage


class LoadError(RuntimeError):
    """Raised when a requested package cannot be located or parsed."""


class Loader(ABC):
    """Contract for components that turn a package identifier into descriptors."""

    name: str = "loader"

    @abstractmethod
    def supports(self, identifier: str) -> bool:
        """Return True when this loader understands ``identifier``."""

    @abstractmethod
    def load(self, identifier: str) -> SourcePackage:
        """Load every file of the package with its struct and type declarations."""

    @abstractmethod
    def locate_destination(self, directory: Path, source: SourcePackage) -> PackageInfo:
        """Describe the package that generated code written to ``directory`` joins."""
