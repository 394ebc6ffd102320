"""Helper utilities for writing throwaway Go modules in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping


class GoPackageBuilder:
    """Writes a ``go.mod`` plus Go sources below a temporary module root."""

    def __init__(self, tmp_path: Path, module: str = "example.com/app") -> None:
        self.root = tmp_path / "module"
        self.root.mkdir()
        self.module = module
        (self.root / "go.mod").write_text(f"module {module}\n\ngo 1.21\n", encoding="utf-8")

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries below the module root."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root

    def import_path(self, relative: str = "") -> str:
        return f"{self.module}/{relative}" if relative else self.module


__all__ = ["GoPackageBuilder"]
