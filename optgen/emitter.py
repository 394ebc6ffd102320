"""Go output unit: import bookkeeping and template rendering."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from jinja2 import Environment, FileSystemLoader

GENERATED_HEADER = "Code generated by github.com/ecordell/optgen. DO NOT EDIT."

_TEMPLATES_DIR = Path(__file__).with_name("templates")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_MAJOR_VERSION = re.compile(r"^v[0-9]+$")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return the Jinja environment used for Go declarations.

    A custom ``templates_dir`` takes precedence over the bundled templates, so
    individual declaration shapes can be overridden one file at a time.
    """
    directories: List[str] = []
    if templates_dir is not None:
        directories.append(str(templates_dir))
    directories.append(str(_TEMPLATES_DIR))
    return Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def guess_alias(import_path: str) -> str:
    """Guess a package identifier from an import path.

    ``github.com/creasty/defaults`` becomes ``defaults``; a trailing major
    version element (``.../yaml/v3``) is skipped.
    """
    parts = [part for part in import_path.strip("/").split("/") if part]
    if not parts:
        return "pkg"
    candidate = parts[-1]
    if _MAJOR_VERSION.match(candidate) and len(parts) > 1:
        candidate = parts[-2]
    alias = _NON_ALNUM.sub("", candidate.lower())
    alias = alias.lstrip("0123456789")
    return alias or "pkg"


class GoFile:
    """Accumulates rendered declarations for one generated Go file."""

    def __init__(
        self,
        package_path: str,
        package_name: str,
        *,
        environment: Optional[Environment] = None,
        header: str = GENERATED_HEADER,
    ) -> None:
        self.package_path = package_path
        self.package_name = package_name
        self.header = header
        self._env = environment or create_environment()
        self._imports: Dict[str, str] = {}
        self._declarations: List[str] = []

    @property
    def imports(self) -> Dict[str, str]:
        return dict(self._imports)

    @property
    def declarations(self) -> List[str]:
        return list(self._declarations)

    def qualify(self, package: str, name: str) -> str:
        """Reference ``name`` from ``package``, importing it when foreign."""
        if not package or package == self.package_path:
            return name
        return f"{self.import_alias(package)}.{name}"

    def import_alias(self, package: str) -> str:
        alias = self._imports.get(package)
        if alias is not None:
            return alias
        base = guess_alias(package)
        taken = set(self._imports.values())
        taken.add(self.package_name)
        alias = base
        suffix = 1
        while alias in taken:
            alias = f"{base}{suffix}"
            suffix += 1
        self._imports[package] = alias
        return alias

    def add(self, template_name: str, **context: object) -> str:
        """Render a declaration template and append it to the file."""
        rendered = self._env.get_template(template_name).render(**context).strip("\n")
        self._declarations.append(rendered)
        return rendered

    def render(self) -> str:
        template = self._env.get_template("file.go.j2")
        text = template.render(
            header=self.header,
            package_name=self.package_name,
            imports=sorted(
                ((alias, path) for path, alias in self._imports.items()),
                key=lambda item: item[1],
            ),
            declarations=self._declarations,
        )
        return text.rstrip("\n") + "\n"

    def write(self, stream: TextIO) -> None:
        stream.write(self.render())


__all__ = ["GENERATED_HEADER", "GoFile", "create_environment", "guess_alias"]
