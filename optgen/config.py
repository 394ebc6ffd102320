"""Configuration loading for optgen (.optgen.yml) and run settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

CONFIG_FILENAME = ".optgen.yml"
DEFAULT_SENSITIVE_NAMES = "secure"
DEFAULT_HELPERS_PACKAGE = "github.com/ecordell/optgen/helpers"
DEFAULT_DEFAULTS_PACKAGE = "github.com/creasty/defaults"
DEFAULT_OUTPUT_SUFFIX = "_opts.go"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class OptgenConfig:
    """Settings read from .optgen.yml; every value is optional."""

    root: Path
    output: Optional[Path] = None
    package: Optional[str] = None
    sensitive_field_name_matches: Optional[List[str]] = None
    output_suffix: Optional[str] = None
    helpers_package: Optional[str] = None
    defaults_package: Optional[str] = None
    templates_dir: Optional[Path] = None


@dataclass(frozen=True)
class GeneratorSettings:
    """Effective configuration for one generation run.

    Built once from the config file and command-line flags and passed
    explicitly to every component that needs it.
    """

    sensitive_field_name_matches: Tuple[str, ...] = (DEFAULT_SENSITIVE_NAMES,)
    helpers_package: str = DEFAULT_HELPERS_PACKAGE
    defaults_package: str = DEFAULT_DEFAULTS_PACKAGE
    output_suffix: str = DEFAULT_OUTPUT_SUFFIX
    output: Optional[Path] = None
    package_name: Optional[str] = None
    templates_dir: Optional[Path] = None

    @classmethod
    def resolve(
        cls,
        config: Optional[OptgenConfig] = None,
        *,
        output: Optional[str] = None,
        package_name: Optional[str] = None,
        sensitive_field_name_matches: Optional[str] = None,
    ) -> "GeneratorSettings":
        """Merge file configuration with flag values; flags win when given."""
        config = config or OptgenConfig(root=Path.cwd())

        matches: Sequence[str]
        if sensitive_field_name_matches is not None:
            matches = split_matches(sensitive_field_name_matches)
        elif config.sensitive_field_name_matches is not None:
            matches = config.sensitive_field_name_matches
        else:
            matches = split_matches(DEFAULT_SENSITIVE_NAMES)

        output_path: Optional[Path] = Path(output) if output else config.output

        return cls(
            sensitive_field_name_matches=tuple(matches),
            helpers_package=config.helpers_package or DEFAULT_HELPERS_PACKAGE,
            defaults_package=config.defaults_package or DEFAULT_DEFAULTS_PACKAGE,
            output_suffix=config.output_suffix or DEFAULT_OUTPUT_SUFFIX,
            output=output_path,
            package_name=package_name or config.package,
            templates_dir=config.templates_dir,
        )


def split_matches(value: str) -> List[str]:
    """Split a comma-separated list of sensitive substrings, dropping blanks."""
    return [part.strip().lower() for part in value.split(",") if part.strip()]


def load_config(config_path: Path) -> OptgenConfig:
    """Load configuration from disk; a missing file yields empty settings."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return OptgenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    output = _as_str(data.get("output"))
    templates_dir = _as_str(data.get("templates_dir"))

    matches_value = data.get("sensitive_field_name_matches")
    matches: Optional[List[str]] = None
    if isinstance(matches_value, str):
        matches = split_matches(matches_value)
    elif matches_value is not None:
        matches = [item.lower() for item in _as_str_list(matches_value) if item.strip()]

    return OptgenConfig(
        root=root,
        output=root / output if output else None,
        package=_as_str(data.get("package")),
        sensitive_field_name_matches=matches,
        output_suffix=_as_str(data.get("output_suffix")),
        helpers_package=_as_str(data.get("helpers_package")),
        defaults_package=_as_str(data.get("defaults_package")),
        templates_dir=root / templates_dir if templates_dir else None,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float, bool)):
        return str(value)
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_DEFAULTS_PACKAGE",
    "DEFAULT_HELPERS_PACKAGE",
    "DEFAULT_OUTPUT_SUFFIX",
    "DEFAULT_SENSITIVE_NAMES",
    "GeneratorSettings",
    "OptgenConfig",
    "load_config",
    "split_matches",
]
