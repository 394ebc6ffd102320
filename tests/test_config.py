"""Tests for optgen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from optgen.config import (
    DEFAULT_DEFAULTS_PACKAGE,
    DEFAULT_HELPERS_PACKAGE,
    ConfigError,
    GeneratorSettings,
    OptgenConfig,
    load_config,
    split_matches,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, OptgenConfig)
    assert config.root == tmp_path.resolve()
    assert config.output is None
    assert config.package is None
    assert config.sensitive_field_name_matches is None
    assert config.templates_dir is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".optgen.yml"
    config_file.write_text(
        """
output: pkg/options/zz_generated.go
package: options
sensitive_field_name_matches:
  - Secure
  - token
  - " "
output_suffix: _options.go
helpers_package: example.com/internal/helpers
templates_dir: templates
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.output == tmp_path.resolve() / "pkg/options/zz_generated.go"
    assert config.package == "options"
    assert config.sensitive_field_name_matches == ["secure", "token"]
    assert config.output_suffix == "_options.go"
    assert config.helpers_package == "example.com/internal/helpers"
    assert config.defaults_package is None
    assert config.templates_dir == tmp_path.resolve() / "templates"


def test_load_config_accepts_comma_separated_matches(tmp_path: Path) -> None:
    (tmp_path / ".optgen.yml").write_text("sensitive_field_name_matches: 'password, key,'\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.sensitive_field_name_matches == ["password", "key"]


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".optgen.yml").write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".optgen.yml").write_text("output: [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert ".optgen.yml" in str(excinfo.value)


def test_settings_defaults() -> None:
    settings = GeneratorSettings.resolve()

    assert settings.sensitive_field_name_matches == ("secure",)
    assert settings.helpers_package == DEFAULT_HELPERS_PACKAGE
    assert settings.defaults_package == DEFAULT_DEFAULTS_PACKAGE
    assert settings.output_suffix == "_opts.go"
    assert settings.output is None


def test_flags_override_file_values(tmp_path: Path) -> None:
    config = OptgenConfig(
        root=tmp_path,
        output=tmp_path / "from_file.go",
        package="fromfile",
        sensitive_field_name_matches=["token"],
    )

    settings = GeneratorSettings.resolve(
        config,
        output="flag.go",
        package_name="fromflag",
        sensitive_field_name_matches="Password,Key",
    )

    assert settings.output == Path("flag.go")
    assert settings.package_name == "fromflag"
    assert settings.sensitive_field_name_matches == ("password", "key")


def test_file_values_apply_without_flags(tmp_path: Path) -> None:
    config = OptgenConfig(root=tmp_path, package="fromfile", sensitive_field_name_matches=["token"])

    settings = GeneratorSettings.resolve(config)

    assert settings.package_name == "fromfile"
    assert settings.sensitive_field_name_matches == ("token",)


def test_split_matches_drops_blanks() -> None:
    assert split_matches("secure, ,Token,") == ["secure", "token"]
