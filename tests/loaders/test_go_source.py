"""Tests for the tree-sitter Go package loader."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("tree_sitter_go")

from optgen.loaders import LoadError, select_loader  # noqa: E402
from optgen.loaders.go_source import GoSourceLoader, find_module, package_name_from_path  # noqa: E402
from optgen.models import (  # noqa: E402
    ArrayType,
    MapType,
    NamedType,
    PointerType,
    ScalarType,
    SliceType,
    StructType,
    UnsupportedType,
)
from tests._fixtures.go_package_builder import GoPackageBuilder  # noqa: E402

CONFIG_SOURCE = """
package config

import (
	"time"

	m "example.com/app/model"
	_ "embed"
)

type Mode string

type Tags []string

type Alias = Tags

type Config struct {
	Name    string `debugmap:"visible"`
	Timeout time.Duration
	Owner   *m.User
	Tags    Tags
	Labels  map[string]Mode
	Digest  [32]byte
	Items   Set[m.Item]
	Port    int "debugmap:\\"hidden\\""
	A, B    int
	token   string
	Nested  struct{ X int }
	Handler func()
	Base
	*Other
}

type Base struct{}

type Other struct{}

type Set[T any] struct {
	items []T
}
"""


@pytest.fixture
def config_package(go_builder: GoPackageBuilder) -> GoPackageBuilder:
    go_builder.write(
        {
            "config/config.go": CONFIG_SOURCE,
            "config/config_test.go": "package config\n\ntype Ignored struct{}\n",
            "config/extra.go": "package config\n\ntype Extra struct {\n\tAliased Alias\n}\n",
        }
    )
    return go_builder


def _fields(package, record_name):  # type: ignore[no-untyped-def]
    for source_file in package.files:
        for record in source_file.records:
            if record.name == record_name:
                return {item.name: item for item in record.fields}
    raise AssertionError(f"record {record_name} not loaded")


def test_find_module_and_package_names(go_builder: GoPackageBuilder) -> None:
    go_builder.write({"nested/deep/x.go": "package deep\n"})

    root, module = find_module(go_builder.path("nested/deep"))  # type: ignore[misc]

    assert root == go_builder.path().resolve()
    assert module == "example.com/app"
    assert package_name_from_path("gopkg.in/yaml.v3") == "yaml"
    assert package_name_from_path("github.com/acme/go-redis") == "redis"
    assert package_name_from_path("github.com/jackc/pgx/v5") == "pgx"


def test_load_reads_package_and_skips_test_files(config_package: GoPackageBuilder) -> None:
    loader = GoSourceLoader()

    package = loader.load(str(config_package.path("config")))

    assert package.path == "example.com/app/config"
    assert package.name == "config"
    assert [source.path.name for source in package.files] == ["config.go", "extra.go"]
    config_file = package.files[0]
    assert [record.name for record in config_file.records] == ["Config", "Base", "Other"]
    assert config_file.other_types["Mode"] == ScalarType("string")
    assert config_file.other_types["Tags"] == SliceType(ScalarType("string"))
    assert isinstance(config_file.other_types["Set"], UnsupportedType)


def test_load_maps_field_types(config_package: GoPackageBuilder) -> None:
    package = GoSourceLoader().load(str(config_package.path("config")))
    fields = _fields(package, "Config")
    pkg = "example.com/app/config"

    assert fields["Name"].type == ScalarType("string")
    assert fields["Name"].tag == 'debugmap:"visible"'
    assert fields["Timeout"].type == NamedType("time", "Duration")
    assert fields["Owner"].type == PointerType(NamedType("example.com/app/model", "User"))
    assert fields["Tags"].type == NamedType(pkg, "Tags")
    assert fields["Tags"].type.underlying == SliceType(ScalarType("string"))
    assert fields["Labels"].type == MapType(ScalarType("string"), NamedType(pkg, "Mode"))
    assert fields["Digest"].type == ArrayType(ScalarType("byte"), "32")
    assert fields["Items"].type == NamedType(pkg, "Set", type_argument=NamedType("example.com/app/model", "Item"))
    assert fields["Port"].tag == 'debugmap:"hidden"'
    assert fields["A"].type == fields["B"].type == ScalarType("int")
    assert isinstance(fields["Nested"].type, StructType)
    assert isinstance(fields["Handler"].type, UnsupportedType)
    assert fields["token"].exported is False
    assert fields["Name"].package == pkg


def test_load_marks_embedded_fields(config_package: GoPackageBuilder) -> None:
    fields = _fields(GoSourceLoader().load(str(config_package.path("config"))), "Config")
    pkg = "example.com/app/config"

    assert fields["Base"].embedded
    assert fields["Base"].type == NamedType(pkg, "Base")
    assert fields["Other"].embedded
    assert fields["Other"].type == PointerType(NamedType(pkg, "Other"))


def test_aliases_resolve_to_their_target(config_package: GoPackageBuilder) -> None:
    fields = _fields(GoSourceLoader().load(str(config_package.path("config"))), "Extra")

    assert fields["Aliased"].type == NamedType("example.com/app/config", "Tags")


def test_load_accepts_import_path_inside_module(config_package: GoPackageBuilder) -> None:
    loader = GoSourceLoader(cwd=config_package.path())

    package = loader.load("example.com/app/config")

    assert package.directory == config_package.path("config").resolve()


def test_load_reports_missing_packages_and_syntax_errors(go_builder: GoPackageBuilder) -> None:
    go_builder.write({"empty/README.md": "nothing here\n", "broken/broken.go": "package broken\n\ntype X struct {\n"})
    loader = GoSourceLoader(cwd=go_builder.path())

    with pytest.raises(LoadError):
        loader.load("example.com/app/missing")
    with pytest.raises(LoadError) as excinfo:
        loader.load(str(go_builder.path("empty")))
    assert "no Go files" in str(excinfo.value)
    with pytest.raises(LoadError) as excinfo:
        loader.load(str(go_builder.path("broken")))
    assert "syntax error" in str(excinfo.value)


def test_locate_destination(config_package: GoPackageBuilder) -> None:
    config_package.write({"options/doc.go": "package opts\n"})
    loader = GoSourceLoader()
    source = loader.load(str(config_package.path("config")))

    same = loader.locate_destination(config_package.path("config"), source)
    existing = loader.locate_destination(config_package.path("options"), source)
    fresh = loader.locate_destination(config_package.path("generated"), source)

    assert (same.path, same.name) == ("example.com/app/config", "config")
    assert (existing.path, existing.name) == ("example.com/app/options", "opts")
    assert (fresh.path, fresh.name) == ("example.com/app/generated", "generated")


def test_select_loader_prefers_schema_documents(tmp_path: Path, config_package: GoPackageBuilder) -> None:
    schema = tmp_path / "schema.yml"
    schema.write_text("package: {path: a, name: a}\n", encoding="utf-8")

    assert select_loader(str(schema)).name == "schema"
    assert select_loader(str(config_package.path("config"))).name == "go"


def test_types_from_other_module_packages_carry_their_shape(go_builder: GoPackageBuilder) -> None:
    go_builder.write(
        {
            "model/model.go": """
                package model

                type Labels map[string]string

                type Names []Name

                type Name string

                type User struct{}
            """,
            "config/config.go": """
                package config

                import (
                	"time"

                	"example.com/app/model"
                )

                type Config struct {
                	Labels  model.Labels
                	Names   model.Names
                	Owner   model.User
                	Timeout time.Duration
                }
            """,
        }
    )
    model = "example.com/app/model"

    fields = _fields(GoSourceLoader().load(str(go_builder.path("config"))), "Config")

    assert fields["Labels"].type == NamedType(model, "Labels")
    assert fields["Labels"].type.underlying == MapType(ScalarType("string"), ScalarType("string"))
    assert fields["Names"].type.underlying == SliceType(NamedType(model, "Name"))
    assert fields["Owner"].type.underlying == StructType()
    assert fields["Timeout"].type.underlying is None
