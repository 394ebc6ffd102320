"""Loader for declarative schema documents (YAML or JSON).

A schema document describes a package without Go sources, which is handy
for generating options for types that live in another repository:

.. code-block:: yaml

    package: {path: example.com/app/config, name: config}
    destination: {path: example.com/app/options, name: options}
    files:
      - path: config.go
        types:
          - name: Config
            fields:
              - name: Name
                type: {kind: scalar, name: string}
                tag: 'debugmap:"visible"'
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..logging import get_logger
from ..models import (
    ArrayType,
    FieldDescriptor,
    MapType,
    NamedType,
    PackageInfo,
    PointerType,
    RecordDescriptor,
    ScalarType,
    SliceType,
    SourceFile,
    SourcePackage,
    StructType,
    TypeDescriptor,
)
from .base import LoadError, Loader

SCHEMA_SUFFIXES = (".yml", ".yaml", ".json")


class _Schema(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ScalarSpec(_Schema):
    kind: Literal["scalar"]
    name: str


class PointerSpec(_Schema):
    kind: Literal["pointer"]
    elem: "TypeSpec"


class SliceSpec(_Schema):
    kind: Literal["slice"]
    elem: "TypeSpec"


class ArraySpec(_Schema):
    kind: Literal["array"]
    elem: "TypeSpec"
    length: Union[int, str]


class MapSpec(_Schema):
    kind: Literal["map"]
    key: "TypeSpec"
    value: "TypeSpec"


class NamedSpec(_Schema):
    kind: Literal["named"]
    name: str
    package: Optional[str] = None
    type_argument: Optional["TypeSpec"] = None
    underlying: Optional["TypeSpec"] = None


class StructSpec(_Schema):
    kind: Literal["struct"]
    fields: List["FieldSpec"] = Field(default_factory=list)


TypeSpec = Annotated[
    Union[ScalarSpec, PointerSpec, SliceSpec, ArraySpec, MapSpec, NamedSpec, StructSpec],
    Field(discriminator="kind"),
]


class FieldSpec(_Schema):
    name: str
    type: TypeSpec
    exported: Optional[bool] = None
    embedded: bool = False
    tag: str = ""


class DeclarationSpec(_Schema):
    """A struct (``fields``) or any other declared type (``type``)."""

    name: str
    fields: Optional[List[FieldSpec]] = None
    type: Optional[TypeSpec] = None

    @model_validator(mode="after")
    def _one_shape(self) -> "DeclarationSpec":
        if (self.fields is None) == (self.type is None):
            raise ValueError(f"type {self.name} needs exactly one of 'fields' or 'type'")
        return self


class FileSpec(_Schema):
    path: str
    types: List[DeclarationSpec] = Field(default_factory=list)


class PackageSpec(_Schema):
    path: str
    name: str


class SchemaDocument(_Schema):
    package: PackageSpec
    destination: Optional[PackageSpec] = None
    files: List[FileSpec] = Field(default_factory=list)


for _model in (PointerSpec, SliceSpec, ArraySpec, MapSpec, NamedSpec, StructSpec, FieldSpec, DeclarationSpec):
    _model.model_rebuild()


class SchemaFileLoader(Loader):
    """Reads packages described by ``.yml``, ``.yaml`` or ``.json`` documents."""

    name = "schema"

    def __init__(self) -> None:
        self.logger = get_logger("loaders.schema")
        self._destinations: Dict[str, PackageSpec] = {}

    def supports(self, identifier: str) -> bool:
        path = Path(identifier)
        return path.suffix.lower() in SCHEMA_SUFFIXES and path.is_file()

    def load(self, identifier: str) -> SourcePackage:
        path = Path(identifier).resolve()
        document = self._read(path)
        package = SourcePackage(path=document.package.path, name=document.package.name, directory=path.parent)
        for file_spec in document.files:
            source = path.parent / file_spec.path
            result = SourceFile(path=source, package=document.package.path, package_name=document.package.name)
            for declaration in file_spec.types:
                if declaration.fields is not None:
                    result.records.append(
                        RecordDescriptor(
                            name=declaration.name,
                            package=document.package.path,
                            fields=tuple(self._field(item, document.package.path) for item in declaration.fields),
                            source=source,
                        )
                    )
                elif declaration.type is not None:
                    result.other_types[declaration.name] = self._type(declaration.type, document.package.path)
            package.files.append(result)
        if document.destination is not None:
            self._destinations[document.package.path] = document.destination
        self.logger.debug("Loaded %s from schema %s (%d files)", package.path, path.name, len(package.files))
        return package

    def locate_destination(self, directory: Path, source: SourcePackage) -> PackageInfo:
        destination = self._destinations.get(source.path)
        if destination is not None:
            return PackageInfo(path=destination.path, name=destination.name, directory=directory)
        return PackageInfo(path=source.path, name=source.name, directory=directory)

    def _read(self, path: Path) -> SchemaDocument:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LoadError(f"cannot read {path}: {exc}") from exc
        try:
            data: Any = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise LoadError(f"failed to parse {path.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise LoadError(f"{path.name} must contain a mapping at the root")
        try:
            return SchemaDocument.model_validate(data)
        except ValidationError as exc:
            raise LoadError(f"invalid schema in {path.name}: {exc}") from exc

    def _field(self, spec: FieldSpec, package: str) -> FieldDescriptor:
        exported = spec.exported if spec.exported is not None else spec.name[:1].isupper()
        return FieldDescriptor(
            name=spec.name,
            type=self._type(spec.type, package),
            exported=exported,
            embedded=spec.embedded,
            package=package,
            tag=spec.tag,
        )

    def _type(self, spec: Any, package: str) -> TypeDescriptor:
        if isinstance(spec, ScalarSpec):
            return ScalarType(spec.name)
        if isinstance(spec, PointerSpec):
            return PointerType(self._type(spec.elem, package))
        if isinstance(spec, SliceSpec):
            return SliceType(self._type(spec.elem, package))
        if isinstance(spec, ArraySpec):
            return ArrayType(self._type(spec.elem, package), str(spec.length))
        if isinstance(spec, MapSpec):
            return MapType(self._type(spec.key, package), self._type(spec.value, package))
        if isinstance(spec, NamedSpec):
            return NamedType(
                package=spec.package if spec.package is not None else package,
                name=spec.name,
                type_argument=self._type(spec.type_argument, package) if spec.type_argument else None,
                underlying=self._type(spec.underlying, package) if spec.underlying else None,
            )
        if isinstance(spec, StructSpec):
            return StructType(tuple(self._field(item, package) for item in spec.fields))
        raise LoadError(f"unknown type spec {spec!r}")


__all__ = ["SCHEMA_SUFFIXES", "SchemaDocument", "SchemaFileLoader"]
