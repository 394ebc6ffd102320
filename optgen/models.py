"""Core data models shared across optgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class ScalarType:
    """A predeclared Go type such as ``string``, ``int64`` or ``any``."""

    name: str

    def canonical(self) -> str:
        return self.name


@dataclass(frozen=True)
class PointerType:
    elem: "TypeDescriptor"

    def canonical(self) -> str:
        return f"*{self.elem.canonical()}"


@dataclass(frozen=True)
class SliceType:
    elem: "TypeDescriptor"

    def canonical(self) -> str:
        return f"[]{self.elem.canonical()}"


@dataclass(frozen=True)
class ArrayType:
    elem: "TypeDescriptor"
    length: str

    def canonical(self) -> str:
        return f"[{self.length}]{self.elem.canonical()}"


@dataclass(frozen=True)
class MapType:
    key: "TypeDescriptor"
    value: "TypeDescriptor"

    def canonical(self) -> str:
        return f"map[{self.key.canonical()}]{self.value.canonical()}"


@dataclass(frozen=True)
class NamedType:
    """A declared type, identified by its package import path and name.

    ``underlying`` is only known for types declared in a package the loader
    parsed; it decides the generation strategy, never the rendered reference.
    """

    package: str
    name: str
    type_argument: Optional["TypeDescriptor"] = None
    underlying: Optional["TypeDescriptor"] = field(default=None, compare=False, repr=False)

    def canonical(self) -> str:
        qualified = f"{self.package}.{self.name}" if self.package else self.name
        if self.type_argument is not None:
            return f"{qualified}[{self.type_argument.canonical()}]"
        return qualified


@dataclass(frozen=True)
class StructType:
    """An anonymous struct literal type."""

    fields: Tuple["FieldDescriptor", ...] = ()

    def canonical(self) -> str:
        if not self.fields:
            return "struct{}"
        parts = []
        for item in self.fields:
            part = item.type.canonical() if item.embedded else f"{item.name} {item.type.canonical()}"
            if item.tag:
                part += ' "' + item.tag.replace("\\", "\\\\").replace('"', '\\"') + '"'
            parts.append(part)
        return "struct{" + "; ".join(parts) + "}"


@dataclass(frozen=True)
class UnsupportedType:
    """A construct the loader recognised but optgen cannot generate for."""

    text: str

    def canonical(self) -> str:
        return self.text


TypeDescriptor = Union[
    ScalarType,
    PointerType,
    SliceType,
    ArrayType,
    MapType,
    NamedType,
    StructType,
    UnsupportedType,
]


@dataclass(frozen=True)
class FieldDescriptor:
    """A single struct field as seen by the generator."""

    name: str
    type: TypeDescriptor
    exported: bool
    embedded: bool = False
    package: str = ""
    tag: str = ""


@dataclass(frozen=True)
class RecordDescriptor:
    """A struct type to generate options for."""

    name: str
    package: str
    fields: Tuple[FieldDescriptor, ...]
    source: Optional[Path] = None


@dataclass(frozen=True)
class GenerationConfig:
    """Naming derived from a record and the destination package."""

    receiver_id: str
    option_type: str
    target_type: str
    struct_ref: str
    qualified: bool
    package: str

    @classmethod
    def for_record(cls, record: RecordDescriptor, struct_ref: str, destination: str) -> "GenerationConfig":
        return cls(
            receiver_id=record.name[0].lower(),
            option_type=f"{record.name}Option",
            target_type=record.name[0].upper() + record.name[1:],
            struct_ref=struct_ref,
            qualified=record.package != destination,
            package=destination,
        )


class DebugTag(Enum):
    """Values accepted by the ``debugmap`` struct tag."""

    VISIBLE = "visible"
    VISIBLE_FORMATTED = "visible-format"
    HIDDEN = "hidden"
    SENSITIVE = "sensitive"


@dataclass
class SourceFile:
    """Declarations found in one Go source file."""

    path: Path
    package: str
    package_name: str
    records: List[RecordDescriptor] = field(default_factory=list)
    other_types: Dict[str, TypeDescriptor] = field(default_factory=dict)

    def declared_names(self) -> List[str]:
        return [record.name for record in self.records] + list(self.other_types)


@dataclass
class SourcePackage:
    """A loaded package: import path, name, directory and its files."""

    path: str
    name: str
    directory: Optional[Path]
    files: List[SourceFile] = field(default_factory=list)


@dataclass(frozen=True)
class PackageInfo:
    """Where generated code lands: import path, package name and directory."""

    path: str
    name: str
    directory: Optional[Path] = None


__all__ = [
    "ArrayType",
    "DebugTag",
    "FieldDescriptor",
    "GenerationConfig",
    "MapType",
    "NamedType",
    "PackageInfo",
    "PointerType",
    "RecordDescriptor",
    "ScalarType",
    "SliceType",
    "SourceFile",
    "SourcePackage",
    "StructType",
    "TypeDescriptor",
    "UnsupportedType",
]
