"""Tree-sitter powered loader for Go package directories."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

import tree_sitter_go
from tree_sitter import Language, Node, Parser

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
    UnsupportedType,
)
from ..tags import unquote
from .base import LoadError, Loader

GO_LANGUAGE = Language(tree_sitter_go.language())

PREDECLARED_TYPES = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)

_MODULE_PATTERN = re.compile(r"^\s*module\s+\"?([^\s\"]+)\"?", re.MULTILINE)
_VERSION_SUFFIX = re.compile(r"(\.v[0-9]+|/v[0-9]+)$")

ForeignLookup = Callable[[str, str], Optional[TypeDescriptor]]


@dataclass
class _ParsedFile:
    path: Path
    source: bytes
    package_name: str
    imports: Dict[str, str] = field(default_factory=dict)
    declarations: List["_Declaration"] = field(default_factory=list)

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


@dataclass
class _Declaration:
    name: str
    node: Node
    file: _ParsedFile
    alias: bool

    @property
    def type_node(self) -> Node:
        return _field(self.node, "type")

    @property
    def generic(self) -> bool:
        return self.node.child_by_field_name("type_parameters") is not None


def find_module(start: Path) -> Optional[Tuple[Path, str]]:
    """Return ``(module root, module path)`` from the nearest go.mod."""
    current = start.resolve()
    for directory in (current, *current.parents):
        go_mod = directory / "go.mod"
        if not go_mod.is_file():
            continue
        match = _MODULE_PATTERN.search(go_mod.read_text(encoding="utf-8"))
        if match is None:
            raise LoadError(f"{go_mod}: missing module directive")
        return directory, match.group(1)
    return None


def package_name_from_path(import_path: str) -> str:
    """Best guess at the package name an import path declares."""
    trimmed = _VERSION_SUFFIX.sub("", import_path.rstrip("/"))
    name = trimmed.rsplit("/", 1)[-1]
    if name.startswith("go-"):
        name = name[3:]
    if name.endswith("-go") or name.endswith(".go"):
        name = name[:-3]
    return re.sub(r"[^A-Za-z0-9_]", "", name) or "pkg"


class GoSourceLoader(Loader):
    """Parses the non-test ``.go`` files of one package directory."""

    name = "go"

    def __init__(self, cwd: Path | None = None) -> None:
        self._cwd = cwd
        self._parser = Parser(GO_LANGUAGE)
        self._module: Optional[Tuple[Path, str]] = None
        self._builders: Dict[str, Optional[_DescriptorBuilder]] = {}
        self.logger = get_logger("loaders.go")

    def supports(self, identifier: str) -> bool:
        return not self._absolute(identifier).is_file()

    def load(self, identifier: str) -> SourcePackage:
        directory = self.resolve_directory(identifier)
        paths = self._go_files(directory)
        if not paths:
            raise LoadError(f"no Go files found in {directory}")

        parsed = [self._parse_file(path) for path in paths]
        package_names = {item.package_name for item in parsed}
        if len(package_names) > 1:
            found = ", ".join(sorted(package_names))
            raise LoadError(f"found packages {found} in {directory}")

        package_path = self.package_path(directory)
        self._module = find_module(directory)
        builder = _DescriptorBuilder(package_path, parsed, self.logger, self._foreign_underlying)
        self._builders = {package_path: builder}
        package = SourcePackage(path=package_path, name=parsed[0].package_name, directory=directory)
        for item in parsed:
            package.files.append(builder.source_file(item))
        self.logger.debug("Loaded %s (%d files) from %s", package_path, len(parsed), directory)
        return package

    def locate_destination(self, directory: Path, source: SourcePackage) -> PackageInfo:
        directory = self._absolute(str(directory)).resolve()
        if source.directory is not None and directory == source.directory.resolve():
            return PackageInfo(path=source.path, name=source.name, directory=directory)
        name = self._existing_package_name(directory) or package_name_from_path(directory.name)
        return PackageInfo(path=self.package_path(directory), name=name, directory=directory)

    def resolve_directory(self, identifier: str) -> Path:
        """Find the directory for a path or for an import path in the current module."""
        candidate = self._absolute(identifier)
        if candidate.is_dir():
            return candidate.resolve()
        module = find_module(self._absolute("."))
        if module is not None:
            root, module_path = module
            if identifier == module_path:
                return root
            if identifier.startswith(module_path + "/"):
                nested = root / identifier[len(module_path) + 1 :]
                if nested.is_dir():
                    return nested
        raise LoadError(f"cannot find package {identifier!r}")

    def package_path(self, directory: Path) -> str:
        module = find_module(directory)
        if module is None:
            self.logger.warning("No go.mod found above %s; using the directory name as import path", directory)
            return directory.name
        root, module_path = module
        relative = directory.resolve().relative_to(root)
        if relative == Path("."):
            return module_path
        return f"{module_path}/{relative.as_posix()}"

    def _foreign_underlying(self, package: str, name: str) -> Optional[TypeDescriptor]:
        """Shape of ``package.name`` when the package lives in the loaded module."""
        builder = self._builder_for(package)
        if builder is None:
            return None
        return builder.underlying_of(name)

    def _builder_for(self, package: str) -> Optional[_DescriptorBuilder]:
        if package in self._builders:
            return self._builders[package]
        # placeholder until parsed, so an import cycle cannot recurse
        self._builders[package] = None
        directory = self._module_directory(package)
        if directory is None:
            return None
        paths = self._go_files(directory)
        if not paths:
            return None
        parsed = [self._parse_file(path) for path in paths]
        builder = _DescriptorBuilder(package, parsed, self.logger, self._foreign_underlying)
        self._builders[package] = builder
        self.logger.debug("Parsed dependency %s (%d files) for underlying types", package, len(parsed))
        return builder

    def _module_directory(self, package: str) -> Optional[Path]:
        if self._module is None:
            return None
        root, module_path = self._module
        if package == module_path:
            return root
        if not package.startswith(module_path + "/"):
            return None
        directory = root / package[len(module_path) + 1 :]
        return directory if directory.is_dir() else None

    def _absolute(self, identifier: str) -> Path:
        path = Path(identifier).expanduser()
        if path.is_absolute():
            return path
        return (self._cwd or Path.cwd()) / path

    @staticmethod
    def _go_files(directory: Path) -> List[Path]:
        return [
            path
            for path in sorted(directory.glob("*.go"))
            if path.is_file() and not path.name.endswith("_test.go")
        ]

    def _existing_package_name(self, directory: Path) -> Optional[str]:
        if not directory.is_dir():
            return None
        for path in self._go_files(directory):
            return self._parse_file(path).package_name
        return None

    def _parse_file(self, path: Path) -> _ParsedFile:
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise LoadError(f"cannot read {path}: {exc}") from exc
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            line = _first_error_line(root)
            raise LoadError(f"{path}:{line}: syntax error")

        parsed = _ParsedFile(path=path, source=source, package_name="")
        for child in root.named_children:
            if child.type == "package_clause":
                for ident in child.named_children:
                    if ident.type == "package_identifier":
                        parsed.package_name = parsed.text(ident)
            elif child.type == "import_declaration":
                self._collect_imports(child, parsed)
            elif child.type == "type_declaration":
                for spec in child.named_children:
                    if spec.type not in ("type_spec", "type_alias"):
                        continue
                    name_node = spec.child_by_field_name("name")
                    if name_node is None:
                        continue
                    parsed.declarations.append(
                        _Declaration(
                            name=parsed.text(name_node),
                            node=spec,
                            file=parsed,
                            alias=spec.type == "type_alias",
                        )
                    )
        if not parsed.package_name:
            raise LoadError(f"{path}: missing package clause")
        self.logger.debug(
            "Parsed %s: package %s, %d type declarations",
            path.name,
            parsed.package_name,
            len(parsed.declarations),
        )
        return parsed

    @staticmethod
    def _collect_imports(declaration: Node, parsed: _ParsedFile) -> None:
        specs: List[Node] = []
        for child in declaration.named_children:
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(spec for spec in child.named_children if spec.type == "import_spec")
        for spec in specs:
            path_node = spec.child_by_field_name("path")
            if path_node is None:
                continue
            import_path = parsed.text(path_node).strip('"`')
            name_node = spec.child_by_field_name("name")
            if name_node is None:
                parsed.imports[package_name_from_path(import_path)] = import_path
                continue
            alias = parsed.text(name_node)
            if alias in (".", "_"):
                continue
            parsed.imports[alias] = import_path


class _DescriptorBuilder:
    """Maps tree-sitter type nodes onto TypeDescriptors for one package."""

    def __init__(
        self,
        package_path: str,
        files: List[_ParsedFile],
        logger: logging.Logger,
        foreign: Optional[ForeignLookup] = None,
    ) -> None:
        self.package_path = package_path
        self.logger = logger
        self._foreign = foreign
        self._declarations: Dict[str, _Declaration] = {}
        for parsed in files:
            for declaration in parsed.declarations:
                self._declarations.setdefault(declaration.name, declaration)
        self._underlying: Dict[str, TypeDescriptor] = {}

    def source_file(self, parsed: _ParsedFile) -> SourceFile:
        result = SourceFile(path=parsed.path, package=self.package_path, package_name=parsed.package_name)
        for declaration in parsed.declarations:
            type_node = declaration.type_node
            if declaration.generic:
                result.other_types[declaration.name] = UnsupportedType(
                    f"generic type {declaration.name}{parsed.text(declaration.node.child_by_field_name('type_parameters'))}"
                )
            elif not declaration.alias and type_node.type == "struct_type":
                result.records.append(
                    RecordDescriptor(
                        name=declaration.name,
                        package=self.package_path,
                        fields=self.struct_fields(type_node, parsed, frozenset()),
                        source=parsed.path,
                    )
                )
            else:
                result.other_types[declaration.name] = self.convert(
                    type_node, parsed, frozenset({declaration.name})
                )
        return result

    def convert(self, node: Node, parsed: _ParsedFile, resolving: FrozenSet[str]) -> TypeDescriptor:
        kind = node.type
        if kind == "type_identifier":
            name = parsed.text(node)
            if name in PREDECLARED_TYPES:
                return ScalarType(name)
            return self._local(name, resolving)
        if kind == "qualified_type":
            return self._qualified(node, parsed)
        if kind == "pointer_type":
            return PointerType(self.convert(node.named_children[-1], parsed, resolving))
        if kind == "slice_type":
            return SliceType(self.convert(_field(node, "element"), parsed, resolving))
        if kind == "array_type":
            return ArrayType(
                elem=self.convert(_field(node, "element"), parsed, resolving),
                length=parsed.text(_field(node, "length")),
            )
        if kind == "map_type":
            return MapType(
                key=self.convert(_field(node, "key"), parsed, resolving),
                value=self.convert(_field(node, "value"), parsed, resolving),
            )
        if kind == "generic_type":
            return self._generic(node, parsed, resolving)
        if kind == "struct_type":
            return StructType(self.struct_fields(node, parsed, resolving))
        if kind == "parenthesized_type":
            return self.convert(node.named_children[0], parsed, resolving)
        return UnsupportedType(parsed.text(node))

    def struct_fields(
        self, struct_node: Node, parsed: _ParsedFile, resolving: FrozenSet[str]
    ) -> Tuple[FieldDescriptor, ...]:
        fields: List[FieldDescriptor] = []
        for child in struct_node.named_children:
            if child.type != "field_declaration_list":
                continue
            for declaration in child.named_children:
                if declaration.type != "field_declaration":
                    continue
                fields.extend(self._field_declaration(declaration, parsed, resolving))
        return tuple(fields)

    def _field_declaration(
        self, declaration: Node, parsed: _ParsedFile, resolving: FrozenSet[str]
    ) -> List[FieldDescriptor]:
        type_node = _field(declaration, "type")
        tag_node = declaration.child_by_field_name("tag")
        tag = _tag_value(parsed.text(tag_node)) if tag_node is not None else ""
        descriptor = self.convert(type_node, parsed, resolving)

        names = declaration.children_by_field_name("name")
        if not names:
            if any(child.type == "*" for child in declaration.children):
                descriptor = PointerType(descriptor)
            name = _embedded_name(type_node, parsed)
            return [
                FieldDescriptor(
                    name=name,
                    type=descriptor,
                    exported=_is_exported(name),
                    embedded=True,
                    package=self.package_path,
                    tag=tag,
                )
            ]

        return [
            FieldDescriptor(
                name=parsed.text(name_node),
                type=descriptor,
                exported=_is_exported(parsed.text(name_node)),
                package=self.package_path,
                tag=tag,
            )
            for name_node in names
        ]

    def _local(self, name: str, resolving: FrozenSet[str]) -> TypeDescriptor:
        declaration = self._declarations.get(name)
        if declaration is None or name in resolving:
            return NamedType(self.package_path, name)
        if declaration.alias:
            return self.convert(declaration.type_node, declaration.file, resolving | {name})
        if declaration.generic:
            return NamedType(self.package_path, name)
        return NamedType(self.package_path, name, underlying=self._shape(declaration, resolving))

    def underlying_of(self, name: str) -> Optional[TypeDescriptor]:
        """Structural shape of the declared type ``name``, if this package declares it."""
        declaration = self._declarations.get(name)
        if declaration is None or declaration.generic:
            return None
        if declaration.alias:
            target = self.convert(declaration.type_node, declaration.file, frozenset({name}))
            return target.underlying if isinstance(target, NamedType) else target
        return self._shape(declaration, frozenset())

    def _shape(self, declaration: _Declaration, resolving: FrozenSet[str]) -> TypeDescriptor:
        cached = self._underlying.get(declaration.name)
        if cached is not None:
            return cached
        if declaration.type_node.type == "struct_type":
            shape: TypeDescriptor = StructType()
        else:
            shape = self.convert(declaration.type_node, declaration.file, resolving | {declaration.name})
        self._underlying[declaration.name] = shape
        return shape

    def _qualified(self, node: Node, parsed: _ParsedFile) -> TypeDescriptor:
        alias = parsed.text(_field(node, "package"))
        name = parsed.text(_field(node, "name"))
        package = parsed.imports.get(alias)
        if package is None:
            self.logger.warning("%s: unknown import %r for %s.%s", parsed.path.name, alias, alias, name)
            return NamedType(alias, name)
        underlying = self._foreign(package, name) if self._foreign is not None else None
        return NamedType(package, name, underlying=underlying)

    def _generic(self, node: Node, parsed: _ParsedFile, resolving: FrozenSet[str]) -> TypeDescriptor:
        base = self.convert(_field(node, "type"), parsed, resolving)
        arguments = _type_arguments(node.child_by_field_name("type_arguments"))
        if not isinstance(base, NamedType) or len(arguments) != 1:
            self.logger.debug("Unsupported generic instantiation %s", parsed.text(node))
            return UnsupportedType(parsed.text(node))
        return NamedType(
            package=base.package,
            name=base.name,
            type_argument=self.convert(arguments[0], parsed, resolving),
        )


def _field(node: Node, name: str) -> Node:
    child = node.child_by_field_name(name)
    if child is None:
        raise LoadError(f"malformed {node.type} at line {node.start_point[0] + 1}: missing {name}")
    return child


def _type_arguments(node: Optional[Node]) -> List[Node]:
    if node is None:
        return []
    arguments: List[Node] = []
    for child in node.named_children:
        if child.type == "type_elem":
            if child.named_children:
                arguments.append(child.named_children[0])
        elif child.type != "comment":
            arguments.append(child)
    return arguments


def _embedded_name(type_node: Node, parsed: _ParsedFile) -> str:
    if type_node.type == "qualified_type":
        return parsed.text(_field(type_node, "name"))
    if type_node.type == "generic_type":
        return _embedded_name(_field(type_node, "type"), parsed)
    return parsed.text(type_node)


def _tag_value(literal: str) -> str:
    if len(literal) >= 2 and literal[0] == "`":
        return literal[1:-1]
    if len(literal) >= 2 and literal[0] == '"':
        return unquote(literal[1:-1])
    return literal


def _is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def _first_error_line(node: Node) -> int:
    if node.type == "ERROR" or node.is_missing:
        return node.start_point[0] + 1
    for child in node.children:
        if child.has_error:
            return _first_error_line(child)
    return node.start_point[0] + 1


__all__ = [
    "GO_LANGUAGE",
    "GoSourceLoader",
    "PREDECLARED_TYPES",
    "find_module",
    "package_name_from_path",
]
