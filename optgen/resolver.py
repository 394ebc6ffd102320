"""Turns type descriptors into Go type references for generated signatures."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from .models import (
    ArrayType,
    MapType,
    NamedType,
    PointerType,
    ScalarType,
    SliceType,
    StructType,
    TypeDescriptor,
)

MAX_TYPE_DEPTH = 10

# FIXME: only a single bracketed argument is recognised (Set[pkg.Item]).
_GENERIC_TYPE_PATTERN = re.compile(r"[A-Za-z0-9_]+\.[A-Za-z0-9_]+\[(.*)\]")


class UnsupportedTypeError(RuntimeError):
    """Raised when a field type cannot be expressed in generated code."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"optgen doesn't know how to generate for type {type_name}, please file a bug"
        )
        self.type_name = type_name


class Qualifier(Protocol):
    def qualify(self, package: str, name: str) -> str:
        """Return the identifier used to reference ``package.name``."""


@dataclass(frozen=True)
class TypeRef:
    """Wrapper tokens (outermost first) followed by a base reference."""

    wrappers: Tuple[str, ...]
    base: str

    def render(self) -> str:
        return "".join(self.wrappers) + self.base

    def unwrap(self) -> "TypeRef":
        """Drop the outermost wrapper (``[]T`` becomes ``T``)."""
        return TypeRef(self.wrappers[1:], self.base)

    def __str__(self) -> str:
        return self.render()


def generic_argument_from_name(type_name: str) -> Optional[Tuple[str, str]]:
    """Recover ``(argument package, argument name)`` from a canonical type name.

    ``github.com/a/b.Set[github.com/c/d.Item]`` yields
    ``("github.com/c/d", "Item")``; an unqualified argument yields an empty
    package. Returns None when the name carries no bracketed argument.
    """
    match = _GENERIC_TYPE_PATTERN.search(type_name)
    if match is None:
        return None
    argument = match.group(1)
    index = argument.rfind(".")
    if index < 0:
        return "", argument
    return argument[:index], argument[index + 1 :]


def resolve_type(descriptor: TypeDescriptor, qualifier: Qualifier) -> TypeRef:
    """Decompose ``descriptor`` into wrappers and a base reference."""
    return _resolve(descriptor, qualifier, 0, descriptor)


def render_type(descriptor: TypeDescriptor, qualifier: Qualifier) -> str:
    return resolve_type(descriptor, qualifier).render()


def _resolve(
    descriptor: TypeDescriptor, qualifier: Qualifier, depth: int, root: TypeDescriptor
) -> TypeRef:
    wrappers: List[str] = []
    current = descriptor
    while True:
        if isinstance(current, (PointerType, SliceType, ArrayType)):
            depth = _descend(depth, root)
        if isinstance(current, PointerType):
            wrappers.append("*")
            current = current.elem
        elif isinstance(current, SliceType):
            wrappers.append("[]")
            current = current.elem
        elif isinstance(current, ArrayType):
            wrappers.append(f"[{current.length}]")
            current = current.elem
        else:
            return TypeRef(tuple(wrappers), _base(current, qualifier, depth, root))


def _base(
    descriptor: TypeDescriptor, qualifier: Qualifier, depth: int, root: TypeDescriptor
) -> str:
    if isinstance(descriptor, ScalarType):
        return descriptor.name
    if isinstance(descriptor, NamedType):
        return _named(descriptor, qualifier, depth, root)
    if isinstance(descriptor, MapType):
        depth = _descend(depth, root)
        key = _resolve(descriptor.key, qualifier, depth, root).render()
        value = _resolve(descriptor.value, qualifier, depth, root).render()
        return f"map[{key}]{value}"
    if isinstance(descriptor, StructType):
        return _struct(descriptor, qualifier, _descend(depth, root), root)
    raise UnsupportedTypeError(root.canonical())


def _descend(depth: int, root: TypeDescriptor) -> int:
    """Count one more layer of nesting; more than MAX_TYPE_DEPTH is rejected."""
    depth += 1
    if depth > MAX_TYPE_DEPTH:
        raise UnsupportedTypeError(root.canonical())
    return depth


def _named(descriptor: NamedType, qualifier: Qualifier, depth: int, root: TypeDescriptor) -> str:
    if descriptor.type_argument is not None:
        reference = qualifier.qualify(descriptor.package, descriptor.name)
        argument = _resolve(descriptor.type_argument, qualifier, _descend(depth, root), root).render()
        return f"{reference}[{argument}]"

    if "[" in descriptor.name:
        recovered = generic_argument_from_name(descriptor.canonical())
        if recovered is not None:
            base_name = descriptor.name.split("[", 1)[0]
            argument_package, argument_name = recovered
            reference = qualifier.qualify(descriptor.package, base_name)
            return f"{reference}[{qualifier.qualify(argument_package, argument_name)}]"

    return qualifier.qualify(descriptor.package, descriptor.name)


def _struct(descriptor: StructType, qualifier: Qualifier, depth: int, root: TypeDescriptor) -> str:
    if not descriptor.fields:
        return "struct{}"
    members: List[str] = []
    for item in descriptor.fields:
        rendered = _resolve(item.type, qualifier, depth, root).render()
        member = rendered if item.embedded else f"{item.name} {rendered}"
        if item.tag:
            member += f" `{item.tag}`"
        members.append(member)
    return "struct{ " + "; ".join(members) + " }"


__all__ = [
    "MAX_TYPE_DEPTH",
    "Qualifier",
    "TypeRef",
    "UnsupportedTypeError",
    "generic_argument_from_name",
    "render_type",
    "resolve_type",
]
