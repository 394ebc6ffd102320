"""Decides which fields get options and which option shapes they get."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from .models import (
    ArrayType,
    FieldDescriptor,
    MapType,
    NamedType,
    RecordDescriptor,
    SliceType,
    TypeDescriptor,
)
from .resolver import MAX_TYPE_DEPTH


class FieldStrategy(Enum):
    STANDARD = "standard"
    SLICE = "slice"
    ARRAY = "array"
    MAP = "map"


@dataclass(frozen=True)
class ClassifiedField:
    """A field that takes part in generation, with its strategy.

    ``shape`` is the structural type behind any named types; collection
    options read their element, key and value types from it.
    """

    field: FieldDescriptor
    strategy: FieldStrategy
    shape: TypeDescriptor

    @property
    def name(self) -> str:
        return self.field.name


def underlying(descriptor: TypeDescriptor) -> TypeDescriptor:
    """Follow named types to their structural shape where it is known."""
    current = descriptor
    for _ in range(MAX_TYPE_DEPTH):
        if not isinstance(current, NamedType) or current.underlying is None:
            return current
        current = current.underlying
    return current


def is_included(field: FieldDescriptor, destination_package: str) -> bool:
    """Embedded fields never take part; unexported ones only within their package."""
    if field.embedded:
        return False
    if not field.exported and field.package != destination_package:
        return False
    return True


def strategy_for(descriptor: TypeDescriptor) -> FieldStrategy:
    shape = underlying(descriptor)
    if isinstance(shape, SliceType):
        return FieldStrategy.SLICE
    if isinstance(shape, ArrayType):
        return FieldStrategy.ARRAY
    if isinstance(shape, MapType):
        return FieldStrategy.MAP
    return FieldStrategy.STANDARD


def classify_fields(record: RecordDescriptor, destination_package: str) -> List[ClassifiedField]:
    """Return the fields of ``record`` that get options, in declaration order."""
    return [
        ClassifiedField(field=item, strategy=strategy_for(item.type), shape=underlying(item.type))
        for item in record.fields
        if is_included(item, destination_package)
    ]


__all__ = [
    "ClassifiedField",
    "FieldStrategy",
    "classify_fields",
    "is_included",
    "strategy_for",
    "underlying",
]
