"""Builders for record descriptors and synthesizer contexts."""

from __future__ import annotations

from typing import Optional

from optgen.classifier import classify_fields
from optgen.emitter import GoFile
from optgen.models import FieldDescriptor, GenerationConfig, RecordDescriptor, TypeDescriptor
from optgen.synth import SynthContext

PKG = "example.com/app/config"


def field(name: str, descriptor: TypeDescriptor, tag: str = "", **kwargs: object) -> FieldDescriptor:
    return FieldDescriptor(
        name=name,
        type=descriptor,
        exported=bool(kwargs.pop("exported", name[:1].isupper())),
        embedded=bool(kwargs.pop("embedded", False)),
        package=str(kwargs.pop("package", PKG)),
        tag=tag,
    )


def record(name: str, *fields: FieldDescriptor, package: str = PKG) -> RecordDescriptor:
    return RecordDescriptor(name=name, package=package, fields=tuple(fields))


def make_context(
    descriptor: RecordDescriptor,
    destination: str = PKG,
    package_name: Optional[str] = None,
) -> SynthContext:
    """Build a context writing into a fresh GoFile for ``destination``."""
    unit = GoFile(destination, package_name or destination.rsplit("/", 1)[-1])
    struct_ref = unit.qualify(descriptor.package, descriptor.name)
    return SynthContext(
        record=descriptor,
        config=GenerationConfig.for_record(descriptor, struct_ref, destination),
        file=unit,
        fields=classify_fields(descriptor, destination),
    )


__all__ = ["PKG", "field", "make_context", "record"]
