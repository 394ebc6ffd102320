"""Per-field option functions (``WithX`` / ``SetX``)."""

from __future__ import annotations

from typing import Iterable

from ..classifier import ClassifiedField, FieldStrategy
from ..logging import get_logger
from ..models import MapType, SliceType
from ..resolver import UnsupportedTypeError, resolve_type
from .base import SynthContext

logger = get_logger("synth.options")

GO_KEYWORDS = frozenset(
    {
        "break",
        "case",
        "chan",
        "const",
        "continue",
        "default",
        "defer",
        "else",
        "fallthrough",
        "for",
        "func",
        "go",
        "goto",
        "if",
        "import",
        "interface",
        "map",
        "package",
        "range",
        "return",
        "select",
        "struct",
        "switch",
        "type",
        "var",
    }
)

# Identifiers the generated function bodies depend on.
_BODY_IDENTIFIERS = frozenset({"append"})

PARAMETER_SUFFIX = "Value"


def unexport(name: str) -> str:
    if not name:
        return name
    return name[0].lower() + name[1:]


def title(name: str) -> str:
    if not name:
        return name
    return name[0].upper() + name[1:]


def parameter_name(field_name: str, receiver_id: str, reserved: Iterable[str] = ()) -> str:
    """Parameter identifier for a field's option function.

    The lower-cased field name, suffixed when it would collide with a Go
    keyword, ``append``, the receiver used inside the returned closure or one
    of the ``reserved`` import aliases the function refers to.
    """
    return _avoid(unexport(field_name), receiver_id, reserved)


def _avoid(candidate: str, receiver_id: str, reserved: Iterable[str]) -> str:
    if (
        candidate in GO_KEYWORDS
        or candidate in _BODY_IDENTIFIERS
        or candidate == receiver_id
        or candidate in set(reserved)
    ):
        return candidate + PARAMETER_SUFFIX
    return candidate


def write_field_options(ctx: SynthContext) -> None:
    """Emit option functions for every classified field of the record."""
    for item in ctx.fields:
        try:
            _write_field(ctx, item)
        except UnsupportedTypeError as exc:
            ctx.report(str(exc), item.name)


def _write_field(ctx: SynthContext, item: ClassifiedField) -> None:
    if item.strategy is FieldStrategy.SLICE:
        write_slice_with_option(ctx, item)
        write_set_option(ctx, item)
    elif item.strategy is FieldStrategy.ARRAY:
        logger.debug(
            "%s.%s is a fixed-length array; only Set%s is generated",
            ctx.record.name,
            item.name,
            title(item.name),
        )
        write_set_option(ctx, item)
    elif item.strategy is FieldStrategy.MAP:
        write_map_with_option(ctx, item)
        write_set_option(ctx, item)
    else:
        write_standard_with_option(ctx, item)


def write_standard_with_option(ctx: SynthContext, item: ClassifiedField) -> None:
    ref = resolve_type(item.field.type, ctx.file)
    _emit_assignment(ctx, item, f"With{title(item.name)}", ref.render())


def write_set_option(ctx: SynthContext, item: ClassifiedField) -> None:
    ref = resolve_type(item.field.type, ctx.file)
    _emit_assignment(ctx, item, f"Set{title(item.name)}", ref.render())


def write_slice_with_option(ctx: SynthContext, item: ClassifiedField) -> None:
    if item.shape is item.field.type:
        element = resolve_type(item.field.type, ctx.file).unwrap()
    elif isinstance(item.shape, SliceType):
        # named slice type: the element comes from its declaration
        element = resolve_type(item.shape.elem, ctx.file)
    else:
        raise UnsupportedTypeError(item.field.type.canonical())
    ctx.file.add(
        "append_option.go.j2",
        c=ctx.config,
        func_name=f"With{title(item.name)}",
        title=title(item.name),
        field=item.name,
        param=parameter_name(item.name, ctx.config.receiver_id, ctx.file.imports.values()),
        param_type=element.render(),
    )


def write_map_with_option(ctx: SynthContext, item: ClassifiedField) -> None:
    shape = item.shape
    if not isinstance(shape, MapType):
        raise UnsupportedTypeError(item.field.type.canonical())
    key_type = resolve_type(shape.key, ctx.file).render()
    value_type = resolve_type(shape.value, ctx.file).render()
    aliases = list(ctx.file.imports.values())
    ctx.file.add(
        "map_entry_option.go.j2",
        c=ctx.config,
        func_name=f"With{title(item.name)}",
        title=title(item.name),
        field=item.name,
        key=_avoid("key", ctx.config.receiver_id, aliases),
        key_type=key_type,
        value=_avoid("value", ctx.config.receiver_id, aliases),
        value_type=value_type,
    )


def _emit_assignment(ctx: SynthContext, item: ClassifiedField, func_name: str, param_type: str) -> None:
    ctx.file.add(
        "set_option.go.j2",
        c=ctx.config,
        func_name=func_name,
        title=title(item.name),
        field=item.name,
        param=parameter_name(item.name, ctx.config.receiver_id, ctx.file.imports.values()),
        param_type=param_type,
    )


__all__ = [
    "GO_KEYWORDS",
    "parameter_name",
    "title",
    "unexport",
    "write_field_options",
    "write_map_with_option",
    "write_set_option",
    "write_slice_with_option",
    "write_standard_with_option",
]
