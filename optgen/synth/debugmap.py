"""``DebugMap`` synthesis and the checks on ``debugmap`` struct tags.

The debug map usually ends up in logs, so classification problems are
reported as generation issues instead of falling back to a default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models import DebugTag, FieldDescriptor
from ..tags import DEBUGMAP_TAG_KEY, TagSyntaxError, lookup_debug_tag, parse_tags
from .base import SynthContext


@dataclass(frozen=True)
class DebugEntry:
    name: str
    expression: str


def is_sensitive_name(field_name: str, sensitive_matches: Sequence[str]) -> bool:
    lowered = field_name.lower()
    return any(match and match.lower() in lowered for match in sensitive_matches)


def classify_debug_field(
    ctx: SynthContext, item: FieldDescriptor, sensitive_matches: Sequence[str]
) -> Optional[DebugTag]:
    """Return the field's DebugTag, reporting an issue when it is unusable."""
    try:
        tags = parse_tags(item.tag)
    except TagSyntaxError as exc:
        ctx.report(str(exc), item.name)
        return None

    raw = tags.get(DEBUGMAP_TAG_KEY)
    if raw is None:
        ctx.report(f"missing {DEBUGMAP_TAG_KEY} tag", item.name)
        return None

    tag = lookup_debug_tag(raw.value)
    if tag is None:
        ctx.report(f"unknown value '{raw.value}' for {DEBUGMAP_TAG_KEY} tag", item.name)
        return None

    if tag is not DebugTag.SENSITIVE and is_sensitive_name(item.name, sensitive_matches):
        ctx.report("must be marked as 'sensitive'", item.name)
        return None
    return tag


def classify_debug_fields(
    ctx: SynthContext, sensitive_matches: Sequence[str]
) -> List[Tuple[FieldDescriptor, Optional[DebugTag]]]:
    """Classify every exported, non-embedded field in declaration order."""
    return [
        (item, classify_debug_field(ctx, item, sensitive_matches))
        for item in ctx.record.fields
        if not item.embedded and item.exported
    ]


def debug_entries(
    ctx: SynthContext,
    classified: Sequence[Tuple[FieldDescriptor, Optional[DebugTag]]],
    helpers_package: str,
) -> List[DebugEntry]:
    entries: List[DebugEntry] = []
    receiver = ctx.config.receiver_id
    for item, tag in classified:
        if tag is None or tag is DebugTag.HIDDEN:
            continue
        value = f"{receiver}.{item.name}"
        if tag is DebugTag.SENSITIVE:
            helper = ctx.file.qualify(helpers_package, "SensitiveDebugValue")
            expression = f"{helper}({value})"
        else:
            helper = ctx.file.qualify(helpers_package, "DebugValue")
            formatted = "true" if tag is DebugTag.VISIBLE_FORMATTED else "false"
            expression = f"{helper}({value}, {formatted})"
        entries.append(DebugEntry(name=item.name, expression=expression))
    return entries


def write_debug_map(
    ctx: SynthContext,
    sensitive_matches: Sequence[str],
    helpers_package: str,
    *,
    emit: bool = True,
) -> None:
    """Validate ``debugmap`` tags and emit ``DebugMap``.

    With ``emit`` false the tags are still validated but nothing is written;
    the driver uses this when the receiver method cannot be declared.
    """
    classified = classify_debug_fields(ctx, sensitive_matches)
    if not emit or any(tag is None for _, tag in classified):
        return
    entries = debug_entries(ctx, classified, helpers_package)
    ctx.file.add("debug_map.go.j2", c=ctx.config, entries=entries)


__all__ = [
    "DebugEntry",
    "classify_debug_field",
    "classify_debug_fields",
    "debug_entries",
    "is_sensitive_name",
    "write_debug_map",
]
