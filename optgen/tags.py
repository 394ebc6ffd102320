"""Go struct tag parsing (``key:"value" other:"value"``)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

from .models import DebugTag

DEBUGMAP_TAG_KEY = "debugmap"

_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "r": "\r", "'": "'"}


class TagSyntaxError(RuntimeError):
    """Raised when a struct tag does not follow the conventional Go format."""


@dataclass(frozen=True)
class StructTag:
    """One ``key:"value"`` pair of a struct tag."""

    key: str
    value: str

    @property
    def name(self) -> str:
        return self.value.split(",", 1)[0]

    @property
    def options(self) -> List[str]:
        parts = self.value.split(",")
        return parts[1:]


class StructTags:
    """Ordered collection of parsed tag pairs."""

    def __init__(self, tags: List[StructTag]) -> None:
        self._tags = list(tags)

    def __iter__(self) -> Iterator[StructTag]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def get(self, key: str) -> Optional[StructTag]:
        for tag in self._tags:
            if tag.key == key:
                return tag
        return None

    def keys(self) -> List[str]:
        return [tag.key for tag in self._tags]


def parse_tags(raw: str) -> StructTags:
    """Parse a raw struct tag string.

    Follows the conventional layout understood by ``reflect.StructTag``: space
    separated ``key:"quoted value"`` pairs, where keys contain no spaces,
    colons or quotes.
    """
    tags: List[StructTag] = []
    rest = raw
    while rest:
        rest = rest.lstrip(" ")
        if not rest:
            break

        i = 0
        while i < len(rest) and rest[i] > " " and rest[i] not in ':"\x7f':
            i += 1
        if i == 0:
            raise TagSyntaxError(f"bad syntax for struct tag key in {raw!r}")
        if i + 1 >= len(rest) or rest[i] != ":":
            raise TagSyntaxError(f"bad syntax for struct tag pair in {raw!r}")
        if rest[i + 1] != '"':
            raise TagSyntaxError(f"bad syntax for struct tag value in {raw!r}")
        key = rest[:i]
        rest = rest[i + 1 :]

        j = 1
        while j < len(rest) and rest[j] != '"':
            if rest[j] == "\\":
                j += 1
            j += 1
        if j >= len(rest):
            raise TagSyntaxError(f"unterminated value for struct tag key {key!r} in {raw!r}")
        value = unquote(rest[1:j])
        rest = rest[j + 1 :]

        tags.append(StructTag(key=key, value=value))
    return StructTags(tags)


def lookup_debug_tag(value: str) -> Optional[DebugTag]:
    """Return the DebugTag for a ``debugmap`` value, or None when unknown."""
    for member in DebugTag:
        if member.value == value:
            return member
    return None


def unquote(body: str) -> str:
    """Resolve backslash escapes in the body of a double-quoted Go string."""
    if "\\" not in body:
        return body
    out: List[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body):
            nxt = body[index + 1]
            out.append(_ESCAPES.get(nxt, "\\" + nxt))
            index += 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


__all__ = [
    "DEBUGMAP_TAG_KEY",
    "StructTag",
    "StructTags",
    "TagSyntaxError",
    "lookup_debug_tag",
    "parse_tags",
    "unquote",
]
