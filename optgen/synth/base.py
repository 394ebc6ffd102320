"""Shared structures for the Go declaration synthesizers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..classifier import ClassifiedField
from ..emitter import GoFile
from ..models import GenerationConfig, RecordDescriptor


@dataclass(frozen=True)
class GenerationIssue:
    """A schema or annotation problem that blocks generation."""

    record: str
    message: str
    field: Optional[str] = None
    source: Optional[Path] = None

    def __str__(self) -> str:
        location = f"{self.source}: " if self.source else ""
        subject = f"field {self.field} in type {self.record}" if self.field else f"type {self.record}"
        return f"{location}{subject}: {self.message}"


class GenerationError(RuntimeError):
    """Raised by the driver once all records were checked and issues remain."""

    def __init__(self, message: str, issues: Sequence[GenerationIssue]) -> None:
        super().__init__(message)
        self.issues = list(issues)

    def __str__(self) -> str:
        lines = [super().__str__()]
        lines.extend(f"  - {issue}" for issue in self.issues)
        return "\n".join(lines)


@dataclass
class SynthContext:
    """Everything a synthesizer needs to emit declarations for one record."""

    record: RecordDescriptor
    config: GenerationConfig
    file: GoFile
    fields: List[ClassifiedField]
    issues: List[GenerationIssue] = field(default_factory=list)

    def report(self, message: str, field_name: Optional[str] = None) -> None:
        self.issues.append(
            GenerationIssue(
                record=self.record.name,
                message=message,
                field=field_name,
                source=self.record.source,
            )
        )


__all__ = ["GenerationError", "GenerationIssue", "SynthContext"]
