"""Emission driver: loads a package and writes option files for its records."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from jinja2 import Environment

from .classifier import classify_fields
from .config import GeneratorSettings
from .emitter import GoFile, create_environment
from .loaders import Loader, select_loader
from .logging import get_logger
from .models import GenerationConfig, PackageInfo, RecordDescriptor, SourceFile, SourcePackage, UnsupportedType
from .synth import (
    GenerationError,
    GenerationIssue,
    SynthContext,
    write_apply_function,
    write_apply_method,
    write_constructors,
    write_debug_map,
    write_field_options,
    write_option_type,
    write_to_option,
)


@dataclass
class OutputUnit:
    """One generated Go file and where it goes."""

    file: GoFile
    path: Path
    records: List[str] = field(default_factory=list)


@dataclass
class GenerationResult:
    records: List[RecordDescriptor] = field(default_factory=list)
    outputs: List[OutputUnit] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.records)


class Generator:
    """Coordinates loading, synthesis and writing for one run."""

    def __init__(
        self,
        settings: GeneratorSettings | None = None,
        *,
        loaders: Optional[Sequence[Loader]] = None,
        stream: Optional[TextIO] = None,
        environment: Optional[Environment] = None,
    ) -> None:
        self.settings = settings or GeneratorSettings()
        self._loaders = list(loaders) if loaders is not None else None
        self._stream = stream
        self._environment = environment or create_environment(self.settings.templates_dir)
        self.logger = get_logger("driver")

    def run(self, identifier: str, type_names: Sequence[str]) -> GenerationResult:
        """Load ``identifier`` and generate options for ``type_names``."""
        loader = select_loader(identifier, self._loaders)
        self.logger.debug("Using %s loader for %s", loader.name, identifier)
        source = loader.load(identifier)

        destination: Optional[PackageInfo] = None
        if self.settings.output is not None:
            destination = loader.locate_destination(self.settings.output.resolve().parent, source)
        elif source.directory is not None:
            destination = loader.locate_destination(source.directory, source)
        if destination is not None and self.settings.package_name:
            destination = PackageInfo(
                path=destination.path,
                name=self.settings.package_name,
                directory=destination.directory,
            )

        result = self.generate(source, type_names, destination)
        self.write(result)
        return result

    def generate(
        self,
        source: SourcePackage,
        type_names: Sequence[str],
        destination: Optional[PackageInfo] = None,
    ) -> GenerationResult:
        """Synthesize declarations for every requested record without writing.

        Raises ``GenerationError`` listing every issue found across all
        records when any record cannot be generated.
        """
        destination = destination or PackageInfo(path=source.path, name=source.name, directory=source.directory)
        wanted = list(dict.fromkeys(type_names))
        found: set[str] = set()
        issues: List[GenerationIssue] = []
        result = GenerationResult()
        merged: Optional[OutputUnit] = None

        for source_file in source.files:
            issues.extend(self._non_struct_issues(source_file, wanted))
            found.update(name for name in wanted if name in source_file.other_types)

            records = [record for record in source_file.records if record.name in wanted]
            if not records:
                continue
            found.update(record.name for record in records)

            if self.settings.output is not None:
                if merged is None:
                    merged = self._new_unit(destination, self.settings.output)
                    result.outputs.append(merged)
                unit = merged
            else:
                unit = self._new_unit(destination, self._default_path(source_file))
                result.outputs.append(unit)

            self.logger.info(
                "Generating options for %s.%s...",
                source.name,
                ", ".join(record.name for record in records),
            )
            for record in records:
                issues.extend(self._generate_record(record, unit, destination))
                unit.records.append(record.name)
                result.records.append(record)

        for name in wanted:
            if name not in found:
                self.logger.warning("Type %s not found in package %s", name, source.path)

        if issues:
            raise GenerationError(f"generation failed with {len(issues)} issue(s)", issues)
        return result

    def write(self, result: GenerationResult) -> None:
        """Render every output unit; OSError from the filesystem propagates."""
        for unit in result.outputs:
            if self._stream is not None:
                unit.file.write(self._stream)
                continue
            unit.path.parent.mkdir(parents=True, exist_ok=True)
            with unit.path.open("w", encoding="utf-8") as handle:
                unit.file.write(handle)
            self.logger.debug("Wrote %s (%s)", unit.path, ", ".join(unit.records))

    def _generate_record(
        self, record: RecordDescriptor, unit: OutputUnit, destination: PackageInfo
    ) -> List[GenerationIssue]:
        struct_ref = unit.file.qualify(record.package, record.name)
        config = GenerationConfig.for_record(record, struct_ref, destination.path)
        ctx = SynthContext(
            record=record,
            config=config,
            file=unit.file,
            fields=classify_fields(record, destination.path),
        )
        if config.qualified:
            self.logger.warning(
                "%s is declared in %s; ToOption, DebugMap and WithOptions methods are not generated in %s",
                record.name,
                record.package,
                destination.path,
            )

        write_option_type(ctx)
        write_constructors(ctx, self.settings.defaults_package)
        if not config.qualified:
            write_to_option(ctx)
        write_debug_map(
            ctx,
            self.settings.sensitive_field_name_matches,
            self.settings.helpers_package,
            emit=not config.qualified,
        )
        write_apply_function(ctx)
        if not config.qualified:
            write_apply_method(ctx)
        write_field_options(ctx)
        return ctx.issues

    def _new_unit(self, destination: PackageInfo, path: Path) -> OutputUnit:
        return OutputUnit(
            file=GoFile(destination.path, destination.name, environment=self._environment),
            path=path,
        )

    def _default_path(self, source_file: SourceFile) -> Path:
        return source_file.path.with_name(source_file.path.stem + self.settings.output_suffix)

    @staticmethod
    def _non_struct_issues(source_file: SourceFile, wanted: Sequence[str]) -> List[GenerationIssue]:
        issues: List[GenerationIssue] = []
        for name in wanted:
            descriptor = source_file.other_types.get(name)
            if descriptor is None:
                continue
            if isinstance(descriptor, UnsupportedType):
                message = f"not supported: {descriptor.text}"
            else:
                message = f"type is not a struct (declared as {descriptor.canonical()})"
            issues.append(GenerationIssue(record=name, message=message, source=source_file.path))
        return issues


__all__ = ["GenerationResult", "Generator", "OutputUnit"]
