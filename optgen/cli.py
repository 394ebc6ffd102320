"""CLI entrypoint for optgen."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, ConfigError, GeneratorSettings, load_config
from .driver import Generator
from .loaders import LoadError
from .logging import configure_logging
from .synth import GenerationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="optgen",
        description="Generate functional options for Go struct types.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to a {CONFIG_FILENAME} file or its directory (defaults to the current directory).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write all generated options into this single file.",
    )
    parser.add_argument(
        "--package",
        dest="package_name",
        default=None,
        help="Package name for the generated file (defaults to the destination package).",
    )
    parser.add_argument(
        "--sensitive-field-name-matches",
        default=None,
        help="Comma-separated substrings that mark a field name as sensitive (default: secure).",
    )
    parser.add_argument(
        "package",
        help="Go package directory, import path inside the current module, or schema document.",
    )
    parser.add_argument(
        "types",
        nargs="+",
        help="Struct type names to generate options for.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for optgen."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = load_config(Path(args.config) if args.config else Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"optgen: {exc}\n")

    settings = GeneratorSettings.resolve(
        config,
        output=args.output,
        package_name=args.package_name,
        sensitive_field_name_matches=args.sensitive_field_name_matches,
    )

    try:
        result = Generator(settings).run(args.package, args.types)
    except LoadError as exc:
        parser.exit(1, f"optgen: {exc}\n")
    except GenerationError as exc:
        parser.exit(1, f"optgen: {exc}\nNo files were written.\n")
    except OSError as exc:
        parser.exit(1, f"optgen: failed to write output: {exc}\n")

    print(f"Generated {result.count} options")


if __name__ == "__main__":
    main(sys.argv[1:])
