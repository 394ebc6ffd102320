"""Record-level declarations: option type, constructors and apply helpers."""

from __future__ import annotations

from .base import SynthContext


def write_option_type(ctx: SynthContext) -> None:
    ctx.file.add("option_type.go.j2", c=ctx.config)


def write_constructors(ctx: SynthContext, defaults_package: str) -> None:
    """Emit ``New<T>WithOptions`` and ``New<T>WithOptionsAndDefaults``.

    The defaulted constructor calls ``MustSet`` from ``defaults_package`` on
    the zero value before any option runs, so options always win over
    defaults.
    """
    ctx.file.add(
        "constructor.go.j2",
        c=ctx.config,
        func_name=f"New{ctx.config.target_type}WithOptions",
        defaults_call=None,
    )
    ctx.file.add(
        "constructor.go.j2",
        c=ctx.config,
        func_name=f"New{ctx.config.target_type}WithOptionsAndDefaults",
        defaults_call=ctx.file.qualify(defaults_package, "MustSet"),
    )


def write_to_option(ctx: SynthContext) -> None:
    """Emit ``ToOption``, copying every field that options are generated for."""
    ctx.file.add(
        "to_option.go.j2",
        c=ctx.config,
        fields=[item.name for item in ctx.fields],
    )


def write_apply_function(ctx: SynthContext) -> None:
    ctx.file.add(
        "apply_function.go.j2",
        c=ctx.config,
        func_name=f"{ctx.config.target_type}WithOptions",
    )


def write_apply_method(ctx: SynthContext) -> None:
    ctx.file.add("apply_method.go.j2", c=ctx.config)


__all__ = [
    "write_apply_function",
    "write_apply_method",
    "write_constructors",
    "write_option_type",
    "write_to_option",
]
