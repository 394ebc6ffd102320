"""Synthesizers that turn a classified record into Go declarations."""

from .base import GenerationError, GenerationIssue, SynthContext
from .debugmap import write_debug_map
from .options import write_field_options
from .record import (
    write_apply_function,
    write_apply_method,
    write_constructors,
    write_option_type,
    write_to_option,
)

__all__ = [
    "GenerationError",
    "GenerationIssue",
    "SynthContext",
    "write_apply_function",
    "write_apply_method",
    "write_constructors",
    "write_debug_map",
    "write_field_options",
    "write_option_type",
    "write_to_option",
]
