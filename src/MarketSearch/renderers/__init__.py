"""Output renderers for command results.

Provides abstraction and implementations for writing search results to
various output formats (console, JSON).

The module exports the OutputWriter base class for creating new output
formats, and a factory function to instantiate writers by format name.
"""

from __future__ import annotations

from MarketSearch.renderers.base import OutputWriter
from MarketSearch.renderers.console import ConsoleOutputWriter, render_text
from MarketSearch.renderers.json import JsonOutputWriter, render_json, render_result

OUTPUT_FORMATS = ("console", "json")


def create_output_writer(output_format: str) -> OutputWriter:
    """Create output writer for a format name.

    Args:
        output_format: One of ``OUTPUT_FORMATS``.

    Returns:
        Appropriate OutputWriter instance.

    Raises:
        ValueError: If the format is unknown.
    """
    if output_format == "console":
        return ConsoleOutputWriter()
    if output_format == "json":
        return JsonOutputWriter()
    raise ValueError(f"Unsupported output format: {output_format}")


__all__ = [
    "OUTPUT_FORMATS",
    "OutputWriter",
    "ConsoleOutputWriter",
    "JsonOutputWriter",
    "render_json",
    "render_result",
    "render_text",
    "create_output_writer",
]
