"""CLI package for MarketSearch command orchestration.

This package contains the modular CLI components, factored into separate
modules for parameter handling, execution and command logic.
"""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from MarketSearch.cli.runner import CommandRunner
from MarketSearch.cli.ui import cli


def main() -> None:
    """Run MarketSearch CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
