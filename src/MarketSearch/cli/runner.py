"""Command runner for coordinating CLI execution.

Manages component lifecycle, resource cleanup, logging configuration,
and error handling for command execution.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

import click

from MarketSearch.cli.commands import SearchCommands
from MarketSearch.config import AppConfig
from MarketSearch.renderers import OutputWriter, create_output_writer
from MarketSearch.services import create_search_service
from MarketSearch.utils.log import configure_logging, log

if TYPE_CHECKING:
    import httpx

Operation = Callable[[SearchCommands], Awaitable[bool]]


class CommandRunner:
    """Orchestrates command execution with proper resource management.

    Handles logging configuration, service creation, event loop lifetime
    and error handling for CLI commands.
    """

    def __init__(self, config: AppConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
            transport: Optional httpx transport override (tests).
        """
        self.config = config
        self.transport = transport

    def run(self, action: str, output_format: str, operation: Operation) -> bool:
        """Execute one command with full resource management.

        Args:
            action: The CLI command name (e.g., 'search').
            output_format: Output format name (``console`` or ``json``).
            operation: Coroutine function driving `SearchCommands`.

        Returns:
            The operation's success flag.

        Raises:
            click.Abort: When the command fails unexpectedly.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            output_writer = create_output_writer(output_format)
            ok = asyncio.run(self._run_async(operation, output_writer))
            output_writer.finalize(action)
            return ok
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action, e)
            raise click.Abort from e

    async def _run_async(self, operation: Operation, output_writer: OutputWriter) -> bool:
        search_service = create_search_service(self.config, transport=self.transport)
        try:
            return await operation(SearchCommands(search_service=search_service, output_writer=output_writer))
        finally:
            await search_service.close()
