"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from MarketSearch.cli.commands import parse_filter_args
from MarketSearch.cli.runner import CommandRunner
from MarketSearch.config import load_config_with_defaults
from MarketSearch.core.query import SearchOptions, SortKey
from MarketSearch.renderers import OUTPUT_FORMATS

DEFAULT_CONFIG = Path("config/default.yml")

format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="console",
    show_default=True,
    help="Output format.",
)


@click.group(help="MarketSearch: query the marketplace search indices from the terminal.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG,
    show_default=True,
    help="Path to YAML config file, merged over the defaults.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.

    Args:
        ctx: Click context.
        config_path: Path to YAML config file.
    """
    load_dotenv()

    try:
        cfg = load_config_with_defaults(config_path, default_path=DEFAULT_CONFIG)
    except (OSError, TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid config: {e}") from e
    ctx.obj = CommandRunner(cfg)


def _finish(ctx: click.Context, ok: bool) -> None:
    if not ok:
        ctx.exit(1)


@cli.command("search")
@click.argument("index")
@click.argument("term", required=False, default="")
@click.option("--filter", "filters", multiple=True, metavar="KEY=VALUE", help="Filter criterion; repeatable.")
@click.option("--sort", "sort_by", type=click.Choice([key.value for key in SortKey]), default=None, help="Sort order.")
@click.option("--page", type=click.IntRange(min=0), default=0, show_default=True, help="Zero-based page.")
@click.option("--hits-per-page", type=click.IntRange(min=0), default=None, help="Page size.")
@click.option("--attr", "attributes", multiple=True, help="Attribute to retrieve; repeatable.")
@format_option
@click.pass_context
def search_cmd(
    ctx: click.Context,
    index: str,
    term: str,
    filters: tuple[str, ...],
    sort_by: str | None,
    page: int,
    hits_per_page: int | None,
    attributes: tuple[str, ...],
    output_format: str,
) -> None:
    """Search one logical index.

    Raises:
        click.Abort: When the search fails unexpectedly.
    """
    try:
        parsed = parse_filter_args(filters)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--filter") from e
    options = SearchOptions(
        hits_per_page=hits_per_page,
        page=page,
        filters=parsed or None,
        attributes_to_retrieve=attributes,
        sort_by=sort_by,
    )
    runner: CommandRunner = ctx.obj
    ok = runner.run(ctx.command.name, output_format, lambda commands: commands.search(index, term, options))
    _finish(ctx, ok)


@cli.command("search-all")
@click.argument("term", required=False, default="")
@click.option("--hits-per-page", type=click.IntRange(min=0), default=None, help="Page size per index.")
@format_option
@click.pass_context
def search_all_cmd(ctx: click.Context, term: str, hits_per_page: int | None, output_format: str) -> None:
    """Search the configured fan-out indices concurrently."""
    runner: CommandRunner = ctx.obj
    ok = runner.run(ctx.command.name, output_format, lambda commands: commands.search_all(term, hits_per_page))
    _finish(ctx, ok)


@cli.command("lookup")
@click.argument("index")
@click.argument("ids", nargs=-1, required=True)
@format_option
@click.pass_context
def lookup_cmd(ctx: click.Context, index: str, ids: tuple[str, ...], output_format: str) -> None:
    """Fetch records of INDEX by datastore id."""
    runner: CommandRunner = ctx.obj
    ok = runner.run(ctx.command.name, output_format, lambda commands: commands.lookup(index, ids))
    _finish(ctx, ok)


@cli.command("counts")
@format_option
@click.pass_context
def counts_cmd(ctx: click.Context, output_format: str) -> None:
    """Show dashboard totals for shops, products and shop products."""
    runner: CommandRunner = ctx.obj
    ok = runner.run(ctx.command.name, output_format, lambda commands: commands.counts())
    _finish(ctx, ok)


@cli.command("health")
@format_option
@click.pass_context
def health_cmd(ctx: click.Context, output_format: str) -> None:
    """Check the search service; exits 1 when unreachable."""
    runner: CommandRunner = ctx.obj
    ok = runner.run(ctx.command.name, output_format, lambda commands: commands.health())
    _finish(ctx, ok)
