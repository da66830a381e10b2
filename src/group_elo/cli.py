"""CLI for group-elo."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import pydantic
import structlog
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from group_elo import __version__
from group_elo.core.config import AppConfig, load_config
from group_elo.core.errors import ConfigurationError, RankingError
from group_elo.services import ComparisonService
from group_elo.services.storage import create_db_engine

T = TypeVar("T")

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="group-elo",
    help="group-elo - Rank items in groups through pairwise Elo comparisons",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]
DatabaseOption = Annotated[
    str | None, typer.Option("--db", help="Database URL (overrides config)")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"group-elo v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """group-elo CLI."""


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(config_path: Path | None, database_url: str | None) -> AppConfig:
    try:
        config = load_config(config_path) if config_path else AppConfig()
    except pydantic.ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path}:\n{e}",
            f"Run 'group-elo validate {config_path}' after fixing the listed fields.",
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Configuration file {config_path} is not valid YAML: {e}",
            "Check indentation and quoting in the file.",
        ) from e
    if database_url is not None:
        config.database_url = database_url
    return config


def _run(
    config_path: Path | None,
    database_url: str | None,
    verbose: bool,
    action: Callable[[ComparisonService], Awaitable[T]],
) -> T:
    """Build the service and run one async action, mapping errors to exit codes."""
    _configure_logging(verbose)
    try:
        config = _load(config_path, database_url)
        engine = create_db_engine(config.database_url)
        service = ComparisonService.from_engine(config, engine)
        try:
            return asyncio.run(action(service))
        finally:
            engine.dispose()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except (ConfigurationError, RankingError) as e:
        console.print(f"[red]{escape(str(e))}")
        raise typer.Exit(1) from e


@app.command("init-db")
def init_db(
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Create the database schema and register the configured item type."""

    async def _action(service: ComparisonService) -> str:
        return await service.item_types.aget()

    item_type_id = _run(config_path, database_url, verbose, _action)
    console.print(f"[green]Database ready.[/green] Item type id: {item_type_id}")


@app.command("add-group")
def add_group(
    name: Annotated[str, typer.Argument(help="Group name")],
    creator: Annotated[str, typer.Option("--creator", help="Creating user id")] = "cli",
    items: Annotated[
        list[str] | None, typer.Option("--item", "-i", help="Catalog item id to include")
    ] = None,
    description: Annotated[
        str | None, typer.Option("--description", help="Group description")
    ] = None,
    group_id: Annotated[str | None, typer.Option("--id", help="Explicit group id")] = None,
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Create a ranking group for the configured item type.

    The creator joins the group. Every --item must already be in the catalog.
    """

    async def _action(service: ComparisonService) -> str:
        group = await service.create_group(
            creator, name, items or [], description=description, group_id=group_id
        )
        return group.id

    created_id = _run(config_path, database_url, verbose, _action)
    console.print(f"[green]Created group[/green] {created_id}")


@app.command()
def groups(
    user: Annotated[str, typer.Option("--user", "-u", help="User id")],
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List the groups a user takes part in."""

    async def _action(service: ComparisonService):
        return await service.user_groups(user)

    rows = _run(config_path, database_url, verbose, _action)
    if not rows:
        console.print(f"[yellow]{escape(user)} has not joined any groups yet.")
        return

    table = Table(title=f"Groups: {user}")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Description")
    for group in rows:
        table.add_row(group.id, group.name, group.description or "")
    console.print(table)


@app.command("add-item")
def add_item(
    name: Annotated[str, typer.Argument(help="Item name")],
    group: Annotated[
        list[str] | None, typer.Option("--group", "-g", help="Group id to add the item to")
    ] = None,
    item_id: Annotated[str | None, typer.Option("--id", help="Explicit item id")] = None,
    image_path: Annotated[str | None, typer.Option("--image", help="Image path or URL")] = None,
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Add an item to the catalog and optionally to groups."""

    async def _action(service: ComparisonService) -> str:
        item_type_id = await service.item_types.aget()
        item = await service.catalog.create_item(
            item_type_id, name, item_id=item_id, image_path=image_path
        )
        for group_id in group or []:
            await service.groups.add_items(group_id, [item.id])
        return item.id

    created_id = _run(config_path, database_url, verbose, _action)
    console.print(f"[green]Created item[/green] {created_id}")


@app.command("next")
def next_matchup(
    group_id: Annotated[str, typer.Argument(help="Group id")],
    user: Annotated[str, typer.Option("--user", "-u", help="User id")],
    seed: Annotated[int | None, typer.Option("--seed", help="Random seed")] = None,
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the next matchup for a user."""

    async def _action(service: ComparisonService):
        rng = random.Random(seed) if seed is not None else None  # noqa: S311
        return await service.next_matchup(user, group_id, rng=rng)

    matchup = _run(config_path, database_url, verbose, _action)
    if matchup is None:
        console.print("[yellow]At least two items are required to start ranking this group.")
        raise typer.Exit(1)

    for slot, item in (("left", matchup.left), ("right", matchup.right)):
        console.print(
            f"[bold]{slot}:[/bold] {item.name} ({item.item_id}) "
            f"rating={item.rating:.4f} comparisons={item.comparison_count}"
        )


@app.command()
def compare(
    group_id: Annotated[str, typer.Argument(help="Group id")],
    winner: Annotated[str, typer.Option("--winner", help="Winning item id")],
    loser: Annotated[str, typer.Option("--loser", help="Losing item id")],
    user: Annotated[str, typer.Option("--user", "-u", help="User id")],
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Record a comparison result for a user."""

    async def _action(service: ComparisonService):
        return await service.record_comparison(user, group_id, winner, loser)

    result = _run(config_path, database_url, verbose, _action)
    console.print(
        f"[green]winner[/green] {result.winner_id}: {result.winner.rating:.4f} "
        f"({result.winner.comparison_count} comparisons)"
    )
    console.print(
        f"[red]loser[/red] {result.loser_id}: {result.loser.rating:.4f} "
        f"({result.loser.comparison_count} comparisons)"
    )


@app.command()
def ratings(
    group_id: Annotated[str, typer.Argument(help="Group id")],
    user: Annotated[str, typer.Option("--user", "-u", help="User id")],
    config_path: ConfigOption = None,
    database_url: DatabaseOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show a user's ratings for every item in a group."""

    async def _action(service: ComparisonService):
        return await service.user_ratings(user, group_id)

    items = _run(config_path, database_url, verbose, _action)

    table = Table(title=f"Ratings: {group_id}")
    table.add_column("Rank", justify="right")
    table.add_column("Item")
    table.add_column("Rating", justify="right")
    table.add_column("Comparisons", justify="right")
    for rank, item in enumerate(items, 1):
        table.add_row(str(rank), item.name, f"{item.rating:.4f}", str(item.comparison_count))
    console.print(table)


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file.

    Args:
        config_path: Path to YAML configuration file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Base rating: {config.rating.base_rating}")
        console.print(
            f"  K tiers: {config.rating.provisional_k}/{config.rating.established_k}"
            f"/{config.rating.master_k}"
        )
        console.print(f"  Matchup policy: {config.matchup.policy}")
        console.print(f"  Item type: {config.item_type.slug}")
        console.print(f"  Database: {config.database_url}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
