"""CLI commands for Shufflix."""

import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path

import click
import structlog

from shufflix import __version__
from shufflix.catalog import CatalogConfig, TmdbCatalogClient
from shufflix.config import ConfigValidationError, ShufflixConfig, load_config
from shufflix.data_model import Candidate, ContentKind, Filters
from shufflix.deck import DeckController, DeckMetrics
from shufflix.library import InMemoryLibraryStore
from shufflix.observability.logging import bind_session_context, configure_logging
from shufflix.search import rank_scored, search_titles
from shufflix.settings import AppSettings, get_settings


logger = structlog.get_logger()

KIND_CHOICES = click.Choice([k.value for k in ContentKind], case_sensitive=False)


def _setup(json_logs: bool, verbose: bool, command: str) -> str:
    """Configure logging and bind a fresh session id."""
    session_id = str(uuid.uuid4())
    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_format=json_logs,
    )
    bind_session_context(session_id)
    logger.info("cli_command_started", component="cli", command=command)
    return session_id


def _load_or_exit(config_path: Path | None) -> ShufflixConfig:
    try:
        return load_config(config_path)
    except ConfigValidationError as e:
        click.echo("Configuration validation failed:", err=True)
        for error in e.errors:
            click.echo(f"  - {error['loc']}: {error['msg']}", err=True)
        sys.exit(1)


def _catalog_config(config: ShufflixConfig, settings: AppSettings) -> CatalogConfig:
    """Overlay environment language and region onto the file configuration."""
    data = config.catalog.model_dump()
    data.update(language=settings.tmdb_language, region=settings.tmdb_region)
    return CatalogConfig.model_validate(data)


def _api_key_or_exit(settings: AppSettings) -> str:
    if not settings.tmdb_api_key:
        click.echo("Error: TMDB_API_KEY is not set (environment or .env).", err=True)
        sys.exit(1)
    return settings.tmdb_api_key


def _format_card(item: Candidate) -> str:
    year = f" ({item.year})" if item.year else ""
    genre = item.primary_genre or "-"
    providers = ", ".join(sorted(item.provider_names)) or "-"
    return f"{item.name}{year}  [{item.media_kind.value}]  {item.rating_text}  {genre}  {providers}"


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Shufflix: swipe-deck recommendations and fuzzy title search."""


@cli.command()
@click.argument("query")
@click.option("--kind", type=KIND_CHOICES, default="all", help="Content kind to search.")
@click.option("--limit", type=int, default=20, show_default=True, help="Results to print.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to a shufflix.yaml configuration file.",
)
@click.option("--json-output", is_flag=True, help="Print results as JSON.")
@click.option("--json-logs/--no-json-logs", default=False, help="Use JSON format for logs.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def search(  # noqa: PLR0913
    query: str,
    kind: str,
    limit: int,
    config_path: Path | None,
    json_output: bool,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Search the catalog for QUERY and print ranked titles."""
    session_id = _setup(json_logs, verbose, "search")
    config = _load_or_exit(config_path)
    settings = get_settings()
    api_key = _api_key_or_exit(settings)
    content_kind = ContentKind(kind.lower())

    async def _run() -> list[Candidate]:
        async with TmdbCatalogClient(
            api_key,
            _catalog_config(config, settings),
            session_id=session_id,
        ) as catalog:
            return await search_titles(catalog, query, content_kind, config.search)

    results = asyncio.run(_run())[:limit]
    # Re-score for display; rescued titles keep their position
    scores = {s.candidate.key: s.score for s in rank_scored(query, results, len(results))}

    if json_output:
        payload = [
            {**item.model_dump(mode="json"), "score": scores.get(item.key, 0)} for item in results
        ]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not results:
        click.echo("No results.")
        return
    for index, item in enumerate(results, start=1):
        click.echo(f"{index:>3}. {scores.get(item.key, 0):>3}  {_format_card(item)}")


@cli.command()
@click.option("--count", type=int, default=10, show_default=True, help="Cards to print.")
@click.option("--kind", type=KIND_CHOICES, default="all", help="Content kind filter.")
@click.option("--provider", "providers", multiple=True, help="Provider filter (repeatable).")
@click.option("--genre", "genres", multiple=True, help="Genre filter (repeatable).")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to a shufflix.yaml configuration file.",
)
@click.option("--json-logs/--no-json-logs", default=False, help="Use JSON format for logs.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def deck(  # noqa: PLR0913
    count: int,
    kind: str,
    providers: tuple[str, ...],
    genres: tuple[str, ...],
    config_path: Path | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Prime a deck and print its top cards."""
    session_id = _setup(json_logs, verbose, "deck")
    config = _load_or_exit(config_path)
    settings = get_settings()
    api_key = _api_key_or_exit(settings)
    filters = Filters(
        kind=ContentKind(kind.lower()),
        providers=frozenset(providers),
        genres=frozenset(genres),
    )

    async def _run() -> DeckController:
        async with TmdbCatalogClient(
            api_key,
            _catalog_config(config, settings),
            session_id=session_id,
        ) as catalog:
            controller = DeckController(
                catalog,
                InMemoryLibraryStore(),
                config=config.deck,
                filters=filters,
                session_id=session_id,
            )
            await controller.refresh_deck()
            await controller.close()
            return controller

    controller = asyncio.run(_run())
    cards = controller.current_deck()
    if controller.error_message:
        click.echo(f"Warning: {controller.error_message}", err=True)
    if not cards:
        click.echo("Deck is empty.")
        sys.exit(1)

    # Top card first
    for index, item in enumerate(reversed(cards[-count:]), start=1):
        marker = "*" if item.key == controller.pinned_key else " "
        click.echo(f"{index:>3}.{marker} {_format_card(item)}")
    click.echo("")
    click.echo(f"Deck: {len(cards)} cards, state {controller.state.value}")
    click.echo(f"Providers: {', '.join(controller.available_providers) or '-'}")
    click.echo(f"Genres: {', '.join(controller.available_genres) or '-'}")
    if verbose:
        click.echo(json.dumps(DeckMetrics.get_instance().to_dict(), indent=2))


@cli.command()
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to a shufflix.yaml configuration file.",
)
def validate(config_path: Path) -> None:
    """Validate a configuration file without touching the network."""
    configure_logging(json_format=False)
    config = _load_or_exit(config_path)

    click.echo("Configuration is valid!")
    click.echo(f"  Feeds: {', '.join(f.value for f in config.deck.feeds)}")
    click.echo(f"  Prefetch threshold: {config.deck.prefetch_threshold}")
    click.echo(f"  Search pages: {config.search.page_limit}")
    click.echo(f"  Region: {config.catalog.region}")


def main() -> None:
    """Entry point for the ``shufflix`` console script."""
    cli()


if __name__ == "__main__":
    main()
