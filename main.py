#!/usr/bin/env python3
"""
RSSVault - Local Feed Archive
=============================

Main application entry point with CLI interface for managing feeds.

Usage:
    python main.py --help                    # Show all commands
    python main.py init-db                   # Initialize database
    python main.py add-feed URL              # Subscribe to a feed
    python main.py refresh                   # Refresh every feed
    python main.py import-opml FILE          # Subscribe to feeds from OPML
    python main.py show-feeds                # Feed health report
    python main.py show-items --unread       # List stored items
    python main.py mark-read ITEM_ID         # Update read state
    python main.py storage                   # Storage usage estimate
"""

import sys
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from rssvault.config.settings import get_settings
from rssvault.database.schema import DatabaseSchema
from rssvault.database.connection import get_db_manager
from rssvault.database.models import FetchStatus
from rssvault.ingestion.pipeline import IngestionPipeline
from rssvault.ingestion.opml import import_opml
from rssvault.monitoring.storage_quota import StorageQuotaProbe
from rssvault.storage.registry import SQLiteFeedRegistry
from rssvault.utils.logging import configure_application_logging
from rssvault.utils.exceptions import RSSVaultError, get_user_friendly_message

console = Console()
logger = logging.getLogger(__name__)

STATUS_ICONS = {
    FetchStatus.SUCCESS: "🟢",
    FetchStatus.NOT_FOUND: "🔴",
    FetchStatus.MALFORMED_XML: "🟠",
    FetchStatus.CORS_ERROR: "🟡",
    FetchStatus.TIMEOUT: "🟡",
}


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """RSSVault - deduplicated, size-bounded RSS/Atom archive."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())
        return

    try:
        settings = get_settings()
    except RSSVaultError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )


def _build_pipeline() -> IngestionPipeline:
    settings = get_settings()
    DatabaseSchema(settings.database.path).create_tables()
    db_manager = get_db_manager(settings.database.path, pool_size=settings.database.pool_size)

    return IngestionPipeline(
        registry=SQLiteFeedRegistry(db_manager),
        quota_probe=StorageQuotaProbe(
            settings.database.path,
            warning_percent=settings.ingestion.storage_warning_percent,
        ),
        settings=settings.ingestion,
    )


def _format_ms(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _truncate(text: str, width: int) -> str:
    return text[:width - 3] + "..." if len(text) > width else text


def _print_quota_warning(quota) -> None:
    threshold = get_settings().ingestion.storage_warning_percent
    if quota is not None and quota.is_near_limit(threshold):
        console.print(
            f"[yellow]⚠️ Storage usage: {quota.percentage:.1f}% - Consider removing old feeds[/yellow]"
        )


@cli.command()
def init_db():
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing RSSVault Database[/bold blue]")

    try:
        settings = get_settings()
        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        console.print("[bold green]✅ Database initialized successfully![/bold green]")

        info = get_db_manager(settings.database.path).get_database_info()

        info_table = Table(title="Database Information")
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="green")

        info_table.add_row("Database Path", settings.database.path)
        info_table.add_row("Size", f"{info['database_size_mb']:.2f} MB")
        info_table.add_row("Feeds", str(info['table_counts']['feeds']))
        info_table.add_row("Items", str(info['table_counts']['items']))

        console.print(info_table)

    except RSSVaultError as e:
        console.print(f"[bold red]❌ Database initialization error: {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--fetch-images', is_flag=True, help='Keep images and embeds in item content')
@click.option('--max-size-mb', type=float, help='Storage budget for this feed in MiB')
def add_feed(url, fetch_images, max_size_mb):
    """Subscribe to an HTTPS feed and store its current entries."""
    console.print(f"[bold blue]📡 Adding feed: {url}[/bold blue]")

    max_size_bytes = int(max_size_mb * 1024 * 1024) if max_size_mb is not None else None

    async def run_add():
        pipeline = _build_pipeline()
        return await pipeline.add_feed(
            url, fetch_images=True if fetch_images else None, max_size_bytes=max_size_bytes
        )

    try:
        result = asyncio.run(run_add())
    except RSSVaultError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    console.print(f"[bold green]✅ Added '{result.feed.title}' with {len(result.items)} items[/bold green]")
    if result.warning:
        console.print(f"[yellow]⚠️ {result.warning.message}[/yellow]")
    _print_quota_warning(result.quota)


@cli.command()
@click.argument('feed_id', required=False)
def refresh(feed_id):
    """Refresh one feed, or every stored feed."""

    pipeline = _build_pipeline()
    feeds = None
    if feed_id is not None:
        feed = pipeline.registry.get_feed(feed_id)
        if feed is None:
            console.print(f"[bold red]❌ Feed not found: {feed_id}[/bold red]")
            sys.exit(1)
        feeds = [feed]

    try:
        outcome = asyncio.run(pipeline.refresh_all(feeds))
    except RSSVaultError as e:
        console.print(f"[bold red]❌ Refresh error: {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    results_table = Table(title="Refresh Results")
    results_table.add_column("Status")
    results_table.add_column("Feed", style="cyan")
    results_table.add_column("New Items", style="green")
    results_table.add_column("Details")

    for result in outcome.results:
        details = result.error or (result.warning.message if result.warning else "")
        results_table.add_row(
            STATUS_ICONS[result.feed.last_fetch_status],
            _truncate(result.feed.title, 40),
            str(len(result.new_items)),
            details,
        )

    console.print(results_table)
    console.print(
        f"{outcome.new_item_count} new items, {len(outcome.failed)} failed feeds, "
        f"{len(outcome.items)} items stored"
    )


@cli.command(name="import-opml")
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
def import_opml_cmd(file):
    """Subscribe to every HTTPS feed listed in an OPML file."""
    text = Path(file).read_text(encoding="utf-8")

    async def run_import():
        return await import_opml(_build_pipeline(), text)

    result = asyncio.run(run_import())

    console.print(f"[bold green]✅ Imported {result.added_count} of {len(result.urls)} feeds[/bold green]")
    for url, message in result.failures.items():
        console.print(f"[red]  • {url}: {message}[/red]")


@cli.command()
def show_feeds():
    """Show all feeds with their fetch health and storage use."""
    console.print("[bold blue]📊 Feed Status Report[/bold blue]")

    pipeline = _build_pipeline()
    feeds = pipeline.registry.get_all_feeds()

    if not feeds:
        console.print("[yellow]⚠️ No feeds found in database[/yellow]")
        return

    feeds_table = Table(title="Feeds")
    feeds_table.add_column("Status")
    feeds_table.add_column("ID", style="dim")
    feeds_table.add_column("Title", style="cyan")
    feeds_table.add_column("URL", style="blue")
    feeds_table.add_column("Storage", style="green")
    feeds_table.add_column("Last Fetch")
    feeds_table.add_column("Error", style="red")

    for feed in feeds:
        used_mb = feed.total_size_bytes / (1024 * 1024)
        left_mb = feed.remaining_budget() / (1024 * 1024)
        feeds_table.add_row(
            STATUS_ICONS[feed.last_fetch_status],
            feed.id[:12],
            _truncate(feed.title, 30),
            _truncate(feed.url, 40),
            f"{used_mb:.2f} MB ({left_mb:.2f} MB left)",
            _format_ms(feed.last_fetched_at),
            feed.last_fetch_error or "",
        )

    console.print(feeds_table)

    unhealthy = [feed for feed in feeds if not feed.is_healthy()]
    if unhealthy:
        console.print(f"[yellow]⚠️ {len(unhealthy)} of {len(feeds)} feeds failed their last fetch[/yellow]")


@cli.command()
@click.option('--feed-id', help='Only items of this feed')
@click.option('--unread', is_flag=True, help='Only unread items')
@click.option('--limit', default=50, show_default=True, help='Maximum items to list')
def show_items(feed_id, unread, limit):
    """List stored items, newest first."""
    registry = _build_pipeline().registry
    items = registry.get_items_by_feed(feed_id) if feed_id else registry.get_all_items()
    if unread:
        items = [item for item in items if not item.read]

    if not items:
        console.print("[yellow]⚠️ No items found[/yellow]")
        return

    items_table = Table(title=f"Items ({len(items)})")
    items_table.add_column("", width=1)
    items_table.add_column("ID", style="dim")
    items_table.add_column("Published")
    items_table.add_column("Title", style="cyan")
    items_table.add_column("Author")

    for item in items[:limit]:
        items_table.add_row(
            " " if item.read else "•",
            item.id[:12],
            _format_ms(item.published_at),
            _truncate(item.title, 60),
            item.author or "",
        )

    console.print(items_table)


@cli.command()
@click.argument('item_id')
@click.option('--unread', is_flag=True, help='Mark as unread instead')
def mark_read(item_id, unread):
    """Set an item's read state."""
    try:
        item = _build_pipeline().set_item_read(item_id, read=not unread)
    except RSSVaultError as e:
        console.print(f"[bold red]❌ {get_user_friendly_message(e)}[/bold red]")
        sys.exit(1)

    state = "read" if item.read else "unread"
    console.print(f"[green]✅ '{_truncate(item.title, 60)}' marked as {state}[/green]")


@cli.command()
def storage():
    """Show an estimate of local storage usage."""
    settings = get_settings()
    quota = StorageQuotaProbe(settings.database.path).estimate()

    storage_table = Table(title="Storage Usage")
    storage_table.add_column("Property", style="cyan")
    storage_table.add_column("Value", style="green")

    storage_table.add_row("Database Path", settings.database.path)
    storage_table.add_row("Used", f"{quota.used_bytes / (1024 * 1024):.2f} MB")
    storage_table.add_row("Available", f"{quota.total_bytes / (1024 * 1024):.2f} MB")
    storage_table.add_row("Usage", f"{quota.percentage:.1f}%")

    console.print(storage_table)
    _print_quota_warning(quota)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 RSSVault interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Unexpected error: {e}[/bold red]")
        sys.exit(1)
