"""Dreamlog CLI - offline-first dream journal."""

import asyncio
import json
import logging
import sys
import uuid
from datetime import date

import click

from .adapters.supabase_auth import AuthenticationError, SupabaseSessionProvider
from .config import load_config
from .core.records import JournalEntry, RecordKind, utc_now
from .factory import create_storage_service
from .local_store import LocalWriteError
from .scheduler import SyncScheduler


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )


def _config(ctx: click.Context):
    config = load_config()
    if ctx.obj.get("offline"):
        config.force_offline = True
    return config


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--offline", is_flag=True, help="Act as if the network is down")
@click.pass_context
def main(ctx, debug: bool, offline: bool):
    """Dreamlog - offline-first dream journal."""
    _setup_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["offline"] = offline


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def login(ctx, email: str, password: str):
    """Sign in and cache the session."""
    config = _config(ctx)
    try:
        SupabaseSessionProvider(config).sign_in(email, password)
    except AuthenticationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    async def run():
        service = create_storage_service(config)
        await service.initialize()
        await service.sync_now()
        await service.wait_for_background()

    asyncio.run(run())
    click.echo("Signed in.")


@main.command()
@click.option("--keep-data", is_flag=True, help="Keep the local journal on this device")
@click.pass_context
def logout(ctx, keep_data: bool):
    """Sign out, wiping local data unless --keep-data is given."""
    config = _config(ctx)
    SupabaseSessionProvider(config).sign_out()

    if not keep_data:
        async def run():
            await create_storage_service(config).clear_all()

        asyncio.run(run())
    click.echo("Signed out.")


@main.command()
@click.pass_context
def status(ctx):
    """Show account, connectivity and unsynced counts."""
    config = _config(ctx)

    async def run():
        service = create_storage_service(config)
        principal = await service.identity.current_principal()
        online = await service.engines[RecordKind.ENTRIES].reachability.is_online()
        counts = await service.pending_counts()
        entries = await service.store.get(RecordKind.ENTRIES)
        return principal, online, counts, len(entries)

    principal, online, counts, total = asyncio.run(run())
    click.echo(f"Account:  {'signed in' if principal else 'signed out'}")
    click.echo(f"Network:  {'online' if online else 'offline'}")
    click.echo(f"Entries:  {total}")
    for kind, count in counts.items():
        click.echo(f"Unsynced {kind}: {count}")


@main.command()
@click.option("--date", "-d", "target_date", default=None, help="Only entries for this date (YYYY-MM-DD)")
@click.option("--search", "-s", "query", default=None, help="Only entries containing this text")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def entries(ctx, target_date: str | None, query: str | None, as_json: bool):
    """List journal entries, newest first."""
    config = _config(ctx)

    async def run():
        service = create_storage_service(config)
        await service.initialize()
        if target_date:
            found = await service.get_entries_by_date(target_date)
        elif query:
            found = await service.search_entries(query)
        else:
            found = await service.get_entries()
        await service.wait_for_background()
        return found

    found = asyncio.run(run())

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in found], indent=2))
        return

    if not found:
        click.echo("No entries.")
        return

    for entry in found:
        title = entry.title
        if not title and entry.content:
            title = entry.content.splitlines()[0][:60]
        title = title or ""
        click.echo(f"{entry.date}  {entry.id[:8]}  {title}")


@main.command()
@click.argument("text", required=False)
@click.option("--title", "-t", default=None, help="Entry title")
@click.option("--date", "-d", "target_date", default=None, help="Entry date (YYYY-MM-DD), defaults to today")
@click.pass_context
def write(ctx, text: str | None, title: str | None, target_date: str | None):
    """Write a new entry (opens an editor when TEXT is omitted)."""
    config = _config(ctx)
    if text is None:
        text = click.edit()
    if not text or not text.strip():
        click.echo("Nothing to save.")
        return

    day = date.fromisoformat(target_date) if target_date else date.today()
    now = utc_now()
    entry = JournalEntry(
        id=str(uuid.uuid4()),
        date=day.isoformat(),
        content=text.strip(),
        title=title,
        created_at=now,
        updated_at=now,
    )

    async def run():
        service = create_storage_service(config)
        await service.initialize()
        await service.save_entry(entry)
        await service.clear_draft()
        await service.wait_for_background()
        return await service.pending_counts()

    try:
        counts = asyncio.run(run())
    except LocalWriteError as e:
        click.echo(f"Error: could not save - try again ({e})", err=True)
        sys.exit(1)

    synced = counts[RecordKind.ENTRIES.value] == 0
    click.echo(f"Saved {entry.id}{'' if synced else ' (will sync when online)'}")


@main.command()
@click.argument("entry_id")
@click.pass_context
def delete(ctx, entry_id: str):
    """Delete an entry by id."""
    config = _config(ctx)

    async def run():
        service = create_storage_service(config)
        if await service.get_by_id(RecordKind.ENTRIES, entry_id) is None:
            return False
        await service.delete(RecordKind.ENTRIES, entry_id)
        await service.wait_for_background()
        return True

    try:
        deleted = asyncio.run(run())
    except LocalWriteError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not deleted:
        click.echo(f"No entry {entry_id}.", err=True)
        sys.exit(1)
    click.echo(f"Deleted {entry_id}")


@main.command()
@click.pass_context
def sync(ctx):
    """Push unsynced writes and pull remote changes now."""
    config = _config(ctx)

    async def run():
        service = create_storage_service(config)
        await service.initialize()
        reports = await service.sync_now()
        await service.wait_for_background()
        return reports

    for report in asyncio.run(run()):
        if report.skipped:
            click.echo(f"{report.kind.value}: skipped (offline or signed out)")
        else:
            click.echo(
                f"{report.kind.value}: {len(report.synced)} synced, "
                f"{len(report.failed)} pending, {len(report.rejected)} rejected"
            )


@main.command()
@click.pass_context
def daemon(ctx):
    """Keep syncing in the background until interrupted."""
    config = _config(ctx)
    logging.getLogger("dreamlog").setLevel(logging.INFO)

    async def run():
        service = create_storage_service(config)
        await service.initialize()
        scheduler = SyncScheduler(
            service,
            service.engines[RecordKind.ENTRIES].reachability,
            config,
        )
        scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown()
            await service.wait_for_background()

    click.echo("Syncing in the background. Press Ctrl+C to stop")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("\nStopped.")
