"""Command-line interface for the tab tracker."""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from .classifier import load_category_config, save_category_config
from .models import Category
from .paths import get_db_path, get_log_path, get_store_path

app = typer.Typer(help="Browser tab time tracker.")
categories_app = typer.Typer(help="Edit the productive and unproductive site lists.")
app.add_typer(categories_app, name="categories")

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_STORE_OPTION = typer.Option(
    None, "--store", path_type=Path, help="Location of the local tracker SQLite store."
)
_DB_OPTION = typer.Option(
    None, "--db", path_type=Path, help="Location of the time entry SQLite database."
)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(3000, "--port", min=1, max=65535, help="TCP port for the API."),
    db_path: Optional[Path] = _DB_OPTION,
) -> None:
    """Run the time entry and analytics API."""
    from .server_runner import run_server

    run_server(host=host, port=port, db_path=db_path or get_db_path())


@app.command()
def track(
    store_path: Optional[Path] = _STORE_OPTION,
    sync_url: Optional[str] = typer.Option(
        None,
        "--sync-url",
        envvar="TAB_TRACKER_SYNC_URL",
        help="Base URL of the API to mirror finished sessions to.",
    ),
    user_id: Optional[str] = typer.Option(
        None, "--user", envvar="TAB_TRACKER_USER", help="Opaque user id attached to synced entries."
    ),
    retention_days: int = typer.Option(
        30, "--retention-days", min=1, help="Days of local history to keep."
    ),
) -> None:
    """Read browser signals as JSON lines on stdin and track sessions."""
    from .accumulator import LocalAggregator, PurgeScheduler
    from .config import TrackerSettings
    from .errors import StorageError, ValidationError
    from .store import LocalStore
    from .sync import RemoteSync
    from .tracker import SessionTracker, parse_signal

    file_handler = logging.FileHandler(get_log_path(), encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(file_handler)

    settings = TrackerSettings.from_options(
        sync_url=sync_url, user_id=user_id, retention_days=retention_days
    )
    store = LocalStore(store_path or get_store_path())
    aggregator = LocalAggregator(store)
    sync = (
        RemoteSync(settings.sync_url, timeout=settings.sync_timeout.total_seconds())
        if settings.sync_url
        else None
    )
    tracker = SessionTracker(aggregator, lambda: load_category_config(store), settings, sync)
    scheduler = PurgeScheduler(aggregator, settings.retention_days, settings.purge_interval)
    scheduler.start()
    logger.info("Tracking signals from stdin; sync=%s", settings.sync_url or "off")
    try:
        for line in sys.stdin:
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
                if not isinstance(payload, dict):
                    raise ValidationError("message", "must be a JSON object")
                if payload.get("type") == "status":
                    print(json.dumps(tracker.status()), flush=True)
                    continue
                tracker.handle(parse_signal(payload))
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.warning("Ignoring malformed signal %r: %s", line[:200], exc)
            except StorageError:
                logger.exception("Failed to record session locally.")
    except KeyboardInterrupt:
        logger.info("Tracker interrupted; closing the open session.")
    finally:
        try:
            tracker.flush()
        except StorageError:
            logger.exception("Failed to record the final session locally.")
        finally:
            scheduler.stop()
            store.close()
            logger.info("Tracker stopped.")
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()


@app.command()
def today(
    date_: Optional[str] = typer.Option(
        None, "--date", help="Date (YYYY-MM-DD) to show. Defaults to today (UTC)."
    ),
    store_path: Optional[Path] = _STORE_OPTION,
) -> None:
    """Print the local per-site totals for one day."""
    from .accumulator import LocalAggregator, utc_today
    from .reporting import SummaryPrinter
    from .store import LocalStore

    target = _parse_day(date_) if date_ else utc_today()
    store = LocalStore(store_path or get_store_path())
    try:
        totals = LocalAggregator(store).get_day(target)
    finally:
        store.close()
    SummaryPrinter().print_day(target, totals)


@app.command()
def summary(
    start: Optional[str] = typer.Option(None, "--start", help="First day (YYYY-MM-DD), inclusive."),
    end: Optional[str] = typer.Option(None, "--end", help="Last day (YYYY-MM-DD), inclusive."),
    user_id: Optional[str] = typer.Option(None, "--user", help="Only entries for this user id."),
    db_path: Optional[Path] = _DB_OPTION,
) -> None:
    """Print the analytics summary computed from stored time entries."""
    from .analytics import summarize
    from .db import EntryFilter, database_connection, fetch_entries
    from .reporting import SummaryPrinter

    entry_filter = EntryFilter(
        start=_parse_day(start) if start else None,
        end=_parse_day(end) if end else None,
        user_id=user_id,
    )
    with database_connection(db_path or get_db_path()) as conn:
        entries = fetch_entries(conn, entry_filter)
    SummaryPrinter().print_summary(summarize(entries), f"{start or 'All time'} - {end or 'All time'}")


@categories_app.command("list")
def categories_list(store_path: Optional[Path] = _STORE_OPTION) -> None:
    """Show both site lists."""
    from .store import LocalStore

    store = LocalStore(store_path or get_store_path())
    try:
        config = load_category_config(store)
    finally:
        store.close()
    for name, sites in config.to_payload().items():
        print(f"{name}:")
        for site in sites:
            print(f"  {site}")


@categories_app.command("add")
def categories_add(
    category: Category = typer.Argument(..., help="productive or unproductive"),
    site: str = typer.Argument(..., help="Hostname, e.g. github.com"),
    store_path: Optional[Path] = _STORE_OPTION,
) -> None:
    """Add a site to a list, moving it out of the other list."""
    _edit_categories(store_path, category, site, remove=False)
    print(f"Added {site} to {category.value}")


@categories_app.command("remove")
def categories_remove(
    category: Category = typer.Argument(..., help="productive or unproductive"),
    site: str = typer.Argument(..., help="Hostname to remove."),
    store_path: Optional[Path] = _STORE_OPTION,
) -> None:
    """Remove a site from a list."""
    _edit_categories(store_path, category, site, remove=True)
    print(f"Removed {site} from {category.value}")


@app.command()
def purge(
    days: int = typer.Option(30, "--days", min=0, help="Keep this many days of local totals."),
    store_path: Optional[Path] = _STORE_OPTION,
) -> None:
    """Remove local day buckets older than the retention horizon."""
    from .accumulator import LocalAggregator
    from .store import LocalStore

    store = LocalStore(store_path or get_store_path())
    try:
        removed = LocalAggregator(store).purge_older_than(days)
    finally:
        store.close()
    print(f"Removed {len(removed)} day buckets.")


@app.command()
def cleanup(
    days: int = typer.Option(30, "--days", min=1, help="Keep this many days of time entries."),
    db_path: Optional[Path] = _DB_OPTION,
) -> None:
    """Delete stored time entries older than the retention horizon."""
    from .db import database_connection, delete_entries_before, retention_cutoff

    with database_connection(db_path or get_db_path()) as conn:
        removed = delete_entries_before(conn, retention_cutoff(days))
    print(f"Removed {removed} time entries.")


@app.command()
def export(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", path_type=Path, help="Destination JSON file."
    ),
    store_path: Optional[Path] = _STORE_OPTION,
) -> None:
    """Write all local tracker data to a JSON file."""
    from .store import LocalStore

    now = datetime.now(timezone.utc)
    store = LocalStore(store_path or get_store_path())
    try:
        data = store.dump()
    finally:
        store.close()
    target = output or Path(f"productivity-data-{now.date().isoformat()}.json")
    target.write_text(
        json.dumps({"exportDate": now.isoformat(), "data": data}, indent=2),
        encoding="utf-8",
    )
    print(f"Exported local data to {target}")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    store_path: Optional[Path] = _STORE_OPTION,
) -> None:
    """Delete all local tracking data."""
    from .store import LocalStore

    if not yes:
        typer.confirm("Clear all local tracking data? This cannot be undone.", abort=True)
    store = LocalStore(store_path or get_store_path())
    try:
        store.clear()
    finally:
        store.close()
    print("All local data cleared.")


def _edit_categories(store_path: Optional[Path], category: Category, site: str, remove: bool) -> None:
    from .store import LocalStore

    if category is Category.NEUTRAL:
        raise typer.BadParameter("Only productive and unproductive lists can be edited.")
    store = LocalStore(store_path or get_store_path())
    try:
        config = load_category_config(store)
        if remove:
            config.remove(category, site)
        else:
            config.add(category, site)
        save_category_config(store, config)
    finally:
        store.close()


def _parse_day(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter("Dates must use the YYYY-MM-DD format.") from exc
