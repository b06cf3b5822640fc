"""Command-line front door for lazysync.

Parses CLI options, resolves the daemon connection from config and flags,
then dispatches into a one-shot listing or the headless watch loop.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import TextIO

from .cache.mirror import MirrorCache
from .cache.store import DEFAULT_CACHE_PATH, SQLiteStore
from .errors import LazySyncError, format_error_message
from .log import configure_logging, get_logger
from .logic.paths import join_prefix
from .logic.sorting import SortMode, sort_entries
from .runtime.config import CONFIG_PATH, AppConfig, load_app_config, save_app_config
from .runtime.loop import run_session_loop
from .runtime.session import Session, SessionView
from .services.api import SyncthingClient

logger = get_logger("cli")


def _split_browse_target(target: str) -> tuple[str, str]:
    """``FOLDER[/PREFIX]`` -> ``(folder, prefix)``."""
    folder_id, _, prefix = target.partition("/")
    return folder_id, prefix


def print_folders(client: SyncthingClient, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    for folder in client.get_folders():
        status = client.folder_status(folder.id)
        paused = " (paused)" if folder.paused else ""
        out.write(
            f"{folder.id}\t{folder.display_name}{paused}\t{status.state}\t"
            f"need={status.need_total_items}\tseq={status.sequence}\n"
        )


def print_listing(client: SyncthingClient, folder_id: str, prefix: str, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    entries = client.browse(folder_id, prefix)
    states = {entry.name: client.file_info(folder_id, join_prefix(prefix, entry.name)) for entry in entries}
    for entry in sort_entries(entries, SortMode.SYNC_STATE, sync_states=states):
        marker = "D" if entry.is_dir else "F"
        suffix = "/" if entry.is_dir else ""
        out.write(f"{marker} {states[entry.name].value:<16} {entry.name}{suffix}\n")


def _log_view(view: SessionView) -> None:
    if view.status_message:
        logger.info("%s", view.status_message)
    logger.debug("connection=%s folders=%d", view.connection.value, len(view.folders))


def run_watch(client: SyncthingClient, config: AppConfig, cache_path: Path = DEFAULT_CACHE_PATH) -> None:
    """Headless session: mirror events into the cache until interrupted."""
    store = SQLiteStore(cache_path)
    session = Session(client, MirrorCache(store), config)
    stop = threading.Event()

    def _stop(_signum: int, _frame: object) -> None:
        stop.set()

    previous = signal.signal(signal.SIGTERM, _stop)
    try:
        session.start(stop)
        run_session_loop(session, stop, render=_log_view)
    except KeyboardInterrupt:
        stop.set()
    finally:
        signal.signal(signal.SIGTERM, previous)
        session.close()
        store.close()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the selected mode (``--folders`` by default)."""
    parser = argparse.ArgumentParser(
        description="Browse a Syncthing daemon's folders and per-file sync state."
    )
    parser.add_argument("--config", type=Path, default=None, help=f"Config file (default: {CONFIG_PATH}).")
    parser.add_argument("--base-url", default=None, help="Daemon GUI/REST address.")
    parser.add_argument("--api-key", default=None, help="Daemon API key.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging plus a debug log file.")
    parser.add_argument("--save-config", action="store_true", help="Persist --base-url/--api-key to the config file.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--folders", action="store_true", help="List folders with their status.")
    mode.add_argument("--browse", metavar="FOLDER[/PREFIX]", help="List one directory with sync states.")
    mode.add_argument("--watch", action="store_true", help="Follow the event feed and keep the cache current.")
    args = parser.parse_args(argv)

    configure_logging(debug=args.debug)
    config = load_app_config(args.config, base_url=args.base_url, api_key=args.api_key)
    if args.save_config:
        save_app_config(config, args.config)
    if not config.api_key:
        raise SystemExit(
            f"No API key configured: pass --api-key or set api_key in {args.config or CONFIG_PATH}."
        )

    client = SyncthingClient(config.base_url, config.api_key)
    try:
        if args.watch:
            run_watch(client, config)
        elif args.browse is not None:
            folder_id, prefix = _split_browse_target(args.browse)
            print_listing(client, folder_id, prefix)
        else:
            print_folders(client)
    except LazySyncError as exc:
        raise SystemExit(f"Error: {format_error_message(exc)}") from exc
    finally:
        client.close()


if __name__ == "__main__":
    main()
