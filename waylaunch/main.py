#!/usr/bin/env python3
import argparse
import logging
import sys
import threading
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from waylaunch.catalog.desktop import AppEntry
from waylaunch.core.history import HistoryStore
from waylaunch.core.launcher import Launcher
from waylaunch.core.log_setup import setup_logging
from waylaunch.shared.config_handler import ConfigHandler
from waylaunch.shared.path_handler import PathHandler

console = Console()


def global_exception_handler(exc_type, exc_value, exc_traceback):
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    logger = logging.getLogger("waylaunch")
    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback),
        extra={"thread_name": threading.current_thread().name},
    )


def build_launcher(logger, path_handler: PathHandler) -> Launcher:
    config = ConfigHandler(logger, path_handler=path_handler)
    params = config.get_ranking_params()
    # PyGObject is only needed here, keep it out of the engine's import graph.
    from waylaunch.catalog.scanner import build_catalog

    search_paths = path_handler.get_application_dirs() + config.get_extra_dirs()
    catalog = build_catalog(search_paths, config.get_custom_apps(), logger)
    logger.info(f"Catalog holds {len(catalog)} application(s).")
    history = HistoryStore(path_handler.get_data_path("history.txt"), logger=logger)
    return Launcher(
        catalog, params, history, terminal=config.get_terminal(), logger=logger
    )


def print_results(apps: List[AppEntry]) -> None:
    if not apps:
        console.print("No matching applications.")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Description", overflow="ellipsis")
    for position, app in enumerate(apps, start=1):
        table.add_row(str(position), app.name, app.description or "")
    console.print(table)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="waylaunch",
        description="Search installed applications and launch them.",
    )
    parser.add_argument("query", nargs="*", help="search text; empty shows the default view")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--launch", metavar="NAME", help="launch the application with this exact name")
    action.add_argument("--first", action="store_true", help="launch the best match for the query")
    action.add_argument("--clear-history", action="store_true", help="forget all recorded launches")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logging(level=logging.DEBUG if args.debug else logging.WARNING)
    sys.excepthook = global_exception_handler
    path_handler = PathHandler(logger)

    if args.clear_history:
        history = HistoryStore(path_handler.get_data_path("history.txt"), logger=logger)
        return 0 if history.clear() else 1

    try:
        launcher = build_launcher(logger, path_handler)
    except ImportError as e:
        logger.error(
            f"Desktop entry discovery needs PyGObject ({e}). Install waylaunch[desktop]."
        )
        return 1

    query = " ".join(args.query)
    if args.launch:
        app = launcher.find(args.launch)
        if app is None:
            console.print(f"No application named '{args.launch}'.")
            return 1
        return 0 if launcher.launch(app) else 1

    results = launcher.rank(query)
    if args.first:
        if not results:
            console.print("No matching applications.")
            return 1
        return 0 if launcher.launch(results[0]) else 1

    print_results(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
