"""Application records and the helpers that turn desktop-entry data into them."""

import shlex
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)

# Desktop Entry Specification field codes that have no meaning for a plain launch.
FIELD_CODES = frozenset("fFuUdDnNickvm")


@dataclass(frozen=True)
class AppEntry:
    """
    A launchable application as seen by the search engine.

    Attributes:
        name: Display name, also the identity key for favorites and history.
        exec: Argument vector, already stripped of field codes.
        description: Optional one-line comment shown under the name.
        icon: Optional themed icon name or absolute path.
        keywords: Keywords from the desktop entry, kept for display; not matched.
        terminal: Whether the command must run inside a terminal emulator.
        desktop_id: The .desktop file name, None for user-defined apps.
    """

    name: str
    exec: Tuple[str, ...]
    description: Optional[str] = None
    icon: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    terminal: bool = False
    desktop_id: Optional[str] = None


def clean_exec(exec_line: str) -> str:
    """
    Removes field codes such as %u or %F from an Exec value.

    '%%' becomes a literal '%', unknown codes are kept verbatim and a
    trailing lone '%' is dropped.
    """
    result = []
    chars = iter(exec_line)
    for char in chars:
        if char != "%":
            result.append(char)
            continue
        following = next(chars, None)
        if following is None:
            break
        if following == "%":
            result.append("%")
        elif following not in FIELD_CODES:
            result.append("%")
            result.append(following)
    return "".join(result).strip()


def parse_exec(exec_line: str) -> Tuple[str, ...]:
    """Cleans an Exec value and splits it into an argument vector."""
    try:
        return tuple(shlex.split(clean_exec(exec_line)))
    except ValueError as e:
        logger.warning(f"Unparsable Exec value {exec_line!r}: {e}")
        return ()


def custom_apps(entries: Iterable[Dict[str, Any]]) -> List[AppEntry]:
    """
    Builds application records from the [[apps.custom]] config tables.

    Tables without a name or a usable exec are skipped with a warning.
    """
    apps = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning(f"Ignoring custom app that is not a table: {entry!r}")
            continue
        name = entry.get("name")
        exec_line = entry.get("exec")
        if not isinstance(name, str) or not name:
            logger.warning(f"Ignoring custom app without a name: {entry!r}")
            continue
        if not isinstance(exec_line, str):
            logger.warning(f"Ignoring custom app '{name}' without an exec command.")
            continue
        argv = parse_exec(exec_line)
        if not argv:
            logger.warning(f"Ignoring custom app '{name}' with an empty exec command.")
            continue
        icon = entry.get("icon")
        keywords = entry.get("keywords", [])
        apps.append(
            AppEntry(
                name=name,
                exec=argv,
                icon=icon if isinstance(icon, str) else None,
                keywords=tuple(str(k) for k in keywords)
                if isinstance(keywords, list)
                else (),
            )
        )
    return apps


def sort_catalog(apps: Iterable[AppEntry]) -> List[AppEntry]:
    """Returns the catalog order: case-insensitive by name, stable otherwise."""
    return sorted(apps, key=lambda app: app.name.lower())
