import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import structlog
from gi.repository import GLib  # pyright: ignore

from waylaunch.catalog.desktop import AppEntry, custom_apps, parse_exec, sort_catalog

DESKTOP_GROUP = "Desktop Entry"


class AppScanner:
    """
    Handles the discovery and parsing of Linux desktop application entries.

    Attributes:
        search_paths (List[Path]): Directories to scan for .desktop files,
            highest priority first.
    """

    def __init__(self, search_paths: Iterable[Path], logger: Optional[Any] = None):
        self.search_paths: List[Path] = [Path(p) for p in search_paths]
        self.logger = logger or structlog.get_logger(__name__)

        if os.path.exists("/.flatpak-info"):
            for host_dir in (
                "/run/host/usr/share/applications",
                "/run/host/user-share/flatpak/exports/share/applications",
                "/run/host/share/flatpak/exports/share/applications",
            ):
                if os.path.isdir(host_dir):
                    self.search_paths.append(Path(host_dir))

    def scan(self) -> Dict[str, AppEntry]:
        """
        Scans search paths for valid, non-hidden desktop applications.

        Returns:
            Dict[str, AppEntry]: Desktop IDs mapped to application records. The
            first directory providing a given desktop ID wins.
        """
        all_apps: Dict[str, AppEntry] = {}

        for app_dir in self.search_paths:
            if not app_dir.is_dir():
                continue
            try:
                file_names = sorted(os.listdir(app_dir))
            except PermissionError:
                self.logger.warning(f"No permission to list {app_dir}, skipping.")
                continue

            for file_name in file_names:
                if not file_name.endswith(".desktop") or file_name in all_apps:
                    continue
                app = self._load_entry(app_dir / file_name, file_name)
                if app is not None:
                    all_apps[file_name] = app

        self.logger.debug(f"Found {len(all_apps)} desktop application(s).")
        return all_apps

    def _load_entry(self, file_path: Path, desktop_id: str) -> Optional[AppEntry]:
        keyfile = GLib.KeyFile.new()
        try:
            if not keyfile.load_from_file(str(file_path), GLib.KeyFileFlags.NONE):
                return None
        except GLib.Error as e:
            self.logger.debug(f"Skipping unreadable desktop file {file_path}: {e}")
            return None

        if not keyfile.has_group(DESKTOP_GROUP) or self._should_skip(keyfile):
            return None

        name = self._get_locale_string(keyfile, "Name")
        exec_line = self._get_string(keyfile, "Exec")
        if not name or not exec_line:
            return None
        argv = parse_exec(exec_line)
        if not argv:
            return None

        return AppEntry(
            name=name,
            exec=argv,
            description=self._get_locale_string(keyfile, "Comment"),
            icon=self._get_string(keyfile, "Icon"),
            keywords=tuple(self._get_list(keyfile, "Keywords")),
            terminal=self._get_boolean(keyfile, "Terminal"),
            desktop_id=desktop_id,
        )

    def _should_skip(self, keyfile: GLib.KeyFile) -> bool:
        """Checks for NoDisplay/Hidden flags and non-application entry types."""
        for key in ["NoDisplay", "Hidden"]:
            if self._get_boolean(keyfile, key):
                return True
        entry_type = self._get_string(keyfile, "Type")
        return entry_type is not None and entry_type != "Application"

    def _get_boolean(self, keyfile: GLib.KeyFile, key: str) -> bool:
        try:
            return keyfile.get_boolean(DESKTOP_GROUP, key)
        except GLib.Error:
            return False

    def _get_string(self, keyfile: GLib.KeyFile, key: str) -> Optional[str]:
        """Safely retrieves a string value from the keyfile."""
        try:
            return keyfile.get_string(DESKTOP_GROUP, key)
        except GLib.Error:
            return None

    def _get_locale_string(self, keyfile: GLib.KeyFile, key: str) -> Optional[str]:
        try:
            return keyfile.get_locale_string(DESKTOP_GROUP, key, None)
        except GLib.Error:
            return None

    def _get_list(self, keyfile: GLib.KeyFile, key: str) -> List[str]:
        """Safely retrieves a list of strings from the keyfile."""
        try:
            return keyfile.get_locale_string_list(DESKTOP_GROUP, key, None)
        except GLib.Error:
            return []


def build_catalog(
    search_paths: Iterable[Path],
    custom: Iterable[Dict[str, Any]] = (),
    logger: Optional[Any] = None,
) -> List[AppEntry]:
    """
    Scans desktop entries, appends user-defined apps and returns them in
    catalog order.
    """
    scanner = AppScanner(search_paths, logger)
    apps = list(scanner.scan().values())
    apps.extend(custom_apps(custom))
    return sort_catalog(apps)
