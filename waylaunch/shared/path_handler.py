import os
from pathlib import Path
from typing import Any, List, Optional

import structlog


class PathHandler:
    """
    A class to handle various application paths based on the XDG Base Directory
    Specification and provide convenient methods for path management.
    """

    def __init__(self, logger: Optional[Any] = None, app_name: str = "waylaunch"):
        """
        Initializes the PathHandler with a specific application name.
        Args:
            logger: Logger for directory creation; defaults to a module logger.
            app_name: Directory name used below each XDG base directory.
        """
        self.app_name = app_name
        self._home = Path.home()
        self.logger = logger or structlog.get_logger(__name__)

    def _get_xdg_base_dir(self, env_var: str, default_path: Path) -> Path:
        """Helper to get XDG base directory with fallback."""
        path_str = os.getenv(env_var)
        if path_str:
            return Path(path_str)
        return default_path

    def get_config_dir(self) -> Path:
        """
        Returns the path to the application's configuration directory:
        $XDG_CONFIG_HOME/waylaunch or ~/.config/waylaunch.
        Creates the directory if it does not exist.
        """
        config_home = self._get_xdg_base_dir("XDG_CONFIG_HOME", self._home / ".config")
        config_dir = config_home / self.app_name
        if not config_dir.is_dir():
            config_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"Created configuration directory {config_dir}.")
        return config_dir

    def get_data_path(self, *path_parts) -> str:
        """
        Returns a path inside the user's XDG data directory. Parent
        directories are created lazily by whoever writes the file.
        """
        return str(self.get_data_home() / self.app_name / Path(*path_parts))

    def get_data_home(self) -> Path:
        """Returns $XDG_DATA_HOME or ~/.local/share."""
        return self._get_xdg_base_dir("XDG_DATA_HOME", self._home / ".local" / "share")

    def get_data_dirs(self) -> List[Path]:
        """Returns the system data directories listed in $XDG_DATA_DIRS."""
        raw = os.getenv("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
        return [Path(p) for p in raw.split(":") if p]

    def get_application_dirs(self) -> List[Path]:
        """
        Returns the directories that hold .desktop files, highest priority
        first: the user's data home, the system data dirs, then flatpak exports.
        """
        data_home = self.get_data_home()
        dirs = [data_home / "applications"]
        dirs.extend(d / "applications" for d in self.get_data_dirs())
        dirs.append(data_home / "flatpak" / "exports" / "share" / "applications")
        dirs.append(Path("/var/lib/flatpak/exports/share/applications"))
        unique = []
        for d in dirs:
            if d not in unique:
                unique.append(d)
        return unique
