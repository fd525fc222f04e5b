import os
import time
import toml
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from waylaunch.core.search.params import (
    DEFAULT_INITIAL_RESULTS,
    DEFAULT_MAX_RESULTS,
    DEFAULT_MIN_SCORE,
    DEFAULT_SCORE_THRESHOLD,
    RankingParams,
    clamp_threshold,
)
from waylaunch.shared import config_template
from waylaunch.shared.path_handler import PathHandler


class ConfigHandler:
    """
    Manages the launcher's configuration file (config.toml) and provides
    a layered access interface.
    Handles file I/O, config merging with defaults and conversion of the
    raw settings into validated ranking parameters.
    """

    max_retries = 3
    retry_delay_seconds = 0.1

    def __init__(
        self,
        logger: Optional[Any] = None,
        config_file: Optional[Union[str, Path]] = None,
        path_handler: Optional[PathHandler] = None,
    ):
        """
        Initializes the configuration handler, resolves the config path and
        loads the initial configuration.
        Args:
            logger: Logger used for all config diagnostics.
            config_file: Explicit config.toml location; defaults to the XDG
                         config directory.
            path_handler: Resolver for XDG paths when config_file is not given.
        """
        self.logger = logger or structlog.get_logger(__name__)
        self._load_successful: bool = False
        self.default_config = config_template.default_config
        if config_file is None:
            path_handler = path_handler or PathHandler(self.logger)
            config_file = path_handler.get_config_dir() / "config.toml"
        self.config_file = Path(config_file)
        self.config_data = self.load_config()

    def _strip_hints(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recursively removes keys ending with '_hint' from the configuration
        dictionary destined for TOML.
        Args:
            data: The configuration dictionary, typically self.default_config.
        Returns:
            A dictionary containing only configuration values, no metadata.
        """
        stripped_data = {}
        for key, value in data.items():
            if key.endswith(("_hint",)):
                continue
            if isinstance(value, dict):
                stripped_data[key] = self._strip_hints(value)
            elif isinstance(value, list) and all(
                isinstance(item, dict) for item in value
            ):
                stripped_data[key] = [self._strip_hints(item) for item in value]
            else:
                stripped_data[key] = value
        return stripped_data

    @property
    def default_config_stripped(self) -> Dict[str, Any]:
        """Returns the default config without any setting metadata hints."""
        return self._strip_hints(self.default_config)

    def _recursive_merge(
        self,
        user_config: Dict[str, Any],
        default_config: Dict[str, Any],
    ) -> bool:
        """
        Recursively merges missing keys from `default_config` into `user_config`.
        Args:
            user_config: The dictionary loaded from the user's config file.
            default_config: The stripped default configuration.
        Returns:
            True if any key was added.
        """
        added = False
        for key, default_value in default_config.items():
            if key not in user_config:
                user_config[key] = default_value
                added = True
            elif isinstance(default_value, dict) and isinstance(
                user_config.get(key), dict
            ):
                if self._recursive_merge(user_config[key], default_value):
                    added = True
        return added

    def save_config(self) -> None:
        """Writes the current state of self.config_data to the TOML file."""
        if not self._load_successful:
            self.logger.warning(
                "Skipping configuration save: Configuration is in an untrusted state (load failed). Please fix config.toml manually."
            )
            return
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                toml.dump(self.config_data, f)
            self.logger.info("Configuration saved successfully.")
        except OSError as e:
            self.logger.error(f"Failed to save configuration to file: {e}")

    def load_config(self) -> Dict[str, Any]:
        """
        Loads the configuration from file, or uses defaults if missing/corrupt.
        Returns:
            The loaded and merged configuration dictionary.
        """
        config_from_file: Dict[str, Any] = {}
        file_must_be_created = not self.config_file.exists()
        load_succeeded = False
        if file_must_be_created:
            self.logger.info("Config file is missing. Will apply defaults and create.")
            load_succeeded = True
        else:
            for attempt in range(self.max_retries):
                try:
                    with open(self.config_file, "r") as f:
                        config_from_file = toml.load(f)
                    self.logger.debug("Existing config.toml loaded successfully.")
                    load_succeeded = True
                    break
                except Exception as e:
                    self.logger.error(
                        f"Error loading config file on attempt {attempt + 1}: {e}. Retrying..."
                    )
                    time.sleep(self.retry_delay_seconds)
            else:
                self.logger.error(
                    "Failed to load config file after all retries. Using default configuration and skipping file save to preserve user data."
                )
                config_from_file = {}
        self._load_successful = load_succeeded
        self._recursive_merge(config_from_file, self.default_config_stripped)
        if file_must_be_created:
            self.logger.info(
                "Saving default configuration to file because it was missing."
            )
            original_config_data = getattr(self, "config_data", None)
            self.config_data = config_from_file
            self.save_config()
            self.config_data = original_config_data
        self.logger.debug("Configuration loaded and merged with defaults.")
        return config_from_file

    def get_root_setting(self, key_path: List[str], default_value: Any = None) -> Any:
        """
        Traverses the configuration dict (self.config_data) to retrieve a value.
        Args:
            key_path: List of strings representing the path (e.g., ['search', 'min_score']).
            default_value: Value to return if the path is not found.
        Returns:
            The configuration value or the default value.
        """
        current_data = self.config_data
        for i, key in enumerate(key_path):
            if isinstance(current_data, dict) and key in current_data:
                current_data = current_data[key]
            else:
                self.logger.debug(
                    f"Missing configuration key at path: {' -> '.join(key_path[: i + 1])}. Using default value: {default_value}"
                )
                return default_value
        return current_data

    def _get_int(self, key_path: List[str], default: int, minimum: int) -> int:
        value = self.get_root_setting(key_path, default)
        if isinstance(value, bool) or not isinstance(value, int):
            self.logger.warning(
                f"Invalid value {value!r} for {'.'.join(key_path)}: expected an integer. Using {default}."
            )
            return default
        if value < minimum:
            self.logger.warning(
                f"Invalid value {value} for {'.'.join(key_path)}: must be at least {minimum}. Using {default}."
            )
            return default
        return value

    def _get_bool(self, key_path: List[str], default: bool) -> bool:
        value = self.get_root_setting(key_path, default)
        if not isinstance(value, bool):
            self.logger.warning(
                f"Invalid value {value!r} for {'.'.join(key_path)}: expected true or false. Using {default}."
            )
            return default
        return value

    def _get_str_list(self, key_path: List[str]) -> List[str]:
        value = self.get_root_setting(key_path, [])
        if not isinstance(value, list):
            self.logger.warning(
                f"Invalid value {value!r} for {'.'.join(key_path)}: expected a list of strings."
            )
            return []
        names = [item for item in value if isinstance(item, str)]
        if len(names) != len(value):
            self.logger.warning(
                f"Ignoring non-string entries in {'.'.join(key_path)}."
            )
        return names

    def _get_threshold(self) -> float:
        key_path = ["search", "score_threshold"]
        value = self.get_root_setting(key_path, DEFAULT_SCORE_THRESHOLD)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.logger.warning(
                f"Invalid value {value!r} for search.score_threshold: expected a number. Using {DEFAULT_SCORE_THRESHOLD}."
            )
            return DEFAULT_SCORE_THRESHOLD
        clamped = clamp_threshold(float(value))
        if clamped != value:
            self.logger.warning(
                f"search.score_threshold {value} is outside (0, 1]. Using {clamped}."
            )
        return clamped

    def get_ranking_params(self) -> RankingParams:
        """
        Builds validated ranking parameters from the [general], [search] and
        [apps] sections. Invalid values are replaced by defaults (or clamped
        for score_threshold) and reported as warnings.
        """
        return RankingParams(
            max_results=self._get_int(
                ["general", "max_results"], DEFAULT_MAX_RESULTS, 1
            ),
            initial_results=self._get_int(
                ["general", "initial_results"], DEFAULT_INITIAL_RESULTS, 0
            ),
            min_score=self._get_int(["search", "min_score"], DEFAULT_MIN_SCORE, 0),
            score_threshold=self._get_threshold(),
            prefer_prefix=self._get_bool(["search", "prefer_prefix"], True),
            use_history=self._get_bool(["search", "use_history"], True),
            favorites=tuple(dict.fromkeys(self._get_str_list(["apps", "favorites"]))),
            exclude=frozenset(self._get_str_list(["apps", "exclude"])),
        )

    def get_terminal(self) -> str:
        terminal = self.get_root_setting(["general", "terminal"], "alacritty")
        if not isinstance(terminal, str) or not terminal.strip():
            self.logger.warning(
                f"Invalid value {terminal!r} for general.terminal. Using alacritty."
            )
            return "alacritty"
        return terminal

    def get_extra_dirs(self) -> List[Path]:
        return [
            Path(os.path.expanduser(d)) for d in self._get_str_list(["apps", "extra_dirs"])
        ]

    def get_custom_apps(self) -> List[Dict[str, Any]]:
        custom = self.get_root_setting(["apps", "custom"], [])
        if not isinstance(custom, list):
            self.logger.warning("Invalid value for apps.custom: expected a list of tables.")
            return []
        return custom
