default_config = {
    "_section_hint": (
        "General configuration settings for waylaunch, an application "
        "launcher for Wayland compositors."
    ),
    "general": {
        "_section_hint": "Result list sizing and the terminal used for console apps.",
        "max_results": 8,
        "max_results_hint": (
            "The maximum number of applications shown for a search query."
        ),
        "initial_results": 8,
        "initial_results_hint": (
            "How many applications to show before anything is typed. "
            "Never exceeds max_results."
        ),
        "terminal": "alacritty",
        "terminal_hint": (
            "Terminal emulator used to run applications whose desktop entry "
            "sets Terminal=true. It is invoked as '<terminal> -e <command>'."
        ),
    },
    "search": {
        "_section_hint": "Matching and ranking behaviour.",
        "min_score": 30,
        "min_score_hint": (
            "Absolute floor for fuzzy matches. Fuzzy results scoring below "
            "this value are never shown."
        ),
        "score_threshold": 0.6,
        "score_threshold_hint": (
            "Relative floor for fuzzy matches, as a fraction of the best fuzzy "
            "score for the same query. Must be greater than 0 and at most 1."
        ),
        "prefer_prefix": True,
        "prefer_prefix_hint": (
            "Rank names that start with the query above names that merely contain it."
        ),
        "use_history": True,
        "use_history_hint": (
            "Move recently launched applications up the list."
        ),
    },
    "apps": {
        "_section_hint": "Which applications are listed and how.",
        "extra_dirs": [],
        "extra_dirs_hint": (
            "Additional directories to scan for .desktop files."
        ),
        "exclude": [],
        "exclude_hint": (
            "Display names of applications that must never be listed."
        ),
        "favorites": [],
        "favorites_hint": (
            "Display names of applications pinned to the top of the list, in order."
        ),
        "custom": [],
        "custom_hint": (
            "User-defined entries as [[apps.custom]] tables with 'name', "
            "'exec' and optional 'icon' and 'keywords'."
        ),
    },
}
