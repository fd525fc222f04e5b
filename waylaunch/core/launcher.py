import time
from typing import Any, Dict, List, Optional, Sequence

import structlog

from waylaunch.catalog.desktop import AppEntry
from waylaunch.core.history import HistoryStore
from waylaunch.core.search.matcher import MatchResult
from waylaunch.core.search.params import RankingParams
from waylaunch.core.search import ranker
from waylaunch.shared.command_runner import CommandRunner


class Launcher:
    """
    Entry point for the presentation layer: ranks the catalog for each query
    and launches the chosen application.

    The recency map is read once when the launcher is created. Launches made
    during the session are written to the history log but only affect the
    ordering after reload_history().
    """

    def __init__(
        self,
        catalog: Sequence[AppEntry],
        params: RankingParams,
        history: HistoryStore,
        runner: Optional[CommandRunner] = None,
        terminal: str = "alacritty",
        time_handler: Any = time,
        logger: Optional[Any] = None,
    ):
        self.catalog = tuple(catalog)
        self.params = params
        self.history = history
        self.logger = logger or structlog.get_logger(__name__)
        self.runner = runner or CommandRunner(self.logger)
        self.terminal = terminal
        self.time = time_handler
        self.recency: Dict[str, int] = {}
        self.reload_history()

    def reload_history(self) -> None:
        """Re-reads the history log into the in-memory recency map."""
        if self.params.use_history:
            self.recency = self.history.load()
        else:
            self.recency = {}

    def rank_results(self, query: str) -> List[MatchResult]:
        return ranker.rank_results(
            query.strip(), self.catalog, self.params, self.recency, self.time.time()
        )

    def rank(self, query: str) -> List[AppEntry]:
        """Returns at most max_results applications for query, best first."""
        return [result.app for result in self.rank_results(query)]

    def find(self, name: str) -> Optional[AppEntry]:
        for app in self.catalog:
            if app.name == name:
                return app
        return None

    def command_for(self, app: AppEntry) -> List[str]:
        if app.terminal:
            return [self.terminal, "-e", *app.exec]
        return list(app.exec)

    def launch(self, app: AppEntry) -> bool:
        """
        Spawns app and, only if that succeeded, records the launch.

        Returns:
            bool: Whether the application was started. History bookkeeping
            failures do not change the result.
        """
        if not self.runner.run(self.command_for(app)):
            self.logger.error(f"Failed to launch {app.name}.")
            return False
        self.history.record(app.name)
        return True
