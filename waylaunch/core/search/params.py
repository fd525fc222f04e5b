import sys
from dataclasses import dataclass, field
from typing import FrozenSet, Tuple


DEFAULT_MAX_RESULTS = 8
DEFAULT_INITIAL_RESULTS = 8
DEFAULT_MIN_SCORE = 30
DEFAULT_SCORE_THRESHOLD = 0.6


def clamp_threshold(value: float) -> float:
    """Forces a relative fuzzy floor into the half-open range (0, 1]."""
    if value != value:
        return DEFAULT_SCORE_THRESHOLD
    if value > 1.0:
        return 1.0
    if value <= 0.0:
        return sys.float_info.epsilon
    return value


@dataclass(frozen=True)
class RankingParams:
    """
    Read-only knobs handed to the matcher and ranker for one ranking call.

    Attributes:
        max_results: Hard cap on the number of returned applications.
        initial_results: Cap for the empty-query view, never above max_results.
        min_score: Absolute floor applied to fuzzy scores.
        score_threshold: Relative floor against the best fuzzy score.
        prefer_prefix: Whether prefix substring hits outrank mid-string hits.
        use_history: Whether launch recency feeds into the ordering.
        favorites: Names pinned to the top, in display order.
        exclude: Names that never appear in results.
    """

    max_results: int = DEFAULT_MAX_RESULTS
    initial_results: int = DEFAULT_INITIAL_RESULTS
    min_score: int = DEFAULT_MIN_SCORE
    score_threshold: float = DEFAULT_SCORE_THRESHOLD
    prefer_prefix: bool = True
    use_history: bool = True
    favorites: Tuple[str, ...] = ()
    exclude: FrozenSet[str] = field(default_factory=frozenset)

    def result_cap(self, query: str) -> int:
        if not query:
            return min(self.initial_results, self.max_results)
        return self.max_results
