"""
Turns matcher output into the final, capped result list.

Ordering uses a composite key so that the match tier always dominates:
a fuzzy hit can never overtake a substring hit, no matter how recent or
favored it is. Inside a tier the recency and favorite boost is compared
first, then the last launch time, and only then the raw match score.
"""

import time
from typing import Dict, List, Mapping, Optional, Sequence

from waylaunch.catalog.desktop import AppEntry
from waylaunch.core.search.matcher import MatchResult, match_candidates
from waylaunch.core.search.params import RankingParams

HOUR = 60 * 60
DAY = 24 * HOUR
WEEK = 7 * DAY

BOOST_LAST_DAY = 100
BOOST_LAST_WEEK = 50
BOOST_OLDER = 20
FAVORITE_BOOST = 10


def recency_boost(
    name: str, recency: Mapping[str, int], now: float
) -> int:
    """Returns the additive bonus for how recently an app was launched."""
    last_launch = recency.get(name)
    if last_launch is None:
        return 0
    age = now - last_launch
    if age <= DAY:
        return BOOST_LAST_DAY
    if age <= WEEK:
        return BOOST_LAST_WEEK
    return BOOST_OLDER


def _order_default_view(
    results: List[MatchResult],
    favorites: Sequence[str],
    recency: Mapping[str, int],
) -> List[MatchResult]:
    favorite_rank: Dict[str, int] = {}
    for position, name in enumerate(favorites):
        favorite_rank.setdefault(name, position)

    pinned = [r for r in results if r.app.name in favorite_rank]
    pinned.sort(key=lambda r: (favorite_rank[r.app.name], r.index))

    rest = [r for r in results if r.app.name not in favorite_rank]
    recent = [r for r in rest if r.app.name in recency]
    recent.sort(key=lambda r: (-recency[r.app.name], r.app.name.lower(), r.index))
    never = [r for r in rest if r.app.name not in recency]
    return pinned + recent + never


def rank_results(
    query: str,
    catalog: Sequence[AppEntry],
    params: RankingParams,
    recency: Optional[Mapping[str, int]] = None,
    now: Optional[float] = None,
) -> List[MatchResult]:
    """
    Ranks the catalog for query and returns at most the configured number of
    match results, best first.

    Excluded names are removed before matching. With an empty query the
    default view is returned: favorites in configured order, then recently
    launched apps newest first, then the remaining catalog order.
    Recency ages are measured against now, the current time by default.
    """
    cap = params.result_cap(query)
    if cap <= 0:
        return []

    candidates = [app for app in catalog if app.name not in params.exclude]
    results = match_candidates(query, candidates, params)
    history = recency if (params.use_history and recency) else {}

    if not query:
        return _order_default_view(results, params.favorites, history)[:cap]

    favorites = set(params.favorites)
    if now is None:
        now = time.time()

    def sort_key(result: MatchResult):
        name = result.app.name
        boost = recency_boost(name, history, now)
        if name in favorites:
            boost += FAVORITE_BOOST
        return (
            -result.kind.value,
            -boost,
            -history.get(name, -1),
            -result.score,
            name.lower(),
            result.index,
        )

    results.sort(key=sort_key)
    return results[:cap]


def rank(
    query: str,
    catalog: Sequence[AppEntry],
    params: RankingParams,
    recency: Optional[Mapping[str, int]] = None,
    now: Optional[float] = None,
) -> List[AppEntry]:
    """Same as rank_results, returning the application records only."""
    return [r.app for r in rank_results(query, catalog, params, recency, now)]
