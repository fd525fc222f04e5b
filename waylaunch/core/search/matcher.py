"""
Per-candidate matching of a query against application names.

Matching happens in two stages. A case-insensitive substring test runs first;
candidates that fail it fall through to a subsequence-based fuzzy scorer, whose
results must then pass an admission filter before they are reported.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from waylaunch.catalog.desktop import AppEntry
from waylaunch.core.search.params import RankingParams, clamp_threshold

SUBSTRING_BASE = 1000
PREFIX_BONUS = 1000
# Positions beyond this all score the same.
MAX_POSITION_PENALTY = 500

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = 8
BONUS_CAMEL = 7
BONUS_CONSECUTIVE = 4
BONUS_FIRST_CHAR_MULTIPLIER = 2


class MatchKind(Enum):
    """Ranking tiers; a higher value always sorts first."""

    NONE = 0
    FUZZY = 1
    SUBSTRING = 2


@dataclass(frozen=True)
class MatchResult:
    app: AppEntry
    score: int
    kind: MatchKind
    index: int


def _fold(text: str) -> List[str]:
    # Lowercase per character so that indices keep pointing at the original text.
    folded = []
    for char in text:
        lowered = char.lower()
        folded.append(lowered if len(lowered) == 1 else char)
    return folded


def _char_bonus(text: str, i: int) -> int:
    if i == 0:
        return BONUS_BOUNDARY
    prev, cur = text[i - 1], text[i]
    if not prev.isalnum():
        return BONUS_BOUNDARY
    if prev.islower() and cur.isupper():
        return BONUS_CAMEL
    if prev.isalpha() and cur.isdigit():
        return BONUS_CAMEL
    return 0


def substring_score(query: str, name: str, prefer_prefix: bool) -> Optional[int]:
    """
    Scores a case-insensitive containment of query in name.

    Earlier positions score higher; with prefer_prefix a match at index 0
    gets a bonus that puts it above every mid-string match.
    Returns None when the name does not contain the query.
    """
    position = "".join(_fold(name)).find("".join(_fold(query)))
    if position < 0:
        return None
    score = SUBSTRING_BASE - min(position, MAX_POSITION_PENALTY)
    if prefer_prefix and position == 0:
        score += PREFIX_BONUS
    return score


def fuzzy_score(query: str, text: str) -> Optional[int]:
    """
    Scores query as an ordered subsequence of text.

    A forward scan finds where the first full match ends, a backward scan from
    there finds the tightest start, and the window in between is scored:
    every matched character earns SCORE_MATCH plus a position bonus (word
    boundaries and camelCase humps, doubled for the first query character,
    with an extra bonus for runs) while every skipped character inside the
    window costs a gap penalty. Returns None when query is not a subsequence.
    """
    if not query:
        return 0
    pattern = _fold(query)
    folded = _fold(text)

    qi = 0
    end = -1
    for i, char in enumerate(folded):
        if char == pattern[qi]:
            qi += 1
            if qi == len(pattern):
                end = i
                break
    if end < 0:
        return None

    qi = len(pattern) - 1
    start = end
    for i in range(end, -1, -1):
        if folded[i] == pattern[qi]:
            qi -= 1
            if qi < 0:
                start = i
                break

    score = 0
    qi = 0
    in_gap = False
    prev_matched = False
    for i in range(start, end + 1):
        if qi < len(pattern) and folded[i] == pattern[qi]:
            bonus = _char_bonus(text, i)
            if qi == 0:
                bonus *= BONUS_FIRST_CHAR_MULTIPLIER
            if prev_matched:
                bonus += BONUS_CONSECUTIVE
            score += SCORE_MATCH + bonus
            qi += 1
            in_gap = False
            prev_matched = True
        else:
            score += SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            in_gap = True
            prev_matched = False
    return max(score, 0)


def match_candidates(
    query: str, candidates: Sequence[AppEntry], params: RankingParams
) -> List[MatchResult]:
    """
    Matches every candidate against query and returns the survivors.

    An empty query matches everything with MatchKind.NONE. Otherwise substring
    hits are returned alongside the fuzzy hits that pass the admission filter:
    a fuzzy score must reach both params.min_score and
    best_fuzzy_score * params.score_threshold. Results keep catalog order.
    """
    if not query:
        return [
            MatchResult(app=app, score=0, kind=MatchKind.NONE, index=index)
            for index, app in enumerate(candidates)
        ]

    results = []
    fallthrough = []
    for index, app in enumerate(candidates):
        score = substring_score(query, app.name, params.prefer_prefix)
        if score is None:
            fallthrough.append(index)
        else:
            results.append(
                MatchResult(app=app, score=score, kind=MatchKind.SUBSTRING, index=index)
            )

    fuzzy = []
    for index in fallthrough:
        score = fuzzy_score(query, candidates[index].name)
        if score is not None:
            fuzzy.append((index, score))

    if fuzzy:
        best = max(score for _, score in fuzzy)
        floor = best * clamp_threshold(params.score_threshold)
        for index, score in fuzzy:
            if score >= params.min_score and score >= floor:
                results.append(
                    MatchResult(
                        app=candidates[index],
                        score=score,
                        kind=MatchKind.FUZZY,
                        index=index,
                    )
                )
        results.sort(key=lambda result: result.index)
    return results
