"""Additive relevance scoring of one index node against a query."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from designseek.index.models import IndexNode, NodeKind, Platform, Source, TokenCategory

# Best bucket wins: a token scores once, in the first bucket (in this order) that holds it.
BUCKET_WEIGHTS: tuple[tuple[TokenCategory, float], ...] = (
    ("name", 8.0),
    ("variant", 6.0),
    ("tag", 5.0),
    ("text", 4.0),
    ("path", 3.0),
    ("file", 2.0),
)
SUBSTRING_WEIGHT = 1.0

PHRASE_BONUS = 6.0
EXACT_NAME_BONUS = 10.0
FULL_COVERAGE_BONUS = 4.0
PARTIAL_COVERAGE_BONUS = 2.0
PARTIAL_COVERAGE_RATIO = 0.6
PLATFORM_BONUS = 5.0
SOURCE_BONUS = 3.0
LIBRARY_BONUS = 1.5
LOCATION_BONUS_STEP = 0.25
LOCATION_BONUS_CAP = 2.0

# intent -> adjustment per node kind
KIND_ADJUSTMENTS: dict[NodeKind, dict[NodeKind, float]] = {
    "component": {"component": 5.0, "screen": -1.0, "page": -2.0},
    "screen": {"screen": 7.0, "page": 4.0, "component": -2.0},
    "page": {"page": 7.0, "screen": 4.0, "component": -2.0},
}


@dataclass
class ScoreResult:
    score: float = 0.0
    matched_tokens: list[str] = field(default_factory=list)


def _aggregate_bonus(node: IndexNode) -> float:
    if node.kind == "page":
        return (
            min(2.0, 0.25 * (node.screen_count or 0))
            + min(1.0, 0.05 * (node.component_count or 0))
        )
    if node.kind == "screen":
        return min(1.5, 0.1 * (node.component_count or 0))
    return 0.0


def score_node(
    node: IndexNode,
    query_tokens: Sequence[str],
    normalized_query: str,
    platform_hint: Platform | None = None,
    source_hint: Source | None = None,
    kind_hints: Collection[NodeKind] = (),
) -> ScoreResult:
    """Score ``node`` for the query. A score <= 0 means "not relevant"."""
    matched: list[str] = []
    score = 0.0

    for token in query_tokens:
        if token in matched:
            continue
        weight = next(
            (w for category, w in BUCKET_WEIGHTS if token in node.tokens[category]),
            SUBSTRING_WEIGHT if token in node.search_text else 0.0,
        )
        if weight:
            score += weight
            matched.append(token)

    if normalized_query:
        if normalized_query in node.search_text:
            score += PHRASE_BONUS
        if normalized_query == node.normalized_name:
            score += EXACT_NAME_BONUS

    if query_tokens:
        coverage = len(matched) / len(set(query_tokens))
        if coverage >= 1:
            score += FULL_COVERAGE_BONUS
        elif coverage >= PARTIAL_COVERAGE_RATIO:
            score += PARTIAL_COVERAGE_BONUS

    if platform_hint and node.platform == platform_hint:
        score += PLATFORM_BONUS
    if source_hint and node.source == source_hint:
        score += SOURCE_BONUS

    if node.source == "library":
        score += LIBRARY_BONUS
    if len(node.locations) > 1:
        score += min(LOCATION_BONUS_CAP, LOCATION_BONUS_STEP * len(node.locations))

    for intent in kind_hints:
        score += KIND_ADJUSTMENTS[intent][node.kind]

    score += _aggregate_bonus(node)
    return ScoreResult(score=score, matched_tokens=matched)
