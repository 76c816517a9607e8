"""Search the design-system index: candidates, filters, scoring, ranking."""

from __future__ import annotations

import logging
import math
import time
from typing import Literal
from urllib.parse import quote

from designseek.index.cache import IndexCache, default_index_cache
from designseek.index.hints import detect_kind_hints, extract_hints
from designseek.index.models import (
    FigmaIndexMatch,
    IndexData,
    Platform,
    SearchOutcome,
    Source,
)
from designseek.index.scorer import score_node
from designseek.index.tokenizer import normalize_text, tokenize

logger = logging.getLogger(__name__)

PlatformFilter = Literal["native", "web", "both"]
SourceFilter = Literal["library", "master", "both"]

DEFAULT_LIMIT = 10
# share of query tokens that must appear in a node's full text for the substring fallback
FALLBACK_TOKEN_RATIO = 0.5


def _candidates(data: IndexData, tokens: list[str], normalized_query: str) -> set[int]:
    candidates: set[int] = set()
    for token in tokens:
        candidates.update(data.candidates_for(token))
    if candidates:
        return candidates

    if tokens:
        required = math.ceil(FALLBACK_TOKEN_RATIO * len(tokens))
        candidates = {
            i for i, node in enumerate(data.nodes)
            if sum(1 for t in tokens if t in node.search_text) >= required
        }
        if candidates:
            logger.debug("token lookup empty; substring fallback found %d", len(candidates))
            return candidates

    candidates = {i for i, node in enumerate(data.nodes) if normalized_query in node.search_text}
    if candidates:
        logger.debug("phrase fallback found %d", len(candidates))
    return candidates


class FigmaIndexSearcher:
    """Runs queries against the (lazily built) index held by an ``IndexCache``."""

    def __init__(self, cache: IndexCache) -> None:
        self._cache = cache

    def search(
        self,
        query: str | None,
        platform: PlatformFilter | None = None,
        source: SourceFilter | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> SearchOutcome:
        """Rank index nodes for ``query``.

        Args:
            query: Free text, e.g. "native navbar".
            platform: Explicit platform filter; "both"/None defers to the
                platform word found in the query, if any.
            source: Explicit source filter, same rules as ``platform``.
            limit: Max matches returned.

        Returns:
            SearchOutcome with matches sorted by score (desc) then name.
            A blank query yields an empty outcome.
        """
        normalized_query = normalize_text(query)
        if not normalized_query:
            return SearchOutcome()

        t0 = time.perf_counter()
        ordered = list(dict.fromkeys(tokenize(query)))
        working = set(ordered)
        hints = extract_hints(working, order=ordered)
        tokens = [t for t in ordered if t in working]
        kind_hints = detect_kind_hints(normalized_query)

        platform_filter: Platform | None = (
            platform if platform and platform != "both" else hints.platform_hint
        )
        source_filter: Source | None = (
            source if source and source != "both" else hints.source_hint
        )

        data = self._cache.get()
        matches: list[FigmaIndexMatch] = []
        for i in sorted(_candidates(data, tokens, normalized_query)):
            node = data.nodes[i]
            if platform_filter and node.platform != platform_filter:
                continue
            if source_filter and node.source != source_filter:
                continue
            result = score_node(
                node, tokens, normalized_query,
                platform_filter, source_filter, kind_hints,
            )
            if result.score <= 0:
                continue
            matches.append(FigmaIndexMatch.from_node(node, result.score, result.matched_tokens))

        matches.sort(key=lambda m: (-m.score, m.name.casefold(), m.key))
        logger.debug(
            "search %r: tokens=%s platform=%s source=%s -> %d match(es) (%.1fms)",
            normalized_query, tokens, platform_filter, source_filter,
            len(matches), (time.perf_counter() - t0) * 1000,
        )
        return SearchOutcome(
            matches=matches[:max(0, limit)],
            tokens=tokens,
            platform_hint=platform_filter,
            source_hint=source_filter,
        )


def search_figma_index(
    query: str | None,
    platform: PlatformFilter | None = None,
    source: SourceFilter | None = None,
    limit: int = DEFAULT_LIMIT,
) -> SearchOutcome:
    """Search the process-wide index."""
    return FigmaIndexSearcher(default_index_cache()).search(
        query, platform=platform, source=source, limit=limit,
    )


_PLATFORM_LABELS = {"native": "Native", "web": "Web"}
_SOURCE_LABELS = {"library": "Library", "master": "Master"}


def format_matches_for_prompt(outcome: SearchOutcome, limit: int = 3) -> str | None:
    """One line per top match, for the model prompt. None when there are no matches."""
    if not outcome.matches:
        return None

    lines = []
    for i, match in enumerate(outcome.matches[:limit], 1):
        primary = match.locations[0] if match.locations else None
        location_label = primary.label if primary else None
        path_label = (
            primary.hierarchy_path
            if primary and primary.hierarchy_path and primary.hierarchy_path != location_label
            else None
        )
        name = f"{match.name} ({match.variant})" if match.variant else match.name

        parts = [
            f"{i}. {_PLATFORM_LABELS[match.platform]} {_SOURCE_LABELS[match.source]} {match.kind}",
            name,
            f"node {match.node_id}",
            f"file {match.file_name}",
        ]
        if location_label:
            parts.append(f"location {location_label}")
        if path_label:
            parts.append(f"path {path_label}")
        lines.append(" • ".join(parts))

    return "\n".join(lines)


def build_figma_node_url(file_id: str, node_id: str) -> str:
    return f"https://www.figma.com/file/{file_id}?node-id={quote(node_id, safe='')}"
