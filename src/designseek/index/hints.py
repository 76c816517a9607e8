"""Query hints: platform, source and node-kind vocabulary."""

from __future__ import annotations

from collections.abc import Iterable, MutableSet
from dataclasses import dataclass

from designseek.index.models import NodeKind, Platform, Source

PLATFORM_HINTS: dict[str, Platform] = {
    "native": "native",
    "ios": "native",
    "android": "native",
    "mobile": "native",
    "web": "web",
    "browser": "web",
    "desktop": "web",
}

SOURCE_HINTS: dict[str, Source] = {
    "master": "master",
    "app": "master",
    "production": "master",
    "live": "master",
    "library": "library",
    "libraries": "library",
    "components": "library",
}

KIND_HINTS: dict[str, NodeKind] = {
    "component": "component",
    "components": "component",
    "screen": "screen",
    "screens": "screen",
    "page": "page",
    "pages": "page",
}


@dataclass(frozen=True)
class Hints:
    platform_hint: Platform | None = None
    source_hint: Source | None = None


def extract_hints(tokens: MutableSet[str], order: Iterable[str] | None = None) -> Hints:
    """Detect platform/source words and remove them from ``tokens``.

    At most one platform word and one source word are consumed; any further
    hint-like words stay in ``tokens`` as ordinary content. ``order`` fixes
    which word counts as "first" (query order); without it tokens are
    visited in sorted order.
    """
    platform_hint: Platform | None = None
    source_hint: Source | None = None

    for token in list(order if order is not None else sorted(tokens)):
        if token not in tokens:
            continue
        if platform_hint is None and token in PLATFORM_HINTS:
            platform_hint = PLATFORM_HINTS[token]
            tokens.discard(token)
            continue
        if source_hint is None and token in SOURCE_HINTS:
            source_hint = SOURCE_HINTS[token]
            tokens.discard(token)

    return Hints(platform_hint=platform_hint, source_hint=source_hint)


def detect_kind_hints(normalized_query: str) -> frozenset[NodeKind]:
    """Node kinds the query asks for, read from the raw normalized words.

    "component" and "screen" are stopwords, so this looks at the normalized
    query rather than the token list. Nothing is removed.
    """
    return frozenset(KIND_HINTS[w] for w in normalized_query.split() if w in KIND_HINTS)
