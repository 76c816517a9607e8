"""Shared test helpers: export corpus and writers, node/match factories, fake providers."""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from unittest.mock import MagicMock

from designseek.index.models import (
    TOKEN_CATEGORIES,
    ComponentLocation,
    FigmaIndexMatch,
    IndexNode,
)
from designseek.streaming import CancellationToken


def write_export(index_dir: Path, file_name: str, files: list[dict]) -> Path:
    """Write an export dump in the ``{"files": [...]}`` shape."""
    path = index_dir / file_name
    path.write_text(json.dumps({"files": files}), encoding="utf-8")
    return path


def make_node(
    name: str = "Button",
    kind: str = "component",
    platform: str = "web",
    source: str = "library",
    tokens: dict[str, set[str]] | None = None,
    search_text: str | None = None,
    locations: int = 1,
    screen_count: int | None = None,
    component_count: int | None = None,
) -> IndexNode:
    """Create an IndexNode directly, bypassing the builder."""
    buckets = {c: frozenset((tokens or {}).get(c, ())) for c in TOKEN_CATEGORIES}
    return IndexNode(
        key=f"f1:{kind}:{name}",
        kind=kind,
        node_id=f"id-{name}",
        name=name,
        normalized_name=name.lower(),
        file_id="f1",
        file_name="Test File",
        platform=platform,
        source=source,
        locations=tuple(ComponentLocation(page_name=f"Page {i}") for i in range(locations)),
        tokens=MappingProxyType(buckets),
        all_tokens=frozenset().union(*buckets.values()),
        search_text=search_text if search_text is not None else name.lower(),
        screen_count=screen_count,
        component_count=component_count,
    )


def make_match(
    name: str = "Button",
    kind: str = "component",
    score: float = 30.0,
    matched_tokens: list[str] | None = None,
    node_id: str = "1:2",
    variant: str | None = None,
    locations: list[ComponentLocation] | None = None,
) -> FigmaIndexMatch:
    return FigmaIndexMatch(
        key=f"f1:{kind}:{node_id}",
        kind=kind,
        node_id=node_id,
        name=name,
        file_id="f1",
        file_name="Web Components",
        platform="web",
        source="library",
        locations=locations or [],
        score=score,
        matched_tokens=matched_tokens if matched_tokens is not None else ["button"],
        variant=variant,
    )


def _make_chunk(text: str | None):
    """Create a mock streamed Gemini chunk."""
    chunk = MagicMock()
    chunk.text = text
    return chunk


def _make_stream(texts: list[str | None]):
    """Create a mock Gemini response stream that yields chunks and can be closed."""
    stream = MagicMock()
    stream.__iter__.return_value = iter([_make_chunk(t) for t in texts])
    return stream


class FakeProvider:
    """GenerationProvider that replays fixed chunks and records each call."""

    def __init__(self, chunks: list[str]):
        self.chunks = chunks
        self.calls: list[dict] = []

    def stream(self, contents, system=None, cancel_token: CancellationToken | None = None):
        self.calls.append({"contents": contents, "system": system, "cancel_token": cancel_token})
        for chunk in self.chunks:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            yield chunk


def node_by_key(data, key: str) -> IndexNode:
    return next(n for n in data.nodes if n.key == key)


# ── Export corpus shared by the fixtures in conftest ──

WEB_LIBRARY_FILES = [
    {
        "fileId": "webfile1",
        "fileName": "Web Components",
        "platform": "web",
        "pages": [
            {
                "pageId": "p1",
                "pageName": "Buttons",
                "screens": [
                    {
                        "screenId": "s1",
                        "screenName": "Button States",
                        "hierarchyPath": "Buttons / Button States / Default",
                        "components": [
                            {
                                "componentId": "c1",
                                "componentName": "Button",
                                "variant": "Primary",
                                "tags": ["cta"],
                                "textSnippets": ["Submit"],
                                "interactions": ["onClick"],
                                "type": "COMPONENT",
                            },
                            {"componentId": "c2", "componentName": "Icon Button", "tags": None},
                        ],
                    },
                    {
                        "screenId": "s2",
                        "screenName": "Forms",
                        "hierarchyPath": "Buttons / Forms",
                        "components": [
                            {
                                "componentId": "c1",
                                "componentName": "Button",
                                "variant": "Secondary",
                                "tags": ["cta", "form"],
                                "textSnippets": ["Submit"],
                                "description": "Main call to action",
                            },
                            {
                                "componentId": "c3",
                                "componentName": "Text Field",
                                "tags": ["input"],
                                "textSnippets": ["Email address"],
                            },
                            # no id: skipped
                            {"componentName": "Ghost"},
                        ],
                    },
                ],
            },
        ],
    },
]

NATIVE_LIBRARY_FILES = [
    {
        "fileId": "nativefile1",
        "fileName": "Native Components",
        "pages": [
            {
                "pageId": "np1",
                "pageName": "Navigation",
                "screens": [
                    {
                        "screenId": "ns1",
                        "screenName": "Navbar Variants",
                        "hierarchyPath": "Navigation / Navbar Variants",
                        "components": [
                            {"componentId": "nc1", "componentName": "Navbar", "tags": ["header"]},
                            {"componentId": "nc2", "componentName": "Tab Bar"},
                        ],
                    },
                ],
            },
        ],
    },
]

WEB_MASTER_FILES = [
    {
        "fileId": "webmaster",
        "fileName": "Web App",
        "pages": [
            {
                "pageId": "wp1",
                "pageName": "Checkout",
                "screens": [
                    {
                        "screenId": "ws1",
                        "screenName": "Payment",
                        "hierarchyPath": "Checkout / Payment",
                        "components": [
                            {"componentId": "wc1", "componentName": "Button", "mainComponentId": "c1"},
                            {"componentId": "wc2", "componentName": "Card Form"},
                        ],
                    },
                ],
            },
        ],
    },
]
