"""Build the in-memory design-system index from Figma export dumps.

Each export source is a JSON document shaped file -> pages -> screens ->
components. Traversal flattens it into page, screen and component nodes,
merges nodes that recur under the same composite key, and finally freezes
everything into an ``IndexData`` with an inverted token map.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from designseek.index.models import (
    TOKEN_CATEGORIES,
    ComponentLocation,
    ExportComponent,
    ExportFile,
    ExportPage,
    ExportPayload,
    ExportScreen,
    IndexData,
    IndexNode,
    NodeKind,
    Platform,
    Source,
    TokenCategory,
)
from designseek.index.tokenizer import normalize_text, tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexSource:
    """One export dump and the platform/source it represents."""

    file_name: str
    platform: Platform
    source: Source


INDEX_SOURCES: tuple[IndexSource, ...] = (
    IndexSource("native_components_index.json", "native", "library"),
    IndexSource("native_master_index.json", "native", "master"),
    IndexSource("web_components_index.json", "web", "library"),
    IndexSource("web_master_index.json", "web", "master"),
)

Loader = Callable[[Path], Any]


def load_export(path: Path) -> Any | None:
    """Read and parse one export file. Returns None (and logs) on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to read or parse %s: %s", path.name, e)
        return None


def node_key(file_id: str, kind: NodeKind, raw_id: str) -> str:
    return f"{file_id}:{kind}:{raw_id}"


class _NodeState:
    """Append-only accumulation for one node while the build is running."""

    def __init__(
        self, key: str, kind: NodeKind, node_id: str, name: str,
        file: ExportFile, source: IndexSource,
    ) -> None:
        self.key = key
        self.kind = kind
        self.node_id = node_id
        self.name = name
        self.file_id = file.file_id
        self.file_name = file.file_name
        self.platform = source.platform
        self.source = source.source
        self.main_component_id: str | None = None
        self.variant: str | None = None
        self.description: str | None = None
        self.type: str | None = None
        # dicts used as insertion-ordered sets
        self.tags: dict[str, None] = {}
        self.text_snippets: dict[str, None] = {}
        self.interactions: dict[str, None] = {}
        self.locations: list[ComponentLocation] = []
        self.screen_ids: dict[str, None] = {}
        self.component_ids: dict[str, None] = {}
        self.tokens: dict[TokenCategory, set[str]] = {c: set() for c in TOKEN_CATEGORIES}
        self.search_text = ""

        self.add_tokens("name", [name])
        self.add_tokens("file", [file.file_name])
        self.extend_search_text([name, file.file_name])

    def add_tokens(self, category: TokenCategory, values: Iterable[str | None]) -> None:
        bucket = self.tokens[category]
        for value in values:
            if value:
                bucket.update(tokenize(value))

    def extend_search_text(self, values: Iterable[str | None]) -> None:
        addition = normalize_text(" ".join(v for v in values if v))
        if addition and addition not in self.search_text:
            self.search_text = f"{self.search_text} {addition}".strip()

    def add_location(self, location: ComponentLocation) -> None:
        self.locations.append(location)
        path_values = [location.page_name, location.hierarchy_path]
        if self.kind == "component":
            path_values.insert(1, location.screen_name)
        self.add_tokens("path", path_values)
        self.extend_search_text(path_values)

    def merge_component(self, component: ExportComponent) -> None:
        """Fold one component occurrence in, backfilling unset scalar fields."""
        if not self.variant and component.variant:
            self.variant = component.variant
            self.add_tokens("variant", [component.variant])
            self.extend_search_text([component.variant])
        if not self.description and component.description:
            self.description = component.description
        if not self.type and component.type:
            self.type = component.type
        if not self.main_component_id and component.main_component_id:
            self.main_component_id = component.main_component_id

        new_tags = [t for t in component.tags if t not in self.tags]
        self.tags.update(dict.fromkeys(new_tags))
        self.add_tokens("tag", new_tags)
        self.extend_search_text(new_tags)

        new_snippets = [s for s in component.text_snippets if s not in self.text_snippets]
        self.text_snippets.update(dict.fromkeys(new_snippets))
        self.add_tokens("text", new_snippets)
        self.extend_search_text(new_snippets)

        self.interactions.update(dict.fromkeys(component.interactions))

    def _descriptors(self) -> list[str]:
        if self.kind == "page":
            return [f"page {len(self.screen_ids)} screens {len(self.component_ids)} components"]
        if self.kind == "screen":
            return [f"screen {len(self.component_ids)} components"]
        return ["component"]

    def freeze(self) -> IndexNode:
        descriptors = self._descriptors()
        self.add_tokens("text", descriptors)
        self.extend_search_text(descriptors)

        tokens = MappingProxyType({c: frozenset(self.tokens[c]) for c in TOKEN_CATEGORIES})
        all_tokens = frozenset().union(*tokens.values())
        return IndexNode(
            key=self.key,
            kind=self.kind,
            node_id=self.node_id,
            name=self.name,
            normalized_name=normalize_text(self.name),
            file_id=self.file_id,
            file_name=self.file_name,
            platform=self.platform,
            source=self.source,
            locations=tuple(self.locations),
            tokens=tokens,
            all_tokens=all_tokens,
            search_text=self.search_text,
            main_component_id=self.main_component_id,
            variant=self.variant,
            description=self.description,
            type=self.type,
            tags=tuple(self.tags),
            text_snippets=tuple(self.text_snippets),
            interactions=tuple(self.interactions),
            screen_count=len(self.screen_ids) if self.kind == "page" else None,
            component_count=len(self.component_ids) if self.kind != "component" else None,
        )


class IndexBuilder:
    """Accumulates export files, then publishes a frozen ``IndexData``."""

    def __init__(self) -> None:
        self._nodes: dict[str, _NodeState] = {}
        self._built = False

    def __len__(self) -> int:
        return len(self._nodes)

    def _node(
        self, kind: NodeKind, raw_id: str, name: str,
        file: ExportFile, source: IndexSource,
    ) -> _NodeState:
        key = node_key(file.file_id, kind, raw_id)
        state = self._nodes.get(key)
        if state is None:
            state = _NodeState(key, kind, raw_id, name, file, source)
            self._nodes[key] = state
        return state

    def add_file(self, file: ExportFile, source: IndexSource) -> None:
        """Traverse one export file: pages, then screens, then components."""
        if self._built:
            raise RuntimeError("Index already built; builders are single-use")
        for page in file.pages:
            self._add_page(page, file, source)

    def _add_page(self, page: ExportPage, file: ExportFile, source: IndexSource) -> None:
        page_state = None
        if page.page_id and page.page_name:
            page_state = self._node("page", page.page_id, page.page_name, file, source)
            page_state.add_location(ComponentLocation(page_id=page.page_id, page_name=page.page_name))

        for screen in page.screens:
            self._add_screen(screen, page, page_state, file, source)

    def _add_screen(
        self, screen: ExportScreen, page: ExportPage, page_state: _NodeState | None,
        file: ExportFile, source: IndexSource,
    ) -> None:
        location = ComponentLocation(
            page_id=page.page_id,
            page_name=page.page_name,
            screen_id=screen.screen_id,
            screen_name=screen.screen_name,
            hierarchy_path=screen.hierarchy_path,
        )

        screen_state = None
        if screen.screen_id and screen.screen_name:
            screen_state = self._node("screen", screen.screen_id, screen.screen_name, file, source)
            screen_state.add_location(location)
            if page_state is not None:
                page_state.screen_ids[screen.screen_id] = None

        for i, raw in enumerate(screen.components):
            try:
                component = ExportComponent.model_validate(raw)
            except ValidationError as e:
                logger.warning(
                    "%s: skipping malformed component #%d in screen %s: %s",
                    file.file_name, i, screen.screen_id, e,
                )
                continue
            if not component.component_id or not component.component_name:
                continue
            state = self._node("component", component.component_id, component.component_name, file, source)
            state.add_location(location)
            state.merge_component(component)
            if screen_state is not None:
                screen_state.component_ids[component.component_id] = None
            if page_state is not None:
                page_state.component_ids[component.component_id] = None

    def build(self) -> IndexData:
        """Freeze every node and build the inverted token map."""
        self._built = True
        nodes = tuple(state.freeze() for state in self._nodes.values())

        token_map: dict[str, set[int]] = {}
        for i, node in enumerate(nodes):
            for token in node.all_tokens:
                token_map.setdefault(token, set()).add(i)

        return IndexData(
            nodes=nodes,
            token_map=MappingProxyType({t: frozenset(ids) for t, ids in token_map.items()}),
        )


def _iter_export_files(payload: Any, source: IndexSource) -> Iterable[ExportFile]:
    """Validate a raw payload file-by-file; bad entries are logged and skipped."""
    if not isinstance(payload, dict):
        logger.warning("%s: expected a JSON object, got %s", source.file_name, type(payload).__name__)
        return
    try:
        export = ExportPayload.model_validate(payload)
    except ValidationError as e:
        logger.warning("%s: invalid export payload, skipping: %s", source.file_name, e)
        return
    if export.generated_at:
        logger.debug("%s: export generated at %s", source.file_name, export.generated_at)

    for i, raw in enumerate(export.files):
        try:
            yield ExportFile.model_validate(raw)
        except ValidationError as e:
            logger.warning("%s: skipping malformed file entry #%d: %s", source.file_name, i, e)


def build_index(
    index_dir: Path,
    sources: Iterable[IndexSource] = INDEX_SOURCES,
    loader: Loader = load_export,
) -> IndexData:
    """Read every export source under ``index_dir`` and build the index.

    A source that cannot be read, parsed or validated contributes nothing;
    the build itself never fails because of one bad source.
    """
    t0 = time.perf_counter()
    builder = IndexBuilder()

    for source in sources:
        payload = loader(index_dir / source.file_name)
        if payload is None:
            continue
        before = len(builder)
        for export_file in _iter_export_files(payload, source):
            builder.add_file(export_file, source)
        logger.debug("%s: %d new node(s)", source.file_name, len(builder) - before)

    data = builder.build()
    logger.info(
        "Figma index built: %d nodes, %d tokens (%.2fs)",
        len(data.nodes), len(data.token_map), time.perf_counter() - t0,
    )
    return data
