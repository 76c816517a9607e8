"""Export-file schema and the frozen records the index is built from."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

NodeKind = Literal["component", "screen", "page"]
Platform = Literal["native", "web"]
Source = Literal["library", "master"]
TokenCategory = Literal["name", "variant", "tag", "text", "path", "file"]

TOKEN_CATEGORIES: tuple[TokenCategory, ...] = ("name", "variant", "tag", "text", "path", "file")


# ── Export schema (validated at the file boundary) ──


class _ExportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def _drop_nulls(value: Any) -> Any:
    if isinstance(value, list):
        return [v for v in value if v is not None]
    return _none_to_list(value)


StrList = Annotated[list[str], BeforeValidator(_drop_nulls)]


class ExportComponent(_ExportModel):
    component_id: str | None = Field(None, alias="componentId")
    component_name: str | None = Field(None, alias="componentName")
    tags: StrList = Field(default_factory=list)
    text_snippets: StrList = Field(default_factory=list, alias="textSnippets")
    interactions: StrList = Field(default_factory=list)
    variant: str | None = None
    type: str | None = None
    main_component_id: str | None = Field(None, alias="mainComponentId")
    description: str | None = None


class ExportScreen(_ExportModel):
    """Components stay raw; the builder validates and skips them one at a time."""

    screen_id: str | None = Field(None, alias="screenId")
    screen_name: str | None = Field(None, alias="screenName")
    hierarchy_path: str | None = Field(None, alias="hierarchyPath")
    components: Annotated[list[Any], BeforeValidator(_none_to_list)] = Field(default_factory=list)


class ExportPage(_ExportModel):
    page_id: str | None = Field(None, alias="pageId")
    page_name: str | None = Field(None, alias="pageName")
    screens: Annotated[list[ExportScreen], BeforeValidator(_none_to_list)] = Field(default_factory=list)


class ExportFile(_ExportModel):
    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    platform: str | None = None
    pages: Annotated[list[ExportPage], BeforeValidator(_none_to_list)] = Field(default_factory=list)


class ExportPayload(_ExportModel):
    """Top level of one dump. Files stay raw so each is validated on its own."""

    generated_at: Any = Field(None, alias="generatedAt")
    files: Annotated[list[Any], BeforeValidator(_none_to_list)] = Field(default_factory=list)


# ── Index records ──


@dataclass(frozen=True)
class ComponentLocation:
    """Where a node was observed inside an export file."""

    page_id: str | None = None
    page_name: str | None = None
    screen_id: str | None = None
    screen_name: str | None = None
    hierarchy_path: str | None = None

    @property
    def label(self) -> str | None:
        parts = [p for p in (self.page_name, self.screen_name) if p]
        return " / ".join(parts) or None


@dataclass(frozen=True)
class IndexNode:
    """A search-ready page, screen or component. Immutable once published."""

    key: str
    kind: NodeKind
    node_id: str
    name: str
    normalized_name: str
    file_id: str
    file_name: str
    platform: Platform
    source: Source
    locations: tuple[ComponentLocation, ...]
    tokens: Mapping[TokenCategory, frozenset[str]]
    all_tokens: frozenset[str]
    search_text: str
    main_component_id: str | None = None
    variant: str | None = None
    description: str | None = None
    type: str | None = None
    tags: tuple[str, ...] = ()
    text_snippets: tuple[str, ...] = ()
    interactions: tuple[str, ...] = ()
    screen_count: int | None = None
    component_count: int | None = None


@dataclass(frozen=True)
class IndexData:
    """The published index: node list plus inverted token map."""

    nodes: tuple[IndexNode, ...]
    token_map: Mapping[str, frozenset[int]]

    def candidates_for(self, token: str) -> frozenset[int]:
        return self.token_map.get(token, frozenset())


# ── Search results ──


@dataclass
class FigmaIndexMatch:
    """A scored projection of an IndexNode."""

    key: str
    kind: NodeKind
    node_id: str
    name: str
    file_id: str
    file_name: str
    platform: Platform
    source: Source
    locations: list[ComponentLocation]
    score: float
    matched_tokens: list[str]
    main_component_id: str | None = None
    variant: str | None = None
    description: str | None = None
    type: str | None = None
    tags: list[str] = field(default_factory=list)
    text_snippets: list[str] = field(default_factory=list)
    interactions: list[str] = field(default_factory=list)
    screen_count: int | None = None
    component_count: int | None = None

    @classmethod
    def from_node(cls, node: IndexNode, score: float, matched_tokens: list[str]) -> FigmaIndexMatch:
        return cls(
            key=node.key,
            kind=node.kind,
            node_id=node.node_id,
            name=node.name,
            file_id=node.file_id,
            file_name=node.file_name,
            platform=node.platform,
            source=node.source,
            locations=list(node.locations),
            score=score,
            matched_tokens=matched_tokens,
            main_component_id=node.main_component_id,
            variant=node.variant,
            description=node.description,
            type=node.type,
            tags=list(node.tags),
            text_snippets=list(node.text_snippets),
            interactions=list(node.interactions),
            screen_count=node.screen_count,
            component_count=node.component_count,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SearchOutcome:
    """Ranked matches for one query, with the tokens and hints actually used."""

    matches: list[FigmaIndexMatch] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)
    platform_hint: Platform | None = None
    source_hint: Source | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "tokens": list(self.tokens),
            "platform_hint": self.platform_hint,
            "source_hint": self.source_hint,
        }
