"""Decide whether the top index match is confident enough to inject into the prompt."""

from __future__ import annotations

from dataclasses import dataclass, field

from designseek import config
from designseek.index.models import Platform, SearchOutcome, Source
from designseek.index.search import format_matches_for_prompt


@dataclass(frozen=True)
class EnrichmentPolicy:
    """Both thresholds must pass; there is no soft zone."""

    minimum_score: float = 18.0
    minimum_coverage: float = 0.6

    @classmethod
    def from_config(cls) -> EnrichmentPolicy:
        return cls(
            minimum_score=config.ENRICH_MIN_SCORE,
            minimum_coverage=config.ENRICH_MIN_COVERAGE,
        )


@dataclass(frozen=True)
class EnrichmentTarget:
    file_id: str
    node_id: str
    component_name: str
    platform: Platform
    source: Source
    score: float
    matched_tokens: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EnrichmentDecision:
    should_auto_enrich: bool
    reason: str
    target: EnrichmentTarget | None = None


def decide_enrichment(
    outcome: SearchOutcome | None,
    policy: EnrichmentPolicy | None = None,
) -> EnrichmentDecision:
    """Gate automatic context injection on the top match.

    Only components qualify; screens and pages are informational. The top
    score must reach ``minimum_score`` and the share of query tokens it
    matched must reach ``minimum_coverage``.
    """
    policy = policy or EnrichmentPolicy()

    if outcome is None or not outcome.matches:
        return EnrichmentDecision(False, "no matches")

    top = outcome.matches[0]
    if top.kind != "component":
        return EnrichmentDecision(False, f"top match is a {top.kind}, skipping auto-enrichment")

    coverage = len(top.matched_tokens) / len(outcome.tokens) if outcome.tokens else 1.0

    if top.score < policy.minimum_score:
        return EnrichmentDecision(
            False, f"top score {top.score:.2f} is below threshold {policy.minimum_score:g}",
        )
    if coverage < policy.minimum_coverage:
        return EnrichmentDecision(
            False, f"token coverage {coverage:.2f} is below threshold {policy.minimum_coverage:g}",
        )

    return EnrichmentDecision(
        True,
        "high-confidence index match",
        EnrichmentTarget(
            file_id=top.file_id,
            node_id=top.node_id,
            component_name=top.name,
            platform=top.platform,
            source=top.source,
            score=top.score,
            matched_tokens=list(top.matched_tokens),
        ),
    )


def build_index_context(
    outcome: SearchOutcome,
    decision: EnrichmentDecision,
    limit: int = 3,
) -> str | None:
    """Prompt block: the formatted summary, led by a PRIMARY CANDIDATE line when enriched."""
    summary = format_matches_for_prompt(outcome, limit=limit)
    if not decision.should_auto_enrich or decision.target is None:
        return summary

    target = decision.target
    primary = f"PRIMARY CANDIDATE -> node {target.node_id} ({target.component_name})"
    return f"{primary}\n{summary}" if summary else primary
