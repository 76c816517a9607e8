"""Chat turn handling: pre-chat index search, enrichment, streamed reply."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from designseek import config
from designseek.agent.prompts import build_system_prompt
from designseek.agent.provider import GenerationProvider
from designseek.enrichment import (
    EnrichmentDecision,
    EnrichmentPolicy,
    build_index_context,
    decide_enrichment,
)
from designseek.index.models import SearchOutcome
from designseek.index.search import FigmaIndexSearcher
from designseek.streaming import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class ChatTurn:
    role: Literal["user", "assistant"]
    text: str


@dataclass
class ChatContext:
    """What the index contributed to one chat turn."""

    message: str
    outcome: SearchOutcome | None
    decision: EnrichmentDecision
    index_summary: str | None


def _to_contents(history: Sequence[ChatTurn], message: str) -> list[dict[str, Any]]:
    contents = [
        {"role": "model" if turn.role == "assistant" else "user", "parts": [{"text": turn.text}]}
        for turn in history
        if turn.text
    ]
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


class ChatService:
    """Grounds a chat turn in the design-system index and streams the reply."""

    def __init__(
        self,
        searcher: FigmaIndexSearcher,
        provider: GenerationProvider,
        policy: EnrichmentPolicy | None = None,
        search_limit: int | None = None,
        prompt_limit: int | None = None,
    ) -> None:
        self._searcher = searcher
        self._provider = provider
        self._policy = policy or EnrichmentPolicy.from_config()
        self._search_limit = search_limit or config.CHAT_SEARCH_LIMIT
        self._prompt_limit = prompt_limit or config.PROMPT_MATCH_LIMIT

    def prepare(self, message: str) -> ChatContext:
        """Search the index for the message and decide on enrichment.

        A failing search only costs the turn its index context.
        """
        message = message.strip()
        outcome: SearchOutcome | None = None
        try:
            outcome = self._searcher.search(message, limit=self._search_limit)
        except Exception:
            logger.warning("Pre-chat index search failed", exc_info=True)

        decision = decide_enrichment(outcome, self._policy)
        summary = build_index_context(outcome, decision, self._prompt_limit) if outcome else None

        if outcome and outcome.matches:
            logger.info(
                "Index matches: %s",
                [(m.node_id, m.name, m.kind, round(m.score, 2)) for m in outcome.matches[:self._prompt_limit]],
            )
        if decision.should_auto_enrich and decision.target:
            logger.info(
                "Enrichment trigger: node %s (%s, %s) score=%.2f",
                decision.target.node_id, decision.target.component_name,
                decision.target.platform, decision.target.score,
            )
        else:
            logger.debug("No enrichment: %s", decision.reason)

        return ChatContext(message=message, outcome=outcome, decision=decision, index_summary=summary)

    def generate(
        self,
        context: ChatContext,
        history: Sequence[ChatTurn] = (),
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        """Stream the assistant reply for a prepared turn."""
        yield from self._provider.stream(
            _to_contents(history, context.message),
            system=build_system_prompt(context.index_summary),
            cancel_token=cancel_token,
        )
