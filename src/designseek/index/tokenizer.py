"""Text normalization and tokenization for the design-system index."""

from __future__ import annotations

import re
import unicodedata

# Anything that is not a letter or digit. ``\w`` also admits underscores,
# which are separators here.
_NON_ALNUM = re.compile(r"[\W_]+")

STOPWORDS: frozenset[str] = frozenset({
    # articles / conjunctions
    "and", "or", "the", "an", "but", "nor", "so", "if", "then",
    # prepositions
    "to", "of", "for", "in", "on", "with", "without", "by", "as", "at",
    "from", "into", "onto", "about", "over", "under", "between", "inside",
    # pronouns / determiners
    "this", "that", "these", "those", "it", "its", "me", "my", "mine",
    "we", "us", "our", "you", "your", "he", "she", "him", "her", "they",
    "them", "their", "some", "any",
    # auxiliaries
    "is", "are", "be", "was", "were", "been", "do", "does", "did", "can",
    "could", "should", "would", "will", "have", "has", "had",
    # interrogatives
    "what", "how", "where", "which", "who", "why", "when",
    # generic domain words
    "component", "components", "node", "nodes", "screen", "screens",
})


def normalize_text(text: str | None) -> str:
    """Lowercase, strip diacritics and collapse non-alphanumerics to single spaces."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    # compatibility forms can decompose to capitals (e.g. U+210C), hence the second lower()
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()
    return " ".join(_NON_ALNUM.sub(" ", stripped).split())


def tokenize(text: str | None) -> list[str]:
    """Split normalized text into search tokens.

    Tokens of a single character and stopwords are dropped. Order and
    duplicates are preserved.
    """
    normalized = normalize_text(text)
    if not normalized:
        return []
    return [
        token for token in normalized.split(" ")
        if len(token) > 1 and token not in STOPWORDS
    ]
