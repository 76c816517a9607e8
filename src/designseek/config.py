"""Configuration loaded from environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# Paths
FIGMA_INDEX_DIR: Path = Path(os.getenv("FIGMA_INDEX_DIR", "./figma_index"))

# API keys
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")

# Models
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")

# Server
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Search / enrichment tuning
ENRICH_MIN_SCORE: float = float(os.getenv("ENRICH_MIN_SCORE", "18"))
ENRICH_MIN_COVERAGE: float = float(os.getenv("ENRICH_MIN_COVERAGE", "0.6"))
CHAT_SEARCH_LIMIT: int = int(os.getenv("CHAT_SEARCH_LIMIT", "5"))
PROMPT_MATCH_LIMIT: int = int(os.getenv("PROMPT_MATCH_LIMIT", "3"))
