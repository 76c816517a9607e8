#!/usr/bin/env python3
"""CLI: Build the Figma export index and run a search against it."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path

# Ensure the package is importable when running as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from designseek import config
from designseek.enrichment import EnrichmentPolicy, build_index_context, decide_enrichment
from designseek.index.builder import build_index
from designseek.index.cache import IndexCache
from designseek.index.search import FigmaIndexSearcher, build_figma_node_url


def main() -> None:
    parser = argparse.ArgumentParser(description="Search the design-system index")
    parser.add_argument("query", type=str, help="Free-text query, e.g. 'native navbar'")
    parser.add_argument(
        "--index-dir",
        type=Path,
        default=None,
        help="Directory holding the *_index.json exports (default: FIGMA_INDEX_DIR)",
    )
    parser.add_argument(
        "--platform",
        choices=["native", "web", "both"],
        default=None,
        help="Platform filter (default: detected from the query)",
    )
    parser.add_argument(
        "--source",
        choices=["library", "master", "both"],
        default=None,
        help="Source filter (default: detected from the query)",
    )
    parser.add_argument("--limit", type=int, default=10, help="Max matches (default: 10)")
    parser.add_argument("--json", action="store_true", help="Print the raw outcome as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)-5s [%(name)s] %(message)s",
    )

    index_dir = args.index_dir or config.FIGMA_INDEX_DIR
    if not index_dir.is_dir():
        print(f"Error: index dir {index_dir} is not a directory.", file=sys.stderr)
        print("Set FIGMA_INDEX_DIR in .env or pass --index-dir.", file=sys.stderr)
        sys.exit(1)

    start = time.time()
    cache = IndexCache(lambda: build_index(index_dir))
    data = cache.get()
    print(f"Index: {len(data.nodes)} nodes, {len(data.token_map)} tokens ({time.time() - start:.2f}s)")

    outcome = FigmaIndexSearcher(cache).search(
        args.query, platform=args.platform, source=args.source, limit=args.limit,
    )
    decision = decide_enrichment(outcome, EnrichmentPolicy.from_config())

    if args.json:
        print(json.dumps({**outcome.to_dict(), "enrichment": asdict(decision)}, indent=2))
        return

    print(f"Tokens: {outcome.tokens}  platform={outcome.platform_hint}  source={outcome.source_hint}")
    if not outcome.matches:
        print("\nNo matches.")
        return

    print()
    for i, m in enumerate(outcome.matches, 1):
        variant = f" ({m.variant})" if m.variant else ""
        print(f"  {i:>2}. [{m.score:6.2f}] {m.kind:<9} {m.name}{variant}")
        print(f"      {m.platform}/{m.source}  {m.file_name}  matched={m.matched_tokens}")
        print(f"      {build_figma_node_url(m.file_id, m.node_id)}")

    print("\nPrompt context:")
    print(build_index_context(outcome, decision, config.PROMPT_MATCH_LIMIT))
    verdict = "yes" if decision.should_auto_enrich else "no"
    print(f"\nAuto-enrich: {verdict} ({decision.reason})")


if __name__ == "__main__":
    main()
