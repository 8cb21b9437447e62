# smashaday/clue_enrichment.py
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .clue_client import ClueClient

logger = logging.getLogger(__name__)

CONCURRENCY = int(os.getenv("CLUE_CONCURRENCY", "5"))

@dataclass
class EnrichmentStats:
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

async def enrich_pending_words(
    session: AsyncSession,
    client: ClueClient,
    concurrency: int = CONCURRENCY,
    dry_run: bool = False,
) -> EnrichmentStats:
    """
    Clue every word referenced by a pending smash that is still clueStatus=pending.
    Lookups run concurrently (at most `concurrency` in flight); DB writes happen
    afterwards on this session, one word at a time.
    """
    words = await store.pending_words(session, "pending")
    if dry_run:
        words = words[:1]
    stats = EnrichmentStats(total=len(words))
    logger.info("Found %d unique words in pending smashes%s", len(words), " (DRY RUN)" if dry_run else "")

    rows = await store.get_words(session, words)
    todo = []
    for w in words:
        row = rows.get(w)
        if row is None:
            logger.error("Word %r not found in corpus", w)
            stats.failed += 1
        elif row.clue_status != "pending":
            stats.skipped += 1
        else:
            todo.append(row)

    sem = asyncio.Semaphore(max(1, concurrency))

    async def lookup(word: str, category: str) -> Tuple[str, Optional[Tuple[str, bool]], Optional[Exception]]:
        async with sem:
            try:
                return word, await client.clue_for(word, category), None
            except Exception as e:  # one word must not sink the batch
                return word, None, e

    results = await asyncio.gather(*(lookup(r.word, r.category) for r in todo))

    for word, outcome, err in results:
        if outcome is None:
            logger.error("Failed to clue %r: %s", word, err)
            stats.failed += 1
            if not dry_run:
                await store.set_word_clue(session, word, "", "failed")
            continue

        clue, enriched = outcome
        status = "enriched" if enriched else "fallback"
        stats.succeeded += 1
        if dry_run:
            logger.info("DRY RUN: would set %r -> %r (%s)", word, clue, status)
        else:
            await store.set_word_clue(session, word, clue, status)
            logger.info("Updated %r with clueStatus=%s", word, status)

    if not dry_run:
        await session.commit()

    logger.info(
        "Clue generation complete: %d succeeded, %d failed, %d skipped",
        stats.succeeded, stats.failed, stats.skipped,
    )
    return stats
