# smashaday/smash_compiler.py
"""
Smash compiler: promotes pending smashes into the canonical `smashes` table.

Pass 1 (status="pending"):
  - both words enriched -> insert smash if its merged text is new, drop the pending row
  - otherwise           -> insert smash with whatever clues exist, mark row "compiled"
Pass 2 (status="compiled"):
  - both words enriched -> overwrite the smash clues, drop the pending row
  - otherwise           -> refresh clues that changed, leave the row for a later run

Every row is committed on its own, so a page can be retried after a partial
failure without duplicating work.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .store import PendingRow, WordRow

logger = logging.getLogger(__name__)

# ───────── Config ─────────
PAGE_SIZE = int(os.getenv("COMPILER_PAGE_SIZE", "200"))

@dataclass
class CompileStats:
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    failed: int = 0

    def add(self, other: "CompileStats") -> None:
        self.processed += other.processed
        self.inserted += other.inserted
        self.updated += other.updated
        self.deleted += other.deleted
        self.failed += other.failed

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

@dataclass
class CompilePage:
    stats: CompileStats
    continue_cursor: Optional[str] = None

def _smash_record(pending: PendingRow, w1: WordRow, w2: WordRow) -> dict:
    return {
        "word1": pending.word1,
        "category1": pending.category1,
        "word2": pending.word2,
        "category2": pending.category2,
        "smash": pending.smash,
        "clue1": w1.clue,
        "clue2": w2.clue,
    }

async def _compile_row(
    session: AsyncSession,
    status: str,
    pending: PendingRow,
    cache: Dict[str, WordRow],
    stats: CompileStats,
) -> None:
    w1 = cache.get(pending.word1)
    w2 = cache.get(pending.word2)

    if w1 is None or w2 is None:
        logger.error(
            "Missing word data for pending smash %s: word1=%s word2=%s",
            pending.id, w1 is not None, w2 is not None,
        )
        await store.set_pending_status(session, pending.id, "failed")
        stats.failed += 1
        return

    both_enriched = w1.clue_status == "enriched" and w2.clue_status == "enriched"

    if status == "pending":
        existing = await store.find_smash_by_merged_text(session, pending.smash)
        if existing is None:
            await store.insert_smash(session, _smash_record(pending, w1, w2))
            stats.inserted += 1
            logger.info("Inserted smash %r (%s + %s)", pending.smash, pending.word1, pending.word2)
        else:
            logger.info("Smash already exists: %r", pending.smash)

        if both_enriched:
            await store.delete_pending(session, pending.id)
            stats.deleted += 1
        else:
            await store.set_pending_status(session, pending.id, "compiled", clue1=w1.clue, clue2=w2.clue)
        return

    # status == "compiled": the smash was inserted on an earlier pass
    if not both_enriched:
        # a fallback clue may have landed since the smash was inserted
        if (pending.clue1, pending.clue2) != (w1.clue, w2.clue):
            existing = await store.find_smash_by_merged_text(session, pending.smash)
            if existing is not None:
                await store.update_smash_clues(session, existing.id, w1.clue, w2.clue)
                stats.updated += 1
            await store.set_pending_status(session, pending.id, "compiled", clue1=w1.clue, clue2=w2.clue)
        return

    existing = await store.find_smash_by_merged_text(session, pending.smash)
    if existing is None:
        logger.error("Expected smash not found for compiled pending %s (%r)", pending.id, pending.smash)
        await store.set_pending_status(session, pending.id, "failed")
        stats.failed += 1
        return

    await store.update_smash_clues(session, existing.id, w1.clue, w2.clue)
    stats.updated += 1
    await store.delete_pending(session, pending.id)
    stats.deleted += 1
    logger.info("Finalized smash %r with enriched clues", pending.smash)

async def compile_page(
    session: AsyncSession,
    status: str,
    cursor: Optional[str] = None,
    limit: int = PAGE_SIZE,
) -> CompilePage:
    """Process one page of pending smashes with `status` ("pending" or "compiled")."""
    if status not in ("pending", "compiled"):
        raise ValueError(f"status must be 'pending' or 'compiled', got {status!r}")

    rows, next_cursor = await store.list_pending(session, status, cursor, limit)
    logger.info("compile_page status=%s cursor=%s: %d rows", status, cursor, len(rows))

    stats = CompileStats()
    if not rows:
        return CompilePage(stats=stats, continue_cursor=None)

    # one lookup per distinct word for the whole page
    wanted = {r.word1 for r in rows} | {r.word2 for r in rows}
    cache = await store.get_words(session, wanted)

    for pending in rows:
        stats.processed += 1
        row_stats = CompileStats()
        try:
            await _compile_row(session, status, pending, cache, row_stats)
            await session.commit()
            stats.add(row_stats)
        except Exception:
            logger.exception("Error processing pending smash %s", pending.id)
            await session.rollback()
            stats.failed += 1
            try:
                marked = await store.set_pending_status(session, pending.id, "failed")
                await session.commit()
                if not marked:
                    logger.warning("Pending smash %s vanished before it could be marked failed", pending.id)
            except Exception:
                await session.rollback()
                logger.exception("Failed to mark pending smash %s as failed", pending.id)

    logger.info(
        "compile_page done: processed=%d inserted=%d updated=%d deleted=%d failed=%d",
        stats.processed, stats.inserted, stats.updated, stats.deleted, stats.failed,
    )
    return CompilePage(stats=stats, continue_cursor=next_cursor)

async def compile_all(session: AsyncSession, limit: int = PAGE_SIZE) -> CompileStats:
    """Run every "pending" page, then every "compiled" page, until the cursor runs out."""
    total = CompileStats()
    for status in ("pending", "compiled"):
        cursor: Optional[str] = None
        while True:
            page = await compile_page(session, status, cursor, limit)
            total.add(page.stats)
            cursor = page.continue_cursor
            if not cursor:
                break

    logger.info(
        "compile_all done: processed=%d inserted=%d updated=%d deleted=%d failed=%d",
        total.processed, total.inserted, total.updated, total.deleted, total.failed,
    )
    return total
