# smashaday/smash_gen.py
"""
Smash generator.

Finds every new cross-category pair of corpus words where the end of the
earlier word (newest-first order) overlaps the start of the later one by
MIN_AFFIX..MAX_AFFIX characters, and queues the merged strings as pending
smashes.

    "electric car" + "cardiff castle"  ->  "electric cardiff castle"  (overlap "car")
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .store import WordRow
from .words import MIN_AFFIX, MAX_AFFIX, affixes, pair_key

logger = logging.getLogger(__name__)

@dataclass
class GenerationStats:
    words: int = 0
    existing_pairs: int = 0
    pairs_checked: int = 0
    same_category_skipped: int = 0
    existing_pair_skipped: int = 0
    no_overlap: int = 0
    generated: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

class OverlapIndex:
    """prefix -> set of words starting with it, for every prefix length in [MIN_AFFIX, MAX_AFFIX]."""

    def __init__(self, words: Sequence[str] = ()):
        self._by_prefix: Dict[str, Set[str]] = {}
        for w in words:
            self.add(w)

    def add(self, word: str) -> None:
        for _n, prefix in affixes(word):
            self._by_prefix.setdefault(prefix, set()).add(word)

    def starting_with(self, prefix: str) -> Set[str]:
        return self._by_prefix.get(prefix, set())

    def __len__(self) -> int:
        return len(self._by_prefix)

def find_overlap(w1: str, w2: str, index: OverlapIndex) -> Optional[Tuple[int, str]]:
    """
    Longest n where the last n characters of `w1` start `w2`.
    Returns (n, w1 + w2[n:]) or None. Only this direction is tried.
    """
    if w1 == w2:
        return None
    for n in range(MAX_AFFIX, MIN_AFFIX - 1, -1):
        if len(w1) < n:
            continue
        if w2 in index.starting_with(w1[-n:]):
            return n, w1 + w2[n:]
    return None

def find_smash_candidates(
    words: Sequence[WordRow],
    existing_pairs: Set[str],
) -> Tuple[List[dict], GenerationStats]:
    """
    Pure part of the generator: scan every pair i<j of `words` (already in a
    stable order) and return the new candidates plus counters.
    `existing_pairs` is read, never mutated.
    """
    stats = GenerationStats(words=len(words), existing_pairs=len(existing_pairs))
    index = OverlapIndex([w.word for w in words])
    candidates: List[dict] = []

    for i, a in enumerate(words):
        for b in words[i + 1:]:
            stats.pairs_checked += 1

            if a.category == b.category:
                stats.same_category_skipped += 1
                continue

            hit = find_overlap(a.word, b.word, index)
            if hit is None:
                stats.no_overlap += 1
                continue

            _n, merged = hit
            if pair_key(a.word, b.word) in existing_pairs:
                stats.existing_pair_skipped += 1
                continue

            candidates.append({
                "word1": a.word,
                "category1": a.category,
                "word2": b.word,
                "category2": b.category,
                "smash": merged,
            })

    stats.generated = len(candidates)
    return candidates, stats

async def generate_smashes(session: AsyncSession) -> GenerationStats:
    """Read the corpus snapshot, find new smashes, queue them as pending and commit."""
    logger.info("Starting generate_smashes")

    words = await store.list_words(session)
    existing_pairs = await store.existing_word_pairs(session)
    logger.info("Fetched %d words and %d existing smash pairs", len(words), len(existing_pairs))

    candidates, stats = find_smash_candidates(words, existing_pairs)

    logger.info(
        "Pair scan: checked=%d same_category=%d existing=%d no_overlap=%d generated=%d",
        stats.pairs_checked, stats.same_category_skipped, stats.existing_pair_skipped,
        stats.no_overlap, stats.generated,
    )

    if candidates:
        await store.enqueue_pending(session, candidates)
        await session.commit()
        logger.info("Wrote %d candidates to pending_smashes", len(candidates))

    return stats
