# smashaday/daily_challenge.py
"""
Daily challenge selection.

Ten smashes per calendar date. Within a day no word repeats and, on every
stage but the last resort, no category repeats either. Across days the
selector avoids words used in the last WORD_WINDOW challenges and categories
used in the last CATEGORY_WINDOW challenges, relaxing those windows one step
at a time when the corpus cannot satisfy them:

    (W, C) -> (W, C-1) -> ... -> (W, 0) -> (W-1, 0) -> ... -> (1, 0)
           -> (1, 0) with repeated categories allowed

Each stage only adds picks; earlier picks are never dropped.
"""
from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

import pytz
from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .store import SmashRow

logger = logging.getLogger(__name__)

# ───────── Config ─────────
TZ = pytz.timezone(os.getenv("SMASH_TZ", "UTC"))
CHALLENGE_SIZE = int(os.getenv("DAILY_CHALLENGE_SIZE", "10"))
WORD_WINDOW = int(os.getenv("DAILY_WORD_WINDOW", "4"))          # days before a word may return
CATEGORY_WINDOW = int(os.getenv("DAILY_CATEGORY_WINDOW", "2"))  # days before a category may return

class ChallengeGenerationError(RuntimeError):
    pass

def today_ymd() -> str:
    return datetime.now(TZ).strftime("%Y-%m-%d")

def check_date(ymd: str) -> str:
    try:
        datetime.strptime(ymd, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValueError(f"date must be YYYY-MM-DD, got {ymd!r}")
    return ymd

# ───────── Relaxation ─────────
@dataclass(frozen=True)
class RelaxationStage:
    word_window: int
    category_window: int
    distinct_categories: bool = True

    @property
    def label(self) -> str:
        s = f"words:{self.word_window}d categories:{self.category_window}d"
        return s if self.distinct_categories else s + " (categories may repeat)"

def relaxation_stages(word_window: int = WORD_WINDOW, category_window: int = CATEGORY_WINDOW) -> List[RelaxationStage]:
    if word_window < 0 or category_window < 0:
        raise ValueError("avoidance windows must be >= 0")
    if category_window > word_window:
        raise ValueError(f"category window ({category_window}) must not exceed word window ({word_window})")

    stages = [RelaxationStage(word_window, c) for c in range(category_window, -1, -1)]
    stages += [RelaxationStage(w, 0) for w in range(word_window - 1, 0, -1)]
    stages.append(RelaxationStage(stages[-1].word_window, 0, distinct_categories=False))
    return stages

@dataclass
class AvoidSets:
    words: Set[str] = field(default_factory=set)
    categories: Set[str] = field(default_factory=set)

    def blocks(self, smash: SmashRow) -> bool:
        return (
            smash.word1 in self.words or smash.word2 in self.words
            or smash.category1 in self.categories or smash.category2 in self.categories
        )

def build_avoid_sets(
    recent_days: Sequence[Sequence[SmashRow]],
    word_window: int,
    category_window: int,
) -> AvoidSets:
    """`recent_days` is most recent first; each entry holds one day's smashes."""
    avoid = AvoidSets()
    for day in recent_days[:word_window]:
        for s in day:
            avoid.words.update(s.words)
    for day in recent_days[:category_window]:
        for s in day:
            avoid.categories.update(s.categories)
    return avoid

# ───────── Selection ─────────
@dataclass
class Selection:
    smashes: List[SmashRow] = field(default_factory=list)
    stages: List[RelaxationStage] = field(default_factory=list)  # stage each pick came from

    @property
    def ids(self) -> List[int]:
        return [s.id for s in self.smashes]

def select_daily_smashes(
    smashes: Sequence[SmashRow],
    recent_days: Sequence[Sequence[SmashRow]] = (),
    size: int = CHALLENGE_SIZE,
    word_window: int = WORD_WINDOW,
    category_window: int = CATEGORY_WINDOW,
    rng: Optional[random.Random] = None,
) -> Selection:
    """
    Pick `size` smashes with no repeated word (and, outside the last stage, no
    repeated category). Candidates are visited in one shuffled order for the
    whole run; pass a seeded `rng` for a reproducible pick.
    """
    stages = relaxation_stages(word_window, category_window)
    if len(smashes) < size:
        raise ChallengeGenerationError(
            f"Not enough smashes in database. Found {len(smashes)}, need at least {size}."
        )

    order = sorted(smashes, key=lambda s: s.id)
    (rng or random.Random()).shuffle(order)

    sel = Selection()
    chosen: Set[int] = set()
    used_words: Set[str] = set()
    used_categories: Set[str] = set()

    for stage in stages:
        avoid = build_avoid_sets(recent_days, stage.word_window, stage.category_window)
        before = len(sel.smashes)

        for s in order:
            if len(sel.smashes) >= size:
                break
            if s.id in chosen or avoid.blocks(s):
                continue
            if s.word1 == s.word2 or s.word1 in used_words or s.word2 in used_words:
                continue
            if stage.distinct_categories and (
                s.category1 == s.category2
                or s.category1 in used_categories
                or s.category2 in used_categories
            ):
                continue

            sel.smashes.append(s)
            sel.stages.append(stage)
            chosen.add(s.id)
            used_words.update(s.words)
            used_categories.update(s.categories)

        logger.info("Stage [%s] added %d smashes (%d/%d)", stage.label, len(sel.smashes) - before, len(sel.smashes), size)
        if len(sel.smashes) >= size:
            return sel

    raise ChallengeGenerationError(
        f"Could not generate {size} unique smashes. Only found {len(sel.smashes)}"
    )

# ───────── Persistence ─────────
@dataclass
class ChallengeResult:
    id: int
    date: str
    created: bool
    smash_ids: List[int]

async def _recent_days(session: AsyncSession, ymd: str, window: int) -> List[List[SmashRow]]:
    recent = await store.list_recent_challenges(session, limit=window, before=ymd)
    ids = [i for c in recent for i in c.smash_ids]
    by_id: Dict[int, SmashRow] = {s.id: s for s in await store.get_smashes(session, ids)}
    return [[by_id[i] for i in c.smash_ids if i in by_id] for c in recent]

async def generate_daily_challenge(
    session: AsyncSession,
    ymd: Optional[str] = None,
    *,
    size: int = CHALLENGE_SIZE,
    word_window: int = WORD_WINDOW,
    category_window: int = CATEGORY_WINDOW,
    rng: Optional[random.Random] = None,
) -> ChallengeResult:
    """
    Create the challenge for `ymd` (default: today in SMASH_TZ).
    If one already exists it is returned untouched with created=False.
    """
    ymd = check_date(ymd or today_ymd())

    existing = await store.find_challenge_by_date(session, ymd)
    if existing:
        logger.info("Daily challenge for %s already exists (id=%s)", ymd, existing.id)
        return ChallengeResult(id=existing.id, date=ymd, created=False, smash_ids=existing.smash_ids)

    smashes = await store.list_smashes(session)
    recent_days = await _recent_days(session, ymd, word_window)
    logger.info("Selecting %d smashes for %s from %d (history: %d days)", size, ymd, len(smashes), len(recent_days))

    selection = select_daily_smashes(
        smashes, recent_days,
        size=size, word_window=word_window, category_window=category_window, rng=rng,
    )

    challenge_id, created = await store.insert_challenge(session, ymd, selection.ids)
    if not created:
        existing = await store.find_challenge_by_date(session, ymd)
        logger.info("Daily challenge for %s was created concurrently (id=%s)", ymd, challenge_id)
        return ChallengeResult(id=challenge_id, date=ymd, created=False, smash_ids=existing.smash_ids if existing else [])

    logger.info("Created daily challenge %s for %s", challenge_id, ymd)
    return ChallengeResult(id=challenge_id, date=ymd, created=True, smash_ids=selection.ids)

async def regenerate_daily_challenge(session: AsyncSession, ymd: str, **kwargs) -> ChallengeResult:
    """
    Replace the challenge for `ymd`. The old row is only removed if a new
    selection succeeds.
    """
    ymd = check_date(ymd)
    existing = await store.find_challenge_by_date(session, ymd)
    if existing:
        await store.delete_challenge(session, existing.id)
        logger.info("Deleted daily challenge %s for %s", existing.id, ymd)
    try:
        return await generate_daily_challenge(session, ymd, **kwargs)
    except Exception:
        await session.rollback()
        raise
