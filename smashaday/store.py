# smashaday/store.py
"""
Data access for the smash pipelines.

Every read returns plain dataclass snapshots rather than live ORM rows:
the compiler commits (and sometimes rolls back) row by row, and an expired
ORM instance cannot be lazily refreshed under an AsyncSession.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Word, PendingSmash, Smash, DailyChallenge
from .words import pair_key, sanitize_word_key

# ───────── Snapshots ─────────
@dataclass(frozen=True)
class WordRow:
    word: str
    category: str
    clue: str = ""
    clue_status: str = "pending"

@dataclass(frozen=True)
class PendingRow:
    id: int
    word1: str
    category1: str
    word2: str
    category2: str
    smash: str
    status: str
    clue1: Optional[str] = None
    clue2: Optional[str] = None

@dataclass(frozen=True)
class SmashRow:
    id: int
    word1: str
    word2: str
    category1: str
    category2: str
    smash: str
    clue1: str = ""
    clue2: str = ""

    @property
    def words(self) -> Tuple[str, str]:
        return (self.word1, self.word2)

    @property
    def categories(self) -> Tuple[str, str]:
        return (self.category1, self.category2)

@dataclass(frozen=True)
class ChallengeRow:
    id: int
    date: str
    smash_ids: List[int]

def _word_row(w: Word) -> WordRow:
    return WordRow(word=w.word, category=w.category, clue=w.clue or "", clue_status=w.clue_status)

def _pending_row(p: PendingSmash) -> PendingRow:
    return PendingRow(
        id=p.id, word1=p.word1, category1=p.category1, word2=p.word2, category2=p.category2,
        smash=p.smash, status=p.status, clue1=p.clue1, clue2=p.clue2,
    )

def _smash_row(s: Smash) -> SmashRow:
    return SmashRow(
        id=s.id, word1=s.word1, word2=s.word2, category1=s.category1, category2=s.category2,
        smash=s.smash, clue1=s.clue1 or "", clue2=s.clue2 or "",
    )

def _challenge_row(c: DailyChallenge) -> ChallengeRow:
    return ChallengeRow(id=c.id, date=c.date, smash_ids=list(c.smash_ids or []))

# ───────── Words ─────────
async def list_words(session: AsyncSession) -> List[WordRow]:
    """Whole corpus, newest first."""
    res = await session.execute(select(Word).order_by(Word.created_at.desc(), Word.id.desc()))
    return [_word_row(w) for w in res.scalars()]

async def get_word(session: AsyncSession, word: str) -> Optional[WordRow]:
    res = await session.execute(select(Word).where(Word.word == word))
    w = res.scalar_one_or_none()
    return _word_row(w) if w else None

async def get_words(session: AsyncSession, words: Iterable[str]) -> Dict[str, WordRow]:
    keys = list(set(words))
    if not keys:
        return {}
    res = await session.execute(select(Word).where(Word.word.in_(keys)))
    return {w.word: _word_row(w) for w in res.scalars()}

async def add_words(session: AsyncSession, category: str, words: Sequence[str]) -> None:
    session.add_all([Word(word=w, category=category, clue="", clue_status="pending") for w in words])
    await session.flush()

async def set_word_clue(session: AsyncSession, word: str, clue: str, clue_status: str) -> None:
    await session.execute(update(Word).where(Word.word == word).values(clue=clue, clue_status=clue_status))

async def insert_words(session: AsyncSession, category: str, words: Iterable[str]) -> Dict[str, int]:
    """
    Add a batch of raw words for one category. Keys are sanitized; empties,
    in-batch duplicates and words already in the corpus are skipped.
    """
    category = (category or "").strip()
    if not category:
        raise ValueError("category must not be empty")

    seen: Set[str] = set()
    fresh: List[str] = []
    skipped = 0
    for raw in words:
        key = sanitize_word_key(str(raw))
        if not key or key in seen:
            skipped += 1
            continue
        seen.add(key)
        fresh.append(key)

    existing = await get_words(session, fresh)
    to_insert = [w for w in fresh if w not in existing]
    skipped += len(fresh) - len(to_insert)

    await add_words(session, category, to_insert)
    await session.commit()
    return {"inserted": len(to_insert), "skipped": skipped}

# ───────── Pair existence ─────────
async def existing_word_pairs(session: AsyncSession) -> Set[str]:
    """Sorted "a|b" keys over canonical smashes and pending rows of any status."""
    pairs: Set[str] = set()
    for model in (Smash, PendingSmash):
        res = await session.execute(select(model.word1, model.word2))
        for w1, w2 in res.all():
            pairs.add(pair_key(w1, w2))
    return pairs

# ───────── Pending queue ─────────
async def enqueue_pending(session: AsyncSession, candidates: Sequence[dict]) -> None:
    session.add_all([
        PendingSmash(
            word1=c["word1"], category1=c["category1"],
            word2=c["word2"], category2=c["category2"],
            smash=c["smash"], status="pending",
        )
        for c in candidates
    ])
    await session.flush()

async def list_pending(
    session: AsyncSession,
    status: str,
    cursor: Optional[str] = None,
    page_size: int = 200,
) -> Tuple[List[PendingRow], Optional[str]]:
    """
    One page of pending rows with the given status.
    The cursor is opaque to callers; None means the queue is exhausted.
    """
    stmt = select(PendingSmash).where(PendingSmash.status == status)
    if cursor:
        stmt = stmt.where(PendingSmash.id > int(cursor))
    stmt = stmt.order_by(PendingSmash.id).limit(page_size + 1)
    res = await session.execute(stmt)
    rows = [_pending_row(p) for p in res.scalars()]

    next_cursor = None
    if len(rows) > page_size:
        rows = rows[:page_size]
        next_cursor = str(rows[-1].id)
    return rows, next_cursor

async def count_pending(session: AsyncSession, status: Optional[str] = None) -> int:
    stmt = select(func.count()).select_from(PendingSmash)
    if status:
        stmt = stmt.where(PendingSmash.status == status)
    return int((await session.execute(stmt)).scalar_one())

async def pending_words(session: AsyncSession, status: str = "pending") -> List[str]:
    """Distinct words referenced by pending rows, in first-seen order."""
    res = await session.execute(
        select(PendingSmash.word1, PendingSmash.word2)
        .where(PendingSmash.status == status)
        .order_by(PendingSmash.id)
    )
    out: Dict[str, None] = {}
    for w1, w2 in res.all():
        out.setdefault(w1)
        out.setdefault(w2)
    return list(out)

async def delete_pending(session: AsyncSession, pending_id: int) -> None:
    await session.execute(delete(PendingSmash).where(PendingSmash.id == pending_id))

async def set_pending_status(
    session: AsyncSession,
    pending_id: int,
    status: str,
    clue1: Optional[str] = None,
    clue2: Optional[str] = None,
) -> bool:
    values: dict = {"status": status}
    if clue1 is not None:
        values["clue1"] = clue1
    if clue2 is not None:
        values["clue2"] = clue2
    res = await session.execute(update(PendingSmash).where(PendingSmash.id == pending_id).values(**values))
    return res.rowcount > 0

# ───────── Canonical smashes ─────────
async def find_smash_by_merged_text(session: AsyncSession, smash: str) -> Optional[SmashRow]:
    res = await session.execute(select(Smash).where(Smash.smash == smash))
    s = res.scalar_one_or_none()
    return _smash_row(s) if s else None

async def insert_smash(session: AsyncSession, record: dict) -> int:
    row = Smash(
        word1=record["word1"], word2=record["word2"],
        category1=record["category1"], category2=record["category2"],
        smash=record["smash"], clue1=record.get("clue1") or "", clue2=record.get("clue2") or "",
    )
    session.add(row)
    await session.flush()
    return row.id

async def update_smash_clues(session: AsyncSession, smash_id: int, clue1: str, clue2: str) -> None:
    await session.execute(update(Smash).where(Smash.id == smash_id).values(clue1=clue1, clue2=clue2))

async def list_smashes(session: AsyncSession) -> List[SmashRow]:
    res = await session.execute(select(Smash).order_by(Smash.id))
    return [_smash_row(s) for s in res.scalars()]

async def get_smashes(session: AsyncSession, ids: Sequence[int]) -> List[SmashRow]:
    """Smashes for `ids`, in the order given; unknown ids are dropped."""
    if not ids:
        return []
    res = await session.execute(select(Smash).where(Smash.id.in_(list(set(ids)))))
    by_id = {s.id: _smash_row(s) for s in res.scalars()}
    return [by_id[i] for i in ids if i in by_id]

# ───────── Daily challenges ─────────
async def find_challenge_by_date(session: AsyncSession, ymd: str) -> Optional[ChallengeRow]:
    res = await session.execute(select(DailyChallenge).where(DailyChallenge.date == ymd))
    c = res.scalar_one_or_none()
    return _challenge_row(c) if c else None

async def list_recent_challenges(
    session: AsyncSession,
    limit: int,
    before: Optional[str] = None,
) -> List[ChallengeRow]:
    """Most recent first. `before` excludes that date and anything later."""
    if limit <= 0:
        return []
    stmt = select(DailyChallenge)
    if before:
        stmt = stmt.where(DailyChallenge.date < before)
    stmt = stmt.order_by(DailyChallenge.date.desc()).limit(limit)
    res = await session.execute(stmt)
    return [_challenge_row(c) for c in res.scalars()]

async def insert_challenge(session: AsyncSession, ymd: str, smash_ids: Sequence[int]) -> Tuple[int, bool]:
    """
    Insert today's row; first writer wins.
    Returns (id, created) - created is False when another writer got there first.
    """
    row = DailyChallenge(date=ymd, smash_ids=list(smash_ids))
    session.add(row)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = await find_challenge_by_date(session, ymd)
        if existing is None:
            raise
        return existing.id, False
    return row.id, True

async def delete_challenge(session: AsyncSession, challenge_id: int) -> None:
    await session.execute(delete(DailyChallenge).where(DailyChallenge.id == challenge_id))

async def challenge_number(session: AsyncSession, ymd: str) -> int:
    """1-based position of the challenge for `ymd` among all challenges by date; 0 if absent."""
    if await find_challenge_by_date(session, ymd) is None:
        return 0
    res = await session.execute(
        select(func.count()).select_from(DailyChallenge).where(DailyChallenge.date <= ymd)
    )
    return int(res.scalar_one())
