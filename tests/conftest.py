"""Shared fixtures: an in-memory SQLite database per test."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from smashaday import models, store
from smashaday.db_pg import Base


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def add_word(session):
    """add_word("batman", "superheroes", clue="...", status="enriched")"""
    async def _add(word, category, clue="", status="pending"):
        session.add(models.Word(word=word, category=category, clue=clue, clue_status=status))
        await session.commit()
    return _add


@pytest.fixture
def add_pending(session):
    async def _add(word1, category1, word2, category2, smash):
        await store.enqueue_pending(session, [{
            "word1": word1, "category1": category1,
            "word2": word2, "category2": category2,
            "smash": smash,
        }])
        await session.commit()
    return _add


@pytest.fixture
def add_smashes(session):
    """Insert n smashes with unique words and categories (or categories from `categories`)."""
    async def _add(n, categories=None, prefix="w"):
        ids = []
        for i in range(n):
            if categories:
                c1 = categories[i % len(categories)]
                c2 = categories[(i + 1) % len(categories)]
            else:
                c1, c2 = f"{prefix}cat{i}a", f"{prefix}cat{i}b"
            ids.append(await store.insert_smash(session, {
                "word1": f"{prefix}{i}a", "word2": f"{prefix}{i}b",
                "category1": c1, "category2": c2,
                "smash": f"{prefix}{i}a+{prefix}{i}b",
                "clue1": f"clue {i}a", "clue2": f"clue {i}b",
            }))
        await session.commit()
        return ids
    return _add
