# smashaday/models.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from .db_pg import Base

CLUE_STATUSES = ("pending", "enriched", "fallback", "failed")
PENDING_STATUSES = ("pending", "compiled", "failed")

# word corpus; `word` is the sanitized key (see words.sanitize_word_key)
class Word(Base):
    __tablename__ = "words_db"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(256), index=True, nullable=False)
    clue: Mapped[str] = mapped_column(Text, nullable=False, default="")
    clue_status: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

# discovered overlaps waiting for both words to be clued
class PendingSmash(Base):
    __tablename__ = "pending_smashes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word1: Mapped[str] = mapped_column(String(256), nullable=False)
    category1: Mapped[str] = mapped_column(String(256), nullable=False)
    word2: Mapped[str] = mapped_column(String(256), nullable=False)
    category2: Mapped[str] = mapped_column(String(256), nullable=False)
    smash: Mapped[str] = mapped_column(String(512), nullable=False)
    clue1: Mapped[str | None] = mapped_column(Text, nullable=True)
    clue2: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default="pending")

# canonical, user-facing smashes; `smash` (merged text) is the identity
class Smash(Base):
    __tablename__ = "smashes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word1: Mapped[str] = mapped_column(String(256), index=True, nullable=False)
    word2: Mapped[str] = mapped_column(String(256), index=True, nullable=False)
    category1: Mapped[str] = mapped_column(String(256), index=True, nullable=False)
    category2: Mapped[str] = mapped_column(String(256), index=True, nullable=False)
    smash: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    clue1: Mapped[str] = mapped_column(Text, nullable=False, default="")
    clue2: Mapped[str] = mapped_column(Text, nullable=False, default="")

# one row per calendar day; smash_ids keeps the play order
class DailyChallenge(Base):
    __tablename__ = "daily_challenges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    smash_ids: Mapped[list[int]] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
