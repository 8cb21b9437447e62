# smashaday/main.py
from __future__ import annotations

import logging
import os
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from sqlalchemy.ext.asyncio import AsyncSession

from .db_pg import SessionLocal, ping, create_tables
from . import store
from .clue_client import ClueClient
from .clue_enrichment import enrich_pending_words
from .daily_challenge import (
    ChallengeGenerationError,
    check_date,
    generate_daily_challenge,
    regenerate_daily_challenge,
    today_ymd,
)
from .schema import (
    ChallengeCreated,
    CompileSummary,
    DailyChallengeOut,
    EnrichmentSummary,
    GenerationSummary,
    SmashOut,
    WordBatchIn,
    WordBatchOut,
)
from .smash_compiler import compile_all
from .smash_gen import generate_smashes

logger = logging.getLogger(__name__)

# ───────── App ─────────
app = FastAPI(title="Smash A Day API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],      # tighten before launch
    allow_methods=["GET","POST","OPTIONS"],
    allow_headers=["*"],
)

# ───────── Dependencies ─────────
async def get_db() -> AsyncSession:
    async with SessionLocal() as session:
        yield session

async def get_clue_client() -> ClueClient:
    try:
        client = ClueClient()
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e))
    async with client:
        yield client

def _date_or_400(date: Optional[str]) -> str:
    try:
        return check_date(date or today_ymd())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ───────── Lifecycle ─────────
@app.on_event("startup")
async def on_startup():
    await ping()
    await create_tables()

@app.get("/healthz")
async def healthz():
    return {"ok": True}

# ───────── /daily-challenge (read) ─────────
@app.get("/daily-challenge", response_model=DailyChallengeOut)
async def daily_challenge(
    date: Optional[str] = Query(None, description="YYYY-MM-DD; defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    ymd = _date_or_400(date)
    challenge = await store.find_challenge_by_date(db, ymd)
    if challenge is None:
        raise HTTPException(status_code=404, detail=f"No daily challenge for {ymd}")

    smashes = await store.get_smashes(db, challenge.smash_ids)
    return DailyChallengeOut(
        id=challenge.id,
        date=challenge.date,
        number=await store.challenge_number(db, ymd),
        smashes=[SmashOut(**asdict(s)) for s in smashes],
    )

# ───────── admin: corpus + pipelines ─────────
@app.post("/admin/words", response_model=WordBatchOut)
async def add_words(body: WordBatchIn, db: AsyncSession = Depends(get_db)):
    try:
        counts = await store.insert_words(db, body.category, body.words)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("add_words category=%r %s", body.category, counts)
    return WordBatchOut(category=body.category.strip(), **counts)

@app.post("/admin/smashes/generate", response_model=GenerationSummary)
async def run_generate(db: AsyncSession = Depends(get_db)):
    stats = await generate_smashes(db)
    return GenerationSummary(**stats.as_dict())

@app.post("/admin/smashes/compile", response_model=CompileSummary)
async def run_compile(db: AsyncSession = Depends(get_db)):
    stats = await compile_all(db)
    return CompileSummary(**stats.as_dict())

@app.post("/admin/clues/enrich", response_model=EnrichmentSummary)
async def run_enrich(
    dry_run: bool = Query(False, description="Process one word and write nothing"),
    db: AsyncSession = Depends(get_db),
    client: ClueClient = Depends(get_clue_client),
):
    stats = await enrich_pending_words(db, client, dry_run=dry_run)
    return EnrichmentSummary(**stats.as_dict())

# ───────── admin: daily challenge ─────────
@app.post("/admin/daily-challenge", response_model=ChallengeCreated)
async def create_daily_challenge(
    date: Optional[str] = Query(None, description="YYYY-MM-DD; defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    ymd = _date_or_400(date)
    try:
        result = await generate_daily_challenge(db, ymd)
    except ChallengeGenerationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ChallengeCreated(**asdict(result))

@app.post("/admin/daily-challenge/regenerate", response_model=ChallengeCreated)
async def recreate_daily_challenge(
    date: str = Query(..., description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    ymd = _date_or_400(date)
    try:
        result = await regenerate_daily_challenge(db, ymd)
    except ChallengeGenerationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ChallengeCreated(**asdict(result))

# ───────── Server ─────────
def serve():
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
