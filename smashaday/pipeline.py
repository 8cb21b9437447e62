# smashaday/pipeline.py
"""
Scheduler entry point.

    python -m smashaday.pipeline nightly            # generate -> enrich -> compile -> daily
    python -m smashaday.pipeline daily --date 2024-01-01
    python -m smashaday.pipeline regenerate --date 2024-01-01
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .db_pg import SessionLocal, create_tables
from .clue_client import ClueClient
from .clue_enrichment import enrich_pending_words
from .daily_challenge import (
    ChallengeGenerationError,
    generate_daily_challenge,
    regenerate_daily_challenge,
)
from .smash_compiler import compile_all
from .smash_gen import generate_smashes

logger = logging.getLogger("smashaday.pipeline")

async def _generate():
    async with SessionLocal() as session:
        stats = await generate_smashes(session)
    logger.info("[generate] %s", stats.as_dict())

async def _enrich(dry_run: bool = False):
    async with SessionLocal() as session, ClueClient() as client:
        stats = await enrich_pending_words(session, client, dry_run=dry_run)
    logger.info("[enrich] %s", stats.as_dict())

async def _compile():
    async with SessionLocal() as session:
        stats = await compile_all(session)
    logger.info("[compile] %s", stats.as_dict())

async def _daily(date: Optional[str]):
    async with SessionLocal() as session:
        result = await generate_daily_challenge(session, date)
    verb = "created" if result.created else "already existed"
    logger.info("[daily] challenge %s for %s %s", result.id, result.date, verb)

async def _regenerate(date: str):
    async with SessionLocal() as session:
        result = await regenerate_daily_challenge(session, date)
    logger.info("[regenerate] challenge %s for %s", result.id, result.date)

async def run(args: argparse.Namespace) -> None:
    await create_tables()
    if args.command == "generate":
        await _generate()
    elif args.command == "enrich":
        await _enrich(dry_run=args.dry_run)
    elif args.command == "compile":
        await _compile()
    elif args.command == "daily":
        await _daily(args.date)
    elif args.command == "regenerate":
        await _regenerate(args.date)
    elif args.command == "nightly":
        await _generate()
        await _enrich()
        await _compile()
        await _daily(args.date)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smashaday", description="Smash A Day content pipeline")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("generate", help="Find new smashes and queue them as pending")
    p = sub.add_parser("enrich", help="Write clues for words in pending smashes")
    p.add_argument("--dry-run", action="store_true", help="Process one word and write nothing")
    sub.add_parser("compile", help="Promote pending smashes into the smash corpus")
    p = sub.add_parser("daily", help="Create the daily challenge (no-op if it exists)")
    p.add_argument("--date", help="YYYY-MM-DD; defaults to today")
    p = sub.add_parser("regenerate", help="Delete and recreate the daily challenge for a date")
    p.add_argument("--date", required=True, help="YYYY-MM-DD")
    p = sub.add_parser("nightly", help="generate, enrich, compile, then daily")
    p.add_argument("--date", help="YYYY-MM-DD; defaults to today")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args))
    except ChallengeGenerationError as e:
        logger.error("Daily challenge failed: %s", e)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
