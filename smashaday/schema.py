from typing import List

from pydantic import BaseModel, Field

class WordBatchIn(BaseModel):
    category: str = Field(min_length=1)
    words: List[str]

class WordBatchOut(BaseModel):
    category: str
    inserted: int
    skipped: int

class SmashOut(BaseModel):
    id: int
    word1: str
    word2: str
    category1: str
    category2: str
    smash: str
    clue1: str = ""
    clue2: str = ""

class DailyChallengeOut(BaseModel):
    id: int
    date: str
    number: int
    smashes: List[SmashOut]

class ChallengeCreated(BaseModel):
    id: int
    date: str
    created: bool
    smash_ids: List[int]

class GenerationSummary(BaseModel):
    words: int
    existing_pairs: int
    pairs_checked: int
    same_category_skipped: int
    existing_pair_skipped: int
    no_overlap: int
    generated: int

class CompileSummary(BaseModel):
    processed: int
    inserted: int
    updated: int
    deleted: int
    failed: int

class EnrichmentSummary(BaseModel):
    succeeded: int
    failed: int
    skipped: int
    total: int
