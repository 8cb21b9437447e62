# smashaday/words.py
from __future__ import annotations

import re
import unicodedata
from typing import List, Tuple

# overlap lengths considered when smashing two words
MIN_AFFIX, MAX_AFFIX = 3, 7

_COMBINING = re.compile(r"[\u0300-\u036f]")  # marks left over after NFD
_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]")
_WHITESPACE = re.compile(r"\s+")
_TRANSLITERATIONS = {
    "æ": "ae", "Æ": "AE",
    "œ": "oe", "Œ": "OE",
    "ß": "ss",
    "ñ": "n", "Ñ": "N",
}

def sanitize_word_key(word: str) -> str:
    """
    Normalize a word/phrase into its corpus identity.
    crème brûlée -> creme brulee, "  Big   Ben " -> big ben
    """
    s = unicodedata.normalize("NFD", word or "")
    s = _COMBINING.sub("", s)
    for src, dst in _TRANSLITERATIONS.items():
        s = s.replace(src, dst)
    s = _NON_PRINTABLE_ASCII.sub("", s)
    s = _WHITESPACE.sub(" ", s).strip().lower()
    if s.startswith("$") or s.startswith("_"):
        s = "word " + s
    return s

def affixes(word: str, suffix: bool = False) -> List[Tuple[int, str]]:
    """All (n, prefix) - or (n, suffix) - pairs for n in [MIN_AFFIX, MAX_AFFIX]."""
    out: List[Tuple[int, str]] = []
    for n in range(MIN_AFFIX, MAX_AFFIX + 1):
        if len(word) < n:
            break
        out.append((n, word[-n:] if suffix else word[:n]))
    return out

def pair_key(word_a: str, word_b: str) -> str:
    # order-agnostic: "batman|manchester" for either order
    a, b = sorted((word_a, word_b))
    return f"{a}|{b}"
