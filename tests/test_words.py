"""Tests for smashaday.words and word ingestion."""

import pytest

from smashaday import store
from smashaday.words import affixes, pair_key, sanitize_word_key


class TestSanitizeWordKey:
    """Tests for sanitize_word_key()."""

    def test_strips_accents(self):
        assert sanitize_word_key("Crème Brûlée") == "creme brulee"

    def test_transliterates_ligatures(self):
        assert sanitize_word_key("Æsop") == "aesop"
        assert sanitize_word_key("Straße") == "strasse"
        assert sanitize_word_key("Œuvre") == "oeuvre"

    def test_tilde_n(self):
        assert sanitize_word_key("Ñandú") == "nandu"

    def test_collapses_whitespace(self):
        assert sanitize_word_key("  Big \t  Ben  ") == "big ben"

    def test_drops_non_ascii(self):
        assert sanitize_word_key("pizza 🍕") == "pizza"

    def test_prefixes_reserved_starts(self):
        assert sanitize_word_key("$money") == "word $money"
        assert sanitize_word_key("_private") == "word _private"

    def test_empty(self):
        assert sanitize_word_key("") == ""
        assert sanitize_word_key("   ") == ""


class TestAffixes:
    """Tests for affixes()."""

    def test_prefixes(self):
        assert affixes("cardiff") == [
            (3, "car"), (4, "card"), (5, "cardi"), (6, "cardif"), (7, "cardiff"),
        ]

    def test_suffixes(self):
        assert affixes("electric car", suffix=True) == [
            (3, "car"), (4, " car"), (5, "c car"), (6, "ic car"), (7, "ric car"),
        ]

    def test_short_words_only_supply_lengths_they_have(self):
        assert affixes("ab") == []
        assert affixes("abcd") == [(3, "abc"), (4, "abcd")]
        assert affixes("abcd", suffix=True) == [(3, "bcd"), (4, "abcd")]

    def test_long_words_stop_at_seven(self):
        assert max(n for n, _ in affixes("manchester united")) == 7


class TestPairKey:
    def test_order_agnostic(self):
        assert pair_key("manchester", "batman") == pair_key("batman", "manchester") == "batman|manchester"


class TestInsertWords:
    """Tests for store.insert_words()."""

    async def test_inserts_sanitized_words(self, session):
        counts = await store.insert_words(session, "landmarks", ["Cardiff Castle", "Big  Ben"])
        assert counts == {"inserted": 2, "skipped": 0}

        word = await store.get_word(session, "cardiff castle")
        assert word.category == "landmarks"
        assert word.clue == ""
        assert word.clue_status == "pending"

    async def test_skips_duplicates_and_empties(self, session):
        counts = await store.insert_words(session, "landmarks", ["Big Ben", "big ben", "  ", "🍕"])
        assert counts == {"inserted": 1, "skipped": 3}

    async def test_existing_word_keeps_its_category(self, session):
        await store.insert_words(session, "landmarks", ["Big Ben"])
        counts = await store.insert_words(session, "clocks", ["Big Ben", "Cuckoo Clock"])
        assert counts == {"inserted": 1, "skipped": 1}
        assert (await store.get_word(session, "big ben")).category == "landmarks"

    async def test_rejects_blank_category(self, session):
        with pytest.raises(ValueError, match="category"):
            await store.insert_words(session, "  ", ["word"])
