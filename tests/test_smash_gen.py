"""Tests for the smash generator."""

from smashaday import store
from smashaday.smash_gen import (
    OverlapIndex,
    find_overlap,
    find_smash_candidates,
    generate_smashes,
)
from smashaday.store import WordRow
from smashaday.words import pair_key


CORPUS = [
    WordRow("electric car", "vehicles"),
    WordRow("car park", "vehicles"),
    WordRow("cardiff castle", "landmarks"),
    WordRow("batman", "superheroes"),
    WordRow("manchester", "cities"),
    WordRow("carrot", "vegetables"),
]


def _index(*words):
    return OverlapIndex(list(words))


class TestOverlapIndex:
    def test_indexes_every_prefix_length(self):
        index = _index("cardiff castle", "carrot")
        assert index.starting_with("car") == {"cardiff castle", "carrot"}
        assert index.starting_with("cardiff") == {"cardiff castle"}
        assert index.starting_with("cardiff ") == set()
        assert index.starting_with("zzz") == set()


class TestFindOverlap:
    """Tests for find_overlap()."""

    def test_basic_merge(self):
        index = _index("electric car", "cardiff castle")
        assert find_overlap("electric car", "cardiff castle", index) == (3, "electric cardiff castle")

    def test_prefers_longest_overlap(self):
        index = _index("abcabc", "abcabcz")
        n, merged = find_overlap("abcabc", "abcabcz", index)
        assert n == 6
        assert merged == "abcabcz"

    def test_only_first_word_suffix_is_tried(self):
        index = _index("cardiff castle", "electric car")
        assert find_overlap("cardiff castle", "electric car", index) is None

    def test_longer_overlap_the_other_way_is_ignored(self):
        # "xyz" joins w1 -> w2; the longer "abcd" only joins w2 -> w1
        index = _index("abcdmxyz", "xyzmabcd")
        assert find_overlap("abcdmxyz", "xyzmabcd", index) == (3, "abcdmxyzmabcd")

    def test_no_overlap(self):
        index = _index("batman", "carrot")
        assert find_overlap("batman", "carrot", index) is None

    def test_word_never_overlaps_itself(self):
        index = _index("abcabc")
        assert find_overlap("abcabc", "abcabc", index) is None

    def test_short_words(self):
        index = _index("ab", "abcde")
        assert find_overlap("ab", "abcde", index) is None


class TestFindSmashCandidates:
    """Tests for find_smash_candidates()."""

    def test_finds_cross_category_smashes(self):
        candidates, stats = find_smash_candidates(CORPUS, set())
        merged = {c["smash"] for c in candidates}
        assert merged == {"electric cardiff castle", "electric carrot", "batmanchester"}
        assert stats.generated == 3
        assert stats.pairs_checked == len(CORPUS) * (len(CORPUS) - 1) // 2

    def test_merges_earlier_word_into_later(self):
        words = [WordRow("abcdmxyz", "a"), WordRow("xyzmabcd", "b")]
        candidates, _ = find_smash_candidates(words, set())
        assert candidates == [{
            "word1": "abcdmxyz", "category1": "a",
            "word2": "xyzmabcd", "category2": "b",
            "smash": "abcdmxyzmabcd",
        }]

    def test_overlap_in_later_word_only_yields_nothing(self):
        words = [WordRow("cardiff castle", "landmarks"), WordRow("electric car", "vehicles")]
        candidates, stats = find_smash_candidates(words, set())
        assert candidates == []
        assert stats.no_overlap == 1

    def test_skips_same_category(self):
        candidates, stats = find_smash_candidates(CORPUS, set())
        assert all(c["category1"] != c["category2"] for c in candidates)
        assert not any(c["word2"] == "car park" for c in candidates)
        assert stats.same_category_skipped == 1

    def test_merged_text_matches_overlap(self):
        candidates, _ = find_smash_candidates(CORPUS, set())
        for c in candidates:
            tail = c["smash"][len(c["word1"]):]
            assert c["smash"].startswith(c["word1"])
            assert c["word2"].endswith(tail)

    def test_skips_existing_pairs_order_agnostic(self):
        existing = {pair_key("manchester", "batman")}
        candidates, stats = find_smash_candidates(CORPUS, existing)
        assert "batmanchester" not in {c["smash"] for c in candidates}
        assert stats.existing_pair_skipped == 1
        assert existing == {"batman|manchester"}

    def test_one_candidate_per_pair(self):
        words = [WordRow("abcabc", "x"), WordRow("abcabcz", "y")]
        candidates, _ = find_smash_candidates(words, set())
        assert len(candidates) == 1

    def test_second_run_yields_nothing(self):
        first, _ = find_smash_candidates(CORPUS, set())
        existing = {pair_key(c["word1"], c["word2"]) for c in first}
        second, stats = find_smash_candidates(CORPUS, existing)
        assert second == []
        assert stats.existing_pair_skipped == len(first)


class TestGenerateSmashes:
    """Tests for generate_smashes() against the database."""

    async def _seed(self, session):
        # newest first, so insert in reverse to list in CORPUS order
        for w in reversed(CORPUS):
            await store.insert_words(session, w.category, [w.word])

    async def test_writes_pending_rows(self, session):
        await self._seed(session)
        stats = await generate_smashes(session)
        assert stats.generated == 3

        rows, cursor = await store.list_pending(session, "pending", None, 50)
        assert cursor is None
        assert {r.smash for r in rows} == {"electric cardiff castle", "electric carrot", "batmanchester"}
        assert all(r.status == "pending" for r in rows)

    async def test_rerun_is_a_noop(self, session):
        await self._seed(session)
        await generate_smashes(session)
        stats = await generate_smashes(session)
        assert stats.generated == 0
        assert await store.count_pending(session) == 3

    async def test_canonical_smashes_count_as_existing(self, session):
        await self._seed(session)
        await store.insert_smash(session, {
            "word1": "batman", "word2": "manchester",
            "category1": "superheroes", "category2": "cities",
            "smash": "batmanchester",
        })
        await session.commit()
        stats = await generate_smashes(session)
        assert stats.generated == 2
        assert stats.existing_pair_skipped == 1
