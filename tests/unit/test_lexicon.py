"""Tests for the lexicon aggregate and level index."""

import json

import pytest

from hanzilex.lexicon import EmptyLexiconError, LevelIndex, Lexicon
from hanzilex.validators.schema import MergedEntry, PriorityHint


def entry(headword, level=None, **fields):
    return MergedEntry(headword=headword, level=level, source_tag="test", **fields)


@pytest.fixture
def entries():
    return [
        entry("学", 2),
        entry("爱", 1),
        entry("的", None),
        entry("我", 1),
        entry("研究生", 7),
        entry("经济", 4),
    ]


class TestLevelIndex:
    """Tests for level bucketing."""

    def test_buckets_keep_merge_order(self, entries):
        index = LevelIndex(entries)

        assert [e.headword for e in index.at(1)] == ["爱", "我"]
        assert [e.headword for e in index.unleveled] == ["的"]
        assert index.at(3) == ()

    def test_levels_sorted(self, entries):
        index = LevelIndex(entries)

        assert index.levels() == (1, 2, 4, 7)
        assert index.counts() == {1: 2, 2: 1, 4: 1, 7: 1}

    def test_below_keeps_merge_order(self, entries):
        """Lower levels stay interleaved as merged, not grouped by level."""
        index = LevelIndex(entries)

        assert [e.headword for e in index.below(4)] == ["学", "爱", "我"]
        assert [e.headword for e in index.below(2)] == ["爱", "我"]
        assert list(index.below(1)) == []


class TestLexicon:
    """Tests for the immutable lexicon."""

    def test_empty_lexicon_rejected(self):
        with pytest.raises(EmptyLexiconError):
            Lexicon([])

    def test_empty_lexicon_error_is_value_error(self):
        assert issubclass(EmptyLexiconError, ValueError)

    def test_lookup(self, entries):
        lexicon = Lexicon(entries)

        assert len(lexicon) == 6
        assert "爱" in lexicon
        assert "猫" not in lexicon
        assert lexicon.get("经济").level == 4
        assert lexicon.get("猫") is None
        assert [e.headword for e in lexicon] == [e.headword for e in entries]

    def test_from_entries_accepts_iterables(self, entries):
        lexicon = Lexicon.from_entries(e for e in entries)

        assert [e.headword for e in lexicon] == [e.headword for e in entries]
        with pytest.raises(EmptyLexiconError):
            Lexicon.from_entries(iter([]))

    def test_level_counts(self, entries):
        assert Lexicon(entries).level_counts() == {
            "level_1": 2,
            "level_2": 1,
            "level_4": 1,
            "level_7": 1,
            "unleveled": 1,
        }
        assert "unleveled" not in Lexicon([entry("爱", 1)]).level_counts()

    def test_entries_are_frozen(self, entries):
        lexicon = Lexicon(entries)

        with pytest.raises(Exception):
            lexicon.entries[0].level = 5

    def test_records_have_every_field(self, entries):
        records = Lexicon(entries).to_records()
        keys = {frozenset(r) for r in records}

        assert len(keys) == 1
        assert "frequency_rank" in records[0]
        assert records[2]["level"] is None

    def test_save_and_load(self, tmp_path, entries):
        entries.append(entry("银行", 2, priority_hint=PriorityHint.VERY_HIGH, parts_of_speech=("n",)))
        path = tmp_path / "lexicon.json"
        Lexicon(entries).save(path)

        loaded = Lexicon.load(path)

        assert list(loaded.entries) == entries
        assert loaded.get("银行").priority_hint is PriorityHint.VERY_HIGH

    def test_save_is_byte_stable(self, tmp_path, entries):
        first, second = tmp_path / "a.json", tmp_path / "b.json"
        Lexicon(entries).save(first)
        Lexicon(list(entries)).save(second)

        assert first.read_bytes() == second.read_bytes()

    def test_load_rejects_non_array(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"entries": []}), encoding="utf-8")

        with pytest.raises(ValueError):
            Lexicon.load(path)
