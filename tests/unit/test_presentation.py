"""Tests for caller-side presentation helpers."""

import pytest

from hanzilex.sampling.presentation import shuffled, vocabulary_constraint


class TestShuffled:
    def test_same_seed_same_order(self):
        words = [f"词{i}" for i in range(50)]
        assert shuffled(words, seed=7) == shuffled(words, seed=7)

    def test_keeps_all_words(self):
        words = [f"词{i}" for i in range(50)]
        result = shuffled(words, seed=1)

        assert sorted(result) == sorted(words)
        assert words == [f"词{i}" for i in range(50)]

    def test_accepts_tuples(self):
        assert sorted(shuffled(("a", "b", "c"), seed=3)) == ["a", "b", "c"]


class TestVocabularyConstraint:
    def test_short_list(self):
        assert vocabulary_constraint(["爱", "吃", "喝"]) == "爱, 吃, 喝"

    def test_truncated_list(self):
        words = [f"词{i}" for i in range(60)]
        text = vocabulary_constraint(words, limit=50)

        assert text.startswith("词0, 词1")
        assert "词49" in text
        assert "词50" not in text
        assert text.endswith("(and 10 more words)")

    def test_exact_limit(self):
        words = ["a"] * 50
        assert "more words" not in vocabulary_constraint(words)

    def test_empty(self):
        assert vocabulary_constraint([]) == ""

    def test_negative_limit(self):
        with pytest.raises(ValueError):
            vocabulary_constraint(["a"], limit=-1)
