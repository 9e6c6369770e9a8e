"""Tests for the merge engine precedence rules."""

from itertools import permutations

import pytest

from hanzilex.merge.engine import MergeEngine, SourceBatch
from hanzilex.validators.schema import LexicalRecord, PriorityHint


def record(headword, source_tag, **fields):
    return LexicalRecord(headword=headword, source_tag=source_tag, **fields)


def by_headword(entries):
    return {entry.headword: entry for entry in entries}


@pytest.fixture
def engine():
    return MergeEngine()


@pytest.fixture
def love_batches():
    """The same headword described by three sources."""
    return [
        SourceBatch("cedict", [record("爱", "cedict", pronunciation="ai4", gloss="to love", level=2)]),
        SourceBatch("hsk3", [record("爱", "hsk3", level=1)]),
        SourceBatch(
            "complete_hsk",
            [
                record(
                    "爱",
                    "complete_hsk",
                    pronunciation="ài",
                    gloss="love",
                    level=3,
                    priority_hint=PriorityHint.VERY_HIGH,
                    radical="爫",
                )
            ],
            enrichment=True,
        ),
    ]


class TestLevelPrecedence:
    """The lowest level wins no matter the source order."""

    def test_all_orderings(self, engine, love_batches):
        for ordering in permutations(love_batches):
            entries, _ = engine.merge(list(ordering))
            entry = by_headword(entries)["爱"]

            assert entry.level == 1
            assert entry.priority_hint is PriorityHint.VERY_HIGH
            assert entry.radical == "爫"
            assert entry.sources == ("cedict", "complete_hsk", "hsk3")

    def test_usage_note_follows_level(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("a", [record("会", "a", level=3, level_usage_note="formal")]),
                SourceBatch("b", [record("会", "b", level=2, level_usage_note="spoken")]),
            ]
        )
        entry = entries[0]

        assert entry.level == 2
        assert entry.level_usage_note == "spoken"


class TestFillOnlyFields:
    """Pronunciation and gloss are never overwritten once set."""

    def test_first_supplier_wins(self, engine, love_batches):
        entries, _ = engine.merge(love_batches)
        entry = entries[0]

        assert entry.pronunciation == "ai4"
        assert entry.gloss == "to love"

    def test_empty_fields_are_filled(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("hsk3", [record("做客", "hsk3", level=4)]),
                SourceBatch("cedict", [record("做客", "cedict", pronunciation="zuo4 ke4", gloss="to be a guest")]),
            ]
        )
        entry = entries[0]

        assert entry.pronunciation == "zuo4 ke4"
        assert entry.gloss == "to be a guest"
        assert entry.level == 4
        assert entry.source_tag == "cedict"


class TestPlaceholderGloss:
    """Leveled entries without a gloss get a placeholder."""

    def test_leveled_entry_without_gloss(self, engine):
        entries, stats = engine.merge([SourceBatch("hsk3", [record("做客", "hsk3", level=4)])])

        assert entries[0].gloss == "[level-4 word]"
        assert stats.per_source["hsk3"].added == 1

    def test_custom_placeholder(self):
        entries, _ = MergeEngine(placeholder_gloss="HSK {level} word").merge(
            [SourceBatch("hsk3", [record("做客", "hsk3", level=4)])]
        )
        assert entries[0].gloss == "HSK 4 word"

    def test_unleveled_entry_keeps_empty_gloss(self, engine):
        entries, _ = engine.merge([SourceBatch("freq", [record("的", "freq")])])
        assert entries[0].gloss == ""

    def test_real_gloss_replaces_nothing(self, engine):
        """A later gloss fills the entry before the placeholder is applied."""
        entries, _ = engine.merge(
            [
                SourceBatch("hsk3", [record("做客", "hsk3", level=4)]),
                SourceBatch("cedict", [record("做客", "cedict", gloss="to be a guest")]),
            ]
        )
        assert entries[0].gloss == "to be a guest"


class TestPriority:
    """very_high always wins; other hints only fill."""

    def test_very_high_overrides(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("freq20k", [record("是", "freq20k", priority_hint=PriorityHint.HIGH)]),
                SourceBatch("freq10k", [record("是", "freq10k", priority_hint=PriorityHint.VERY_HIGH)]),
            ]
        )
        assert entries[0].priority_hint is PriorityHint.VERY_HIGH

    def test_high_does_not_downgrade(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("freq10k", [record("是", "freq10k", priority_hint=PriorityHint.VERY_HIGH)]),
                SourceBatch("freq20k", [record("是", "freq20k", priority_hint=PriorityHint.HIGH)]),
            ]
        )
        assert entries[0].priority_hint is PriorityHint.VERY_HIGH

    def test_high_fills_none(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("cedict", [record("是", "cedict", gloss="to be")]),
                SourceBatch("freq20k", [record("是", "freq20k", priority_hint=PriorityHint.HIGH)]),
            ]
        )
        assert entries[0].priority_hint is PriorityHint.HIGH


class TestEnrichment:
    """Auxiliary fields come from enrichment sources only."""

    @pytest.fixture
    def batches(self):
        return [
            SourceBatch("cedict", [record("爱", "cedict", gloss="to love", traditional_form="愛")]),
            SourceBatch("extra", [record("爱", "extra", radical="心", parts_of_speech={"n"})]),
            SourceBatch("complete_a", [record("爱", "complete_a", radical="爫")], enrichment=True),
            SourceBatch("complete_b", [record("爱", "complete_b", radical="冖", frequency_rank=150)], enrichment=True),
        ]

    def test_non_enrichment_source_does_not_write(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("cedict", [record("爱", "cedict", gloss="to love")]),
                SourceBatch("extra", [record("爱", "extra", radical="心")]),
            ]
        )
        assert entries[0].radical is None

    def test_new_entry_from_base_source_has_no_enrichment(self, engine):
        """Which base source creates the entry does not decide its enrichment fields."""
        frequency = SourceBatch("freq10k", [record("爱", "freq10k", frequency_rank=5, frequency_band="top10k")])
        cedict = SourceBatch(
            "cedict",
            [record("爱", "cedict", gloss="to love", all_glosses=["to love"], traditional_form="愛", classifiers=["个"])],
        )

        for ordering in ([frequency, cedict], [cedict, frequency]):
            entry = engine.merge(ordering)[0][0]

            assert entry.frequency_rank is None
            assert entry.traditional_form is None
            assert entry.classifiers == ()
            assert entry.all_glosses == ()
            assert entry.frequency_band == "top10k"
            assert entry.gloss == "to love"

    def test_enrichment_source_creates_entry_with_fields(self, engine):
        entries, _ = engine.merge(
            [SourceBatch("freq10k", [record("爱", "freq10k", frequency_rank=5)], enrichment=True)]
        )
        assert entries[0].frequency_rank == 5

    def test_enrichment_overwrites_wholesale(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("cedict", [record("爱", "cedict", traditional_form="愛", classifiers=["个"])]),
                SourceBatch("complete", [record("爱", "complete", radical="爫")], enrichment=True),
            ]
        )
        entry = entries[0]

        assert entry.radical == "爫"
        assert entry.traditional_form is None
        assert entry.classifiers == ()

    def test_last_enrichment_source_wins(self, engine, batches):
        entries, _ = engine.merge(batches)
        entry = entries[0]

        assert entry.radical == "冖"
        assert entry.frequency_rank == 150

    def test_first_enrichment_source_wins(self, batches):
        entries, _ = MergeEngine(enrichment_tie_break="first").merge(batches)
        entry = entries[0]

        assert entry.radical == "爫"
        assert entry.frequency_rank is None

    def test_unknown_tie_break(self):
        with pytest.raises(ValueError):
            MergeEngine(enrichment_tie_break="random")


class TestAlternateForms:
    """Alternate forms are absorbed into existing headwords or materialized."""

    def test_absorbed_when_headword_exists(self, engine):
        entries, stats = engine.merge(
            [
                SourceBatch(
                    "hsk3",
                    [
                        record("爸爸", "hsk3", level=1, alternate_forms={"爸"}),
                        record("爸", "hsk3_alt", level=1),
                    ],
                )
            ]
        )
        merged = by_headword(entries)

        assert merged["爸爸"].alternate_forms == ()
        assert len(entries) == 2
        assert stats.absorbed_alternates == 1

    def test_materialized_when_absent(self, engine):
        entries, stats = engine.merge(
            [SourceBatch("hsk3", [record("一会儿", "hsk3", level=3, gloss="a while", alternate_forms={"一会"})])]
        )
        merged = by_headword(entries)

        assert "一会" in merged
        assert merged["一会"].level == 3
        assert merged["一会"].gloss == "a while"
        assert merged["一会"].alternate_forms == ()
        assert stats.materialized_alternates == 1

    def test_alternates_are_unioned(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("a", [record("一会儿", "a", alternate_forms={"一会"})]),
                SourceBatch("b", [record("一会儿", "b", alternate_forms={"一下"})]),
            ]
        )
        assert by_headword(entries)["一会儿"].alternate_forms == ("一下", "一会")


class TestMergeDeterminism:
    """Merging is deterministic and idempotent."""

    def test_repeated_batch_changes_nothing(self, engine, love_batches):
        once, _ = engine.merge(love_batches)
        twice, stats = engine.merge(love_batches + love_batches)

        assert once == twice
        assert stats.total_entries == 1

    def test_insertion_order(self, engine):
        entries, _ = engine.merge(
            [
                SourceBatch("a", [record("我", "a"), record("你", "a")]),
                SourceBatch("b", [record("他", "b"), record("我", "b")]),
            ]
        )
        assert [e.headword for e in entries] == ["我", "你", "他"]

    def test_stats(self, engine, love_batches):
        _, stats = engine.merge(love_batches)

        assert stats.per_source["cedict"].added == 1
        assert stats.per_source["hsk3"].updated == 1
        assert stats.per_source["complete_hsk"].updated == 1
        assert stats.added == 1
        assert stats.updated == 2


class TestRomanization:
    """Missing pronunciations can be generated."""

    def test_fills_missing_pronunciation(self):
        engine = MergeEngine(romanize_missing=True, romanizer=lambda text: f"pinyin({text})")
        entries, stats = engine.merge(
            [SourceBatch("hsk3", [record("做客", "hsk3", level=4), record("爱", "hsk3", level=1, pronunciation="ài")])]
        )
        merged = by_headword(entries)

        assert merged["做客"].pronunciation == "pinyin(做客)"
        assert merged["爱"].pronunciation == "ài"
        assert stats.romanized == 1

    def test_disabled_by_default(self, engine):
        entries, _ = engine.merge([SourceBatch("hsk3", [record("做客", "hsk3", level=4)])])
        assert entries[0].pronunciation == ""
