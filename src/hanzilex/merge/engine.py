"""Merge engine: combine parsed records from every source into one entry set.

Records are keyed by headword and merged in the order the batches are given.
Precedence is applied per field:

1. level        first supplier sets it, later sources may only lower it
2. pronunciation, gloss
                fill-only
3. priority     ``very_high`` always wins, otherwise fill-only
4. enrichment fields (frequency, parts of speech, radical, traditional form,
   meanings list, classifiers)
                only enrichment sources write them, wholesale
5. sources      always the union

Headwords that only a leveled source knows are added with a placeholder gloss
so no level information is lost.
"""

import logging
from typing import Callable, Dict, List, Literal, NamedTuple, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, Field

from hanzilex.utils.romanization import get_chinese_pinyin
from hanzilex.validators.schema import LexicalRecord, MergedEntry, PriorityHint

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_GLOSS = "[level-{level} word]"

ENRICHMENT_FIELDS = (
    "frequency_rank",
    "parts_of_speech",
    "radical",
    "traditional_form",
    "all_glosses",
    "classifiers",
)


class SourceBatch(NamedTuple):
    """Parsed records of one source, with its merge role."""

    name: str
    records: Sequence[LexicalRecord]
    enrichment: bool = False


class SourceMergeStats(BaseModel):
    records: int = 0
    added: int = 0
    updated: int = 0


class MergeStats(BaseModel):
    """Counts reported by a merge run."""

    per_source: Dict[str, SourceMergeStats] = Field(default_factory=dict)
    absorbed_alternates: int = 0
    materialized_alternates: int = 0
    romanized: int = 0
    total_entries: int = 0

    @property
    def added(self) -> int:
        return sum(s.added for s in self.per_source.values())

    @property
    def updated(self) -> int:
        return sum(s.updated for s in self.per_source.values())


class _WorkingEntry:
    """Mutable merge state for one headword; only the engine touches it."""

    __slots__ = ("record", "sources", "enriched_by")

    def __init__(self, record: LexicalRecord, enrichment: bool):
        if enrichment:
            self.record = record.model_copy(deep=True)
        else:
            # A new headword from a base source starts with empty enrichment
            # fields, whatever its position in the source order.
            blank = {
                field: LexicalRecord.model_fields[field].get_default(call_default_factory=True)
                for field in ENRICHMENT_FIELDS
            }
            self.record = record.model_copy(update=blank, deep=True)
        self.sources: Set[str] = {record.source_tag}
        self.enriched_by: Optional[str] = record.source_tag if enrichment else None

    def freeze(self, placeholder_gloss: str) -> MergedEntry:
        r = self.record
        gloss = r.gloss
        if not gloss and r.level is not None:
            gloss = placeholder_gloss.format(level=r.level)
        return MergedEntry(
            headword=r.headword,
            alternate_forms=tuple(sorted(r.alternate_forms)),
            pronunciation=r.pronunciation,
            gloss=gloss,
            all_glosses=tuple(r.all_glosses),
            level=r.level,
            level_usage_note=r.level_usage_note,
            source_tag=r.source_tag,
            priority_hint=r.priority_hint,
            frequency_rank=r.frequency_rank,
            frequency_band=r.frequency_band,
            parts_of_speech=tuple(sorted(r.parts_of_speech)),
            radical=r.radical,
            traditional_form=r.traditional_form,
            classifiers=tuple(r.classifiers),
            sources=tuple(sorted(self.sources)),
        )


class MergeEngine:
    """Merges source batches into a deterministic, ordered entry list."""

    def __init__(
        self,
        placeholder_gloss: str = DEFAULT_PLACEHOLDER_GLOSS,
        enrichment_tie_break: Literal["last", "first"] = "last",
        romanize_missing: bool = False,
        romanizer: Callable[[str], str] = get_chinese_pinyin,
    ):
        """Initialize engine.

        Args:
            placeholder_gloss: Gloss template for entries known only by level
            enrichment_tie_break: Which enrichment source wins when several
                claim the same headword ("last" processed or "first")
            romanize_missing: Fill empty pronunciations with generated pinyin
            romanizer: Pinyin generator used when romanize_missing is set
        """
        if enrichment_tie_break not in ("last", "first"):
            raise ValueError(f"Unknown enrichment tie-break: {enrichment_tie_break}")
        self.placeholder_gloss = placeholder_gloss
        self.enrichment_tie_break = enrichment_tie_break
        self.romanize_missing = romanize_missing
        self.romanizer = romanizer

    def merge(self, batches: Sequence[SourceBatch]) -> Tuple[List[MergedEntry], MergeStats]:
        """Merge batches in the given order.

        Args:
            batches: Source batches in precedence order

        Returns:
            Tuple of (merged entries in insertion order, merge statistics)
        """
        entries: Dict[str, _WorkingEntry] = {}
        stats = MergeStats()

        for batch in batches:
            source_stats = stats.per_source.setdefault(batch.name, SourceMergeStats())
            source_stats.records += len(batch.records)
            updated: Set[str] = set()

            for record in batch.records:
                working = entries.get(record.headword)
                if working is None:
                    entries[record.headword] = _WorkingEntry(record, batch.enrichment)
                    source_stats.added += 1
                elif self._apply(working, record, batch.enrichment):
                    updated.add(record.headword)

            source_stats.updated += len(updated)
            logger.info(
                f"Merged source {batch.name}: {source_stats.added} added, "
                f"{source_stats.updated} updated from {len(batch.records)} records",
                extra={"source": batch.name, **source_stats.model_dump()},
            )

        self._reconcile_alternates(entries, stats)

        if self.romanize_missing:
            for working in entries.values():
                if not working.record.pronunciation:
                    pinyin = self.romanizer(working.record.headword)
                    if pinyin:
                        working.record.pronunciation = pinyin
                        stats.romanized += 1
            logger.info(f"Generated pinyin for {stats.romanized} entries")

        merged = [working.freeze(self.placeholder_gloss) for working in entries.values()]
        stats.total_entries = len(merged)
        logger.info(
            f"Merge complete: {len(merged)} entries ({stats.added} added, {stats.updated} updated)"
        )
        return merged, stats

    def _apply(self, working: _WorkingEntry, record: LexicalRecord, enrichment: bool) -> bool:
        """Apply one record to an existing entry; True if any field changed."""
        target = working.record
        changed = False

        if record.level is not None and (target.level is None or record.level < target.level):
            target.level = record.level
            target.level_usage_note = record.level_usage_note
            changed = True
        elif (
            record.level is not None
            and record.level == target.level
            and not target.level_usage_note
            and record.level_usage_note
        ):
            target.level_usage_note = record.level_usage_note
            changed = True

        if not target.pronunciation and record.pronunciation:
            target.pronunciation = record.pronunciation
            changed = True

        if not target.gloss and record.gloss:
            target.gloss = record.gloss
            changed = True

        if record.priority_hint is PriorityHint.VERY_HIGH:
            if target.priority_hint is not PriorityHint.VERY_HIGH:
                target.priority_hint = PriorityHint.VERY_HIGH
                changed = True
        elif target.priority_hint is PriorityHint.NONE and record.priority_hint.is_prioritized:
            target.priority_hint = record.priority_hint
            changed = True

        if not target.frequency_band and record.frequency_band:
            target.frequency_band = record.frequency_band
            changed = True

        if enrichment and self._may_enrich(working, record.source_tag):
            for field in ENRICHMENT_FIELDS:
                value = getattr(record, field)
                if getattr(target, field) != value:
                    setattr(target, field, value.copy() if isinstance(value, (list, set)) else value)
                    changed = True
            working.enriched_by = working.enriched_by or record.source_tag
            if self.enrichment_tie_break == "last":
                working.enriched_by = record.source_tag

        new_alternates = record.alternate_forms - target.alternate_forms
        if new_alternates:
            target.alternate_forms |= new_alternates
            changed = True

        if changed:
            target.source_tag = record.source_tag
        working.sources.add(record.source_tag)
        return changed

    def _may_enrich(self, working: _WorkingEntry, source_tag: str) -> bool:
        if self.enrichment_tie_break == "last":
            return True
        return working.enriched_by is None or working.enriched_by == source_tag

    def _reconcile_alternates(self, entries: Dict[str, _WorkingEntry], stats: MergeStats) -> None:
        """Absorb alternates that are headwords; materialize the others."""
        for headword in list(entries):
            working = entries[headword]
            for form in sorted(working.record.alternate_forms):
                if form == headword:
                    working.record.alternate_forms.discard(form)
                elif form in entries:
                    working.record.alternate_forms.discard(form)
                    stats.absorbed_alternates += 1
                else:
                    alias = _WorkingEntry(working.record, enrichment=False)
                    alias.record.headword = form
                    alias.record.alternate_forms = set()
                    alias.sources = set(working.sources)
                    alias.enriched_by = working.enriched_by
                    entries[form] = alias
                    stats.materialized_alternates += 1

        if stats.absorbed_alternates or stats.materialized_alternates:
            logger.info(
                f"Alternate forms: {stats.absorbed_alternates} absorbed, "
                f"{stats.materialized_alternates} materialized"
            )
