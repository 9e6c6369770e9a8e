"""Pydantic models for all lexicon pipeline entities.

This module defines the data models shared by the parsers, the merge engine,
the lexicon index and the vocabulary sampler. Parse-time records are mutable;
merged entries and sample pools are frozen so a built lexicon can be shared
read-only between concurrent sampler calls.
"""

from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Set, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

MIN_LEVEL = 1
MAX_LEVEL = 7


# ============================================================================
# Enums
# ============================================================================


class PriorityHint(str, Enum):
    """Coarse pedagogical importance of a headword."""

    VERY_HIGH = "very_high"
    HIGH = "high"
    NONE = "none"

    @property
    def is_prioritized(self) -> bool:
        return self is not PriorityHint.NONE


class SourceKind(str, Enum):
    """Input formats understood by the source parsers."""

    CEDICT = "cedict"
    HSK_CSV = "hsk_csv"
    COMPLETE_HSK = "complete_hsk"
    FREQUENCY = "frequency"


# ============================================================================
# Lexical entities
# ============================================================================


class LexicalRecord(BaseModel):
    """One lexical entry produced by a source parser, before merge."""

    headword: str = Field(..., description="Simplified-script form, the merge key")
    alternate_forms: Set[str] = Field(
        default_factory=set,
        description="Additional surface forms mapping to the same record",
    )
    pronunciation: str = Field(default="", description="Pinyin, may be empty")
    gloss: str = Field(default="", description="Primary English meaning")
    all_glosses: List[str] = Field(default_factory=list)
    level: Optional[int] = Field(
        None, ge=MIN_LEVEL, le=MAX_LEVEL, description="HSK ordinal level"
    )
    level_usage_note: Optional[str] = None
    source_tag: str = Field(..., description="Source that produced this record")
    priority_hint: PriorityHint = PriorityHint.NONE
    frequency_rank: Optional[int] = None
    frequency_band: Optional[str] = Field(
        None, description="Frequency list band, e.g. top10k"
    )
    parts_of_speech: Set[str] = Field(default_factory=set)
    radical: Optional[str] = None
    traditional_form: Optional[str] = None
    classifiers: List[str] = Field(default_factory=list)

    @field_validator("headword")
    @classmethod
    def validate_headword(cls, v: str) -> str:
        """Headwords are trimmed and must not be empty."""
        v = v.strip()
        if not v:
            raise ValueError("headword must not be empty")
        return v


class MergedEntry(BaseModel):
    """A conflict-resolved lexicon entry.

    Set-valued fields are stored as sorted tuples so that serialization is
    byte-stable across builds. Every field is always present in the dumped
    record; missing optionals serialize as ``null``.
    """

    headword: str
    alternate_forms: Tuple[str, ...] = ()
    pronunciation: str = ""
    gloss: str = ""
    all_glosses: Tuple[str, ...] = ()
    level: Optional[int] = Field(None, ge=MIN_LEVEL, le=MAX_LEVEL)
    level_usage_note: Optional[str] = None
    source_tag: str = ""
    priority_hint: PriorityHint = PriorityHint.NONE
    frequency_rank: Optional[int] = None
    frequency_band: Optional[str] = None
    parts_of_speech: Tuple[str, ...] = ()
    radical: Optional[str] = None
    traditional_form: Optional[str] = None
    classifiers: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "headword": "银行",
                "alternate_forms": [],
                "pronunciation": "yín háng",
                "gloss": "bank",
                "all_glosses": ["bank"],
                "level": 2,
                "level_usage_note": None,
                "source_tag": "complete_hsk",
                "priority_hint": "very_high",
                "frequency_rank": 1320,
                "frequency_band": None,
                "parts_of_speech": ["n"],
                "radical": "钅",
                "traditional_form": "銀行",
                "classifiers": ["家", "个"],
                "sources": ["cedict", "complete_hsk", "hsk3"],
            }
        },
    }

    @property
    def is_prioritized(self) -> bool:
        return self.priority_hint.is_prioritized


class SamplePools(BaseModel):
    """Bounded vocabulary pools returned by the sampler (headwords only)."""

    level: str
    topic: str
    recognized_level: bool = True
    target_pool: Tuple[str, ...] = ()
    topic_pool: Tuple[str, ...] = ()
    allowed_pool: Tuple[str, ...] = ()

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_topic_subset(self) -> "SamplePools":
        """The topic pool may only contain target pool words."""
        extra = set(self.topic_pool) - set(self.target_pool)
        if extra:
            raise ValueError(f"topic_pool words missing from target_pool: {sorted(extra)}")
        return self


# ============================================================================
# Configuration
# ============================================================================


class SourceSpec(BaseModel):
    """One configured input source, in merge precedence order."""

    name: str = Field(..., description="Source tag recorded on merged entries")
    kind: SourceKind
    path: Path
    url: Optional[str] = Field(None, description="Remote location to fetch from")
    enrichment: bool = Field(
        default=False,
        description="Canonical enrichment source for auxiliary fields",
    )
    band: Optional[str] = Field(
        None, description="Frequency band for frequency lists (derived from file name if unset)"
    )
    optional: bool = Field(
        default=True, description="Missing source degrades to zero records"
    )


class SamplerLimits(BaseModel):
    """Sizes and thresholds used by the vocabulary sampler."""

    cascade_min_target: int = 20
    cascade_min_after_lower: int = 10
    cascade_take: int = 100
    lower_level_cap_beginner: int = 200
    lower_level_cap: int = 100
    beginner_max_level: int = 2
    allowed_min_size: int = 100
    allowed_max_size: int = 500
    default_target_size: int = 200
    default_allowed_size: int = 500


class LexiconBuildConfig(BaseModel):
    """Build manifest: ordered sources plus merge options."""

    sources: List[SourceSpec] = Field(default_factory=list)
    romanize_missing: bool = True
    enrichment_tie_break: Literal["last", "first"] = "last"
    parallel_workers: int = Field(default=4, ge=1)
    placeholder_gloss: str = "[level-{level} word]"

    @field_validator("placeholder_gloss")
    @classmethod
    def validate_placeholder(cls, v: str) -> str:
        if "{level}" not in v:
            raise ValueError("placeholder_gloss must contain '{level}'")
        return v

    @model_validator(mode="after")
    def validate_unique_source_names(self) -> "LexiconBuildConfig":
        """Source names are merge tags and must be unique."""
        names = [source.name for source in self.sources]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate source names: {sorted(duplicates)}")
        return self


# ============================================================================
# Lesson persistence
# ============================================================================


class LessonRecord(BaseModel):
    """Generated lesson content stored for a client."""

    lesson_id: str = Field(default_factory=lambda: str(uuid4()), description="UUID v4")
    client_id: str
    level: str
    topic: str
    generated_content: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
