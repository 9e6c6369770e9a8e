"""Source file parsers for the lexical inputs of the lexicon build.

These parsers extract raw data from the raw source files and return
normalized :class:`LexicalRecord` objects for the merge engine. A malformed
record is logged and skipped; a missing or empty file yields no records.

Supported formats:
- CC-CEDICT: "TRAD SIMP [pin1 yin1] /gloss1/gloss2/" lines
- HSK 3.0 word list: CSV with "Hanzi,Hanzi_Alternate,HSK_3_0_Level,HSK_Level_Usage"
- Complete HSK vocabulary: JSON array with level tags and nested forms
- High-frequency lists: TSV with "word\tchinese\tpinyin\tenglish" lines
"""

import csv
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from hanzilex.parsers.levels import (
    LevelNotation,
    expand_alternate_forms,
    first_level,
    parse_level_token,
    split_alternate_forms,
    strip_inline_levels,
)
from hanzilex.utils.romanization import clean_sense_marker
from hanzilex.validators.schema import (
    LexicalRecord,
    PriorityHint,
    SourceKind,
    SourceSpec,
)

logger = logging.getLogger(__name__)

VERY_HIGH_PRIORITY_MAX_LEVEL = 4


def _readable(source_path: Path) -> bool:
    """Missing or empty files contribute no records."""
    if not source_path.exists():
        logger.warning(f"Source file not found, skipping: {source_path}")
        return False
    if source_path.stat().st_size == 0:
        logger.warning(f"Source file is empty, skipping: {source_path}")
        return False
    return True


# ============================================================================
# CC-CEDICT GLOSS DICTIONARY PARSER
# ============================================================================

CEDICT_LINE = re.compile(r"^(?P<trad>\S+)\s+(?P<simp>\S+)\s+\[(?P<pinyin>[^\]]*)\]\s*/(?P<glosses>.*)$")


def parse_cedict_classifiers(segment: str) -> List[str]:
    """Extract simplified classifiers from a CEDICT "CL:" gloss.

    Examples:
        CL:個|个[ge4],家[jia1] -> ["个", "家"]
    """
    classifiers = []
    for item in segment[3:].split(","):
        form = item.split("[", 1)[0].strip()
        if "|" in form:
            form = form.split("|", 1)[1]
        if form:
            classifiers.append(form)
    return classifiers


def parse_cedict_line(line: str, source_tag: str = "cedict") -> Optional[LexicalRecord]:
    """Parse one CC-CEDICT line.

    Inline "HSK N" annotations are lifted into the record level and removed
    from the gloss text. Comment lines and lines that do not match the
    expected shape return None.

    Args:
        line: Raw dictionary line
        source_tag: Source tag to record on the result

    Returns:
        LexicalRecord or None if the line is skipped
    """
    line = line.lstrip("\ufeff").strip()
    if not line or line.startswith("#"):
        return None

    match = CEDICT_LINE.match(line)
    if not match:
        return None

    level = None
    segments: List[str] = []
    glosses: List[str] = []
    classifiers: List[str] = []
    for segment in match.group("glosses").split("/"):
        cleaned, segment_level = strip_inline_levels(segment)
        if level is None and segment_level is not None:
            level = segment_level
        if not cleaned:
            continue
        segments.append(cleaned)
        if cleaned.startswith("CL:"):
            classifiers.extend(parse_cedict_classifiers(cleaned))
        else:
            glosses.append(cleaned)

    trad = match.group("trad")
    simp = match.group("simp")
    # gloss keeps the line's text; the sense list holds meanings only
    return LexicalRecord(
        headword=simp,
        pronunciation=match.group("pinyin").strip(),
        gloss="/".join(segments),
        all_glosses=glosses,
        level=level,
        source_tag=source_tag,
        traditional_form=trad if trad != simp else None,
        classifiers=classifiers,
    )


def parse_cedict_file(
    source_path: Union[str, Path], source_tag: str = "cedict"
) -> List[LexicalRecord]:
    """Parse a CC-CEDICT text file, skipping comments and malformed lines."""
    source_path = Path(source_path)
    if not _readable(source_path):
        return []

    records = []
    skipped = 0
    with open(source_path, "r", encoding="utf-8-sig") as f:
        for line in f:
            if not line.strip() or line.startswith("#"):
                continue
            record = parse_cedict_line(line, source_tag=source_tag)
            if record is None:
                skipped += 1
                continue
            records.append(record)

    logger.info(
        f"Parsed {len(records)} CEDICT entries from {source_path} ({skipped} malformed lines skipped)",
        extra={"source": str(source_path), "item_count": len(records), "skipped": skipped},
    )
    return records


# ============================================================================
# HSK 3.0 TABULAR WORD LIST PARSER
# ============================================================================

HEADWORD_COLUMNS = ("Hanzi", "hanzi", "Word", "word", "汉字", "词语")
ALTERNATE_COLUMNS = ("Hanzi_Alternate", "hanzi_alternate", "Alternate", "alternate")
LEVEL_COLUMNS = ("HSK_3_0_Level", "Level", "level", "等级")
USAGE_COLUMNS = ("HSK_Level_Usage", "Usage", "usage")


def _first_value(row: Dict[str, Optional[str]], columns: Sequence[str]) -> str:
    for column in columns:
        value = row.get(column)
        if value and value.strip():
            return value.strip()
    return ""


def parse_hsk_csv(
    source_path: Union[str, Path], source_tag: str = "hsk3"
) -> List[LexicalRecord]:
    """Parse an HSK 3.0 word list CSV.

    Expected format:
        Hanzi,Hanzi_Alternate,HSK_3_0_Level,HSK_Level_Usage
        爸爸｜爸,,1,
        做客,,4,

    Each alternate form becomes its own record with the primary's level.
    When a form is claimed more than once the lower level wins; ties keep
    the first row seen. Pronunciation and gloss are never set here.

    Args:
        source_path: Path to CSV file
        source_tag: Source tag for primary forms (alternates get "<tag>_alt")

    Returns:
        Records in first-seen order
    """
    source_path = Path(source_path)
    if not _readable(source_path):
        return []

    by_headword: Dict[str, LexicalRecord] = {}
    dropped = 0

    with open(source_path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            logger.warning(f"CSV has no header row, skipping: {source_path}")
            return []

        for i, row in enumerate(reader, start=1):
            forms = [
                clean_sense_marker(form)
                for form in split_alternate_forms(_first_value(row, HEADWORD_COLUMNS))
            ]
            forms = [form for form in forms if form]
            parsed = parse_level_token(
                _first_value(row, LEVEL_COLUMNS),
                allowed={LevelNotation.NUMERIC, LevelNotation.BANDED},
            )
            if not forms or parsed is None:
                logger.debug(f"Row {i} missing headword or numeric level, dropping: {row}")
                dropped += 1
                continue

            alternates = forms[1:] + [
                clean_sense_marker(form)
                for form in split_alternate_forms(_first_value(row, ALTERNATE_COLUMNS))
            ]
            primary = LexicalRecord(
                headword=forms[0],
                level=parsed.level,
                level_usage_note=_first_value(row, USAGE_COLUMNS) or None,
                source_tag=source_tag,
            )

            for record in expand_alternate_forms(
                primary, [a for a in alternates if a], f"{source_tag}_alt"
            ):
                existing = by_headword.get(record.headword)
                if existing is None:
                    by_headword[record.headword] = record
                elif record.level < existing.level:
                    record.alternate_forms |= existing.alternate_forms
                    by_headword[record.headword] = record
                else:
                    existing.alternate_forms |= record.alternate_forms

    records = list(by_headword.values())
    logger.info(
        f"Parsed {len(records)} HSK word list entries from {source_path} ({dropped} rows dropped)",
        extra={"source": str(source_path), "item_count": len(records), "dropped": dropped},
    )
    return records


# ============================================================================
# COMPLETE HSK VOCABULARY (STRUCTURED JSON) PARSER
# ============================================================================


def priority_for_level(level: Optional[int]) -> PriorityHint:
    """Levels 1-4 are very high priority, other levels high, unleveled none."""
    if level is None:
        return PriorityHint.NONE
    if level <= VERY_HIGH_PRIORITY_MAX_LEVEL:
        return PriorityHint.VERY_HIGH
    return PriorityHint.HIGH


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def parse_complete_hsk_entry(
    entry: Dict[str, Any], source_tag: str = "complete_hsk"
) -> Optional[LexicalRecord]:
    """Convert one complete-HSK JSON object into a record (None if unusable)."""
    if not isinstance(entry, dict):
        return None

    forms = entry.get("forms") or []
    form = forms[0] if forms and isinstance(forms[0], dict) else None
    headword = entry.get("simplified") or (form or {}).get("simplified") or ""
    if form is None or not isinstance(headword, str) or not headword.strip():
        return None

    tokens = entry.get("level")
    if tokens is None:
        tokens = entry.get("level-tags", entry.get("level_tags"))
    level = first_level(_string_list(tokens), allowed={LevelNotation.NEW_HSK})

    transcriptions = form.get("transcriptions")
    if not isinstance(transcriptions, dict):
        transcriptions = {}
    pronunciation = transcriptions.get("pinyin") or transcriptions.get("pronunciation") or ""
    meanings = _string_list(form.get("meanings"))

    frequency = entry.get("frequency")
    if not isinstance(frequency, int) or isinstance(frequency, bool):
        frequency = None

    return LexicalRecord(
        headword=headword,
        pronunciation=pronunciation.strip() if isinstance(pronunciation, str) else "",
        gloss=meanings[0] if meanings else "",
        all_glosses=meanings,
        level=level,
        source_tag=source_tag,
        priority_hint=priority_for_level(level),
        frequency_rank=frequency,
        parts_of_speech=set(_string_list(entry.get("pos"))),
        radical=_optional_text(entry.get("radical")),
        traditional_form=_optional_text(form.get("traditional")),
        classifiers=_string_list(form.get("classifiers")),
    )


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_complete_hsk_json(
    source: Union[str, Path, List[Dict[str, Any]]],
    source_tag: str = "complete_hsk",
) -> List[LexicalRecord]:
    """Parse the complete HSK vocabulary JSON document.

    Expected format:
        [
          {
            "simplified": "爱",
            "radical": "爫",
            "frequency": 150,
            "level": ["new-1", "old-1"],
            "pos": ["v"],
            "forms": [
              {
                "traditional": "愛",
                "transcriptions": {"pinyin": "ài"},
                "meanings": ["to love", "to be fond of"],
                "classifiers": []
              }
            ]
          }
        ]

    Only "new-N" level tags count; "new-7+" maps to level 7. Entries that
    fail validation are skipped; a file that is not valid JSON, or whose
    top level is not an entry list, yields no records.

    Args:
        source: Path to the JSON file, or the already-loaded entry list

    Returns:
        Records in document order
    """
    if isinstance(source, (str, Path)):
        source_path = Path(source)
        if not _readable(source_path):
            return []
        origin = str(source_path)
        try:
            with open(source_path, "r", encoding="utf-8-sig") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Invalid JSON in {origin}: {e}", extra={"source": origin})
            return []
    else:
        data = source
        origin = "<memory>"

    if isinstance(data, dict):
        data = data.get("vocabulary", data.get("entries", []))
    if not isinstance(data, list):
        logger.warning(
            f"Unexpected JSON format in {origin}: expected an entry list, got {type(data).__name__}",
            extra={"source": origin},
        )
        return []

    records = []
    for i, entry in enumerate(data):
        try:
            record = parse_complete_hsk_entry(entry, source_tag=source_tag)
        except (ValidationError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed entry {i} in {origin}: {e}")
            continue
        if record is None:
            logger.debug(f"Entry {i} has no usable surface form, skipping")
            continue
        records.append(record)

    logger.info(
        f"Parsed {len(records)} complete HSK entries from {origin}",
        extra={"source": origin, "item_count": len(records)},
    )
    return records


# ============================================================================
# HIGH-FREQUENCY WORD LIST PARSER
# ============================================================================

VERY_HIGH_BAND_LIMIT = 10_000


def band_from_filename(source_path: Union[str, Path]) -> str:
    """Derive a frequency band from a list file name.

    Examples:
        10k.txt -> top10k
        20k.txt -> top20k
    """
    stem = Path(source_path).stem.lower()
    match = re.search(r"(\d+k?)", stem)
    return f"top{match.group(1)}" if match else f"top-{stem}"


def band_size(band: str) -> Optional[int]:
    """Number of words covered by a band ("top10k" -> 10000)."""
    match = re.fullmatch(r"top-?(\d+)(k?)", band.strip().lower())
    if not match:
        return None
    return int(match.group(1)) * (1000 if match.group(2) else 1)


def priority_for_band(band: str) -> PriorityHint:
    """The top 10k band is very high priority; wider bands are high."""
    size = band_size(band)
    if size is not None and size <= VERY_HIGH_BAND_LIMIT:
        return PriorityHint.VERY_HIGH
    return PriorityHint.HIGH


def parse_frequency_line(
    line: str,
    band: str,
    source_tag: str = "frequency",
    rank: Optional[int] = None,
) -> Optional[LexicalRecord]:
    """Parse "word\\tchinese\\tpinyin\\tenglish"; fewer than 4 fields → None."""
    parts = line.rstrip("\r\n").split("\t")
    if len(parts) < 4:
        return None

    _, headword, pronunciation, gloss = (part.strip() for part in parts[:4])
    if not headword:
        return None

    return LexicalRecord(
        headword=headword,
        pronunciation=pronunciation,
        gloss=gloss,
        all_glosses=[gloss] if gloss else [],
        source_tag=source_tag,
        priority_hint=priority_for_band(band),
        frequency_rank=rank,
        frequency_band=band,
    )


def parse_frequency_file(
    source_path: Union[str, Path],
    band: Optional[str] = None,
    source_tag: str = "frequency",
) -> List[LexicalRecord]:
    """Parse a tab-separated high-frequency list; the band defaults to the file name."""
    source_path = Path(source_path)
    if not _readable(source_path):
        return []

    band = band or band_from_filename(source_path)
    records = []
    with open(source_path, "r", encoding="utf-8-sig") as f:
        for line in f:
            if not line.strip():
                continue
            record = parse_frequency_line(
                line, band, source_tag=source_tag, rank=len(records) + 1
            )
            if record is not None:
                records.append(record)

    logger.info(
        f"Parsed {len(records)} {band} frequency entries from {source_path}",
        extra={"source": str(source_path), "item_count": len(records), "band": band},
    )
    return records


# ============================================================================
# GENERIC LOADER
# ============================================================================


def load_source_file(spec: SourceSpec) -> List[LexicalRecord]:
    """Load and parse a configured source with the parser for its kind.

    Args:
        spec: Source specification

    Returns:
        Parsed records tagged with ``spec.name``
    """
    if spec.kind is SourceKind.CEDICT:
        return parse_cedict_file(spec.path, source_tag=spec.name)
    if spec.kind is SourceKind.HSK_CSV:
        return parse_hsk_csv(spec.path, source_tag=spec.name)
    if spec.kind is SourceKind.COMPLETE_HSK:
        return parse_complete_hsk_json(spec.path, source_tag=spec.name)
    if spec.kind is SourceKind.FREQUENCY:
        return parse_frequency_file(spec.path, band=spec.band, source_tag=spec.name)
    raise ValueError(f"No parser available for source kind={spec.kind}")
