"""Level normalization across source notations.

Every source spells proficiency levels differently: bare numbers in the HSK
3.0 table, ``new-N`` / ``old-N`` tags in the complete HSK vocabulary, ``HSK N``
annotations inside CC-CEDICT glosses, ``7-9`` and ``高等`` bands and the ``HSK4`` labels used
by callers. Each convention is one variant of :class:`LevelNotation`; parsing
tries the variants in declaration order and the first match wins.

Examples:
    >>> parse_level_token("new-7+")
    ParsedLevel(notation=<LevelNotation.NEW_HSK: 'new_hsk'>, level=7)
    >>> first_level(["old-3", "new-2"], allowed={LevelNotation.NEW_HSK})
    2
    >>> parse_skill_level("HSK4")
    4
"""

import logging
import re
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple, Union

from hanzilex.validators.schema import MAX_LEVEL, MIN_LEVEL, LexicalRecord

logger = logging.getLogger(__name__)

SKILL_LEVELS = tuple(f"HSK{n}" for n in range(MIN_LEVEL, MAX_LEVEL + 1))
ADVANCED_BAND_LEVEL = 7

# Full-width and ordinary comma / pipe, plus the enumeration comma
ALTERNATE_FORM_SEPARATORS = re.compile(r"[,，|｜、]")

_INLINE_PATTERN = re.compile(r"/?\bHSK\s?(\d)\b/?", re.IGNORECASE)


class LevelNotation(str, Enum):
    """Known level spellings, tried in this order."""

    NUMERIC = "numeric"
    NEW_HSK = "new_hsk"
    OLD_HSK = "old_hsk"
    BANDED = "banded"
    LABEL = "label"
    INLINE = "inline"


_PATTERNS = {
    LevelNotation.NUMERIC: re.compile(r"^\s*(\d+)\s*$"),
    LevelNotation.NEW_HSK: re.compile(r"^\s*new-(\d+)\+?\s*$", re.IGNORECASE),
    LevelNotation.OLD_HSK: re.compile(r"^\s*old-(\d+)\s*$", re.IGNORECASE),
    LevelNotation.BANDED: re.compile(r"^\s*(?:(\d+)\s*[-–~]\s*\d+|(高等))\s*$"),
    LevelNotation.LABEL: re.compile(r"^\s*HSK\s*(\d+)\s*$", re.IGNORECASE),
    LevelNotation.INLINE: re.compile(r"\bHSK\s?(\d)\b", re.IGNORECASE),
}


class ParsedLevel(NamedTuple):
    notation: LevelNotation
    level: int


def _match(token: str, notation: LevelNotation) -> Optional[int]:
    pattern = _PATTERNS[notation]
    match = pattern.search(token) if notation is LevelNotation.INLINE else pattern.match(token)
    if not match:
        return None
    if match.group(1) is None:
        # 高等 names the advanced 7-9 band
        return ADVANCED_BAND_LEVEL
    return int(match.group(1))


def parse_level_token(
    token: Union[str, int, None],
    allowed: Optional[Iterable[LevelNotation]] = None,
) -> Optional[ParsedLevel]:
    """Parse one free-form level token into an ordinal.

    Args:
        token: Raw token (e.g. "3", "new-4", "new-7+", "HSK 2", "7-9")
        allowed: Restrict parsing to these notations (default: all)

    Returns:
        ParsedLevel, or None when no allowed notation converts the token.
        Ordinals above the top level clamp to it; ordinals below 1 are rejected.
    """
    if token is None or isinstance(token, bool):
        return None
    if isinstance(token, int):
        token = str(token)

    notations = list(LevelNotation) if allowed is None else [
        n for n in LevelNotation if n in set(allowed)
    ]
    for notation in notations:
        value = _match(token, notation)
        if value is None:
            continue
        if value < MIN_LEVEL:
            logger.debug(f"Rejected level token {token!r}: below {MIN_LEVEL}")
            return None
        return ParsedLevel(notation, min(value, MAX_LEVEL))
    return None


def first_level(
    tokens: Optional[Sequence[str]],
    allowed: Optional[Iterable[LevelNotation]] = None,
) -> Optional[int]:
    """Return the level of the first convertible token in a tag list."""
    if not tokens:
        return None
    allowed = None if allowed is None else set(allowed)
    for token in tokens:
        parsed = parse_level_token(token, allowed)
        if parsed:
            return parsed.level
    return None


def strip_inline_levels(text: str) -> Tuple[str, Optional[int]]:
    """Remove inline ``HSK N`` annotations from gloss text.

    Returns:
        Tuple of (cleaned text, first annotated level or None)
    """
    level = None
    match = _INLINE_PATTERN.search(text)
    if match:
        level = min(int(match.group(1)), MAX_LEVEL) or None
    cleaned = _INLINE_PATTERN.sub("/", text)
    cleaned = re.sub(r"/{2,}", "/", cleaned).strip().strip("/").strip()
    return cleaned, level


def parse_skill_level(label: Union[str, int, None]) -> Optional[int]:
    """Map a caller-facing proficiency label (HSK1..HSK7) to its ordinal.

    Unlike :func:`parse_level_token` this never clamps: "HSK9" is simply
    unrecognized.
    """
    if label is None or isinstance(label, bool):
        return None
    if isinstance(label, int):
        return label if MIN_LEVEL <= label <= MAX_LEVEL else None
    for notation in (LevelNotation.LABEL, LevelNotation.NUMERIC):
        value = _match(label, notation)
        if value is not None:
            return value if MIN_LEVEL <= value <= MAX_LEVEL else None
    return None


def split_alternate_forms(raw: Optional[str]) -> List[str]:
    """Split an alternate-forms cell into trimmed, unique, non-empty forms."""
    if not raw:
        return []
    forms: List[str] = []
    seen: Set[str] = set()
    for part in ALTERNATE_FORM_SEPARATORS.split(raw):
        part = part.strip()
        if part and part not in seen:
            seen.add(part)
            forms.append(part)
    return forms


def expand_alternate_forms(
    record: LexicalRecord,
    alternates: Sequence[str],
    alternate_source_tag: Optional[str] = None,
) -> List[LexicalRecord]:
    """Expand a record into itself plus one lookup record per alternate form.

    Alternate records share the primary's level, usage note and priority.

    Args:
        record: Primary record (its alternate_forms are updated in place)
        alternates: Alternate forms in source order
        alternate_source_tag: Source tag for alternate records (default: same)

    Returns:
        List starting with the primary record
    """
    expanded = [record]
    for form in alternates:
        if form == record.headword:
            continue
        record.alternate_forms.add(form)
        expanded.append(
            record.model_copy(
                update={
                    "headword": form,
                    "alternate_forms": set(),
                    "source_tag": alternate_source_tag or record.source_tag,
                },
                deep=True,
            )
        )
    return expanded
