"""Source file parsers and level normalization.

This module provides the parsers that turn each supported source format
(CC-CEDICT text, HSK 3.0 CSV, complete-HSK JSON, frequency lists) into
uniform lexical records.
"""

from hanzilex.parsers.levels import (
    LevelNotation,
    parse_level_token,
    parse_skill_level,
    split_alternate_forms,
    strip_inline_levels,
)
from hanzilex.parsers.source_parsers import (
    load_source_file,
    parse_cedict_file,
    parse_complete_hsk_json,
    parse_frequency_file,
    parse_hsk_csv,
)

__all__ = [
    "LevelNotation",
    "parse_level_token",
    "parse_skill_level",
    "split_alternate_forms",
    "strip_inline_levels",
    "load_source_file",
    "parse_cedict_file",
    "parse_complete_hsk_json",
    "parse_frequency_file",
    "parse_hsk_csv",
]
