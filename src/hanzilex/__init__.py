"""
Mandarin Lexicon Builder and Vocabulary Sampler

This package merges a gloss dictionary (CC-CEDICT), HSK 3.0 level tables, a
structured "complete HSK" vocabulary document and high-frequency word lists
into one conflict-resolved lexicon, and samples bounded, level- and
topic-constrained vocabulary pools from it for lesson generation.

**Version**: 0.1.0
**Key Dependencies**: pydantic, pypinyin, requests, loguru
"""

from hanzilex.parsers.levels import SKILL_LEVELS

__version__ = "0.1.0"
__author__ = "Hanzilex"

SUPPORTED_LEVELS = list(SKILL_LEVELS)

__all__ = [
    "__version__",
    "__author__",
    "SUPPORTED_LEVELS",
]
