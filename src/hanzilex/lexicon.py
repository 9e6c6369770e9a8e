"""Immutable lexicon aggregate and its level index.

A :class:`Lexicon` is built once from merged entries (or loaded from a
previously written artifact) and then passed to samplers by reference. It is
never mutated after construction, so any number of sampler calls may read it
concurrently.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from hanzilex.utils.file_io import read_json, write_json
from hanzilex.validators.schema import MergedEntry

logger = logging.getLogger(__name__)


class EmptyLexiconError(ValueError):
    """Raised when a build produces no entries at all."""


class LevelIndex:
    """Level → entries mapping in merge order, plus an unleveled bucket."""

    def __init__(self, entries: Iterable[MergedEntry]):
        buckets: Dict[int, List[MergedEntry]] = {}
        leveled: List[MergedEntry] = []
        unleveled: List[MergedEntry] = []
        for entry in entries:
            if entry.level is None:
                unleveled.append(entry)
            else:
                leveled.append(entry)
                buckets.setdefault(entry.level, []).append(entry)

        self._levels: Mapping[int, Tuple[MergedEntry, ...]] = MappingProxyType(
            {level: tuple(buckets[level]) for level in sorted(buckets)}
        )
        self._leveled = tuple(leveled)
        self._unleveled = tuple(unleveled)

    @property
    def unleveled(self) -> Tuple[MergedEntry, ...]:
        return self._unleveled

    def at(self, level: int) -> Tuple[MergedEntry, ...]:
        """Entries at exactly ``level`` (empty tuple if none)."""
        return self._levels.get(level, ())

    def below(self, level: int) -> Iterator[MergedEntry]:
        """Entries at any strictly lower level, in merge order.

        Levels are interleaved as they appear in the lexicon, so a cap on this
        sequence samples across the lower levels rather than the lowest first.
        """
        return (entry for entry in self._leveled if entry.level < level)

    def levels(self) -> Tuple[int, ...]:
        return tuple(self._levels)

    def counts(self) -> Dict[int, int]:
        return {level: len(entries) for level, entries in self._levels.items()}


class Lexicon:
    """The merged entry set with lookup maps and level index."""

    def __init__(self, entries: Sequence[MergedEntry]):
        """Build the lexicon.

        Raises:
            EmptyLexiconError: If ``entries`` is empty
        """
        if not entries:
            raise EmptyLexiconError(
                "Merged lexicon is empty; check that at least one source produced records"
            )

        self._entries = tuple(entries)
        by_headword: Dict[str, MergedEntry] = {}
        for entry in self._entries:
            by_headword.setdefault(entry.headword, entry)
        self._by_headword = MappingProxyType(by_headword)
        self._index = LevelIndex(self._entries)

        logger.debug(
            f"Indexed {len(self._entries)} entries: {self._index.counts()} "
            f"(+{len(self._index.unleveled)} unleveled)"
        )

    @property
    def entries(self) -> Tuple[MergedEntry, ...]:
        return self._entries

    @property
    def index(self) -> LevelIndex:
        return self._index

    @classmethod
    def from_entries(cls, entries: Iterable[MergedEntry]) -> "Lexicon":
        """Build a lexicon from any iterable of merged entries, in iteration order."""
        return cls(list(entries))

    def level_counts(self) -> Dict[str, int]:
        """Entry counts keyed ``level_N`` in level order, then ``unleveled``."""
        counts = {f"level_{level}": count for level, count in self._index.counts().items()}
        if self._index.unleveled:
            counts["unleveled"] = len(self._index.unleveled)
        return counts

    def get(self, headword: str) -> Optional[MergedEntry]:
        return self._by_headword.get(headword)

    def __contains__(self, headword: object) -> bool:
        return headword in self._by_headword

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MergedEntry]:
        return iter(self._entries)

    def to_records(self) -> List[dict]:
        """Flat, homogeneous records; every field present on every entry."""
        return [entry.model_dump(mode="json") for entry in self._entries]

    def save(self, file_path: Union[str, Path]) -> None:
        write_json(self.to_records(), file_path)

    @classmethod
    def load(cls, file_path: Union[str, Path]) -> "Lexicon":
        """Load a lexicon artifact written by :meth:`save`.

        Raises:
            FileNotFoundError: If the artifact doesn't exist
            EmptyLexiconError: If the artifact holds no entries
            pydantic.ValidationError: If a record is malformed
        """
        records = read_json(file_path)
        if not isinstance(records, list):
            raise ValueError(f"Lexicon artifact must be a JSON array: {file_path}")
        lexicon = cls.from_entries(MergedEntry.model_validate(record) for record in records)
        logger.info(f"Loaded {len(lexicon)} lexicon entries from {file_path}")
        return lexicon
