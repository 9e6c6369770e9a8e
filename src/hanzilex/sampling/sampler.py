"""Level-constrained topic sampling over a built lexicon.

Given a proficiency level and a topic, the sampler returns three bounded word
pools for lesson generation:

- target pool:  words at exactly the level, priority words first, widened by
                the fallback cascade when the level is thin
- topic pool:   the target-pool words relevant to the topic
- allowed pool: the broad vocabulary the generated text may use (target
                level, a capped slice of lower levels, unleveled filler)

Sampling is deterministic. Presentation shuffling belongs to the caller (see
:mod:`hanzilex.sampling.presentation`).
"""

import logging
from typing import Iterable, List, Optional, Set, Union

from hanzilex.lexicon import Lexicon
from hanzilex.parsers.levels import parse_skill_level
from hanzilex.sampling.topics import TopicMatcher
from hanzilex.validators.schema import MergedEntry, SamplePools, SamplerLimits

logger = logging.getLogger(__name__)


def prioritized(entries: Iterable[MergedEntry]) -> List[MergedEntry]:
    """Stable partition: very_high/high priority entries first."""
    entries = list(entries)
    return [e for e in entries if e.is_prioritized] + [e for e in entries if not e.is_prioritized]


class _Pool:
    """Ordered, de-duplicated headword accumulator."""

    def __init__(self) -> None:
        self.entries: List[MergedEntry] = []
        self._seen: Set[str] = set()

    def __len__(self) -> int:
        return len(self.entries)

    def extend(self, entries: Iterable[MergedEntry], limit: Optional[int] = None, until: Optional[int] = None) -> int:
        """Append unseen entries.

        Args:
            entries: Candidates in order
            limit: Maximum number of entries to add
            until: Stop once the pool holds this many entries

        Returns:
            Number of entries added
        """
        added = 0
        for entry in entries:
            if limit is not None and added >= limit:
                break
            if until is not None and len(self.entries) >= until:
                break
            if entry.headword in self._seen:
                continue
            self._seen.add(entry.headword)
            self.entries.append(entry)
            added += 1
        return added


class VocabularySampler:
    """Turns a lexicon into bounded vocabulary pools for a level and topic."""

    def __init__(
        self,
        lexicon: Lexicon,
        topic_matcher: Optional[TopicMatcher] = None,
        limits: Optional[SamplerLimits] = None,
    ):
        self.lexicon = lexicon
        self.topic_matcher = topic_matcher or TopicMatcher()
        self.limits = limits or SamplerLimits()

    def sample(self, level: Union[str, int], topic: str) -> SamplePools:
        """Sample vocabulary pools.

        Args:
            level: Proficiency label ("HSK1".."HSK7") or ordinal
            topic: Free-text topic label

        Returns:
            SamplePools with target, topic and allowed headword tuples.
            Unrecognized levels get the safe default (leading entries of the
            whole lexicon) instead of an empty result.
        """
        ordinal = parse_skill_level(level)
        if ordinal is None:
            logger.warning(f"Unrecognized level {level!r}, using default vocabulary")
            return self._default_pools(str(level), topic)

        target = self.target_entries(ordinal)
        # Topic words come from the exact level only, never from the cascade
        level_entries = prioritized(self.lexicon.index.at(ordinal))
        topic_entries = self.topic_matcher.filter(level_entries, topic)
        allowed = self.allowed_entries(ordinal)

        logger.debug(
            f"Sampled level {ordinal} topic {topic!r}: target={len(target)} "
            f"topic={len(topic_entries)} allowed={len(allowed)}"
        )
        return SamplePools(
            level=str(level),
            topic=topic,
            target_pool=tuple(e.headword for e in target),
            topic_pool=tuple(e.headword for e in topic_entries),
            allowed_pool=tuple(e.headword for e in allowed),
        )

    def target_entries(self, level: int) -> List[MergedEntry]:
        """Level-exact entries, priority first, widened by the fallback cascade."""
        limits = self.limits
        index = self.lexicon.index
        pool = _Pool()
        pool.extend(prioritized(index.at(level)))

        if len(pool) < limits.cascade_min_target:
            added = pool.extend(index.at(level - 1), limit=limits.cascade_take)
            logger.debug(f"Level {level} has {len(pool) - added} words, added {added} from level {level - 1}")

            if len(pool) < limits.cascade_min_after_lower:
                added = pool.extend(index.unleveled, limit=limits.cascade_take)
                logger.debug(f"Added {added} unleveled words to level {level} target pool")

        if not len(pool):
            pool.extend(self.lexicon.entries, limit=limits.default_target_size)
            logger.warning(f"No vocabulary near level {level}, using default target pool")

        return pool.entries

    def allowed_entries(self, level: int) -> List[MergedEntry]:
        """Broad pool: target level, capped lower levels, unleveled filler."""
        limits = self.limits
        index = self.lexicon.index
        pool = _Pool()
        pool.extend(prioritized(index.at(level)))

        lower_cap = (
            limits.lower_level_cap_beginner
            if level <= limits.beginner_max_level
            else limits.lower_level_cap
        )
        pool.extend(index.below(level), limit=lower_cap)

        if len(pool) < limits.allowed_min_size:
            pool.extend(index.unleveled, until=limits.allowed_min_size)

        if not len(pool):
            pool.extend(self.lexicon.entries, limit=limits.default_allowed_size)

        return pool.entries[: limits.allowed_max_size]

    def _default_pools(self, level: str, topic: str) -> SamplePools:
        target = _Pool()
        target.extend(self.lexicon.entries, limit=self.limits.default_target_size)
        allowed = _Pool()
        allowed.extend(self.lexicon.entries, limit=self.limits.default_allowed_size)
        return SamplePools(
            level=level,
            topic=topic,
            recognized_level=False,
            target_pool=tuple(e.headword for e in target.entries),
            topic_pool=tuple(
                e.headword for e in self.topic_matcher.filter(target.entries, topic)
            ),
            allowed_pool=tuple(e.headword for e in allowed.entries),
        )
