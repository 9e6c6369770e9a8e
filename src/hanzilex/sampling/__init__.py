"""Topic matching and level-constrained vocabulary sampling."""

from hanzilex.sampling.sampler import VocabularySampler
from hanzilex.sampling.topics import DEFAULT_TOPIC_KEYWORDS, TopicMatcher

__all__ = ["DEFAULT_TOPIC_KEYWORDS", "TopicMatcher", "VocabularySampler"]
