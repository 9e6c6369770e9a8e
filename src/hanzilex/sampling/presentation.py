"""Caller-side presentation of sampled pools.

The sampler itself is deterministic; randomizing the order shown to a
generator or a learner happens here, with an explicit seed when the caller
needs reproducible output.
"""

import random
from typing import List, Optional, Sequence


def shuffled(words: Sequence[str], seed: Optional[int] = None) -> List[str]:
    """Return a shuffled copy of ``words``; the input is left untouched."""
    result = list(words)
    random.Random(seed).shuffle(result)
    return result


def vocabulary_constraint(words: Sequence[str], limit: int = 50) -> str:
    """Comma-separated word list for a generation prompt.

    At most ``limit`` words are listed; the remainder is summarized as
    "(and N more words)".
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    shown = ", ".join(words[:limit])
    remaining = len(words) - limit
    if remaining > 0:
        suffix = f"(and {remaining} more words)"
        return f"{shown} {suffix}" if shown else suffix
    return shown
