"""CLI for sampling vocabulary pools from a built lexicon.

Usage:
    python -m hanzilex.cli.sample_vocab \
        --lexicon output/lexicon.json \
        --level HSK3 \
        --topic Business \
        --seed 42

Prints (or writes) the target, topic and allowed pools for every
level/topic combination, plus the vocabulary constraint string used in
generation prompts.
"""

import argparse
import json
import logging
import sys
from itertools import product
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError
from tqdm import tqdm

from constants import LOG_FORMAT, LOG_LEVEL, OUTPUT_DIR
from hanzilex.lexicon import EmptyLexiconError, Lexicon
from hanzilex.sampling.presentation import shuffled, vocabulary_constraint
from hanzilex.sampling.sampler import VocabularySampler
from hanzilex.sampling.topics import TopicMatcher
from hanzilex.utils.file_io import write_json
from hanzilex.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Sample level- and topic-constrained vocabulary pools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One level, one topic
  python -m hanzilex.cli.sample_vocab --level HSK3 --topic Business

  # Several levels and topics, reproducible order, written to a file
  python -m hanzilex.cli.sample_vocab \\
      --lexicon output/lexicon.json \\
      --level HSK1 HSK2 HSK3 \\
      --topic Food Travel \\
      --seed 42 --output output/samples.json

  # Custom topic keyword table
  python -m hanzilex.cli.sample_vocab \\
      --level HSK4 --topic Gardening \\
      --topics-file data/topics.json
        """,
    )

    parser.add_argument(
        "--lexicon",
        type=Path,
        default=OUTPUT_DIR / "lexicon.json",
        help="Lexicon artifact written by build_lexicon (default: OUTPUT_DIR/lexicon.json)",
    )

    parser.add_argument(
        "--level",
        nargs="+",
        required=True,
        help="Proficiency level(s) (HSK1-HSK7)",
    )

    parser.add_argument(
        "--topic",
        nargs="+",
        required=True,
        help="Topic label(s), e.g. Food, Travel, Business",
    )

    parser.add_argument(
        "--topics-file",
        type=Path,
        default=None,
        help='JSON topic keyword table {"Topic": ["keyword", ...]}',
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Shuffle seed for the presented word order (default: unshuffled)",
    )

    parser.add_argument(
        "--max-words",
        type=int,
        default=50,
        help="Words listed in the vocabulary constraint (default: 50)",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write samples to this JSON file instead of stdout",
    )

    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    parser.add_argument(
        "--log-format",
        default=LOG_FORMAT,
        choices=["text", "json"],
        help="Log line format",
    )

    return parser.parse_args()


def present(words: List[str], seed: Optional[int]) -> List[str]:
    return words if seed is None else shuffled(words, seed)


def main() -> int:
    """Main CLI entry point."""
    args = parse_args()

    configure_logging(level=args.log_level, log_format=args.log_format)

    try:
        lexicon = Lexicon.load(args.lexicon)
    except FileNotFoundError:
        logger.error(f"Lexicon not found: {args.lexicon} (run hanzilex.cli.build_lexicon first)")
        return 1
    except (EmptyLexiconError, ValidationError, ValueError) as e:
        logger.error(f"Invalid lexicon artifact {args.lexicon}: {e}")
        return 1

    try:
        matcher = TopicMatcher.from_json(args.topics_file) if args.topics_file else TopicMatcher()
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot load topic keywords: {e}")
        return 1

    sampler = VocabularySampler(lexicon, topic_matcher=matcher)
    combinations = list(product(args.level, args.topic))
    samples: List[Dict] = []

    for level, topic in tqdm(combinations, desc="Sampling", unit="pool", disable=len(combinations) < 2):
        pools = sampler.sample(level, topic)
        if not pools.recognized_level:
            logger.warning(f"Level {level!r} not recognized; default vocabulary returned")
        target = present(list(pools.target_pool), args.seed)
        samples.append(
            {
                "level": pools.level,
                "topic": pools.topic,
                "recognized_level": pools.recognized_level,
                "target_pool": target,
                "topic_pool": present(list(pools.topic_pool), args.seed),
                "allowed_pool": present(list(pools.allowed_pool), args.seed),
                "vocabulary_constraint": vocabulary_constraint(target, limit=args.max_words),
            }
        )
        logger.info(
            f"{level} / {topic}: target={len(pools.target_pool)} "
            f"topic={len(pools.topic_pool)} allowed={len(pools.allowed_pool)}"
        )

    if args.output:
        write_json(samples, args.output)
        logger.info(f"Output file: {args.output}")
    else:
        print(json.dumps(samples, ensure_ascii=False, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
