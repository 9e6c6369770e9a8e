"""CLI for building the merged lexicon.

Usage:
    python -m hanzilex.cli.build_lexicon \
        --config data/sources.json \
        --output output/lexicon.json \
        --summary output/lexicon_summary.json

The config file is a JSON build manifest: an ordered list of sources
(cedict, hsk_csv, complete_hsk, frequency) plus merge options. Sources with a
url are downloaded when the local file is missing.
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from constants import LOG_FORMAT, LOG_LEVEL, OUTPUT_DIR
from hanzilex.lexicon import EmptyLexiconError
from hanzilex.pipeline import build_lexicon, load_build_config, write_summary
from hanzilex.utils.fetch import SourceFetcher
from hanzilex.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Merge dictionary, HSK and frequency sources into one lexicon",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build with the default output locations
  python -m hanzilex.cli.build_lexicon --config data/sources.json

  # Build without pinyin generation, 8 parser threads
  python -m hanzilex.cli.build_lexicon \\
      --config data/sources.json \\
      --output output/lexicon.json \\
      --no-romanize --workers 8

  # Only use local files, never download
  python -m hanzilex.cli.build_lexicon --config data/sources.json --offline
        """,
    )

    parser.add_argument(
        "--config",
        required=True,
        type=Path,
        help="Build manifest (JSON)",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=OUTPUT_DIR / "lexicon.json",
        help="Lexicon artifact path (default: OUTPUT_DIR/lexicon.json)",
    )

    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Write level/source/priority statistics to this JSON file",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel parser threads (overrides the manifest)",
    )

    parser.add_argument(
        "--no-romanize",
        action="store_true",
        help="Do not generate pinyin for entries without a pronunciation",
    )

    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip downloading sources that are missing locally",
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

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file",
    )

    return parser.parse_args()


def main() -> int:
    """Main CLI entry point."""
    args = parse_args()

    configure_logging(
        level=args.log_level,
        log_file=args.log_file,
        log_format=args.log_format,
    )

    logger.info("=" * 80)
    logger.info("Lexicon Build")
    logger.info("=" * 80)
    logger.info(f"Config: {args.config}")
    logger.info(f"Output: {args.output}")

    try:
        config = load_build_config(args.config)
    except FileNotFoundError:
        logger.error(f"Config file not found: {args.config}")
        return 1
    except ValidationError as e:
        logger.error(f"Invalid build config {args.config}: {e}")
        return 1

    if args.workers:
        config.parallel_workers = max(1, args.workers)
    if args.no_romanize:
        config.romanize_missing = False
    if args.offline:
        for source in config.sources:
            source.url = None

    for source in config.sources:
        logger.info(f"Source: {source.name} ({source.kind.value}) {source.path}")

    fetcher = SourceFetcher()
    try:
        lexicon, stats = build_lexicon(config, fetcher=fetcher)
    except (EmptyLexiconError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Lexicon build failed: {e}", exc_info=True)
        return 1

    try:
        lexicon.save(args.output)
        if args.summary:
            write_summary(lexicon, stats, args.summary)
    except OSError as e:
        logger.error(f"Cannot write output: {e}", exc_info=True)
        return 1

    logger.info("\n" + "=" * 80)
    logger.info("BUILD SUMMARY")
    logger.info("=" * 80)
    for name, source_stats in stats.per_source.items():
        logger.info(
            f"{name}: {source_stats.records:,} records, "
            f"{source_stats.added:,} added, {source_stats.updated:,} updated"
        )
    logger.info(f"Alternate forms absorbed: {stats.absorbed_alternates:,}")
    logger.info(f"Alternate forms materialized: {stats.materialized_alternates:,}")
    logger.info(f"Pinyin generated: {stats.romanized:,}")
    logger.info(f"Total entries: {len(lexicon):,}")
    for label, count in lexicon.level_counts().items():
        logger.info(f"  {label}: {count:,}")
    if fetcher.total_requests:
        logger.info(
            f"Downloads: {fetcher.total_requests} requests, {fetcher.failed_requests} failed"
        )
    logger.info(f"Output file: {args.output}")
    logger.info("=" * 80)

    return 0


if __name__ == "__main__":
    sys.exit(main())
