"""Lexicon build step.

Fetches remote sources that are not present locally, parses every source in
parallel, merges the results in the declared source order and freezes them
into an indexed :class:`~hanzilex.lexicon.Lexicon`.

Usage:
    >>> config = load_build_config("data/sources.json")
    >>> lexicon, stats = build_lexicon(config)
    >>> write_summary(lexicon, stats, "output/summary.json")
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from hanzilex.lexicon import EmptyLexiconError, Lexicon
from hanzilex.merge.engine import MergeEngine, MergeStats, SourceBatch
from hanzilex.parsers.source_parsers import load_source_file
from hanzilex.utils.fetch import SourceFetcher
from hanzilex.utils.file_io import read_json, write_json
from hanzilex.utils.logging_config import pipeline_stage_logger
from hanzilex.validators.schema import LexicalRecord, LexiconBuildConfig, SourceSpec

logger = logging.getLogger(__name__)


def load_build_config(file_path: Union[str, Path]) -> LexiconBuildConfig:
    """Load a build manifest from JSON.

    Relative source paths are resolved against the manifest's directory.

    Raises:
        FileNotFoundError: If the manifest doesn't exist
        pydantic.ValidationError: If the manifest is invalid
    """
    file_path = Path(file_path)
    config = LexiconBuildConfig.model_validate(read_json(file_path))
    base = file_path.parent
    for source in config.sources:
        if not source.path.is_absolute():
            source.path = base / source.path
    return config


def ensure_source(spec: SourceSpec, fetcher: Optional[SourceFetcher] = None) -> bool:
    """Make sure a source file is available locally.

    Returns:
        True if the file exists (already, or after a successful fetch)

    Raises:
        FileNotFoundError: If a required (non-optional) source is unavailable
    """
    if spec.path.exists():
        return True

    if spec.url:
        fetcher = fetcher or SourceFetcher()
        if fetcher.fetch(spec.url, spec.path):
            return True
        logger.warning(f"Skipping source {spec.name}: download failed")
    else:
        logger.warning(f"Skipping source {spec.name}: {spec.path} not found and no url configured")

    if not spec.optional:
        raise FileNotFoundError(f"Required source {spec.name} unavailable: {spec.path}")
    return False


def _parse_source(spec: SourceSpec) -> List[LexicalRecord]:
    records = load_source_file(spec)
    logger.info(f"Parsed {len(records)} records from {spec.name}", extra={"source": spec.name})
    return records


def build_lexicon(
    config: LexiconBuildConfig,
    fetcher: Optional[SourceFetcher] = None,
) -> Tuple[Lexicon, MergeStats]:
    """Build the merged lexicon described by ``config``.

    Args:
        config: Build manifest (sources in merge precedence order)
        fetcher: Source fetcher for remote sources (default: a new SourceFetcher)

    Returns:
        Tuple of (lexicon, merge statistics)

    Raises:
        EmptyLexiconError: If no source produced any records
        FileNotFoundError: If a required source is unavailable
    """
    with pipeline_stage_logger("fetch", sources=len(config.sources)):
        available = [spec for spec in config.sources if ensure_source(spec, fetcher)]

    with pipeline_stage_logger("parse", sources=len(available)) as stage_logger:
        with ThreadPoolExecutor(max_workers=config.parallel_workers) as executor:
            # map() yields in submission order, so merge order stays declared order
            parsed = list(executor.map(_parse_source, available))
        stage_logger.info(f"Parsed {sum(len(r) for r in parsed)} records total")

    batches = [
        SourceBatch(name=spec.name, records=records, enrichment=spec.enrichment)
        for spec, records in zip(available, parsed)
    ]

    with pipeline_stage_logger("merge", sources=len(batches)):
        engine = MergeEngine(
            placeholder_gloss=config.placeholder_gloss,
            enrichment_tie_break=config.enrichment_tie_break,
            romanize_missing=config.romanize_missing,
        )
        entries, stats = engine.merge(batches)

    if not entries:
        raise EmptyLexiconError(
            f"No entries produced from {len(config.sources)} configured sources "
            f"({len(available)} available)"
        )

    with pipeline_stage_logger("index", entries=len(entries)):
        lexicon = Lexicon.from_entries(entries)

    return lexicon, stats


def summarize(lexicon: Lexicon, stats: Optional[MergeStats] = None) -> Dict:
    """Distribution statistics for a built lexicon."""
    entries = lexicon.entries
    total = len(entries)
    with_pinyin = sum(1 for entry in entries if entry.pronunciation)

    source_counts: Counter = Counter()
    for entry in entries:
        source_counts.update(entry.sources)

    summary = {
        "total_entries": total,
        "levels": lexicon.level_counts(),
        "sources": dict(sorted(source_counts.items())),
        "priority": dict(sorted(Counter(e.priority_hint.value for e in entries).items())),
        "pinyin_coverage": {
            "with_pinyin": with_pinyin,
            "without_pinyin": total - with_pinyin,
            "percent": round(100.0 * with_pinyin / total, 2) if total else 0.0,
        },
    }
    if stats is not None:
        summary["merge"] = {
            "added": stats.added,
            "updated": stats.updated,
            "absorbed_alternates": stats.absorbed_alternates,
            "materialized_alternates": stats.materialized_alternates,
            "romanized": stats.romanized,
            "per_source": {
                name: source_stats.model_dump() for name, source_stats in stats.per_source.items()
            },
        }
    return summary


def write_summary(
    lexicon: Lexicon,
    stats: Optional[MergeStats],
    file_path: Union[str, Path],
) -> Dict:
    """Write :func:`summarize` output as JSON and return it."""
    summary = summarize(lexicon, stats)
    write_json(summary, file_path)
    logger.info(f"Wrote lexicon summary to {file_path}")
    return summary
