"""
Shared utilities for the lexicon build.

- fetch.py: remote source download with retry logic
- file_io.py: JSON read/write helpers
- logging_config.py: structured JSON logging for build observability
- romanization.py: pinyin generation with pypinyin
"""
