"""Remote source retrieval with retry logic.

Downloads are an optional enrichment: a source that cannot be fetched is
reported and skipped by the build rather than failing it.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

import requests

from constants import FETCH_RETRIES, FETCH_RETRY_DELAY, FETCH_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class SourceFetcher:
    """Downloads source files over HTTP with exponential backoff."""

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT,
        max_retries: int = FETCH_RETRIES,
        retry_delay: float = FETCH_RETRY_DELAY,
        session: Optional[requests.Session] = None,
    ):
        """Initialize fetcher.

        Args:
            timeout: Per-request timeout in seconds
            max_retries: Maximum number of attempts per URL
            retry_delay: Initial delay between retries in seconds (exponential backoff)
            session: Optional requests session (default: a new session)
        """
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

        self.total_requests = 0
        self.failed_requests = 0

    def fetch(self, url: str, destination: Union[str, Path]) -> bool:
        """Download ``url`` to ``destination``.

        The file is written to a temporary sibling and renamed, so a failed
        download never leaves a truncated source behind.

        Returns:
            True if the file was downloaded, False after all attempts failed
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        partial = destination.with_name(destination.name + ".part")

        for attempt in range(self.max_retries):
            self.total_requests += 1
            try:
                logger.info(
                    f"Fetching {url} (attempt {attempt + 1}/{self.max_retries})"
                )
                response = self.session.get(
                    url, timeout=self.timeout, headers={"User-Agent": USER_AGENT}
                )
                response.raise_for_status()

                with open(partial, "wb") as f:
                    f.write(response.content)
                partial.replace(destination)

                logger.info(f"Downloaded {url} -> {destination} ({len(response.content)} bytes)")
                return True

            except (requests.RequestException, OSError) as e:
                logger.warning(
                    f"Fetch failed (attempt {attempt + 1}/{self.max_retries}): {url}: {e}"
                )
                if partial.exists():
                    partial.unlink()

                if attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.info(f"Retrying in {delay:.1f}s...")
                    time.sleep(delay)

        self.failed_requests += 1
        logger.error(f"Source unavailable after {self.max_retries} attempts: {url}")
        return False
