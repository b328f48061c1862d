#!/usr/bin/env python3
"""
Jikan (MyAnimeList) catalog client with rate-limit aware retries

One call fetches one page of one release year, ordered by score descending.
Status handling per attempt:
  2xx  → normalize and return
  429  → sleep, grow delay x1.8, retry (consumes an attempt)
  400  → FatalRequestError, never retried
  else → HTTPStatusError on the last attempt, otherwise sleep, grow x1.6, retry
Running out of attempts on 429 returns an EXHAUSTED page instead of raising.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import requests

from anime_catalog.constants import (
    JIKAN_BASE_URL, PAGE_SIZE, MAX_ATTEMPTS,
    BACKOFF_INITIAL_MS, BACKOFF_CEILING_MS,
    RATE_LIMIT_BACKOFF_FACTOR, ERROR_BACKOFF_FACTOR,
    STATUS_RATE_LIMITED, STATUS_FATAL_REQUEST,
)
from anime_catalog.errors import FatalRequestError, HTTPStatusError
from anime_catalog.normalizer import AnimeRecord, normalize_record

logger = logging.getLogger(__name__)


class PageOutcome(Enum):
    OK = 'ok'
    EXHAUSTED = 'exhausted'  # every attempt was rate-limited


@dataclass
class PageResult:
    """One fetched page; records keep the service's score-descending order"""
    year: int
    page: int
    outcome: PageOutcome
    records: List[AnimeRecord] = field(default_factory=list)
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.outcome is PageOutcome.EXHAUSTED


def next_delay(delay_ms: int, factor: float) -> int:
    """Grow a backoff delay, capped at the ceiling"""
    return min(BACKOFF_CEILING_MS, round(delay_ms * factor))


class JikanClient:
    """Interface to the Jikan v4 anime search endpoint with bounded retries"""

    def __init__(self, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 timeout: float = 10,
                 max_attempts: int = MAX_ATTEMPTS):
        self.base_url = JIKAN_BASE_URL
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        self.sleep = sleep
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.requests_made = 0
        self.rate_limited = 0

    def _page_params(self, year: int, page: int) -> dict:
        return {
            'start_date': f"{year}-01-01",
            'end_date': f"{year}-12-31",
            'order_by': 'score',
            'sort': 'desc',
            'limit': PAGE_SIZE,
            'page': page,
        }

    def _wait(self, delay_ms: int):
        self.sleep(delay_ms / 1000)

    def fetch_page(self, year: int, page: int) -> PageResult:
        """
        Fetch one page of anime released in `year`

        Args:
            year: Release year (start_date/end_date cover the whole year)
            page: 1-based page index

        Returns:
            PageResult with outcome OK, or EXHAUSTED if every attempt was
            rate-limited

        Raises:
            FatalRequestError: the service answered 400
            HTTPStatusError: another non-success status on the final attempt
            requests.RequestException: transport failure
        """
        delay = BACKOFF_INITIAL_MS
        params = self._page_params(year, page)

        for attempt in range(1, self.max_attempts + 1):
            self.requests_made += 1
            response = self.session.get(
                f"{self.base_url}/anime",
                params=params,
                timeout=self.timeout
            )
            status = response.status_code

            if 200 <= status < 300:
                rows = response.json().get('data') or []
                records = [normalize_record(row) for row in rows]
                logger.debug(f"Jikan: {year} page {page} → {len(records)} records")
                return PageResult(year, page, PageOutcome.OK, records, attempt)

            if status == STATUS_RATE_LIMITED:
                self.rate_limited += 1
                logger.warning(
                    f"Jikan rate-limited on {year} page {page} "
                    f"(attempt {attempt}/{self.max_attempts}), waiting {delay}ms"
                )
                self._wait(delay)
                delay = next_delay(delay, RATE_LIMIT_BACKOFF_FACTOR)
                continue

            if status == STATUS_FATAL_REQUEST:
                raise FatalRequestError(
                    status,
                    "Jikan returned 400: request blocked or parameters invalid, "
                    "retry later or reduce request rate"
                )

            if attempt == self.max_attempts:
                raise HTTPStatusError(status)

            logger.warning(
                f"Jikan HTTP {status} on {year} page {page} "
                f"(attempt {attempt}/{self.max_attempts}), waiting {delay}ms"
            )
            self._wait(delay)
            delay = next_delay(delay, ERROR_BACKOFF_FACTOR)

        logger.warning(f"Jikan: {year} page {page} still rate-limited after "
                       f"{self.max_attempts} attempts, returning empty page")
        return PageResult(year, page, PageOutcome.EXHAUSTED, [], self.max_attempts)

    def get_request_stats(self) -> dict:
        """Get request counters for this client"""
        return {
            'requests': self.requests_made,
            'rate_limited': self.rate_limited,
        }
