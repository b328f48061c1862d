#!/usr/bin/env python3
"""
Sequential page ingestion: fetch → upsert → queue translations

One page is processed to completion (including its retries) before the next
starts, with a fixed cool-down between pages. A failing page is logged and
reported as status text; the run moves on to the next page. Pages stored
before a failure stay stored.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import requests

from anime_catalog.constants import PAGE_COOLDOWN_MS, YEAR_START, YEAR_END
from anime_catalog.errors import CatalogError
from anime_catalog.jikan import JikanClient
from anime_catalog.store import CatalogStore
from anime_catalog.translator import TranslationCoordinator

logger = logging.getLogger(__name__)

# (processed years, total years, year just finished)
RangeProgress = Callable[[int, int, int], None]
StatusSink = Callable[[str], None]


@dataclass
class IngestReport:
    """What one fetch_year() run did"""
    year: int
    pages_requested: int
    pages_fetched: int = 0
    records: int = 0
    exhausted_pages: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def merge(self, other: 'IngestReport'):
        self.pages_requested += other.pages_requested
        self.pages_fetched += other.pages_fetched
        self.records += other.records
        self.exhausted_pages.extend(other.exhausted_pages)
        self.errors.extend(other.errors)


class CatalogIngestor:
    """Drives the Jikan client page by page into the store"""

    def __init__(self, client: JikanClient, store: CatalogStore,
                 translator: Optional[TranslationCoordinator] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 on_status: Optional[StatusSink] = None,
                 cooldown_ms: int = PAGE_COOLDOWN_MS):
        self.client = client
        self.store = store
        self.translator = translator
        self.sleep = sleep
        self.on_status = on_status
        self.cooldown_ms = cooldown_ms

    def _status(self, message: str):
        if self.on_status:
            self.on_status(message)

    def fetch_year(self, year: int, pages: int) -> IngestReport:
        """
        Fetch pages 1..pages of one release year

        Args:
            year: Release year
            pages: Number of 25-record pages to pull

        Returns:
            IngestReport; errors are collected, never raised
        """
        report = IngestReport(year=year, pages_requested=pages)

        for page in range(1, pages + 1):
            try:
                result = self.client.fetch_page(year, page)
                if result.exhausted:
                    report.exhausted_pages.append(page)
                    self._status(f"{year} page {page}: still rate-limited, skipped")
                elif result.records:
                    report.pages_fetched += 1
                    stored = self.store.upsert_many(result.records, persist=False)
                    if self.translator:
                        for record in result.records:
                            self.translator.consider_title(record.id, record.title,
                                                           persist=False)
                    # One snapshot write per page, cache-hit patches included
                    self.store.persist()
                    report.records += stored
                    logger.info(f"{year} page {page}: stored {len(result.records)} records "
                                f"(collection size {len(self.store)})")
                else:
                    report.pages_fetched += 1
            except (CatalogError, requests.exceptions.RequestException, ValueError) as e:
                message = f"Error fetching {year}: {e}"
                logger.error(message)
                report.errors.append(message)
                self._status(message)

            # Gentle throttle regardless of outcome
            self.sleep(self.cooldown_ms / 1000)

        return report

    def prefetch_range(self, pages_per_year: int,
                       year_start: int = YEAR_START, year_end: int = YEAR_END,
                       on_progress: Optional[RangeProgress] = None) -> IngestReport:
        """
        Fetch every year from year_end down to year_start

        Returns:
            Combined report across all years
        """
        total = year_end - year_start + 1
        combined = IngestReport(year=year_end, pages_requested=0)

        for processed, year in enumerate(range(year_end, year_start - 1, -1), 1):
            self._status(f"Fetching {year} ({processed}/{total})")
            combined.merge(self.fetch_year(year, pages_per_year))
            if on_progress:
                on_progress(processed, total, year)

        self._status('Done')
        logger.info(f"Prefetch finished: {combined.records} records from "
                    f"{combined.pages_fetched} pages, {len(combined.errors)} errors, "
                    f"{len(combined.exhausted_pages)} rate-limited pages")
        return combined
