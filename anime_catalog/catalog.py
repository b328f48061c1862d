#!/usr/bin/env python3
"""
AnimeCatalog — the one object that owns every process-wide registry

Construct once per process. Records, marked ids, translation cache, pending
translations and the worker pool all live on this object and die with it.
"""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from anime_catalog.constants import RECORDS_FILE, MARKED_FILE, TRANSLATION_CACHE_FILE
from anime_catalog.ingest import CatalogIngestor, StatusSink
from anime_catalog.jikan import JikanClient
from anime_catalog.normalizer import AnimeRecord
from anime_catalog.query import QueryEngine, QueryFilter
from anime_catalog.stats import CollectionStats, collection_stats, year_table
from anime_catalog.store import CatalogStore, MarkedSet, TranslationCache
from anime_catalog.translation import TranslationProvider, default_providers
from anime_catalog.translator import ProgressSink, TranslationCoordinator

logger = logging.getLogger(__name__)


class AnimeCatalog:
    """Wires fetcher, store, translator and query engine together"""

    def __init__(self, config: dict,
                 client: Optional[JikanClient] = None,
                 providers: Optional[List[TranslationProvider]] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 on_progress: Optional[ProgressSink] = None,
                 on_status: Optional[StatusSink] = None):
        self.config = config
        cache_dir = Path(config['cache_dir'])

        self.store = CatalogStore(cache_dir / RECORDS_FILE)
        self.marked = MarkedSet(cache_dir / MARKED_FILE)
        self.translation_cache = TranslationCache(cache_dir / TRANSLATION_CACHE_FILE)

        self.client = client or JikanClient(sleep=sleep, timeout=config['request_timeout'])
        if providers is None:
            providers = default_providers(config['target_language'], config['request_timeout'])
        self.translator = TranslationCoordinator(
            self.store,
            self.translation_cache,
            providers,
            on_progress=on_progress,
            max_workers=config['translation_workers'],
        )
        self.ingestor = CatalogIngestor(self.client, self.store, self.translator,
                                        sleep=sleep, on_status=on_status)
        self.query_engine = QueryEngine(self.store, self.marked)

    # Ingestion

    def fetch_year(self, year: int, pages: Optional[int] = None):
        return self.ingestor.fetch_year(year, pages or self.config['light_pages'])

    def prefetch(self, deep: bool = False, on_progress=None):
        pages = self.config['deep_pages'] if deep else self.config['light_pages']
        return self.ingestor.prefetch_range(
            pages,
            year_start=self.config['year_start'],
            year_end=self.config['year_end'],
            on_progress=on_progress,
        )

    # Reads

    def query(self, flt: Optional[QueryFilter] = None, translate: bool = True) -> List[AnimeRecord]:
        """Query for presentation; shown titles are queued for translation"""
        results = self.query_engine.query(flt)
        if translate:
            self._queue_translations(results)
        return results

    def _queue_translations(self, records: List[AnimeRecord]):
        hits = self.translation_cache.hits
        for record in records:
            self.translator.consider_title(record.id, record.title, persist=False)
        if self.translation_cache.hits != hits:
            self.store.persist()

    def apply_cached_translations(self, records: List[AnimeRecord]) -> int:
        """Patch records whose titles were translated after they were queried"""
        patched = 0
        for record in records:
            if self.translator.apply_cached(record.id, record.title, persist=False):
                patched += 1
        if patched:
            self.store.persist()
        return patched

    def stats(self) -> CollectionStats:
        return collection_stats(self.store, self.marked)

    def year_table(self, translate: bool = True):
        rows = year_table(self.store, self.config['year_start'], self.config['year_end'])
        if translate:
            self._queue_translations([r for _, records in rows for r in records])
        return rows

    def run_stats(self) -> dict:
        """Request and translation-cache counters for this process"""
        stats = dict(self.client.get_request_stats())
        stats['translation_cache_hits'] = self.translation_cache.hits
        return stats

    # User actions

    def toggle_marked(self, record_id: int) -> bool:
        return self.marked.toggle(record_id)

    def clear_marked(self):
        self.marked.clear()
        logger.info("Cleared watched marks")

    def clear_records(self):
        self.store.clear()
        logger.info("Cleared record cache")

    def clear_translations(self):
        self.translation_cache.clear()
        logger.info("Cleared translation cache")

    def close(self, wait: bool = False):
        """Tear down the translation pool; in-flight work is abandoned unless wait"""
        self.translator.shutdown(wait=wait)
