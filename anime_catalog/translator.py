#!/usr/bin/env python3
"""
Asynchronous title translation coordinator

consider_title() is called for every record that is upserted or shown.
Policy, in order:
  1. Native-script, empty or non-translatable titles are ignored
  2. Cache hit → patch the record immediately, no network
  3. Text already in flight → nothing (one task per distinct source text)
  4. Otherwise queue a task on the worker pool

A task walks the provider chain; on success the cache entry is written and
the record currently bound to the id is patched. Failures are swallowed and
leave the title unchanged. Either way the text leaves the pending set and a
progress update is emitted.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, Future, wait as wait_futures
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from anime_catalog.normalization import needs_translation
from anime_catalog.store import CatalogStore, TranslationCache
from anime_catalog.translation import TranslationProvider, translate_with_fallback

logger = logging.getLogger(__name__)


class TaskState(Enum):
    QUEUED = 'queued'
    IN_FLIGHT = 'in_flight'
    RESOLVED = 'resolved'
    FAILED = 'failed'


@dataclass
class TranslationTask:
    """One in-flight translation of one distinct source text"""
    source_text: str
    record_id: int
    state: TaskState = TaskState.QUEUED
    result: Optional[str] = None
    provider: Optional[str] = None


@dataclass(frozen=True)
class TranslationProgress:
    """Snapshot of translation progress"""
    pending: int
    completed: int
    total_queued: int

    @property
    def percent(self) -> float:
        """Fraction completed in 0..1; nothing queued counts as complete"""
        if not self.total_queued:
            return 1.0
        return min(1.0, self.completed / self.total_queued)

    def describe(self) -> str:
        if self.pending == 0:
            return 'No titles waiting for translation'
        return f"Translating: {self.pending}, done {self.completed}/{self.total_queued}"


ProgressSink = Callable[[TranslationProgress], None]
TaskListener = Callable[[TranslationTask], None]


class TranslationCoordinator:
    """Owns the pending set, the queued counter and the worker pool"""

    def __init__(self, store: CatalogStore, cache: TranslationCache,
                 providers: List[TranslationProvider],
                 on_progress: Optional[ProgressSink] = None,
                 max_workers: int = 8):
        self.store = store
        self.cache = cache
        self.providers = providers
        self.on_progress = on_progress
        self._listeners: List[TaskListener] = []
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix='translate')
        self._lock = threading.Lock()
        self._pending: Dict[str, TranslationTask] = {}
        self._futures: List[Future] = []
        self._total_queued = 0

    def add_listener(self, listener: TaskListener):
        """Register a callback invoked with every finished task"""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def consider_title(self, record_id: int, title: str,
                       persist: bool = True) -> Optional[TranslationTask]:
        """
        Queue a translation for a record title if one is needed

        Args:
            record_id: Catalog id of the record to patch
            title: The record's current title (also the cache key)
            persist: Write the store snapshot on a cache hit; callers that
                persist a whole page afterwards pass False

        Returns:
            The newly queued task, or None if nothing was queued
        """
        if not title or not needs_translation(title):
            return None

        if self.apply_cached(record_id, title, persist=persist):
            return None

        with self._lock:
            if title in self._pending:
                return None
            task = TranslationTask(source_text=title, record_id=record_id)
            self._pending[title] = task
            self._total_queued += 1

        self._report_progress()
        future = self._executor.submit(self._resolve, task)
        with self._lock:
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)
        return task

    def apply_cached(self, record_id: int, title: str, persist: bool = True) -> bool:
        """Patch the record from the cache only. Returns True on a cache hit"""
        cached = self.cache.get(title)
        if not cached:
            return False
        self.store.patch_title(record_id, cached, persist=persist)
        self._report_progress()
        return True

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    def _resolve(self, task: TranslationTask):
        task.state = TaskState.IN_FLIGHT
        try:
            translated, provider = translate_with_fallback(task.source_text, self.providers)
            if translated:
                self.cache.put(task.source_text, translated)
                self.store.patch_title(task.record_id, translated)
                task.result = translated
                task.provider = provider
                task.state = TaskState.RESOLVED
                logger.info(f"Translated '{task.source_text}' → '{translated}' via {provider}")
            else:
                task.state = TaskState.FAILED
                logger.debug(f"No translation accepted for '{task.source_text}'")
        except Exception as e:
            task.state = TaskState.FAILED
            logger.debug(f"Translation task for '{task.source_text}' failed: {e}")
        finally:
            with self._lock:
                self._pending.pop(task.source_text, None)
            self._notify(task)
            self._report_progress()

    def _notify(self, task: TranslationTask):
        for listener in self._listeners:
            try:
                listener(task)
            except Exception as e:
                logger.error(f"Translation listener failed: {e}")

    def _report_progress(self):
        if self.on_progress is None:
            return
        try:
            self.on_progress(self.progress())
        except Exception as e:
            logger.error(f"Progress sink failed: {e}")

    # ------------------------------------------------------------------
    # Progress and lifecycle
    # ------------------------------------------------------------------

    def progress(self) -> TranslationProgress:
        with self._lock:
            pending = len(self._pending)
            total = self._total_queued
        return TranslationProgress(
            pending=pending,
            completed=max(0, total - pending),
            total_queued=total,
        )

    def is_pending(self, text: str) -> bool:
        with self._lock:
            return text in self._pending

    def reset_counter(self):
        """Restart the queued counter from the work still in flight"""
        with self._lock:
            self._total_queued = len(self._pending)
        self._report_progress()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until queued tasks finish. Returns True if all finished"""
        with self._lock:
            futures = list(self._futures)
        done, not_done = wait_futures(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = False):
        """
        Stop the pool; queued tasks are abandoned unless wait=True

        Tasks already running are not interrupted, so their threads are still
        joined when the interpreter exits.
        """
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
