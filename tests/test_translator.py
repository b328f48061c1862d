#!/usr/bin/env python3
"""
Test suite for anime_catalog/translator.py — cache, in-flight dedup, progress
"""

import threading
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from anime_catalog.normalizer import AnimeRecord
from anime_catalog.store import CatalogStore, TranslationCache
from anime_catalog.translator import TaskState, TranslationCoordinator, TranslationProgress


class StubProvider:
    """Returns a fixed result; optionally blocks until released"""

    def __init__(self, name, result, gate=None):
        self.name = name
        self.result = result
        self.gate = gate
        self.calls = []
        self._lock = threading.Lock()

    def translate(self, text):
        with self._lock:
            self.calls.append(text)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        return self.result


class ExplodingProvider:
    name = 'broken'

    def translate(self, text):
        raise RuntimeError('provider blew up')


@pytest.fixture
def store(tmp_path):
    store = CatalogStore(tmp_path / 'anime_cache.json')
    store.upsert_many([
        AnimeRecord(id=1, title='Attack on Titan', score=8.5, year=2013),
        AnimeRecord(id=2, title='Attack on Titan', score=8.0, year=2013),
        AnimeRecord(id=3, title='进击的巨人', score=8.4, year=2013),
    ])
    return store


@pytest.fixture
def cache(tmp_path):
    return TranslationCache(tmp_path / 'translate_cache.json')


def make_coordinator(store, cache, providers, progress_log=None):
    sink = progress_log.append if progress_log is not None else None
    return TranslationCoordinator(store, cache, providers, on_progress=sink, max_workers=4)


class TestSkip:
    """Titles that need no translation are ignored"""

    @pytest.mark.parametrize("title", ['', '进击的巨人', '2020', '   '])
    def test_no_task(self, store, cache, title):
        provider = StubProvider('mymemory', '标题')
        coordinator = make_coordinator(store, cache, [provider])
        assert coordinator.consider_title(3, title) is None
        assert coordinator.progress().total_queued == 0
        assert provider.calls == []
        coordinator.shutdown()


class TestCacheHit:
    """Cached translations patch immediately without provider calls"""

    def test_patch_without_network(self, store, cache):
        cache.put('Attack on Titan', '进击的巨人')
        provider = StubProvider('mymemory', '别的')
        progress_log = []
        coordinator = make_coordinator(store, cache, [provider], progress_log)

        coordinator.consider_title(1, 'Attack on Titan')

        assert store.get(1).title == '进击的巨人'
        assert provider.calls == []
        assert coordinator.progress().pending == 0
        assert coordinator.progress().total_queued == 0
        assert len(progress_log) == 1
        coordinator.shutdown()


class TestResolution:
    """Accepted translations are cached and patched by id"""

    def test_primary_success(self, store, cache):
        provider = StubProvider('mymemory', '进击的巨人')
        finished = []
        coordinator = make_coordinator(store, cache, [provider])
        coordinator.add_listener(finished.append)

        task = coordinator.consider_title(1, 'Attack on Titan')
        assert coordinator.wait(timeout=5)

        assert task.state is TaskState.RESOLVED
        assert task.provider == 'mymemory'
        assert store.get(1).title == '进击的巨人'
        assert cache.get('Attack on Titan') == '进击的巨人'
        assert finished == [task]
        coordinator.shutdown()

    def test_secondary_success(self, store, cache):
        primary = StubProvider('mymemory', 'ATTACK ON TITAN')
        secondary = StubProvider('google', '进击的巨人')
        coordinator = make_coordinator(store, cache, [primary, secondary])

        task = coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)

        assert task.provider == 'google'
        assert store.get(1).title == '进击的巨人'
        coordinator.shutdown()

    def test_failure_leaves_title(self, store, cache):
        coordinator = make_coordinator(store, cache, [StubProvider('mymemory', None),
                                                      StubProvider('google', '')])
        task = coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)

        assert task.state is TaskState.FAILED
        assert store.get(1).title == 'Attack on Titan'
        assert 'Attack on Titan' not in cache
        assert not coordinator.is_pending('Attack on Titan')
        coordinator.shutdown()

    def test_provider_exception_swallowed(self, store, cache):
        coordinator = make_coordinator(store, cache, [ExplodingProvider()])
        task = coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)

        assert task.state is TaskState.FAILED
        assert coordinator.progress().pending == 0
        coordinator.shutdown()

    def test_patch_applies_to_replaced_record(self, store, cache):
        gate = threading.Event()
        provider = StubProvider('mymemory', '进击的巨人', gate=gate)
        coordinator = make_coordinator(store, cache, [provider])

        coordinator.consider_title(1, 'Attack on Titan')
        store.upsert(AnimeRecord(id=1, title='Attack on Titan Season 1', score=9.0, year=2013))
        gate.set()
        coordinator.wait(timeout=5)

        assert store.get(1).title == '进击的巨人'
        assert store.get(1).score == 9.0
        coordinator.shutdown()


class TestInFlightDedup:
    """Identical source text never runs two provider calls at once"""

    def test_shared_title_queued_once(self, store, cache):
        gate = threading.Event()
        provider = StubProvider('mymemory', '进击的巨人', gate=gate)
        coordinator = make_coordinator(store, cache, [provider])

        first = coordinator.consider_title(1, 'Attack on Titan')
        second = coordinator.consider_title(2, 'Attack on Titan')

        assert first is not None
        assert second is None
        assert coordinator.progress().pending == 1
        assert coordinator.progress().total_queued == 1

        gate.set()
        coordinator.wait(timeout=5)
        assert provider.calls == ['Attack on Titan']
        coordinator.shutdown()

    def test_second_record_uses_cache_afterwards(self, store, cache):
        provider = StubProvider('mymemory', '进击的巨人')
        coordinator = make_coordinator(store, cache, [provider])

        coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)
        coordinator.consider_title(2, 'Attack on Titan')

        assert store.get(2).title == '进击的巨人'
        assert len(provider.calls) == 1
        coordinator.shutdown()


class TestProgress:
    """pending / completed / percent bookkeeping"""

    def test_empty_is_complete(self):
        progress = TranslationProgress(pending=0, completed=0, total_queued=0)
        assert progress.percent == 1.0
        assert progress.describe() == 'No titles waiting for translation'

    def test_percent(self):
        progress = TranslationProgress(pending=1, completed=3, total_queued=4)
        assert progress.percent == 0.75
        assert progress.describe() == 'Translating: 1, done 3/4'

    def test_counter_never_decreases(self, store, cache):
        coordinator = make_coordinator(store, cache, [StubProvider('mymemory', None)])
        coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)
        coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)

        progress = coordinator.progress()
        assert progress.total_queued == 2
        assert progress.completed == 2
        assert progress.percent == 1.0
        coordinator.shutdown()

    def test_reset_counter(self, store, cache):
        coordinator = make_coordinator(store, cache, [StubProvider('mymemory', None)])
        coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)
        coordinator.reset_counter()
        assert coordinator.progress().total_queued == 0
        coordinator.shutdown()

    def test_progress_emitted_on_queue_and_finish(self, store, cache):
        progress_log = []
        coordinator = make_coordinator(store, cache, [StubProvider('mymemory', '进击的巨人')],
                                       progress_log)
        coordinator.consider_title(1, 'Attack on Titan')
        coordinator.wait(timeout=5)

        assert progress_log[0].total_queued == 1
        assert progress_log[-1].pending == 0
        assert progress_log[-1].completed == 1
        coordinator.shutdown()


class TestApplyCached:

    def test_hit_patches_without_queueing(self, store, cache):
        cache.put('Attack on Titan', '进击的巨人')
        coordinator = make_coordinator(store, cache, [StubProvider('mymemory', None)])
        assert coordinator.apply_cached(2, 'Attack on Titan')
        assert store.get(2).title == '进击的巨人'
        assert coordinator.progress().total_queued == 0
        coordinator.shutdown()

    def test_miss_does_nothing(self, store, cache):
        coordinator = make_coordinator(store, cache, [StubProvider('mymemory', '进击的巨人')])
        assert not coordinator.apply_cached(2, 'Attack on Titan')
        assert store.get(2).title == 'Attack on Titan'
        assert coordinator.progress().total_queued == 0
        coordinator.shutdown()


class TestShutdown:
    """shutdown() drops queued work but lets running tasks finish"""

    def test_running_task_completes_queued_task_dropped(self, store, cache):
        started = threading.Event()
        gate = threading.Event()

        class SlowProvider:
            name = 'mymemory'

            def __init__(self):
                self.calls = []

            def translate(self, text):
                self.calls.append(text)
                started.set()
                gate.wait(timeout=5)
                return '进击的巨人'

        provider = SlowProvider()
        coordinator = TranslationCoordinator(store, cache, [provider], max_workers=1)
        running = coordinator.consider_title(1, 'Attack on Titan')
        assert started.wait(timeout=5)
        queued = coordinator.consider_title(2, 'Titan Season 2')

        coordinator.shutdown(wait=False)
        gate.set()
        coordinator.wait(timeout=5)

        assert running.state is TaskState.RESOLVED
        assert store.get(1).title == '进击的巨人'
        assert queued.state is TaskState.QUEUED
        assert provider.calls == ['Attack on Titan']
