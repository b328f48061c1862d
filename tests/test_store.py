#!/usr/bin/env python3
"""
Test suite for anime_catalog/store.py — upsert, snapshots, marks, translation cache
"""

import json
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from anime_catalog.normalizer import AnimeRecord
from anime_catalog.store import CatalogStore, MarkedSet, TranslationCache


def record(record_id, title='Title', score=7.0, year=2020, **kwargs):
    return AnimeRecord(id=record_id, title=title, score=score, year=year, **kwargs)


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / 'anime_cache.json'


class TestUpsert:
    """Replace-by-id with a full snapshot after every write"""

    def test_insert_and_persist(self, store_path):
        store = CatalogStore(store_path)
        store.upsert(record(1, 'One'))

        assert len(store) == 1
        saved = json.loads(store_path.read_text(encoding='utf-8'))
        assert saved[0]['id'] == 1
        assert saved[0]['title'] == 'One'

    def test_last_write_wins(self, store_path):
        store = CatalogStore(store_path)
        store.upsert(record(1, 'Old', score=6.0, status='Airing'))
        store.upsert(record(1, 'New', score=8.0))

        current = store.get(1)
        assert current.title == 'New'
        assert current.score == 8.0
        assert current.status == ''

    def test_idempotent(self, store_path):
        once = CatalogStore(store_path)
        once.upsert(record(1, 'Same'))
        snapshot_once = store_path.read_text(encoding='utf-8')

        once.upsert(record(1, 'Same'))
        assert store_path.read_text(encoding='utf-8') == snapshot_once
        assert [r.to_dict() for r in once.all()] == [record(1, 'Same').to_dict()]

    def test_upsert_many_counts(self, store_path):
        store = CatalogStore(store_path)
        assert store.upsert_many([record(1), record(2), record(1)]) == 3
        assert len(store) == 2

    def test_upsert_many_empty_does_not_write(self, store_path):
        store = CatalogStore(store_path)
        assert store.upsert_many([]) == 0
        assert not store_path.exists()


class TestReload:
    """Snapshots survive a restart; bad snapshots start empty"""

    def test_reload(self, store_path):
        CatalogStore(store_path).upsert_many([record(1, 'A'), record(2, 'B')])
        reloaded = CatalogStore(store_path)
        assert [r.title for r in reloaded.all()] == ['A', 'B']

    def test_missing_file(self, store_path):
        assert len(CatalogStore(store_path)) == 0

    def test_corrupt_file(self, store_path):
        store_path.write_text('{not json', encoding='utf-8')
        assert len(CatalogStore(store_path)) == 0

    def test_malformed_entry_skipped(self, store_path):
        store_path.write_text(json.dumps([{'title': 'no id'}, {'id': 3, 'title': 'ok'}]),
                              encoding='utf-8')
        store = CatalogStore(store_path)
        assert 3 in store
        assert len(store) == 1


class TestPatchTitle:
    """Title-only patch by id"""

    def test_patch_existing(self, store_path):
        store = CatalogStore(store_path)
        store.upsert(record(1, 'Attack on Titan', score=8.5))
        assert store.patch_title(1, '进击的巨人')

        assert store.get(1).title == '进击的巨人'
        assert store.get(1).score == 8.5
        assert CatalogStore(store_path).get(1).title == '进击的巨人'

    def test_patch_missing(self, store_path):
        store = CatalogStore(store_path)
        assert not store.patch_title(99, '标题')

    def test_patch_lands_on_replacement(self, store_path):
        store = CatalogStore(store_path)
        store.upsert(record(1, 'Old English', score=6.0))
        store.upsert(record(1, 'Fresh English', score=9.0))
        store.patch_title(1, '旧译名')

        assert store.get(1).title == '旧译名'
        assert store.get(1).score == 9.0


class TestClear:

    def test_clear_drops_records_and_file(self, store_path):
        store = CatalogStore(store_path)
        store.upsert(record(1))
        store.clear()
        assert len(store) == 0
        assert not store_path.exists()

    def test_clear_without_file(self, store_path):
        CatalogStore(store_path).clear()


class TestMarkedSet:
    """Watched ids toggle and persist independently of records"""

    def test_toggle(self, tmp_path):
        marked = MarkedSet(tmp_path / 'watched.json')
        assert marked.toggle(5) is True
        assert marked.is_marked(5)
        assert marked.toggle(5) is False
        assert not marked.is_marked(5)

    def test_persisted_as_list(self, tmp_path):
        path = tmp_path / 'watched.json'
        marked = MarkedSet(path)
        marked.toggle(7)
        marked.toggle(3)
        assert json.loads(path.read_text()) == [3, 7]
        assert MarkedSet(path).ids() == {3, 7}

    def test_stale_ids_tolerated(self, tmp_path):
        marked = MarkedSet(tmp_path / 'watched.json')
        marked.toggle(12345)
        assert 12345 in marked

    def test_clear(self, tmp_path):
        path = tmp_path / 'watched.json'
        marked = MarkedSet(path)
        marked.toggle(1)
        marked.clear()
        assert len(marked) == 0
        assert not path.exists()


class TestTranslationCache:
    """Flat text → text mapping persisted on every put"""

    def test_put_get(self, tmp_path):
        path = tmp_path / 'translate_cache.json'
        cache = TranslationCache(path)
        cache.put('Attack on Titan', '进击的巨人')

        assert cache.get('Attack on Titan') == '进击的巨人'
        assert cache.hits == 1
        assert json.loads(path.read_text(encoding='utf-8')) == {'Attack on Titan': '进击的巨人'}

    def test_exact_text_only(self, tmp_path):
        cache = TranslationCache(tmp_path / 'translate_cache.json')
        cache.put('Attack on Titan', '进击的巨人')
        assert cache.get('attack on titan') is None

    def test_reload_and_clear(self, tmp_path):
        path = tmp_path / 'translate_cache.json'
        TranslationCache(path).put('Monster', '怪物')
        cache = TranslationCache(path)
        assert 'Monster' in cache
        cache.clear()
        assert len(cache) == 0
        assert not path.exists()


class TestDeferredPersist:
    """Callers batching several mutations write the snapshot themselves"""

    def test_upsert_many_and_patch_without_persist(self, tmp_path):
        path = tmp_path / 'anime_cache.json'
        store = CatalogStore(path)
        store.upsert_many([AnimeRecord(id=1, title='Monster')], persist=False)
        assert store.patch_title(1, '怪物', persist=False)
        assert not path.exists()

        store.persist()
        assert CatalogStore(path).get(1).title == '怪物'
