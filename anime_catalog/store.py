#!/usr/bin/env python3
"""
Persisted collections: catalog records, marked ids, translation cache

All three are independent JSON snapshots and all three are optional at
startup. Records are keyed by catalog id with last-write-wins upserts; the
translation coordinator may patch a title after the record exists.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from anime_catalog.normalizer import AnimeRecord
from anime_catalog.persistence import JsonSnapshot

logger = logging.getLogger(__name__)


class CatalogStore:
    """In-memory records keyed by id, mirrored to a full JSON snapshot"""

    def __init__(self, snapshot_path: Path):
        self.snapshot = JsonSnapshot(snapshot_path, 'record cache')
        # Guards the dict while translation threads patch titles
        self._lock = threading.RLock()
        self._records: Dict[int, AnimeRecord] = {}
        self._load()

    def _load(self):
        for entry in self.snapshot.load([]):
            try:
                record = AnimeRecord.from_dict(entry)
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed cached record {entry!r}: {e}")
                continue
            self._records[record.id] = record

    def persist(self):
        """Write the full snapshot"""
        with self._lock:
            data = [record.to_dict() for record in self._records.values()]
            self.snapshot.save(data)

    def upsert(self, record: AnimeRecord):
        """Insert or fully replace the record with this id, then persist"""
        with self._lock:
            self._records[record.id] = record
        self.persist()

    def upsert_many(self, records: Iterable[AnimeRecord], persist: bool = True) -> int:
        """Upsert a page of records with a single snapshot write (none if persist=False)"""
        count = 0
        with self._lock:
            for record in records:
                self._records[record.id] = record
                count += 1
        if count and persist:
            self.persist()
        return count

    def patch_title(self, record_id: int, title: str, persist: bool = True) -> bool:
        """
        Replace only the title of the record currently bound to `record_id`

        No version check: a patch computed for an older copy of the record
        still lands on whatever record holds the id now.

        Returns:
            True if a record was patched
        """
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return False
            record.title = title
        if persist:
            self.persist()
        return True

    def get(self, record_id: int) -> Optional[AnimeRecord]:
        with self._lock:
            return self._records.get(record_id)

    def all(self) -> List[AnimeRecord]:
        """Snapshot list of all records in insertion order"""
        with self._lock:
            return list(self._records.values())

    def clear(self):
        """Drop every record and the persisted snapshot"""
        with self._lock:
            self._records.clear()
        self.snapshot.remove()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id) -> bool:
        return record_id in self._records


class MarkedSet:
    """User-flagged ids ("watched"), persisted as a JSON list"""

    def __init__(self, snapshot_path: Path):
        self.snapshot = JsonSnapshot(snapshot_path, 'watched list')
        self._ids: Set[int] = set(self.snapshot.load([]))

    def toggle(self, record_id: int) -> bool:
        """Flip membership and persist. Returns the new membership"""
        if record_id in self._ids:
            self._ids.discard(record_id)
            marked = False
        else:
            self._ids.add(record_id)
            marked = True
        self.snapshot.save(sorted(self._ids))
        return marked

    def is_marked(self, record_id: int) -> bool:
        return record_id in self._ids

    def ids(self) -> Set[int]:
        return set(self._ids)

    def clear(self):
        self._ids.clear()
        self.snapshot.remove()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, record_id) -> bool:
        return record_id in self._ids


class TranslationCache:
    """Append-only source text → translated text mapping"""

    def __init__(self, snapshot_path: Path):
        self.snapshot = JsonSnapshot(snapshot_path, 'translation cache')
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = dict(self.snapshot.load({}))
        self.hits = 0

    def get(self, text: str) -> Optional[str]:
        translated = self._entries.get(text)
        if translated:
            self.hits += 1
        return translated

    def put(self, text: str, translated: str):
        """Store a translation and persist immediately"""
        with self._lock:
            self._entries[text] = translated
            self.snapshot.save(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()
        self.snapshot.remove()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text) -> bool:
        return text in self._entries
