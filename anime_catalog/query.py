#!/usr/bin/env python3
"""
Filtered, sorted, de-duplicated view over the catalog store
"""

from dataclasses import dataclass
from typing import List, Optional

from anime_catalog.normalization import presentation_key
from anime_catalog.normalizer import AnimeRecord
from anime_catalog.store import CatalogStore, MarkedSet


@dataclass
class QueryFilter:
    """Empty/None fields match everything"""
    year: Optional[int] = None
    media_type: Optional[str] = None
    status: Optional[str] = None
    keyword: str = ''
    marked: Optional[bool] = None  # True: marked only, False: unmarked only


class QueryEngine:
    """Read-side queries for presentation"""

    def __init__(self, store: CatalogStore, marked: MarkedSet):
        self.store = store
        self.marked = marked

    def _matches(self, record: AnimeRecord, flt: QueryFilter, keyword: str) -> bool:
        if flt.year and record.year != flt.year:
            return False
        if flt.media_type and record.media_type != flt.media_type:
            return False
        if flt.status and record.status != flt.status:
            return False
        if keyword and keyword not in (record.title or '').lower():
            return False
        if flt.marked is not None and self.marked.is_marked(record.id) != flt.marked:
            return False
        return True

    def query(self, flt: Optional[QueryFilter] = None) -> List[AnimeRecord]:
        """
        Filter, sort by score descending and drop presentation duplicates

        Unknown scores sort as zero. Records sharing a lower-cased trimmed
        title and year are shown once; the first (highest-scoring) wins.

        Args:
            flt: Filter to apply; None matches everything

        Returns:
            Ordered list of records
        """
        flt = flt or QueryFilter()
        keyword = (flt.keyword or '').strip().lower()

        matched = [r for r in self.store.all() if self._matches(r, flt, keyword)]
        matched.sort(key=lambda r: r.sort_score, reverse=True)

        seen = set()
        results = []
        for record in matched:
            key = presentation_key(record.title, record.year)
            if key in seen:
                continue
            seen.add(key)
            results.append(record)
        return results

    def media_types(self) -> List[str]:
        """Distinct media types present, for filter choices"""
        return sorted({r.media_type for r in self.store.all() if r.media_type})

    def statuses(self) -> List[str]:
        """Distinct statuses present, for filter choices"""
        return sorted({r.status for r in self.store.all() if r.status})
