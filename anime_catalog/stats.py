#!/usr/bin/env python3
"""
Collection statistics for the stats panel and the shareable year table
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from anime_catalog.constants import YEAR_TABLE_COLUMNS, YEAR_BARS_LIMIT
from anime_catalog.normalizer import AnimeRecord
from anime_catalog.store import CatalogStore, MarkedSet


@dataclass
class CollectionStats:
    loaded: int
    marked: int
    coverage: float  # percent, one decimal
    marked_by_year: Counter = field(default_factory=Counter)

    @property
    def hot_year(self) -> Optional[Tuple[int, int]]:
        """(year, count) with the most marked titles, or None. Ties go to the earlier year"""
        if not self.marked_by_year:
            return None
        return max(self.marked_by_year.items(), key=lambda kv: (kv[1], -kv[0]))


def collection_stats(store: CatalogStore, marked: MarkedSet) -> CollectionStats:
    """
    Count loaded and marked records

    Marked ids that are no longer in the store are ignored.
    """
    loaded = len(store)
    marked_records = [store.get(i) for i in marked.ids() if i in store]
    marked_records = [r for r in marked_records if r is not None]
    coverage = round(len(marked_records) / loaded * 100, 1) if loaded else 0.0
    by_year = Counter(r.year for r in marked_records if r.year)
    return CollectionStats(
        loaded=loaded,
        marked=len(marked_records),
        coverage=coverage,
        marked_by_year=by_year,
    )


def year_table(store: CatalogStore, year_start: int, year_end: int,
               max_cols: int = YEAR_TABLE_COLUMNS) -> List[Tuple[int, List[AnimeRecord]]]:
    """Top-scoring records per year, newest year first"""
    records = store.all()
    rows = []
    for year in range(year_end, year_start - 1, -1):
        items = sorted((r for r in records if r.year == year),
                       key=lambda r: r.sort_score, reverse=True)
        rows.append((year, items[:max_cols]))
    return rows


def year_bars(marked_by_year: Counter, limit: int = YEAR_BARS_LIMIT) -> List[Tuple[int, int]]:
    """
    Bar heights (pixels) for the most recent marked years, oldest first

    Heights scale to 90px for the busiest year with a 12px floor.
    """
    if not marked_by_year:
        return []
    years = sorted(marked_by_year)
    top = max(marked_by_year.values())
    return [
        (year, max(12, round(marked_by_year[year] / top * 90)))
        for year in years[-limit:]
    ]
