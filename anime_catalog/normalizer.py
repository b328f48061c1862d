#!/usr/bin/env python3
"""
anime_catalog/normalizer.py — Raw catalog row → AnimeRecord

Pure and total: every raw row produces a record. Missing fields degrade to
documented fallbacks instead of raising.

Fallback chains are explicit ordered lists, evaluated first-match-wins:
  Title:  localized titles → English → Japanese → primary → synonyms
          (first native-script candidate wins, else first candidate)
  Year:   year → aired.prop.from.year → calendar year of aired.from
  Image:  jpg.image_url → webp.image_url → ''
"""

import re
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from anime_catalog.constants import DEFAULT_MEDIA_TYPE, UNKNOWN_TITLE, UNKNOWN_DISPLAY
from anime_catalog.normalization import is_native_script


@dataclass
class AnimeRecord:
    """Canonical record for one catalog entry, keyed by the catalog id"""
    id: int
    title: str
    media_type: str = DEFAULT_MEDIA_TYPE
    status: str = ''
    year: Optional[int] = None
    episodes: Optional[int] = None   # None = unknown
    score: Optional[float] = None    # None = unknown
    image: str = ''
    url: str = ''
    aired: str = ''

    @property
    def sort_score(self) -> float:
        """Score used for ordering; unknown counts as zero"""
        return self.score or 0

    @property
    def score_display(self) -> str:
        return UNKNOWN_DISPLAY if self.score is None else str(self.score)

    @property
    def episodes_display(self) -> str:
        return UNKNOWN_DISPLAY if self.episodes is None else str(self.episodes)

    def to_dict(self) -> Dict:
        """Serialize to the persisted snapshot shape"""
        data = asdict(self)
        data['type'] = data.pop('media_type')
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'AnimeRecord':
        """Rebuild from a persisted snapshot entry"""
        return cls(
            id=data['id'],
            title=data.get('title') or UNKNOWN_TITLE,
            media_type=data.get('type') or DEFAULT_MEDIA_TYPE,
            status=data.get('status') or '',
            year=data.get('year'),
            episodes=_known(data.get('episodes')),
            score=_known(data.get('score')),
            image=data.get('image') or '',
            url=data.get('url') or '',
            aired=data.get('aired') or '',
        )


def _known(value: Any) -> Optional[Union[int, float]]:
    """Map falsy and legacy '?' markers to None"""
    if not value or value == UNKNOWN_DISPLAY:
        return None
    return value


def _dig(row: Dict, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing"""
    node: Any = row
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


# ---------------------------------------------------------------------------
# Title selection
# ---------------------------------------------------------------------------

def _localized_titles(row: Dict) -> List[str]:
    return [t.get('title') for t in row.get('titles') or [] if isinstance(t, dict)]


def _synonyms(row: Dict) -> List[str]:
    return list(row.get('title_synonyms') or [])


# Ordered candidate sources, highest priority first
TITLE_SOURCES: List[Callable[[Dict], List[Optional[str]]]] = [
    _localized_titles,
    lambda row: [row.get('title_english')],
    lambda row: [row.get('title_japanese')],
    lambda row: [row.get('title')],
    _synonyms,
]


def title_candidates(row: Dict) -> List[str]:
    """
    Gather candidate titles in priority order

    Empty values are dropped and duplicates removed, keeping the first
    occurrence.

    Args:
        row: Raw catalog row

    Returns:
        Ordered list of distinct candidate titles
    """
    seen = {}
    for source in TITLE_SOURCES:
        for candidate in source(row):
            if candidate and candidate not in seen:
                seen[candidate] = True
    return list(seen)


def pick_best_title(row: Dict) -> str:
    """
    Choose the display title for a raw row

    The first candidate already in native script wins. Otherwise the first
    candidate is used as-is and the translation coordinator picks it up
    later.
    """
    candidates = title_candidates(row)
    for candidate in candidates:
        if is_native_script(candidate):
            return candidate
    return candidates[0] if candidates else UNKNOWN_TITLE


# ---------------------------------------------------------------------------
# Year extraction
# ---------------------------------------------------------------------------

def _year_from_start_date(row: Dict) -> Optional[int]:
    start = _dig(row, 'aired', 'from')
    if not start or not isinstance(start, str):
        return None
    try:
        return datetime.fromisoformat(start.replace('Z', '+00:00')).year
    except ValueError:
        # Partial dates like "2019-04" still carry a usable year
        match = re.match(r'^(\d{4})', start)
        return int(match.group(1)) if match else None


YEAR_SOURCES: List[Callable[[Dict], Optional[int]]] = [
    lambda row: row.get('year'),
    lambda row: _dig(row, 'aired', 'prop', 'from', 'year'),
    _year_from_start_date,
]


def extract_year(row: Dict) -> Optional[int]:
    """Return the release year from the first source that has one"""
    for source in YEAR_SOURCES:
        year = source(row)
        if year:
            return int(year)
    return None


# ---------------------------------------------------------------------------
# Record normalization
# ---------------------------------------------------------------------------

def _image_url(row: Dict) -> str:
    return (
        _dig(row, 'images', 'jpg', 'image_url') or
        _dig(row, 'images', 'webp', 'image_url') or
        ''
    )


def normalize_record(row: Dict) -> AnimeRecord:
    """
    Turn one raw catalog row into an AnimeRecord

    Args:
        row: Raw row from the catalog service `data` list

    Returns:
        AnimeRecord with fallbacks applied
    """
    return AnimeRecord(
        id=row.get('mal_id'),
        title=pick_best_title(row),
        media_type=row.get('type') or DEFAULT_MEDIA_TYPE,
        status=row.get('status') or '',
        year=extract_year(row),
        episodes=_known(row.get('episodes')),
        score=_known(row.get('score')),
        image=_image_url(row),
        url=row.get('url') or '',
        aired=_dig(row, 'aired', 'string') or '',
    )
