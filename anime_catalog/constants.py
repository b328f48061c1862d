#!/usr/bin/env python3
"""
Shared constants for the anime year catalog

Single source of truth for endpoints, retry timings, year range and
persisted file names. DO NOT duplicate these values in other modules -
import from here instead.
"""

# Catalog service (Jikan v4, read-only)
JIKAN_BASE_URL = "https://api.jikan.moe/v4"
PAGE_SIZE = 25

# Retry policy for one page request (milliseconds)
MAX_ATTEMPTS = 4
BACKOFF_INITIAL_MS = 800
BACKOFF_CEILING_MS = 4000
RATE_LIMIT_BACKOFF_FACTOR = 1.8
ERROR_BACKOFF_FACTOR = 1.6

# Gentle throttle between successive page fetches
PAGE_COOLDOWN_MS = 500

# HTTP status classification
STATUS_RATE_LIMITED = 429
STATUS_FATAL_REQUEST = 400

# Year range and prefetch depth
YEAR_START = 1990
YEAR_END = 2025
LIGHT_PAGES = 1  # per year
DEEP_PAGES = 4   # per year

# Translation providers
MYMEMORY_URL = "https://api.mymemory.translated.net/get"
GOOGLE_TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"
TARGET_LANGUAGE = "zh-CN"

# Persisted snapshots (one file per logical store)
RECORDS_FILE = "anime_cache.json"
MARKED_FILE = "watched.json"
TRANSLATION_CACHE_FILE = "translate_cache.json"

# Normalizer fallbacks
DEFAULT_MEDIA_TYPE = "TV"
UNKNOWN_TITLE = "Unknown"
UNKNOWN_DISPLAY = "?"

# Presentation
YEAR_TABLE_COLUMNS = 12
YEAR_BARS_LIMIT = 12
