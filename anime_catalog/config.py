#!/usr/bin/env python3
"""
YAML configuration with built-in defaults
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from anime_catalog.constants import (
    YEAR_START, YEAR_END, LIGHT_PAGES, DEEP_PAGES, TARGET_LANGUAGE,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'cache_dir': 'output',
    'year_start': YEAR_START,
    'year_end': YEAR_END,
    'light_pages': LIGHT_PAGES,
    'deep_pages': DEEP_PAGES,
    'target_language': TARGET_LANGUAGE,
    'translation_workers': 8,
    'request_timeout': 10,
}


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from YAML file, falling back to defaults"""
    config = dict(DEFAULT_CONFIG)
    if config_path is None:
        return config

    config_path = Path(config_path)
    if not config_path.exists():
        logger.info(f"No config at {config_path}, using defaults")
        return config

    with open(config_path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{config_path} must contain a mapping, got {type(loaded).__name__}")

    config.update({k: v for k, v in loaded.items() if v is not None})
    if config['year_start'] > config['year_end']:
        raise ValueError("year_start must not be after year_end")
    return config
