#!/usr/bin/env python3
"""
JSON snapshot files for the persisted stores

Each logical store (records, marked ids, translation cache) is one JSON file
rewritten in full on every save. A missing or unreadable file loads as the
caller's fallback value.
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonSnapshot:
    """One JSON file holding a full snapshot of a store"""

    def __init__(self, path: Path, label: str):
        self.path = Path(path)
        self.label = label

    def load(self, fallback: Any) -> Any:
        """Load snapshot from JSON file"""
        if self.path.exists():
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                logger.info(f"Loaded {self.label} with {len(data)} entries")
                return data
            except Exception as e:
                logger.warning(f"Could not load {self.label}: {e}. Starting fresh.")
                return fallback
        return fallback

    def save(self, data: Any):
        """Save snapshot to JSON file"""
        try:
            # Ensure output directory exists
            self.path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            logger.debug(f"Saved {self.label} with {len(data)} entries")
        except Exception as e:
            logger.error(f"Could not save {self.label}: {e}")

    def remove(self):
        """Delete the snapshot file if present"""
        try:
            self.path.unlink()
            logger.info(f"Removed {self.label} at {self.path}")
        except FileNotFoundError:
            pass
