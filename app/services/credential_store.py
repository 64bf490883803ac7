"""
Credential Store - API keys persisted between app restarts.

Keys are an ordered list of strings kept in a small JSON file under one
fixed key (settings.credentials_key), so the file can hold other settings
later. Loaded at startup, saved on every mutation.
"""

import json
import logging
from pathlib import Path
from typing import List

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class CredentialStore:

    def __init__(self, path: str = None, key: str = None):
        settings = get_settings()
        self.path = Path(path or settings.credentials_file)
        self.key = key or settings.credentials_key

    def _read_file(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> List[str]:
        keys = self._read_file().get(self.key, [])
        if not isinstance(keys, list):
            return []
        return [str(k) for k in keys if k]

    def save(self, keys: List[str]) -> List[str]:
        cleaned = [k.strip() for k in keys if k and k.strip()]
        if len(set(cleaned)) != len(cleaned):
            logger.warning("Credential list contains duplicate keys")

        data = self._read_file()
        data[self.key] = cleaned
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        return cleaned

    def load_or_seed(self, seed: List[str]) -> List[str]:
        """Stored keys, or the seed keys (saved) when nothing is stored."""
        keys = self.load()
        if not keys and seed:
            logger.info(f"Seeding credential store with {len(seed)} key(s) from settings")
            keys = self.save(seed)
        return keys
