"""Persisted key/value preferences (mode preference, first-run markers)."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


OFFLINE_MODE_KEY = "offline_mode_preference"
FIRST_RUN_COMPLETED_KEY = "first_run_completed"
APP_VERSION_KEY = "app_version"


class PreferenceStore:
    """Small JSON-file backed string store, loaded lazily and rewritten atomically."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._values: Optional[Dict[str, str]] = None
        self._lock = asyncio.Lock()

    def _read_file(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(key): str(value) for key, value in raw.items() if value is not None}

    def _write_file(self, values: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)

    async def _load(self) -> Dict[str, str]:
        if self._values is None:
            self._values = await asyncio.to_thread(self._read_file)
        return self._values

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            values = await self._load()
            return values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            values = dict(await self._load())
            values[key] = str(value)
            await asyncio.to_thread(self._write_file, values)
            self._values = values

    async def remove(self, key: str) -> None:
        async with self._lock:
            values = dict(await self._load())
            if key not in values:
                return
            values.pop(key)
            await asyncio.to_thread(self._write_file, values)
            self._values = values
