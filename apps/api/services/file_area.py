"""App-private file storage split into video, thumbnail and temp areas."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Set, Union

from services.errors import FileAreaError

logger = logging.getLogger(__name__)


VIDEOS_AREA = "videos"
THUMBNAILS_AREA = "thumbs"
TEMP_AREA = "temp"
AREAS = (VIDEOS_AREA, THUMBNAILS_AREA, TEMP_AREA)


@dataclass(frozen=True)
class FileInfo:
    name: str
    path: str
    size: int
    modified_at: datetime
    is_dir: bool


class FileAreaManager:
    """Resolves logical paths like ``videos/clip.mp4`` under a single root.

    Every operation runs in a worker thread and raises ``FileAreaError`` with the
    logical path attached; ``delete`` treats a missing file as success.
    """

    def __init__(self, root: Union[str, Path], opener_command: str = "") -> None:
        self.root = Path(root).resolve()
        self.opener_command = opener_command
        self._opened: Set["asyncio.Task[int]"] = set()

    def _resolve(self, path: str) -> Path:
        relative = str(path or "").replace("\\", "/").lstrip("/")
        if not relative:
            raise FileAreaError(str(path), "Empty file area path")
        target = (self.root / relative).resolve()
        if target != self.root and self.root not in target.parents:
            raise FileAreaError(str(path), f"Path escapes the file area root: {path}")
        return target

    def to_logical(self, absolute: Union[str, Path]) -> str:
        return Path(absolute).resolve().relative_to(self.root).as_posix()

    def is_managed(self, path: str, area: Optional[str] = None) -> bool:
        """True when ``path`` is a logical path inside the root (optionally a given area)."""
        if not path or os.path.isabs(path):
            return False
        try:
            target = self._resolve(path)
        except FileAreaError:
            return False
        if area is None:
            return True
        return (self.root / area) in target.parents

    async def initialize(self) -> None:
        for area in AREAS:
            await self.ensure_area(area)
        logger.info("File areas ready under %s", self.root)

    async def ensure_area(self, name: str) -> str:
        target = self._resolve(name)
        try:
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise FileAreaError(name, f"Could not create area {name}: {exc}") from exc
        return name

    async def write(self, path: str, data: bytes) -> str:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise FileAreaError(path, f"Error writing file {path}: {exc}") from exc
        return target.as_uri()

    async def read(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise FileAreaError(path, f"Error reading file {path}: {exc}") from exc

    async def import_external(self, source: Union[str, Path], path: str) -> str:
        """Copy a file from outside the root (e.g. a picked file) into ``path``."""
        target = self._resolve(path)
        source_path = Path(source)

        def _copy() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, target)

        try:
            await asyncio.to_thread(_copy)
        except OSError as exc:
            raise FileAreaError(str(source), f"Error copying {source} to {path}: {exc}") from exc
        return target.as_uri()

    async def copy(self, source: str, destination: str) -> str:
        return await self.import_external(self._resolve(source), destination)

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except OSError as exc:
            raise FileAreaError(path, f"Error deleting file {path}: {exc}") from exc

    async def exists(self, path: str) -> bool:
        try:
            target = self._resolve(path)
        except FileAreaError:
            return False
        return await asyncio.to_thread(target.exists)

    async def size(self, path: str) -> int:
        target = self._resolve(path)
        try:
            return (await asyncio.to_thread(target.stat)).st_size
        except OSError as exc:
            raise FileAreaError(path, f"Error reading size of {path}: {exc}") from exc

    async def list(self, area: str) -> List[FileInfo]:
        target = self._resolve(area)

        def _list() -> List[FileInfo]:
            if not target.exists():
                return []
            entries = []
            for child in sorted(target.iterdir()):
                stat = child.stat()
                entries.append(
                    FileInfo(
                        name=child.name,
                        path=self.to_logical(child),
                        size=stat.st_size,
                        modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                        is_dir=child.is_dir(),
                    )
                )
            return entries

        try:
            return await asyncio.to_thread(_list)
        except OSError as exc:
            raise FileAreaError(area, f"Error listing files in {area}: {exc}") from exc

    def absolute_path(self, path: str) -> Path:
        return self._resolve(path)

    def resolve_uri(self, path: str) -> str:
        return self._resolve(path).as_uri()

    def _opener_args(self, target: Path) -> List[str]:
        if self.opener_command:
            return [*shlex.split(self.opener_command), str(target)]
        if sys.platform == "darwin":
            return ["open", str(target)]
        return ["xdg-open", str(target)]

    async def open_externally(self, path: str, mime_type: str) -> Optional["asyncio.Task[int]"]:
        """
        Hand the file to the platform's default handler for ``mime_type``.

        Returns a task that finishes when the handler process exits and has been reaped.
        """
        target = self._resolve(path)
        if not await asyncio.to_thread(target.exists):
            raise FileAreaError(path, f"Cannot open missing file {path}")
        logger.info("Opening %s (%s) with default handler", path, mime_type)
        try:
            if sys.platform.startswith("win") and not self.opener_command:
                await asyncio.to_thread(os.startfile, str(target))  # type: ignore[attr-defined]
                return None
            process = await asyncio.to_thread(
                subprocess.Popen,
                self._opener_args(target),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise FileAreaError(path, f"Error opening file {path}: {exc}") from exc

        reaper = asyncio.create_task(asyncio.to_thread(process.wait))
        self._opened.add(reaper)
        reaper.add_done_callback(self._opened.discard)
        return reaper
