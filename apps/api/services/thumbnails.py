"""Best-effort thumbnail generation for managed video files."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import PurePosixPath
from typing import Optional

import ffmpeg

from services.errors import FileAreaError
from services.file_area import THUMBNAILS_AREA, FileAreaManager

logger = logging.getLogger(__name__)


def thumbnail_path_for(video_path: str, token: str) -> str:
    """Full file name plus ``token``, so no two videos share a thumbnail."""
    name = PurePosixPath(str(video_path).replace("\\", "/")).name
    stem = "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in name) or "video"
    return f"{THUMBNAILS_AREA}/{stem}_{token}_thumbnail.jpg"


def extract_frame(video_path: str, output_path: str, offset_seconds: float = 1.0) -> None:
    """
    Grab a single frame as a JPEG.

    ffmpeg -ss 1 -i video.mp4 -frames:v 1 thumb.jpg
    """
    try:
        (
            ffmpeg
            .input(video_path, ss=offset_seconds)
            .output(output_path, vframes=1)
            .overwrite_output()
            .run(quiet=True)
        )
    except ffmpeg.Error as e:
        logger.error(f"Error extracting thumbnail frame: {e.stderr.decode() if e.stderr else str(e)}")
        raise


class ThumbnailGenerator:
    def __init__(
        self,
        files: FileAreaManager,
        *,
        use_ffmpeg: bool = True,
        offset_seconds: float = 1.0,
    ) -> None:
        self.files = files
        self.use_ffmpeg = use_ffmpeg
        self.offset_seconds = offset_seconds

    async def generate(self, video_path: str, *, extract: bool = True) -> Optional[str]:
        """
        Create a fresh thumbnail for ``video_path`` and return its logical path, or None on failure.

        Falls back to an empty placeholder file when a frame cannot be extracted
        (missing ffmpeg, placeholder media, unreadable file).
        """
        thumbnail_path = thumbnail_path_for(video_path, uuid.uuid4().hex[:8])
        try:
            if extract and self.use_ffmpeg and self.files.is_managed(video_path) and await self.files.exists(video_path):
                await self.files.ensure_area(THUMBNAILS_AREA)
                try:
                    await asyncio.to_thread(
                        extract_frame,
                        str(self.files.absolute_path(video_path)),
                        str(self.files.absolute_path(thumbnail_path)),
                        self.offset_seconds,
                    )
                    if await self.files.exists(thumbnail_path):
                        return thumbnail_path
                except Exception as exc:
                    logger.warning("Frame extraction failed for %s: %s", video_path, exc)

            await self.files.write(thumbnail_path, b"")
            return thumbnail_path
        except FileAreaError as exc:
            logger.error("Error generating thumbnail for %s: %s", video_path, exc)
            return None
