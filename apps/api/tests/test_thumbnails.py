from pathlib import Path
from unittest.mock import patch

import ffmpeg
import pytest

from services.thumbnails import ThumbnailGenerator, thumbnail_path_for


def _fake_extract(video_path: str, output_path: str, offset_seconds: float = 1.0) -> None:
    Path(output_path).write_bytes(b"jpeg")


def test_thumbnail_path_keeps_full_file_name():
    assert thumbnail_path_for("videos/launch.mp4", "ab12cd34") == "thumbs/launch_mp4_ab12cd34_thumbnail.jpg"
    assert thumbnail_path_for("videos/my.clip.mp4", "t") == "thumbs/my_clip_mp4_t_thumbnail.jpg"
    assert thumbnail_path_for("C:\\Users\\me\\clip.mov", "t") == "thumbs/clip_mov_t_thumbnail.jpg"
    assert thumbnail_path_for("videos/clip.mp4", "t") != thumbnail_path_for("videos/clip.mov", "t")


@pytest.mark.asyncio
async def test_generate_extracts_frame_for_managed_video(files):
    await files.write("videos/clip.mp4", b"frames")
    generator = ThumbnailGenerator(files, use_ffmpeg=True, offset_seconds=2.5)

    with patch("services.thumbnails.extract_frame", side_effect=_fake_extract) as extract:
        thumbnail = await generator.generate("videos/clip.mp4")

    assert thumbnail.startswith("thumbs/clip_mp4_")
    assert await files.read(thumbnail) == b"jpeg"
    assert extract.call_args.args[2] == 2.5


@pytest.mark.asyncio
async def test_generate_falls_back_to_empty_placeholder(files):
    await files.write("videos/clip.mp4", b"not really a video")
    generator = ThumbnailGenerator(files, use_ffmpeg=True)

    error = ffmpeg.Error("ffmpeg", b"", b"Invalid data found when processing input")
    with patch("services.thumbnails.extract_frame", side_effect=error):
        thumbnail = await generator.generate("videos/clip.mp4")

    assert thumbnail.endswith("_thumbnail.jpg")
    assert await files.read(thumbnail) == b""


@pytest.mark.asyncio
async def test_generate_never_reuses_a_thumbnail(files):
    await files.write("videos/clip.mp4", b"frames")
    generator = ThumbnailGenerator(files, use_ffmpeg=False)

    first = await generator.generate("videos/clip.mp4")
    second = await generator.generate("videos/clip.mp4")

    assert first != second
    assert await files.exists(first)
    assert await files.exists(second)


@pytest.mark.asyncio
async def test_generate_skips_extraction_for_placeholders(files):
    await files.write("videos/big.mp4", b"{}")
    generator = ThumbnailGenerator(files, use_ffmpeg=True)

    with patch("services.thumbnails.extract_frame") as extract:
        thumbnail = await generator.generate("videos/big.mp4", extract=False)
    extract.assert_not_called()
    assert thumbnail.startswith("thumbs/big_mp4_")
