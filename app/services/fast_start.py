"""
Remux an MP4 so its moov atom sits before the media data (fast start),
letting players begin playback before the whole file has downloaded.
"""
import logging
import subprocess
from pathlib import Path
from typing import Protocol

from app.errors import ProcessingError

logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ".processing"


class Remuxer(Protocol):
    def remux(self, path: Path) -> Path: ...


def processing_path(path: Path) -> Path:
    return path.with_name(path.name + PROCESSING_SUFFIX)


class FFmpegFastStartRewriter:
    """Stream-copies every track into <input>.processing with -movflags faststart."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout: float | None = None):
        self._ffmpeg = ffmpeg_path
        self._timeout = timeout

    def remux(self, path: Path) -> Path:
        output = processing_path(path)
        cmd = [
            self._ffmpeg,
            "-y",
            "-i", str(path),
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            str(output),
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, timeout=self._timeout)
        except subprocess.CalledProcessError as e:
            output.unlink(missing_ok=True)
            stderr = (e.stderr or b"").decode("utf-8", errors="ignore").strip()
            raise ProcessingError(f"ffmpeg fast-start remux failed: {stderr or 'exit code ' + str(e.returncode)}") from e
        except subprocess.TimeoutExpired as e:
            output.unlink(missing_ok=True)
            raise ProcessingError("ffmpeg fast-start remux timed out") from e
        except FileNotFoundError as e:
            raise ProcessingError("ffmpeg not found; install FFmpeg") from e

        logger.info("Fast-start remux completed for %s", path)
        return output
