"""
Aspect-ratio inspection with ffprobe.
Classifies a video as 16:9, 9:16 or other so uploads can be filed under landscape/, portrait/ or other/.
"""
import json
import logging
import math
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from app.errors import ProcessingError

logger = logging.getLogger(__name__)

LANDSCAPE = "16:9"
PORTRAIT = "9:16"
OTHER = "other"

# Accepts encodes that are close to, but do not reduce exactly to, 16:9 or 9:16.
FUZZY_TOLERANCE = 0.01


@dataclass
class StreamInfo:
    codec_type: str | None
    width: int
    height: int


@dataclass
class ProbeResult:
    streams: list[StreamInfo] = field(default_factory=list)


class Prober(Protocol):
    def probe(self, path: Path) -> ProbeResult: ...


class FFprobeProber:
    """Runs ffprobe and parses its JSON stream listing."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: float | None = None):
        self._ffprobe = ffprobe_path
        self._timeout = timeout

    def probe(self, path: Path) -> ProbeResult:
        cmd = [
            self._ffprobe,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(path),
        ]
        try:
            result = subprocess.run(cmd, check=True, capture_output=True, timeout=self._timeout)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="ignore").strip()
            raise ProcessingError(f"ffprobe failed: {stderr or 'exit code ' + str(e.returncode)}") from e
        except subprocess.TimeoutExpired as e:
            raise ProcessingError("ffprobe timed out") from e
        except FileNotFoundError as e:
            raise ProcessingError("ffprobe not found; install FFmpeg") from e

        try:
            data = json.loads(result.stdout)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProcessingError("ffprobe returned malformed output") from e
        if not isinstance(data, dict):
            raise ProcessingError("ffprobe returned malformed output")

        streams = []
        for raw in data.get("streams") or []:
            if not isinstance(raw, dict):
                continue
            streams.append(
                StreamInfo(
                    codec_type=raw.get("codec_type"),
                    width=int(raw.get("width") or 0),
                    height=int(raw.get("height") or 0),
                )
            )
        return ProbeResult(streams=streams)


def aspect_ratio_class(width: int, height: int) -> str:
    """Return "16:9", "9:16" or "other". An exact reduced ratio always wins over the fuzzy check."""
    if width <= 0 or height <= 0:
        raise ProcessingError(f"Invalid video dimensions {width}x{height}")

    divisor = math.gcd(width, height)
    exact = f"{width // divisor}:{height // divisor}"
    if exact == LANDSCAPE:
        return LANDSCAPE
    if exact == PORTRAIT:
        return PORTRAIT

    ratio = width / height
    if abs(ratio - 16 / 9) < FUZZY_TOLERANCE:
        return LANDSCAPE
    if abs(ratio - 9 / 16) < FUZZY_TOLERANCE:
        return PORTRAIT
    return OTHER


def _pick_video_stream(result: ProbeResult) -> StreamInfo:
    if not result.streams:
        raise ProcessingError("No video stream found")
    for stream in result.streams:
        if stream.codec_type == "video":
            return stream
    # ffprobe builds without codec_type: first stream carrying dimensions
    for stream in result.streams:
        if stream.width and stream.height:
            return stream
    raise ProcessingError("No video stream found")


class MediaInspector:
    def __init__(self, prober: Prober):
        self._prober = prober

    def get_aspect_ratio(self, path: Path) -> str:
        stream = _pick_video_stream(self._prober.probe(path))
        ratio = aspect_ratio_class(stream.width, stream.height)
        logger.debug("Aspect ratio for %s: %dx%d -> %s", path, stream.width, stream.height, ratio)
        return ratio
