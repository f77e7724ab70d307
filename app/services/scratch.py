"""Per-request scratch files, removed on every exit path."""
import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Couldn't remove scratch file %s: %s", path, e)


@contextmanager
def scratch_file(prefix: str = "tubely-upload", suffix: str = ".mp4", directory: str | None = None) -> Iterator[BinaryIO]:
    """Open a fresh temp file for writing; closed and deleted when the block exits."""
    f = tempfile.NamedTemporaryFile(prefix=prefix, suffix=suffix, dir=directory or None, delete=False)
    path = Path(f.name)
    try:
        yield f
    finally:
        f.close()
        _remove(path)


@contextmanager
def owned_path(path: Path) -> Iterator[Path]:
    """Take ownership of a file produced by someone else; deleted when the block exits."""
    try:
        yield path
    finally:
        _remove(path)
