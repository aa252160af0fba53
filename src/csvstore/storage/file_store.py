"""Plain-file persistence helpers: chunked reads, appends and atomic rewrites."""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65_536


def read_first_line(path: Path, *, encoding: str = "utf-8", errors: str = "strict") -> Optional[str]:
    """Return the first line without its terminator, or ``None`` for an empty file."""

    for line in iter_lines(path, encoding=encoding, errors=errors):
        return line
    return None


def iter_lines(
    path: Path,
    *,
    encoding: str = "utf-8",
    errors: str = "strict",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[str]:
    """Yield ``\\n``-separated lines with ``\\r`` removed, reading in chunks."""

    chunk_size = max(1024, chunk_size)
    pending = ""
    # newline="" keeps "\r\n" intact so the split below sees raw terminators.
    with Path(path).open("r", encoding=encoding, errors=errors, newline="") as handle:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                break
            pending += chunk
            *complete, pending = pending.split("\n")
            for line in complete:
                yield line.rstrip("\r")
    if pending:
        yield pending.rstrip("\r")


def append_text(
    path: Path,
    text: str,
    *,
    encoding: str = "utf-8",
    errors: str = "strict",
    fsync: bool = False,
) -> None:
    with Path(path).open("a", encoding=encoding, errors=errors, newline="") as handle:
        handle.write(text)
        if fsync:
            handle.flush()
            os.fsync(handle.fileno())


def write_text_atomic(
    path: Path,
    content: Union[str, Iterable[str]],
    *,
    encoding: str = "utf-8",
    errors: str = "strict",
    fsync: bool = False,
    atomic: bool = True,
) -> None:
    """Replace ``path`` with ``content``.

    With ``atomic`` the data goes to a temporary sibling first and is moved in
    place with ``os.replace``; an interrupted write leaves the old file intact.
    """

    target = Path(path)
    parts = [content] if isinstance(content, str) else content
    if not atomic:
        with target.open("w", encoding=encoding, errors=errors, newline="") as handle:
            for part in parts:
                handle.write(part)
        return

    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, errors=errors, newline="") as handle:
            _apply_mode(target, tmp_path)
            for part in parts:
                handle.write(part)
            if fsync:
                handle.flush()
                os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    if fsync:
        _fsync_directory(target.parent)
    logger.debug("rewrote %s atomically", target)


def _apply_mode(target: Path, tmp_path: Path) -> None:
    """Give the temporary file the permissions the target has or would get."""

    if target.exists():
        shutil.copymode(target, tmp_path)
        return
    umask = os.umask(0)
    os.umask(umask)
    os.chmod(tmp_path, 0o666 & ~umask)


def _fsync_directory(directory: Path) -> None:
    if os.name != "posix":  # pragma: no cover - platform specific
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
