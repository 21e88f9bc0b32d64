"""Shared utility functions."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from loguru import logger

from gamecatalog.errors import WriteInProgressError

ILLEGAL_FILENAME_CHARS = '<>:"/\\|?*'


def sanitize_filename(name: str) -> str:
    """Replace illegal filename characters (used to key images by title)."""
    for ch in ILLEGAL_FILENAME_CHARS:
        name = name.replace(ch, "_")
    name = name.replace("\n", " ").replace("\r", "").strip()
    # Collapse multiple spaces
    while "  " in name:
        name = name.replace("  ", " ")
    return name.strip(". ")


def remove_file_extension(filename: str) -> str:
    """'Flash.xml' → 'Flash' (only the last extension is removed)."""
    dot = filename.rfind(".")
    if dot <= 0:
        return filename
    return filename[:dot]


def write_text_atomic(path: Path, text: str) -> bool:
    """Write *text* via a temp file + replace. Returns False (and logs) on failure."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
        tmp.replace(path)
        return True
    except OSError as e:
        logger.error(f"Failed to write '{path}': {e}")
        tmp.unlink(missing_ok=True)
        return False


async def read_text(path: Path) -> str:
    """Read a UTF-8 file without blocking the event loop."""
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


class WriteGuard:
    """
    Rejects a second write to a file whose previous write has not completed.

    Writes are not queued: the caller must observe completion before issuing
    the next write to the same path.
    """

    def __init__(self) -> None:
        self._in_flight: set[Path] = set()

    def is_writing(self, path: Path) -> bool:
        return path.resolve() in self._in_flight

    @asynccontextmanager
    async def writing(self, path: Path) -> AsyncIterator[None]:
        key = path.resolve()
        if key in self._in_flight:
            raise WriteInProgressError(path)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)
