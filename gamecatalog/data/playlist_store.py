"""Playlist store — one JSON file per playlist."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from loguru import logger

from gamecatalog.core.record_codec import create_playlist, parse_playlist, reverse_parse_playlist
from gamecatalog.errors import PlaylistNotFoundError
from gamecatalog.models.library import Library
from gamecatalog.models.playlist import PlaylistRecord
from gamecatalog.utils import WriteGuard, read_text, sanitize_filename, write_text_atomic

_log = logger.bind(source="Playlists")


class PlaylistStore:
    """
    In-memory set of playlists backed by a folder.

    Files:
      {playlist_folder}/{playlist id}.json

    A playlist loaded from a file with a different name keeps writing to
    that file.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = folder
        self._playlists: dict[str, PlaylistRecord] = {}
        self._files: dict[str, Path] = {}
        self._write_guard = WriteGuard()

    @property
    def folder(self) -> Path:
        return self._folder

    @property
    def playlists(self) -> list[PlaylistRecord]:
        return list(self._playlists.values())

    def get(self, playlist_id: str) -> PlaylistRecord | None:
        return self._playlists.get(playlist_id)

    def file_path(self, playlist_id: str) -> Path:
        return self._files.get(playlist_id) or self._folder / f"{sanitize_filename(playlist_id)}.json"

    @staticmethod
    def create() -> PlaylistRecord:
        """A new, empty playlist with a fresh id (not added until saved)."""
        return create_playlist()

    # ── Loading ──

    async def load_file(self, path: Path) -> PlaylistRecord | None:
        """
        Read one playlist file.

        Returns None for a missing file or one that is not JSON; other
        read errors propagate.
        """
        try:
            text = await read_text(path)
        except FileNotFoundError:
            logger.debug(f"Playlist file not found: {path}")
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            _log.warning(f"{path.name}: not a valid playlist file ({e})")
            return None
        return parse_playlist(raw, on_error=lambda error: _log.warning(f"{path.name}: {error}"))

    def _register(self, playlist: PlaylistRecord, path: Path) -> None:
        if playlist.id in self._playlists and self._files.get(playlist.id) != path:
            _log.warning(
                f"{path.name}: playlist id '{playlist.id}' is also used by "
                f"{self._files[playlist.id].name}, replacing it"
            )
        self._playlists[playlist.id] = playlist
        self._files[playlist.id] = path

    async def load_all(self) -> list[PlaylistRecord]:
        """Load every ``*.json`` file in the folder. A missing folder means no playlists."""
        if not self._folder.is_dir():
            logger.debug(f"Playlist folder not found: {self._folder}")
            return []
        paths = sorted(p for p in self._folder.iterdir() if p.is_file() and p.suffix.lower() == ".json")
        results = await asyncio.gather(*(self.load_file(p) for p in paths), return_exceptions=True)
        for path, result in zip(paths, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                _log.error(f"Failed to load playlist {path.name}: {result}")
            elif result is not None:
                self._register(result, path)
        logger.info(f"Loaded {len(self._playlists)} playlist(s) from {self._folder}")
        return self.playlists

    async def load(self, playlist_id: str) -> PlaylistRecord | None:
        """(Re)load a single playlist from its file."""
        path = self.file_path(playlist_id)
        playlist = await self.load_file(path)
        if playlist is not None:
            self._register(playlist, path)
        return playlist

    # ── Writing ──

    async def save(self, playlist: PlaylistRecord) -> bool:
        """Replace the playlist with the same id (or add it) and write its file."""
        path = self.file_path(playlist.id)
        self._playlists[playlist.id] = playlist
        self._files[playlist.id] = path
        text = json.dumps(reverse_parse_playlist(playlist), ensure_ascii=False, indent=2)
        async with self._write_guard.writing(path):
            ok = await asyncio.to_thread(write_text_atomic, path, text)
        if ok:
            logger.info(f"Saved playlist '{playlist.title}' ({path.name})")
        return ok

    async def delete(self, playlist_id: str) -> PlaylistRecord:
        """Forget a playlist and delete its file."""
        playlist = self._playlists.pop(playlist_id, None)
        if playlist is None:
            raise PlaylistNotFoundError(playlist_id)
        path = self._files.pop(playlist_id, None) or self.file_path(playlist_id)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            _log.error(f"Failed to delete playlist file {path.name}: {e}")
        return playlist

    # ── Libraries ──

    @staticmethod
    def is_visible(playlist: PlaylistRecord, library: Library | None) -> bool:
        """
        Unscoped playlists show under the default library and under any
        library without a prefix; scoped ones only under their own library.
        """
        if library is None:
            return True
        if playlist.library is None:
            return library.default or not library.prefix
        return playlist.library == library.route

    def playlists_for_library(self, library: Library | None) -> list[PlaylistRecord]:
        visible = [p for p in self._playlists.values() if self.is_visible(p, library)]
        return sorted(visible, key=lambda p: p.title.casefold())
