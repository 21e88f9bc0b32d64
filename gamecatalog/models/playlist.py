"""Playlist models."""

from __future__ import annotations

from dataclasses import dataclass, field

from gamecatalog.errors import PlaylistEntryNotFoundError


@dataclass
class PlaylistEntry:
    """Reference to a game (by id) plus playlist-specific notes."""

    id: str = ""
    notes: str = ""


@dataclass
class PlaylistRecord:
    """
    User-curated, ordered list of games.

    Entries reference games by id only; an id that no longer resolves is
    kept and simply renders nothing.
    """

    id: str = ""
    title: str = ""
    description: str = ""
    author: str = ""
    icon: str | None = None
    library: str | None = None  # route of the owning library, None = unscoped
    games: list[PlaylistEntry] = field(default_factory=list)

    @property
    def game_ids(self) -> list[str]:
        return [entry.id for entry in self.games]

    def index_of(self, game_id: str) -> int:
        for i, entry in enumerate(self.games):
            if entry.id == game_id:
                return i
        return -1

    def find_entry(self, game_id: str) -> PlaylistEntry | None:
        index = self.index_of(game_id)
        return self.games[index] if index >= 0 else None

    def add_entry(self, game_id: str, notes: str = "") -> PlaylistEntry:
        """Append a game. A game already in the playlist is not added twice."""
        existing = self.find_entry(game_id)
        if existing is not None:
            return existing
        entry = PlaylistEntry(id=game_id, notes=notes)
        self.games.append(entry)
        return entry

    def remove_entry(self, game_id: str) -> PlaylistEntry:
        index = self.index_of(game_id)
        if index == -1:
            raise PlaylistEntryNotFoundError(self.id, game_id)
        return self.games.pop(index)

    def update_entry_notes(self, game_id: str, notes: str) -> PlaylistEntry:
        entry = self.find_entry(game_id)
        if entry is None:
            raise PlaylistEntryNotFoundError(self.id, game_id)
        entry.notes = notes
        return entry
