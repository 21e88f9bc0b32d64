"""Raw record ⇄ typed record conversion for games, add-apps and playlists."""

from __future__ import annotations

import re
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import uuid4

from gamecatalog.core.schema_parser import ErrorHandler, SchemaParser, SchemaProperty
from gamecatalog.models.game import AdditionalApplicationRecord, GameRecord
from gamecatalog.models.playlist import PlaylistEntry, PlaylistRecord

DEFAULT_ORDER_TITLE_PREFIXES: tuple[str, ...] = ("the", "a", "an")

# Raw (LaunchBox) field name → GameRecord attribute, in file order
_GAME_FIELDS: tuple[tuple[str, str], ...] = (
    ("ID", "id"),
    ("Title", "title"),
    ("AlternateTitles", "alternate_titles"),
    ("Series", "series"),
    ("Developer", "developer"),
    ("Publisher", "publisher"),
    ("Platform", "platform"),
    ("DateAdded", "date_added"),
    ("DateModified", "date_modified"),
    ("PlayMode", "play_mode"),
    ("Status", "status"),
    ("Notes", "notes"),
    ("Genre", "genre"),
    ("Source", "source"),
    ("ApplicationPath", "application_path"),
    ("CommandLine", "launch_command"),
    ("ReleaseDate", "release_date"),
    ("Version", "version"),
    ("OriginalDescription", "original_description"),
    ("Language", "language"),
)
_GAME_FLAGS: tuple[tuple[str, str], ...] = (
    ("Hide", "extreme"),
    ("Broken", "broken"),
)
# Fields a record cannot be identified without
_GAME_REQUIRED = frozenset({"ID", "Title"})

_ADD_APP_FIELDS: tuple[tuple[str, str], ...] = (
    ("Id", "id"),
    ("GameID", "game_id"),
    ("ApplicationPath", "application_path"),
    ("CommandLine", "launch_command"),
    ("Name", "name"),
)
_ADD_APP_FLAGS: tuple[tuple[str, str], ...] = (
    ("AutoRunBefore", "auto_run_before"),
    ("WaitForExit", "wait_for_exit"),
)
_ADD_APP_REQUIRED = frozenset({"Id", "GameID"})

_WHITESPACE = re.compile(r"\s+")


def _parser_for(raw: Any, on_error: ErrorHandler | None) -> SchemaProperty:
    """Accept a raw record, or a property of a larger parse (keeps its path)."""
    if isinstance(raw, SchemaProperty):
        return raw
    return SchemaParser(raw, on_error=on_error)


def generate_order_title(
    title: str, prefixes: Iterable[str] = DEFAULT_ORDER_TITLE_PREFIXES
) -> str:
    """
    Build the sort key for a title.

    Lower-cases, collapses whitespace and drops one leading article, so
    "The  Last Door" sorts as "last door". A title that consists of nothing
    but the article is kept as is.
    """
    normalized = _WHITESPACE.sub(" ", title).strip().casefold()
    for prefix in prefixes:
        lead = prefix.strip().casefold() + " "
        if lead != " " and normalized.startswith(lead) and len(normalized) > len(lead):
            return normalized[len(lead):]
    return normalized


def _bool_to_raw(value: bool) -> str:
    return "true" if value else "false"


# ── Games ──


def empty_raw_game() -> dict[str, Any]:
    """Raw shape of a game with every known field present."""
    raw: dict[str, Any] = {name: "" for name, _ in _GAME_FIELDS}
    for name, _ in _GAME_FLAGS:
        raw[name] = "false"
    return raw


def new_game() -> GameRecord:
    """A fresh game with a generated id, dated now."""
    return GameRecord(
        id=str(uuid4()),
        date_added=datetime.now(tz=timezone.utc).isoformat(),
    )


def parse_game(
    raw: Any,
    filename: str = "",
    on_error: ErrorHandler | None = None,
    prefixes: Iterable[str] = DEFAULT_ORDER_TITLE_PREFIXES,
) -> GameRecord:
    """Parse a raw game record. Missing or malformed fields fall back to defaults."""
    parser = _parser_for(raw, on_error)
    game = GameRecord(filename=filename)
    for name, attr in _GAME_FIELDS:
        setattr(game, attr, parser.property(name, optional=name not in _GAME_REQUIRED).as_str())
    for name, attr in _GAME_FLAGS:
        setattr(game, attr, parser.property(name, optional=True).as_bool())
    game.order_title = generate_order_title(game.title, prefixes)
    return game


def reverse_parse_game(game: GameRecord) -> dict[str, Any]:
    """Typed game → raw fields (known fields only; merge over the raw mirror to keep the rest)."""
    raw: dict[str, Any] = {name: getattr(game, attr) for name, attr in _GAME_FIELDS}
    for name, attr in _GAME_FLAGS:
        raw[name] = _bool_to_raw(getattr(game, attr))
    return raw


# ── Additional applications ──


def empty_raw_additional_application() -> dict[str, Any]:
    raw: dict[str, Any] = {name: "" for name, _ in _ADD_APP_FIELDS}
    for name, _ in _ADD_APP_FLAGS:
        raw[name] = "false"
    return raw


def parse_additional_application(
    raw: Any, on_error: ErrorHandler | None = None
) -> AdditionalApplicationRecord:
    parser = _parser_for(raw, on_error)
    app = AdditionalApplicationRecord()
    for name, attr in _ADD_APP_FIELDS:
        setattr(app, attr, parser.property(name, optional=name not in _ADD_APP_REQUIRED).as_str())
    for name, attr in _ADD_APP_FLAGS:
        setattr(app, attr, parser.property(name, optional=True).as_bool())
    return app


def reverse_parse_additional_application(app: AdditionalApplicationRecord) -> dict[str, Any]:
    raw: dict[str, Any] = {name: getattr(app, attr) for name, attr in _ADD_APP_FIELDS}
    for name, attr in _ADD_APP_FLAGS:
        raw[name] = _bool_to_raw(getattr(app, attr))
    return raw


# ── Playlists ──


def create_playlist() -> PlaylistRecord:
    return PlaylistRecord(id=str(uuid4()))


def parse_playlist(raw: Any, on_error: ErrorHandler | None = None) -> PlaylistRecord:
    parser = _parser_for(raw, on_error)
    playlist = PlaylistRecord(
        id=parser.property("id").as_str(),
        title=parser.property("title").as_str(),
        description=parser.property("description").as_str(),
        author=parser.property("author").as_str(),
        icon=parser.property("icon", optional=True).as_optional_str(),
        library=parser.property("library", optional=True).as_optional_str(),
    )

    def add_entry(item, _index: int) -> None:
        playlist.games.append(
            PlaylistEntry(
                id=item.property("id").as_str(),
                notes=item.property("notes").as_str(),
            )
        )

    parser.property("games").for_each_element(add_entry)
    return playlist


def reverse_parse_playlist(playlist: PlaylistRecord) -> dict[str, Any]:
    """Playlist → JSON shape. ``icon``/``library`` are omitted when unset."""
    raw: dict[str, Any] = {
        "id": playlist.id,
        "title": playlist.title,
        "description": playlist.description,
        "author": playlist.author,
    }
    if playlist.icon is not None:
        raw["icon"] = playlist.icon
    if playlist.library is not None:
        raw["library"] = playlist.library
    raw["games"] = [asdict(entry) for entry in playlist.games]
    return raw
