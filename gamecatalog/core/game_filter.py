"""Filtering and ordering of game lists for browsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Sequence

from loguru import logger

from gamecatalog.models.game import GameRecord
from gamecatalog.models.playlist import PlaylistRecord


class OrderBy(StrEnum):
    TITLE = "title"
    DATE_ADDED = "dateAdded"
    DATE_MODIFIED = "dateModified"
    DEVELOPER = "developer"
    PUBLISHER = "publisher"
    GENRE = "genre"
    SERIES = "series"
    PLATFORM = "platform"


class OrderDirection(StrEnum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


# OrderBy → GameRecord attribute used as the sort key
_SORT_FIELDS: dict[OrderBy, str] = {
    OrderBy.TITLE: "order_title",
    OrderBy.DATE_ADDED: "date_added",
    OrderBy.DATE_MODIFIED: "date_modified",
    OrderBy.DEVELOPER: "developer",
    OrderBy.PUBLISHER: "publisher",
    OrderBy.GENRE: "genre",
    OrderBy.SERIES: "series",
    OrderBy.PLATFORM: "platform",
}


@dataclass(frozen=True)
class OrderGamesArgs:
    games: tuple[GameRecord, ...] = ()
    search: str = ""
    extreme: bool = False
    broken: bool = False
    playlist: PlaylistRecord | None = None
    order_by: OrderBy = OrderBy.TITLE
    order_direction: OrderDirection = OrderDirection.ASCENDING

    @classmethod
    def from_config(
        cls,
        config,
        games: Sequence[GameRecord],
        search: str = "",
        playlist: PlaylistRecord | None = None,
    ) -> OrderGamesArgs:
        """Arguments for the browse view as configured by the user."""
        try:
            order_by = OrderBy(config.order_by)
        except ValueError:
            logger.warning(f"Unknown order '{config.order_by}', ordering by title")
            order_by = OrderBy.TITLE
        try:
            direction = OrderDirection(config.order_direction)
        except ValueError:
            logger.warning(f"Unknown order direction '{config.order_direction}', using ascending")
            direction = OrderDirection.ASCENDING
        return cls(
            games=tuple(games),
            search=search,
            extreme=not config.disable_extreme_games and config.show_extreme,
            broken=config.show_broken_games,
            playlist=playlist,
            order_by=order_by,
            order_direction=direction,
        )

    def same_as(self, other: OrderGamesArgs | None) -> bool:
        """True if ordering *other* would give the same result (games compared by identity)."""
        if other is None:
            return False
        if len(self.games) != len(other.games):
            return False
        if any(a is not b for a, b in zip(self.games, other.games)):
            return False
        return (
            self.search == other.search
            and self.extreme == other.extreme
            and self.broken == other.broken
            and self.playlist == other.playlist
            and self.order_by == other.order_by
            and self.order_direction == other.order_direction
        )


# ── Stages ──


def filter_playlist(playlist: PlaylistRecord | None, games: Sequence[GameRecord]) -> list[GameRecord]:
    """Games referenced by *playlist*, in entry order. Unresolved entries are skipped."""
    if playlist is None:
        return list(games)
    by_id: dict[str, GameRecord] = {}
    for game in games:
        by_id.setdefault(game.id, game)
    result: list[GameRecord] = []
    seen: set[str] = set()
    for entry in playlist.games:
        game = by_id.get(entry.id)
        if game is not None and entry.id not in seen:
            seen.add(entry.id)
            result.append(game)
    return result


def filter_extreme(show_extreme: bool, games: Sequence[GameRecord]) -> list[GameRecord]:
    if show_extreme:
        return list(games)
    return [g for g in games if not g.extreme]


def filter_broken(show_broken: bool, games: Sequence[GameRecord]) -> list[GameRecord]:
    if show_broken:
        return list(games)
    return [g for g in games if not g.broken]


def filter_search(text: str, games: Sequence[GameRecord]) -> list[GameRecord]:
    """Case-insensitive substring match on title and alternate titles."""
    needle = text.strip().casefold()
    if not needle:
        return list(games)
    return [
        g for g in games
        if needle in g.title.casefold() or needle in g.alternate_titles.casefold()
    ]


def sort_games(
    games: Sequence[GameRecord],
    order_by: OrderBy = OrderBy.TITLE,
    direction: OrderDirection = OrderDirection.ASCENDING,
) -> list[GameRecord]:
    """Stable sort; games with equal keys keep their input order in both directions."""
    attr = _SORT_FIELDS[OrderBy(order_by)]
    return sorted(
        games,
        key=lambda g: getattr(g, attr).casefold(),
        reverse=OrderDirection(direction) is OrderDirection.DESCENDING,
    )


def order_games(args: OrderGamesArgs) -> list[GameRecord]:
    """
    Filter and order ``args.games``.

    With a playlist the result is the playlist's games in playlist order,
    narrowed by the search text; the requested order and the content
    filters are ignored. Without one, extreme and broken games are dropped
    unless allowed, the search is applied and the rest is sorted.
    """
    if args.playlist is not None:
        games = filter_playlist(args.playlist, args.games)
        return filter_search(args.search, games)
    games = filter_extreme(args.extreme, args.games)
    games = filter_broken(args.broken, games)
    games = filter_search(args.search, games)
    return sort_games(games, args.order_by, args.order_direction)


class OrderedGamesView:
    """Holds the last ordered list and only re-orders when the arguments change."""

    def __init__(self) -> None:
        self._args: OrderGamesArgs | None = None
        self._games: list[GameRecord] = []

    @property
    def games(self) -> list[GameRecord]:
        return list(self._games)

    @property
    def args(self) -> OrderGamesArgs | None:
        return self._args

    def update(self, args: OrderGamesArgs, force: bool = False) -> bool:
        """Re-order if needed. Returns True when the list was rebuilt."""
        if not force and args.same_as(self._args):
            return False
        self._games = order_games(args)
        self._args = args
        return True
