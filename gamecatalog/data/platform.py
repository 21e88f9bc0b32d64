"""Platform — one platform XML file's games and additional applications."""

from __future__ import annotations

import asyncio
import copy
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from gamecatalog.core.record_codec import (
    DEFAULT_ORDER_TITLE_PREFIXES,
    empty_raw_additional_application,
    empty_raw_game,
    generate_order_title,
    parse_additional_application,
    parse_game,
    reverse_parse_additional_application,
    reverse_parse_game,
)
from gamecatalog.core.schema_parser import ParseError, SchemaParser, SchemaProperty
from gamecatalog.data.launchbox_xml import tree_to_xml, xml_to_tree
from gamecatalog.errors import (
    AdditionalApplicationNotFoundError,
    DuplicateRecordError,
    GameNotFoundError,
    OrphanedApplicationError,
    PlatformFileError,
)
from gamecatalog.models.game import AdditionalApplicationRecord, GameRecord
from gamecatalog.utils import WriteGuard, read_text, remove_file_extension, write_text_atomic

ROOT_TAG = "LaunchBox"
GAME_TAG = "Game"
ADD_APP_TAG = "AdditionalApplication"

_log = logger.bind(source="Platform")
_write_guard = WriteGuard()


class Platform:
    """
    Games and add-apps of one platform file (e.g. ``Flash.xml``).

    Every typed record has a raw twin (the record as it was read from the
    file). Mutations keep both lists in lockstep and ``serialize()`` writes
    the raw twins, so fields this program does not understand survive a save.

    Records that cannot be keyed (no id) are not indexed but are still
    written back unchanged.
    """

    def __init__(
        self,
        filename: str,
        path: Path | None = None,
        prefixes: Iterable[str] = DEFAULT_ORDER_TITLE_PREFIXES,
    ) -> None:
        self.filename = filename
        self.path = path
        self.prefixes = tuple(prefixes)
        self.parse_errors: list[ParseError] = []
        self._games: list[GameRecord] = []
        self._raw_games: list[dict[str, Any]] = []
        self._add_apps: list[AdditionalApplicationRecord] = []
        self._raw_add_apps: list[dict[str, Any]] = []
        # id → position in the lists above
        self._game_ids: dict[str, int] = {}
        self._add_app_ids: dict[str, int] = {}
        # Top-level elements other than games / add-apps, and unkeyed records
        self._extra: dict[str, list[Any]] = {}
        self._unindexed: dict[str, list[Any]] = {GAME_TAG: [], ADD_APP_TAG: []}
        self._layout: list[str] = [GAME_TAG, ADD_APP_TAG]

    def __repr__(self) -> str:
        return f"Platform({self.filename!r}, games={len(self._games)}, add_apps={len(self._add_apps)})"

    @property
    def name(self) -> str:
        """Filename without extension, e.g. 'Flash'."""
        return remove_file_extension(self.filename)

    @property
    def games(self) -> list[GameRecord]:
        return list(self._games)

    @property
    def additional_applications(self) -> list[AdditionalApplicationRecord]:
        return list(self._add_apps)

    # ── Loading ──

    @classmethod
    def from_tree(
        cls,
        filename: str,
        tree: Any,
        prefixes: Iterable[str] = DEFAULT_ORDER_TITLE_PREFIXES,
        path: Path | None = None,
    ) -> Platform:
        """Build a platform from a decoded file. Problems are logged, never raised."""
        platform = cls(filename, path, prefixes)
        parser = SchemaParser(tree, on_error=platform.parse_errors.append)
        body = parser.property(ROOT_TAG)

        def add_raw_game(item: SchemaProperty, _index: int) -> None:
            game = parse_game(item, filename=filename, prefixes=platform.prefixes)
            raw = item.value if isinstance(item.value, dict) else {}
            if not game.id or game.id in platform._game_ids:
                platform._report_unindexed(GAME_TAG, game.id, item)
                return
            platform._game_ids[game.id] = len(platform._games)
            platform._games.append(game)
            platform._raw_games.append(raw)

        def add_raw_add_app(item: SchemaProperty, _index: int) -> None:
            app = parse_additional_application(item)
            raw = item.value if isinstance(item.value, dict) else {}
            if not app.id or app.id in platform._add_app_ids:
                platform._report_unindexed(ADD_APP_TAG, app.id, item)
                return
            platform._add_app_ids[app.id] = len(platform._add_apps)
            platform._add_apps.append(app)
            platform._raw_add_apps.append(raw)

        def keep_extra(value: Any, label: str) -> None:
            if label not in (GAME_TAG, ADD_APP_TAG):
                platform._extra[label] = value if isinstance(value, list) else [value]

        if isinstance(body.value, dict):
            body.for_each_property_raw(keep_extra)
            platform._layout = [tag for tag in body.value] + [
                tag for tag in (GAME_TAG, ADD_APP_TAG) if tag not in body.value
            ]
        body.property(GAME_TAG, optional=True).for_each_element(add_raw_game)
        body.property(ADD_APP_TAG, optional=True).for_each_element(add_raw_add_app)

        for error in platform.parse_errors:
            _log.warning(f"{filename}: {error}")
        for app in platform.orphaned_additional_applications():
            _log.warning(
                f"{filename}: additional application '{app.id}' references "
                f"missing game '{app.game_id}'"
            )
        return platform

    def _report_unindexed(self, tag: str, record_id: str, item: SchemaProperty) -> None:
        self._unindexed[tag].append(item.value)
        reason = "has no id" if not record_id else f"repeats id '{record_id}'"
        _log.warning(f"{self.filename}: {tag} at {item.path_string} {reason}, kept but not indexed")

    @classmethod
    async def load(
        cls, path: Path, prefixes: Iterable[str] = DEFAULT_ORDER_TITLE_PREFIXES
    ) -> Platform:
        """
        Read and parse a platform file.

        A missing file yields an empty platform. An unreadable file raises
        ``OSError``; malformed XML, or XML whose root is not ``<LaunchBox>``,
        raises ``PlatformFileError``.
        """
        try:
            text = await read_text(path)
        except FileNotFoundError:
            logger.debug(f"Platform file not found, starting empty: {path}")
            return cls(path.name, path, prefixes)
        try:
            tree = await asyncio.to_thread(xml_to_tree, text)
        except ET.ParseError as e:
            raise PlatformFileError(path.name, str(e)) from e
        if ROOT_TAG not in tree:
            (root_tag,) = tree
            raise PlatformFileError(path.name, f"root element is <{root_tag}>, expected <{ROOT_TAG}>")
        platform = cls.from_tree(path.name, tree, prefixes, path)
        logger.debug(
            f"Loaded platform {path.name}: {len(platform._games)} game(s), "
            f"{len(platform._add_apps)} additional application(s)"
        )
        return platform

    # ── Lookup ──

    def _game_index(self, game_id: str) -> int:
        return self._game_ids.get(game_id, -1)

    def _add_app_index(self, app_id: str) -> int:
        return self._add_app_ids.get(app_id, -1)

    def find_game(self, game_id: str) -> GameRecord | None:
        index = self._game_index(game_id)
        return self._games[index] if index >= 0 else None

    def find_raw_game(self, game_id: str) -> dict[str, Any] | None:
        index = self._game_index(game_id)
        return self._raw_games[index] if index >= 0 else None

    def find_additional_application(self, app_id: str) -> AdditionalApplicationRecord | None:
        index = self._add_app_index(app_id)
        return self._add_apps[index] if index >= 0 else None

    def find_raw_additional_application(self, app_id: str) -> dict[str, Any] | None:
        index = self._add_app_index(app_id)
        return self._raw_add_apps[index] if index >= 0 else None

    def additional_applications_of(self, game_id: str) -> list[AdditionalApplicationRecord]:
        return [app for app in self._add_apps if app.game_id == game_id]

    def orphaned_additional_applications(self) -> list[AdditionalApplicationRecord]:
        game_ids = {game.id for game in self._games}
        return [app for app in self._add_apps if app.game_id not in game_ids]

    # ── Games ──

    def add_game(self, game: GameRecord) -> GameRecord:
        if self._game_index(game.id) >= 0:
            raise DuplicateRecordError(game.id, self.filename)
        game.filename = self.filename
        game.order_title = generate_order_title(game.title, self.prefixes)
        self._game_ids[game.id] = len(self._games)
        self._games.append(game)
        self._raw_games.append({**empty_raw_game(), **reverse_parse_game(game)})
        return game

    def update_game(self, game: GameRecord) -> GameRecord:
        """Replace the game with the same id."""
        index = self._game_index(game.id)
        if index == -1:
            raise GameNotFoundError(game.id, self.filename)
        game.filename = self.filename
        game.order_title = generate_order_title(game.title, self.prefixes)
        self._games[index] = game
        self._raw_games[index].update(reverse_parse_game(game))
        return game

    def add_or_update_game(self, game: GameRecord) -> GameRecord:
        if self._game_index(game.id) >= 0:
            return self.update_game(game)
        return self.add_game(game)

    def remove_game(self, game_id: str) -> GameRecord:
        """Remove a game and the additional applications that belong to it."""
        index = self._game_index(game_id)
        if index == -1:
            raise GameNotFoundError(game_id, self.filename)
        for app in self.additional_applications_of(game_id):
            self.remove_additional_application(app.id)
        del self._raw_games[index]
        game = self._games.pop(index)
        self._game_ids = {g.id: i for i, g in enumerate(self._games)}
        return game

    # ── Additional applications ──

    def add_additional_application(
        self, app: AdditionalApplicationRecord
    ) -> AdditionalApplicationRecord:
        if self._game_index(app.game_id) == -1:
            raise GameNotFoundError(app.game_id, self.filename)
        if self._add_app_index(app.id) >= 0:
            raise DuplicateRecordError(app.id, self.filename)
        self._add_app_ids[app.id] = len(self._add_apps)
        self._add_apps.append(app)
        self._raw_add_apps.append(
            {**empty_raw_additional_application(), **reverse_parse_additional_application(app)}
        )
        return app

    def update_additional_application(
        self, app: AdditionalApplicationRecord
    ) -> AdditionalApplicationRecord:
        index = self._add_app_index(app.id)
        if index == -1:
            raise AdditionalApplicationNotFoundError(app.id, self.filename)
        if self._game_index(app.game_id) == -1:
            raise GameNotFoundError(app.game_id, self.filename)
        self._add_apps[index] = app
        self._raw_add_apps[index].update(reverse_parse_additional_application(app))
        return app

    def remove_additional_application(self, app_id: str) -> AdditionalApplicationRecord:
        index = self._add_app_index(app_id)
        if index == -1:
            raise AdditionalApplicationNotFoundError(app_id, self.filename)
        del self._raw_add_apps[index]
        app = self._add_apps.pop(index)
        self._add_app_ids = {a.id: i for i, a in enumerate(self._add_apps)}
        return app

    # ── Persistence ──

    def serialize(self) -> dict[str, Any]:
        """Raw tree of the current state, ready for ``tree_to_xml``."""
        orphans = self.orphaned_additional_applications()
        if orphans:
            raise OrphanedApplicationError(
                self.filename, [(app.id, app.game_id) for app in orphans]
            )
        body: dict[str, Any] = {}
        for tag in self._layout:
            if tag == GAME_TAG:
                body[tag] = self._raw_games + self._unindexed[GAME_TAG]
            elif tag == ADD_APP_TAG:
                body[tag] = self._raw_add_apps + self._unindexed[ADD_APP_TAG]
            elif tag in self._extra:
                body[tag] = self._extra[tag]
        return {ROOT_TAG: copy.deepcopy(body)}

    async def save(self, folder: Path | None = None) -> bool:
        """
        Write the platform back to its file.

        Returns False (after logging) when the write fails. A second save of
        the same file while one is running raises ``WriteInProgressError``.
        """
        path = folder / self.filename if folder is not None else self.path
        if path is None:
            raise ValueError(f"Platform '{self.filename}' has no file path")
        text = tree_to_xml(self.serialize())
        async with _write_guard.writing(path):
            ok = await asyncio.to_thread(write_text_atomic, path, text)
        if ok:
            self.path = path
            logger.info(f"Saved platform {self.filename} ({len(self._games)} game(s))")
        return ok
