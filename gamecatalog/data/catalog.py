"""Catalog collection — unified, id-keyed view over every loaded platform."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from loguru import logger

from gamecatalog.core.record_codec import DEFAULT_ORDER_TITLE_PREFIXES
from gamecatalog.data.platform import Platform
from gamecatalog.errors import DuplicateRecordError, GameNotFoundError
from gamecatalog.models.game import AdditionalApplicationRecord, GameRecord
from gamecatalog.models.library import Library
from gamecatalog.utils import remove_file_extension

UNKNOWN_PLATFORM = "Unknown Platform"

_log = logger.bind(source="Catalog")


@dataclass(frozen=True)
class IdConflict:
    """The same game id was found in two platforms; the later one won."""

    game_id: str
    kept_filename: str
    dropped_filename: str

    def __str__(self) -> str:
        return (
            f"Duplicate game id '{self.game_id}': '{self.kept_filename}' "
            f"replaces the copy in '{self.dropped_filename}'"
        )


@dataclass
class LoadReport:
    """Outcome of ``CatalogCollection.load_platforms``."""

    loaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    conflicts: list[IdConflict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class CatalogCollection:
    """
    All platforms' games, indexed by id.

    The index is not maintained incrementally: after any structural edit of
    a platform call ``refresh()`` (the edit helpers here do it for you)
    before querying again. On duplicate ids the platform registered later
    wins and the collision is recorded in ``conflicts``.
    """

    def __init__(
        self,
        platform_folder: Path | None = None,
        prefixes: Iterable[str] = DEFAULT_ORDER_TITLE_PREFIXES,
    ) -> None:
        self._folder = platform_folder
        self._prefixes = tuple(prefixes)
        self._platforms: list[Platform] = []
        self._games: dict[str, GameRecord] = {}
        self._owners: dict[str, Platform] = {}
        self._add_apps: dict[str, AdditionalApplicationRecord] = {}
        self._add_apps_by_game: dict[str, list[AdditionalApplicationRecord]] = {}
        self._conflicts: list[IdConflict] = []
        self._reported: set[IdConflict] = set()

    @property
    def platform_folder(self) -> Path | None:
        return self._folder

    # ── Loading ──

    @staticmethod
    def find_platforms(folder: Path) -> list[str]:
        """Sorted filenames of the platform files in *folder* (empty if it is missing)."""
        if not folder.is_dir():
            _log.warning(f"Platform folder not found: {folder}")
            return []
        return sorted(
            (p.name for p in folder.iterdir() if p.is_file() and p.suffix.lower() == ".xml"),
            key=str.lower,
        )

    async def load_platforms(
        self, folder: Path | None = None, filenames: Sequence[str] | None = None
    ) -> LoadReport:
        """
        Load platform files concurrently, register them and refresh.

        Each file fails on its own: a broken file is logged and listed in
        ``LoadReport.failed`` while the others load normally. Platforms are
        registered in filename order, whatever order the reads finish in.
        """
        folder = folder or self._folder
        if folder is None:
            raise ValueError("No platform folder configured")
        self._folder = folder
        if filenames is None:
            filenames = await asyncio.to_thread(self.find_platforms, folder)

        results = await asyncio.gather(
            *(Platform.load(folder / name, self._prefixes) for name in filenames),
            return_exceptions=True,
        )

        report = LoadReport()
        for name, result in zip(filenames, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                _log.error(f"Failed to load platform '{name}': {result}")
                report.failed[name] = str(result)
                continue
            try:
                self.add_platform(result)
            except DuplicateRecordError as e:
                _log.error(f"Failed to load platform '{name}': {e}")
                report.failed[name] = str(e)
                continue
            report.loaded.append(name)

        report.conflicts = self.refresh()
        logger.info(
            f"Catalog loaded: {len(report.loaded)} platform(s), {self.count} game(s), "
            f"{len(report.failed)} failure(s), {len(report.conflicts)} id conflict(s)"
        )
        return report

    # ── Platforms ──

    def add_platform(self, platform: Platform) -> None:
        """Register a platform. Call ``refresh()`` afterwards."""
        if self.get_platform(platform.filename) is not None:
            raise DuplicateRecordError(platform.filename, "catalog platforms")
        self._platforms.append(platform)

    def remove_platform(self, filename: str) -> Platform:
        platform = self.get_platform(filename)
        if platform is None:
            raise KeyError(filename)
        self._platforms.remove(platform)
        return platform

    def list_platforms(self) -> list[Platform]:
        return list(self._platforms)

    def get_platform(self, filename: str) -> Platform | None:
        lowered = filename.lower()
        for platform in self._platforms:
            if platform.filename.lower() == lowered:
                return platform
        return None

    def get_platform_by_name(self, name: str) -> Platform | None:
        """Find a platform by filename without extension ('Flash' → Flash.xml)."""
        lowered = name.lower()
        for platform in self._platforms:
            if remove_file_extension(platform.filename).lower() == lowered:
                return platform
        return None

    def get_platform_of_game_id(self, game_id: str) -> Platform | None:
        return self._owners.get(game_id)

    # ── Index ──

    def refresh(self) -> list[IdConflict]:
        """Rebuild every index from the platforms' current state."""
        games: dict[str, GameRecord] = {}
        owners: dict[str, Platform] = {}
        add_apps: dict[str, AdditionalApplicationRecord] = {}
        add_apps_by_game: dict[str, list[AdditionalApplicationRecord]] = {}
        conflicts: list[IdConflict] = []

        for platform in self._platforms:
            for game in platform.games:
                previous = owners.get(game.id)
                if previous is not None:
                    conflicts.append(IdConflict(game.id, platform.filename, previous.filename))
                    del games[game.id]
                games[game.id] = game
                owners[game.id] = platform
            for app in platform.additional_applications:
                add_apps[app.id] = app
                add_apps_by_game.setdefault(app.game_id, []).append(app)

        self._games = games
        self._owners = owners
        self._add_apps = add_apps
        self._add_apps_by_game = add_apps_by_game
        self._conflicts = conflicts

        for conflict in conflicts:
            if conflict not in self._reported:
                self._reported.add(conflict)
                _log.warning(str(conflict))
        return list(conflicts)

    @property
    def conflicts(self) -> list[IdConflict]:
        return list(self._conflicts)

    @property
    def games(self) -> list[GameRecord]:
        return list(self._games.values())

    @property
    def count(self) -> int:
        return len(self._games)

    def find_game_by_id(self, game_id: str) -> GameRecord | None:
        return self._games.get(game_id)

    def find_additional_application(self, app_id: str) -> AdditionalApplicationRecord | None:
        return self._add_apps.get(app_id)

    def find_additional_applications_by_game_id(
        self, game_id: str
    ) -> list[AdditionalApplicationRecord]:
        return list(self._add_apps_by_game.get(game_id, []))

    def orphaned_additional_applications(self) -> dict[str, list[AdditionalApplicationRecord]]:
        """filename → add-apps whose parent game is not in that platform."""
        orphans: dict[str, list[AdditionalApplicationRecord]] = {}
        for platform in self._platforms:
            found = platform.orphaned_additional_applications()
            if found:
                orphans[platform.filename] = found
        return orphans

    # ── Libraries ──

    def platforms_for_library(
        self, library: Library, libraries: Sequence[Library]
    ) -> list[Platform]:
        """
        Platforms shown under *library*.

        The default library takes every platform not claimed by another
        library's prefix; a prefixed library takes the platforms whose
        filename starts with its prefix; any other library has none.
        """
        if library.default:
            claimed: set[str] = set()
            for other in libraries:
                if other is library or other.route == library.route or not other.prefix:
                    continue
                for platform in self._platforms:
                    if platform.filename.startswith(other.prefix):
                        claimed.add(platform.filename)
            return [p for p in self._platforms if p.filename not in claimed]
        if library.prefix:
            return [p for p in self._platforms if p.filename.startswith(library.prefix)]
        return []

    def games_for_library(self, library: Library, libraries: Sequence[Library]) -> list[GameRecord]:
        games: list[GameRecord] = []
        for platform in self.platforms_for_library(library, libraries):
            games.extend(g for g in platform.games if self._owners.get(g.id) is platform)
        return games

    # ── Editing ──

    def _resolve_home(self, game: GameRecord, library_prefix: str) -> Platform:
        platform = (
            self.get_platform_of_game_id(game.id)
            or (self.get_platform(game.filename) if game.filename else None)
            or (self.get_platform_by_name(library_prefix + game.platform) if game.platform else None)
            or self.get_platform_by_name(library_prefix + UNKNOWN_PLATFORM)
        )
        if platform is None:
            filename = f"{library_prefix}{UNKNOWN_PLATFORM}.xml"
            path = self._folder / filename if self._folder is not None else None
            platform = Platform(filename, path, self._prefixes)
            self.add_platform(platform)
            logger.info(f"Created platform {filename}")
        return platform

    def save_game(
        self,
        game: GameRecord,
        additional_applications: Sequence[AdditionalApplicationRecord] = (),
        library_prefix: str = "",
    ) -> Platform:
        """
        Add or update *game* and make its add-apps match *additional_applications*.

        The home platform is, in order: the platform that already owns the
        id, the game's own file, the platform named after ``game.platform``
        (with *library_prefix*), and finally "Unknown Platform" (created on
        demand). The collection is refreshed before returning; persist with
        ``await platform.save()``.
        """
        platform = self._resolve_home(game, library_prefix)
        platform.add_or_update_game(game)

        wanted = {app.id: app for app in additional_applications}
        for existing in platform.additional_applications_of(game.id):
            if existing.id not in wanted:
                platform.remove_additional_application(existing.id)
        for app in additional_applications:
            app.game_id = game.id
            if platform.find_additional_application(app.id) is not None:
                platform.update_additional_application(app)
            else:
                platform.add_additional_application(app)

        self.refresh()
        return platform

    def delete_game(self, game_id: str) -> Platform:
        """Remove a game (and its add-apps) from its platform and refresh."""
        platform = self.get_platform_of_game_id(game_id)
        if platform is None:
            raise GameNotFoundError(game_id)
        platform.remove_game(game_id)
        self.refresh()
        return platform
