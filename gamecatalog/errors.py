"""Exception types raised by the catalog engine.

Recoverable problems (malformed fields, missing files, id collisions) are
logged and degraded instead; only caller-contract violations and
unrecoverable persistence states are raised.
"""

from __future__ import annotations


class CatalogError(RuntimeError):
    """Base class for all catalog engine errors."""


class ContractError(CatalogError):
    """The caller asked for something that contradicts the engine's state."""


class GameNotFoundError(ContractError):
    def __init__(self, game_id: str, where: str = "") -> None:
        self.game_id = game_id
        suffix = f" in {where}" if where else ""
        super().__init__(f"Game '{game_id}' was not found{suffix}")


class AdditionalApplicationNotFoundError(ContractError):
    def __init__(self, app_id: str, where: str = "") -> None:
        self.app_id = app_id
        suffix = f" in {where}" if where else ""
        super().__init__(f"Additional application '{app_id}' was not found{suffix}")


class PlaylistNotFoundError(ContractError):
    def __init__(self, playlist_id: str) -> None:
        self.playlist_id = playlist_id
        super().__init__(f"Playlist '{playlist_id}' was not found")


class PlaylistEntryNotFoundError(ContractError):
    def __init__(self, playlist_id: str, game_id: str) -> None:
        self.playlist_id = playlist_id
        self.game_id = game_id
        super().__init__(f"Game '{game_id}' is not in playlist '{playlist_id}'")


class DuplicateImageFolderError(ContractError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Image folder with the same name has already been added ({name})")


class WriteInProgressError(ContractError):
    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"A write to '{path}' is still in progress")


class OrphanedApplicationError(CatalogError):
    """Raised when a platform is serialized while add-apps reference missing games."""

    def __init__(self, filename: str, orphans: list[tuple[str, str]]) -> None:
        self.filename = filename
        self.orphans = orphans
        listed = ", ".join(f"{app_id} -> {game_id}" for app_id, game_id in orphans)
        super().__init__(
            f"Platform '{filename}' has {len(orphans)} orphaned additional application(s): {listed}"
        )


class DuplicateRecordError(ContractError):
    def __init__(self, record_id: str, where: str = "") -> None:
        self.record_id = record_id
        suffix = f" in {where}" if where else ""
        super().__init__(f"A record with id '{record_id}' already exists{suffix}")


class PlatformFileError(CatalogError):
    """A platform file exists but is not readable as a platform."""

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        super().__init__(f"Malformed platform file '{filename}': {reason}")
