"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gamecatalog.data.library_file import find_library

if TYPE_CHECKING:
    from gamecatalog.config import Config
    from gamecatalog.core.image_cache import GameImageCollection
    from gamecatalog.data.catalog import CatalogCollection, LoadReport
    from gamecatalog.data.playlist_store import PlaylistStore
    from gamecatalog.logger import DiagnosticsLog
    from gamecatalog.models.library import Library


@dataclass
class AppContext:
    """
    Central service container.

    Built once by ``main.create_context()`` and handed to every command.
    """

    config: Config
    diagnostics: DiagnosticsLog

    # Catalog data
    catalog: CatalogCollection
    playlists: PlaylistStore
    images: GameImageCollection
    libraries: list[Library] = field(default_factory=list)

    load_report: LoadReport | None = None

    @property
    def current_library(self) -> Library | None:
        """Library selected in the preferences (the default one when unset)."""
        return find_library(self.libraries, self.config.library_route)
