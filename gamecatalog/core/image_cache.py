"""Game images — thumbnail and screenshot folders indexed by game id or title."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Iterable

from loguru import logger

from gamecatalog.errors import DuplicateImageFolderError
from gamecatalog.models.game import GameRecord
from gamecatalog.utils import remove_file_extension, sanitize_filename

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"})

# LaunchBox numbers extra images of the same game: "Title-01.png", "Title-02.png"
_IMAGE_INDEX = re.compile(r"-\d{2}$")

_log = logger.bind(source="Images")


def image_key(name: str) -> str:
    """Normalize a game id/title (or an image filename stem) for lookup."""
    return sanitize_filename(name).casefold()


class ImageFolderCache:
    """Index of the image files in one folder."""

    def __init__(self) -> None:
        self._folder: Path | None = None
        self._files: dict[str, Path] = {}
        self._count = 0

    @property
    def folder(self) -> Path | None:
        return self._folder

    @property
    def count(self) -> int:
        """Number of image files found."""
        return self._count

    @staticmethod
    def _scan(folder: Path) -> tuple[dict[str, Path], int]:
        images = [
            path
            for path in sorted(folder.iterdir())
            if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS
        ]
        files: dict[str, Path] = {}
        # Exact stems first, so "Foo.png" beats "Foo-01.png" for "Foo"
        for path in images:
            files.setdefault(image_key(path.stem), path)
        for path in images:
            files.setdefault(image_key(_IMAGE_INDEX.sub("", path.stem)), path)
        return files, len(images)

    async def load_filenames(self, folder: Path) -> int:
        """
        (Re)build the index from *folder*.

        A folder that cannot be read leaves the cache empty; the problem is
        logged, never raised. Returns the number of images found.
        """
        self._folder = folder
        try:
            self._files, self._count = await asyncio.to_thread(self._scan, folder)
        except FileNotFoundError:
            logger.debug(f"Image folder not found: {folder}")
            self._files, self._count = {}, 0
        except OSError as e:
            _log.warning(f"Failed to read image folder {folder}: {e}")
            self._files, self._count = {}, 0
        return self._count

    def get_file_path(self, key: str) -> Path | None:
        return self._files.get(image_key(key))


class GameImageCollection:
    """
    Thumbnail and screenshot caches per platform.

    Layout:
      {root}/{platform name}/{thumbnail_folder}/…
      {root}/{platform name}/{screenshot_folder}/…
    """

    def __init__(
        self,
        root: Path,
        thumbnail_folder: str = "Box - Front",
        screenshot_folder: str = "Screenshot - Gameplay",
    ) -> None:
        self._root = root
        self._thumbnail_folder = thumbnail_folder
        self._screenshot_folder = screenshot_folder
        self._thumbnails: dict[str, ImageFolderCache] = {}
        self._screenshots: dict[str, ImageFolderCache] = {}

    @property
    def root(self) -> Path:
        return self._root

    @property
    def folder_names(self) -> list[str]:
        return list(self._thumbnails)

    def thumbnail_folder_path(self, name: str) -> Path:
        return self._root / name / self._thumbnail_folder

    def screenshot_folder_path(self, name: str) -> Path:
        return self._root / name / self._screenshot_folder

    async def create_image_folder(self, name: str) -> None:
        """Create the folders on disk; the caches are not touched."""
        for path in (self.thumbnail_folder_path(name), self.screenshot_folder_path(name)):
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)

    async def add_folder(self, name: str) -> None:
        """Register a platform's image folders and scan them."""
        key = name.lower()
        if key in self._thumbnails:
            raise DuplicateImageFolderError(name)
        thumbnails = self._thumbnails[key] = ImageFolderCache()
        screenshots = self._screenshots[key] = ImageFolderCache()
        await asyncio.gather(
            thumbnails.load_filenames(self.thumbnail_folder_path(name)),
            screenshots.load_filenames(self.screenshot_folder_path(name)),
        )

    async def add_folders(self, names: Iterable[str]) -> None:
        names = list(names)
        seen: set[str] = set()
        for name in names:
            if name.lower() in self._thumbnails or name.lower() in seen:
                raise DuplicateImageFolderError(name)
            seen.add(name.lower())
        await asyncio.gather(*(self.add_folder(name) for name in names))
        logger.debug(f"Indexed images for {len(names)} platform(s)")

    def get_thumbnail_cache(self, name: str) -> ImageFolderCache | None:
        return self._thumbnails.get(name.lower())

    def get_screenshot_cache(self, name: str) -> ImageFolderCache | None:
        return self._screenshots.get(name.lower())

    @staticmethod
    def _find(caches: dict[str, ImageFolderCache], game: GameRecord) -> Path | None:
        cache = caches.get(remove_file_extension(game.filename).lower())
        if cache is None:
            return None
        if game.id:
            path = cache.get_file_path(game.id)
            if path is not None:
                return path
        if game.title:
            return cache.get_file_path(game.title)
        return None

    def get_thumbnail_path(self, game: GameRecord) -> Path | None:
        return self._find(self._thumbnails, game)

    def get_screenshot_path(self, game: GameRecord) -> Path | None:
        return self._find(self._screenshots, game)
