"""Application configuration — JSON-based, with file locking and batch update support."""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

_instance: "Config | None" = None

# Default config directory
_DEFAULT_CONFIG_DIR = Path.home() / "Documents" / "GameCatalog"


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based application configuration with file locking."""

    _DEFAULTS: dict[str, Any] = {
        # Root of the game collection; relative folders below resolve against it
        "flashpoint_path": "",
        "platform_folder_path": "Data/Platforms",
        "playlist_folder_path": "Data/Playlists",
        "image_folder_path": "Data/Images",
        "json_folder_path": "Data",
        "library_file": "libraries.json",
        "thumbnail_folder": "Box - Front",
        "screenshot_folder": "Screenshot - Gameplay",
        # Content
        "disable_extreme_games": False,
        "show_broken_games": False,
        "order_title_prefixes": ["the", "a", "an"],
        # Browse preferences
        "preferences": {
            "show_extreme": False,
            "order_by": "title",
            "order_direction": "ascending",
            "library_route": "",
            "selected_playlist": "",
        },
    }

    def __init__(self, config_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = config_dir or _DEFAULT_CONFIG_DIR
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._defer_save = False
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
                if isinstance(user_data, dict):
                    self._deep_merge(self._data, user_data)
                else:
                    logger.warning("Config file is not a JSON object, using defaults")
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Recursively merge override into base."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save(self) -> None:
        """Persist config to disk with file locking."""
        if self._defer_save:
            return
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Failed to save config: {e}")
                if tmp_path.exists():
                    tmp_path.unlink(missing_ok=True)

    @contextmanager
    def batch_update(self) -> Iterator[None]:
        """Context manager for batching multiple config changes into a single write."""
        self._defer_save = True
        try:
            yield
        finally:
            self._defer_save = False
            self._save()

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any, persist: bool = True) -> None:
        """Set a config value by dot-separated key path (``persist=False`` keeps it in memory only)."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        if persist:
            self._save()

    # ── Paths ──

    @property
    def config_dir(self) -> Path:
        return self._dir

    @property
    def flashpoint_path(self) -> Path:
        raw = self._data.get("flashpoint_path", "")
        return Path(raw) if raw else self._dir

    @flashpoint_path.setter
    def flashpoint_path(self, value: Path | str) -> None:
        self.set("flashpoint_path", str(value))

    def _resolve(self, key: str) -> Path:
        return self.flashpoint_path / self._data.get(key, self._DEFAULTS[key])

    @property
    def platform_folder(self) -> Path:
        return self._resolve("platform_folder_path")

    @property
    def playlist_folder(self) -> Path:
        return self._resolve("playlist_folder_path")

    @property
    def image_folder(self) -> Path:
        return self._resolve("image_folder_path")

    @property
    def json_folder(self) -> Path:
        return self._resolve("json_folder_path")

    @property
    def library_path(self) -> Path:
        return self.json_folder / self._data.get("library_file", "libraries.json")

    @property
    def thumbnail_folder(self) -> str:
        return self._data.get("thumbnail_folder", "Box - Front")

    @property
    def screenshot_folder(self) -> str:
        return self._data.get("screenshot_folder", "Screenshot - Gameplay")

    # ── Content flags ──

    @property
    def disable_extreme_games(self) -> bool:
        return bool(self._data.get("disable_extreme_games", False))

    @disable_extreme_games.setter
    def disable_extreme_games(self, value: bool) -> None:
        self.set("disable_extreme_games", value)

    @property
    def show_broken_games(self) -> bool:
        return bool(self._data.get("show_broken_games", False))

    @show_broken_games.setter
    def show_broken_games(self, value: bool) -> None:
        self.set("show_broken_games", value)

    @property
    def order_title_prefixes(self) -> tuple[str, ...]:
        raw = self._data.get("order_title_prefixes", [])
        if not isinstance(raw, list):
            return ()
        return tuple(str(p) for p in raw if p)

    # ── Preferences ──

    @property
    def preferences(self) -> dict[str, Any]:
        return self._data.get("preferences", {})

    @property
    def show_extreme(self) -> bool:
        return bool(self.preferences.get("show_extreme", False))

    @show_extreme.setter
    def show_extreme(self, value: bool) -> None:
        self.set("preferences.show_extreme", value)

    @property
    def order_by(self) -> str:
        return self.preferences.get("order_by", "title")

    @property
    def order_direction(self) -> str:
        return self.preferences.get("order_direction", "ascending")

    @property
    def library_route(self) -> str:
        return self.preferences.get("library_route", "")

    @property
    def selected_playlist(self) -> str:
        return self.preferences.get("selected_playlist", "")
