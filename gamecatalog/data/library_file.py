"""libraries.json — the library partitions of the catalog."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from gamecatalog.core.schema_parser import ErrorHandler, SchemaParser, SchemaProperty
from gamecatalog.models.library import DEFAULT_LIBRARIES, Library
from gamecatalog.utils import read_text

_log = logger.bind(source="Libraries")


def default_libraries() -> list[Library]:
    return [Library(**vars(lib)) for lib in DEFAULT_LIBRARIES]


def parse_library_file(raw: Any, on_error: ErrorHandler | None = None) -> list[Library]:
    parser = SchemaParser(raw, on_error=on_error)
    libraries: list[Library] = []

    def add(item: SchemaProperty, _index: int) -> None:
        libraries.append(
            Library(
                title=item.property("title").as_str(),
                route=item.property("route").as_str(),
                prefix=item.property("prefix", optional=True).as_str(),
                default=item.property("default", optional=True).as_bool(),
            )
        )

    parser.property("libraries").for_each_element(add)
    return libraries


async def load_library_file(path: Path) -> list[Library]:
    """
    Read the library definitions.

    A missing, malformed or empty file gives the default libraries.
    """
    try:
        raw = json.loads(await read_text(path))
    except FileNotFoundError:
        logger.debug(f"No library file at {path}, using defaults")
        return default_libraries()
    except json.JSONDecodeError as e:
        _log.warning(f"{path.name}: not valid JSON ({e}), using default libraries")
        return default_libraries()

    libraries = parse_library_file(raw, on_error=lambda error: _log.warning(f"{path.name}: {error}"))
    if not libraries:
        return default_libraries()
    if sum(1 for lib in libraries if lib.default) > 1:
        _log.warning(f"{path.name}: more than one default library, using the first")
        first = next(lib for lib in libraries if lib.default)
        for lib in libraries:
            lib.default = lib is first
    return libraries


def find_library(libraries: Iterable[Library], route: str) -> Library | None:
    """Library by route; an empty route means the default library."""
    for lib in libraries:
        if (route and lib.route == route) or (not route and lib.default):
            return lib
    return None
