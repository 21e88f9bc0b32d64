"""Library model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Library:
    """
    Named partition of platforms.

    A library with a ``prefix`` claims every platform file whose name starts
    with it; the ``default`` library takes all platforms nobody else claims.
    """

    title: str = ""
    route: str = ""
    prefix: str = ""
    default: bool = False


DEFAULT_LIBRARIES: tuple[Library, ...] = (
    Library(title="Arcade", route="arcade", prefix="", default=True),
    Library(title="Theatre", route="theatre", prefix="Theatre", default=False),
)
