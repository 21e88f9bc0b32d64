"""Background service descriptor models (services.json)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BackProcessInfo:
    """How to start one auxiliary executable."""

    path: str = ""
    filename: str = ""
    arguments: list[str] = field(default_factory=list)
    kill: bool = False


@dataclass
class ServicesFile:
    redirector: BackProcessInfo | None = None
    fiddler: BackProcessInfo | None = None
    server: BackProcessInfo | None = None
    start: list[BackProcessInfo] = field(default_factory=list)
    stop: list[BackProcessInfo] = field(default_factory=list)
