"""Loguru-based logging setup and the diagnostics sink."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger


def setup_logger(log_dir: Path | None = None) -> None:
    """Configure loguru with console + rotating file output."""
    logger.remove()

    # Console
    logger.add(
        sys.stderr,
        level="INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | {message}",
        colorize=True,
    )

    # File
    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "game-catalog.log"),
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {extra[source]} | {name}:{line} | {message}",
            rotation="5 MB",
            retention="7 days",
            encoding="utf-8",
        )

    logger.configure(extra={"source": "-"})


@dataclass(frozen=True)
class LogEntry:
    """One user-visible diagnostic."""

    source: str
    level: str
    message: str

    def __str__(self) -> str:
        return f"[{self.source}] {self.message}"


class DiagnosticsLog:
    """
    Collects recoverable errors for user-visible diagnostics.

    Components report problems with ``logger.bind(source="Platform").warning(...)``;
    every WARNING-or-higher record that carries a ``source`` ends up here as a
    ``LogEntry``.
    """

    def __init__(self, level: str = "WARNING") -> None:
        self._level = level
        self._entries: list[LogEntry] = []
        self._handler_id: int | None = None

    def attach(self) -> None:
        if self._handler_id is not None:
            return
        self._handler_id = logger.add(
            self._write,
            level=self._level,
            format="{message}",
            filter=self._has_source,
        )

    def detach(self) -> None:
        if self._handler_id is None:
            return
        logger.remove(self._handler_id)
        self._handler_id = None

    @staticmethod
    def _has_source(record: dict[str, Any]) -> bool:
        source = record["extra"].get("source")
        return bool(source) and source != "-"

    def _write(self, message: Any) -> None:
        record = message.record
        self._entries.append(
            LogEntry(
                source=record["extra"]["source"],
                level=record["level"].name,
                message=record["message"],
            )
        )

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def for_source(self, source: str) -> list[LogEntry]:
        return [e for e in self._entries if e.source == source]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
