"""Tests for the diagnostics log sink."""

from __future__ import annotations

import pytest
from loguru import logger

from gamecatalog.data.platform import Platform
from gamecatalog.logger import DiagnosticsLog, LogEntry


@pytest.fixture
def diagnostics():
    log = DiagnosticsLog()
    log.attach()
    yield log
    log.detach()


class TestDiagnosticsLog:
    def test_collects_warnings_with_source(self, diagnostics: DiagnosticsLog) -> None:
        logger.bind(source="Playlists").warning("bad file")
        logger.bind(source="Playlists").info("loaded")
        logger.warning("no source")
        assert diagnostics.entries == [LogEntry("Playlists", "WARNING", "bad file")]
        assert str(diagnostics.entries[0]) == "[Playlists] bad file"

    def test_for_source_and_clear(self, diagnostics: DiagnosticsLog) -> None:
        logger.bind(source="Images").error("unreadable")
        logger.bind(source="Catalog").warning("conflict")
        assert [e.message for e in diagnostics.for_source("Images")] == ["unreadable"]
        assert len(diagnostics) == 2
        diagnostics.clear()
        assert len(diagnostics) == 0

    def test_detach_stops_collecting(self, diagnostics: DiagnosticsLog) -> None:
        diagnostics.detach()
        logger.bind(source="Catalog").warning("ignored")
        assert diagnostics.entries == []

    def test_platform_problems_are_reported(self, diagnostics: DiagnosticsLog) -> None:
        tree = {
            "LaunchBox": {
                "Game": [{"ID": "g"}],
                "AdditionalApplication": [{"Id": "a", "GameID": "other"}],
            }
        }
        Platform.from_tree("Flash.xml", tree)
        messages = [e.message for e in diagnostics.for_source("Platform")]
        assert messages == [
            'Flash.xml: Property "Title" was not found. (path: "LaunchBox.Game[0].Title")',
            "Flash.xml: additional application 'a' references missing game 'other'",
        ]
