"""Tests for Platform (one platform XML file)."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from gamecatalog.data.launchbox_xml import tree_to_xml, xml_to_tree
from gamecatalog.data.platform import Platform
from gamecatalog.errors import (
    AdditionalApplicationNotFoundError,
    DuplicateRecordError,
    GameNotFoundError,
    OrphanedApplicationError,
    PlatformFileError,
    WriteInProgressError,
)
from gamecatalog.models.game import AdditionalApplicationRecord, GameRecord

FLASH_XML = """<?xml version="1.0" standalone="yes"?>
<LaunchBox>
  <Game>
    <ID>g-1</ID>
    <Title>The Space Game</Title>
    <Platform>Flash</Platform>
    <Hide>false</Hide>
    <StarRating>5</StarRating>
  </Game>
  <Game>
    <ID>g-2</ID>
    <Title>Bubbles</Title>
  </Game>
  <AdditionalApplication>
    <Id>a-1</Id>
    <GameID>g-1</GameID>
    <Name>Soundtrack</Name>
  </AdditionalApplication>
  <Settings>
    <Theme>dark</Theme>
  </Settings>
</LaunchBox>
"""


@pytest.fixture
def flash_file(tmp_path: Path) -> Path:
    path = tmp_path / "Flash.xml"
    path.write_text(FLASH_XML, encoding="utf-8")
    return path


@pytest.fixture
def platform(flash_file: Path) -> Platform:
    return asyncio.run(Platform.load(flash_file))


class TestXml:
    def test_single_game_is_a_list(self) -> None:
        tree = xml_to_tree("<LaunchBox><Game><ID>1</ID><Title/></Game></LaunchBox>")
        assert tree == {"LaunchBox": {"Game": [{"ID": "1", "Title": ""}]}}

    def test_tree_to_xml_requires_one_root(self) -> None:
        with pytest.raises(ValueError):
            tree_to_xml({"a": {}, "b": {}})

    def test_attributes_and_mixed_text_not_kept(self) -> None:
        tree = xml_to_tree('<LaunchBox><Game kind="x">loose<ID>1</ID></Game></LaunchBox>')
        assert tree == {"LaunchBox": {"Game": [{"ID": "1"}]}}

    def test_booleans_written_as_text(self) -> None:
        text = tree_to_xml({"LaunchBox": {"Game": [{"Hide": True}]}})
        assert "<Hide>true</Hide>" in text
        assert text.startswith('<?xml version="1.0" standalone="yes"?>')


class TestLoad:
    def test_load(self, platform: Platform) -> None:
        assert platform.name == "Flash"
        assert [g.id for g in platform.games] == ["g-1", "g-2"]
        assert platform.games[0].filename == "Flash.xml"
        assert platform.additional_applications_of("g-1")[0].name == "Soundtrack"
        assert platform.parse_errors == []

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        platform = asyncio.run(Platform.load(tmp_path / "Nope.xml"))
        assert platform.games == []
        assert platform.filename == "Nope.xml"

    def test_malformed_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "Bad.xml"
        path.write_text("<LaunchBox><Game>", encoding="utf-8")
        with pytest.raises(PlatformFileError):
            asyncio.run(Platform.load(path))

    def test_wrong_root_raises_and_file_is_untouched(self, tmp_path: Path) -> None:
        path = tmp_path / "Flash.xml"
        text = "<Flash><Game><ID>1</ID><Title>T</Title></Game></Flash>"
        path.write_text(text, encoding="utf-8")
        with pytest.raises(PlatformFileError, match="<Flash>"):
            asyncio.run(Platform.load(path))
        assert path.read_text(encoding="utf-8") == text

    def test_large_file_index(self) -> None:
        count = 20_000
        games = [{"ID": f"g{i}", "Title": f"Game {i}"} for i in range(count)]
        games.append({"ID": "g7", "Title": "Repeat"})
        apps = [{"Id": f"a{i}", "GameID": f"g{i}"} for i in range(0, count, 2)]
        platform = Platform.from_tree("Big.xml", {"LaunchBox": {"Game": games, "AdditionalApplication": apps}})
        assert len(platform.games) == count
        assert platform.find_game("g7").title == "Game 7"
        assert platform.find_game(f"g{count - 1}").title == f"Game {count - 1}"
        assert platform.find_additional_application("a10").game_id == "g10"
        titles = [g["Title"] for g in platform.serialize()["LaunchBox"]["Game"]]
        assert titles[-1] == "Repeat"

    def test_parse_errors_collected(self) -> None:
        tree = {"LaunchBox": {"Game": [{"ID": "1"}, {"ID": "2", "Title": "T", "Hide": "perhaps"}]}}
        platform = Platform.from_tree("X.xml", tree)
        assert [e.path_string for e in platform.parse_errors] == [
            "LaunchBox.Game[0].Title",
            "LaunchBox.Game[1].Hide",
        ]
        assert len(platform.games) == 2

    def test_record_without_id_is_kept_but_not_indexed(self) -> None:
        tree = {"LaunchBox": {"Game": [{"Title": "No id"}, {"ID": "1", "Title": "T"}]}}
        platform = Platform.from_tree("X.xml", tree)
        assert [g.id for g in platform.games] == ["1"]
        titles = [g["Title"] for g in platform.serialize()["LaunchBox"]["Game"]]
        assert titles == ["T", "No id"]

    def test_orphan_is_loaded_and_serialize_refuses(self) -> None:
        tree = {
            "LaunchBox": {
                "Game": [{"ID": "g", "Title": "G"}],
                "AdditionalApplication": [{"Id": "a", "GameID": "missing"}],
            }
        }
        platform = Platform.from_tree("X.xml", tree)
        assert [a.id for a in platform.orphaned_additional_applications()] == ["a"]
        with pytest.raises(OrphanedApplicationError) as info:
            platform.serialize()
        assert info.value.orphans == [("a", "missing")]


class TestMutations:
    def test_add_game_keeps_raw_in_lockstep(self, platform: Platform) -> None:
        platform.add_game(GameRecord(id="g-3", title="New"))
        assert platform.find_raw_game("g-3")["Title"] == "New"
        assert platform.find_game("g-3").filename == "Flash.xml"
        games = platform.serialize()["LaunchBox"]["Game"]
        assert [g["ID"] for g in games] == ["g-1", "g-2", "g-3"]

    def test_add_duplicate_game(self, platform: Platform) -> None:
        with pytest.raises(DuplicateRecordError):
            platform.add_game(GameRecord(id="g-1"))

    def test_update_game_preserves_unknown_fields(self, platform: Platform) -> None:
        game = platform.find_game("g-1").duplicate()
        game.title = "Renamed"
        platform.update_game(game)
        raw = platform.find_raw_game("g-1")
        assert raw["Title"] == "Renamed"
        assert raw["StarRating"] == "5"

    def test_order_title_follows_title(self, platform: Platform) -> None:
        added = platform.add_game(GameRecord(id="g-3", title="The Zoo"))
        assert added.order_title == "zoo"
        game = platform.find_game("g-1").duplicate()
        game.title = "A Better Name"
        platform.update_game(game)
        assert platform.find_game("g-1").order_title == "better name"

    def test_lookups_after_remove(self, platform: Platform) -> None:
        platform.add_game(GameRecord(id="g-3", title="Three"))
        platform.add_additional_application(AdditionalApplicationRecord(id="a-2", game_id="g-3"))
        platform.remove_game("g-1")
        assert platform.find_game("g-1") is None
        assert platform.find_game("g-2").title == "Bubbles"
        assert platform.find_game("g-3").title == "Three"
        assert platform.find_raw_game("g-3")["Title"] == "Three"
        assert platform.find_additional_application("a-1") is None
        assert platform.find_raw_additional_application("a-2")["GameID"] == "g-3"
        platform.add_game(GameRecord(id="g-1", title="Back"))
        assert platform.find_game("g-1").title == "Back"

    def test_update_missing_game(self, platform: Platform) -> None:
        with pytest.raises(GameNotFoundError):
            platform.update_game(GameRecord(id="nope"))

    def test_remove_game_removes_its_add_apps(self, platform: Platform) -> None:
        platform.remove_game("g-1")
        assert platform.find_game("g-1") is None
        assert platform.additional_applications == []
        assert platform.serialize()["LaunchBox"]["AdditionalApplication"] == []

    def test_add_app_needs_parent(self, platform: Platform) -> None:
        with pytest.raises(GameNotFoundError):
            platform.add_additional_application(AdditionalApplicationRecord(id="a-2", game_id="nope"))

    def test_add_app_round_trip(self, platform: Platform) -> None:
        platform.add_additional_application(
            AdditionalApplicationRecord(id="a-2", game_id="g-2", name="Manual", wait_for_exit=True)
        )
        raw = platform.find_raw_additional_application("a-2")
        assert raw["GameID"] == "g-2"
        assert raw["WaitForExit"] == "true"

    def test_remove_missing_add_app(self, platform: Platform) -> None:
        with pytest.raises(AdditionalApplicationNotFoundError):
            platform.remove_additional_application("nope")


class TestSave:
    def test_save_cycle_keeps_unknown_data(self, platform: Platform, flash_file: Path) -> None:
        assert asyncio.run(platform.save())
        reloaded = asyncio.run(Platform.load(flash_file))
        body = reloaded.serialize()["LaunchBox"]
        assert body["Game"][0]["StarRating"] == "5"
        assert body["Settings"] == [{"Theme": "dark"}]
        assert list(body) == ["Game", "AdditionalApplication", "Settings"]
        assert [g.title for g in reloaded.games] == ["The Space Game", "Bubbles"]

    def test_save_to_folder(self, tmp_path: Path) -> None:
        platform = Platform("New.xml")
        platform.add_game(GameRecord(id="1", title="One"))
        out = tmp_path / "out"
        assert asyncio.run(platform.save(out))
        assert platform.path == out / "New.xml"
        reloaded = asyncio.run(Platform.load(out / "New.xml"))
        assert reloaded.find_game("1").title == "One"

    def test_concurrent_save_rejected(self, platform: Platform) -> None:
        async def save_twice():
            return await asyncio.gather(platform.save(), platform.save(), return_exceptions=True)

        results = asyncio.run(save_twice())
        assert results.count(True) == 1
        assert sum(isinstance(r, WriteInProgressError) for r in results) == 1
