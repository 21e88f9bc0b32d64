"""Tests for raw ⇄ typed record conversion."""

from __future__ import annotations

import pytest

from gamecatalog.core.record_codec import (
    create_playlist,
    empty_raw_game,
    generate_order_title,
    new_game,
    parse_additional_application,
    parse_game,
    parse_playlist,
    reverse_parse_additional_application,
    reverse_parse_game,
    reverse_parse_playlist,
)
from gamecatalog.core.schema_parser import ParseError
from gamecatalog.models.playlist import PlaylistEntry, PlaylistRecord


@pytest.fixture
def raw_game() -> dict:
    return {
        "ID": "g-1",
        "Title": "The Space Game",
        "Developer": "Someone",
        "Platform": "Flash",
        "Hide": "true",
        "Broken": "false",
        "CustomField": "kept elsewhere",
    }


class TestOrderTitle:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("The Space Game", "space game"),
            ("A  Quiet   Place", "quiet place"),
            ("An Apple", "apple"),
            ("Theatre", "theatre"),
            ("The", "the"),
            ("  Zed ", "zed"),
        ],
    )
    def test_generate(self, title: str, expected: str) -> None:
        assert generate_order_title(title) == expected

    def test_custom_prefixes(self) -> None:
        assert generate_order_title("Le Jeu", ["le"]) == "jeu"
        assert generate_order_title("The Game", []) == "the game"


class TestGame:
    def test_parse(self, raw_game: dict) -> None:
        game = parse_game(raw_game, filename="Flash.xml")
        assert game.id == "g-1"
        assert game.title == "The Space Game"
        assert game.developer == "Someone"
        assert game.extreme is True
        assert game.broken is False
        assert game.order_title == "space game"
        assert game.filename == "Flash.xml"

    def test_missing_required_fields(self) -> None:
        errors: list[ParseError] = []
        game = parse_game({"Developer": "x"}, on_error=errors.append)
        assert game.id == "" and game.title == ""
        assert sorted(e.path_string for e in errors) == ["ID", "Title"]

    def test_missing_optional_fields_are_silent(self) -> None:
        errors: list[ParseError] = []
        parse_game({"ID": "1", "Title": "T"}, on_error=errors.append)
        assert errors == []

    def test_reverse_covers_known_fields(self, raw_game: dict) -> None:
        raw = reverse_parse_game(parse_game(raw_game))
        assert raw["ID"] == "g-1"
        assert raw["Hide"] == "true"
        assert raw["Broken"] == "false"
        assert "CustomField" not in raw
        assert set(raw) == set(empty_raw_game())

    def test_reverse_then_parse(self, raw_game: dict) -> None:
        game = parse_game(raw_game)
        assert parse_game(reverse_parse_game(game)) == game.duplicate()

    def test_new_game(self) -> None:
        a, b = new_game(), new_game()
        assert a.id and a.id != b.id
        assert a.date_added


class TestAdditionalApplication:
    def test_parse_and_reverse(self) -> None:
        raw = {"Id": "a-1", "GameID": "g-1", "Name": "Extras", "WaitForExit": "true"}
        app = parse_additional_application(raw)
        assert app.game_id == "g-1"
        assert app.wait_for_exit is True
        assert app.auto_run_before is False
        back = reverse_parse_additional_application(app)
        assert back["Id"] == "a-1"
        assert back["WaitForExit"] == "true"

    def test_missing_parent_reported(self) -> None:
        errors: list[ParseError] = []
        parse_additional_application({"Id": "a-1"}, on_error=errors.append)
        assert [e.path_string for e in errors] == ["GameID"]


class TestPlaylist:
    def test_parse(self) -> None:
        raw = {
            "id": "p-1",
            "title": "Favourites",
            "description": "",
            "author": "me",
            "library": "theatre",
            "games": [{"id": "g-1", "notes": "best"}, {"id": "g-2", "notes": ""}],
        }
        playlist = parse_playlist(raw)
        assert playlist.icon is None
        assert playlist.library == "theatre"
        assert playlist.game_ids == ["g-1", "g-2"]
        assert playlist.games[0].notes == "best"

    def test_entry_errors_carry_index(self) -> None:
        errors: list[ParseError] = []
        raw = {"id": "p", "title": "", "description": "", "author": "", "games": [{"id": "g"}, {"notes": ""}]}
        parse_playlist(raw, on_error=errors.append)
        assert [e.path_string for e in errors] == ["games[0].notes", "games[1].id"]

    def test_reverse_omits_unset_optionals(self) -> None:
        playlist = PlaylistRecord(id="p", title="T", games=[PlaylistEntry("g", "n")])
        raw = reverse_parse_playlist(playlist)
        assert "icon" not in raw and "library" not in raw
        assert raw["games"] == [{"id": "g", "notes": "n"}]

    def test_create_playlist(self) -> None:
        playlist = create_playlist()
        assert playlist.id
        assert playlist.games == []
        assert playlist.library is None
