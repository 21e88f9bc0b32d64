"""Game and additional-application models."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass
class GameRecord:
    """One launchable game entry, owned by exactly one platform file."""

    id: str = ""
    title: str = ""
    alternate_titles: str = ""
    series: str = ""
    developer: str = ""
    publisher: str = ""
    platform: str = ""  # platform name as written in the record, e.g. "Flash"
    date_added: str = ""
    date_modified: str = ""
    play_mode: str = ""
    status: str = ""
    notes: str = ""
    genre: str = ""
    source: str = ""
    application_path: str = ""
    launch_command: str = ""
    release_date: str = ""
    version: str = ""
    original_description: str = ""
    language: str = ""
    extreme: bool = False
    broken: bool = False
    # Derived, not read from the raw record
    order_title: str = ""
    filename: str = ""  # owning platform file, e.g. "Flash.xml"

    def duplicate(self) -> GameRecord:
        return replace(self)


@dataclass
class AdditionalApplicationRecord:
    """Secondary launch entry tied to a parent game by id."""

    id: str = ""
    game_id: str = ""
    application_path: str = ""
    auto_run_before: bool = False
    launch_command: str = ""
    name: str = ""
    wait_for_exit: bool = False

    def duplicate(self) -> AdditionalApplicationRecord:
        return replace(self)
