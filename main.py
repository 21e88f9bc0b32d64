"""Application entry point — wires services and runs a catalog command.

Usage:
    python main.py [--config-dir DIR] [--root DIR] <command> [options]

Commands:
    stats                      platform / game / playlist counts
    search [TEXT]              filtered, ordered game list
    playlists                  playlists visible in the current library
    validate                   load everything and list the problems found
    prefs [options]            show or change saved preferences

Examples:
    python main.py --root "D:/Flashpoint" stats
    python main.py search "space" --order-by dateAdded --descending
    python main.py search --playlist 5e1c0f6a-... --library theatre
    python main.py prefs --order-by developer --show-extreme
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

from loguru import logger

from gamecatalog.config import Config, get_config
from gamecatalog.context import AppContext
from gamecatalog.core.game_filter import OrderBy, OrderDirection, OrderGamesArgs, order_games
from gamecatalog.core.image_cache import GameImageCollection
from gamecatalog.data.catalog import CatalogCollection
from gamecatalog.data.library_file import find_library, load_library_file
from gamecatalog.data.playlist_store import PlaylistStore
from gamecatalog.logger import DiagnosticsLog, setup_logger


async def create_context(config: Config | None = None) -> AppContext:
    """Wire all services, load the catalog and return an AppContext."""
    config = config or get_config()

    # Logger
    setup_logger(config.config_dir / "logs")
    diagnostics = DiagnosticsLog()
    diagnostics.attach()

    # Services
    catalog = CatalogCollection(config.platform_folder, prefixes=config.order_title_prefixes)
    playlists = PlaylistStore(config.playlist_folder)
    images = GameImageCollection(
        config.image_folder,
        thumbnail_folder=config.thumbnail_folder,
        screenshot_folder=config.screenshot_folder,
    )

    # Data (independent files, loaded concurrently)
    report, _, libraries = await asyncio.gather(
        catalog.load_platforms(),
        playlists.load_all(),
        load_library_file(config.library_path),
    )
    await images.add_folders(p.name for p in catalog.list_platforms())

    return AppContext(
        config=config,
        diagnostics=diagnostics,
        catalog=catalog,
        playlists=playlists,
        images=images,
        libraries=libraries,
        load_report=report,
    )


# ── Commands ──


def _library_of(ctx: AppContext, route: str | None):
    if route is None:
        return ctx.current_library
    library = find_library(ctx.libraries, route)
    if library is None:
        raise SystemExit(f"Error: unknown library '{route}'")
    return library


def cmd_stats(ctx: AppContext, args: argparse.Namespace) -> int:
    catalog = ctx.catalog
    add_apps = sum(len(p.additional_applications) for p in catalog.list_platforms())
    print(f"Platforms:     {len(catalog.list_platforms())}")
    print(f"Games:         {catalog.count}")
    print(f"Add. apps:     {add_apps}")
    print(f"Playlists:     {len(ctx.playlists.playlists)}")
    print(f"Libraries:     {', '.join(lib.title for lib in ctx.libraries)}")
    print(f"Id conflicts:  {len(catalog.conflicts)}")
    print(f"Problems:      {len(ctx.diagnostics)}")
    for library in ctx.libraries:
        games = catalog.games_for_library(library, ctx.libraries)
        print(f"  {library.title}: {len(games)} game(s)")
    return 0


def cmd_search(ctx: AppContext, args: argparse.Namespace) -> int:
    library = _library_of(ctx, args.library)
    games = ctx.catalog.games_for_library(library, ctx.libraries) if library else ctx.catalog.games

    playlist = None
    playlist_id = args.playlist if args.playlist is not None else ctx.config.selected_playlist
    if playlist_id:
        playlist = ctx.playlists.get(playlist_id)
        if playlist is None:
            print(f"Error: playlist not found: {playlist_id}")
            return 1

    order_args = OrderGamesArgs.from_config(ctx.config, games, search=args.text, playlist=playlist)
    overrides = {}
    if args.order_by:
        overrides["order_by"] = OrderBy(args.order_by)
    if args.descending:
        overrides["order_direction"] = OrderDirection.DESCENDING
    if args.extreme:
        overrides["extreme"] = True
    if args.broken:
        overrides["broken"] = True
    if overrides:
        order_args = dataclasses.replace(order_args, **overrides)

    ordered = order_games(order_args)
    for game in ordered[: args.limit] if args.limit else ordered:
        thumbnail = ctx.images.get_thumbnail_path(game)
        marker = "*" if thumbnail else " "
        print(f"{marker} {game.title}  [{game.platform or game.filename}]")
    print(f"{len(ordered)} game(s)")
    return 0


def cmd_playlists(ctx: AppContext, args: argparse.Namespace) -> int:
    library = _library_of(ctx, args.library)
    for playlist in ctx.playlists.playlists_for_library(library):
        resolved = sum(1 for gid in playlist.game_ids if ctx.catalog.find_game_by_id(gid))
        print(f"{playlist.title}  ({resolved}/{len(playlist.games)} game(s))  {playlist.id}")
    return 0


def cmd_validate(ctx: AppContext, args: argparse.Namespace) -> int:
    report = ctx.load_report
    if report is not None:
        for filename, error in report.failed.items():
            print(f"[Catalog] {filename}: {error}")
    for entry in ctx.diagnostics.entries:
        print(str(entry))
    problems = len(ctx.diagnostics) + (len(report.failed) if report else 0)
    print(f"{problems} problem(s)")
    return 1 if problems else 0


def cmd_prefs(ctx: AppContext, args: argparse.Namespace) -> int:
    """Show browse preferences and content flags, updating any that were given."""
    config = ctx.config
    with config.batch_update():
        if args.flashpoint_path is not None:
            config.flashpoint_path = args.flashpoint_path
        if args.order_by is not None:
            config.set("preferences.order_by", args.order_by)
        if args.direction is not None:
            config.set("preferences.order_direction", args.direction)
        if args.library is not None:
            config.set("preferences.library_route", args.library)
        if args.playlist is not None:
            config.set("preferences.selected_playlist", args.playlist)
        if args.show_extreme is not None:
            config.show_extreme = args.show_extreme
        if args.show_broken is not None:
            config.show_broken_games = args.show_broken
        if args.disable_extreme is not None:
            config.disable_extreme_games = args.disable_extreme

    print(f"Root:             {config.flashpoint_path}")
    print(f"Order:            {config.order_by} ({config.order_direction})")
    print(f"Library:          {config.library_route or '-'}")
    print(f"Playlist:         {config.selected_playlist or '-'}")
    print(f"Show extreme:     {config.show_extreme}")
    print(f"Show broken:      {config.show_broken_games}")
    print(f"Extreme disabled: {config.disable_extreme_games}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse and check a game catalog.")
    parser.add_argument("--config-dir", help="Folder holding config.json and logs")
    parser.add_argument("--root", help="Catalog root folder (overrides the configured one)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Show catalog counts").set_defaults(func=cmd_stats)

    search = sub.add_parser("search", help="List games, filtered and ordered")
    search.add_argument("text", nargs="?", default="", help="Search text (title / alternate titles)")
    search.add_argument("--library", help="Library route (default: configured library)")
    search.add_argument("--playlist", help="Playlist id; the playlist's own order is kept")
    search.add_argument("--order-by", choices=[o.value for o in OrderBy])
    search.add_argument("--descending", action="store_true")
    search.add_argument("--extreme", action="store_true", help="Include extreme games")
    search.add_argument("--broken", action="store_true", help="Include broken games")
    search.add_argument("--limit", type=int, default=0)
    search.set_defaults(func=cmd_search)

    playlists = sub.add_parser("playlists", help="List playlists of a library")
    playlists.add_argument("--library", help="Library route (default: configured library)")
    playlists.set_defaults(func=cmd_playlists)

    sub.add_parser("validate", help="Report problems found while loading").set_defaults(func=cmd_validate)

    prefs = sub.add_parser("prefs", help="Show or change saved preferences")
    prefs.add_argument("--flashpoint-path", help="Catalog root folder to save")
    prefs.add_argument("--order-by", choices=[o.value for o in OrderBy])
    prefs.add_argument("--direction", choices=[d.value for d in OrderDirection])
    prefs.add_argument("--library", help="Library route to open by default")
    prefs.add_argument("--playlist", help="Playlist id to select by default ('' clears it)")
    prefs.add_argument("--show-extreme", action=argparse.BooleanOptionalAction, default=None)
    prefs.add_argument("--show-broken", action=argparse.BooleanOptionalAction, default=None)
    prefs.add_argument("--disable-extreme", action=argparse.BooleanOptionalAction, default=None)
    prefs.set_defaults(func=cmd_prefs)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = Config(Path(args.config_dir)) if args.config_dir else get_config()
    if args.root:
        config.set("flashpoint_path", args.root, persist=False)

    ctx = asyncio.run(create_context(config))
    try:
        return args.func(ctx, args)
    finally:
        ctx.diagnostics.detach()
        logger.debug(f"Command '{args.command}' finished")


if __name__ == "__main__":
    sys.exit(main())
