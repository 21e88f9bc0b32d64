"""services.json — auxiliary processes started alongside the launcher."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from gamecatalog.core.schema_parser import ParseError, SchemaParser, SchemaProperty
from gamecatalog.models.services import BackProcessInfo, ServicesFile
from gamecatalog.utils import read_text

SERVICES_FILENAME = "services.json"

_log = logger.bind(source="Services")


def _parse_process(item: SchemaProperty) -> BackProcessInfo:
    return BackProcessInfo(
        path=item.property("path").as_str(),
        filename=item.property("filename").as_str(),
        arguments=item.property("arguments").as_str_list(),
        kill=item.property("kill", optional=True).as_bool(),
    )


def _parse_optional_process(parser: SchemaProperty, name: str) -> BackProcessInfo | None:
    item = parser.property(name, optional=True)
    return _parse_process(item) if item.exists else None


def parse_services_file(
    raw: Any, on_error: Callable[[str], None] | None = None
) -> ServicesFile:
    """Parse the decoded JSON. Problems are passed to *on_error* as text."""

    def report(error: ParseError) -> None:
        if on_error is not None:
            on_error(f"Error while parsing Services: {error}")

    parser = SchemaParser(raw, on_error=report)
    services = ServicesFile(
        redirector=_parse_optional_process(parser, "redirector"),
        fiddler=_parse_optional_process(parser, "fiddler"),
        server=_parse_optional_process(parser, "server"),
    )
    parser.property("start").for_each_element(lambda item, _i: services.start.append(_parse_process(item)))
    parser.property("stop").for_each_element(lambda item, _i: services.stop.append(_parse_process(item)))
    return services


async def read_services_file(
    folder: Path, on_error: Callable[[str], None] | None = None
) -> ServicesFile:
    """
    Read ``services.json`` from *folder*.

    A missing or malformed file yields an empty ``ServicesFile``. Parse
    problems go to *on_error*, or to the log when none is given.
    """
    path = folder / SERVICES_FILENAME
    if on_error is None:
        on_error = _log.warning
    try:
        raw = json.loads(await read_text(path))
    except FileNotFoundError:
        logger.debug(f"No services file at {path}")
        return ServicesFile()
    except json.JSONDecodeError as e:
        on_error(f"Error while parsing Services: {e}")
        return ServicesFile()
    return parse_services_file(raw, on_error)
