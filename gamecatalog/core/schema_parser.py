"""Path-tracking parser for loosely typed trees (decoded JSON / XML).

Every accessor returns a child wrapper that remembers how it was reached, so
an error deep inside a file can be reported as ``games[3].title``. Nothing
in here raises for malformed input: problems are handed to the ``on_error``
callback and the affected value falls back to a default.

Usage::

    errors: list[ParseError] = []
    parser = SchemaParser(data, on_error=errors.append)
    title = parser.property("title").as_str()
    parser.property("games").for_each_element(lambda item, i: ...)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union

# A decoded file: nested dicts / lists / scalars
RawTree = Union[dict[str, Any], list[Any], str, int, float, bool, None]

PathPart = Union[str, int]
ErrorHandler = Callable[["ParseError"], None]

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def path_to_string(path: tuple[PathPart, ...]) -> str:
    """('games', 3, 'title') → 'games[3].title'"""
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        elif out:
            out += f".{part}"
        else:
            out = part
    return out


@dataclass(frozen=True)
class ParseError:
    """A structural problem found while parsing, with its full access path."""

    path: tuple[PathPart, ...]
    message: str

    @property
    def path_string(self) -> str:
        return path_to_string(self.path)

    def __str__(self) -> str:
        return f'{self.message} (path: "{self.path_string}")'


# ── Scalar coercion ──


def to_str(value: Any) -> str:
    """Coerce a scalar to str. ``None`` → ``""``. Containers raise TypeError."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to str")


def to_bool(value: Any) -> bool:
    """Coerce bools, numbers and 'true'/'false'-style strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS or lowered == "":
            return False
    raise ValueError(f"Cannot convert {value!r} to bool")


def to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"Cannot convert {value!r} to int")


class _Context:
    """Error sink shared by a parser and every child it creates."""

    def __init__(self, on_error: ErrorHandler | None) -> None:
        self.on_error = on_error
        self.errors: list[ParseError] = []

    def report(self, path: tuple[PathPart, ...], message: str) -> None:
        error = ParseError(path, message)
        self.errors.append(error)
        if self.on_error is not None:
            self.on_error(error)


class SchemaProperty:
    """A value inside the parsed tree, plus the path used to reach it."""

    def __init__(
        self,
        value: Any,
        context: _Context,
        path: tuple[PathPart, ...],
        missing: bool = False,
    ) -> None:
        self._value = value
        self._context = context
        self._path = path
        # A missing property has already been reported (or was optional)
        self._missing = missing

    @property
    def value(self) -> Any:
        return self._value

    @property
    def path(self) -> tuple[PathPart, ...]:
        return self._path

    @property
    def path_string(self) -> str:
        return path_to_string(self._path)

    @property
    def exists(self) -> bool:
        return not self._missing

    def _report(self, message: str, path: tuple[PathPart, ...] | None = None) -> None:
        self._context.report(self._path if path is None else path, message)

    # ── Navigation ──

    def property(
        self,
        name: str,
        handler: Callable[[Any], None] | None = None,
        optional: bool = False,
    ) -> SchemaProperty:
        """
        Get a named field of this object.

        *handler* is called with the raw value when the field exists. A missing
        field is reported (unless *optional*) and yields an empty child.
        """
        child_path = self._path + (name,)
        container = self._value
        if isinstance(container, dict) and name in container:
            raw = container[name]
            if handler is not None:
                handler(raw)
            return SchemaProperty(raw, self._context, child_path)
        if not optional and not self._missing:
            self._report(f'Property "{name}" was not found.', child_path)
        return SchemaProperty(None, self._context, child_path, missing=True)

    def for_each_property(self, handler: Callable[[SchemaProperty, str], None]) -> SchemaProperty:
        """Call *handler(item, label)* for every field of this (non-array) object."""
        if self._missing:
            return self
        if isinstance(self._value, dict):
            for label, item in list(self._value.items()):
                handler(SchemaProperty(item, self._context, self._path + (label,)), label)
        else:
            self._report("Property is not a non-array object.")
        return self

    def for_each_property_raw(self, handler: Callable[[Any, str], None]) -> SchemaProperty:
        if self._missing:
            return self
        if isinstance(self._value, dict):
            for label, item in list(self._value.items()):
                handler(item, label)
        else:
            self._report("Property is not a non-array object.")
        return self

    def for_each_element(self, handler: Callable[[SchemaProperty, int], None]) -> SchemaProperty:
        """Call *handler(item, index)* for every element of this array."""
        if self._missing:
            return self
        if isinstance(self._value, list):
            for index, item in enumerate(list(self._value)):
                handler(SchemaProperty(item, self._context, self._path + (index,)), index)
        else:
            self._report("Property is not an array.")
        return self

    def for_each_element_raw(self, handler: Callable[[Any, int], None]) -> SchemaProperty:
        if self._missing:
            return self
        if isinstance(self._value, list):
            for index, item in enumerate(list(self._value)):
                handler(item, index)
        else:
            self._report("Property is not an array.")
        return self

    # ── Typed reads ──

    def as_str(self, default: str = "") -> str:
        if self._missing or self._value is None:
            return default
        try:
            return to_str(self._value)
        except TypeError:
            self._report("Property is not a string.")
            return default

    def as_bool(self, default: bool = False) -> bool:
        if self._missing or self._value is None:
            return default
        try:
            return to_bool(self._value)
        except ValueError:
            self._report("Property is not a boolean.")
            return default

    def as_int(self, default: int = 0) -> int:
        if self._missing or self._value is None:
            return default
        try:
            return to_int(self._value)
        except ValueError:
            self._report("Property is not an integer.")
            return default

    def as_optional_str(self) -> str | None:
        """Like ``as_str`` but keeps "absent" distinguishable from ``""``."""
        if self._missing or self._value is None:
            return None
        return self.as_str()

    def as_str_list(self) -> list[str]:
        """Array of scalars → list of str (bad elements are reported and skipped)."""
        out: list[str] = []

        def add(item: SchemaProperty, _index: int) -> None:
            if item.value is None or isinstance(item.value, (dict, list)):
                item._report("Property is not a string.")
                return
            out.append(item.as_str())

        self.for_each_element(add)
        return out


class SchemaParser(SchemaProperty):
    """Root of a parse. Collects every error in ``errors`` and forwards it to *on_error*."""

    def __init__(self, value: RawTree, on_error: ErrorHandler | None = None) -> None:
        super().__init__(value, _Context(on_error), ())

    @property
    def errors(self) -> list[ParseError]:
        return list(self._context.errors)
