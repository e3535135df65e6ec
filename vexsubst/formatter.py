"""Formatting of substitution results and diagnostics."""

from __future__ import annotations

from types import MappingProxyType
from typing import ClassVar, Mapping

GREEN = "\x1b[32m"  # ok
YELLOW = "\x1b[33m"  # default
ORANGE = "\x1b[38;5;208m"  # empty
MAGENTA = "\x1b[35m"  # unset
RED = "\x1b[91m"  # engine/internal error
PURPLE = "\x1b[95m"  # user error message
GRAY = "\x1b[90m"  # filtered
RESET = "\x1b[0m"


class Formatter:
    """Formats substitution results and diagnostics by category.

    The base class applies no styling; subclasses provide a mapping from
    category to the escape sequence that opens it.
    """

    _styles: ClassVar[Mapping[str, str]] = MappingProxyType({})

    def _style(self, kind: str, s: str) -> str:
        code = self._styles.get(kind)
        if code is None:
            return s
        return f"{code}{s}{RESET}"

    def ok_str(self, s: str) -> str:
        """Format a successful substitution."""
        return self._style("ok", s)

    def default_str(self, s: str) -> str:
        """Format a value that came from a default or fallback."""
        return self._style("default", s)

    def user_error_str(self, s: str) -> str:
        """Format a user-supplied error message."""
        return self._style("user_error", s)

    def filter_str(self, s: str) -> str:
        """Format a variable excluded by the allow lists."""
        return self._style("filter", s)

    def empty_str(self, s: str) -> str:
        """Format an empty variable."""
        return self._style("empty", s)

    def unset_str(self, s: str) -> str:
        """Format an unset variable."""
        return self._style("unset", s)

    def error_str(self, s: str) -> str:
        """Format an engine or internal error."""
        return self._style("error", s)


class PlainFormatter(Formatter):
    """Formatter that returns every string unchanged."""


class ColoredFormatter(Formatter):
    """Formatter that wraps strings in ANSI colour sequences."""

    _styles = MappingProxyType(
        {
            "ok": GREEN,
            "default": YELLOW,
            "user_error": PURPLE,
            "filter": GRAY,
            "empty": ORANGE,
            "unset": MAGENTA,
            "error": RED,
        }
    )


def new_formatter(colored: bool) -> Formatter:
    """Return a coloured formatter if ``colored`` is true, else a plain one."""
    return ColoredFormatter() if colored else PlainFormatter()