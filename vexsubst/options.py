"""Command-line options and their parser."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class FlagError(Exception):
    """Raised when the command line cannot be parsed."""


class HelpRequested(Exception):
    """Raised when help was asked for; the message is the help text."""


class VersionRequested(Exception):
    """Raised when the version was asked for; the message is the version."""


@dataclass
class Options:
    """All parsed command-line options."""

    in_place: bool = False
    backup_ext: str = ""
    no_ops: bool = False
    no_escape: bool = False
    error_empty: bool = False
    error_unset: bool = False
    strict: bool = False
    keep_unset: bool = False
    keep_empty: bool = False
    keep_vars: bool = False
    prefix: list[str] = field(default_factory=list)
    suffix: list[str] = field(default_factory=list)
    variables: list[str] = field(default_factory=list)
    colored: bool = False
    vars_files: list[str] = field(default_factory=list)
    positional: list[str] = field(default_factory=list)


class _Kind(Enum):
    BOOL = "bool"
    STRING = "string"
    SLICE = "slice"


@dataclass(frozen=True)
class _Flag:
    name: str
    help: str
    kind: _Kind = _Kind.BOOL
    short: str | None = None
    placeholder: str | None = None
    group: str | None = None
    requires: str | None = None

    @property
    def label(self) -> str:
        head = f"-{self.short}, --{self.name}" if self.short else f"    --{self.name}"
        if self.kind is _Kind.STRING:
            return f"{head} {self.placeholder or self.name.upper()}"
        if self.kind is _Kind.SLICE:
            return f"{head} {self.placeholder or self.name.upper() + '...'}"
        return head

    @property
    def description(self) -> str:
        text = self.help
        if self.group:
            text += f" [Group: {self.group} (One Of)]"
        if self.requires:
            text += f" (Requires: {self.requires})"
        return text


_FLAGS: tuple[_Flag, ...] = (
    _Flag("in-place", "edit files in place; with no files, stdin->stdout", short="i", group="mode"),
    _Flag(
        "backup",
        "when -i, create a backup with this extension (e.g. .bak)",
        _Kind.STRING,
        short="b",
        requires="in-place",
    ),
    _Flag("no-ops", "treat operator forms as literals (envsubst-compatible mode)"),
    _Flag("literal-dollar", "treat \\$ as two bytes (disable dollar-escape)", short="l"),
    _Flag("strict", "exit on unset or empty (equivalent to --error-unset --error-empty)", short="x"),
    _Flag("error-unset", "error if a variable is unset", short="u"),
    _Flag("error-empty", "error if a substitution resolves to empty", short="e"),
    _Flag("keep-vars", "leave all ${VAR} literals (implies --keep-unset --keep-empty)", short="K"),
    _Flag("keep-unset", "leave ${VAR} literal if unset", short="U"),
    _Flag("keep-empty", "leave ${VAR} literal if empty", short="E"),
    _Flag("prefix", "only replace variables that match any of these prefixes", _Kind.SLICE, short="p"),
    _Flag("suffix", "only replace variables that match any of these suffixes", _Kind.SLICE, short="s"),
    _Flag("variable", "only replace variables with these exact names", _Kind.SLICE, short="v"),
    _Flag("colored", "colorize formatter (content and diagnostics)", short="c", group="mode"),
    _Flag(
        "extra-vars",
        "read variables from file (can be repeated)",
        _Kind.SLICE,
        short="e",
        placeholder="PATH...",
    ),
    _Flag("help", "show help", short="h"),
    _Flag("version", "show version"),
)

_LONG = {f.name: f for f in _FLAGS}
# Later registrations win when a short name is reused.
_SHORT = {f.short: f for f in _FLAGS if f.short}

_TRUE = {"1", "t", "true", "yes"}
_FALSE = {"0", "f", "false", "no"}


def help_text() -> str:
    """Return the usage text listing every flag."""
    width = max(len(f.label) for f in _FLAGS) + 2
    lines = ["Usage: vex [flags]", "Flags:"]
    lines.extend(f"    {f.label.ljust(width)}{f.description}" for f in _FLAGS)
    return "\n".join(lines) + "\n"


class _Parser:
    def __init__(self, args: Iterable[str], version: str) -> None:
        self.pending = deque(args)
        self.version = version
        self.values: dict[str, object] = {}
        self.positional: list[str] = []

    def run(self) -> None:
        while self.pending:
            arg = self.pending.popleft()
            if arg == "--":
                break
            if arg.startswith("--"):
                name, eq, inline = arg[2:].partition("=")
                flag = _LONG.get(name)
                if flag is None:
                    raise FlagError(f"unknown flag: --{name}")
                self.apply(flag, inline if eq else None, f"--{name}")
            elif arg.startswith("-") and arg != "-":
                self.short_cluster(arg[1:])
            else:
                self.positional.append(arg)
                break
        self.positional.extend(self.pending)
        self.pending.clear()

    def short_cluster(self, cluster: str) -> None:
        while cluster:
            ch, cluster = cluster[0], cluster[1:]
            flag = _SHORT.get(ch)
            if flag is None:
                raise FlagError(f"unknown shorthand flag: -{ch}")
            if flag.kind is _Kind.BOOL:
                if cluster.startswith("="):
                    self.apply(flag, cluster[1:], f"-{ch}")
                    return
                self.apply(flag, None, f"-{ch}")
                continue
            inline = cluster.removeprefix("=") if cluster else None
            self.apply(flag, inline, f"-{ch}")
            return

    def apply(self, flag: _Flag, inline: str | None, spelled: str) -> None:
        if flag.name == "help":
            raise HelpRequested(help_text())
        if flag.name == "version":
            raise VersionRequested(self.version)
        if flag.kind is _Kind.BOOL:
            self.values[flag.name] = True if inline is None else _parse_bool(inline, spelled)
            return
        if inline is None:
            if not self.pending:
                raise FlagError(f"flag needs an argument: {spelled}")
            inline = self.pending.popleft()
        if flag.kind is _Kind.STRING:
            self.values[flag.name] = inline
        else:
            items = self.values.setdefault(flag.name, [])
            assert isinstance(items, list)
            items.extend(part for part in inline.split(",") if part)

    def validate(self) -> None:
        for flag in _FLAGS:
            if flag.requires and flag.name in self.values and not self.values.get(flag.requires):
                raise FlagError(f"--{flag.name} requires --{flag.requires}")
        groups: dict[str, list[str]] = {}
        for flag in _FLAGS:
            if flag.group and self.values.get(flag.name):
                groups.setdefault(flag.group, []).append(f"--{flag.name}")
        for group, used in groups.items():
            if len(used) > 1:
                raise FlagError(
                    f"only one of the flags in group {group!r} can be used: {', '.join(used)}"
                )


def _parse_bool(text: str, spelled: str) -> bool:
    lowered = text.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise FlagError(f"invalid value {text!r} for flag {spelled}")


def parse_flags(args: Iterable[str], version: str, commit: str) -> Options:
    """Parse command-line arguments into :class:`Options`.

    Raises :class:`HelpRequested` or :class:`VersionRequested` when those
    flags are given, and :class:`FlagError` for invalid input.
    """
    parser = _Parser(args, version)
    parser.run()
    parser.validate()
    values = parser.values

    def flag(name: str) -> bool:
        return bool(values.get(name, False))

    def items(name: str) -> list[str]:
        return list(values.get(name, []))  # type: ignore[arg-type]

    backup = values.get("backup")
    opts = Options(
        in_place=flag("in-place"),
        backup_ext="" if backup is None else "." + str(backup).removeprefix("."),
        no_ops=flag("no-ops"),
        no_escape=flag("literal-dollar"),
        error_unset=flag("error-unset"),
        error_empty=flag("error-empty"),
        keep_unset=flag("keep-unset"),
        keep_empty=flag("keep-empty"),
        prefix=items("prefix"),
        suffix=items("suffix"),
        variables=items("variable"),
        colored=flag("colored"),
        vars_files=items("extra-vars"),
        positional=parser.positional,
    )

    if flag("strict"):
        opts.error_unset = opts.error_empty = True
    if flag("keep-vars"):
        opts.keep_unset = opts.keep_empty = True
    # Coloured output always shows which variables are missing or empty.
    if opts.colored:
        opts.keep_unset = opts.keep_empty = True
    return opts