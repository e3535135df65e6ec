"""Variable substitution engine: lookups, filters and operator forms."""

from __future__ import annotations

import os
import re
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Callable, Optional

from vexsubst.formatter import Formatter, PlainFormatter
from vexsubst.options import Options

Lookup = Callable[[str], Optional[str]]
Setenv = Callable[[str, str], None]

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Longest operators first so that e.g. ":-" wins over ":".
_OPERATORS = (
    ":-", ":=", ":+", ":?",
    "##", "%%", "^^", ",,", "//",
    ":", "#", "%", "^", ",", "/", "@", "-", "=", "+", "?",
)


class SubstitutionError(Exception):
    """Base class for errors raised while substituting variables."""


class UnsetVariableError(SubstitutionError):
    """Raised when a variable is unset and unset variables are errors."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"variable not set: {detail}")
        self.detail = detail


class EmptyValueError(SubstitutionError):
    """Raised when a substitution is empty and empty results are errors."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"substitution empty: {detail}")
        self.detail = detail


class UserError(SubstitutionError):
    """Raised by ``${VAR?word}`` and ``${VAR:?word}``; the message is the user's."""


def _setenv(name: str, value: str) -> None:
    os.environ[name] = value


def shell_quote(s: str) -> str:
    """Return a POSIX single-quoted string literal."""
    if not s:
        return "''"
    return "'" + s.replace("'", "'\"'\"'") + "'"


_JSON_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _json_char(c: str) -> str:
    escaped = _JSON_ESCAPES.get(c)
    if escaped is not None:
        return escaped
    if ord(c) < 0x20:
        return f"\\u{ord(c):04x}"
    return c


def json_quote(s: str) -> str:
    """Return a JSON string literal for ``s``."""
    return '"' + "".join(_json_char(c) for c in s) + '"'


def yaml_quote(s: str) -> str:
    """Return a YAML single-quoted scalar (single quotes doubled)."""
    return "'" + s.replace("'", "''") + "'"


@dataclass
class Engine:
    """Expands variable references according to the given options."""

    opts: Options = field(default_factory=Options)
    format: Formatter = field(default_factory=PlainFormatter)
    lookup: Lookup = os.environ.get
    setenv: Setenv = _setenv
    label: str = ""

    # ------------------------------------------------------------------ filters

    def filter(self, name: str) -> bool:
        """Return whether ``name`` passes the variable/prefix/suffix allow lists."""
        opts = self.opts
        if not (opts.variables or opts.prefix or opts.suffix):
            return True
        return (
            name in opts.variables
            or any(name.startswith(p) for p in opts.prefix)
            or any(name.endswith(s) for s in opts.suffix)
        )

    # ------------------------------------------------------------ simple forms

    def expand_simple(self, name: str) -> str:
        """Resolve ``${name}`` without operator semantics."""
        return self._expand_ref(name, "${" + name + "}")

    def _expand_ref(self, name: str, literal: str) -> str:
        fmt = self.format
        opts = self.opts
        if not name:
            return literal
        if not self.filter(name):
            return fmt.filter_str(literal)
        val = self.lookup(name)
        if val is None:
            if opts.error_unset:
                raise UnsetVariableError(fmt.unset_str(literal))
            if opts.keep_unset:
                return fmt.unset_str(literal)
            return ""
        if (opts.keep_vars or opts.keep_empty) and val == "":
            return fmt.empty_str(literal)
        if opts.error_empty and val == "":
            raise EmptyValueError(fmt.empty_str(literal))
        return fmt.ok_str(val)

    # ------------------------------------------------------------ nested words

    def fast_word(self, raw: str | None) -> str:
        """Return an operator word, expanding nested references only if present."""
        if not raw:
            return ""
        if "$" not in raw:
            return raw
        return self._expand_text(raw)

    def _expand_text(self, text: str) -> str:
        out: list[str] = []
        i = 0
        n = len(text)
        while i < n:
            c = text[i]
            if c == "\\" and not self.opts.no_escape and text.startswith("$", i + 1):
                out.append("$")
                i += 2
                continue
            if c != "$":
                nxt = self._next_special(text, i)
                out.append(text[i:nxt])
                i = nxt
                continue
            if text.startswith("{", i + 1):
                end = self._closing_brace(text, i + 2)
                if end < 0:
                    out.append(text[i:])
                    break
                out.append(self._expand_braced(text[i + 2:end]))
                i = end + 1
                continue
            match = _NAME_RE.match(text, i + 1)
            if match:
                name = match.group()
                out.append(self._expand_ref(name, "$" + name))
                i = match.end()
            elif text.startswith("$", i + 1):
                out.append("$$")
                i += 2
            else:
                out.append("$")
                i += 1
        return "".join(out)

    @staticmethod
    def _next_special(text: str, start: int) -> int:
        positions = [p for p in (text.find("$", start + 1), text.find("\\", start + 1)) if p >= 0]
        return min(positions, default=len(text))

    @staticmethod
    def _closing_brace(text: str, start: int) -> int:
        depth = 1
        k = start
        while k < len(text):
            if text.startswith("${", k):
                depth += 1
                k += 2
                continue
            if text[k] == "}":
                depth -= 1
                if depth == 0:
                    return k
            k += 1
        return -1

    def _expand_braced(self, body: str) -> str:
        literal = "${" + body + "}"
        if body.startswith("#") and _NAME_RE.fullmatch(body, 1):
            if self.opts.no_ops:
                return literal
            return self.expand_with_op(body[1:], "#len", None)
        match = _NAME_RE.match(body)
        if match is None:
            return literal
        name = match.group()
        rest = body[match.end():]
        if not rest:
            return self.expand_simple(name)
        op = next((o for o in _OPERATORS if rest.startswith(o)), None)
        if op is None or self.opts.no_ops:
            return literal
        return self.expand_with_op(name, op, rest[len(op):])

    # --------------------------------------------------------------- dispatch

    def expand_with_op(self, name: str, op: str, raw: str | None) -> str:
        """Expand ``${name<op>raw}`` by dispatching to the operator helpers."""
        if self.opts.no_ops or not op:
            return self.expand_simple(name)

        word = self.fast_word(raw) if raw is not None else ""
        val = self.lookup(name)
        is_set = val is not None
        value = val if val is not None else ""
        not_null = is_set and value != ""

        match op:
            case "#len":
                return self.op_len(name, is_set, value)
            case "/" | "//":
                return self.op_replace(name, op, is_set, value, word)
            case "@":
                return self.op_quote(name, is_set, value, word)
            case "-":
                return self.op_default(is_set, value, word)
            case ":-":
                return self.op_default_null(not_null, value, word)
            case "=":
                return self.op_assign(name, is_set, value, word)
            case ":=":
                return self.op_assign_null(name, not_null, value, word)
            case "+":
                return self.op_alt(name, is_set, word)
            case ":+":
                return self.op_alt_null(name, not_null, word)
            case "?":
                return self.op_error_unset(name, is_set, word)
            case ":?":
                return self.op_error_null(name, not_null, word)
            case _:
                return "${" + name + op + (raw or "") + "}"

    # -------------------------------------------------------------- operators

    def op_len(self, name: str, is_set: bool, val: str) -> str:
        """Implement ``${#VAR}``: the length of the value in characters."""
        if not is_set:
            if self.opts.error_unset:
                raise UnsetVariableError(self.format.unset_str(name))
            return self.format.ok_str("0")
        return self.format.ok_str(str(len(val)))

    def op_default(self, is_set: bool, val: str, word: str) -> str:
        """Implement ``${VAR-word}``."""
        return self.format.ok_str(val) if is_set else self.format.default_str(word)

    def op_default_null(self, not_null: bool, val: str, word: str) -> str:
        """Implement ``${VAR:-word}``."""
        return self.format.ok_str(val) if not_null else self.format.default_str(word)

    def _assign(self, name: str, word: str) -> str:
        with suppress(OSError, ValueError):
            self.setenv(name, word)
        return self.format.default_str(word)

    def op_assign(self, name: str, is_set: bool, val: str, word: str) -> str:
        """Implement ``${VAR=word}``."""
        return self.format.ok_str(val) if is_set else self._assign(name, word)

    def op_assign_null(self, name: str, not_null: bool, val: str, word: str) -> str:
        """Implement ``${VAR:=word}``."""
        return self.format.ok_str(val) if not_null else self._assign(name, word)

    def op_alt(self, name: str, is_set: bool, word: str) -> str:
        """Implement ``${VAR+word}``."""
        return self.format.ok_str(f"{name}: {word}") if is_set else ""

    def op_alt_null(self, name: str, not_null: bool, word: str) -> str:
        """Implement ``${VAR:+word}``."""
        return self.format.ok_str(f"{name}: {word}") if not_null else ""

    def op_error_unset(self, name: str, is_set: bool, word: str) -> str:
        """Implement ``${VAR?word}``."""
        if not is_set:
            raise UserError(self.format.user_error_str(f"{name}: {word}"))
        return self.format.ok_str("")

    def op_error_null(self, name: str, not_null: bool, word: str) -> str:
        """Implement ``${VAR:?word}``."""
        if not not_null:
            raise UserError(self.format.user_error_str(f"{name}: {word}"))
        return self.format.ok_str("")

    def op_quote(self, name: str, is_set: bool, val: str, mode_raw: str) -> str:
        """Implement ``${VAR@Q}``, ``${VAR@J}`` and ``${VAR@Y}``."""
        literal = "${" + name + "@" + mode_raw + "}"
        if not is_set:
            if self.opts.error_unset:
                raise UnsetVariableError(self.format.unset_str(name))
            if self.opts.keep_unset:
                return self.format.unset_str(literal)
            val = ""
        quoters = {"Q": shell_quote, "J": json_quote, "Y": yaml_quote}
        quoter = quoters.get(mode_raw.upper().strip())
        if quoter is None:
            return self.format.error_str(literal)
        return self.format.ok_str(quoter(val))

    def op_replace(self, name: str, op: str, is_set: bool, val: str, spec: str) -> str:
        """Implement ``${VAR/pat/repl}`` (first) and ``${VAR//pat/repl}`` (all)."""
        literal = "${" + name + op + spec + "}"
        if not is_set:
            if self.opts.error_unset:
                raise UnsetVariableError(self.format.unset_str(name))
            if self.opts.keep_unset:
                return self.format.unset_str(literal)
            return self.format.ok_str("")

        pat, sep, repl = spec.partition("/")
        if not sep or not pat:
            return self.format.error_str(literal)

        out = val.replace(pat, repl, 1) if op == "/" else val.replace(pat, repl)
        if self.opts.error_empty and out == "":
            raise EmptyValueError(self.format.empty_str(name))
        return self.format.ok_str(out)