# vexsubst

`vexsubst` expands shell-style variable references: `$VAR`, `${VAR}` and
operator forms such as `${VAR:-default}`, `${VAR:?message}`,
`${VAR//old/new}` or `${VAR@Q}`. It is a library of three modules:

- `vexsubst.engine` – the `Engine` that resolves references, the error
  classes it raises, and the quoting helpers `shell_quote`, `json_quote`
  and `yaml_quote`;
- `vexsubst.options` – the `Options` dataclass and `parse_flags`, a parser
  for an envsubst-like command line;
- `vexsubst.formatter` – `PlainFormatter` and `ColoredFormatter`, which
  style each substituted piece.

## Supported forms

| Form                   | Result                                               |
|------------------------|------------------------------------------------------|
| `$VAR`, `${VAR}`       | value of `VAR`                                       |
| `${#VAR}`              | length of the value in characters (`0` if unset)     |
| `${VAR-word}`          | `word` if `VAR` is unset, else its value             |
| `${VAR:-word}`         | `word` if `VAR` is unset or empty, else its value    |
| `${VAR=word}`          | like `-`, and also assigns `word` to `VAR`           |
| `${VAR:=word}`         | like `:-`, and also assigns `word` to `VAR`          |
| `${VAR+word}`          | `VAR: word` if `VAR` is set, otherwise nothing       |
| `${VAR:+word}`         | `VAR: word` if `VAR` is set and non-empty            |
| `${VAR?word}`          | raises `UserError("VAR: word")` if `VAR` is unset    |
| `${VAR:?word}`         | raises `UserError("VAR: word")` if unset or empty    |
| `${VAR/pat/repl}`      | replace the first occurrence of `pat`                |
| `${VAR//pat/repl}`     | replace every occurrence of `pat`                    |
| `${VAR@Q}`             | POSIX shell single-quoted literal                    |
| `${VAR@J}`             | JSON string literal                                  |
| `${VAR@Y}`             | YAML single-quoted scalar                            |

Details:

- Operator words may contain references themselves, so
  `${GREETING:-hi ${NAME}}` expands `NAME` first.
- Inside expanded text, `\$` yields a literal `$` unless
  `Options.no_escape` is set; `$$` is kept as `$$`, and an unterminated
  `${...` is kept as written.
- The `@` mode is case-insensitive and surrounding spaces are ignored; an
  unknown mode leaves the reference as written (styled with `error_str`).
- A replace spec without a `/` or with an empty pattern leaves the
  reference as written (styled with `error_str`).
- Any other operator leaves the reference as written.
- With `Options.no_ops`, operator forms are treated as plain `${VAR}`
  references by `expand_with_op`, and kept literally inside expanded text.

## Using the engine

```python
from vexsubst.engine import Engine, UserError
from vexsubst.options import Options

env = {"NAME": "Ada"}
engine = Engine(opts=Options(), lookup=env.get, setenv=env.__setitem__)

engine.fast_word("hi ${NAME}")                         # 'hi Ada'
engine.expand_simple("NAME")                           # 'Ada'
engine.expand_with_op("GREETING", ":-", "hi ${NAME}")  # 'hi Ada'
engine.expand_with_op("MODE", ":=", "fast")            # 'fast'; env["MODE"] is now 'fast'

try:
    engine.expand_with_op("TOKEN", "?", "must be set")
except UserError as exc:
    print(exc)  # TOKEN: must be set
```

`lookup` returns the value of a variable, or `None` when it is unset; it
defaults to `os.environ.get`. `setenv` is called by `=` and `:=` and
defaults to writing `os.environ`; `OSError` and `ValueError` from it are
ignored. `fast_word` returns a string unchanged when it has no `$` and
expands the references in it otherwise.

Failures are raised as `SubstitutionError` subclasses:

- `UnsetVariableError` – message `variable not set: ...`, when
  `error_unset` is on and a variable is unset;
- `EmptyValueError` – message `substitution empty: ...`, when
  `error_empty` is on and a result is empty;
- `UserError` – the message written with `?` or `:?`.

Other switches on `Options` that the engine honours: `keep_unset` and
`keep_empty` (or `keep_vars`) leave `${VAR}` in place instead of
substituting nothing, and `variables`, `prefix` and `suffix` are allow
lists checked by `Engine.filter`; a name that matches none of them is left
as written. When all three lists are empty every name is allowed.

## Parsing options

```python
from vexsubst.options import FlagError, HelpRequested, VersionRequested, parse_flags

try:
    options = parse_flags(["--strict", "--prefix", "APP_"], "1.0.0", "none")
except (HelpRequested, VersionRequested) as exc:
    print(exc)  # the help text, or the version string
except FlagError as exc:
    print(exc)  # e.g. "unknown flag: --bogus"
```

Recognised flags (`help_text()` returns the full listing):

- `-i`, `--in-place`; `-b`, `--backup EXT` – the extension always gets a
  leading dot, and `--backup` requires `--in-place`
- `--no-ops`; `-l`, `--literal-dollar` (sets `no_escape`)
- `-u`, `--error-unset`; `--error-empty`; `-x`, `--strict` for both
- `-U`, `--keep-unset`; `-E`, `--keep-empty`; `-K`, `--keep-vars` for both
- `-p`, `--prefix`; `-s`, `--suffix`; `-v`, `--variable` – repeatable,
  values may also be comma separated
- `-c`, `--colored` – also turns on `keep_unset` and `keep_empty`; cannot
  be combined with `--in-place`
- `-e`, `--extra-vars PATH` – repeatable, collected in `vars_files`
  (the short `-e` selects this flag, not `--error-empty`)
- `-h`, `--help`; `--version`

Arguments after the first positional one, or after `--`, are collected in
`Options.positional`.

## Formatters

```python
from vexsubst.formatter import new_formatter

new_formatter(False).ok_str("value")   # 'value'
new_formatter(True).ok_str("value")    # '\x1b[32mvalue\x1b[0m'
new_formatter(True).unset_str("${X}")  # '\x1b[35m${X}\x1b[0m'
```

Each formatter has `ok_str`, `default_str`, `user_error_str`,
`filter_str`, `empty_str`, `unset_str` and `error_str`.

## What the package does not do

There is no command-line program: nothing reads files or standard input,
edits files in place, writes backups or loads the files named by
`--extra-vars`. Those options are parsed into `Options` only. The engine
also has no case-conversion (`^`, `,`), prefix/suffix trimming (`#`, `%`)
or substring (`${VAR:off:len}`) operators; such forms are left as written.

## Running the tests

Install the package with its `test` extra and run `pytest` from the
project directory.