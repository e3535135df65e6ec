import pytest

from vexsubst.options import (
    FlagError,
    HelpRequested,
    Options,
    VersionRequested,
    help_text,
    parse_flags,
)

EXPECTED_HELP = r"""Usage: vex [flags]
Flags:
    -i, --in-place              edit files in place; with no files, stdin->stdout [Group: mode (One Of)]
    -b, --backup BACKUP         when -i, create a backup with this extension (e.g. .bak) (Requires: in-place)
        --no-ops                treat operator forms as literals (envsubst-compatible mode)
    -l, --literal-dollar        treat \$ as two bytes (disable dollar-escape)
    -x, --strict                exit on unset or empty (equivalent to --error-unset --error-empty)
    -u, --error-unset           error if a variable is unset
    -e, --error-empty           error if a substitution resolves to empty
    -K, --keep-vars             leave all ${VAR} literals (implies --keep-unset --keep-empty)
    -U, --keep-unset            leave ${VAR} literal if unset
    -E, --keep-empty            leave ${VAR} literal if empty
    -p, --prefix PREFIX...      only replace variables that match any of these prefixes
    -s, --suffix SUFFIX...      only replace variables that match any of these suffixes
    -v, --variable VARIABLE...  only replace variables with these exact names
    -c, --colored               colorize formatter (content and diagnostics) [Group: mode (One Of)]
    -e, --extra-vars PATH...    read variables from file (can be repeated)
    -h, --help                  show help
        --version               show version
"""


def test_no_args_defaults():
    flags = parse_flags([], "1.2.3", "abc123")
    assert flags == Options()
    assert flags.in_place is False
    assert flags.backup_ext == ""
    assert flags.no_ops is False
    assert flags.no_escape is False
    assert flags.error_empty is False
    assert flags.error_unset is False
    assert flags.keep_unset is False
    assert flags.keep_empty is False
    assert flags.keep_vars is False
    assert flags.prefix == []
    assert flags.suffix == []
    assert flags.variables == []
    assert flags.colored is False
    assert flags.positional == []


def test_in_place_and_backup():
    flags = parse_flags(["-i", "--backup", ".bak"], "1.0.0", "deadbeef")
    assert flags.in_place is True
    assert flags.backup_ext == ".bak"


def test_backup_without_in_place():
    with pytest.raises(FlagError) as exc:
        parse_flags(["--backup", ".bak"], "1.0.0", "deadbeef")
    assert str(exc.value) == "--backup requires --in-place"


def test_backup_ext_with_leading_dot():
    flags = parse_flags(["--in-place", "--backup", ".bak"], "1.0.0", "deadbeef")
    assert flags.backup_ext == ".bak"


def test_backup_ext_without_leading_dot():
    flags = parse_flags(["--in-place", "--backup", "bak"], "1.0.0", "deadbeef")
    assert flags.backup_ext == ".bak"


def test_backup_equals_form():
    flags = parse_flags(["-i", "--backup=orig"], "1.0.0", "deadbeef")
    assert flags.backup_ext == ".orig"


def test_no_ops_and_literal_dollar():
    flags = parse_flags(["--no-ops", "--literal-dollar"], "1.0.0", "deadbeef")
    assert flags.no_ops is True
    assert flags.no_escape is True


def test_strict_implies_both_error_flags():
    flags = parse_flags(["--strict"], "1.0.0", "deadbeef")
    assert flags.error_unset is True
    assert flags.error_empty is True


def test_keep_vars_implies_keep_unset_and_keep_empty():
    flags = parse_flags(["--keep-vars"], "1.0.0", "deadbeef")
    assert flags.keep_unset is True
    assert flags.keep_empty is True
    assert flags.keep_vars is False


def test_short_cluster_of_bools():
    flags = parse_flags(["-xK"], "1.0.0", "deadbeef")
    assert (flags.error_unset, flags.error_empty) == (True, True)
    assert (flags.keep_unset, flags.keep_empty) == (True, True)


def test_filter_lists():
    args = [
        "--prefix", "APP_",
        "-p", "SYS_",
        "--suffix", "_TOKEN",
        "-s", "_ID",
        "--variable", "FOO",
        "-v", "BAR",
    ]
    flags = parse_flags(args, "1.0.0", "deadbeef")
    assert sorted(flags.prefix) == ["APP_", "SYS_"]
    assert sorted(flags.suffix) == ["_ID", "_TOKEN"]
    assert sorted(flags.variables) == ["BAR", "FOO"]


def test_colored_implies_keep_flags():
    flags = parse_flags(["--colored"], "1.0.0", "deadbeef")
    assert flags.colored is True
    assert flags.keep_unset is True
    assert flags.keep_empty is True


def test_positional_args():
    flags = parse_flags(["--no-ops", "file1.txt", "file two.md"], "1.0.0", "deadbeef")
    assert flags.no_ops is True
    assert flags.positional == ["file1.txt", "file two.md"]


def test_double_dash_ends_flags():
    flags = parse_flags(["--", "--no-ops"], "1.0.0", "deadbeef")
    assert flags.no_ops is False
    assert flags.positional == ["--no-ops"]


def test_invalid_flag():
    with pytest.raises(FlagError) as exc:
        parse_flags(["--invalid-flag"], "1.0.0", "deadbeef")
    assert str(exc.value) == "unknown flag: --invalid-flag"


def test_missing_argument():
    with pytest.raises(FlagError, match="--prefix"):
        parse_flags(["--prefix"], "1.0.0", "deadbeef")


def test_mode_group_is_exclusive():
    with pytest.raises(FlagError, match="mode"):
        parse_flags(["-i", "-c"], "1.0.0", "deadbeef")


def test_help_text_matches():
    assert help_text() == EXPECTED_HELP


def test_help_requested():
    with pytest.raises(HelpRequested) as exc:
        parse_flags(["--help"], "1.2.3", "abc123")
    assert str(exc.value) == EXPECTED_HELP


def test_version_requested():
    with pytest.raises(VersionRequested) as exc:
        parse_flags(["--version"], "1.2.3", "abc123")
    assert str(exc.value) == "1.2.3"