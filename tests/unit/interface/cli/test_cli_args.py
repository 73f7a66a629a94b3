from __future__ import annotations

"""
Unit tests for CLI Argument Parsing.

Verifies:
1. Mapping of CLI flags to configuration keys.
2. Defaults that leave the configured values untouched.
3. Handling of boolean flags (store_true).
"""

import pytest

from sizetree.interface.cli.args import args_to_overrides, build_parser


def parse_args(arg_list):
    """Helper to simulate CLI argument parsing."""
    parser = build_parser()
    return parser.parse_args(arg_list)


def test_cli_filter_flags_mapping():
    """Verify filter flags are mapped to their configuration keys."""
    args = parse_args([
        "--current", "sizes.json",
        "--min-size", "512",
        "--include", "^dist/",
        "--exclude", r"\.map$",
        "--type", "to",
        "--depth", "3",
        "--find-renamed", "dist/[name]-[hash][extname]",
        "--log-file", "run.log",
    ])

    overrides = args_to_overrides(args)

    assert overrides == {
        "find_renamed": "dist/[name]-[hash][extname]",
        "min_size": 512.0,
        "include": "^dist/",
        "exclude": r"\.map$",
        "types": "to",
        "depth": "3",
        "log_file": "run.log",
    }


def test_cli_unset_flags_are_none():
    """Options that were not given must not override the configuration."""
    overrides = args_to_overrides(parse_args(["--current", "sizes.json"]))

    assert all(value is None for value in overrides.values())


def test_cli_boolean_flags():
    args = parse_args([
        "--current", "sizes.json",
        "--previous", "old.json",
        "--json",
        "--report-only",
        "--emit-build-sizes",
        "--debug",
        "--save-config", "sizetree.json",
    ])

    assert args.previous == "old.json"
    assert args.json_output is True
    assert args.report_only is True
    assert args.emit_build_sizes is True
    assert args.debug is True
    assert args.save_config == "sizetree.json"


def test_cli_current_is_required():
    with pytest.raises(SystemExit):
        parse_args(["--json"])


def test_cli_report_and_current_are_exclusive():
    args = parse_args(["--report", "report.ndjson"])
    assert args.report == "report.ndjson"
    assert args.current is None

    with pytest.raises(SystemExit):
        parse_args(["--report", "report.ndjson", "--current", "sizes.json"])
