from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema of the `sizetree` tool and translates the
parsed namespace into configuration overrides.
"""

import argparse
from typing import Any, Dict

from sizetree.domain.constants import APP_VERSION, SYMBOL_TYPES

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the sizetree CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="sizetree",
        description="Compare build artifact sizes and browse them as a size tree.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    # --- Build Inputs ---
    inputs = p.add_mutually_exclusive_group(required=True)
    inputs.add_argument(
        "--current",
        help="Snapshot of the current build: JSON file, build log or http(s) URL.",
    )
    inputs.add_argument(
        "--report",
        help="Newline-delimited JSON size report (meta line, then file entries).",
    )
    p.add_argument(
        "--previous",
        default=None,
        help="Snapshot of the previous build. Enables diff mode.",
    )
    p.add_argument(
        "--find-renamed",
        dest="find_renamed",
        default=None,
        help='Rename pattern such as "dist/[name]-[hash][extname]".',
    )

    # --- Symbol Filters ---
    p.add_argument(
        "--min-size",
        dest="min_size",
        type=float,
        default=None,
        help="Hide symbols smaller than this many bytes (absolute size).",
    )
    p.add_argument("--include", default=None, help="Regex a symbol path must match.")
    p.add_argument("--exclude", default=None, help="Regex a symbol path must not match.")
    p.add_argument(
        "--type",
        dest="types",
        default=None,
        help=f"Symbol types to keep, any of '{SYMBOL_TYPES}'.",
    )

    # --- Presentation ---
    p.add_argument(
        "--depth",
        default=None,
        help="Tree levels to print below the root, or 'inf'.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the tree result as JSON.",
    )
    p.add_argument(
        "--report-only",
        action="store_true",
        help="Print the change report without building the tree.",
    )
    p.add_argument(
        "--emit-build-sizes",
        action="store_true",
        help="Print the current snapshot as a '=== BUILD SIZES: ' log line.",
    )

    # --- Configuration and Diagnostics ---
    p.add_argument("--config", default=None, help="JSON configuration file.")
    p.add_argument(
        "--save-config",
        dest="save_config",
        default=None,
        help="Write the resolved configuration to this JSON file.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument("--log-file", dest="log_file", default=None, help="Also write logs to this file.")

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Options that were not given map to None and leave the configured value.
    """
    return {
        "find_renamed": args.find_renamed,
        "min_size": args.min_size,
        "include": args.include,
        "exclude": args.exclude,
        "types": args.types,
        "depth": args.depth,
        "log_file": args.log_file,
    }
