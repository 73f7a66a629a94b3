from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates a CLI run: logging bootstrap, configuration merge and
validation, snapshot or size report loading, the change report, and the
size tree built by a TreeWorker and expanded through its `open` action.
"""

import asyncio
import json
import sys
from typing import Any, Dict, List, Optional

from sizetree.core.analysis.change_classifier import get_changes
from sizetree.core.analysis.rename_pattern import build_find_renamed_func
from sizetree.core.analysis.symbol_filters import build_options_query
from sizetree.core.pipeline.sources import (
    EntrySource,
    HistorySource,
    NdjsonSource,
    SnapshotSource,
    load_snapshot,
)
from sizetree.core.pipeline.validator import validate_config
from sizetree.core.pipeline.worker import TreeWorker
from sizetree.core.services.build_sizes import format_build_sizes_line
from sizetree.core.services.change_report import render_change_report
from sizetree.core.services.tree_renderer import render_size_tree
from sizetree.domain.config import get_default_config, load_config, save_config
from sizetree.domain.constants import PROGRESS_MESSAGE_ID
from sizetree.domain.errors import (
    ConfigError,
    EntryFormatError,
    RenameMismatchError,
    StreamError,
)
from sizetree.infra.logging import LoggingConfig, configure_logging, get_logger, shutdown_logging
from sizetree.interface.cli import args as cli_args

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the CLI workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: 0 on success, 1 when the tree or the comparison failed,
             2 on configuration or input errors.
    """
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    configure_logging(LoggingConfig(level="DEBUG" if args.debug else "INFO"))
    try:
        return _run(args)
    finally:
        shutdown_logging()


def _run(args) -> int:
    # 1. Configuration hierarchy: defaults < config file < CLI flags
    try:
        base_conf = load_config(args.config) if args.config else get_default_config()
        raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))
        clean_conf, _warnings = validate_config(raw_conf, strict=False)
    except ConfigError as e:
        return _fail(str(e), 2)

    configure_logging(LoggingConfig.from_config(clean_conf, debug=args.debug), force=True)
    logger.debug(f"Resolved configuration: {clean_conf}")

    if args.save_config:
        try:
            save_config(clean_conf, args.save_config)
        except OSError as e:
            return _fail(f"Couldn't save config to {args.save_config}: {e}", 2)

    # 2. Build inputs
    if args.report:
        if args.previous or args.emit_build_sizes or args.report_only:
            return _fail("--report cannot be combined with --previous, --emit-build-sizes or --report-only.", 2)
        return _run_tree(args, clean_conf, NdjsonSource(args.report))

    try:
        current = load_snapshot(args.current)
        previous = load_snapshot(args.previous) if args.previous else None
    except (StreamError, EntryFormatError) as e:
        return _fail(str(e), 2)

    if args.emit_build_sizes:
        print(format_build_sizes_line(current))

    # 3. Change report (diff mode)
    source: EntrySource
    find_renamed = None
    if clean_conf["find_renamed"]:
        find_renamed = build_find_renamed_func(clean_conf["find_renamed"])

    if previous is not None:
        try:
            changes = get_changes(previous, current, find_renamed)
        except RenameMismatchError as e:
            return _fail(str(e), 1)

        if not args.json_output:
            for line in render_change_report(changes):
                print(line)
        if args.report_only:
            return 0
        source = HistorySource(lambda _input: [current, previous], find_renamed=find_renamed)
    else:
        if args.report_only:
            logger.warning("--report-only needs --previous; nothing to compare.")
            return 0
        source = SnapshotSource(current)

    return _run_tree(args, clean_conf, source)


def _run_tree(args, clean_conf: Dict[str, Any], source: EntrySource) -> int:
    """Build, expand and print the size tree. Returns the exit code."""
    options = build_options_query(
        min_size=clean_conf["min_size"],
        types=clean_conf["types"],
        include=clean_conf["include"],
        exclude=clean_conf["exclude"],
    )
    try:
        result = asyncio.run(
            _build_size_tree(source, options, clean_conf["depth"], clean_conf["progress_interval"])
        )
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130

    if args.json_output:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        _print_tree(result)

    if result.get("error"):
        logger.error(f"Size tree is incomplete: {result['error']}")
        return 1
    return 0

# -----------------------------------------------------------------------------
# WORKER SESSION
# -----------------------------------------------------------------------------

class _WorkerSession:
    """Request/response correlation on top of the worker message channel."""

    def __init__(self, source: EntrySource, progress_interval: float) -> None:
        self._next_id = 1
        self._waiters: Dict[Any, asyncio.Future] = {}
        self.progress_updates = 0
        self.worker = TreeWorker(self._on_post, source, progress_interval=progress_interval)

    def _on_post(self, message: Dict[str, Any]) -> None:
        if message.get("id") == PROGRESS_MESSAGE_ID:
            self.progress_updates += 1
            logger.debug(f"Progress: {message.get('percent', 0):.0%}")
            return
        waiter = self._waiters.pop(message.get("id"), None)
        if waiter is not None and not waiter.done():
            waiter.set_result(message)

    async def request(self, action: str, data: Any) -> Dict[str, Any]:
        msg_id = self._next_id
        self._next_id += 1
        waiter = asyncio.get_running_loop().create_future()
        self._waiters[msg_id] = waiter
        self.worker.on_message({"id": msg_id, "action": action, "data": data})
        return await waiter


async def _build_size_tree(
        source: EntrySource,
        options: str,
        depth: float,
        progress_interval: float,
) -> Dict[str, Any]:
    """
    Load the tree, then open unloaded nodes level by level down to `depth`.

    Returns:
        Dict[str, Any]: The load result with the root expanded in place.
    """
    session = _WorkerSession(source, progress_interval)
    response = await session.request("load", {"input": None, "options": options})
    if "error" in response:
        return {"root": None, "percent": 0, "diffMode": False, "error": response["error"]}

    result = response["result"]
    root = result["root"]
    if depth == 0:
        root["children"] = None
        return result

    frontier = [root]
    level = 1
    while frontier and level < depth:
        next_frontier = []
        for node in frontier:
            for child in node.get("children") or []:
                if child.get("children") is None:
                    opened = await session.request("open", child["idPath"])
                    if opened.get("result"):
                        child["children"] = opened["result"]["children"]
                next_frontier.append(child)
        frontier = next_frontier
        level += 1

    logger.debug(f"Tree ready after {session.progress_updates} progress update(s)")
    await session.worker.join()
    return result

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge of non-None overrides for known keys."""
    out = dict(base)
    for k in get_default_config():
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]
    return out

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _print_tree(result: Dict[str, Any]) -> None:
    root = result.get("root")
    if root is None:
        print(f"ERROR: {result.get('error')}", file=sys.stderr)
        return

    print()
    for line in render_size_tree(root, signed=bool(result.get("diffMode"))):
        print(line)
    if result.get("error"):
        print(f"ERROR: {result['error']}", file=sys.stderr)


def _fail(msg: str, code: int) -> int:
    logger.error(msg)
    print(f"ERROR: {msg}", file=sys.stderr)
    return code

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
