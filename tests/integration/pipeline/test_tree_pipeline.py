from __future__ import annotations

"""
Integration tests for the Size Tree Pipeline.

Validates file-backed entry sources feeding a TreeWorker: an NDJSON size
report, and a build comparison read from two snapshot documents.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from conftest import make_entry

from sizetree.core.analysis.rename_pattern import build_find_renamed_func
from sizetree.core.pipeline.sources import (
    HistorySource,
    NdjsonSource,
    snapshot_history_provider,
)
from sizetree.core.pipeline.worker import TreeWorker
from sizetree.core.services.build_sizes import format_build_sizes_line
from sizetree.domain.snapshot_models import Meta


def _run_load(source, input=None, options: str = "") -> Dict[str, Any]:
    """Send one load request and return its response."""
    posted: List[Dict[str, Any]] = []

    async def scenario():
        worker = TreeWorker(posted.append, source, clock=lambda: 0.0)
        worker.on_message({"id": 1, "action": "load", "data": {"input": input, "options": options}})
        await worker.join()

    asyncio.run(scenario())
    return next(m for m in posted if m.get("id") == 1)


@pytest.fixture
def size_report(tmp_path: Path) -> Path:
    """NDJSON size report: meta line, then one file entry per line."""
    entries = [
        make_entry("out/libmain.so", ("main", 4000, "t"), ("kTable", 600, "r")),
        make_entry("out/init.o", ("ctor", 80, "t")),
        make_entry("res/strings.xml", ("strings", 1200, "p")),
    ]
    lines = [json.dumps(Meta(total=len(entries)).to_dict())]
    lines += [json.dumps(e.to_dict()) for e in entries]
    report = tmp_path / "report.ndjson"
    report.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return report


def test_ndjson_report_builds_a_tree(size_report: Path) -> None:
    """
    TC-01: A size report on disk is streamed into the worker tree.
    """
    response = _run_load(NdjsonSource(), input=str(size_report))

    result = response["result"]
    assert "error" not in result
    assert result["percent"] == 1
    assert result["root"]["size"] == 4000 + 600 + 80 + 1200
    assert result["root"]["childStats"]["r"]["size"] == 600


def test_ndjson_report_with_filters(size_report: Path) -> None:
    """
    TC-02: Filter options from the load query shape the tree.
    """
    response = _run_load(NdjsonSource(), input=str(size_report), options="type=t")

    assert response["result"]["root"]["size"] == 4080


def test_missing_report_is_reported(tmp_path: Path) -> None:
    response = _run_load(NdjsonSource(), input=str(tmp_path / "missing.ndjson"))

    assert "Couldn't read" in response["result"]["error"]


def test_history_from_snapshot_documents(tmp_path: Path, current_snapshot, previous_snapshot) -> None:
    """
    TC-03: Two snapshot documents are compared and streamed in diff mode.

    The previous build is read back from a CI log line.
    """
    current_file = tmp_path / "current.json"
    current_file.write_text(json.dumps([d.to_dict() for d in current_snapshot]), encoding="utf-8")
    previous_log = tmp_path / "previous.log"
    previous_log.write_text(
        "building...\n" + format_build_sizes_line(previous_snapshot) + "\ndone\n",
        encoding="utf-8",
    )

    source = HistorySource(
        snapshot_history_provider(str(current_file), str(previous_log)),
        find_renamed=build_find_renamed_func("dist/app-[hash].js"),
    )
    result = _run_load(source)["result"]

    assert result["diffMode"] is True
    assert result["root"]["size"] == (50000 + 16000) + (500 + 200) - (3000 + 1100)


def test_history_with_unreadable_previous_build(tmp_path: Path, current_snapshot) -> None:
    """
    TC-04: A missing previous build ends the load with an error message.
    """
    current_file = tmp_path / "current.json"
    current_file.write_text(json.dumps([d.to_dict() for d in current_snapshot]), encoding="utf-8")

    source = HistorySource(snapshot_history_provider(str(current_file), str(tmp_path / "nope.json")))
    result = _run_load(source)["result"]

    assert result["error"] == "Couldn't find previous build info"
    assert result["percent"] == 0
