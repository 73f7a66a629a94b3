from __future__ import annotations

"""
Unit tests for the Entry Stream Sources.

Verifies:
1. Newline-delimited JSON streams (meta first, then file entries).
2. History comparison and missing-build errors.
3. Snapshot loading from JSON documents and build logs.
"""

import asyncio
import json
from pathlib import Path

import pytest

from sizetree.core.pipeline.sources import (
    HistorySource,
    NdjsonSource,
    SnapshotSource,
    load_snapshot,
    snapshot_history_provider,
)
from sizetree.core.services.build_sizes import format_build_sizes_line
from sizetree.domain.errors import EntryFormatError, StreamError
from sizetree.domain.snapshot_models import FileEntry, Meta


async def _collect(source):
    return [item async for item in source.stream()]


def collect(source):
    return asyncio.run(_collect(source))

# -----------------------------------------------------------------------------
# NDJSON SOURCE
# -----------------------------------------------------------------------------

def test_ndjson_source_yields_meta_then_entries(tmp_path: Path):
    """TC-01: The first line is Meta, every following line a FileEntry."""
    report = tmp_path / "report.ndjson"
    report.write_text(
        "\n".join([
            json.dumps({"total": 2, "diff_mode": False}),
            json.dumps({"p": "a.js", "s": [{"n": "a", "b": 10, "t": "t"}]}),
            "",
            json.dumps({"p": "b.js", "s": [{"n": "b", "b": 5, "t": "o", "u": 3}]}),
        ]),
        encoding="utf-8",
    )

    items = collect(NdjsonSource(str(report)))

    assert items[0] == Meta(total=2, diff_mode=False)
    assert [i.source_path for i in items[1:]] == ["a.js", "b.js"]
    assert items[2].symbols[0].count == 3


def test_ndjson_source_reports_bad_json(tmp_path: Path):
    report = tmp_path / "bad.ndjson"
    report.write_text('{"total": 1}\n{not json}\n', encoding="utf-8")

    with pytest.raises(StreamError, match="line 2"):
        collect(NdjsonSource(str(report)))


def test_ndjson_source_rejects_malformed_entry(tmp_path: Path):
    """TC-02: A file entry without its path is a format error."""
    report = tmp_path / "entry.ndjson"
    report.write_text('{"total": 1}\n{"s": []}\n', encoding="utf-8")

    with pytest.raises(EntryFormatError, match="'p'"):
        collect(NdjsonSource(str(report)))


def test_ndjson_source_needs_input_and_content(tmp_path: Path):
    empty = tmp_path / "empty.ndjson"
    empty.write_text("\n", encoding="utf-8")

    with pytest.raises(StreamError):
        collect(NdjsonSource())
    with pytest.raises(StreamError, match="empty"):
        collect(NdjsonSource(str(empty)))


def test_set_input_redirects_the_next_stream(tmp_path: Path):
    report = tmp_path / "later.ndjson"
    report.write_text('{"total": 0}\n', encoding="utf-8")
    source = NdjsonSource()

    source.set_input(str(report))

    assert collect(source) == [Meta(total=0)]

# -----------------------------------------------------------------------------
# HISTORY AND SNAPSHOT SOURCES
# -----------------------------------------------------------------------------

def test_history_source_compares_the_two_latest_builds(previous_snapshot, current_snapshot):
    """TC-03: Provider builds are classified and transformed into a diff stream."""
    source = HistorySource(lambda _input: [current_snapshot, previous_snapshot])

    items = collect(source)

    meta = items[0]
    assert meta.diff_mode is True
    assert meta.total == 5
    assert all(isinstance(i, FileEntry) for i in items[1:])


def test_history_source_applies_rename_matcher(previous_snapshot, current_snapshot):
    from sizetree.core.analysis.rename_pattern import build_find_renamed_func

    source = HistorySource(
        lambda _input: [current_snapshot, previous_snapshot],
        find_renamed=build_find_renamed_func("dist/[name]-[hash][extname]"),
    )

    items = collect(source)

    assert items[0].total == 4
    assert "dist/app-1a2b3c.js" not in [i.source_path for i in items[1:]]


def test_history_source_accepts_async_providers(previous_snapshot, current_snapshot):
    async def provider(_input):
        return [current_snapshot, previous_snapshot]

    items = collect(HistorySource(provider))

    assert items[0].diff_mode is True


@pytest.mark.parametrize(
    "builds, message",
    [
        ([], "previous"),
        ([[]], "previous"),
        ([None, []], "current"),
    ],
)
def test_history_source_requires_both_builds(builds, message):
    """TC-04: A missing build stops the stream with a StreamError."""
    with pytest.raises(StreamError, match=message):
        collect(HistorySource(lambda _input: builds))


def test_snapshot_source_from_memory(current_snapshot):
    items = collect(SnapshotSource(current_snapshot))

    assert items[0] == Meta(total=3, diff_mode=False)
    assert len(items) == 4


def test_snapshot_source_from_file(tmp_path: Path, snapshot_json):
    path = tmp_path / "sizes.json"
    path.write_text(json.dumps(snapshot_json), encoding="utf-8")

    items = collect(SnapshotSource(input=str(path)))

    assert items[0].total == 3

# -----------------------------------------------------------------------------
# SNAPSHOT LOADING
# -----------------------------------------------------------------------------

def test_load_snapshot_from_json(tmp_path: Path, snapshot_json, current_snapshot):
    path = tmp_path / "sizes.json"
    path.write_text(json.dumps(snapshot_json), encoding="utf-8")

    assert load_snapshot(str(path)) == current_snapshot


def test_load_snapshot_from_build_log(tmp_path: Path, current_snapshot):
    """TC-05: A CI log with a build-sizes line is a valid snapshot source."""
    log = tmp_path / "build.log"
    log.write_text(
        "Installing...\n" + format_build_sizes_line(current_snapshot) + "\nDone.\n",
        encoding="utf-8",
    )

    assert load_snapshot(str(log)) == current_snapshot


def test_load_snapshot_reports_malformed_json_records(tmp_path: Path):
    """TC-06: A JSON snapshot with a missing field is a format error, not a log."""
    path = tmp_path / "snap.json"
    path.write_text(json.dumps([{"path": "a.js", "size": 1}]), encoding="utf-8")

    with pytest.raises(EntryFormatError, match="gzipSize"):
        load_snapshot(str(path))


def test_load_snapshot_without_build_info(tmp_path: Path):
    log = tmp_path / "plain.log"
    log.write_text("nothing to see\n", encoding="utf-8")

    with pytest.raises(StreamError, match="Couldn't find build info"):
        load_snapshot(str(log))


def test_snapshot_history_provider_reports_missing_builds(tmp_path: Path, snapshot_json):
    current = tmp_path / "current.json"
    current.write_text(json.dumps(snapshot_json), encoding="utf-8")
    provider = snapshot_history_provider(str(current), str(tmp_path / "missing.json"))

    builds = asyncio.run(provider(None))

    assert len(builds[0]) == 3
    assert builds[1] is None
