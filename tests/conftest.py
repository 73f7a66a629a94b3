from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared build snapshots and entry factories used across unit tests.
"""

import os
import sys
from typing import Any, Dict, List

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from sizetree.domain.snapshot_models import FileData, FileEntry, SymbolEntry  # noqa: E402


# -----------------------------------------------------------------------------
# Factories
# -----------------------------------------------------------------------------
def make_entry(path: str, *symbols: Any) -> FileEntry:
    """
    Build a FileEntry from (name, size, type[, count]) tuples.

    Example:
        make_entry("dist/a.js", ("a.js", 100, "t"), ("a.js.gz", 40, "o"))
    """
    return FileEntry(
        source_path=path,
        symbols=[
            SymbolEntry(name=s[0], byte_size=s[1], type=s[2], count=s[3] if len(s) > 3 else None)
            for s in symbols
        ],
    )


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def previous_snapshot() -> List[FileData]:
    """Older build: three artifacts, one of them hash-busted."""
    return [
        FileData(path="dist/index.html", size=900, gzip_size=400),
        FileData(path="dist/app-1a2b3c.js", size=12000, gzip_size=4000),
        FileData(path="dist/legacy.js", size=3000, gzip_size=1100),
    ]


@pytest.fixture
def current_snapshot() -> List[FileData]:
    """Newer build: index unchanged, app renamed and grown, legacy gone, vendor added."""
    return [
        FileData(path="dist/index.html", size=900, gzip_size=400),
        FileData(path="dist/app-9f8e7d.js", size=12500, gzip_size=4200),
        FileData(path="dist/vendor.js", size=50000, gzip_size=16000),
    ]


@pytest.fixture
def snapshot_json(current_snapshot: List[FileData]) -> List[Dict[str, Any]]:
    """Current build in its JSON wire form."""
    return [item.to_dict() for item in current_snapshot]
