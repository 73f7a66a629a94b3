from __future__ import annotations

"""
Build-Size Log Lines.

A CI job prints its current snapshot on one log line prefixed with
"=== BUILD SIZES: " so a later job can recover it from the log text.
"""

import json
import re
from typing import List, Optional, Sequence

from sizetree.domain.constants import BUILD_SIZES_PREFIX
from sizetree.domain.snapshot_models import FileData, parse_snapshot

_BUILD_SIZES_RE = re.compile(f"^{re.escape(BUILD_SIZES_PREFIX)}(.+)$", re.MULTILINE)


def format_build_sizes_line(snapshot: Sequence[FileData]) -> str:
    """Serialize a snapshot into a single prefixed log line."""
    return BUILD_SIZES_PREFIX + json.dumps([item.to_dict() for item in snapshot])


def parse_build_sizes_log(log: str) -> Optional[List[FileData]]:
    """
    Extract the first snapshot line from a build log.

    Returns:
        Optional[List[FileData]]: The snapshot, or None when the log has no
                                  build-sizes line.

    Raises:
        ValueError: If the line exists but does not hold a valid snapshot.
    """
    match = _BUILD_SIZES_RE.search(log)
    if not match:
        return None
    return parse_snapshot(json.loads(match.group(1)))
