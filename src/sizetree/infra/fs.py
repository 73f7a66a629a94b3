from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Reads size reports, snapshots and build logs from disk. Failures surface
as StreamError so the entry-stream consumers can report them uniformly.
"""

import logging
import os

from sizetree.domain.errors import StreamError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def normalize_path(path: str) -> str:
    """Expand "~" and environment variables, then make the path absolute."""
    return os.path.abspath(os.path.expandvars(os.path.expanduser(path.strip())))


def read_text_file(path: str) -> str:
    """
    Read a UTF-8 text document.

    Args:
        path: Path to the document.

    Returns:
        str: File contents.

    Raises:
        StreamError: If the file is missing or unreadable.
    """
    full_path = normalize_path(path)
    try:
        with open(full_path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read '{full_path}': {e}")
        raise StreamError(f"Couldn't read {path}: {e}") from e
