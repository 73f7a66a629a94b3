from __future__ import annotations

"""
Network Communication Infrastructure.

Facade over the HTTP clients used to read size reports and build
snapshots from remote locations.
"""

from sizetree.infra.network.common import is_url
from sizetree.infra.network.snapshot_client import fetch_text

__all__ = [
    "fetch_text",
    "is_url",
]
