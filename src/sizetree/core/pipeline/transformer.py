from __future__ import annotations

"""
Snapshot Transformer.

Converts classified build changes (diff mode) or a single build snapshot
into the flat FileEntry stream consumed by the tree builder. Each artifact
contributes a raw-size symbol and a gzip-size symbol; derivative artifacts
(compressed twins, source maps, type declarations) are merged into the
entry of the file they derive from.
"""

import logging
from collections import OrderedDict
from typing import List, Sequence, Set, Union

from sizetree.domain import constants as const
from sizetree.domain.snapshot_models import (
    BuildChanges,
    FileData,
    FileEntry,
    Meta,
    SymbolEntry,
    TransformResult,
)

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def transform(data: Union[BuildChanges, Sequence[FileData]]) -> TransformResult:
    """
    Transform either classified changes or a single snapshot.

    Args:
        data: BuildChanges for diff mode, or a list of FileData.

    Returns:
        TransformResult: Stream metadata and the merged file entries.
    """
    if isinstance(data, BuildChanges):
        return transform_changes(data)
    return transform_snapshot(data)


def transform_changes(changes: BuildChanges) -> TransformResult:
    """
    Build diff-mode entries with a size delta per artifact.

    New artifacts count positive, deleted ones negative, unchanged ones
    zero, and changed ones by their difference (raw and gzip alike).
    """
    merger = _EntryMerger()

    for data in changes.new_items:
        merger.add(data.path, data.size, data.gzip_size, count=1)
    for data in changes.deleted_items:
        merger.add(data.path, -data.size, -data.gzip_size, count=-1)
    for data in changes.same_items:
        merger.add(data.path, 0, 0, count=1)
    for old_data, new_data in changes.changed_items:
        merger.add(
            new_data.path,
            new_data.size - old_data.size,
            new_data.gzip_size - old_data.gzip_size,
            count=1,
        )

    meta = Meta(total=changes.total, diff_mode=True)
    entries = merger.entries()
    logger.debug(f"Transformed {meta.total} classified item(s) into {len(entries)} entries.")
    return TransformResult(meta=meta, entries=entries)


def transform_snapshot(snapshot: Sequence[FileData]) -> TransformResult:
    """Build single-build entries with the artifact sizes as-is."""
    merger = _EntryMerger()
    for data in snapshot:
        merger.add(data.path, data.size, data.gzip_size, count=1)

    return TransformResult(
        meta=Meta(total=len(snapshot), diff_mode=False),
        entries=merger.entries(),
    )


def canonical_path(path: str) -> str:
    """
    Strip derivative suffixes so sibling artifacts share one path.

    "app.js.gz", "app.js.map" and "app.d.ts" all map to "app.js".
    """
    for suffix, replacement in const.DERIVATIVE_SUFFIXES:
        if path.endswith(suffix) and len(path) > len(suffix):
            path = path[:-len(suffix)] + replacement
    return path


def basename(path: str) -> str:
    return path[path.rfind("/") + 1:]

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

class _EntryMerger:
    """
    Groups symbols by canonical path, keeping first-appearance order.

    A twin such as "app.js.gz" emits a raw-size symbol named like the gzip
    symbol of "app.js"; both are kept. Only a repeated artifact path is
    dropped.
    """

    def __init__(self) -> None:
        self._groups: "OrderedDict[str, List[SymbolEntry]]" = OrderedDict()
        self._seen_paths: Set[str] = set()

    def add(self, path: str, size, gzip_size, count: int) -> None:
        if path in self._seen_paths:
            logger.debug(f"Skipping duplicate artifact '{path}' in merged entry.")
            return
        self._seen_paths.add(path)

        name = basename(path)
        symbols = self._groups.setdefault(canonical_path(path), [])
        symbols.append(SymbolEntry(
            name=name, byte_size=size, type=const.CODE_SYMBOL_TYPE, count=count,
        ))
        symbols.append(SymbolEntry(
            name=name + const.GZIP_SYMBOL_SUFFIX,
            byte_size=gzip_size,
            type=const.OTHER_SYMBOL_TYPE,
            count=count,
        ))

    def entries(self) -> List[FileEntry]:
        return [
            FileEntry(source_path=path, symbols=list(symbols))
            for path, symbols in self._groups.items()
        ]
