from __future__ import annotations

"""
Build Change Classifier.

Partitions two build snapshots into new, deleted, unchanged and changed
artifacts, optionally pairing deleted artifacts with new ones through a
rename matcher.
"""

import logging
from typing import Dict, List, Optional, Sequence, Set

from sizetree.core.analysis.rename_pattern import FindRenamed
from sizetree.domain.errors import RenameMismatchError
from sizetree.domain.snapshot_models import BuildChanges, FileData

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def get_changes(
        previous: Sequence[FileData],
        current: Sequence[FileData],
        find_renamed: Optional[FindRenamed] = None,
) -> BuildChanges:
    """
    Classify the difference between two builds.

    Artifacts are paired by path first. Sizes are compared on gzip size.
    The rename pass walks deleted artifacts in previous-build order and
    each accepted rename consumes its new path, so no two deleted
    artifacts can claim the same target.

    Args:
        previous: Snapshot of the older build.
        current: Snapshot of the newer build.
        find_renamed: Optional rename matcher.

    Returns:
        BuildChanges: The classified buckets.

    Raises:
        RenameMismatchError: If the matcher returns a path that is not an
                             unmatched new artifact.
    """
    changes = BuildChanges()

    current_by_path: Dict[str, FileData] = {}
    for entry in current:
        current_by_path.setdefault(entry.path, entry)

    matched: Set[int] = set()
    for old_entry in previous:
        new_entry = current_by_path.get(old_entry.path)
        if new_entry is None:
            changes.deleted_items.append(old_entry)
            continue

        matched.add(id(new_entry))
        if old_entry.gzip_size != new_entry.gzip_size:
            changes.changed_items.append((old_entry, new_entry))
        else:
            changes.same_items.append(new_entry)

    # Entries only present in the new build.
    changes.new_items = [entry for entry in current if id(entry) not in matched]

    if find_renamed is not None:
        _apply_renames(changes, find_renamed)

    logger.debug(
        f"Classified builds: {len(changes.new_items)} new, {len(changes.deleted_items)} deleted, "
        f"{len(changes.same_items)} same, {len(changes.changed_items)} changed."
    )
    return changes

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _apply_renames(changes: BuildChanges, find_renamed: FindRenamed) -> None:
    """Move matched deleted/new pairs into the changed bucket, in place."""
    new_paths: List[str] = [item.path for item in changes.new_items]

    for deleted_item in list(changes.deleted_items):
        result = find_renamed(deleted_item.path, list(new_paths))
        if not result:
            continue
        if result not in new_paths:
            raise RenameMismatchError(f"findRenamed: File isn't part of the new build: {result}")

        new_paths.remove(result)
        changes.deleted_items = [i for i in changes.deleted_items if i is not deleted_item]

        new_index = next(i for i, item in enumerate(changes.new_items) if item.path == result)
        changes.changed_items.append((deleted_item, changes.new_items.pop(new_index)))
        logger.debug(f"Detected rename: {deleted_item.path} -> {result}")
