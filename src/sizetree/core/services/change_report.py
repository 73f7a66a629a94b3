from __future__ import annotations

"""
Change Report.

Human readable summary of a build comparison, one line per added,
removed and changed artifact. Sizes are gzip sizes.
"""

import math
from typing import List, Union

from sizetree.domain.snapshot_models import BuildChanges

_BYTE_UNITS = ["B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]

Number = Union[int, float]

# -----------------------------------------------------------------------------
# FORMATTING
# -----------------------------------------------------------------------------

def pretty_bytes(number: Number, signed: bool = False) -> str:
    """
    Format a byte count with decimal (base 1000) units and 3 significant digits.

    Args:
        number: Byte count, possibly negative.
        signed: Prefix positive values with "+" (zero becomes " 0 B").

    Returns:
        str: e.g. "1.5 kB", "+120 B", "-2.3 MB".
    """
    if signed and number == 0:
        return " 0 B"

    if number < 0:
        prefix = "-"
    elif signed:
        prefix = "+"
    else:
        prefix = ""
    number = abs(number)

    if number < 1:
        return f"{prefix}{number:g} B"

    exponent = min(int(math.floor(math.log10(number) / 3)), len(_BYTE_UNITS) - 1)
    value = float(f"{number / 1000 ** exponent:.3g}")
    return f"{prefix}{value:g} {_BYTE_UNITS[exponent]}"


def format_ratio(old_size: Number, new_size: Number) -> str:
    if old_size == 0:
        return "inf"
    return f"{round(new_size / old_size, 3):g}"

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_change_report(changes: BuildChanges) -> List[str]:
    """
    Render a build comparison as report lines.

    Args:
        changes: Classified build changes.

    Returns:
        List[str]: Report lines, "No changes." when nothing was added,
                   removed or changed.
    """
    lines: List[str] = []

    if not changes.new_items and not changes.deleted_items and not changes.changed_items:
        lines.append("No changes.")

    for file in changes.new_items:
        lines.append(f"ADDED   {file.path} - {pretty_bytes(file.gzip_size)}")

    for file in changes.deleted_items:
        lines.append(f"REMOVED {file.path} - was {pretty_bytes(file.gzip_size)}")

    for old_file, new_file in changes.changed_items:
        if old_file.gzip_size == new_file.gzip_size:
            # Renamed only.
            size = f"{pretty_bytes(new_file.gzip_size)} -> no change"
        else:
            size_diff = pretty_bytes(new_file.gzip_size - old_file.gzip_size, signed=True)
            ratio = format_ratio(old_file.gzip_size, new_file.gzip_size)
            size = (
                f"{pretty_bytes(old_file.gzip_size)} -> {pretty_bytes(new_file.gzip_size)}"
                f" ({size_diff}, {ratio}x)"
            )

        lines.append(f"CHANGED {new_file.path} - {size}")
        if old_file.path != new_file.path:
            lines.append(f"  Renamed from: {old_file.path}")

    return lines
