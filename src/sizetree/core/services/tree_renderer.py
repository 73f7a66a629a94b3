from __future__ import annotations

"""
Size Tree Renderer.

Converts a formatted node (the `to_dict()` wire form) into an ASCII tree.
Children that exist but were not loaded are shown as a single "…" line.
"""

from typing import Any, Dict, List

from sizetree.core.services.change_report import pretty_bytes

UNLOADED_MARKER = "…"

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_size_tree(node: Dict[str, Any], signed: bool = False) -> List[str]:
    """
    Render a formatted node and its loaded descendants.

    Args:
        node: Wire form of a formatted tree node.
        signed: Show sizes with an explicit sign (diff mode).

    Returns:
        List[str]: One line per node, root first.
    """
    lines = [format_node_label(node, signed)]
    render_children(node, lines, signed=signed)
    return lines


def render_children(
        node: Dict[str, Any],
        lines: List[str],
        prefix: str = "",
        signed: bool = False,
) -> None:
    """
    Recursively append the children of `node` to `lines`.

    Uses standard ASCII connectors (├──, └──) and keeps the order the
    children already have (largest first after formatting).

    Args:
        node: Current node in wire form.
        lines: Accumulator list for output strings.
        prefix: Indentation prefix for the current recursion level.
        signed: Show sizes with an explicit sign.
    """
    children = node.get("children")
    if children is None:
        lines.append(f"{prefix}└── {UNLOADED_MARKER}")
        return

    total = len(children)
    for i, child in enumerate(children):
        is_last = (i == total - 1)
        connector = "└── " if is_last else "├── "
        lines.append(f"{prefix}{connector}{format_node_label(child, signed)}")

        # Leaves have nothing below them.
        if child.get("children") == []:
            continue
        new_prefix = prefix + ("    " if is_last else "│   ")
        render_children(child, lines, prefix=new_prefix, signed=signed)


def format_node_label(node: Dict[str, Any], signed: bool = False) -> str:
    """Display line of one node: short name, size and type code."""
    id_path = node.get("idPath", "")
    short_name = id_path[node.get("shortNameIndex", 0):] or id_path
    size = pretty_bytes(node.get("size", 0), signed=signed)
    return f"{short_name} - {size} [{node.get('type', '')}]"
