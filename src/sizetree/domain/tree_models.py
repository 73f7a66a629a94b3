from __future__ import annotations

"""
Size Tree Data Models.

Provides the node type used by the tree builder. A single mutable node
class carries both containers and symbol leaves; the `kind` property
exposes the tagged variant derived from the first type character.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sizetree.domain import constants as const

# -----------------------------------------------------------------------------
# NODE KINDS
# -----------------------------------------------------------------------------

class NodeKind(str, Enum):
    """Tagged variant of a tree node."""
    DIRECTORY = "directory"
    FILE = "file"
    JAVA_CLASS = "java_class"
    SYMBOL = "symbol"


_KIND_BY_CONTAINER: Dict[str, NodeKind] = {
    const.CONTAINER_DIRECTORY: NodeKind.DIRECTORY,
    const.CONTAINER_FILE: NodeKind.FILE,
    const.CONTAINER_JAVA_CLASS: NodeKind.JAVA_CLASS,
}

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass
class ChildStats:
    """
    Aggregate of a node's descendants of one symbol type.

    Attributes:
        size: Summed byte size (negative when a diff shrank).
        count: Number of symbols.
    """
    size: int = 0
    count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"size": self.size, "count": self.count}


@dataclass(eq=False)
class TreeNode:
    """
    A container (directory, file, java class) or a symbol leaf.

    `children` has three states: None means the children exist but were
    not loaded into this copy, an empty list marks a confirmed leaf, and a
    populated list holds the loaded children.

    Attributes:
        id_path: Unique path of the node. Symbols use "<file path>:<name>".
        short_name_index: Offset into id_path where the display name starts.
        type: Container or symbol type code. Containers append the
              dominant child type as a second character.
        src_path: Source file the node originates from, if known.
        size: Own size for leaves, sum of descendants for containers.
        num_aliases: Number of symbols sharing this size.
        flags: Symbol bit flags.
        child_stats: Per-type rollup of all descendants.
        children: Child nodes (see the three states above).
        parent: Back-reference to the owning container.
    """
    id_path: str
    short_name_index: int
    type: str
    src_path: Optional[str] = None
    size: int = 0
    num_aliases: int = 1
    flags: int = 0
    child_stats: Dict[str, ChildStats] = field(default_factory=dict)
    children: Optional[List["TreeNode"]] = field(default_factory=list)
    parent: Optional["TreeNode"] = field(default=None, repr=False)

    @property
    def short_name(self) -> str:
        return self.id_path[self.short_name_index:]

    @property
    def kind(self) -> NodeKind:
        return _KIND_BY_CONTAINER.get(self.type[:1], NodeKind.SYMBOL)

    @property
    def is_container(self) -> bool:
        return self.kind is not NodeKind.SYMBOL

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the node and its loaded children into plain JSON types.

        The parent reference is never serialized, so the result can cross
        the worker boundary without exposing the live tree.

        Returns:
            Dict[str, Any]: Wire representation of the node.
        """
        children: Optional[List[Dict[str, Any]]] = None
        if self.children is not None:
            children = [child.to_dict() for child in self.children]

        return {
            "idPath": self.id_path,
            "shortNameIndex": self.short_name_index,
            "srcPath": self.src_path,
            "type": self.type,
            "size": self.size,
            "numAliases": self.num_aliases,
            "flags": self.flags,
            "childStats": {t: s.to_dict() for t, s in self.child_stats.items()},
            "children": children,
        }
