from __future__ import annotations

"""
Size Tree Builder.

Builds a directory -> file -> symbol tree from a stream of file entries.
Ancestor sizes, per-type statistics and dominant types are updated in
place on every attach, so a partially built tree can be formatted and
shown while the stream is still being consumed.
"""

import logging
import re
from typing import Callable, Dict, List, Optional

from sizetree.domain import constants as const
from sizetree.domain.snapshot_models import FileEntry
from sizetree.domain.tree_models import ChildStats, TreeNode

logger = logging.getLogger(__name__)

FilterTest = Callable[[TreeNode], bool]
GetPath = Callable[[FileEntry], str]

_JAVA_FILE_MARKER = ".java:"

# -----------------------------------------------------------------------------
# PATH HELPERS
# -----------------------------------------------------------------------------

def last_index_of(path: str, sep: str) -> int:
    """Return the last index of either "/" or `sep` in `path`, or -1."""
    if sep == const.PATH_SEP:
        return path.rfind(const.PATH_SEP)
    return max(path.rfind(sep), path.rfind(const.PATH_SEP))


def dirname(path: str, sep: str) -> str:
    """Return the full path of the folder containing `path`."""
    index = last_index_of(path, sep)
    return path[:index] if index > 0 else ""


def get_source_path(entry: FileEntry) -> str:
    return entry.source_path


def _size_sort_key(node: TreeNode):
    return -abs(node.size)

# -----------------------------------------------------------------------------
# TREE BUILDER
# -----------------------------------------------------------------------------

class TreeBuilder:
    """
    Incrementally assembles a size tree.

    Add each file with `add_file_entry()`, then call `build()` to finalize
    the tree. The in-progress tree is reachable through `root_node`.
    """

    def __init__(
            self,
            get_path: GetPath = get_source_path,
            filter_test: Optional[FilterTest] = None,
            sep: str = const.PATH_SEP,
    ) -> None:
        """
        Args:
            get_path: Returns the id path of a file entry.
            filter_test: Predicate each symbol node must pass to be attached.
            sep: Path separator used to find parent names, in addition to "/".
        """
        self._get_path = get_path
        self._filter_test: FilterTest = filter_test or (lambda node: True)
        self._sep = sep or const.PATH_SEP

        # Directory nodes by id path.
        self._parents: Dict[str, TreeNode] = {}
        self._splitter = re.compile(f"[/{re.escape(self._sep)}]")

        self.root_node = TreeNode(
            id_path=self._sep,
            short_name_index=0,
            type=const.CONTAINER_DIRECTORY,
        )

    # -------------------------------------------------------------------------
    # CONSTRUCTION
    # -------------------------------------------------------------------------

    def add_file_entry(self, entry: FileEntry, diff_mode: bool) -> None:
        """
        Create a file node with one leaf per symbol and attach it to the tree.

        Symbols failing the filter are dropped. A file whose symbols were
        all dropped is discarded without creating any directory.

        Args:
            entry: File entry from the data stream.
            diff_mode: Whether two builds are being compared. Symbols without
                       an explicit count default to 0 in diff mode, else 1.
        """
        id_path = self._get_path(entry)
        src_path = entry.source_path
        file_node = TreeNode(
            id_path=id_path,
            src_path=src_path,
            short_name_index=last_index_of(id_path, self._sep) + 1,
            type=const.CONTAINER_FILE,
        )
        default_count = 0 if diff_mode else 1

        for symbol in entry.symbols:
            count = symbol.count if symbol.count is not None else default_count
            symbol_node = TreeNode(
                id_path=f"{id_path}:{symbol.name}",
                src_path=src_path,
                short_name_index=len(id_path) + 1,
                size=symbol.byte_size,
                type=symbol.type,
                num_aliases=symbol.num_aliases,
                flags=symbol.flags,
                child_stats={symbol.type: ChildStats(size=symbol.byte_size, count=count)},
            )
            if self._filter_test(symbol_node):
                self._attach_to_parent(symbol_node, file_node)

        if not file_node.children:
            return

        orphan = file_node
        while orphan.parent is None and orphan is not self.root_node:
            orphan = self._get_or_make_parent_node(orphan)

    def build(self) -> TreeNode:
        """Finalize the tree and return the root node."""
        self._get_path = lambda entry: ""
        self._filter_test = lambda node: False
        self._parents.clear()
        return self.root_node

    def _attach_to_parent(self, node: TreeNode, direct_parent: TreeNode) -> None:
        """
        Link `node` under `direct_parent` and fold its totals into every ancestor.

        Args:
            node: Child node, not yet attached anywhere.
            direct_parent: New parent node.
        """
        direct_parent.children.append(node)
        node.parent = direct_parent

        additional_size = node.size
        additional_stats = list(node.child_stats.items())

        while node.parent is not None:
            parent = node.parent

            for stat_type, stat in additional_stats:
                parent_stat = parent.child_stats.get(stat_type)
                if parent_stat is None:
                    parent_stat = ChildStats()
                    parent.child_stats[stat_type] = parent_stat
                parent_stat.size += stat.size
                parent_stat.count += stat.count

            parent.type = parent.type[0] + self._dominant_type(parent)
            parent.size += additional_size
            node = parent

    @staticmethod
    def _dominant_type(node: TreeNode) -> str:
        """Type with the largest absolute aggregate size; the incumbent wins ties."""
        biggest_type = node.type[1:]
        biggest_size = 0
        incumbent = node.child_stats.get(biggest_type) if biggest_type else None
        if incumbent is not None:
            biggest_size = abs(incumbent.size)

        # Every type is rescanned: a shrinking incumbent can lose to a type that is not being added.
        for stat_type, stat in node.child_stats.items():
            abs_size = abs(stat.size)
            if abs_size > biggest_size:
                biggest_type = stat_type
                biggest_size = abs_size
        return biggest_type

    def _get_or_make_parent_node(self, child_node: TreeNode) -> TreeNode:
        """
        Attach `child_node` to its directory, creating and caching it if missing.

        Returns:
            TreeNode: The parent the child was attached to.
        """
        if child_node.id_path == "":
            parent_path = const.NO_NAME
        else:
            parent_path = dirname(child_node.id_path, self._sep)

        if parent_path == "":
            parent_node = self.root_node
        else:
            parent_node = self._parents.get(parent_path)
            if parent_node is None:
                parent_node = TreeNode(
                    id_path=parent_path,
                    short_name_index=last_index_of(parent_path, self._sep) + 1,
                    type=const.CONTAINER_DIRECTORY,
                )
                self._parents[parent_path] = parent_node

        self._attach_to_parent(child_node, parent_node)
        return parent_node

    # -------------------------------------------------------------------------
    # DEX CLASS GROUPING
    # -------------------------------------------------------------------------

    def _join_dex_method_classes(self, node: TreeNode) -> TreeNode:
        """
        Group dex symbols such as "Controller#get" into class containers.

        A child is treated as a class member when its id path has a "#", or
        when nothing after its short-name start contains a space (a bare
        class has no return or field type). Other children are left as is.

        Args:
            node: A formatted copy of a node. Copies are modified in place.

        Returns:
            TreeNode: The same node, regrouped when it is a dex file node.
        """
        is_file_node = node.type[:1] == const.CONTAINER_FILE
        has_dex = (
            const.DEX_SYMBOL_TYPE in node.child_stats
            or const.DEX_METHOD_SYMBOL_TYPE in node.child_stats
        )
        if not is_file_node or not has_dex or node.children is None:
            return node

        class_containers: Dict[str, TreeNode] = {}
        other_symbols: List[TreeNode] = []

        for child in node.children:
            split_index = child.id_path.rfind("#")
            is_class_node = child.id_path.find(" ", child.short_name_index) == -1

            if not (is_class_node or split_index != -1):
                other_symbols.append(child)
                continue

            class_id_path = child.id_path if split_index == -1 else child.id_path[:split_index]

            # The directory tree already shows the package of .java classes.
            short_name_index = child.short_name_index
            java_index = child.id_path.find(_JAVA_FILE_MARKER)
            if java_index != -1:
                dot_index = class_id_path.rfind(".")
                if dot_index > java_index:
                    short_name_index += dot_index - (java_index + len(_JAVA_FILE_MARKER)) + 1

            class_node = class_containers.get(class_id_path)
            if class_node is None:
                class_node = TreeNode(
                    id_path=class_id_path,
                    src_path=node.src_path,
                    short_name_index=short_name_index,
                    type=const.CONTAINER_JAVA_CLASS,
                )
                class_containers[class_id_path] = class_node

            if split_index != -1:
                child.short_name_index = split_index + 1
            child.parent = None
            self._attach_to_parent(child, class_node)

        node.children = other_symbols
        for class_node in class_containers.values():
            # Pushed directly: the members' stats already count toward `node`.
            class_node.parent = node
            node.children.append(class_node)
        return node

    # -------------------------------------------------------------------------
    # FORMATTING AND LOOKUP
    # -------------------------------------------------------------------------

    def format_node(self, node: TreeNode, depth: float = 1) -> TreeNode:
        """
        Copy a node without its ancestors and with children down to `depth`.

        Deeper levels get `children = None` to mark children that exist but
        were not sent. A node with zero or one child always keeps it, so
        chains of single children expand without another round trip. Each
        kept level is sorted by descending absolute size. The live tree is
        not modified.

        Args:
            node: Node to format.
            depth: Levels of children to keep (may be math.inf).

        Returns:
            TreeNode: The formatted copy.
        """
        live_children = node.children or []
        children: Optional[List[TreeNode]] = None
        if depth > 0 or len(live_children) <= 1:
            children = [self.format_node(child, depth - 1) for child in live_children]
            children.sort(key=_size_sort_key)

        copy = TreeNode(
            id_path=node.id_path,
            short_name_index=node.short_name_index,
            type=node.type,
            src_path=node.src_path,
            size=node.size,
            num_aliases=node.num_aliases,
            flags=node.flags,
            child_stats={
                t: ChildStats(size=s.size, count=s.count) for t, s in node.child_stats.items()
            },
            children=children,
        )
        if children is not None:
            for child in children:
                child.parent = copy
        return self._join_dex_method_classes(copy)

    def find(self, id_path: str) -> Optional[TreeNode]:
        """
        Find a node by walking the tree one short name at a time.

        Args:
            id_path: Directory or file path, or "<file path>:<symbol name>".

        Returns:
            Optional[TreeNode]: The live node, or None if any segment is missing.
        """
        if id_path == self.root_node.id_path:
            return self.root_node

        symbol_index = id_path.find(":")
        if symbol_index > -1:
            path = self._splitter.split(id_path[:symbol_index])
            path.append(id_path[symbol_index + 1:])
        else:
            path = self._splitter.split(id_path)

        # An empty first segment refers to the no-name container.
        if path[0] == "":
            path.insert(0, const.NO_NAME)

        node: Optional[TreeNode] = self.root_node
        for short_name in path:
            node = next((c for c in node.children or [] if c.short_name == short_name), None)
            if node is None:
                return None
        return node
