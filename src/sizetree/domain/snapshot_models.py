from __future__ import annotations

"""
Snapshot and Entry-Stream Data Models.

Defines the records exchanged between the history provider, the change
classifier, the snapshot transformer and the tree builder: build snapshot
items, classification buckets, stream metadata and the compact per-file
symbol records.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sizetree.domain import constants as const
from sizetree.domain.errors import EntryFormatError

Number = Union[int, float]

# -----------------------------------------------------------------------------
# FIELD HELPERS
# -----------------------------------------------------------------------------

def _require(raw: Mapping[str, Any], key: str, expected: Any, record: str) -> Any:
    """Fetch a mandatory field and check its type."""
    if key not in raw:
        raise EntryFormatError(f"{record}: missing required field '{key}'.")
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, expected):
        raise EntryFormatError(
            f"{record}: field '{key}' has invalid type {type(value).__name__}."
        )
    return value


def _optional_int(raw: Mapping[str, Any], key: str, default: int, record: str) -> int:
    if key not in raw:
        return default
    return _require(raw, key, (int, float), record)

# -----------------------------------------------------------------------------
# BUILD SNAPSHOTS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FileData:
    """
    One output artifact of a single build.

    Attributes:
        path: Artifact path relative to the build output.
        size: Raw size in bytes.
        gzip_size: Gzip-compressed size in bytes.
        name: Optional chunk name.
    """
    path: str
    size: Number
    gzip_size: Number
    name: str = ""

    @classmethod
    def from_dict(cls, raw: Any) -> "FileData":
        if not isinstance(raw, Mapping):
            raise EntryFormatError(f"FileData: expected an object, received {type(raw).__name__}.")
        gzip_key = "gzip_size" if "gzip_size" in raw else "gzipSize"
        return cls(
            path=_require(raw, "path", str, "FileData"),
            size=_require(raw, "size", (int, float), "FileData"),
            gzip_size=_require(raw, gzip_key, (int, float), "FileData"),
            name=str(raw.get("name") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"path": self.path, "size": self.size, "gzipSize": self.gzip_size}
        if self.name:
            out["name"] = self.name
        return out


def parse_snapshot(raw: Any) -> List[FileData]:
    """
    Convert a decoded JSON build-size list into FileData records.

    Args:
        raw: Decoded JSON value, expected to be a list of objects.

    Returns:
        List[FileData]: Parsed snapshot in input order.
    """
    if not isinstance(raw, list):
        raise EntryFormatError(f"Snapshot: expected a list, received {type(raw).__name__}.")
    return [FileData.from_dict(item) for item in raw]


@dataclass
class BuildChanges:
    """
    Classification of two build snapshots.

    Attributes:
        new_items: Artifacts only present in the current build.
        deleted_items: Artifacts only present in the previous build.
        same_items: Current-build artifacts whose gzip size did not change.
        changed_items: (previous, current) artifact pairs in detection order,
                       including detected renames. Equal records stay
                       separate pairs.
    """
    new_items: List[FileData] = field(default_factory=list)
    deleted_items: List[FileData] = field(default_factory=list)
    same_items: List[FileData] = field(default_factory=list)
    changed_items: List[Tuple[FileData, FileData]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.new_items)
            + len(self.deleted_items)
            + len(self.same_items)
            + len(self.changed_items)
        )

    @property
    def is_empty(self) -> bool:
        """True when nothing was added, removed or changed."""
        return not (self.new_items or self.deleted_items or self.changed_items)

# -----------------------------------------------------------------------------
# ENTRY STREAM RECORDS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Meta:
    """First record of every entry stream."""
    total: Number
    diff_mode: bool = False

    @classmethod
    def from_dict(cls, raw: Any) -> "Meta":
        if not isinstance(raw, Mapping):
            raise EntryFormatError(f"Meta: expected an object, received {type(raw).__name__}.")
        return cls(
            total=_require(raw, "total", (int, float), "Meta"),
            diff_mode=bool(raw.get("diff_mode", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "diff_mode": self.diff_mode}


@dataclass(frozen=True)
class SymbolEntry:
    """
    Compact symbol record.

    Attributes:
        name: Symbol name.
        byte_size: Byte size of the symbol, divided by num_aliases.
        type: Single-character symbol type.
        count: Number of symbols represented; None uses the mode default.
        flags: Bit flags.
        num_aliases: Number of aliases.
    """
    name: str
    byte_size: Number
    type: str
    count: Optional[int] = None
    flags: int = 0
    num_aliases: int = 1

    @classmethod
    def from_dict(cls, raw: Any) -> "SymbolEntry":
        if not isinstance(raw, Mapping):
            raise EntryFormatError(
                f"SymbolEntry: expected an object, received {type(raw).__name__}."
            )
        count = None
        if const.KEY_COUNT in raw:
            count = _require(raw, const.KEY_COUNT, (int, float), "SymbolEntry")
        return cls(
            name=_require(raw, const.KEY_SYMBOL_NAME, str, "SymbolEntry"),
            byte_size=_require(raw, const.KEY_SIZE, (int, float), "SymbolEntry"),
            type=_require(raw, const.KEY_TYPE, str, "SymbolEntry"),
            count=count,
            flags=_optional_int(raw, const.KEY_FLAGS, 0, "SymbolEntry"),
            num_aliases=_optional_int(raw, const.KEY_NUM_ALIASES, 1, "SymbolEntry"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            const.KEY_SYMBOL_NAME: self.name,
            const.KEY_SIZE: self.byte_size,
            const.KEY_TYPE: self.type,
        }
        if self.count is not None:
            out[const.KEY_COUNT] = self.count
        if self.flags:
            out[const.KEY_FLAGS] = self.flags
        if self.num_aliases != 1:
            out[const.KEY_NUM_ALIASES] = self.num_aliases
        return out


@dataclass(frozen=True)
class FileEntry:
    """A file path and the symbols that belong to it."""
    source_path: str
    symbols: List[SymbolEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Any) -> "FileEntry":
        if not isinstance(raw, Mapping):
            raise EntryFormatError(f"FileEntry: expected an object, received {type(raw).__name__}.")
        symbols = _require(raw, const.KEY_FILE_SYMBOLS, list, "FileEntry")
        return cls(
            source_path=_require(raw, const.KEY_SOURCE_PATH, str, "FileEntry"),
            symbols=[SymbolEntry.from_dict(s) for s in symbols],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            const.KEY_SOURCE_PATH: self.source_path,
            const.KEY_FILE_SYMBOLS: [s.to_dict() for s in self.symbols],
        }


@dataclass(frozen=True)
class TransformResult:
    """Output of the snapshot transformer."""
    meta: Meta
    entries: List[FileEntry]
