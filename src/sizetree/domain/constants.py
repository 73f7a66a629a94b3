from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes the compact wire keys, node type codes, symbol flags and
protocol constants shared by the tree builder, the transformer and the
worker protocol.
"""

from typing import Dict, FrozenSet, Tuple

APP_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# COMPACT WIRE KEYS (FileEntry / SymbolEntry)
# -----------------------------------------------------------------------------

KEY_SOURCE_PATH = "p"
KEY_FILE_SYMBOLS = "s"
KEY_SYMBOL_NAME = "n"
KEY_SIZE = "b"
KEY_TYPE = "t"
KEY_COUNT = "u"
KEY_FLAGS = "f"
KEY_NUM_ALIASES = "a"

# -----------------------------------------------------------------------------
# NODE TYPE CODES
# -----------------------------------------------------------------------------

CONTAINER_DIRECTORY = "D"
CONTAINER_FILE = "F"
CONTAINER_JAVA_CLASS = "J"
CONTAINER_TYPE_SET: FrozenSet[str] = frozenset(
    (CONTAINER_DIRECTORY, CONTAINER_FILE, CONTAINER_JAVA_CLASS)
)

CODE_SYMBOL_TYPE = "t"
DEX_METHOD_SYMBOL_TYPE = "m"
DEX_SYMBOL_TYPE = "x"
OTHER_SYMBOL_TYPE = "o"
BSS_SYMBOL_TYPE = "b"

# Ordered: the default type filter iterates this string.
SYMBOL_TYPES = "bdrtRxmopP"
SYMBOL_TYPE_SET: FrozenSet[str] = frozenset(SYMBOL_TYPES)

SYMBOL_TYPE_DESCRIPTIONS: Dict[str, str] = {
    "b": ".bss",
    "d": ".data and .data.*",
    "r": ".rodata",
    "t": ".text",
    "R": ".data.rel.ro",
    "x": "Dex non-method entries",
    "m": "Dex methods",
    "o": "Other entries",
    "p": "Locale Pak Entries",
    "P": "Non-Locale Pak Entries",
}

# -----------------------------------------------------------------------------
# SYMBOL FLAGS
# -----------------------------------------------------------------------------

FLAG_ANONYMOUS = 1 << 0
FLAG_STARTUP = 1 << 1
FLAG_UNLIKELY = 1 << 2
FLAG_REL = 1 << 3
FLAG_REL_LOCAL = 1 << 4
FLAG_GENERATED_SOURCE = 1 << 5
FLAG_CLONE = 1 << 6
FLAG_HOT = 1 << 7
FLAG_COVERAGE = 1 << 8
FLAG_UNCOMPRESSED = 1 << 9

# -----------------------------------------------------------------------------
# TREE AND PROTOCOL CONSTANTS
# -----------------------------------------------------------------------------

PATH_SEP = "/"

# Directory created to hold symbols whose file path is empty.
NO_NAME = "(No path)"

# Query-string key holding the symbol type filter.
TYPE_STATE_KEY = "type"

# Sentinel input telling the worker to read from the `load_url` option.
FROM_URL_INPUT = "from-url://"

# Message id reserved for unsolicited progress messages.
PROGRESS_MESSAGE_ID = 0
DEFAULT_PROGRESS_INTERVAL = 0.5

# -----------------------------------------------------------------------------
# SNAPSHOT CONSTANTS
# -----------------------------------------------------------------------------

BUILD_SIZES_PREFIX = "=== BUILD SIZES: "

# Suffix rewrites applied, in order, when merging sibling artifacts.
DERIVATIVE_SUFFIXES: Tuple[Tuple[str, str], ...] = (
    (".gz", ""),
    (".map", ""),
    (".d.ts", ".js"),
)

GZIP_SYMBOL_SUFFIX = ".gz"
