from __future__ import annotations

"""
Symbol Filtering Engine.

Parses the filter options of a load request (a query string) into the
predicate the tree builder applies to every symbol node. Supports a
minimum size, a symbol type allow-list and include/exclude regexes
searched against the symbol id path.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Set
from urllib.parse import parse_qs, urlencode

from sizetree.domain import constants as const
from sizetree.domain.tree_models import TreeNode

logger = logging.getLogger(__name__)

SymbolFilter = Callable[[TreeNode], bool]

# -----------------------------------------------------------------------------
# DATA MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FilterOptions:
    """
    Parsed load options.

    Attributes:
        filter_test: Predicate every symbol node must satisfy.
        url: Optional `load_url` to read the data from.
    """
    filter_test: SymbolFilter
    url: Optional[str] = None

# -----------------------------------------------------------------------------
# PATTERN COMPILATION AND MATCHING
# -----------------------------------------------------------------------------

def compile_pattern(pattern: Optional[str]) -> Optional[re.Pattern]:
    """
    Compile a user supplied regex.

    Malformed patterns are discarded instead of failing the whole load.

    Args:
        pattern: Raw regex string, possibly empty.

    Returns:
        Optional[re.Pattern]: Compiled pattern, or None if empty or invalid.
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning(f"Ignoring invalid filter regex '{pattern}': {e}")
        return None


def iter_types(type_values: Iterable[str]) -> Iterator[str]:
    """
    Yield each type character of the "type" query values.

    Types can be repeated keys ("type=b&type=p") or one long value ("type=bp").
    """
    for type_or_types in type_values:
        for type_char in type_or_types:
            yield type_char

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def parse_options(options: str) -> FilterOptions:
    """
    Build the symbol predicate described by a query string.

    Recognized keys: `min_size`, `type`, `include`, `exclude`, `load_url`.

    Args:
        options: Query string without the leading "?".

    Returns:
        FilterOptions: Predicate and optional data URL.
    """
    params = parse_qs(options or "", keep_blank_values=True)

    url = _first(params, "load_url") or None
    min_symbol_size = _as_number(_first(params, "min_size"))

    type_filter: Set[str] = set(iter_types(params.get(const.TYPE_STATE_KEY, [])))
    if not type_filter:
        type_filter = set(const.SYMBOL_TYPE_SET)
        type_filter.discard(const.BSS_SYMBOL_TYPE)

    filters: List[SymbolFilter] = []

    if min_symbol_size > 0:
        filters.append(lambda s: abs(s.size) >= min_symbol_size)

    if len(type_filter) < len(const.SYMBOL_TYPE_SET):
        filters.append(lambda s: s.type in type_filter)

    include_rx = compile_pattern(_first(params, "include"))
    if include_rx is not None:
        filters.append(lambda s: include_rx.search(s.id_path) is not None)

    exclude_rx = compile_pattern(_first(params, "exclude"))
    if exclude_rx is not None:
        filters.append(lambda s: exclude_rx.search(s.id_path) is None)

    def filter_test(symbol_node: TreeNode) -> bool:
        return all(fn(symbol_node) for fn in filters)

    logger.debug(f"Parsed {len(filters)} symbol filter(s) from options '{options}'")
    return FilterOptions(filter_test=filter_test, url=url)


def build_options_query(
        min_size: float = 0,
        types: str = "",
        include: str = "",
        exclude: str = "",
        load_url: str = "",
) -> str:
    """
    Encode filter settings into the query string accepted by `parse_options`.

    Empty settings are omitted.
    """
    pairs = []
    if min_size:
        pairs.append(("min_size", str(min_size)))
    if types:
        pairs.append((const.TYPE_STATE_KEY, "".join(dict.fromkeys(types))))
    if include:
        pairs.append(("include", include))
    if exclude:
        pairs.append(("exclude", exclude))
    if load_url:
        pairs.append(("load_url", load_url))
    return urlencode(pairs)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _first(params, key: str) -> str:
    values = params.get(key)
    return values[0] if values else ""


def _as_number(raw: str) -> float:
    """Numeric value of a query parameter; anything unparsable counts as 0."""
    try:
        value = float(raw) if raw.strip() else 0.0
    except ValueError:
        return 0.0
    return 0.0 if value != value else value
