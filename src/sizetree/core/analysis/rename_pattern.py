from __future__ import annotations

"""
Rename Pattern Compiler.

Turns a hash-busted output pattern such as "static/[name]-[hash][extname]"
into a matcher that pairs a file missing from the latest build with the
new file that replaced it.

Supported placeholders:
- [name]: the file name without extension.
- [extname]: the file extension including the leading dot.
- [hash]: a lowercase hexadecimal content hash.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence

from sizetree.domain.errors import ConfigError

logger = logging.getLogger(__name__)

FindRenamed = Callable[[str, Sequence[str]], Optional[str]]

# -----------------------------------------------------------------------------
# PLACEHOLDER DEFINITIONS
# -----------------------------------------------------------------------------

# Matches a placeholder after re.escape, e.g. "\[name\]".
_PLACEHOLDER_RE = re.compile(r"\\\[(\w+)\\\]")

_REPLACEMENTS: Dict[str, str] = {
    "extname": r"(\.\w+)",
    "hash": r"([a-f0-9]+)",
    "name": r"(.+)",
}

# Placeholders whose captured text may differ between old and new paths.
_VOLATILE_PLACEHOLDERS = frozenset({"hash"})

_FORBIDDEN_PREFIXES = ("/", "./", "../")

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_find_renamed_pattern(pattern: str) -> None:
    """
    Check that a rename pattern is a plain relative path with known placeholders.

    Args:
        pattern: Raw pattern string.

    Raises:
        ConfigError: If the pattern is absolute, starts with "./" or "../",
                     or uses an unknown placeholder.
    """
    _compile(pattern)


def build_find_renamed_func(pattern: str) -> FindRenamed:
    """
    Create a rename matcher from a pattern.

    A missing path matches a candidate when both paths match the pattern
    and every captured placeholder except [hash] is identical.

    Args:
        pattern: Pattern string with [name], [extname] and [hash] placeholders.

    Returns:
        FindRenamed: Function returning the first matching candidate, or None.

    Raises:
        ConfigError: If the pattern is invalid.
    """
    regex, groups = _compile(pattern)
    logger.debug(f"Compiled rename pattern '{pattern}' to '{regex.pattern}'")

    def find_renamed(path: str, new_paths: Sequence[str]) -> Optional[str]:
        old_parts = regex.fullmatch(path)
        if not old_parts:
            return None

        for new_path in new_paths:
            new_parts = regex.fullmatch(new_path)
            if not new_parts:
                continue
            if _same_stable_parts(old_parts, new_parts, groups):
                return new_path
        return None

    return find_renamed

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _compile(pattern: str):
    """Validate the pattern and return its regex plus per-group placeholder tags."""
    if not isinstance(pattern, str) or not pattern:
        raise ConfigError("Rename pattern must be a non-empty string.")
    if pattern.startswith(_FORBIDDEN_PREFIXES):
        raise ConfigError(
            f'Invalid output pattern "{pattern}", cannot be an absolute or relative path.'
        )

    # Group index 0 is the whole match and never compared.
    groups: List[str] = [""]

    def substitute(match: re.Match) -> str:
        placeholder = match.group(1)
        replacement = _REPLACEMENTS.get(placeholder)
        if replacement is None:
            raise ConfigError(f'"{placeholder}" is not a valid substitution name')
        groups.append(placeholder)
        return replacement

    parts = _PLACEHOLDER_RE.sub(substitute, re.escape(pattern))
    return re.compile(parts), groups


def _same_stable_parts(old: re.Match, new: re.Match, groups: List[str]) -> bool:
    for index in range(1, len(groups)):
        if groups[index] in _VOLATILE_PLACEHOLDERS:
            continue
        if old.group(index) != new.group(index):
            return False
    return True
