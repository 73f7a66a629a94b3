from __future__ import annotations

"""
Configuration Validation Service.

Gatekeeper between untrusted configuration (CLI flags, JSON files) and
the pipeline. Coerces types, injects defaults and rejects an invalid
rename pattern at configuration time, before any build is read.
"""

import logging
import math
from typing import Any, Dict, List, Tuple

from sizetree.core.analysis.rename_pattern import validate_find_renamed_pattern
from sizetree.domain import constants as const
from sizetree.domain.config import LOG_LEVELS, get_default_config
from sizetree.domain.errors import ConfigError

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a configuration dictionary.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raise ConfigError on any mismatch instead of
                coercing and collecting a warning.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized configuration and
                                          a list of warnings.

    Raises:
        ConfigError: In strict mode on any invalid value, and in every mode
                     for an invalid `find_renamed` pattern.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise ConfigError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(config)

    string_fields = ["find_renamed", "include", "exclude", "types", "log_level", "log_file"]
    number_fields = ["min_size", "progress_interval"]

    for field in string_fields:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in number_fields:
        merged[field] = _as_number(merged.get(field), defaults[field], field, warnings, strict)

    merged["depth"] = _as_depth(merged.get("depth"), defaults["depth"], warnings, strict)

    # Domain-specific normalization
    merged["types"] = _normalize_types(merged["types"], warnings, strict)
    merged["log_level"] = _normalize_log_level(merged["log_level"], warnings, strict)

    # A broken rename pattern is always fatal.
    if merged["find_renamed"]:
        validate_find_renamed_pattern(merged["find_renamed"])

    for w in warnings:
        logger.warning(w)
    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _fail(msg: str, warnings: List[str], strict: bool) -> None:
    if strict:
        raise ConfigError(msg)
    warnings.append(f"{msg} Using fallback.")


def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        v = value.strip()
        return v if v else fallback

    _fail(f"Invalid field '{field}': expected str, received {type(value).__name__}.", warnings, strict)
    return fallback


def _as_number(value: Any, fallback: float, field: str, warnings: List[str], strict: bool) -> float:
    """Coerce numbers and numeric strings into a non-negative float."""
    if value is None:
        return fallback

    number = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    elif isinstance(value, str) and not strict:
        try:
            number = float(value.strip())
            warnings.append(f"Field '{field}' converted from '{value}' to {number:g}.")
        except ValueError:
            number = None

    if number is None or math.isnan(number) or number < 0:
        _fail(f"Invalid field '{field}': expected a non-negative number, received {value!r}.", warnings, strict)
        return fallback
    return number


def _as_depth(value: Any, fallback: int, warnings: List[str], strict: bool) -> float:
    """Depth is a non-negative integer, or infinity for the whole tree."""
    if isinstance(value, str) and value.strip().lower() in ("inf", "all"):
        return math.inf
    depth = _as_number(value, fallback, "depth", warnings, strict)
    return depth if math.isinf(depth) else int(depth)


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: DOMAIN NORMALIZATION
# -----------------------------------------------------------------------------

def _normalize_types(types: str, warnings: List[str], strict: bool) -> str:
    """Keep known symbol type codes only, deduplicated, in input order."""
    out: List[str] = []
    for type_char in types:
        if type_char in (",", " "):
            continue
        if type_char not in const.SYMBOL_TYPE_SET:
            msg = f"Unknown symbol type '{type_char}' (expected one of '{const.SYMBOL_TYPES}')."
            if strict:
                raise ConfigError(msg)
            warnings.append(f"{msg} Type discarded.")
            continue
        if type_char not in out:
            out.append(type_char)
    return "".join(out)


def _normalize_log_level(level: str, warnings: List[str], strict: bool) -> str:
    upper = level.upper()
    if upper in LOG_LEVELS:
        return upper
    _fail(f"Invalid log level '{level}'.", warnings, strict)
    return "INFO"
