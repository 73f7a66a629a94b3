from __future__ import annotations

"""
Unit tests for the Configuration Validation Service.

Verifies:
1. Default injection and type coercion in lenient mode.
2. ConfigError in strict mode.
3. Rename patterns and symbol types are validated at configuration time.
"""

import math

import pytest

from sizetree.core.pipeline.validator import validate_config
from sizetree.domain.config import get_default_config
from sizetree.domain.errors import ConfigError


def test_defaults_are_valid():
    """TC-01: The default configuration passes without warnings."""
    clean, warnings = validate_config(get_default_config(), strict=True)

    assert warnings == []
    assert clean == get_default_config()


def test_non_dict_falls_back_to_defaults():
    clean, warnings = validate_config(["not", "a", "dict"])

    assert clean == get_default_config()
    assert warnings and "expected dict" in warnings[0]


def test_non_dict_raises_in_strict_mode():
    with pytest.raises(ConfigError):
        validate_config("nope", strict=True)


def test_numeric_strings_are_coerced():
    """TC-02: CLI style strings become numbers with a warning."""
    clean, warnings = validate_config({"min_size": "250", "progress_interval": "0.1"})

    assert clean["min_size"] == 250.0
    assert clean["progress_interval"] == 0.1
    assert len(warnings) == 2


def test_negative_numbers_use_fallback():
    clean, warnings = validate_config({"min_size": -5})

    assert clean["min_size"] == 0
    assert any("min_size" in w for w in warnings)


def test_depth_accepts_integers_and_infinity():
    assert validate_config({"depth": 3})[0]["depth"] == 3
    assert validate_config({"depth": "2"})[0]["depth"] == 2
    assert math.isinf(validate_config({"depth": "inf"})[0]["depth"])


def test_types_are_normalized():
    """TC-03: Unknown type codes are dropped and duplicates removed."""
    clean, warnings = validate_config({"types": "t, o, t, z"})

    assert clean["types"] == "to"
    assert any("'z'" in w for w in warnings)


def test_unknown_type_raises_in_strict_mode():
    with pytest.raises(ConfigError):
        validate_config({"types": "z"}, strict=True)


def test_log_level_is_upper_cased():
    clean, _ = validate_config({"log_level": "debug"})

    assert clean["log_level"] == "DEBUG"


def test_invalid_string_type_raises_in_strict_mode():
    with pytest.raises(ConfigError, match="include"):
        validate_config({"include": 42}, strict=True)


def test_invalid_rename_pattern_always_raises():
    """TC-04: A bad rename pattern is fatal even in lenient mode."""
    with pytest.raises(ConfigError):
        validate_config({"find_renamed": "/abs/[name].js"})
    with pytest.raises(ConfigError):
        validate_config({"find_renamed": "dist/[chunk].js"})


def test_valid_rename_pattern_is_kept():
    clean, _ = validate_config({"find_renamed": "  dist/[name]-[hash][extname] "})

    assert clean["find_renamed"] == "dist/[name]-[hash][extname]"
