from __future__ import annotations

"""
Unit tests for Configuration Domain Management.

Verifies JSON persistence, merging over defaults and error handling of
unreadable configuration files.
"""

import json
import math
from pathlib import Path

import pytest

from sizetree.core.pipeline.validator import validate_config
from sizetree.domain.config import (
    CURRENT_CONFIG_VERSION,
    get_default_config,
    load_config,
    save_config,
)
from sizetree.domain.errors import ConfigError


def test_default_config_keys():
    """TC-01: Every documented key has a default."""
    assert set(get_default_config()) == {
        "find_renamed", "min_size", "include", "exclude", "types",
        "depth", "progress_interval", "log_level", "log_file",
    }


def test_save_and_load_round_trip(tmp_path: Path):
    """TC-02: Saved values are merged back over the defaults."""
    path = tmp_path / "nested" / "sizetree.json"
    config = get_default_config()
    config["min_size"] = 512

    save_config(config, str(path))

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["version"] == CURRENT_CONFIG_VERSION
    assert load_config(str(path))["min_size"] == 512


def test_unbounded_depth_is_saved_as_inf(tmp_path: Path):
    """TC-03: An unbounded depth survives a save and reload."""
    path = tmp_path / "deep.json"
    config = get_default_config()
    config["depth"] = math.inf

    save_config(config, str(path))

    assert json.loads(path.read_text(encoding="utf-8"))["depth"] == "inf"
    loaded, _warnings = validate_config(load_config(str(path)))
    assert loaded["depth"] == math.inf


def test_partial_file_keeps_defaults(tmp_path: Path):
    path = tmp_path / "partial.json"
    path.write_text(json.dumps({"include": "dist/", "surprise": True}), encoding="utf-8")

    config = load_config(str(path))

    assert config["include"] == "dist/"
    assert config["depth"] == 1
    assert "surprise" not in config


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "absent.json"))


def test_non_object_document_raises(tmp_path: Path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ConfigError, match="JSON object"):
        load_config(str(path))
