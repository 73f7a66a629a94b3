from __future__ import annotations

"""
Configuration Domain Management.

Dict-based run configuration for the size tree CLI, persisted as JSON.
Values read from disk are merged over the defaults; validation and type
coercion live in `core.pipeline.validator`.
"""

import json
import logging
import math
import os
from typing import Any, Dict

from sizetree.domain import constants as const
from sizetree.domain.errors import ConfigError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE_NAME = "sizetree.json"
CURRENT_CONFIG_VERSION = "1.0.0"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default run configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Comparison
        "find_renamed": "",

        # Symbol filters
        "min_size": 0,
        "include": "",
        "exclude": "",
        "types": "",

        # Presentation
        "depth": 1,
        "progress_interval": const.DEFAULT_PROGRESS_INTERVAL,

        # Diagnostics
        "log_level": "INFO",
        "log_file": "",
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config(path: str) -> Dict[str, Any]:
    """
    Load a configuration file and merge it over the defaults.

    Args:
        path: JSON configuration file.

    Returns:
        Dict[str, Any]: Merged, not yet validated configuration.

    Raises:
        ConfigError: If the file is missing, unreadable or not a JSON object.
    """
    config = get_default_config()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to load config '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config '{path}' must contain a JSON object.")

    data.pop("version", None)
    unknown = sorted(set(data) - set(config))
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        for key in unknown:
            data.pop(key)

    config.update(data)
    logger.debug(f"Configuration loaded from {path}")
    return config


def save_config(config: Dict[str, Any], path: str) -> None:
    """
    Persist a configuration as JSON, stamped with the schema version.

    Args:
        config: Configuration to save.
        path: Destination file.
    """
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    state = dict(config)
    # An unbounded depth is stored as "inf", which strict JSON can represent.
    if isinstance(state.get("depth"), float) and math.isinf(state["depth"]):
        state["depth"] = "inf"
    state["version"] = CURRENT_CONFIG_VERSION
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state, f, ensure_ascii=False, indent=4)
    logger.debug(f"Configuration saved to {path}")
