# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Configuration and logging helpers for the analysis tools.

Configuration is a JSON file with ``input``, ``filters``, ``processing`` and
``output`` sections. Missing keys fall back to DEFAULT_CONFIG; command-line
arguments override both.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "input": {"stops_file": None},
    "filters": {
        "start_date": None,
        "end_date": None,
        "races": ["White", "Black", "Hispanic"],
    },
    "processing": {
        "reference_race": "White",
        "age_bins": [15, 25, 35, 50, 65, None],
        "model_predictors": [
            "driver_race",
            "driver_gender",
            "age_group",
            "county_name",
        ],
    },
    "output": {
        "output_dir": "output/analysis",
        "save_config_snapshot": True,
        "save_charts": False,
    },
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If configuration file doesn't exist
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_config_from_args(config_arg: str | None) -> Dict[str, Any]:
    """
    Load configuration from CLI argument if provided.

    Args:
        config_arg: Path to config file from CLI argument (or None)

    Returns:
        Configuration dictionary (empty dict if no config provided)

    Raises:
        FileNotFoundError: If the given config file doesn't exist
    """
    if not config_arg:
        return {}
    config_path = Path(config_arg)
    if not config_path.exists():
        logger.error("Configuration file not found: %s", config_path)
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    return load_config(config_path)


def merge_with_defaults(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill missing configuration keys from DEFAULT_CONFIG.

    Merging is per section: a section given in config_dict only replaces the
    keys it names.

    Args:
        config_dict: User configuration (may be empty)

    Returns:
        New configuration dictionary with every default section present
    """
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in config_dict.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def age_bins_from_config(bins: list) -> list[float]:
    """Convert configured age bins to numbers; a null upper edge means no limit."""
    return [float("inf") if edge is None else float(edge) for edge in bins]


def setup_logging(debug: bool = False, module_names: list[str] | None = None) -> None:
    """
    Configure logging for the analysis tools.

    Args:
        debug: Enable debug-level logging
        module_names: Additional module names to set log level for
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if module_names:
        for module_name in module_names:
            logging.getLogger(module_name).setLevel(log_level)
