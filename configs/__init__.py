"""Configuration files for the dock simulator."""

import copy
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "default.yaml"
SECTIONS = ("simulation", "workload", "crew", "metrics")


def load_config(config_path: str) -> dict:
    """Load a YAML configuration file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary (empty for an empty file)

    Raises:
        ValueError: If the file holds anything but known sections
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"{config_path}: expected a mapping of sections")
    unknown = sorted(set(config) - set(SECTIONS))
    if unknown:
        raise ValueError(f"{config_path}: unknown sections {unknown} (expected {list(SECTIONS)})")
    return config


def load_default_config() -> dict:
    """Load the bundled defaults; callers may mutate the result."""
    return load_config(str(DEFAULT_CONFIG_PATH))


def merge_configs(base_config: dict, override_config: dict) -> dict:
    """Layer ``override_config`` over ``base_config`` section by section.

    Neither input is modified.
    """
    merged = copy.deepcopy(base_config)
    for key, value in override_config.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
