"""Configuration management."""

import copy
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML or JSON file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            return yaml.safe_load(f) or {}
        elif path.suffix.lower() == '.json':
            return json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        'scheduling': {
            'working_days': [0, 1, 2, 3, 4],  # Monday to Friday
        },
        'logging': {
            'level': 'INFO',
            'file': None,
        },
        'generator': {
            'milestone_count': 4,
            'tasks_per_milestone': 5,
            'max_duration_days': 10,
            'dependency_probability': 0.35,
            'cross_milestone_probability': 0.2,
        },
    }


def merge_config(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Deep-merge `override` on top of `base` without mutating either."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config_or_default(config_path: Optional[str]) -> Dict[str, Any]:
    """Load a config file merged over the defaults, or just the defaults if no file exists."""
    defaults = get_default_config()
    if not config_path or not Path(config_path).exists():
        return defaults
    return merge_config(defaults, load_config(config_path))
