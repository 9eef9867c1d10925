"""Utility functions."""

from .config import load_config, load_config_or_default, get_default_config
from .datetime_utils import add_working_days, get_working_days, is_working_day, next_working_day

__all__ = [
    'load_config',
    'load_config_or_default',
    'get_default_config',
    'add_working_days',
    'get_working_days',
    'is_working_day',
    'next_working_day',
]
