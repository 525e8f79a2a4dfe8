"""Utility modules for blocktrans."""

from .config_loader import load_config, save_config, get_default_config
from .logger import setup_logger

__all__ = [
    'load_config',
    'save_config',
    'get_default_config',
    'setup_logger',
]
