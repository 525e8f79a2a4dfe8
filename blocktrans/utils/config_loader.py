"""Configuration loading and management."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import load_dotenv


def load_config(config_path: Optional[str] = None, load_env_file: bool = True) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file (defaults to configs/default.yaml)
        load_env_file: Read a ``.env`` file into the environment first

    Returns:
        Configuration dictionary merged over the built-in defaults
    """
    if load_env_file:
        load_dotenv()

    if config_path is None:
        # Try to find default config
        possible_paths = [
            Path("configs/default.yaml"),
            Path(__file__).parent.parent.parent / "configs" / "default.yaml"
        ]

        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break
        else:
            return override_with_env(get_default_config())

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}

    config = merge_config(get_default_config(), loaded)

    # Override with environment variables
    config = override_with_env(config)

    return config


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Output path
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def override_with_env(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Override config with environment variables.

    API keys are not copied here; the credential store reads them from the
    environment directly so they never end up in a saved config file.
    """
    env_mappings = {
        "BLOCKTRANS_DEFAULT_PROVIDER": ["translation", "default_provider"],
        "BLOCKTRANS_SOURCE_LANGUAGE": ["translation", "source_language"],
        "BLOCKTRANS_STORAGE_DIR": ["storage", "directory"],
        "BLOCKTRANS_DOCUMENTS_DIR": ["storage", "documents_directory"],
    }

    for env_var, path in env_mappings.items():
        value = os.getenv(env_var)
        if value:
            current = config
            for key in path[:-1]:
                if key not in current:
                    current[key] = {}
                current = current[key]
            current[path[-1]] = value

    return config


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "translation": {
            "default_provider": "openai",
            "source_language": "ja",
            "max_tokens": 2000,
            "temperature": 0.0,
            "timeout": 60,
            "max_retries": 2,
            "translatable_blocks_only": False,
            "translate_html_alt": True
        },
        "providers": {
            "openai": {"model": "gpt-3.5-turbo"},
            "claude": {"model": "claude-3-haiku-20240307"},
            "deepseek": {"model": "deepseek-chat"}
        },
        "limits": {
            "daily": 100,
            "monthly": 3000
        },
        "comparison": {
            "ttl_seconds": 86400
        },
        "storage": {
            "directory": ".cache/blocktrans",
            "documents_directory": "documents"
        },
        "license": {
            "expiry_date": None,
            "expiry_preset_days": 30
        },
        "logging": {
            "level": "INFO",
            "file": None
        },
        "api_keys": {}
    }
