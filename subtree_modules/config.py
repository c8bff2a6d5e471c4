#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("subtree_modules")

CONFIG_FILENAMES = ['config.yaml', 'config.yml', 'config.json', 'config.toml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. SUBTREE_MODULES_CONFIG environment variable
    2. ~/.subtree-modules/ directory
    """
    if 'SUBTREE_MODULES_CONFIG' in os.environ:
        path = Path(os.environ['SUBTREE_MODULES_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.subtree-modules'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.yaml'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            if isinstance(file_config, dict):
                config = merge_configs(config, file_config)
            else:
                logger.warning(f"Ignoring config at {config_path}: top level is not a mapping")
        except (OSError, ValueError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "modules_directory": "modules",
            "manifest_file": "subtree-modules.yaml",
            "default_ref": "main",
            "max_concurrent_operations": 4,
        },
        "git": {
            "executable": "git",
            "timeout_seconds": 0,  # 0 = rely on git's own timeouts
        },
        "dependencies": {
            "manifest_extension": ".psd1",
            "search_path_env": "PSModulePath",
        },
        "profile": {
            "path": "~/.config/powershell/Microsoft.PowerShell_profile.ps1",
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def configure_logging(config=None, level=None):
    """
    Apply the logging section of the configuration to the package logger.

    Args:
        config: Configuration dict (loads default if None)
        level: Explicit level name, wins over the configured one
    """
    config = config or load_config()
    log_config = config.get('logging', {})
    level_name = (level or log_config.get('level') or 'INFO').upper()
    fmt = log_config.get('format')

    logger.setLevel(getattr(logging, level_name, logging.INFO))
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))
    return logger


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: SUBTREE_MODULES_SECTION_KEY
    For example: SUBTREE_MODULES_GIT_EXECUTABLE=/usr/local/bin/git
    """
    env_prefix = "SUBTREE_MODULES_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'SUBTREE_MODULES_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
