#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("capstan")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_capstan_home() -> Path:
    """Directory holding capstan's configuration and default repository."""
    return Path.home() / '.capstan'


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. CAPSTAN_CONFIG environment variable
    2. ~/.capstan/config.{json,toml,yaml,yml}
    """
    # Check for environment variable override
    if os.environ.get('CAPSTAN_CONFIG'):
        path = Path(os.environ['CAPSTAN_CONFIG']).expanduser()
        if path.exists():
            return path
        logger.debug(f"CAPSTAN_CONFIG points at missing file {path}, ignoring")

    capstan_dir = get_capstan_home()
    for filename in CONFIG_FILENAMES:
        path = capstan_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return capstan_dir / 'config.yaml'


def get_default_config():
    """Get default configuration."""
    return {
        "repository": {
            "root": "",  # Empty means $CAPSTAN_ROOT or ~/.capstan/repository
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


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

            if not isinstance(file_config, dict):
                raise ValueError("top-level value must be a mapping")

            # Merge file config with defaults
            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config):
    """Save configuration to file."""
    config_path = get_config_path()

    # Create directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    elif config_path.suffix.lower() in ['.toml']:
        # tomllib is read-only; keep the data and switch to YAML
        config_path = config_path.with_suffix('.yaml')
        logger.warning(f"Cannot write TOML, saving as {config_path}")
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


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
    Environment variables follow the pattern: CAPSTAN_SECTION_KEY
    For example: CAPSTAN_REPOSITORY_ROOT=/srv/images
    """
    env_prefix = "CAPSTAN_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
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
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                if not isinstance(current_level[matched_key], dict):
                    current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # Path conflict: env var is longer than the config key
                break

    return config


def get_section(config, name):
    """A top-level config section; null counts as empty, scalars are rejected."""
    section = config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"{name}: expected a mapping, got {type(section).__name__}")
    return section


def configure_logging(config, debug: bool = False) -> None:
    """Apply the logging section of the configuration to the capstan logger."""
    log_config = get_section(config, 'logging')
    level_name = 'DEBUG' if debug else str(log_config.get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {level_name!r}, using INFO")
        level = logging.INFO
    logger.setLevel(level)

    fmt = log_config.get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def resolve_repository_root(config=None) -> Path:
    """
    Resolve the image repository root once, at startup.

    Order: $CAPSTAN_ROOT (when set and non-empty), the configured
    repository.root, then ~/.capstan/repository.

    Raises:
        ConfigError: the repository section is not a mapping
    """
    env_root = os.environ.get('CAPSTAN_ROOT', '')
    if env_root:
        return Path(env_root)

    if config is None:
        config = load_config()
    section = get_section(config, 'repository')
    configured = section.get('root') or ''
    if configured:
        return Path(os.path.expanduser(str(configured)))

    return get_capstan_home() / 'repository'
