"""
Configuration management for otoscope.

This module provides centralized configuration with sensible defaults
that can be overridden by a user config file. The config file is loaded
from (in order of priority):
    1. ./otoscope.yaml (current directory)
    2. ~/.config/otoscope/config.yaml
    3. ~/.otoscope.yaml

JSON files with the same names are accepted as well. All settings have
defaults, so no config file is required.

Usage:
    from otoscope.config import config

    # Access settings
    hop = config['spectrogram']['hop_size']
    preset = config['presets']
"""

import copy
import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def _represent_list(dumper, data):
    """Represent short lists of numbers in flow style [1, 2, 3, 4]."""
    if len(data) <= 5 and all(isinstance(x, (int, float)) for x in data):
        return dumper.represent_sequence('tag:yaml.org,2002:seq', data, flow_style=True)
    return dumper.represent_sequence('tag:yaml.org,2002:seq', data, flow_style=False)


yaml.add_representer(list, _represent_list)


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULTS = {
    # -------------------------------------------------------------------------
    # Spectrogram settings
    # -------------------------------------------------------------------------
    'spectrogram': {
        'window_size': 512,      # Samples per analysis frame
        'hop_size': 256,         # Samples between frame starts
        'show_by_default': False,
    },

    # -------------------------------------------------------------------------
    # View (zoom / pan) settings
    # -------------------------------------------------------------------------
    'view': {
        'viewport_width': 800,   # Default width in pixels
        'min_zoom': 1.0,
        'max_zoom': 128.0,
        'zoom_step': 1.1,        # Multiplier per wheel notch
        'pan_fraction': 0.1,     # Fraction of the visible window per pan step
    },

    # -------------------------------------------------------------------------
    # Marker presets (ms, relative to offset)
    # -------------------------------------------------------------------------
    'presets': {
        'overlap': 120,
        'preutter': 300,
        'consonant': 430,
        'cutoff': -580,
    },

    # -------------------------------------------------------------------------
    # Marker colors (hex strings, used by the offline renderer)
    # -------------------------------------------------------------------------
    'colors': {
        'offset': '#1e3a8a',
        'overlap': '#22c55e',
        'preutter': '#ef4444',
        'consonant': '#ec4899',
        'cutoff': '#60a5fa',
    },

    # -------------------------------------------------------------------------
    # Editor settings
    # -------------------------------------------------------------------------
    'editor': {
        'max_undo': 100,
    },

    # -------------------------------------------------------------------------
    # File I/O settings
    # -------------------------------------------------------------------------
    'io': {
        'default_encoding': 'utf-8',
        'sample_extensions': ['.wav'],
    },

    # -------------------------------------------------------------------------
    # Offline renderer settings
    # -------------------------------------------------------------------------
    'render': {
        'width': 1200,   # Image width in pixels
        'height': 360,   # Image height in pixels
        'dpi': 100,
    },
}


# =============================================================================
# CONFIG LOADING
# =============================================================================

def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _find_config_file() -> Path | None:
    """Find the user's config file, if it exists."""
    candidates = [
        Path('./otoscope.yaml'),
        Path('./otoscope.json'),
        Path.home() / '.config' / 'otoscope' / 'config.yaml',
        Path.home() / '.config' / 'otoscope' / 'config.json',
        Path.home() / '.otoscope.yaml',
        Path.home() / '.otoscope.json',
    ]

    for path in candidates:
        if path.exists():
            return path
    return None


def _load_config_file(path: Path) -> dict:
    """Load configuration from a file."""
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix in ('.yaml', '.yml'):
            return yaml.safe_load(f) or {}
        return json.load(f)


def load_config(config_path: Path | str | None = None) -> dict:
    """
    Load configuration with user overrides.

    Args:
        config_path: Optional explicit path to config file. If provided,
                     this file will be loaded instead of searching default locations.

    Returns a dict with all settings, using defaults for any
    values not specified in the user's config file.
    """
    config = copy.deepcopy(DEFAULTS)

    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning(f"Config file not found: {config_file}")
            return config
    else:
        config_file = _find_config_file()

    if config_file:
        try:
            user_config = _load_config_file(config_file)
            config = _deep_merge(config, user_config)
            logger.info(f"Loaded config from: {config_file}")
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_file}: {e}")

    return config


def save_default_config(path: Path | str):
    """
    Save the default configuration to a file.

    Useful for creating a template config file that users can edit.
    """
    path = Path(path)

    with open(path, 'w', encoding='utf-8') as f:
        if path.suffix in ('.yaml', '.yml'):
            yaml.dump(DEFAULTS, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(DEFAULTS, f, indent=2)


# =============================================================================
# GLOBAL CONFIG INSTANCE
# =============================================================================

config = load_config()


def reload_config(config_path: Path | str | None = None):
    """
    Reload configuration from file.

    The module-level dict is updated in place so that modules holding a
    reference to it see the new values.
    """
    new_config = load_config(config_path)
    config.clear()
    config.update(new_config)


def load_config_from_path(path: Path | str) -> dict:
    """
    Load configuration from a specific file path.

    Args:
        path: Path to the config file (YAML or JSON)

    Returns:
        Merged config dict with defaults

    Raises:
        FileNotFoundError: If the config file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    base_config = copy.deepcopy(DEFAULTS)
    user_config = _load_config_file(path)
    return _deep_merge(base_config, user_config)
