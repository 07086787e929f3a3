"""Configuration module for loading and managing application settings"""
from typing import Dict, Any
from .lib.load_settings_conf import load_settings_conf, validate_settings, SettingsError, DEFAULTS
import os

__all__ = ['settings_conf', 'load_settings_conf', 'is_development_chain', 'SettingsError', 'DEFAULTS']

# Directory holding settings.conf
SETTINGS_PATH = os.environ.get('MARKETPLACE_SETTINGS_PATH', '.')

def is_development_chain(settings: Dict[str, Any]) -> bool:
    """Check whether the configured network is a local development chain."""
    return settings['network'] in settings['development_chains']

try:
    settings_conf: Dict[str, Any] = load_settings_conf(SETTINGS_PATH)
    
except SettingsError as e:
    # Re-raise the error but provide more context
    raise type(e)(
        f"Configuration Error\n"
        "=================\n\n"
        f"{str(e)}\n\n"
        "Please ensure settings.conf is properly configured.\n"
        "See settings.conf.example for the available settings."
    )
