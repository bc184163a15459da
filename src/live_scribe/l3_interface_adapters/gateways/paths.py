"""Shared path constants for configuration, settings and logs."""

from __future__ import annotations

from platformdirs import user_config_path, user_log_path

CONFIG_DIR = user_config_path('live-scribe')
SETTINGS_PATH = CONFIG_DIR / 'settings.yaml'
LOG_DIR = user_log_path('live-scribe')

DEFAULT_CONFIG_PATHS = [
    CONFIG_DIR / 'config.yaml',
    CONFIG_DIR / 'config.yml',
]
