"""Infrastructure tuning defaults — lives in L4, not domain."""

from __future__ import annotations

import copy

from live_scribe.l1_entities.config import AppConfig
from live_scribe.l3_interface_adapters.gateways.deepgram_transcriber import DEEPGRAM_LISTEN_URL
from live_scribe.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'transcription': {
        'endpoint': DEEPGRAM_LISTEN_URL,
        'keep_alive_interval': 3.0,
        'finalize_timeout': 5.0,
        'shutdown_timeout': 8.0,
    },
    'audio': {
        'poll_interval': 0.1,
        'queue_max_chunks': 500,
    },
    'ui': {
        'max_messages': 2000,
        'tick_interval': 0.25,
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)
