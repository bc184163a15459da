"""Tests for the dependency container."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from live_scribe.l1_entities.settings import DEVICE_KEY, build_default_schema
from live_scribe.l3_interface_adapters.gateways.deepgram_transcriber import DeepgramTranscriber
from live_scribe.l3_interface_adapters.gateways.sounddevice_audio_source import SounddeviceDeviceCatalog
from live_scribe.l3_interface_adapters.gateways.yaml_settings_store import YamlSettingsStore
from live_scribe.l4_frameworks_and_drivers.config import build_app_config
from live_scribe.l4_frameworks_and_drivers.container import DependencyContainer
from live_scribe.l4_frameworks_and_drivers.workers.capture_worker import CaptureWorker
from tests.conftest import DEVICE_NAMES, FakeRenderer

STORE_MODULE = 'live_scribe.l3_interface_adapters.gateways.yaml_settings_store'


class TestDependencyContainer:
    def test_creates_default_components(self, tmp_path: Path):
        with patch(f'{STORE_MODULE}.SETTINGS_PATH', tmp_path / 'settings.yaml'):
            container = DependencyContainer(build_app_config({}), DEVICE_NAMES)

        assert isinstance(container.provider, DeepgramTranscriber)
        assert isinstance(container.capture, CaptureWorker)
        assert container.settings.path == tmp_path / 'settings.yaml'
        assert container.settings.select_value(DEVICE_KEY) == DEVICE_NAMES[0]

    def test_given_store_gets_current_device_options(self, tmp_path: Path):
        store = YamlSettingsStore(build_default_schema([]), path=tmp_path / 'settings.yaml')
        container = DependencyContainer(build_app_config({}), DEVICE_NAMES, settings=store)
        options = [opt.value for opt in container.settings.entry(DEVICE_KEY).field.options]
        assert options == DEVICE_NAMES
        assert container.settings.snapshot().device_name == DEVICE_NAMES[0]

    def test_build_controller_wires_capture_errors(self, tmp_path: Path):
        store = YamlSettingsStore(build_default_schema(DEVICE_NAMES), path=tmp_path / 'settings.yaml')
        container = DependencyContainer(build_app_config({}), DEVICE_NAMES, device_index=2, settings=store)

        controller = container.build_controller(FakeRenderer())

        assert container.capture.on_error == controller.report_capture_error
        assert controller.buffer.capacity == 2000

    def test_device_catalog_factory(self):
        assert isinstance(DependencyContainer.device_catalog(), SounddeviceDeviceCatalog)
