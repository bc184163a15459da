"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from live_scribe.l1_entities.config import AppConfig
from live_scribe.l1_entities.settings import DEVICE_KEY, build_default_schema, device_options
from live_scribe.l2_use_cases.ports.audio_source import DeviceCatalog
from live_scribe.l2_use_cases.ports.transcriber import TranscriptionProvider
from live_scribe.l3_interface_adapters.controllers.pipeline_controller import PipelineController
from live_scribe.l3_interface_adapters.gateways.deepgram_transcriber import DeepgramTranscriber
from live_scribe.l3_interface_adapters.gateways.sounddevice_audio_source import (
    SounddeviceAudioSource,
    SounddeviceDeviceCatalog,
)
from live_scribe.l3_interface_adapters.gateways.yaml_settings_store import YamlSettingsStore
from live_scribe.l4_frameworks_and_drivers.workers.capture_worker import CaptureWorker


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(
        self,
        config: AppConfig,
        device_names: list[str],
        *,
        device_index: int | None = None,
        settings: YamlSettingsStore | None = None,
        provider: TranscriptionProvider | None = None,
        capture: CaptureWorker | None = None,
    ) -> None:
        self.config = config
        self.device_names = list(device_names)
        self.device_index = device_index

        if settings is None:
            settings = YamlSettingsStore(build_default_schema(self.device_names))
        else:
            default, options = device_options(self.device_names)
            settings.update_select_options(DEVICE_KEY, options, default)
        self.settings = settings

        self.provider: TranscriptionProvider = provider or DeepgramTranscriber(
            endpoint=config.transcription.endpoint,
            keep_alive_interval=config.transcription.keep_alive_interval,
            finalize_timeout=config.transcription.finalize_timeout,
        )
        self.capture = capture or CaptureWorker(SounddeviceAudioSource, poll_interval=config.audio.poll_interval)

    def build_controller(self, renderer) -> PipelineController:
        controller = PipelineController(
            config=self.config,
            capture=self.capture,
            provider=self.provider,
            settings=self.settings,
            renderer=renderer,
            device_names=self.device_names,
            device_index=self.device_index,
        )
        if self.capture.on_error is None:
            self.capture.on_error = controller.report_capture_error
        return controller

    @staticmethod
    def device_catalog() -> DeviceCatalog:
        return SounddeviceDeviceCatalog()
