"""Tests for the sounddevice gateway — patches sd.query_devices and sd.InputStream."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from live_scribe.l1_entities.errors import DeviceEnumerationError, NoInputDevicesError
from live_scribe.l3_interface_adapters.gateways.sounddevice_audio_source import (
    SounddeviceAudioSource,
    SounddeviceDeviceCatalog,
)

MODULE = 'live_scribe.l3_interface_adapters.gateways.sounddevice_audio_source'

_DEVICES = [
    {'name': 'Speakers', 'max_input_channels': 0, 'max_output_channels': 2},
    {'name': 'Built-in Microphone', 'max_input_channels': 1, 'max_output_channels': 0},
    {'name': 'Audio Interface', 'max_input_channels': 8, 'max_output_channels': 8},
]


class TestSounddeviceDeviceCatalog:
    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES)
    def test_lists_input_capable_devices_in_order(self, _mock_qd):
        assert SounddeviceDeviceCatalog().list_input_devices() == ['Built-in Microphone', 'Audio Interface']

    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES[:1])
    def test_no_inputs_raises(self, _mock_qd):
        with pytest.raises(NoInputDevicesError):
            SounddeviceDeviceCatalog().list_input_devices()

    @patch(f'{MODULE}.sd.query_devices', side_effect=RuntimeError('PortAudio not initialized'))
    def test_host_failure_raises_enumeration_error(self, _mock_qd):
        with pytest.raises(DeviceEnumerationError, match='PortAudio'):
            SounddeviceDeviceCatalog().list_input_devices()


class TestSounddeviceAudioSource:
    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES)
    @patch(f'{MODULE}.sd.InputStream')
    def test_open_maps_logical_index_to_host_device(self, mock_stream_cls, _mock_qd):
        mock_stream = MagicMock()
        mock_stream_cls.return_value = mock_stream

        SounddeviceAudioSource().open(1, lambda block: None)

        kwargs = mock_stream_cls.call_args.kwargs
        assert kwargs['device'] == 2
        assert kwargs['samplerate'] == 48000
        assert kwargs['channels'] == 2
        assert kwargs['dtype'] == 'float32'
        mock_stream.start.assert_called_once()

    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES)
    @patch(f'{MODULE}.sd.InputStream')
    def test_mono_device_opens_one_channel(self, mock_stream_cls, _mock_qd):
        SounddeviceAudioSource().open(0, lambda block: None)
        assert mock_stream_cls.call_args.kwargs['device'] == 1
        assert mock_stream_cls.call_args.kwargs['channels'] == 1

    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES)
    @patch(f'{MODULE}.sd.InputStream')
    def test_vanished_device_raises(self, mock_stream_cls, _mock_qd):
        with pytest.raises(DeviceEnumerationError):
            SounddeviceAudioSource().open(5, lambda block: None)
        mock_stream_cls.assert_not_called()

    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES)
    @patch(f'{MODULE}.sd.InputStream')
    def test_callback_forwards_a_copy(self, mock_stream_cls, _mock_qd):
        received: list[np.ndarray] = []
        SounddeviceAudioSource().open(0, received.append)

        callback = mock_stream_cls.call_args.kwargs['callback']
        indata = np.array([[0.1], [0.2]], dtype=np.float32)
        callback(indata, 2, None, None)
        indata[:] = 0.0

        assert len(received) == 1
        np.testing.assert_allclose(received[0], [[0.1], [0.2]], atol=1e-6)

    @patch(f'{MODULE}.sd.query_devices', return_value=_DEVICES)
    @patch(f'{MODULE}.sd.InputStream')
    def test_close_stops_and_closes_stream(self, mock_stream_cls, _mock_qd):
        mock_stream = MagicMock()
        mock_stream_cls.return_value = mock_stream
        src = SounddeviceAudioSource()
        src.open(0, lambda block: None)

        src.close()
        src.close()

        mock_stream.stop.assert_called_once()
        mock_stream.close.assert_called_once()

    def test_close_without_open_is_safe(self):
        SounddeviceAudioSource().close()


class TestDeviceNameResolution:
    """Host order can change after launch; the selected name decides which device opens."""

    _SHIFTED = [
        {'name': 'Headset', 'max_input_channels': 1, 'max_output_channels': 2},
        {'name': 'Mic A', 'max_input_channels': 1, 'max_output_channels': 0},
        {'name': 'Mic B', 'max_input_channels': 2, 'max_output_channels': 0},
    ]

    @patch(f'{MODULE}.sd.InputStream')
    def test_name_wins_when_host_order_shifts(self, mock_stream_cls):
        # selected as index 1 of ['Mic A', 'Mic B'] before a headset was plugged in
        with patch(f'{MODULE}.sd.query_devices', return_value=self._SHIFTED):
            SounddeviceAudioSource().open(1, lambda block: None, 'Mic B')
        assert mock_stream_cls.call_args.kwargs['device'] == 2
        assert mock_stream_cls.call_args.kwargs['channels'] == 2

    @patch(f'{MODULE}.sd.InputStream')
    def test_missing_name_falls_back_to_index(self, mock_stream_cls, caplog):
        with patch(f'{MODULE}.sd.query_devices', return_value=self._SHIFTED), caplog.at_level('WARNING', 'scribe.audio'):
            SounddeviceAudioSource().open(1, lambda block: None, 'Unplugged Mic')
        assert mock_stream_cls.call_args.kwargs['device'] == 1
        assert 'Unplugged Mic' in caplog.text

    @patch(f'{MODULE}.sd.InputStream')
    def test_missing_name_and_index_raises(self, mock_stream_cls):
        with patch(f'{MODULE}.sd.query_devices', return_value=self._SHIFTED):
            with pytest.raises(DeviceEnumerationError, match='Unplugged Mic'):
                SounddeviceAudioSource().open(7, lambda block: None, 'Unplugged Mic')
        mock_stream_cls.assert_not_called()
