"""Gateway: Deepgram live streaming over websockets — implements TranscriptionProvider port."""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.parse
from collections.abc import AsyncIterator
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosedOK

from live_scribe.l1_entities.audio_constants import ENCODING
from live_scribe.l1_entities.errors import SessionClosedError
from live_scribe.l1_entities.transcript import STREAM_ENDED, TranscriptEvent
from live_scribe.l2_use_cases.audio_channel import AudioChannel
from live_scribe.l2_use_cases.ports.transcriber import SessionOptions
from live_scribe.l2_use_cases.utils.word_joiner import join_words

log = logging.getLogger('scribe.session')

DEEPGRAM_LISTEN_URL = 'wss://api.deepgram.com/v1/listen'

KEEP_ALIVE_MESSAGE = json.dumps({'type': 'KeepAlive'})
FINALIZE_MESSAGE = json.dumps({'type': 'Finalize'})
CLOSE_STREAM_MESSAGE = json.dumps({'type': 'CloseStream'})


def build_listen_url(endpoint: str, sample_rate: int, channels: int, options: SessionOptions) -> str:
    params = {
        'encoding': options.encoding or ENCODING,
        'sample_rate': str(sample_rate),
        'channels': str(channels),
        'diarize': 'true' if options.diarize else 'false',
    }
    if options.language:
        params['language'] = options.language
    if options.model:
        params['model'] = options.model
    return endpoint + '?' + urllib.parse.urlencode(params)


def format_response(raw: dict[str, Any]) -> list[TranscriptEvent]:
    """Decode one provider message into transcript events.

    Consecutive words with the same speaker become one event. A response
    without any speaker metadata yields its whole transcript as one
    speaker-less event. ``Metadata`` marks the end of the stream.
    """
    kind = raw.get('type')
    if kind == 'Metadata':
        return [STREAM_ENDED]
    if kind != 'Results':
        return []

    alternatives = (raw.get('channel') or {}).get('alternatives') or []
    if not alternatives:
        return []
    alternative = alternatives[0]
    words = alternative.get('words') or []

    if not any(word.get('speaker') is not None for word in words):
        transcript = (alternative.get('transcript') or '').strip()
        return [TranscriptEvent(text=transcript)] if transcript else []

    events: list[TranscriptEvent] = []
    tokens: list[str] = []
    current: int | None = None

    def _flush() -> None:
        text = join_words(tokens).strip()
        if text:
            events.append(TranscriptEvent(text=text, speaker_id=current))
        tokens.clear()

    for word in words:
        speaker = word.get('speaker')
        speaker = int(speaker) if speaker is not None else None
        if tokens and speaker != current:
            _flush()
        current = speaker
        token = word.get('punctuated_word') or word.get('word') or ''
        if token:
            tokens.append(token)
    _flush()
    return events


class DeepgramSession:
    """One live connection. ``run`` owns the socket for its whole lifetime."""

    def __init__(
        self,
        url: str,
        api_key: str | None,
        events: asyncio.Queue[TranscriptEvent],
        *,
        keep_alive_interval: float = 3.0,
        finalize_timeout: float = 5.0,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._events = events
        self._keep_alive_interval = keep_alive_interval
        self._finalize_timeout = finalize_timeout
        self._ws: Any = None
        self._closing = False
        self._ended = False

    @property
    def closed(self) -> bool:
        return self._ws is None or self._closing

    async def run(self, audio: AudioChannel) -> None:
        if not self._api_key:
            log.error('No Deepgram API key; set one in settings or export DEEPGRAM_API_KEY')
            self._end()
            return
        try:
            async with websockets.connect(
                self._url,
                additional_headers={'Authorization': f'Token {self._api_key}'},
                max_size=None,
            ) as ws:
                self._ws = ws
                log.info('Connected to %s', self._url.split('?', 1)[0])
                await self._pump(ws, audio)
        except asyncio.CancelledError:
            log.info('Transcription session aborted')
            raise
        except Exception as e:  # noqa: BLE001 -- connection and protocol failures end the session
            log.error('Transcription session error: %s', e, exc_info=True)
        finally:
            self._ws = None
            self._closing = True
            self._end()

    async def _pump(self, ws: Any, audio: AudioChannel) -> None:
        """Wait on whichever of keep-alive, audio and receive is ready; pending waits carry over."""
        loop = asyncio.get_running_loop()
        keep_alive_task: asyncio.Task | None = asyncio.create_task(asyncio.sleep(self._keep_alive_interval))
        audio_task: asyncio.Task | None = asyncio.create_task(audio.get())
        recv_task: asyncio.Task = asyncio.create_task(ws.recv())
        deadline: float | None = None
        try:
            while True:
                waiting = {t for t in (keep_alive_task, audio_task, recv_task) if t is not None}
                timeout = None if deadline is None else max(deadline - loop.time(), 0.0)
                done, _ = await asyncio.wait(waiting, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
                if not done:
                    log.warning('Stream not closed by provider within %ss of finalize', self._finalize_timeout)
                    return

                if recv_task in done:
                    try:
                        raw = recv_task.result()
                    except ConnectionClosedOK:
                        log.info('Provider closed the stream')
                        return
                    if self._handle_message(raw):
                        return
                    recv_task = asyncio.create_task(ws.recv())

                if audio_task is not None and audio_task in done:
                    chunk = audio_task.result()
                    if chunk is None:
                        await self.finalize()
                        audio_task = None
                        deadline = loop.time() + self._finalize_timeout
                        if keep_alive_task is not None:
                            keep_alive_task.cancel()
                            keep_alive_task = None
                    else:
                        await self.push(chunk)
                        audio_task = asyncio.create_task(audio.get())

                if keep_alive_task is not None and keep_alive_task in done:
                    await self.keep_alive()
                    keep_alive_task = asyncio.create_task(asyncio.sleep(self._keep_alive_interval))
        finally:
            for task in (keep_alive_task, audio_task, recv_task):
                if task is not None and not task.done():
                    task.cancel()

    def _handle_message(self, raw: str | bytes) -> bool:
        """Queue decoded events. Returns True once the provider signalled the end of the stream."""
        if isinstance(raw, bytes):
            return False
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            log.warning('Ignoring non-JSON provider message: %.80s', raw)
            return False
        if payload.get('type') == 'Error' or 'err_code' in payload:
            log.error('Provider error: %s', payload)
        for event in format_response(payload):
            if event.ended:
                log.info('Transcription stream ended')
                return True
            self._events.put_nowait(event)
        return False

    def _end(self) -> None:
        if not self._ended:
            self._ended = True
            self._events.put_nowait(STREAM_ENDED)

    async def push(self, chunk: bytes) -> None:
        if self.closed:
            raise SessionClosedError('transcription session is not open')
        await self._ws.send(chunk)

    async def keep_alive(self) -> None:
        if self._ws is None:
            raise SessionClosedError('transcription session is not open')
        await self._ws.send(KEEP_ALIVE_MESSAGE)

    async def finalize(self) -> None:
        """Flush buffered audio and ask the provider to close once the last results are sent."""
        if self.closed:
            return
        self._closing = True
        await self._ws.send(FINALIZE_MESSAGE)
        await self._ws.send(CLOSE_STREAM_MESSAGE)

    async def close(self) -> None:
        self._closing = True
        if self._ws is not None:
            await self._ws.close()

    async def events(self) -> AsyncIterator[TranscriptEvent]:
        while True:
            event = await self._events.get()
            if event.ended:
                return
            yield event


class DeepgramTranscriber:
    """Creates Deepgram sessions. Opening is free; the socket connects inside ``run``."""

    def __init__(
        self,
        endpoint: str = DEEPGRAM_LISTEN_URL,
        keep_alive_interval: float = 3.0,
        finalize_timeout: float = 5.0,
    ) -> None:
        self._endpoint = endpoint
        self._keep_alive_interval = keep_alive_interval
        self._finalize_timeout = finalize_timeout

    def open(
        self,
        sample_rate: int,
        channels: int,
        options: SessionOptions,
        events: asyncio.Queue[TranscriptEvent],
    ) -> DeepgramSession:
        log.debug('Opening session: language=%s model=%s', options.language, options.model)
        return DeepgramSession(
            build_listen_url(self._endpoint, sample_rate, channels, options),
            options.api_key,
            events,
            keep_alive_interval=self._keep_alive_interval,
            finalize_timeout=self._finalize_timeout,
        )
