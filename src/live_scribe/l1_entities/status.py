"""L1 entity: pipeline status snapshot handed to the renderer."""

from __future__ import annotations

import enum

from pydantic import BaseModel


class ConnectionState(enum.Enum):
    CONNECTING = 'connecting'
    LIVE = 'live'
    DISCONNECTED = 'disconnected'


class PipelineStatus(BaseModel):
    device_name: str = ''
    paused: bool = False
    connection: ConnectionState = ConnectionState.CONNECTING
    language: str = ''
    model: str = ''
    generation: int = 0
    dropped_chunks: int = 0
    error: str = ''
