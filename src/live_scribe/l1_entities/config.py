"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TranscriptionConfig(BaseModel):
    endpoint: str
    keep_alive_interval: float = Field(gt=0)
    finalize_timeout: float
    shutdown_timeout: float


class AudioConfig(BaseModel):
    poll_interval: float = Field(gt=0)
    queue_max_chunks: int = Field(gt=0)


class UiConfig(BaseModel):
    max_messages: int = Field(gt=0)
    tick_interval: float = Field(gt=0)


class AppConfig(BaseModel):
    transcription: TranscriptionConfig
    audio: AudioConfig
    ui: UiConfig
