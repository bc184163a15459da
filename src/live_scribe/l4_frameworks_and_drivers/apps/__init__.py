"""App shell — LiveScribeApp and its renderer adapter."""

from live_scribe.l4_frameworks_and_drivers.apps.app import FrameRenderer, LiveScribeApp

__all__ = ['FrameRenderer', 'LiveScribeApp']
