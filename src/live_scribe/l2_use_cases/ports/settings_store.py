"""Port: read side of the user settings store."""

from __future__ import annotations

from typing import Protocol

from live_scribe.l1_entities.settings import SettingsSnapshot


class SettingsStore(Protocol):
    """The pipeline only reads snapshots; writes come from explicit user actions in the UI."""

    def snapshot(self) -> SettingsSnapshot:
        """Return the current values as an immutable snapshot."""
        ...
