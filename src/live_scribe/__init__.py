"""live-scribe -- terminal live transcription with speaker-attributed, editable history."""

__version__ = '0.3.0'
