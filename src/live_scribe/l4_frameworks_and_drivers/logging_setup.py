"""File-based debug logging setup."""

from __future__ import annotations

import logging
from pathlib import Path


def setup_file_logging(log_dir: Path, level: int = logging.DEBUG) -> Path:
    """Send every ``scribe.*`` record to a file; the TUI owns the terminal."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / 'live_scribe.log'
    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
    root = logging.getLogger('scribe')
    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False
    logging.getLogger('scribe.app').info('Logging started → %s', log_path)
    return log_path
