"""Logging setup and JSON helpers"""

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional, Union

import numpy as np

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_CHANNELS = ('listening', 'reports')
DEFAULT_LOGS_DIR = 'logs'


def convert_numpy_types(obj):
    """Replace numpy scalars and arrays with plain Python values so ``json`` can write them.

    Non-finite floats become None.
    """
    if isinstance(obj, dict):
        return {key: convert_numpy_types(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return type(obj)(convert_numpy_types(item) for item in obj)
    if isinstance(obj, np.ndarray):
        return convert_numpy_types(obj.tolist())
    if isinstance(obj, np.floating):
        value = float(obj)
        return value if np.isfinite(value) else None
    if isinstance(obj, np.generic):
        return obj.item()
    return obj


def resolve_logs_dir(logs_dir: Optional[Union[str, Path]] = None, config: Optional[object] = None) -> Path:
    """Pick the logs directory: explicit argument, then ``config.output.logs_dir``, then ``logs``.

    Relative paths are taken from the current working directory and the
    directory is created if needed.

    Raises:
        ValueError: the directory can not be created or written to
    """
    candidate = logs_dir
    if not candidate and config is not None:
        candidate = getattr(getattr(config, 'output', None), 'logs_dir', None)

    path = Path(candidate or DEFAULT_LOGS_DIR)
    if not path.is_absolute():
        path = Path.cwd() / path

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ValueError(f"Invalid logs directory '{path}': {e}") from e
    if not os.access(path, os.W_OK):
        raise ValueError(f"Invalid logs directory '{path}': not writable")
    return path


def channel_log_path(logs_dir: Union[str, Path], channel: str,
                     day: Optional[date] = None, use_date_folders: bool = True) -> Path:
    """Log file for a channel, e.g. ``logs/2025-09-27/2025-09-27_listening.log``.

    Without date folders the file is ``logs/bark_responder_<channel>.log``.
    """
    if not use_date_folders:
        return Path(logs_dir) / f"bark_responder_{channel}.log"
    stamp = (day or date.today()).strftime('%Y-%m-%d')
    return Path(logs_dir) / stamp / f"{stamp}_{channel}.log"


def setup_logging(
    channel: str = 'listening',
    config: Optional[object] = None,
    logs_dir: Optional[Union[str, Path]] = None,
    use_date_folders: bool = True,
    level: int = logging.INFO,
    minimal: bool = False
) -> logging.Logger:
    """
    Route root logging to the console and to the channel's log file.

    Channels:
        listening: real-time monitoring, calming-sound playback, session reports
        reports: report history, PDF export, level and recording edits

    Args:
        channel: One of LOG_CHANNELS
        config: Configuration object to read ``output.logs_dir`` from
        logs_dir: Overrides the configured logs directory
        use_date_folders: Group files by day (default: True)
        level: Root logging level
        minimal: Console only, for early startup before config is loaded

    Returns:
        logging.Logger: Logger for this module

    Raises:
        ValueError: unknown channel or unusable logs directory
    """
    handlers = [logging.StreamHandler()]

    if not minimal:
        if channel not in LOG_CHANNELS:
            raise ValueError(f"Unknown logging channel '{channel}' (expected one of: {', '.join(LOG_CHANNELS)})")
        log_path = channel_log_path(resolve_logs_dir(logs_dir, config), channel,
                                    use_date_folders=use_date_folders)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_path))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return logging.getLogger(__name__)
