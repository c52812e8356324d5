"""Utility functions and helpers"""

from .helpers import convert_numpy_types, setup_logging
from .levels import rms_dbfs, dbfs_to_rms, dbfs_to_percent
from .time_utils import format_duration

__all__ = [
    'convert_numpy_types',
    'setup_logging',
    'rms_dbfs',
    'dbfs_to_rms',
    'dbfs_to_percent',
    'format_duration'
]
