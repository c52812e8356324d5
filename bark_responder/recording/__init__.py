"""Calming-sound recording library"""

from .library import RecordingLibrary

__all__ = ['RecordingLibrary']
