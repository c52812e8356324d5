"""Microphone capture and sound playback"""

from .capture import MicrophoneCapture, CaptureHandle
from .playback import SoundPlayer, SoundHandle

__all__ = ['MicrophoneCapture', 'CaptureHandle', 'SoundPlayer', 'SoundHandle']
