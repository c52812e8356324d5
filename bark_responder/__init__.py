"""Bark Responder - real-time bark detection with calming-sound playback

Listens to the microphone, classifies loudness spikes into configurable bark
levels, plays a calming recording per level and summarizes each listening
session into a report.
"""

__version__ = "1.0.0"
__author__ = "Bark Responder Project"

# Main components for easy importing
from .core.classifier import ThresholdConfig, classify
from .core.models import BarkEvent, ListeningSession, Report, Recording, ThresholdLevel
from .core.monitor import BarkMonitor, MonitorCallbacks
from .core.service import ListeningService
from .reports.aggregator import summarize
from .reports.history import ReportHistory
from .recording.library import RecordingLibrary

__all__ = [
    'ThresholdConfig',
    'classify',
    'BarkEvent',
    'ListeningSession',
    'Report',
    'Recording',
    'ThresholdLevel',
    'BarkMonitor',
    'MonitorCallbacks',
    'ListeningService',
    'summarize',
    'ReportHistory',
    'RecordingLibrary'
]
