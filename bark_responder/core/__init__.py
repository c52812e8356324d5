"""Core bark response components"""

from .models import BarkEvent, ListeningSession, MeteringSample, Report, Recording, ThresholdLevel
from .classifier import ThresholdConfig, classify
from .cooldown import CooldownGate
from .monitor import BarkMonitor, MonitorCallbacks, MonitorState
from .service import ListeningService

__all__ = [
    'BarkEvent', 'ListeningSession', 'MeteringSample', 'Report', 'Recording', 'ThresholdLevel',
    'ThresholdConfig', 'classify', 'CooldownGate',
    'BarkMonitor', 'MonitorCallbacks', 'MonitorState', 'ListeningService'
]
