"""Core data models for the bark response engine"""

import random
import string
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional, Dict, Any

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Generate a unique identifier of the form '<epoch-ms>-<9 base36 chars>'."""
    suffix = ''.join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


def _parse_datetime(value) -> Optional[datetime]:
    """Accept either a datetime or an ISO 8601 string."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class ThresholdLevel:
    """A configured loudness boundary (dBFS) for one bark level."""
    id: str
    name: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ThresholdLevel':
        return cls(id=str(data['id']), name=str(data['name']), value=float(data['value']))


@dataclass(frozen=True)
class MeteringSample:
    """One tick from the capture facility."""
    is_capturing: bool
    metering_level: float  # dBFS
    timestamp: datetime


@dataclass(frozen=True)
class BarkEvent:
    """A detected loudness spike and the response that was attempted."""
    id: str
    timestamp: datetime
    raw_level: float  # dBFS as metered, before sensitivity scaling
    derived_level: Optional[int]  # 1-based index into the threshold sequence
    sound_played: bool = False
    triggered_recording_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['timestamp'] = _format_datetime(self.timestamp)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BarkEvent':
        """Create instance from dictionary."""
        return cls(
            id=data['id'],
            timestamp=_parse_datetime(data['timestamp']),
            raw_level=float(data['raw_level']),
            derived_level=data.get('derived_level'),
            sound_played=bool(data.get('sound_played', False)),
            triggered_recording_id=data.get('triggered_recording_id')
        )


@dataclass
class ListeningSession:
    """One continuous monitoring run from start to stop."""
    id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_active: bool = True
    events: List[BarkEvent] = field(default_factory=list)

    @classmethod
    def begin(cls, now: datetime) -> 'ListeningSession':
        return cls(id=generate_id(), started_at=now)

    def add_event(self, event: BarkEvent):
        """Append an event. Insertion order is chronological order."""
        self.events.append(event)

    def close(self, now: datetime):
        """Mark the session as finished."""
        if self.is_active:
            self.ended_at = now
            self.is_active = False

    @property
    def sounds_played(self) -> int:
        return sum(1 for event in self.events if event.sound_played)


@dataclass(frozen=True)
class TimelinePoint:
    """Bark activity inside one timeline bucket."""
    timestamp: datetime  # bucket start
    bark_count: int
    avg_volume: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': _format_datetime(self.timestamp),
            'bark_count': self.bark_count,
            'avg_volume': self.avg_volume
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimelinePoint':
        return cls(
            timestamp=_parse_datetime(data['timestamp']),
            bark_count=int(data['bark_count']),
            avg_volume=float(data['avg_volume'])
        )


@dataclass(frozen=True)
class ReportComparison:
    """Change relative to the previous report, as rounded percentages."""
    bark_count_change_percent: int
    volume_change_percent: int
    is_improvement: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportComparison':
        return cls(**data)


@dataclass(frozen=True)
class Report:
    """Aggregated summary of a closed listening session."""
    id: str
    session_id: str
    generated_at: datetime
    duration: int  # seconds
    total_barks: int
    sounds_played: int
    average_volume: float  # dBFS
    peak_volume: float  # dBFS
    level_breakdown: Dict[str, int]
    timeline: List[TimelinePoint]
    comparison_with_previous: Optional[ReportComparison] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'session_id': self.session_id,
            'generated_at': _format_datetime(self.generated_at),
            'duration': self.duration,
            'total_barks': self.total_barks,
            'sounds_played': self.sounds_played,
            'average_volume': self.average_volume,
            'peak_volume': self.peak_volume,
            'level_breakdown': dict(self.level_breakdown),
            'timeline': [point.to_dict() for point in self.timeline],
            'comparison_with_previous': (
                self.comparison_with_previous.to_dict()
                if self.comparison_with_previous else None
            )
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Report':
        """Create instance from dictionary."""
        comparison = data.get('comparison_with_previous')
        return cls(
            id=data['id'],
            session_id=data['session_id'],
            generated_at=_parse_datetime(data['generated_at']),
            duration=int(data['duration']),
            total_barks=int(data['total_barks']),
            sounds_played=int(data['sounds_played']),
            average_volume=float(data['average_volume']),
            peak_volume=float(data['peak_volume']),
            level_breakdown={str(k): int(v) for k, v in data.get('level_breakdown', {}).items()},
            timeline=[TimelinePoint.from_dict(p) for p in data.get('timeline', [])],
            comparison_with_previous=ReportComparison.from_dict(comparison) if comparison else None
        )


@dataclass
class Recording:
    """A user-recorded calming sound bound to a bark level."""
    id: str
    name: str
    uri: str
    duration: float  # seconds
    level: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = _format_datetime(self.created_at)
        data['updated_at'] = _format_datetime(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Recording':
        return cls(
            id=data['id'],
            name=data['name'],
            uri=data['uri'],
            duration=float(data['duration']),
            level=int(data['level']),
            created_at=_parse_datetime(data['created_at']),
            updated_at=_parse_datetime(data['updated_at'])
        )
