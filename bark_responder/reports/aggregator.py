"""Session-to-report aggregation"""

import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..core.models import (
    ListeningSession, Report, ReportComparison, TimelinePoint, generate_id
)

# Peak volume reported for a session without any barks
PEAK_VOLUME_FLOOR = -100.0

MINUTE_BUCKET_SECONDS = 60
HOUR_BUCKET_SECONDS = 3600


def session_duration_seconds(session: ListeningSession, now: Optional[datetime] = None) -> int:
    """Whole seconds covered by a session, never less than 1.

    Uses the later of the session end and the last event so an event that
    arrives after the end timestamp is still inside the session.
    """
    end = session.ended_at or now or datetime.now()
    duration = (end - session.started_at).total_seconds()
    if session.events:
        last_event_offset = (session.events[-1].timestamp - session.started_at).total_seconds()
        duration = max(duration, last_event_offset)
    return max(1, int(math.floor(duration)))


def bucket_seconds_for(duration_seconds: int) -> int:
    """One-minute buckets up to an hour, hourly buckets beyond."""
    return MINUTE_BUCKET_SECONDS if duration_seconds <= HOUR_BUCKET_SECONDS else HOUR_BUCKET_SECONDS


def build_timeline(session: ListeningSession, duration_seconds: int) -> List[TimelinePoint]:
    """Gapless per-bucket bark counts covering the whole session.

    Produces ``ceil(duration / bucket) + 1`` buckets; buckets without
    events are present with a count and average volume of 0.
    """
    bucket_seconds = bucket_seconds_for(duration_seconds)
    bucket_count = math.ceil(duration_seconds * 1000 / (bucket_seconds * 1000)) + 1

    volumes: List[List[float]] = [[] for _ in range(bucket_count)]
    for event in session.events:
        offset = (event.timestamp - session.started_at).total_seconds()
        index = min(max(0, int(offset // bucket_seconds)), bucket_count - 1)
        volumes[index].append(event.raw_level)

    timeline = []
    for index, bucket in enumerate(volumes):
        timeline.append(TimelinePoint(
            timestamp=session.started_at + timedelta(seconds=index * bucket_seconds),
            bark_count=len(bucket),
            avg_volume=round(float(np.mean(bucket)), 1) if bucket else 0.0
        ))
    return timeline


def level_breakdown(session: ListeningSession) -> Dict[str, int]:
    """Count of events per level; only levels that occurred are present."""
    breakdown: Dict[str, int] = {}
    for event in session.events:
        if event.derived_level is None:
            continue
        key = str(event.derived_level)
        breakdown[key] = breakdown.get(key, 0) + 1
    return breakdown


def compare_reports(total_barks: int, average_volume: float, previous: Report) -> ReportComparison:
    """Percentage change against the previous report. Fewer barks is an improvement."""
    if previous.total_barks > 0:
        bark_count_change = (total_barks - previous.total_barks) / previous.total_barks * 100
    else:
        bark_count_change = 0.0

    previous_volume = abs(previous.average_volume)
    if previous_volume > 0:
        volume_change = (abs(average_volume) - previous_volume) / previous_volume * 100
    else:
        volume_change = 0.0

    return ReportComparison(
        bark_count_change_percent=int(round(bark_count_change)),
        volume_change_percent=int(round(volume_change)),
        is_improvement=bark_count_change < 0
    )


def summarize(session: ListeningSession,
              previous_report: Optional[Report] = None,
              now: Optional[datetime] = None) -> Report:
    """Aggregate a closed session into a Report.

    Pure function: a session without events still yields a report with zero
    counts and the peak-volume floor.

    Args:
        session: The listening session to summarize
        previous_report: Most recent earlier report, for comparison
        now: Generation time (also used as the end of a still-open session)

    Returns:
        The new Report
    """
    now = now or datetime.now()
    events = session.events

    duration = session_duration_seconds(session, now)

    volumes = np.array([event.raw_level for event in events], dtype=float)
    if volumes.size:
        average_volume = float(volumes.mean())
        peak_volume = float(volumes.max())
    else:
        average_volume = 0.0
        peak_volume = PEAK_VOLUME_FLOOR

    total_barks = len(events)
    comparison = None
    if previous_report is not None:
        comparison = compare_reports(total_barks, average_volume, previous_report)

    return Report(
        id=generate_id(),
        session_id=session.id,
        generated_at=now,
        duration=duration,
        total_barks=total_barks,
        sounds_played=session.sounds_played,
        average_volume=round(average_volume, 1),
        peak_volume=round(peak_volume, 1),
        level_breakdown=level_breakdown(session),
        timeline=build_timeline(session, duration),
        comparison_with_previous=comparison
    )


def barks_per_minute(report: Report) -> float:
    return report.total_barks / max(report.duration / 60, 1)


def weekly_stats(reports: Iterable[Report], now: Optional[datetime] = None) -> Dict[str, int]:
    """Totals over reports generated in the last seven days."""
    now = now or datetime.now()
    cutoff = now - timedelta(days=7)
    weekly = [report for report in reports if report.generated_at > cutoff]

    total_barks = sum(report.total_barks for report in weekly)
    sessions_count = len(weekly)
    return {
        'total_barks': total_barks,
        'avg_per_session': int(round(total_barks / sessions_count)) if sessions_count else 0,
        'sessions_count': sessions_count,
        'total_duration': sum(report.duration for report in weekly)
    }


def improvement_message(report: Report) -> str:
    """Friendly verdict on how this session compares to the previous one."""
    comparison = report.comparison_with_previous
    if comparison is None:
        return "First session! Let's see how your floofer does! 🐕"

    change = comparison.bark_count_change_percent
    if comparison.is_improvement:
        if change < -30:
            return "Paw-some progress! Your pup is becoming a zen master! 🧘🐕"
        if change < -15:
            return "Woof-derful! Your floofer is calming down! Treats deserved! 🦴"
        return "Good progress! A few less woofs today! 🐾"

    if change > 30:
        return "Ruh-roh! Extra woofs today. Maybe they saw a squirrel? 🐿️"
    if change > 15:
        return "A bit more barky today. Extra belly rubs needed! 🐕"
    return "Similar to last time. Keep at it, hooman! 💪"
