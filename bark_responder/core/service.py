"""Listening session lifecycle"""

import logging
from datetime import datetime
from typing import Callable, Optional

from .models import ListeningSession, Report

logger = logging.getLogger(__name__)


class ListeningService:
    """Owns the one active bark monitor and turns finished sessions into reports.

    Args:
        monitor_factory: callable returning a new, idle ``BarkMonitor``
        history: ``ReportHistory`` the reports are prepended to
        clock: source of the report generation time
    """

    def __init__(self, monitor_factory: Callable, history, clock: Callable[[], datetime] = datetime.now):
        self.monitor_factory = monitor_factory
        self.history = history
        self.clock = clock
        self.monitor = None

    @property
    def is_listening(self) -> bool:
        return self.monitor is not None and self.monitor.is_listening

    def start_listening(self) -> ListeningSession:
        """Start a fresh monitor, discarding any run still in progress.

        Raises:
            PermissionDeniedError: microphone access was refused
            CaptureFailureError: the capture facility could not be opened
        """
        if self.monitor is not None:
            abandoned = self.monitor.stop()
            if abandoned is not None:
                logger.warning(f"Discarded unfinished session {abandoned.id}")
            self.monitor = None

        monitor = self.monitor_factory()
        session = monitor.start()
        self.monitor = monitor
        return session

    def stop_listening(self) -> Optional[Report]:
        """Stop the active monitor and record a report for its session.

        Returns:
            The new report, or None if nothing was listening
        """
        if self.monitor is None:
            return None

        session = self.monitor.stop()
        self.monitor = None
        if session is None:
            return None

        # Deferred: reports imports core.models
        from ..reports.aggregator import summarize

        report = summarize(session, previous_report=self.history.latest(), now=self.clock())
        self.history.add(report)
        logger.info(f"📊 Session report {report.id}: {report.total_barks} barks, "
                    f"{report.sounds_played} sounds played in {report.duration}s")
        return report
