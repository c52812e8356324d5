"""Tests for bark_responder.core.service"""

from unittest.mock import Mock

import pytest

from bark_responder.core.exceptions import PermissionDeniedError
from bark_responder.core.models import ListeningSession
from bark_responder.core.service import ListeningService
from bark_responder.reports.history import ReportHistory


def fake_monitor(session=None, start_error=None):
    monitor = Mock()
    monitor.is_listening = True
    if start_error:
        monitor.start.side_effect = start_error
    else:
        monitor.start.return_value = session
    monitor.stop.return_value = session
    return monitor


class TestListeningService:
    """Test ownership of the single active monitor"""

    def setup_method(self):
        self.history = Mock()
        self.history.latest.return_value = None

    def test_start_builds_and_starts_monitor(self, clock):
        session = ListeningSession.begin(clock())
        monitor = fake_monitor(session)
        service = ListeningService(lambda: monitor, self.history, clock)

        assert service.start_listening() is session
        assert service.monitor is monitor
        assert service.is_listening

    def test_start_replaces_previous_monitor(self, clock):
        first = fake_monitor(ListeningSession.begin(clock()))
        second = fake_monitor(ListeningSession.begin(clock()))
        factory = Mock(side_effect=[first, second])
        service = ListeningService(factory, self.history, clock)

        service.start_listening()
        service.start_listening()

        first.stop.assert_called_once()
        assert service.monitor is second
        # A discarded run does not produce a report
        self.history.add.assert_not_called()

    def test_start_failure_propagates(self, clock):
        monitor = fake_monitor(start_error=PermissionDeniedError("denied"))
        service = ListeningService(lambda: monitor, self.history, clock)

        with pytest.raises(PermissionDeniedError):
            service.start_listening()
        assert service.monitor is None
        assert not service.is_listening

    def test_stop_summarizes_and_records_report(self, clock, session_factory, event_factory):
        session = session_factory(90, [event_factory(10, -20.0)])
        monitor = fake_monitor(session)
        service = ListeningService(lambda: monitor, self.history, clock)
        service.start_listening()

        report = service.stop_listening()

        assert report.session_id == session.id
        assert report.total_barks == 1
        self.history.add.assert_called_once_with(report)
        assert service.monitor is None

    def test_stop_compares_with_latest_report(self, clock, session_factory, event_factory):
        history = Mock()
        previous_session = session_factory(60, [event_factory(i, -20.0) for i in range(10)])
        from bark_responder.reports.aggregator import summarize
        history.latest.return_value = summarize(previous_session, now=clock())

        session = session_factory(60, [event_factory(i, -20.0) for i in range(5)])
        service = ListeningService(lambda: fake_monitor(session), history, clock)
        service.start_listening()

        report = service.stop_listening()

        assert report.comparison_with_previous.bark_count_change_percent == -50
        assert report.comparison_with_previous.is_improvement is True

    def test_zero_event_session_still_reported(self, clock, session_factory):
        service = ListeningService(lambda: fake_monitor(session_factory(30)), self.history, clock)
        service.start_listening()

        report = service.stop_listening()

        assert report.total_barks == 0
        assert report.level_breakdown == {}
        self.history.add.assert_called_once()

    def test_stop_twice_is_harmless(self, clock, session_factory):
        monitor = fake_monitor(session_factory(30))
        service = ListeningService(lambda: monitor, self.history, clock)
        service.start_listening()

        assert service.stop_listening() is not None
        assert service.stop_listening() is None
        monitor.stop.assert_called_once()
        self.history.add.assert_called_once()

    def test_stop_without_start(self, clock):
        service = ListeningService(Mock(), self.history, clock)
        assert service.stop_listening() is None

    def test_reports_persist_newest_first(self, temp_dir, clock, session_factory, event_factory):
        history = ReportHistory(temp_dir / 'reports.json')
        sessions = [session_factory(60, [event_factory(1, -20.0)]), session_factory(60)]
        monitors = iter([fake_monitor(s) for s in sessions])
        service = ListeningService(lambda: next(monitors), history, clock)

        service.start_listening()
        first = service.stop_listening()
        service.start_listening()
        second = service.stop_listening()

        assert [r.id for r in ReportHistory(temp_dir / 'reports.json').all()] == [second.id, first.id]
