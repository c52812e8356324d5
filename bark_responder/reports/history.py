"""Persisted report history, most recent first"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..core.models import Report
from ..utils.helpers import convert_numpy_types

logger = logging.getLogger(__name__)


class ReportHistory:
    """Manages collection and persistence of session reports."""

    def __init__(self, history_path: Path = None):
        """Initialize report history.

        Args:
            history_path: JSON file holding the reports (default: data/reports.json)
        """
        self.history_path = Path(history_path) if history_path else Path.cwd() / 'data' / 'reports.json'
        self.reports: List[Report] = []
        self._load_reports()

    def _load_reports(self):
        """Load reports from disk. A missing or unreadable file means no history."""
        if not self.history_path.exists():
            return

        try:
            with open(self.history_path, 'r') as f:
                data = json.load(f)
            self.reports = [Report.from_dict(item) for item in data.get('reports', [])]
            logger.debug(f"📂 Loaded {len(self.reports)} reports from {self.history_path}")
        except Exception as e:
            logger.warning(f"Could not load report history {self.history_path}: {e}")
            self.reports = []

    def _save_reports(self):
        """Write the full history to disk."""
        self.history_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'reports': [convert_numpy_types(report.to_dict()) for report in self.reports],
            'metadata': {
                'total_reports': len(self.reports),
                'updated_timestamp': datetime.now().isoformat()
            }
        }

        with open(self.history_path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.debug(f"💾 Saved {len(self.reports)} reports to {self.history_path}")

    def add(self, report: Report):
        """Prepend a newly generated report and persist the history."""
        self.reports.insert(0, report)
        self._save_reports()
        logger.info(f"📝 Report {report.id} added to history ({report.total_barks} barks)")

    def latest(self) -> Optional[Report]:
        """Most recent report, used for comparison with the next session."""
        return self.reports[0] if self.reports else None

    def get(self, report_id: str) -> Optional[Report]:
        for report in self.reports:
            if report.id == report_id:
                return report
        return None

    def all(self) -> List[Report]:
        return list(self.reports)

    def clear(self):
        """Delete every stored report."""
        count = len(self.reports)
        self.reports = []
        self._save_reports()
        logger.info(f"🗑️ Cleared {count} reports from history")

    def __len__(self) -> int:
        return len(self.reports)
