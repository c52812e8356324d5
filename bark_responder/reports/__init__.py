"""Session reports: aggregation, history and PDF export"""

from .aggregator import summarize, weekly_stats, improvement_message
from .history import ReportHistory
from .pdf_generator import ReportPDFGenerator

__all__ = ['summarize', 'weekly_stats', 'improvement_message', 'ReportHistory', 'ReportPDFGenerator']
