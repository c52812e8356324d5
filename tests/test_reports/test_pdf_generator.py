"""Tests for bark_responder.reports.pdf_generator"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from bark_responder.core.models import Report, ReportComparison, TimelinePoint
from bark_responder.reports.pdf_generator import PDFConfig, ReportPDFGenerator, plt

T0 = datetime(2025, 9, 27, 21, 0, 0)


@pytest.fixture
def sample_report():
    timeline = [TimelinePoint(T0 + timedelta(minutes=i), count, -20.0 if count else 0.0)
                for i, count in enumerate([2, 0, 5, 1, 0])]
    return Report(
        id='r1', session_id='s1', generated_at=T0 + timedelta(minutes=4), duration=240,
        total_barks=8, sounds_played=3, average_volume=-19.4, peak_volume=-6.2,
        level_breakdown={'1': 6, '2': 2}, timeline=timeline,
        comparison_with_previous=ReportComparison(-20, 3, True)
    )


class TestPDFConfig:
    """Test PDFConfig dataclass."""

    def test_default_config(self):
        config = PDFConfig()
        assert config.page_size is not None
        assert config.margin > 0
        assert config.graph_width > 0

    def test_custom_config(self):
        config = PDFConfig(body_font_size=9, graph_width=6)
        assert config.body_font_size == 9
        assert config.graph_width == 6

    def test_header_font_size_sets_section_headers(self):
        generator = ReportPDFGenerator(PDFConfig(header_font_size=18))
        assert generator.styles['SectionHeader'].fontSize == 18


class TestReportPDFGenerator:
    """Test report PDF rendering"""

    def test_generates_pdf(self, temp_dir, sample_report):
        output = temp_dir / 'out' / 'report.pdf'

        assert ReportPDFGenerator().generate_report_pdf(sample_report, output, ['Gentle Woof', 'Big Bark'])

        assert output.exists()
        assert output.read_bytes().startswith(b'%PDF')

    def test_zero_bark_report(self, temp_dir):
        report = Report(
            id='r0', session_id='s0', generated_at=T0, duration=30, total_barks=0, sounds_played=0,
            average_volume=0.0, peak_volume=-100.0, level_breakdown={},
            timeline=[TimelinePoint(T0, 0, 0.0), TimelinePoint(T0 + timedelta(minutes=1), 0, 0.0)]
        )
        output = temp_dir / 'empty.pdf'
        assert ReportPDFGenerator().generate_report_pdf(report, output)
        assert output.exists()

    def test_timeline_chart_image(self, sample_report):
        image = ReportPDFGenerator()._generate_timeline_chart(sample_report)
        assert image is not None

    def test_no_timeline_means_no_chart(self, sample_report):
        report = Report(**{**sample_report.__dict__, 'timeline': []})
        assert ReportPDFGenerator()._generate_timeline_chart(report) is None

    def test_build_failure_returns_false(self, temp_dir, sample_report):
        with patch('bark_responder.reports.pdf_generator.SimpleDocTemplate') as mock_doc:
            mock_doc.return_value.build.side_effect = OSError("disk full")
            assert ReportPDFGenerator().generate_report_pdf(sample_report, temp_dir / 'r.pdf') is False

    def test_chart_figure_closed_on_success(self, sample_report):
        open_before = len(plt.get_fignums())
        ReportPDFGenerator()._generate_timeline_chart(sample_report)
        assert len(plt.get_fignums()) == open_before

    def test_chart_figure_closed_when_rendering_fails(self, sample_report):
        open_before = len(plt.get_fignums())

        with patch('bark_responder.reports.pdf_generator.plt.savefig', side_effect=RuntimeError("render failed")):
            image = ReportPDFGenerator()._generate_timeline_chart(sample_report)

        assert image is None
        assert len(plt.get_fignums()) == open_before
