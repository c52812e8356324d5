"""PDF export for session reports

Renders a single report as a one-page PDF: headline metrics, level breakdown,
comparison with the previous session and a bark activity chart.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

import matplotlib
matplotlib.use('Agg')  # Use non-GUI backend
import matplotlib.pyplot as plt

from ..core.models import Report
from ..utils.time_utils import format_duration
from .aggregator import barks_per_minute, improvement_message

logger = logging.getLogger(__name__)


@dataclass
class PDFConfig:
    """Configuration for PDF generation."""
    page_size: Tuple[float, float] = letter
    margin: float = 0.75 * inch
    header_font_size: int = 14
    body_font_size: int = 11
    graph_width: int = 10
    graph_height: int = 4


class ReportPDFGenerator:
    """Generates PDF summaries of listening sessions."""

    def __init__(self, config: Optional[PDFConfig] = None):
        self.config = config or PDFConfig()
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles for consistent formatting."""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            spaceAfter=12,
            alignment=TA_CENTER,
            textColor=colors.HexColor('#1F2937'),
            fontName='Helvetica-Bold'
        ))

        self.styles.add(ParagraphStyle(
            name='HeaderStyle',
            parent=self.styles['Normal'],
            fontSize=12,
            textColor=colors.HexColor('#6B7280'),
            fontName='Helvetica',
            alignment=TA_CENTER,
            spaceAfter=20
        ))

        self.styles.add(ParagraphStyle(
            name='MetricStyle',
            parent=self.styles['Normal'],
            fontSize=10,
            fontName='Helvetica',
            alignment=TA_CENTER,
            textColor=colors.white
        ))

        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=self.config.header_font_size,
            spaceBefore=6,
            textColor=colors.HexColor('#1F2937')
        ))

        self.styles.add(ParagraphStyle(
            name='CustomBody',
            parent=self.styles['Normal'],
            fontSize=self.config.body_font_size,
            spaceAfter=6,
            alignment=TA_LEFT
        ))

    def generate_report_pdf(self, report: Report, output_path: Path,
                            level_names: Sequence[str] = ()) -> bool:
        """Generate a PDF for one report.

        Args:
            report: The session report to render
            output_path: Where the PDF is written
            level_names: Threshold level names, in level order, for labelling

        Returns:
            True if the PDF was generated successfully, False otherwise
        """
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            doc = SimpleDocTemplate(
                str(output_path),
                pagesize=self.config.page_size,
                topMargin=self.config.margin,
                bottomMargin=self.config.margin,
                leftMargin=self.config.margin,
                rightMargin=self.config.margin
            )

            story = []
            self._add_summary(story, report)
            self._add_level_breakdown(story, report, level_names)
            self._add_comparison(story, report)

            chart = self._generate_timeline_chart(report)
            if chart:
                story.append(Paragraph("<b>Bark Activity</b>", self.styles['SectionHeader']))
                story.append(Spacer(1, 8))
                story.append(chart)

            doc.build(story)

            logger.info(f"📄 Report PDF generated: {output_path}")
            return True

        except Exception as e:
            logger.error(f"Failed to generate PDF report: {e}")
            return False

    def _add_summary(self, story: List, report: Report):
        generated = report.generated_at.strftime('%Y-%m-%d %H:%M')
        story.append(Paragraph(f"Bark Session Report - {generated}", self.styles['CustomTitle']))
        story.append(Paragraph(improvement_message(report), self.styles['HeaderStyle']))

        metrics_data = [[
            Paragraph(f"<font size='22'><b>{report.total_barks}</b></font><br/>Total Barks", self.styles['MetricStyle']),
            Paragraph(f"<font size='22'><b>{report.sounds_played}</b></font><br/>Sounds Played", self.styles['MetricStyle']),
            Paragraph(f"<font size='22'><b>{format_duration(report.duration)}</b></font><br/>Duration", self.styles['MetricStyle']),
            Paragraph(f"<font size='22'><b>{barks_per_minute(report):.1f}</b></font><br/>Barks / Minute", self.styles['MetricStyle'])
        ]]

        metrics_table = Table(metrics_data, colWidths=[1.75*inch] * 4)
        metrics_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (0, 0), colors.HexColor('#DC2626')),
            ('BACKGROUND', (1, 0), (1, 0), colors.HexColor('#10B981')),
            ('BACKGROUND', (2, 0), (2, 0), colors.HexColor('#6366F1')),
            ('BACKGROUND', (3, 0), (3, 0), colors.HexColor('#F59E0B')),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('GRID', (0, 0), (-1, -1), 2, colors.white),
        ]))
        story.append(metrics_table)
        story.append(Spacer(1, 12))

        story.append(Paragraph(
            f"Average volume: <b>{report.average_volume:.1f} dBFS</b> &nbsp; "
            f"Peak volume: <b>{report.peak_volume:.1f} dBFS</b>",
            self.styles['CustomBody']
        ))
        story.append(Spacer(1, 12))

    def _add_level_breakdown(self, story: List, report: Report, level_names: Sequence[str]):
        story.append(Paragraph("<b>Bark Levels</b>", self.styles['SectionHeader']))
        story.append(Spacer(1, 8))

        if not report.level_breakdown:
            story.append(Paragraph("No barks detected this session.", self.styles['CustomBody']))
            story.append(Spacer(1, 12))
            return

        table_data = [['Level', 'Name', 'Barks']]
        for key in sorted(report.level_breakdown, key=int):
            index = int(key) - 1
            name = level_names[index] if 0 <= index < len(level_names) else f"Level {key}"
            table_data.append([key, name, str(report.level_breakdown[key])])

        levels_table = Table(table_data, colWidths=[1*inch, 3*inch, 1*inch])
        levels_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#F3F4F6')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#1F2937')),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('GRID', (0, 0), (-1, -1), 1, colors.HexColor('#E5E7EB')),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F9FAFB')]),
        ]))
        story.append(levels_table)
        story.append(Spacer(1, 12))

    def _add_comparison(self, story: List, report: Report):
        comparison = report.comparison_with_previous
        if comparison is None:
            return

        trend_color = '#10B981' if comparison.is_improvement else '#DC2626'
        story.append(Paragraph("<b>Compared With Last Session</b>", self.styles['SectionHeader']))
        story.append(Paragraph(
            f'Barks: <font color="{trend_color}"><b>{comparison.bark_count_change_percent:+d}%</b></font> '
            f'&nbsp; Volume: <b>{comparison.volume_change_percent:+d}%</b>',
            self.styles['CustomBody']
        ))
        story.append(Spacer(1, 12))

    def _generate_timeline_chart(self, report: Report) -> Optional[Image]:
        """Bar chart of barks per timeline bucket."""
        if not report.timeline:
            return None

        fig = None
        try:
            hourly = len(report.timeline) > 1 and (
                report.timeline[1].timestamp - report.timeline[0].timestamp
            ).total_seconds() >= 3600
            time_format = '%H:00' if hourly else '%H:%M'

            labels = [point.timestamp.strftime(time_format) for point in report.timeline]
            counts = [point.bark_count for point in report.timeline]

            fig, ax = plt.subplots(figsize=(self.config.graph_width, self.config.graph_height))
            fig.patch.set_facecolor('white')
            ax.bar(range(len(counts)), counts, color='#6366F1', alpha=0.8, width=0.8)

            step = max(1, len(labels) // 12)
            ax.set_xticks(range(0, len(labels), step))
            ax.set_xticklabels(labels[::step], rotation=45)
            ax.set_xlabel('Time', fontsize=11, fontweight='bold')
            ax.set_ylabel('Barks', fontsize=11, fontweight='bold')
            ax.grid(True, axis='y', alpha=0.3)
            ax.set_facecolor('#FAFAFA')
            plt.tight_layout()

            buffer = BytesIO()
            plt.savefig(buffer, format='png', dpi=150, bbox_inches='tight', facecolor='white')
            buffer.seek(0)

            return Image(buffer, width=6.5*inch, height=2.6*inch)

        except Exception as e:
            logger.error(f"Failed to generate activity chart: {e}")
            return None

        finally:
            if fig is not None:
                plt.close(fig)
