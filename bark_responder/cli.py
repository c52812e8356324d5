"""Command line interface for bark responder"""

import argparse
import logging
import time
from datetime import datetime
from pathlib import Path

from .audio.capture import MicrophoneCapture
from .audio.playback import SoundPlayer
from .core.exceptions import CaptureFailureError, PermissionDeniedError
from .core.monitor import BarkMonitor, MonitorCallbacks
from .core.service import ListeningService
from .recording.library import RecordingLibrary
from .reports.aggregator import improvement_message, weekly_stats
from .reports.history import ReportHistory
from .utils.config import ConfigManager, SettingsStore, validate_cooldown
from .utils.helpers import setup_logging
from .utils.time_utils import format_duration

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.json'


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Bark Responder v1.0 - calming sounds for barking dogs',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m bark_responder                               # Listen until Ctrl+C, then print the report
  python -m bark_responder --sensitivity 1.5 --cooldown 20
  python -m bark_responder --add-recording 1 shush.wav   # Calming sound for level 1
  python -m bark_responder --set-level <ID> -25          # Move a threshold
  python -m bark_responder --export-pdf <ID> report.pdf  # Export a session report
        """
    )

    # Configuration file
    parser.add_argument('--config', type=str,
                        help='Load configuration from JSON file')
    parser.add_argument('--create-config', type=str,
                        help='Create default configuration file at specified path')
    parser.add_argument('--data-dir', type=str,
                        help='Directory for reports and recordings (default: data)')

    # Detection parameters
    parser.add_argument('--sensitivity', type=float,
                        help='Multiplier applied to metered dBFS levels (0.5-2.0, default: 1.0). '
                             'Levels are negative, so values above 1.0 make barks read quieter '
                             '(less sensitive) and values below 1.0 make them read louder')
    parser.add_argument('--cooldown', type=float,
                        help='Seconds between calming sounds (1-300, default: 15)')
    parser.add_argument('--poll-interval', type=int,
                        help='Metering interval in milliseconds (20-1000, default: 100)')
    parser.add_argument('--verbose', action='store_true',
                        help='Log every metered level and cooldown tick')

    # Threshold levels
    parser.add_argument('--list-levels', action='store_true',
                        help='List bark level thresholds')
    parser.add_argument('--add-level', type=str, metavar='NAME',
                        help='Add a bark level above the current loudest one')
    parser.add_argument('--remove-level', type=str, metavar='ID',
                        help='Remove a bark level')
    parser.add_argument('--set-level', nargs=2, metavar=('ID', 'VALUE'),
                        help='Set a bark level threshold in dBFS')

    # Calming-sound recordings
    parser.add_argument('--add-recording', nargs=2, metavar=('LEVEL', 'FILE'),
                        help='Use an audio file as the calming sound for a level')
    parser.add_argument('--name', type=str,
                        help='Display name for --add-recording')
    parser.add_argument('--list-recordings', action='store_true',
                        help='List calming-sound recordings')
    parser.add_argument('--remove-recording', type=str, metavar='ID',
                        help='Remove a calming-sound recording')

    # Reports
    parser.add_argument('--list-reports', action='store_true',
                        help='List session reports, newest first')
    parser.add_argument('--show-report', type=str, metavar='ID',
                        help='Show one session report')
    parser.add_argument('--export-pdf', nargs=2, metavar=('ID', 'PATH'),
                        help='Export a session report as PDF')
    parser.add_argument('--weekly-stats', action='store_true',
                        help='Show totals for the last seven days')
    parser.add_argument('--clear-data', action='store_true',
                        help='Delete all reports and recordings')

    return parser.parse_args(argv)


def determine_logging_channel(args) -> str:
    """Listening mode logs to the 'listening' channel, everything else to 'reports'."""
    management_modes = [
        args.create_config, args.list_levels, args.add_level, args.remove_level, args.set_level,
        args.add_recording, args.list_recordings, args.remove_recording,
        args.list_reports, args.show_report, args.export_pdf, args.weekly_stats, args.clear_data
    ]
    return 'reports' if any(management_modes) else 'listening'


def _config_target(args) -> Path:
    return Path(args.config) if args.config else Path(DEFAULT_CONFIG_FILE)


def _print_levels(thresholds):
    logger.info("🎚️ Bark Levels:")
    for number, level in enumerate(thresholds, start=1):
        logger.info(f"  {number}. {level.name} - {level.value:.1f} dBFS  (id: {level.id})")


def _print_report(report, level_names=()):
    logger.info("=" * 60)
    logger.info(f"📊 Session Report {report.id}")
    logger.info(f"   Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"   Duration: {format_duration(report.duration)}")
    logger.info(f"   Total barks: {report.total_barks}")
    logger.info(f"   Sounds played: {report.sounds_played}")
    logger.info(f"   Average volume: {report.average_volume:.1f} dBFS")
    logger.info(f"   Peak volume: {report.peak_volume:.1f} dBFS")
    for key in sorted(report.level_breakdown, key=int):
        index = int(key) - 1
        name = level_names[index] if 0 <= index < len(level_names) else f"Level {key}"
        logger.info(f"   {name}: {report.level_breakdown[key]}")
    comparison = report.comparison_with_previous
    if comparison is not None:
        logger.info(f"   vs. last session: barks {comparison.bark_count_change_percent:+d}%, "
                    f"volume {comparison.volume_change_percent:+d}%")
    logger.info(f"   {improvement_message(report)}")
    logger.info("=" * 60)


def _logging_callbacks() -> MonitorCallbacks:
    def on_level_change(level, raw_level, percent):
        if level is not None:
            logger.debug(f"Level {level} at {raw_level:.1f} dBFS ({percent}%)")

    def on_cooldown_update(remaining):
        if remaining > 0:
            logger.debug(f"Cooldown: {remaining:.1f}s remaining")

    return MonitorCallbacks(on_level_change=on_level_change, on_cooldown_update=on_cooldown_update)


def listen(config, library: RecordingLibrary, history: ReportHistory) -> int:
    """Listen until interrupted, then store and print the session report."""
    thresholds = config.detection.thresholds
    missing = library.missing_levels(len(thresholds))
    if missing:
        logger.warning(f"⚠️ No calming sound for level(s) {', '.join(str(m) for m in missing)}; "
                       f"barks at those levels are only logged")

    try:
        validate_cooldown(config.detection.cooldown_seconds, library.all())
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    settings = SettingsStore(config.detection)
    capture = MicrophoneCapture(
        sample_rate=config.audio.sample_rate,
        chunk_size=config.audio.chunk_size,
        channels=config.audio.channels
    )
    player = SoundPlayer(chunk_size=config.audio.chunk_size)

    def monitor_factory():
        return BarkMonitor(
            capture,
            player,
            settings_provider=settings.current,
            recordings_provider=library.all,
            callbacks=_logging_callbacks(),
            poll_interval_ms=config.audio.poll_interval_ms
        )

    service = ListeningService(monitor_factory, history)

    logger.info("🐕 Starting bark responder...")
    logger.info(f"🎛️ Sensitivity: {config.detection.sensitivity}  Cooldown: {config.detection.cooldown_seconds}s")
    logger.info("Press Ctrl+C to stop")

    try:
        service.start_listening()
    except PermissionDeniedError as e:
        logger.error(f"🎙️ {e}")
        player.close()
        return 1
    except CaptureFailureError as e:
        logger.error(f"Could not start listening: {e}")
        player.close()
        return 1

    try:
        while service.is_listening:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal...")
        logger.info("Stopping bark responder...")
    finally:
        report = service.stop_listening()
        player.close()

    if report is not None:
        _print_report(report, [level.name for level in thresholds])
    return 0


def main(argv=None):
    """Main function with command line support."""
    args = parse_arguments(argv)

    config_manager = ConfigManager()

    if args.create_config:
        setup_logging(minimal=True)
        try:
            config_manager.create_default_config(args.create_config)
        except RuntimeError as e:
            logger.error(f"Configuration error: {e}")
            return 1
        return 0

    try:
        config = config_manager.load_config(args.config)
        # CLI arguments take precedence over the config file
        config = config_manager.merge_cli_args(config, args)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        setup_logging(minimal=True)
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        setup_logging(channel=determine_logging_channel(args), config=config,
                      level=logging.DEBUG if args.verbose else logging.INFO)
    except ValueError as e:
        setup_logging(minimal=True)
        logger.warning(f"File logging unavailable: {e}")

    logger.info("=" * 60)
    logger.info("Bark Responder v1.0")
    logger.info("=" * 60)

    history = ReportHistory(config.output.reports_path)
    library = RecordingLibrary(config.output.recordings_path)
    thresholds = config.detection.thresholds

    try:
        if args.list_levels:
            _print_levels(thresholds)
            return 0

        if args.add_level or args.remove_level or args.set_level:
            if args.add_level:
                level = thresholds.add_level(name=args.add_level)
                logger.info(f"➕ Added level '{level.name}' at {level.value:.1f} dBFS")
            if args.remove_level:
                level = thresholds.remove_level(args.remove_level)
                logger.info(f"➖ Removed level '{level.name}'")
            if args.set_level:
                level_id, value = args.set_level
                level = thresholds.update_value(level_id, float(value))
                logger.info(f"🎚️ Level '{level.name}' set to {level.value:.1f} dBFS")
            config_manager.save_config(config, _config_target(args))
            _print_levels(thresholds)
            return 0

        if args.add_recording:
            level_arg, file_arg = args.add_recording
            level = int(level_arg)
            if level > len(thresholds):
                logger.error(f"Level {level} does not exist (configured levels: 1-{len(thresholds)})")
                return 1
            recording = library.add_recording(Path(file_arg).expanduser(), args.name, level)
            if recording.duration >= config.detection.cooldown_seconds:
                logger.warning(f"⚠️ Recording ({recording.duration:.1f}s) is longer than the "
                               f"cooldown ({config.detection.cooldown_seconds}s)")
            return 0

        if args.list_recordings:
            recordings = library.all()
            if recordings:
                logger.info(f"🎵 Found {len(recordings)} recordings:")
                for recording in recordings:
                    logger.info(f"  Level {recording.level}: {recording.name} "
                                f"({recording.duration:.1f}s)  (id: {recording.id})")
            else:
                logger.info("🎵 No recordings yet")
            return 0

        if args.remove_recording:
            library.remove_recording(args.remove_recording)
            return 0

        if args.list_reports:
            reports = history.all()
            if reports:
                logger.info(f"📋 Found {len(reports)} reports:")
                for report in reports:
                    logger.info(f"  {report.generated_at.strftime('%Y-%m-%d %H:%M')} - "
                                f"{report.total_barks} barks in {format_duration(report.duration)}  "
                                f"(id: {report.id})")
            else:
                logger.info("📋 No reports yet")
            return 0

        if args.show_report:
            report = history.get(args.show_report)
            if report is None:
                logger.error(f"Report not found: {args.show_report}")
                return 1
            _print_report(report, [level.name for level in thresholds])
            return 0

        if args.export_pdf:
            from .reports.pdf_generator import ReportPDFGenerator

            report_id, output = args.export_pdf
            report = history.get(report_id)
            if report is None:
                logger.error(f"Report not found: {report_id}")
                return 1
            generator = ReportPDFGenerator()
            if not generator.generate_report_pdf(report, Path(output), [level.name for level in thresholds]):
                return 1
            return 0

        if args.weekly_stats:
            stats = weekly_stats(history.all(), datetime.now())
            logger.info("📅 Last 7 days:")
            logger.info(f"   Sessions: {stats['sessions_count']}")
            logger.info(f"   Total barks: {stats['total_barks']}")
            logger.info(f"   Average per session: {stats['avg_per_session']}")
            logger.info(f"   Time listening: {format_duration(stats['total_duration'])}")
            return 0

        if args.clear_data:
            history.clear()
            library.clear()
            logger.info("✅ All reports and recordings deleted")
            return 0

        return listen(config, library, history)

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == '__main__':
    import sys
    sys.exit(main())
