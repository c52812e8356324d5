"""Configuration management for bark responder"""

import json
import logging
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from ..core.classifier import ThresholdConfig
from ..core.exceptions import ConfigCorruptError

logger = logging.getLogger(__name__)

SENSITIVITY_RANGE = (0.5, 2.0)
COOLDOWN_RANGE = (1.0, 300.0)
POLL_INTERVAL_RANGE = (20, 1000)


def validate_number(value, min_val: float, max_val: float, name: str) -> float:
    """Check a numeric setting is inside its allowed range.

    Raises:
        ValueError: not a number, or outside [min_val, max_val]
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Configuration parameter '{name}' must be a number, got {type(value).__name__}")

    if not (min_val <= value <= max_val):
        raise ValueError(f"Configuration parameter '{name}' must be between {min_val} and {max_val}, got {value}")

    return float(value)


@dataclass
class DetectionConfig:
    """Detection settings read by the monitor on every sample."""
    thresholds: ThresholdConfig = None
    cooldown_seconds: float = 15.0
    sensitivity: float = 1.0

    def __post_init__(self):
        if self.thresholds is None:
            self.thresholds = ThresholdConfig.default()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'thresholds': self.thresholds.to_list(),
            'cooldown_seconds': self.cooldown_seconds,
            'sensitivity': self.sensitivity
        }


@dataclass
class AudioConfig:
    """Microphone capture configuration."""
    sample_rate: int = 16000
    chunk_size: int = 1024
    channels: int = 1
    poll_interval_ms: int = 100


@dataclass
class OutputConfig:
    """Data and output location configuration."""
    data_dir: str = "data"
    reports_file: str = "reports.json"
    recordings_file: str = "recordings.json"
    logs_dir: str = "logs"
    pdf_dir: str = "reports"

    @property
    def reports_path(self) -> Path:
        return Path(self.data_dir) / self.reports_file

    @property
    def recordings_path(self) -> Path:
        return Path(self.data_dir) / self.recordings_file


@dataclass
class BarkResponderConfig:
    """Complete bark responder configuration."""
    detection: DetectionConfig = None
    audio: AudioConfig = None
    output: OutputConfig = None

    def __post_init__(self):
        if self.detection is None:
            self.detection = DetectionConfig()
        if self.audio is None:
            self.audio = AudioConfig()
        if self.output is None:
            self.output = OutputConfig()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detection': self.detection.to_dict(),
            'audio': asdict(self.audio),
            'output': asdict(self.output)
        }


def validate_cooldown(cooldown_seconds: float, recordings: Iterable = ()) -> float:
    """Check that the cooldown outlasts every calming sound.

    Args:
        cooldown_seconds: Proposed cooldown interval
        recordings: Recordings whose ``duration`` (seconds) may play during it

    Raises:
        ValueError: if the cooldown is not positive or not longer than the
            longest recording
    """
    if cooldown_seconds <= 0:
        raise ValueError(f"Cooldown must be positive, got {cooldown_seconds}")

    longest = max((recording.duration for recording in recordings), default=0.0)
    if cooldown_seconds <= longest:
        raise ValueError(
            f"Cooldown ({cooldown_seconds}s) must be longer than the longest calming sound ({longest:.1f}s)"
        )
    return float(cooldown_seconds)


class SettingsStore:
    """Holds the live detection settings shared with a running monitor.

    The monitor only reads through ``current()``; edits replace the whole
    settings object so a sample never sees a half-applied change.
    """

    def __init__(self, detection: Optional[DetectionConfig] = None):
        self._detection = detection or DetectionConfig()
        self._lock = threading.Lock()

    def current(self) -> DetectionConfig:
        with self._lock:
            return self._detection

    def update(self, **changes) -> DetectionConfig:
        """Replace selected fields (thresholds, cooldown_seconds, sensitivity).

        Raises:
            ThresholdOrderError: thresholds are empty, duplicated or not
                strictly increasing
            ValueError: unknown field, or a value outside its allowed range
        """
        if 'thresholds' in changes:
            changes['thresholds'] = ThresholdConfig(list(changes['thresholds']))
        if 'cooldown_seconds' in changes:
            changes['cooldown_seconds'] = validate_number(changes['cooldown_seconds'], *COOLDOWN_RANGE, 'cooldown_seconds')
        if 'sensitivity' in changes:
            changes['sensitivity'] = validate_number(changes['sensitivity'], *SENSITIVITY_RANGE, 'sensitivity')

        with self._lock:
            values = {
                'thresholds': ThresholdConfig(self._detection.thresholds.levels),
                'cooldown_seconds': self._detection.cooldown_seconds,
                'sensitivity': self._detection.sensitivity
            }
            unknown = set(changes) - set(values)
            if unknown:
                raise ValueError(f"Unknown detection settings: {sorted(unknown)}")
            values.update(changes)
            self._detection = DetectionConfig(**values)
            return self._detection


class ConfigManager:
    """Manage configuration loading, validation, and saving."""

    DEFAULT_CONFIG_PATHS = [
        Path("config.json"),
        Path.home() / ".bark_responder" / "config.json",
        Path("/etc/bark_responder/config.json")
    ]

    def __init__(self):
        """Initialize configuration manager."""
        self.config = BarkResponderConfig()

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> BarkResponderConfig:
        """Load configuration from file with fallback to defaults."""
        if config_path:
            config_file = Path(config_path)
            if not config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            return self._load_from_file(config_file)

        for path in self.DEFAULT_CONFIG_PATHS:
            if path.exists():
                logger.info(f"Loading configuration from: {path}")
                return self._load_from_file(path)

        logger.info("No configuration file found, using defaults")
        return BarkResponderConfig()

    def _load_from_file(self, config_path: Path) -> BarkResponderConfig:
        """Load configuration from specific file."""
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except OSError as e:
            raise RuntimeError(f"Error loading configuration from {config_path}: {e}")

        config = self._dict_to_config(data)
        logger.info(f"✅ Configuration loaded successfully from {config_path}")
        return config

    def _dict_to_config(self, data: Dict[str, Any]) -> BarkResponderConfig:
        """Convert dictionary to configuration objects with validation."""
        config = BarkResponderConfig()

        if 'detection' in data:
            detection_data = data['detection']
            config.detection = DetectionConfig(
                thresholds=self._load_thresholds(detection_data.get('thresholds')),
                cooldown_seconds=self._validate_float(detection_data.get('cooldown_seconds', 15.0), *COOLDOWN_RANGE, 'cooldown_seconds'),
                sensitivity=self._validate_float(detection_data.get('sensitivity', 1.0), *SENSITIVITY_RANGE, 'sensitivity')
            )

        if 'audio' in data:
            audio_data = data['audio']
            config.audio = AudioConfig(
                sample_rate=audio_data.get('sample_rate', 16000),
                chunk_size=audio_data.get('chunk_size', 1024),
                channels=audio_data.get('channels', 1),
                poll_interval_ms=int(self._validate_float(audio_data.get('poll_interval_ms', 100), *POLL_INTERVAL_RANGE, 'poll_interval_ms'))
            )

        if 'output' in data:
            output_data = data['output']
            config.output = OutputConfig(
                data_dir=output_data.get('data_dir', 'data'),
                reports_file=output_data.get('reports_file', 'reports.json'),
                recordings_file=output_data.get('recordings_file', 'recordings.json'),
                logs_dir=output_data.get('logs_dir', 'logs'),
                pdf_dir=output_data.get('pdf_dir', 'reports')
            )

        return config

    def _load_thresholds(self, data) -> ThresholdConfig:
        """Validate persisted thresholds, substituting defaults if they are corrupt."""
        if data is None:
            return ThresholdConfig.default()
        try:
            return ThresholdConfig.from_list(data)
        except ConfigCorruptError as e:
            logger.warning(f"⚠️ Threshold configuration corrupt, using defaults: {e}")
            return ThresholdConfig.default()

    def _validate_float(self, value: float, min_val: float, max_val: float, name: str) -> float:
        """Validate float parameter is within range."""
        return validate_number(value, min_val, max_val, name)

    def save_config(self, config: BarkResponderConfig, config_path: Union[str, Path]):
        """Save configuration to file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(config_file, 'w') as f:
                json.dump(config.to_dict(), f, indent=2, sort_keys=True)
            logger.info(f"💾 Configuration saved to: {config_file}")

        except OSError as e:
            raise RuntimeError(f"Error saving configuration to {config_file}: {e}")

    def create_default_config(self, config_path: Union[str, Path]):
        """Create a default configuration file."""
        self.save_config(BarkResponderConfig(), config_path)
        logger.info(f"📝 Default configuration created: {config_path}")

    def merge_cli_args(self, config: BarkResponderConfig, args: Any) -> BarkResponderConfig:
        """Merge CLI arguments with configuration file settings (CLI takes precedence)."""
        merged_config = BarkResponderConfig(
            detection=DetectionConfig(
                thresholds=ThresholdConfig(config.detection.thresholds.levels),
                cooldown_seconds=config.detection.cooldown_seconds,
                sensitivity=config.detection.sensitivity
            ),
            audio=AudioConfig(**asdict(config.audio)),
            output=OutputConfig(**asdict(config.output))
        )

        if getattr(args, 'sensitivity', None) is not None:
            merged_config.detection.sensitivity = self._validate_float(args.sensitivity, *SENSITIVITY_RANGE, 'sensitivity')
        if getattr(args, 'cooldown', None) is not None:
            merged_config.detection.cooldown_seconds = self._validate_float(args.cooldown, *COOLDOWN_RANGE, 'cooldown_seconds')
        if getattr(args, 'poll_interval', None) is not None:
            merged_config.audio.poll_interval_ms = int(self._validate_float(args.poll_interval, *POLL_INTERVAL_RANGE, 'poll_interval_ms'))
        if getattr(args, 'data_dir', None) is not None:
            merged_config.output.data_dir = args.data_dir

        return merged_config
