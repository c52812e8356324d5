"""Calming-sound recordings bound to bark levels"""

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

import soundfile as sf

from ..core.models import Recording, generate_id

logger = logging.getLogger(__name__)


class RecordingLibrary:
    """Stores one calming sound per bark level.

    Audio files are copied under ``sounds_dir``; metadata is kept in a JSON
    file alongside the other data files.
    """

    def __init__(self, library_path: Path = None, sounds_dir: Path = None):
        self.library_path = (Path(library_path) if library_path else Path('data') / 'recordings.json').absolute()
        self.sounds_dir = Path(sounds_dir).absolute() if sounds_dir else self.library_path.parent / 'sounds'
        self.recordings: List[Recording] = []
        self._load_recordings()

    def _load_recordings(self):
        if not self.library_path.exists():
            return

        try:
            with open(self.library_path, 'r') as f:
                data = json.load(f)
            self.recordings = [Recording.from_dict(item) for item in data.get('recordings', [])]
            logger.debug(f"📂 Loaded {len(self.recordings)} recordings from {self.library_path}")
        except Exception as e:
            logger.warning(f"Could not load recordings {self.library_path}: {e}")
            self.recordings = []

    def _save_recordings(self):
        self.library_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'recordings': [recording.to_dict() for recording in self.recordings],
            'metadata': {
                'total_recordings': len(self.recordings),
                'updated_timestamp': datetime.now().isoformat()
            }
        }

        with open(self.library_path, 'w') as f:
            json.dump(data, f, indent=2)

    def add_recording(self, source, name: Optional[str], level: int) -> Recording:
        """Register an audio file as the calming sound for a level.

        Any existing recording for the level is replaced and its file removed.

        Args:
            source: Path to an audio file readable by soundfile
            name: Display name (defaults to the file stem)
            level: 1-based bark level

        Returns:
            The new Recording

        Raises:
            FileNotFoundError: source does not exist
            ValueError: level is not positive or the file is not audio
        """
        source = Path(source)
        if level < 1:
            raise ValueError(f"Bark level must be 1 or greater, got {level}")
        if not source.exists():
            raise FileNotFoundError(f"Recording file not found: {source}")

        try:
            duration = float(sf.info(str(source)).duration)
        except Exception as e:
            raise ValueError(f"Could not read audio file {source}: {e}") from e

        previous = self.for_level(level)
        if previous is not None:
            self._discard(previous)

        now = datetime.now()
        recording_id = generate_id()
        self.sounds_dir.mkdir(parents=True, exist_ok=True)
        target = self.sounds_dir / f"level{level}_{recording_id}{source.suffix.lower()}"
        shutil.copy2(source, target)

        recording = Recording(
            id=recording_id,
            name=name or source.stem,
            uri=str(target),
            duration=duration,
            level=level,
            created_at=now,
            updated_at=now
        )
        self.recordings.append(recording)
        self._save_recordings()

        logger.info(f"🎵 Recording '{recording.name}' saved for level {level} ({duration:.1f}s)")
        return recording

    def remove_recording(self, recording_id: str) -> Recording:
        """Delete a recording and its audio file.

        Raises:
            KeyError: no recording has this id
        """
        for recording in self.recordings:
            if recording.id == recording_id:
                self._discard(recording)
                self._save_recordings()
                logger.info(f"🗑️ Recording '{recording.name}' removed from level {recording.level}")
                return recording
        raise KeyError(f"No recording with id {recording_id}")

    def _discard(self, recording: Recording):
        self.recordings.remove(recording)
        path = Path(recording.uri)
        try:
            if path.exists() and self.sounds_dir in path.parents:
                path.unlink()
        except OSError as e:
            logger.warning(f"Could not delete recording file {path}: {e}")

    def for_level(self, level: int) -> Optional[Recording]:
        for recording in self.recordings:
            if recording.level == level:
                return recording
        return None

    def all(self) -> List[Recording]:
        return sorted(self.recordings, key=lambda recording: recording.level)

    def missing_levels(self, level_count: int) -> List[int]:
        """Levels 1..level_count that have no calming sound yet."""
        covered = {recording.level for recording in self.recordings}
        return [level for level in range(1, level_count + 1) if level not in covered]

    def max_duration(self, recordings: Iterable[Recording] = None) -> float:
        recordings = self.recordings if recordings is None else recordings
        return max((recording.duration for recording in recordings), default=0.0)

    def clear(self):
        """Delete every recording."""
        count = len(self.recordings)
        for recording in list(self.recordings):
            self._discard(recording)
        self._save_recordings()
        logger.info(f"🗑️ Cleared {count} recordings")

    def __len__(self) -> int:
        return len(self.recordings)
