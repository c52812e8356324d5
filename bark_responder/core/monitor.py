"""Real-time bark monitoring and calming-sound response"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .classifier import classify
from .cooldown import CooldownGate
from .exceptions import PlaybackFailureError
from .models import BarkEvent, ListeningSession, MeteringSample, Recording, generate_id
from ..utils.levels import dbfs_to_percent

logger = logging.getLogger(__name__)


def _ignore(*args, **kwargs):
    pass


@dataclass
class MonitorCallbacks:
    """Observer hooks, called synchronously while a sample is processed."""
    on_bark_detected: Callable[[BarkEvent], None] = _ignore
    on_level_change: Callable[[Optional[int], float, int], None] = _ignore
    on_cooldown_update: Callable[[float], None] = _ignore


class MonitorState(Enum):
    IDLE = 'idle'
    LISTENING = 'listening'


class BarkMonitor:
    """Drives level classification, cooldown gating and sound playback.

    Collaborators are injected:
        capture: object with ``start_capture(on_sample, metering_enabled,
            poll_interval_ms)`` returning a handle with ``stop()``
        player: object with ``load_sound(uri)``, ``play(handle)`` and
            ``unload(handle)``
        settings_provider: callable returning the live detection settings
            (``thresholds``, ``cooldown_seconds``, ``sensitivity``)
        recordings_provider: callable returning the calming-sound recordings
    """

    def __init__(self,
                 capture,
                 player,
                 settings_provider: Callable,
                 recordings_provider: Callable[[], List[Recording]],
                 callbacks: Optional[MonitorCallbacks] = None,
                 poll_interval_ms: int = 100,
                 clock: Callable[[], datetime] = datetime.now):
        self.capture = capture
        self.player = player
        self.settings_provider = settings_provider
        self.recordings_provider = recordings_provider
        self.callbacks = callbacks or MonitorCallbacks()
        self.poll_interval_ms = poll_interval_ms
        self.clock = clock

        self.state = MonitorState.IDLE
        self.session: Optional[ListeningSession] = None
        self.cooldown = CooldownGate()

        # Owned by the active run only
        self._capture_handle = None
        self._sounds: Dict[int, Tuple[object, Recording]] = {}
        self._lock = threading.RLock()

    @property
    def is_listening(self) -> bool:
        return self.state is MonitorState.LISTENING

    def start(self) -> ListeningSession:
        """Start listening and open a new session.

        A run that is already active is stopped first, releasing its capture
        stream and preloaded sounds, so only one run ever holds resources.

        Raises:
            PermissionDeniedError: microphone access was refused
            CaptureFailureError: the capture facility could not be opened
        """
        with self._lock:
            if self.is_listening:
                logger.warning("Bark monitor already listening, restarting")
                self.stop()

            logger.info("🎧 Starting bark monitor...")
            self.cooldown.reset()
            self._preload_sounds()

            self.session = ListeningSession.begin(self.clock())
            self.state = MonitorState.LISTENING
            try:
                self._capture_handle = self.capture.start_capture(
                    self.handle_sample,
                    metering_enabled=True,
                    poll_interval_ms=self.poll_interval_ms
                )
            except Exception as e:
                logger.error(f"Error starting bark monitor: {e}")
                self.state = MonitorState.IDLE
                self.session = None
                self._unload_sounds()
                raise

            logger.info(f"Bark monitor started (session {self.session.id})")
            return self.session

    def stop(self) -> Optional[ListeningSession]:
        """Stop listening and hand back the closed session.

        Sample delivery is stopped, the capture released and the sounds
        unloaded before this returns. Calling stop when idle is a no-op.

        Returns:
            The closed session, or None if the monitor was not listening
        """
        with self._lock:
            if not self.is_listening:
                return None

            logger.info("Stopping bark monitor...")
            self.state = MonitorState.IDLE

            if self._capture_handle is not None:
                try:
                    self._capture_handle.stop()
                except Exception as e:
                    logger.error(f"Error stopping capture: {e}")
                self._capture_handle = None

            self._unload_sounds()

            session = self.session
            self.session = None
            if session is not None:
                session.close(self.clock())
                logger.info(f"Bark monitor stopped. Session {session.id}: {len(session.events)} barks, "
                            f"{session.sounds_played} sounds played")
            return session

    def reload_sounds(self):
        """Reload calming sounds after the recordings changed."""
        with self._lock:
            self._unload_sounds()
            self._preload_sounds()

    def _preload_sounds(self):
        """Load one calming sound per level. Load failures are not fatal."""
        for recording in self.recordings_provider():
            try:
                handle = self.player.load_sound(recording.uri)
            except Exception as e:
                logger.error(f"Error loading sound for level {recording.level}: {e}")
                continue
            previous = self._sounds.get(recording.level)
            if previous is not None:
                self._unload(previous[0])
            self._sounds[recording.level] = (handle, recording)
        logger.debug(f"Preloaded {len(self._sounds)} calming sounds")

    def _unload_sounds(self):
        for handle, _ in self._sounds.values():
            self._unload(handle)
        self._sounds.clear()

    def _unload(self, handle):
        try:
            self.player.unload(handle)
        except Exception as e:
            logger.warning(f"Could not unload sound: {e}")

    def handle_sample(self, sample: MeteringSample):
        """Capture callback. Errors are logged so one bad sample never ends the session."""
        if not self.is_listening:
            return
        try:
            self.process_sample(sample)
        except Exception as e:
            logger.error(f"Error in monitoring callback: {e}")

    def process_sample(self, sample: MeteringSample) -> Optional[BarkEvent]:
        """Classify one sample and respond to it.

        Returns:
            The emitted BarkEvent, or None when no bark was triggered
        """
        if not sample.is_capturing:
            return None

        settings = self.settings_provider()
        raw_level = sample.metering_level
        now = self.clock()

        level = classify(raw_level, settings.thresholds, settings.sensitivity)
        self.callbacks.on_level_change(level, raw_level, dbfs_to_percent(raw_level))

        remaining = self.cooldown.remaining(now, settings.cooldown_seconds)
        self.callbacks.on_cooldown_update(remaining)

        if level is None or remaining > 0:
            return None

        sound_played = False
        recording_id = None
        sound = self._sounds.get(level)
        if sound is not None:
            handle, recording = sound
            try:
                self.player.play(handle)
                sound_played = True
                recording_id = recording.id
                self.cooldown.mark_triggered(now)
            except Exception as e:
                error = e if isinstance(e, PlaybackFailureError) else PlaybackFailureError(str(e), level)
                logger.error(f"Error playing calming sound for level {level}: {error}")
        else:
            logger.debug(f"No calming sound configured for level {level}")

        event = BarkEvent(
            id=generate_id(),
            timestamp=now,
            raw_level=raw_level,
            derived_level=level,
            sound_played=sound_played,
            triggered_recording_id=recording_id
        )

        logger.info(f"🐕 BARK DETECTED! Level: {level}, Volume: {raw_level:.1f} dBFS, "
                    f"Sound played: {'yes' if sound_played else 'no'}")

        if self.session is not None:
            self.session.add_event(event)
        self.callbacks.on_bark_detected(event)
        return event
