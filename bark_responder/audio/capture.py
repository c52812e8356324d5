"""Microphone capture with level metering"""

import errno
import logging
import threading
from datetime import datetime
from typing import Callable, Optional

import numpy as np
import pyaudio

from ..core.exceptions import CaptureFailureError, PermissionDeniedError
from ..core.models import MeteringSample
from ..utils.levels import SILENCE_DBFS, rms_dbfs

logger = logging.getLogger(__name__)

INT16_SCALE = 32768.0


def _is_permission_error(error: Exception) -> bool:
    if isinstance(error, PermissionError):
        return True
    code = getattr(error, 'errno', None)
    if code in (errno.EACCES, errno.EPERM):
        return True
    return 'permission' in str(error).lower()


class CaptureHandle:
    """A running capture stream that emits metering samples.

    A single polling thread delivers samples, so the ``on_sample`` callback
    is never re-entered concurrently.
    """

    def __init__(self,
                 audio,
                 on_sample: Callable[[MeteringSample], None],
                 metering_enabled: bool = True,
                 poll_interval_ms: int = 100,
                 clock: Callable[[], datetime] = datetime.now):
        self.audio = audio
        self.stream = None
        self.on_sample = on_sample
        self.metering_enabled = metering_enabled
        self.poll_interval = poll_interval_ms / 1000.0
        self.clock = clock

        self._level_lock = threading.Lock()
        self._pending_level: Optional[float] = None
        self._last_level = SILENCE_DBFS
        self._stop_event = threading.Event()
        self._poller: Optional[threading.Thread] = None
        self._stopped = False

    def attach(self, stream):
        """Take ownership of an opened stream and begin polling."""
        self.stream = stream
        self.stream.start_stream()
        self._poller = threading.Thread(target=self._poll_loop, daemon=True, name="BarkMeter")
        self._poller.start()

    def audio_callback(self, in_data, frame_count, time_info, status):
        """PyAudio stream callback: meter the chunk, keep the loudest since the last poll."""
        if status:
            logger.warning(f"Audio callback status: {status}")

        if self.metering_enabled:
            try:
                chunk = np.frombuffer(in_data, dtype=np.int16).astype(np.float32) / INT16_SCALE
                level = rms_dbfs(chunk)
                with self._level_lock:
                    if self._pending_level is None or level > self._pending_level:
                        self._pending_level = level
            except Exception as e:
                logger.error(f"Error metering audio chunk: {e}")

        return (in_data, pyaudio.paContinue)

    def _next_level(self) -> float:
        with self._level_lock:
            if self._pending_level is not None:
                self._last_level = self._pending_level
                self._pending_level = None
            return self._last_level

    def _poll_loop(self):
        while not self._stop_event.wait(self.poll_interval):
            try:
                sample = MeteringSample(
                    is_capturing=bool(self.stream is not None and self.stream.is_active()),
                    metering_level=self._next_level() if self.metering_enabled else SILENCE_DBFS,
                    timestamp=self.clock()
                )
                self.on_sample(sample)
            except Exception as e:
                logger.error(f"Error delivering metering sample: {e}")

    @property
    def is_capturing(self) -> bool:
        return not self._stopped

    def stop(self):
        """Stop sample delivery and release the stream. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True

        self._stop_event.set()
        if self._poller is not None and self._poller is not threading.current_thread():
            self._poller.join()
        self._poller = None

        if self.stream is not None:
            try:
                if self.stream.is_active():
                    self.stream.stop_stream()
                self.stream.close()
            finally:
                self.stream = None

        if self.audio is not None:
            self.audio.terminate()
            self.audio = None

        logger.debug("Capture stream released")


class MicrophoneCapture:
    """Opens metered microphone streams through PyAudio."""

    def __init__(self, sample_rate: int = 16000, chunk_size: int = 1024, channels: int = 1,
                 clock: Callable[[], datetime] = datetime.now):
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.clock = clock

    def start_capture(self,
                      on_sample: Callable[[MeteringSample], None],
                      metering_enabled: bool = True,
                      poll_interval_ms: int = 100) -> CaptureHandle:
        """Open the default input device and start emitting samples.

        Raises:
            PermissionDeniedError: access to the microphone was refused
            CaptureFailureError: the device could not be opened
        """
        audio = None
        try:
            audio = pyaudio.PyAudio()
            handle = CaptureHandle(
                audio,
                on_sample,
                metering_enabled=metering_enabled,
                poll_interval_ms=poll_interval_ms,
                clock=self.clock
            )
            stream = audio.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=handle.audio_callback
            )
            handle.attach(stream)
        except Exception as e:
            if audio is not None:
                audio.terminate()
            if _is_permission_error(e):
                raise PermissionDeniedError(f"Microphone permission not granted: {e}") from e
            raise CaptureFailureError(f"Could not open microphone stream: {e}") from e

        logger.info(f"🎙️ Microphone capture started ({self.sample_rate} Hz, "
                    f"polling every {poll_interval_ms} ms)")
        return handle
