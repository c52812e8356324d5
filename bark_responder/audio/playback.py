"""Calming sound playback"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Set

import numpy as np
import pyaudio
import soundfile as sf

from ..core.exceptions import PlaybackFailureError

logger = logging.getLogger(__name__)


@dataclass
class SoundHandle:
    """A decoded sound held in memory until unloaded."""
    uri: str
    data: np.ndarray  # int16 frames, shape (frames, channels)
    sample_rate: int
    channels: int
    loaded: bool = True
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def duration(self) -> float:
        return len(self.data) / self.sample_rate if self.sample_rate else 0.0


class SoundPlayer:
    """Loads calming sounds and plays them without blocking the caller.

    Playback threads are tracked so ``close()`` can stop them and wait for
    any in-flight stream write before PortAudio is terminated.
    """

    CLOSE_TIMEOUT = 2.0

    def __init__(self, chunk_size: int = 1024):
        self.chunk_size = chunk_size
        self._audio: Optional[pyaudio.PyAudio] = None
        self._audio_lock = threading.Lock()
        self._playing: Set[threading.Thread] = set()
        self._playing_lock = threading.Lock()
        self._stopping = threading.Event()

    def _get_audio(self):
        with self._audio_lock:
            if self._audio is None:
                self._stopping.clear()
                self._audio = pyaudio.PyAudio()
            return self._audio

    def load_sound(self, uri: str) -> SoundHandle:
        """Decode an audio file into memory.

        Raises:
            PlaybackFailureError: if the file cannot be read
        """
        try:
            data, sample_rate = sf.read(str(uri), dtype='int16', always_2d=True)
        except Exception as e:
            raise PlaybackFailureError(f"Could not load sound {uri}: {e}") from e

        handle = SoundHandle(uri=str(uri), data=data, sample_rate=sample_rate, channels=data.shape[1])
        logger.debug(f"Loaded sound {uri} ({handle.duration:.1f}s)")
        return handle

    def play(self, handle: SoundHandle) -> threading.Thread:
        """Start playback on a background thread and return immediately.

        Raises:
            PlaybackFailureError: if the sound is unloaded or the output
                device cannot be opened
        """
        if not handle.loaded:
            raise PlaybackFailureError(f"Sound {handle.uri} is not loaded")

        try:
            stream = self._get_audio().open(
                format=pyaudio.paInt16,
                channels=handle.channels,
                rate=handle.sample_rate,
                output=True,
                frames_per_buffer=self.chunk_size
            )
        except Exception as e:
            raise PlaybackFailureError(f"Could not open output stream for {handle.uri}: {e}") from e

        thread = threading.Thread(target=self._write_stream, args=(stream, handle), daemon=True,
                                  name="CalmingSound")
        with self._playing_lock:
            self._playing.add(thread)
        thread.start()
        logger.info(f"🔊 Playing calming sound: {handle.uri}")
        return thread

    def _write_stream(self, stream, handle: SoundHandle):
        try:
            for start in range(0, len(handle.data), self.chunk_size):
                if not handle.loaded or self._stopping.is_set():
                    break
                stream.write(handle.data[start:start + self.chunk_size].tobytes())
        except Exception as e:
            logger.error(f"Error playing calming sound {handle.uri}: {e}")
        finally:
            try:
                stream.stop_stream()
                stream.close()
            except Exception as e:
                logger.warning(f"Could not close output stream: {e}")
            with self._playing_lock:
                self._playing.discard(threading.current_thread())

    def unload(self, handle: SoundHandle):
        """Release a loaded sound; playback in progress stops at the next chunk."""
        with handle._lock:
            handle.loaded = False
            handle.data = np.zeros((0, handle.channels), dtype=np.int16)

    def close(self):
        """Stop playback, wait for in-flight writes, then release PortAudio."""
        self._stopping.set()
        with self._playing_lock:
            threads = [thread for thread in self._playing if thread is not threading.current_thread()]
        for thread in threads:
            thread.join(self.CLOSE_TIMEOUT)
            if thread.is_alive():
                logger.warning(f"Playback thread still running after {self.CLOSE_TIMEOUT}s, closing audio anyway")

        with self._audio_lock:
            if self._audio is not None:
                self._audio.terminate()
                self._audio = None
