"""Error kinds raised by the bark response engine"""


class BarkResponderError(Exception):
    """Base exception for bark responder failures."""
    pass


class PermissionDeniedError(BarkResponderError):
    """Microphone access was refused. Fatal to starting a listening session."""
    pass


class CaptureFailureError(BarkResponderError):
    """The recording/metering facility failed to open or run."""
    pass


class PlaybackFailureError(BarkResponderError):
    """A calming sound could not be loaded or played."""

    def __init__(self, message: str, level: int = None):
        """
        Initialize playback failure.

        Args:
            message: Error message
            level: Bark level whose sound failed, if known
        """
        super().__init__(message)
        self.level = level


class ConfigCorruptError(BarkResponderError):
    """Threshold configuration is not a well-formed ordered sequence."""
    pass


class ThresholdOrderError(BarkResponderError, ValueError):
    """A threshold edit would break the strictly increasing level ordering."""
    pass
