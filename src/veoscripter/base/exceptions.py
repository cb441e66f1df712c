"""Exception hierarchy for veoscripter.base module."""


class VeoScripterError(Exception):
    """Base exception for all veoscripter errors."""

    pass


class InputError(VeoScripterError):
    """Base exception for problems with the supplied video source."""

    pass


class VideoLoadError(InputError):
    """Raised when a video source cannot be opened or decoded."""

    pass


class DurationUnavailableError(InputError):
    """Raised when the source duration is unknown, infinite or not positive."""

    pass


class SamplingError(VeoScripterError):
    """Base exception for keyframe sampling failures."""

    pass


class RasterSurfaceUnavailableError(SamplingError):
    """Raised when the decoder has no renderable frame to rasterize."""

    pass


class SeekTimeoutError(SamplingError):
    """Raised when a seek does not complete within the allowed time."""

    def __init__(self, timestamp: float, timeout: float):
        super().__init__(f"Seek to {timestamp:.3f}s did not complete within {timeout:g}s")
        self.timestamp = timestamp
        self.timeout = timeout


class FrameEncodeError(SamplingError):
    """Raised when a rasterized frame cannot be compressed."""

    pass


class InvalidSessionStateError(VeoScripterError):
    """Raised when a session operation is not allowed in the current state."""

    pass
