from .description import AnalysisResult, Scene
from .exceptions import (
    DurationUnavailableError,
    FrameEncodeError,
    InputError,
    InvalidSessionStateError,
    RasterSurfaceUnavailableError,
    SamplingError,
    SeekTimeoutError,
    VeoScripterError,
    VideoLoadError,
)
from .frames import SampledFrame
from .media import ArrayMediaSource, MediaSource, OpenCVMediaSource
from .progress import configure
from .sampler import FrameSampler, RasterSurface, sample_timestamps

__all__ = [
    # Data model
    "AnalysisResult",
    "Scene",
    "SampledFrame",
    # Media
    "MediaSource",
    "OpenCVMediaSource",
    "ArrayMediaSource",
    # Sampling
    "FrameSampler",
    "RasterSurface",
    "sample_timestamps",
    "configure",
    # Exceptions
    "VeoScripterError",
    "InputError",
    "VideoLoadError",
    "DurationUnavailableError",
    "SamplingError",
    "RasterSurfaceUnavailableError",
    "SeekTimeoutError",
    "FrameEncodeError",
    "InvalidSessionStateError",
]
