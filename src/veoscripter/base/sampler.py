"""Deterministic keyframe sampling from a seekable video source."""

from __future__ import annotations

import asyncio
import io
import logging
import math

import cv2
import numpy as np
from PIL import Image

from veoscripter.base.exceptions import (
    DurationUnavailableError,
    FrameEncodeError,
    RasterSurfaceUnavailableError,
    SeekTimeoutError,
)
from veoscripter.base.frames import SampledFrame
from veoscripter.base.media import MediaSource
from veoscripter.base.progress import progress_iter

__all__ = ["FrameSampler", "RasterSurface", "sample_timestamps", "jpeg_quality"]

logger = logging.getLogger(__name__)

DEFAULT_FRAME_COUNT = 8
DEFAULT_MAX_DIMENSION = 512
DEFAULT_QUALITY = 0.7
DEFAULT_SEEK_TIMEOUT = 10.0


def sample_timestamps(duration: float, count: int) -> list[float]:
    """Return `count` evenly spaced instants strictly inside (0, duration).

    The interval is split into `count + 1` equal parts and the interior boundaries are used,
    so the first and last instants of the video are never sampled.

    Args:
        duration: Video length in seconds, finite and positive
        count: Number of timestamps, at least 1

    Returns:
        Strictly increasing timestamps `duration * i / (count + 1)` for i = 1..count
    """
    if count < 1:
        raise ValueError("count must be >= 1")
    if not math.isfinite(duration) or duration <= 0:
        raise ValueError("duration must be a finite positive number")
    return [duration * i / (count + 1) for i in range(1, count + 1)]


def jpeg_quality(quality: float) -> int:
    """Map a 0-1 quality factor to Pillow's 1-100 JPEG quality scale."""
    return min(100, max(1, round(quality * 100)))


class RasterSurface:
    """Reusable off-screen RGB buffer frames are drawn onto before encoding.

    The surface is sized once per sampling pass. Frames larger than `max_dimension` on
    either axis are scaled down uniformly; smaller frames keep their native size.
    """

    def __init__(self, source_size: tuple[int, int], max_dimension: int):
        width, height = source_size
        if width <= 0 or height <= 0:
            raise RasterSurfaceUnavailableError(f"Source reports no renderable dimensions ({width}x{height})")

        self.source_size = (width, height)
        self.scale = min(1.0, max_dimension / width, max_dimension / height)
        self.width = min(max_dimension, max(1, round(width * self.scale)))
        self.height = min(max_dimension, max(1, round(height * self.scale)))
        self._buffer = np.zeros((self.height, self.width, 3), dtype=np.uint8)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def draw(self, frame: np.ndarray | None) -> None:
        if frame is None or frame.ndim != 3 or frame.shape[2] != 3 or frame.size == 0:
            raise RasterSurfaceUnavailableError("Decoder has no renderable frame")
        height, width = frame.shape[:2]
        if (width, height) != self.source_size:
            raise RasterSurfaceUnavailableError(
                f"Decoded frame is {width}x{height}, source reports {self.source_size[0]}x{self.source_size[1]}"
            )

        frame = np.ascontiguousarray(frame, dtype=np.uint8)
        if frame.shape[:2] == (self.height, self.width):
            np.copyto(self._buffer, frame)
        else:
            cv2.resize(frame, (self.width, self.height), dst=self._buffer, interpolation=cv2.INTER_AREA)

    def encode(self, quality: float) -> bytes:
        buffer = io.BytesIO()
        try:
            Image.fromarray(self._buffer).save(buffer, format="JPEG", quality=jpeg_quality(quality))
        except (OSError, ValueError) as e:
            raise FrameEncodeError(f"Could not encode frame: {e}") from e
        return buffer.getvalue()


class FrameSampler:
    """Samples a fixed number of evenly spaced keyframes from a video.

    Seeks are issued strictly one after another: the source has a single playback
    position, so each seek-and-render cycle completes before the next begins. Sampling is
    all-or-nothing, any failure aborts the pass without returning partial results.
    """

    def __init__(self, seek_timeout: float = DEFAULT_SEEK_TIMEOUT):
        """Initialize the sampler.

        Args:
            seek_timeout: Maximum seconds to wait for a single seek to produce a frame.
        """
        if seek_timeout <= 0:
            raise ValueError("seek_timeout must be positive")
        self.seek_timeout = seek_timeout

    async def sample(
        self,
        source: MediaSource,
        count: int = DEFAULT_FRAME_COUNT,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        quality: float = DEFAULT_QUALITY,
    ) -> list[SampledFrame]:
        """Sample `count` JPEG keyframes from `source`.

        Args:
            source: Seekable video source, borrowed for the duration of this call
            count: Number of frames to sample
            max_dimension: Upper bound for the longer side of each output image
            quality: JPEG quality factor in (0, 1]

        Returns:
            Frames ordered by timestamp, indexed from 1

        Raises:
            DurationUnavailableError: The source duration is unknown, infinite or not positive.
            RasterSurfaceUnavailableError: The decoder produced nothing to draw.
            SeekTimeoutError: A seek did not complete within `seek_timeout`.
            FrameEncodeError: A frame could not be compressed.
        """
        if count < 1:
            raise ValueError("count must be >= 1")
        if max_dimension < 1:
            raise ValueError("max_dimension must be >= 1")
        if not 0.0 < quality <= 1.0:
            raise ValueError("quality must be in (0, 1]")

        duration = source.duration
        if duration is None or not math.isfinite(duration) or duration <= 0:
            raise DurationUnavailableError("Could not determine video duration.")

        surface = RasterSurface(source.natural_dimensions, max_dimension)
        timestamps = sample_timestamps(duration, count)
        logger.debug(
            "Sampling %d keyframes from %.3fs source at %dx%d", count, duration, surface.width, surface.height
        )

        frames: list[SampledFrame] = []
        for index, timestamp in progress_iter(enumerate(timestamps, start=1), desc="Sampling keyframes", total=count):
            await self._seek(source, timestamp)
            surface.draw(source.read_frame())
            image = surface.encode(quality)
            frames.append(
                SampledFrame(index=index, timestamp=timestamp, image=image, width=surface.width, height=surface.height)
            )
            logger.debug("Keyframe %d/%d at %.3fs (%d bytes)", index, count, timestamp, len(image))

        logger.info("Sampled %d keyframes from %.2fs of video", len(frames), duration)
        return frames

    async def _seek(self, source: MediaSource, timestamp: float) -> None:
        try:
            await asyncio.wait_for(source.seek(timestamp), timeout=self.seek_timeout)
        except asyncio.TimeoutError as e:
            raise SeekTimeoutError(timestamp, self.seek_timeout) from e
