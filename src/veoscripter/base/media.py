"""Seekable video sources consumed by the keyframe sampler."""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import cv2
import numpy as np

from veoscripter.base.exceptions import VideoLoadError

__all__ = ["MediaSource", "OpenCVMediaSource", "ArrayMediaSource"]

logger = logging.getLogger(__name__)


class MediaSource(ABC):
    """Random-access video handle with a single current playback position.

    Implementations decode one frame at a time: `seek` moves the position and completes
    once the frame at that instant is ready, `read_frame` returns that frame.
    """

    @property
    @abstractmethod
    def duration(self) -> float | None:
        """Length in seconds, or None when unknown."""

    @property
    @abstractmethod
    def natural_dimensions(self) -> tuple[int, int]:
        """Native (width, height) of decoded frames."""

    @abstractmethod
    async def seek(self, timestamp: float) -> None:
        """Move to `timestamp` seconds and wait until the frame there is decoded."""

    @abstractmethod
    def read_frame(self) -> np.ndarray | None:
        """Return the current decoded frame as RGB (H, W, 3) uint8, or None if nothing is renderable."""


class OpenCVMediaSource(MediaSource):
    """Local video file decoded with OpenCV.

    Seeks run on a single decoder thread owned by the source, so a stalled decode never
    blocks the event loop. `close` does not wait for a decode in progress; the decoder
    thread releases the capture once its read returns.

    Example:
        >>> with OpenCVMediaSource("clip.mp4") as source:
        ...     frames = await FrameSampler().sample(source)
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        if not self.path.exists():
            raise VideoLoadError(f"Video file not found: {self.path}")

        self._capture = cv2.VideoCapture(str(self.path))
        if not self._capture.isOpened():
            self._capture.release()
            raise VideoLoadError(f"Could not open video file: {self.path}")

        self._lock = threading.Lock()
        self._closed = False
        self._frame: np.ndarray | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="veoscripter-decode")
        self.fps = float(self._capture.get(cv2.CAP_PROP_FPS) or 0.0)
        self.frame_count = int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        self._width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self._height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        # Frames come out auto-rotated while the size properties stay unrotated
        self.rotation = int(self._capture.get(cv2.CAP_PROP_ORIENTATION_META) or 0) % 360
        if self.rotation in (90, 270):
            self._width, self._height = self._height, self._width
        logger.debug(
            "Opened %s: %dx%d @ %.3ffps, %d frames", self.path, self._width, self._height, self.fps, self.frame_count
        )

    @property
    def duration(self) -> float | None:
        if self.fps <= 0 or self.frame_count <= 0 or not math.isfinite(self.fps):
            return None
        return self.frame_count / self.fps

    @property
    def natural_dimensions(self) -> tuple[int, int]:
        return self._width, self._height

    async def seek(self, timestamp: float) -> None:
        if self._closed:
            self._frame = None
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._seek_and_decode, timestamp)

    def _seek_and_decode(self, timestamp: float) -> None:
        with self._lock:
            if self._capture is None:
                self._frame = None
                return
            try:
                self._capture.set(cv2.CAP_PROP_POS_MSEC, timestamp * 1000.0)
                ok, frame = self._capture.read()
            except cv2.error as e:
                logger.warning("Decoder error while seeking %s to %.3fs: %s", self.path, timestamp, e)
                ok, frame = False, None
            self._frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB) if ok and frame is not None else None

        if self._closed:
            # close() ran while this read held the capture
            with self._lock:
                self._release_capture()

    def read_frame(self) -> np.ndarray | None:
        return None if self._closed else self._frame

    def close(self) -> None:
        self._closed = True
        self._frame = None
        if self._lock.acquire(blocking=False):
            try:
                self._release_capture()
            finally:
                self._lock.release()
        else:
            logger.debug("Decode still running for %s, capture is released when it returns", self.path)
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _release_capture(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            self._frame = None

    def __enter__(self) -> OpenCVMediaSource:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class ArrayMediaSource(MediaSource):
    """In-memory clip made of RGB frames shown at a constant frame rate."""

    def __init__(self, frames: np.ndarray, fps: float):
        if frames.ndim != 4 or frames.shape[-1] != 3:
            raise ValueError(f"frames must have shape (N, H, W, 3), got {frames.shape}")
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.frames = frames
        self.fps = fps
        self._position: int | None = None

    @classmethod
    def from_image(cls, image: np.ndarray, fps: float = 24.0, length_seconds: float = 1.0) -> ArrayMediaSource:
        frame_count = max(1, round(fps * length_seconds))
        return cls(np.repeat(image[np.newaxis], frame_count, axis=0), fps)

    @property
    def duration(self) -> float | None:
        return len(self.frames) / self.fps

    @property
    def natural_dimensions(self) -> tuple[int, int]:
        _, height, width, _ = self.frames.shape
        return width, height

    async def seek(self, timestamp: float) -> None:
        self._position = min(max(int(timestamp * self.fps), 0), len(self.frames) - 1)
        await asyncio.sleep(0)

    def read_frame(self) -> np.ndarray | None:
        if self._position is None or len(self.frames) == 0:
            return None
        return self.frames[self._position]
