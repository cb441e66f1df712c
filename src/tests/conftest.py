from __future__ import annotations

import asyncio
import json
import threading
import time
from pathlib import Path
from typing import Any

import cv2
import numpy as np
import pytest

from veoscripter.ai.config import clear_config_cache
from veoscripter.ai.gateway import AnalysisGateway
from veoscripter.base.media import ArrayMediaSource, MediaSource

ANALYSIS_PAYLOAD: dict[str, Any] = {
    "script": "A cyclist rides through a rainy city at night, neon reflecting off wet asphalt.",
    "globalPrompt": "Cinematic night ride through a rain-soaked neon city, tracking shot, 35mm film look.",
    "visualStyle": "Moody teal and magenta palette, shallow depth of field, handheld tracking camera.",
    "scenes": [
        {"id": 1, "description": "Cyclist waits at a red light.", "generationPrompt": "Cyclist at red light, rain."},
        {"id": 2, "description": "Cyclist speeds past shop fronts.", "generationPrompt": "Tracking shot, neon shops."},
        {"id": 3, "description": "Cyclist stops under a bridge.", "generationPrompt": "Wide shot under bridge, rain."},
        {"id": 4, "description": "Close-up of wet spokes.", "generationPrompt": "Macro shot, spinning spokes."},
    ],
}


def scenes_payload(count: int) -> dict[str, Any]:
    return {
        "scenes": [
            {"id": i, "description": f"Part {i} of the ride.", "generationPrompt": f"Shot {i}, rainy neon city."}
            for i in range(1, count + 1)
        ]
    }


class ScriptedGateway(AnalysisGateway):
    """Gateway replaying canned responses.

    Each response is a string, an exception to raise, or an async callable whose result
    is returned.
    """

    def __init__(self, responses: list[Any], request_timeout: float = 5.0):
        super().__init__(request_timeout)
        self.responses = list(responses)
        self.calls: list[tuple[int, str, dict[str, Any]]] = []

    async def _generate(self, frames, prompt, schema):
        self.calls.append((len(frames), prompt, schema))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return await response()
        return response


class StubSource(MediaSource):
    """Source with controllable duration, seek latency and decoder output."""

    def __init__(
        self,
        duration: float | None = 18.0,
        size: tuple[int, int] = (160, 90),
        seek_delay: float = 0.0,
        frame: np.ndarray | None = None,
        empty: bool = False,
    ):
        self._duration = duration
        self._size = size
        self.seek_delay = seek_delay
        self.seeks: list[float] = []
        width, height = size
        self._frame = frame if frame is not None else np.full((height, width, 3), 128, dtype=np.uint8)
        self.empty = empty

    @property
    def duration(self) -> float | None:
        return self._duration

    @property
    def natural_dimensions(self) -> tuple[int, int]:
        return self._size

    async def seek(self, timestamp: float) -> None:
        self.seeks.append(timestamp)
        await asyncio.sleep(self.seek_delay)

    def read_frame(self) -> np.ndarray | None:
        return None if self.empty else self._frame


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run every test from an empty directory so no config file is picked up."""
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def analysis_payload() -> dict[str, Any]:
    return json.loads(json.dumps(ANALYSIS_PAYLOAD))


@pytest.fixture
def scripted_gateway() -> type[ScriptedGateway]:
    return ScriptedGateway


@pytest.fixture
def stub_source() -> type[StubSource]:
    return StubSource


@pytest.fixture
def gradient_source() -> ArrayMediaSource:
    """18 second clip at 4 fps, 160x90, brightness increasing over time."""
    frame_count = 72
    levels = np.linspace(0, 255, frame_count, dtype=np.uint8)
    frames = np.empty((frame_count, 90, 160, 3), dtype=np.uint8)
    frames[:] = levels[:, np.newaxis, np.newaxis, np.newaxis]
    return ArrayMediaSource(frames, fps=4.0)


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    """Two second MJPEG clip, 64x48 at 10 fps."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    for i in range(20):
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        frame[:, :, 2] = i * 12
        writer.write(frame)
    writer.release()
    return path


@pytest.fixture
def make_scenes_payload():
    return scenes_payload


class SlowCapture:
    """Wraps a cv2.VideoCapture so every read stalls for `delay` seconds."""

    def __init__(self, capture, delay: float):
        self._capture = capture
        self.delay = delay
        self.released = threading.Event()

    def set(self, prop, value):
        return self._capture.set(prop, value)

    def read(self):
        time.sleep(self.delay)
        return self._capture.read()

    def release(self):
        self._capture.release()
        self.released.set()


@pytest.fixture
def slow_capture() -> type[SlowCapture]:
    return SlowCapture
