"""Orchestration of keyframe sampling, remote analysis and scene regeneration."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from veoscripter.ai.config import MAX_SCENE_COUNT, Settings, get_settings
from veoscripter.ai.gateway import AnalysisGateway
from veoscripter.ai.states import Analyzing, Failed, Idle, Ready, Sampling, SessionState, SessionStatus
from veoscripter.base.description import AnalysisResult, Scene
from veoscripter.base.exceptions import InvalidSessionStateError, VeoScripterError
from veoscripter.base.frames import SampledFrame
from veoscripter.base.media import MediaSource, OpenCVMediaSource
from veoscripter.base.sampler import FrameSampler

__all__ = ["AnalysisSession", "StateListener"]

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]

REGENERATE_FAILED_NOTICE = "Failed to update scenes. Please try again."
ANALYSIS_CANCELLED_REASON = "Analysis was cancelled."


class AnalysisSession:
    """State machine driving one video through sampling, analysis and scene regeneration.

    The session runs on a single event loop. Each started session gets a new generation
    number; responses belonging to an older generation (after `reset`) are dropped, so a
    late reply can never leak into the live session.

    Example:
        >>> session = AnalysisSession(gateway=VisionLLMGateway())
        >>> state = await session.analyze_path("clip.mp4")
        >>> if state.status is SessionStatus.READY:
        ...     await session.regenerate_scenes(3)
    """

    def __init__(
        self,
        gateway: AnalysisGateway,
        sampler: FrameSampler | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.sampler = sampler or FrameSampler(seek_timeout=self.settings.seek_timeout)

        self._state: SessionState = Idle()
        self._frames: tuple[SampledFrame, ...] = ()
        self._generation = 0
        self._notice: str | None = None
        self._notice_handle: asyncio.TimerHandle | None = None
        self._recovery_handle: asyncio.TimerHandle | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def result(self) -> AnalysisResult | None:
        return self._state.result if isinstance(self._state, Ready) else None

    @property
    def frames(self) -> tuple[SampledFrame, ...]:
        return self._frames

    @property
    def error_message(self) -> str | None:
        """Failure reason while the session is `Failed`."""
        return self._state.reason if isinstance(self._state, Failed) else None

    @property
    def notice(self) -> str | None:
        """Transient user-facing notification, cleared automatically."""
        return self._notice

    @property
    def is_regenerating(self) -> bool:
        return isinstance(self._state, Ready) and self._state.regenerating

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with every new state. Returns a function that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def analyze_path(self, path: str | Path) -> SessionState:
        """Open a local video file and run `start_analysis` on it."""
        if not isinstance(self._state, Idle):
            raise InvalidSessionStateError(f"Cannot start analysis while session is {self._state.status.value}")
        try:
            source = OpenCVMediaSource(path)
        except VeoScripterError as e:
            self._generation += 1
            self._fail(self._generation, str(e))
            return self._state

        with source:
            return await self.start_analysis(source)

    async def start_analysis(self, source: MediaSource) -> SessionState:
        """Sample keyframes from `source` and analyze them.

        Only allowed from `Idle`. Returns the state the session settled in, normally
        `Ready` or `Failed`.

        Raises:
            InvalidSessionStateError: The session is not idle.
        """
        if not isinstance(self._state, Idle):
            raise InvalidSessionStateError(f"Cannot start analysis while session is {self._state.status.value}")

        self._generation += 1
        generation = self._generation
        self._frames = ()
        self._clear_notice()
        self._set_state(Sampling())

        try:
            frames = await self.sampler.sample(
                source,
                count=self.settings.frame_count,
                max_dimension=self.settings.max_dimension,
                quality=self.settings.quality,
            )
        except VeoScripterError as e:
            self._fail(generation, str(e))
            return self._state
        except asyncio.CancelledError:
            self._fail(generation, ANALYSIS_CANCELLED_REASON)
            raise
        except Exception:
            self._fail(generation, "Unexpected error while extracting keyframes.")
            raise

        if not self._is_current(generation):
            logger.debug("Discarding keyframes of superseded session %d", generation)
            return self._state

        self._frames = tuple(frames)
        self._set_state(Analyzing(frame_count=len(frames)))

        try:
            result = await self.gateway.analyze(self._frames)
        except VeoScripterError as e:
            self._fail(generation, f"Failed to analyze video: {e}")
            return self._state
        except asyncio.CancelledError:
            self._fail(generation, ANALYSIS_CANCELLED_REASON)
            raise
        except Exception:
            self._fail(generation, "Unexpected error while analyzing video.")
            raise

        if not self._is_current(generation):
            logger.debug("Discarding analysis of superseded session %d", generation)
            return self._state

        self._set_state(Ready(result))
        return self._state

    async def regenerate_scenes(self, count: int) -> bool:
        """Replace the scene list with exactly `count` scenes, keeping everything else.

        Reuses the keyframes cached by `start_analysis`. Ignored when the session is not
        `Ready` or another regeneration is in flight. On failure the current result is kept
        and a notice is shown.

        Returns:
            True if the scenes were replaced, False otherwise.
        """
        if not 1 <= count <= MAX_SCENE_COUNT:
            raise ValueError(f"count must be between 1 and {MAX_SCENE_COUNT}")

        state = self._state
        if not isinstance(state, Ready):
            logger.debug("Ignoring scene regeneration while session is %s", state.status.value)
            return False
        if state.regenerating:
            logger.debug("Ignoring scene regeneration, one is already in flight")
            return False

        generation = self._generation
        self._set_state(Ready(state.result, regenerating=True))

        try:
            scenes = await self.gateway.resplit(self._frames, count)
        except VeoScripterError as e:
            self._finish_regeneration(generation, None, e)
            return False
        except asyncio.CancelledError:
            current = self._state
            if self._is_current(generation) and isinstance(current, Ready):
                logger.debug("Scene regeneration cancelled")
                self._set_state(Ready(current.result))
            raise
        except Exception as e:
            self._finish_regeneration(generation, None, e)
            raise

        return self._finish_regeneration(generation, scenes, None)

    def reset(self) -> None:
        """Return to `Idle` from any state, discarding cached frames and the result."""
        self._generation += 1
        self._cancel_recovery()
        self._clear_notice()
        self._frames = ()
        self._set_state(Idle())
        logger.debug("Session reset (generation %d)", self._generation)

    def _finish_regeneration(self, generation: int, scenes: list[Scene] | None, error: Exception | None) -> bool:
        if not self._is_current(generation):
            logger.debug("Discarding scene regeneration of superseded session %d", generation)
            return False

        current = self._state
        assert isinstance(current, Ready)
        if error is not None or scenes is None:
            logger.warning("Scene regeneration failed: %s", error)
            self._set_state(Ready(current.result))
            self._show_notice(REGENERATE_FAILED_NOTICE)
            return False

        self._set_state(Ready(current.result.with_scenes(scenes)))
        logger.info("Scenes regenerated: %d scene(s)", len(scenes))
        return True

    def _fail(self, generation: int, reason: str) -> None:
        if not self._is_current(generation):
            logger.debug("Discarding failure of superseded session %d: %s", generation, reason)
            return

        logger.error("Analysis session failed: %s", reason)
        self._frames = ()
        self._set_state(Failed(reason))
        self._show_notice(reason)
        self._cancel_recovery()
        loop = asyncio.get_running_loop()
        self._recovery_handle = loop.call_later(self.settings.failure_recovery_seconds, self._recover, generation)

    def _recover(self, generation: int) -> None:
        self._recovery_handle = None
        if self._is_current(generation) and isinstance(self._state, Failed):
            self._set_state(Idle())

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _show_notice(self, message: str) -> None:
        self._clear_notice()
        self._notice = message
        loop = asyncio.get_running_loop()
        self._notice_handle = loop.call_later(self.settings.notice_seconds, self._expire_notice, message)

    def _expire_notice(self, message: str) -> None:
        if self._notice == message:
            self._notice = None
        self._notice_handle = None

    def _clear_notice(self) -> None:
        if self._notice_handle is not None:
            self._notice_handle.cancel()
            self._notice_handle = None
        self._notice = None

    def _cancel_recovery(self) -> None:
        if self._recovery_handle is not None:
            self._recovery_handle.cancel()
            self._recovery_handle = None
