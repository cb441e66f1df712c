"""Remote multimodal analysis of sampled keyframes."""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

from veoscripter.ai.backends import DEFAULT_MODELS, SUPPORTED_BACKENDS, AnalysisBackend, get_api_key
from veoscripter.ai.config import get_settings
from veoscripter.ai.exceptions import (
    AnalysisError,
    AnalysisRequestError,
    MalformedResponseError,
    SceneCountMismatchError,
    UnsupportedBackendError,
)
from veoscripter.ai.prompts import ANALYSIS_SCHEMA, SCENES_SCHEMA, analysis_prompt, resplit_prompt
from veoscripter.base.description import AnalysisResult, Scene, scenes_from_list
from veoscripter.base.frames import SampledFrame

__all__ = ["AnalysisGateway", "VisionLLMGateway"]

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 120.0


class AnalysisGateway(ABC):
    """Contract between the analysis session and a multimodal analysis service.

    Subclasses only implement `_generate`, which sends the frames and prompt and returns the
    raw response text. Parsing and validation are shared: a successful `analyze` always has
    all four result fields, and a successful `resplit` always has exactly the requested
    number of scenes.
    """

    def __init__(self, request_timeout: float = DEFAULT_REQUEST_TIMEOUT):
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        self.request_timeout = request_timeout

    @abstractmethod
    async def _generate(self, frames: Sequence[SampledFrame], prompt: str, schema: dict[str, Any]) -> str | None:
        """Send chronological frames plus a prompt and return the raw JSON response text."""

    async def analyze(self, frames: Sequence[SampledFrame]) -> AnalysisResult:
        """Derive script, global prompt, visual style and scenes from keyframes.

        Raises:
            AnalysisRequestError: The remote call failed or timed out.
            MalformedResponseError: The response is not JSON or misses mandatory fields.
        """
        self._check_frames(frames)
        text = await self._request(frames, analysis_prompt(len(frames)), ANALYSIS_SCHEMA)
        data = self._parse_json(text)
        try:
            result = AnalysisResult.from_dict(data)
        except ValueError as e:
            raise MalformedResponseError(f"Incomplete analysis response: {e}") from e

        logger.info("Analysis returned %d scene(s) for %d keyframe(s)", result.scene_count, len(frames))
        return result

    async def resplit(self, frames: Sequence[SampledFrame], target_count: int) -> list[Scene]:
        """Re-derive the scene list with exactly `target_count` scenes.

        Raises:
            AnalysisRequestError: The remote call failed or timed out.
            MalformedResponseError: The response is not JSON or misses mandatory fields.
            SceneCountMismatchError: The service returned a different number of scenes.
        """
        if target_count < 1:
            raise ValueError("target_count must be >= 1")
        self._check_frames(frames)
        text = await self._request(frames, resplit_prompt(len(frames), target_count), SCENES_SCHEMA)
        data = self._parse_json(text)
        if not isinstance(data, dict) or "scenes" not in data:
            raise MalformedResponseError("Scene response is missing 'scenes'")
        try:
            scenes = scenes_from_list(data["scenes"])
        except ValueError as e:
            raise MalformedResponseError(f"Invalid scene in response: {e}") from e

        if len(scenes) != target_count:
            raise SceneCountMismatchError(target_count, len(scenes))

        logger.info("Resplit returned %d scene(s)", len(scenes))
        return list(scenes)

    async def _request(self, frames: Sequence[SampledFrame], prompt: str, schema: dict[str, Any]) -> str:
        try:
            text = await asyncio.wait_for(self._generate(frames, prompt, schema), timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise AnalysisRequestError(f"Analysis request timed out after {self.request_timeout:g}s") from e
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisRequestError(f"Analysis request failed: {e}") from e

        if not text:
            raise MalformedResponseError("Empty response from analysis service")
        return text

    @staticmethod
    def _check_frames(frames: Sequence[SampledFrame]) -> None:
        if not frames:
            raise ValueError("At least one frame is required for analysis")

    @staticmethod
    def _parse_json(text: str) -> Any:
        # Models sometimes wrap JSON in a markdown code block
        response = text.strip()
        if response.startswith("```"):
            lines = response.split("\n")
            response = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
        try:
            return json.loads(response.strip())
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Response is not valid JSON: {e}") from e


class VisionLLMGateway(AnalysisGateway):
    """Analyzes keyframes with a cloud vision LLM (Gemini or OpenAI)."""

    SUPPORTED_BACKENDS: list[str] = SUPPORTED_BACKENDS

    def __init__(
        self,
        backend: AnalysisBackend | None = None,
        model: str | None = None,
        api_key: str | None = None,
        request_timeout: float | None = None,
    ):
        """Initialize the gateway.

        Args:
            backend: 'gemini' or 'openai'. Defaults to the configured backend.
            model: Model name. Defaults to the configured model or the backend's default.
            api_key: API key. Defaults to the provider's environment variable.
            request_timeout: Seconds allowed per remote call.
        """
        settings = get_settings()
        resolved_backend: str = backend if backend is not None else settings.backend
        if resolved_backend not in self.SUPPORTED_BACKENDS:
            raise UnsupportedBackendError(resolved_backend, self.SUPPORTED_BACKENDS)

        super().__init__(request_timeout if request_timeout is not None else settings.request_timeout)
        self.backend: AnalysisBackend = resolved_backend  # type: ignore[assignment]
        self.model = model or settings.model or DEFAULT_MODELS[resolved_backend]
        self.api_key = get_api_key(resolved_backend, api_key)
        self._openai_client: Any = None

    async def _generate(self, frames: Sequence[SampledFrame], prompt: str, schema: dict[str, Any]) -> str | None:
        logger.debug("Sending %d keyframe(s) to %s/%s", len(frames), self.backend, self.model)
        if self.backend == "gemini":
            return await self._generate_gemini(frames, prompt, schema)
        elif self.backend == "openai":
            return await self._generate_openai(frames, prompt)
        else:
            raise UnsupportedBackendError(self.backend, self.SUPPORTED_BACKENDS)

    async def _generate_gemini(self, frames: Sequence[SampledFrame], prompt: str, schema: dict[str, Any]) -> str:
        """Generate using Google Gemini with a structured JSON response."""
        import google.generativeai as genai

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(
            self.model,
            generation_config={"response_mime_type": "application/json", "response_schema": schema},
        )
        parts: list[Any] = [{"mime_type": frame.mime_type, "data": frame.image} for frame in frames]
        parts.append(prompt)

        response = await model.generate_content_async(parts)
        return response.text

    async def _generate_openai(self, frames: Sequence[SampledFrame], prompt: str) -> str | None:
        """Generate using OpenAI chat completions in JSON mode."""
        if self._openai_client is None:
            from openai import AsyncOpenAI

            self._openai_client = AsyncOpenAI(api_key=self.api_key)

        content: list[dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": frame.data_url}} for frame in frames
        ]
        content.append({"type": "text", "text": prompt})

        response = await self._openai_client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": content}],
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content
