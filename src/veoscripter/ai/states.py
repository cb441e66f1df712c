"""States of an analysis session.

A session is always in exactly one of `Idle`, `Sampling`, `Analyzing`, `Ready` or `Failed`.
States are immutable; every transition replaces the state object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from veoscripter.base.description import AnalysisResult


class SessionStatus(str, Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    ANALYZING = "analyzing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class Idle:
    status: SessionStatus = field(default=SessionStatus.IDLE, init=False)


@dataclass(frozen=True)
class Sampling:
    status: SessionStatus = field(default=SessionStatus.SAMPLING, init=False)


@dataclass(frozen=True)
class Analyzing:
    """Keyframes are cached and the full analysis request is in flight."""

    frame_count: int
    status: SessionStatus = field(default=SessionStatus.ANALYZING, init=False)


@dataclass(frozen=True)
class Ready:
    """A result is available.

    Attributes:
        result: The current analysis result
        regenerating: True while a scene resplit is in flight
    """

    result: AnalysisResult
    regenerating: bool = False
    status: SessionStatus = field(default=SessionStatus.READY, init=False)


@dataclass(frozen=True)
class Failed:
    """The session aborted; `reason` is a human-readable message."""

    reason: str
    status: SessionStatus = field(default=SessionStatus.FAILED, init=False)


SessionState = Union[Idle, Sampling, Analyzing, Ready, Failed]
