from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, TypeVar

from tqdm import tqdm

__all__ = ["configure", "get_config", "progress_iter"]

T = TypeVar("T")


@dataclass
class _ProgressConfig:
    progress: bool = False
    leave: bool = False


_CONFIG = _ProgressConfig()


def configure(*, progress: bool | None = None, leave: bool | None = None) -> None:
    """Enable or disable progress bars for keyframe sampling."""
    if progress is not None:
        _CONFIG.progress = bool(progress)
    if leave is not None:
        _CONFIG.leave = bool(leave)


def get_config() -> _ProgressConfig:
    """Return the current progress configuration."""
    return _CONFIG


def progress_iter(
    iterable: Iterable[T],
    *,
    desc: str | None = None,
    total: int | None = None,
) -> Iterable[T]:
    """Return an iterator with an optional progress bar."""
    if _CONFIG.progress:
        return tqdm(iterable, desc=desc, total=total, leave=_CONFIG.leave)
    return iterable
