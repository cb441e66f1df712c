from __future__ import annotations

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class SampledFrame:
    """A compressed still image sampled from a video.

    Attributes:
        index: 1-based position in the sampling order (not a scene id)
        timestamp: Time in seconds the frame was sampled at
        image: Compressed image bytes
        width: Pixel width of the encoded image
        height: Pixel height of the encoded image
        mime_type: Format of `image`
    """

    index: int
    timestamp: float
    image: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.image).decode()

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"
