from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable


def _require(data: dict[str, Any], key: str, expected: type) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object, got {type(data).__name__}")
    if key not in data:
        raise ValueError(f"Missing required field '{key}'")
    value = data[key]
    # bool is an int subclass, never a valid id
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ValueError(f"Field '{key}' must be {expected.__name__}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Scene:
    """One segment of the analyzed video.

    Attributes:
        id: Scene number as reported by the analysis service
        description: Brief description of the action in this scene
        generation_prompt: Text-to-video prompt recreating this scene
    """

    id: int
    description: str
    generation_prompt: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "generationPrompt": self.generation_prompt,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scene:
        return cls(
            id=_require(data, "id", int),
            description=_require(data, "description", str),
            generation_prompt=_require(data, "generationPrompt", str),
        )


def scenes_from_list(data: Any) -> tuple[Scene, ...]:
    """Parse a JSON scene list, failing on any malformed entry."""
    if not isinstance(data, list):
        raise ValueError(f"Field 'scenes' must be list, got {type(data).__name__}")
    return tuple(Scene.from_dict(item) for item in data)


@dataclass(frozen=True)
class AnalysisResult:
    """Structured creative-writing result for one video.

    `script`, `global_prompt` and `visual_style` describe the whole video and never change
    within a session; only `scenes` is replaced when the scene count is regenerated.
    """

    script: str
    global_prompt: str
    visual_style: str
    scenes: tuple[Scene, ...] = field(default_factory=tuple)

    @property
    def scene_count(self) -> int:
        return len(self.scenes)

    def with_scenes(self, scenes: Iterable[Scene]) -> AnalysisResult:
        """Return a copy with the scene list replaced and every other field kept."""
        return replace(self, scenes=tuple(scenes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "script": self.script,
            "globalPrompt": self.global_prompt,
            "visualStyle": self.visual_style,
            "scenes": [scene.to_dict() for scene in self.scenes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        return cls(
            script=_require(data, "script", str),
            global_prompt=_require(data, "globalPrompt", str),
            visual_style=_require(data, "visualStyle", str),
            scenes=scenes_from_list(_require(data, "scenes", list)),
        )

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, text: str) -> AnalysisResult:
        return cls.from_dict(json.loads(text))

    def save(self, path: str | Path, *, indent: int | None = 2) -> None:
        path_obj = Path(path)
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        path_obj.write_text(self.to_json(indent=indent), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> AnalysisResult:
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def to_markdown(self) -> str:
        """Render the result as a Markdown document."""
        lines = [
            "# Generation prompt",
            "",
            self.global_prompt,
            "",
            "## Visual style",
            "",
            self.visual_style,
            "",
            f"## Scenes ({self.scene_count})",
            "",
        ]
        for scene in self.scenes:
            lines.extend([f"### Scene {scene.id}", "", scene.description, "", f"> {scene.generation_prompt}", ""])
        lines.extend(["## Script", "", self.script, ""])
        return "\n".join(lines)
