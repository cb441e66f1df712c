"""Tests for the analysis result model and its JSON/Markdown forms."""

from __future__ import annotations

from pathlib import Path

import pytest

from veoscripter.base.description import AnalysisResult, Scene, scenes_from_list
from veoscripter.base.frames import SampledFrame


def test_result_from_dict(analysis_payload) -> None:
    result = AnalysisResult.from_dict(analysis_payload)

    assert result.script.startswith("A cyclist")
    assert result.global_prompt.startswith("Cinematic night ride")
    assert result.visual_style.startswith("Moody teal")
    assert result.scene_count == 4
    assert result.scenes[1] == Scene(
        id=2, description="Cyclist speeds past shop fronts.", generation_prompt="Tracking shot, neon shops."
    )


def test_result_dict_uses_wire_keys(analysis_payload) -> None:
    assert AnalysisResult.from_dict(analysis_payload).to_dict() == analysis_payload


def test_result_allows_empty_scene_list(analysis_payload) -> None:
    analysis_payload["scenes"] = []
    assert AnalysisResult.from_dict(analysis_payload).scene_count == 0


@pytest.mark.parametrize("missing", ["script", "globalPrompt", "visualStyle", "scenes"])
def test_result_requires_every_field(analysis_payload, missing: str) -> None:
    del analysis_payload[missing]
    with pytest.raises(ValueError, match=missing):
        AnalysisResult.from_dict(analysis_payload)


def test_result_rejects_wrong_types(analysis_payload) -> None:
    analysis_payload["script"] = ["not", "a", "string"]
    with pytest.raises(ValueError, match="script"):
        AnalysisResult.from_dict(analysis_payload)


@pytest.mark.parametrize(
    "scene",
    [
        {"id": "1", "description": "d", "generationPrompt": "p"},
        {"id": True, "description": "d", "generationPrompt": "p"},
        {"id": 1, "description": "d"},
        {"id": 1, "description": None, "generationPrompt": "p"},
        "scene one",
    ],
)
def test_scene_from_dict_rejects_malformed_entries(scene) -> None:
    with pytest.raises(ValueError):
        scenes_from_list([scene])


def test_scenes_from_list_requires_list() -> None:
    with pytest.raises(ValueError):
        scenes_from_list({"id": 1})


def test_with_scenes_keeps_other_fields(analysis_payload) -> None:
    result = AnalysisResult.from_dict(analysis_payload)
    replacement = [Scene(id=1, description="Whole ride.", generation_prompt="One continuous shot.")]

    updated = result.with_scenes(replacement)

    assert updated.scenes == tuple(replacement)
    assert (updated.script, updated.global_prompt, updated.visual_style) == (
        result.script,
        result.global_prompt,
        result.visual_style,
    )
    assert result.scene_count == 4


def test_save_and_load(analysis_payload, tmp_path: Path) -> None:
    result = AnalysisResult.from_dict(analysis_payload)
    path = tmp_path / "out" / "analysis.json"

    result.save(path)

    assert AnalysisResult.load(path) == result


def test_to_markdown_lists_every_section(analysis_payload) -> None:
    markdown = AnalysisResult.from_dict(analysis_payload).to_markdown()

    assert markdown.startswith("# Generation prompt")
    assert "## Visual style" in markdown
    assert "## Scenes (4)" in markdown
    assert "### Scene 3" in markdown
    assert "> Macro shot, spinning spokes." in markdown
    assert markdown.index("## Script") > markdown.index("### Scene 4")


def test_sampled_frame_data_url() -> None:
    frame = SampledFrame(index=1, timestamp=0.5, image=b"\xff\xd8\xff", width=2, height=2)
    assert frame.to_base64() == "/9j/"
    assert frame.data_url == "data:image/jpeg;base64,/9j/"
