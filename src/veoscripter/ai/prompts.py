"""Prompt texts and JSON response schemas for the analysis backends."""

from __future__ import annotations

from typing import Any

_SCENE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "INTEGER"},
        "description": {"type": "STRING", "description": "Brief description of the action in this scene."},
        "generationPrompt": {"type": "STRING", "description": "Specific text-to-video prompt for this scene."},
    },
    "required": ["id", "description", "generationPrompt"],
}

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "script": {"type": "STRING", "description": "The reconstructed script/narrative of the video."},
        "globalPrompt": {
            "type": "STRING",
            "description": "A detailed prompt optimized for text-to-video generation of the entire video.",
        },
        "visualStyle": {"type": "STRING", "description": "Description of aesthetics, lighting, and camera work."},
        "scenes": {
            "type": "ARRAY",
            "description": "List of distinct scenes detected in the video.",
            "items": _SCENE_SCHEMA,
        },
    },
    "required": ["script", "globalPrompt", "visualStyle", "scenes"],
}

SCENES_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {"scenes": {"type": "ARRAY", "items": _SCENE_SCHEMA}},
    "required": ["scenes"],
}


def analysis_prompt(frame_count: int) -> str:
    return f"""You are an expert video director and AI prompt engineer.
I have provided {frame_count} keyframes extracted from a video, in chronological order.

Your task is to:
1. Analyze the visual narrative, characters, setting, and action flow.
2. Reconstruct a probable "script" or screenplay that describes what is happening in the video.
3. Create a highly detailed "globalPrompt". This prompt will be used with Google's Veo video \
generation model to recreate a video with this exact style, composition, and movement.
4. Describe the "visualStyle" (lighting, camera angles, color palette, mood).
5. Break the video down into key "scenes" (automatically detect the number of scenes). For each \
scene, provide an "id", a short "description" and a specific "generationPrompt".

Return ONLY a JSON object with the keys "script", "globalPrompt", "visualStyle" and "scenes"."""


def resplit_prompt(frame_count: int, scene_count: int) -> str:
    return f"""Analyze the {frame_count} provided keyframes, in chronological order.
Break the video narrative down into EXACTLY {scene_count} distinct scene(s).

For each scene:
1. Provide an "id" numbered from 1.
2. Provide a brief "description".
3. Write a specific "generationPrompt" that captures the visual details and action of that segment.

Return ONLY a JSON object with a single key "scenes" holding exactly {scene_count} item(s)."""
