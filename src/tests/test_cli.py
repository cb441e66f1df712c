from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from PIL import Image

from veoscripter import cli
from veoscripter.base.description import AnalysisResult


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger("veoscripter")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def fake_vision_gateway(monkeypatch: pytest.MonkeyPatch, scripted_gateway):
    """Swap the cloud gateway for one replaying the given responses."""
    created = []

    def install(responses):
        class FakeVisionGateway(scripted_gateway):
            SUPPORTED_BACKENDS = ["gemini", "openai"]

            def __init__(self, backend=None, model=None, request_timeout=None):
                super().__init__(responses)
                self.backend = backend
                self.model = model
                created.append(self)

        monkeypatch.setattr(cli, "VisionLLMGateway", FakeVisionGateway)
        return created

    return install


def test_parser_reads_analyze_options() -> None:
    args = cli.build_parser().parse_args(
        ["analyze", "clip.mp4", "--frames", "6", "--scenes", "3", "--backend", "openai", "--json", "out.json"]
    )
    assert args.command == "analyze"
    assert args.video == Path("clip.mp4")
    assert (args.frames, args.scenes, args.backend) == (6, 3, "openai")
    assert args.json_path == Path("out.json")
    assert args.markdown_path is None


def test_parser_rejects_scene_count_above_five() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["analyze", "clip.mp4", "--scenes", "6"])


def test_frames_command_writes_jpegs(video_file: Path, tmp_path: Path) -> None:
    output_dir = tmp_path / "frames"

    exit_code = cli.main(["frames", str(video_file), str(output_dir), "--frames", "3", "--max-dimension", "32"])

    assert exit_code == 0
    written = sorted(output_dir.glob("frame_*.jpg"))
    assert [path.name for path in written] == ["frame_01.jpg", "frame_02.jpg", "frame_03.jpg"]
    with Image.open(written[0]) as image:
        assert image.size == (32, 24)


def test_frames_command_reports_missing_video(tmp_path: Path) -> None:
    assert cli.main(["frames", str(tmp_path / "missing.mp4"), str(tmp_path / "out")]) == 1


def test_analyze_command_exports_result(
    video_file: Path, tmp_path: Path, fake_vision_gateway, analysis_payload, make_scenes_payload
) -> None:
    created = fake_vision_gateway([json.dumps(analysis_payload), json.dumps(make_scenes_payload(2))])
    json_path = tmp_path / "out" / "analysis.json"
    markdown_path = tmp_path / "out" / "analysis.md"

    exit_code = cli.main(
        [
            "analyze",
            str(video_file),
            "--frames",
            "4",
            "--scenes",
            "2",
            "--backend",
            "openai",
            "--json",
            str(json_path),
            "--markdown",
            str(markdown_path),
        ]
    )

    assert exit_code == 0
    assert created[0].backend == "openai"
    assert [call[0] for call in created[0].calls] == [4, 4]
    result = AnalysisResult.load(json_path)
    assert result.scene_count == 2
    assert result.script == analysis_payload["script"]
    assert "## Scenes (2)" in markdown_path.read_text(encoding="utf-8")


def test_analyze_command_fails_on_bad_response(video_file: Path, fake_vision_gateway) -> None:
    fake_vision_gateway(["{}"])
    assert cli.main(["analyze", str(video_file)]) == 1


def test_invalid_settings_exit_with_error(video_file: Path, tmp_path: Path) -> None:
    assert cli.main(["frames", str(video_file), str(tmp_path / "out"), "--quality", "2"]) == 1
