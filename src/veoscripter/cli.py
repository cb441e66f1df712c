"""Command line entry point: `veoscripter analyze` and `veoscripter frames`."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from veoscripter.ai.config import MAX_SCENE_COUNT, Settings, get_settings
from veoscripter.ai.gateway import VisionLLMGateway
from veoscripter.ai.session import AnalysisSession
from veoscripter.ai.states import Failed, Ready
from veoscripter.base import progress
from veoscripter.base.description import AnalysisResult
from veoscripter.base.exceptions import VeoScripterError
from veoscripter.base.media import OpenCVMediaSource
from veoscripter.base.sampler import FrameSampler
from veoscripter.utils.logger import setup_logging


def _add_sampling_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("video", type=Path, help="Local video file")
    parser.add_argument("--frames", type=int, help="Number of keyframes to sample")
    parser.add_argument("--max-dimension", type=int, help="Longest side of sampled keyframes in pixels")
    parser.add_argument("--quality", type=float, help="JPEG quality factor in (0, 1]")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while sampling")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="veoscripter", description="Turn a video into a script and Veo prompts")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze a video and print the result")
    _add_sampling_arguments(analyze)
    analyze.add_argument("--scenes", type=int, choices=range(1, MAX_SCENE_COUNT + 1), help="Regenerate to N scenes")
    analyze.add_argument("--backend", choices=VisionLLMGateway.SUPPORTED_BACKENDS, help="Analysis backend")
    analyze.add_argument("--model", help="Model name for the analysis backend")
    analyze.add_argument("--json", type=Path, dest="json_path", help="Write the result as JSON")
    analyze.add_argument("--markdown", type=Path, dest="markdown_path", help="Write the result as Markdown")

    frames = subparsers.add_parser("frames", help="Sample keyframes and save them as JPEG files")
    _add_sampling_arguments(frames)
    frames.add_argument("output_dir", type=Path, help="Directory for frame_XX.jpg files")

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return get_settings(
        frame_count=args.frames,
        max_dimension=args.max_dimension,
        quality=args.quality,
        backend=getattr(args, "backend", None),
        model=getattr(args, "model", None),
    )


def render_result(console: Console, result: AnalysisResult) -> None:
    console.print(Panel(result.global_prompt, title="Generation prompt", border_style="blue"))
    console.print(Panel(result.visual_style, title="Visual style", border_style="magenta"))

    table = Table(title=f"Scenes ({result.scene_count})", show_lines=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Description")
    table.add_column("Prompt", style="dim")
    for scene in result.scenes:
        table.add_row(str(scene.id), scene.description, scene.generation_prompt)
    console.print(table)

    console.print(Panel(result.script, title="Script"))


async def _run_analyze(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    gateway = VisionLLMGateway(
        backend=settings.backend,  # type: ignore[arg-type]
        model=settings.model,
        request_timeout=settings.request_timeout,
    )
    session = AnalysisSession(gateway=gateway, settings=settings)

    with console.status("Extracting keyframes and analyzing..."):
        state = await session.analyze_path(args.video)
    if isinstance(state, Failed):
        console.print(f"[red]{state.reason}[/red]")
        return 1

    if args.scenes is not None:
        with console.status(f"Regenerating {args.scenes} scene(s)..."):
            updated = await session.regenerate_scenes(args.scenes)
        if not updated:
            console.print(f"[yellow]{session.notice or 'Scenes were not updated.'}[/yellow]")

    state = session.state
    assert isinstance(state, Ready)
    render_result(console, state.result)

    if args.json_path:
        state.result.save(args.json_path)
        console.print(f"[green]Saved JSON to {args.json_path}[/green]")
    if args.markdown_path:
        args.markdown_path.parent.mkdir(parents=True, exist_ok=True)
        args.markdown_path.write_text(state.result.to_markdown(), encoding="utf-8")
        console.print(f"[green]Saved Markdown to {args.markdown_path}[/green]")
    return 0


async def _run_frames(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    sampler = FrameSampler(seek_timeout=settings.seek_timeout)
    with OpenCVMediaSource(args.video) as source:
        frames = await sampler.sample(
            source,
            count=settings.frame_count,
            max_dimension=settings.max_dimension,
            quality=settings.quality,
        )

    args.output_dir.mkdir(parents=True, exist_ok=True)
    for frame in frames:
        path = args.output_dir / f"frame_{frame.index:02d}.jpg"
        path.write_bytes(frame.image)
        console.print(f"{path} [dim]{frame.timestamp:.2f}s {frame.width}x{frame.height}[/dim]")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    setup_logging("debug" if args.verbose else None)
    progress.configure(progress=args.progress)

    try:
        settings = _settings_from_args(args)
        if args.command == "analyze":
            return asyncio.run(_run_analyze(args, settings, console))
        return asyncio.run(_run_frames(args, settings, console))
    except VeoScripterError as e:
        console.print(f"[red]{e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
