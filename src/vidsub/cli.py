"""vidsub CLI entry point.

Runs the whole frame → subtitle pipeline behind a single ``vidsub`` command
with a Rich progress bar and human-readable error panels, then writes the
translated subtitles next to the input as ``<stem>.<lang>.ass``.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from vidsub.config import DEFAULT_CAPTURE_RATE, DEFAULT_LANG_CODE, DEFAULT_TARGET_LANGUAGE
from vidsub.errors import VidsubError
from vidsub.pipeline import PipelineStage, run_pipeline
from vidsub.subtitles.ass import output_path_for, write_ass

app = typer.Typer(
    name="vidsub",
    help="Recognize burned-in on-screen text in a short video and write translated, positioned ASS subtitles.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def main(
    video: Annotated[
        Path,
        typer.Argument(
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
            help="Input video file (any container FFmpeg/OpenCV can decode).",
        ),
    ],
    lang: Annotated[
        str,
        typer.Option("--lang", "-l", help="Language code used in the output file name."),
    ] = DEFAULT_LANG_CODE,
    language: Annotated[
        str,
        typer.Option("--language", help="Target language name given to the translator."),
    ] = DEFAULT_TARGET_LANGUAGE,
    rate: Annotated[
        float,
        typer.Option("--rate", "-r", help="Frames sampled per second of video."),
    ] = DEFAULT_CAPTURE_RATE,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output", "-o",
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
            help="Output .ass path (default: <video stem>.<lang>.ass beside the video).",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log per-stage details and skipped frames."),
    ] = False,
) -> None:
    """Generate translated subtitles for the on-screen text in VIDEO."""
    _configure_logging(verbose)

    if not video.exists():
        err_console.print(Panel(
            f"File not found: [bold]{video}[/bold]\n"
            f"Check that the path is correct and the file is accessible.",
            title="[red]Input Error[/red]",
            border_style="red",
        ))
        raise typer.Exit(1)

    if rate <= 0:
        err_console.print(Panel(
            f"Invalid capture rate: [bold]{rate}[/bold]\n"
            f"--rate must be a positive number of frames per second.",
            title="[red]Input Error[/red]",
            border_style="red",
        ))
        raise typer.Exit(1)

    if output is None:
        output = output_path_for(video, lang)

    console.print(f"\n[bold cyan]vidsub[/bold cyan] — [dim]{video.name}[/dim]  → [bold]{language}[/bold]\n")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(PipelineStage.IDLE.value, total=1.0)

            def _on_stage(stage: PipelineStage) -> None:
                progress.update(task, description=stage.value)

            def _on_progress(fraction: float) -> None:
                progress.update(task, completed=fraction)

            result = run_pipeline(
                video,
                rate=rate,
                target_language=language,
                progress_callback=_on_progress,
                stage_callback=_on_stage,
            )

    except VidsubError as e:
        # Typed pipeline errors become a Rich panel — never a traceback.
        err_console.print(Panel(
            str(e),
            title="[red]Pipeline Error[/red]",
            border_style="red",
        ))
        raise typer.Exit(1)

    try:
        write_ass(result.document, output)
    except OSError as e:
        err_console.print(Panel(
            f"Could not write subtitles to [bold]{output}[/bold]\n"
            f"  Cause: {e}",
            title="[red]Output Error[/red]",
            border_style="red",
        ))
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold green]Subtitles ready[/bold green]\n\n"
        f"  Frames:     {result.frame_count}\n"
        f"  Events:     {len(result.events)}\n"
        f"  Canvas:     {result.width}x{result.height}\n"
        f"  Output:     [dim]{output}[/dim]",
        title="[green]Done[/green]",
        border_style="green",
    ))
