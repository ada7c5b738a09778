"""Command-line interface for Story Narrator."""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from story_narrator import __version__
from story_narrator.errors import NarratorError

console = Console()


def _load(path: str) -> str:
    from story_narrator.ingest import load_text

    try:
        return load_text(Path(path))
    except NarratorError as e:
        raise click.ClickException(str(e)) from e


def _fail(error: str | None) -> None:
    raise click.ClickException(error or "Unknown error")


def _parse(text: str):
    from story_narrator.segment import Segmenter

    result = Segmenter().parse(text)
    if not result.success:
        _fail(result.error)
    return result.data


def _roster(segments):
    from story_narrator.characters import CharacterExtractor

    result = CharacterExtractor().detect(segments)
    if not result.success:
        _fail(result.error)
    return result.data


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """Story Narrator - Turn prose into a multi-voice narration and a writing report."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--limit", "-n", type=int, default=None, help="Show only the first N segments")
def segment(path: str, limit: int | None) -> None:
    """Split a story into narration, dialogue and thought segments."""
    segments = _parse(_load(path))

    table = Table(title=f"Segments ({len(segments)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Speaker", style="green")
    table.add_column("Content")

    for seg in segments[:limit]:
        preview = seg.content[:80] + ("..." if len(seg.content) > 80 else "")
        table.add_row(seg.id.removeprefix("segment-"), seg.type, seg.speaker, preview)

    console.print(table)


@main.command()
@click.argument("path", type=click.Path(exists=True))
def characters(path: str) -> None:
    """List detected characters with traits and emotional states."""
    roster = _roster(_parse(_load(path)))

    table = Table(title="Characters")
    table.add_column("Name", style="cyan")
    table.add_column("Lines", style="green", justify="right")
    table.add_column("Main")
    table.add_column("Characteristics")
    table.add_column("Emotions")

    for character in roster:
        table.add_row(
            character.name,
            str(character.frequency),
            "[green]✓[/green]" if character.is_main_character else "",
            ", ".join(character.characteristics),
            ", ".join(character.emotional_states),
        )

    console.print(table)


@main.command()
@click.argument("path", type=click.Path(exists=True))
def voices(path: str) -> None:
    """Show the voice cast for a story."""
    from story_narrator.voices import VoiceAssigner

    result = VoiceAssigner().assign(_roster(_parse(_load(path))))
    if not result.success:
        _fail(result.error)

    table = Table(title="Voice Assignments")
    table.add_column("Character", style="cyan", no_wrap=True)
    table.add_column("Voice", style="green", no_wrap=True)
    table.add_column("Gender")
    table.add_column("Age")
    table.add_column("Tone")
    table.add_column("Pitch", justify="right")
    table.add_column("Speed", justify="right")
    table.add_column("Confidence", justify="right")

    for assignment in result.data:
        voice = assignment.voice
        table.add_row(
            assignment.character,
            voice.id,
            voice.gender,
            voice.age,
            voice.tone,
            f"{voice.pitch:.2f}",
            f"{voice.speed:.2f}",
            f"{assignment.confidence:.0%}",
        )

    console.print(table)
    console.print(
        f"[dim]{result.metadata['unique_voices']} unique voices, "
        f"average confidence {result.metadata['average_confidence']:.0%}[/dim]"
    )


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON")
@click.option("--output", "-o", type=click.Path(), help="Also write the JSON report to a file")
def quality(path: str, as_json: bool, output: str | None) -> None:
    """Writing-quality report: show vs tell, tropes, purple prose, readability."""
    from story_narrator.quality import QualityAnalyzer

    text = _load(path)
    with console.status("Analyzing writing quality..."):
        result = QualityAnalyzer().generate_quality_report(text)
    if not result.success:
        _fail(result.error)
    report = result.data

    if output:
        Path(output).write_text(report.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]✓[/green] Saved report to {output}")

    if as_json:
        click.echo(report.model_dump_json(indent=2))
        return

    scores = Table(title="Quality Scores")
    scores.add_column("Metric", style="cyan")
    scores.add_column("Score", style="green", justify="right")
    scores.add_row("Show vs tell", f"{report.overall_score.show_vs_tell:.1f}")
    scores.add_row("Trope originality", f"{report.overall_score.trope_originality:.1f}")
    scores.add_row("Prose clarity", f"{report.overall_score.prose_clarity:.1f}")
    scores.add_row("Average", f"{report.overall_score.average:.1f}")
    console.print(scores)

    console.print(f"\n[bold]Words:[/bold] {report.word_count:,}")
    console.print(f"[bold]Telling:[/bold] {len(report.show_tell_issues)}")
    console.print(f"[bold]Tropes:[/bold] {len(report.trope_matches)}")
    console.print(f"[bold]Purple prose:[/bold] {len(report.purple_prose_issues)}")

    issues = report.issues()
    if issues:
        console.print("\n[bold]Issues:[/bold]")
        for issue in issues[:20]:
            console.print(f"  [dim]@{issue.position}[/dim] [yellow]{issue.kind}[/yellow] {issue.text[:70]}")
        if len(issues) > 20:
            console.print(f"  [dim]... and {len(issues) - 20} more[/dim]")

    if report.echo_chamber:
        shared = ", ".join(f"{e.word} ({e.frequency})" for e in report.echo_chamber[:10])
        console.print(f"\n[bold]Shared dialogue words:[/bold] {shared}")

    if report.failed_analyses:
        console.print(f"\n[red]Failed analyses:[/red] {', '.join(report.failed_analyses)}")


@main.command()
@click.argument("path", type=click.Path(exists=True))
def palette(path: str) -> None:
    """Colors named in a story and the mood they suggest."""
    from story_narrator.quality import QualityAnalyzer

    result = QualityAnalyzer().analyze_color_palette(_load(path))
    colors = result.data

    console.print(colors.message)
    if not colors.palette:
        return

    table = Table(title=f"Palette (mood: {colors.overall_mood})")
    table.add_column("Color", style="cyan")
    table.add_column("Hex")
    table.add_column("Mentions", style="green", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Role")

    dominant = {c.color for c in colors.dominant_colors}
    for entry in colors.palette:
        table.add_row(
            f"[{entry.hex}]■[/] {entry.color}",
            entry.hex,
            str(entry.frequency),
            f"{entry.prominence:.0%}",
            "dominant" if entry.color in dominant else "accent",
        )

    console.print(table)


@main.command()
@click.argument("path", type=click.Path(exists=True))
def power(path: str) -> None:
    """Score each dialogue turn for conversational dominance."""
    from story_narrator.quality import QualityAnalyzer

    result = QualityAnalyzer().analyze_dialogue_power_balance(_load(path))
    if not result.success:
        _fail(result.error)
    if not result.data:
        console.print("[yellow]No attributed dialogue found[/yellow]")
        return

    table = Table(title="Dialogue Power Balance")
    table.add_column("Speaker", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Tactic", style="magenta")
    table.add_column("Line")

    for turn in result.data:
        color = "green" if turn.power_score > 0 else "red" if turn.power_score < 0 else "white"
        table.add_row(
            turn.character_name,
            f"[{color}]{turn.power_score:+.2f}[/{color}]",
            (turn.detected_tactic or "").replace("_", " "),
            turn.content[:60],
        )

    console.print(table)


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), required=True, help="Audio file to write")
@click.option("--format", "output_format", type=click.Choice(["mp3", "wav"]), default=None,
              help="Output format (inferred from the output suffix by default)")
@click.option("--quality", "include_quality", is_flag=True, help="Attach a writing-quality report")
@click.option("--provider", type=click.Choice(["silent", "elevenlabs"]), default=None,
              help="Speech provider (default from settings)")
def narrate(
    path: str,
    output: str,
    output_format: str | None,
    include_quality: bool,
    provider: str | None,
) -> None:
    """Narrate a story to an audio file, one voice per character."""
    from story_narrator.characters import CharacterExtractor
    from story_narrator.config import get_settings
    from story_narrator.models import ProcessingOptions
    from story_narrator.pipeline import PipelineOrchestrator, get_speech_provider
    from story_narrator.quality import QualityAnalyzer
    from story_narrator.segment import Segmenter
    from story_narrator.voices import VoiceAssigner

    settings = get_settings()
    text = _load(path)
    output_path = Path(output)
    speech = get_speech_provider(provider, settings)
    suffix = output_path.suffix.lower().lstrip(".")
    if output_format is None:
        output_format = suffix if suffix in ("mp3", "wav") else speech.output_formats[0]
    if output_format not in speech.output_formats:
        raise click.ClickException(
            f"The {provider or settings.tts_provider} provider cannot write {output_format} audio"
        )

    segmenter = Segmenter(settings)
    orchestrator = PipelineOrchestrator(
        segmenter,
        CharacterExtractor(settings),
        VoiceAssigner(settings),
        speech,
        quality=QualityAnalyzer(settings, segmenter) if include_quality else None,
        settings=settings,
    )
    options = ProcessingOptions(
        output_format=output_format, include_quality_analysis=include_quality
    )

    async def run():
        job = asyncio.create_task(orchestrator.process_story(text, options))
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Starting...", total=100)
            while not job.done():
                status = orchestrator.get_processing_status().data
                progress.update(task, completed=status.progress, description=status.message)
                await asyncio.sleep(settings.status_poll_interval)
            progress.update(task, completed=100)
        return job.result()

    try:
        result = asyncio.run(run())
    except KeyboardInterrupt:
        raise click.Abort()
    if not result.success:
        _fail(result.error)

    audio = result.data
    output_path.write_bytes(audio.audio_data)

    console.print(f"[green]✓[/green] Wrote {output_path} ({len(audio.audio_data):,} bytes)")
    console.print(f"  Segments: {audio.metadata['total_segments']:,}")
    console.print(f"  Voices: {audio.metadata['character_count']}")
    console.print(f"  Duration: {audio.duration:.1f}s")
    console.print(f"  Processing time: {audio.metadata['processing_time'] / 1000:.1f}s")

    if audio.quality_report:
        report_path = output_path.with_suffix(".quality.json")
        report_path.write_text(audio.quality_report.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]✓[/green] Saved quality report to {report_path}")


@main.command()
def tables() -> None:
    """List the pattern tables in use and their versions."""
    from story_narrator.config import get_settings
    from story_narrator.tables import table_versions

    settings = get_settings()
    try:
        versions = table_versions(settings.tables_dir)
    except NarratorError as e:
        raise click.ClickException(str(e)) from e

    table = Table(title="Pattern Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Version", style="green")
    for name, version in versions.items():
        table.add_row(name, version)

    console.print(table)
    source = settings.tables_dir or "bundled"
    console.print(f"[dim]Source: {source}[/dim]")


if __name__ == "__main__":
    main()
