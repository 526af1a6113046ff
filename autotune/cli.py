"""Command-line interface for the autotune engine.

Provides commands for:
- scales: List the scale table, optionally rooted at a key
- detect: Run pitch detection on a synthesized tone
- simulate: Drive an AutoTune engine against the in-memory host graph
"""

import json
import logging
from typing import Optional

import typer
import librosa
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core import PITCH_NAMES

app = typer.Typer(
    name="autotune",
    help="Real-time pitch detection and correction engine",
    rich_markup_mode="markdown",
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _resolve_frequency(freq: Optional[float], note: Optional[str]) -> float:
    """Pick the input frequency from --freq or --note."""
    if note:
        try:
            return float(librosa.note_to_hz(note))
        except Exception:
            console.print(f"[red]Error: Not a note name: {note}[/red]")
            raise typer.Exit(1)
    if freq is None:
        console.print("[red]Error: Pass --freq or --note[/red]")
        raise typer.Exit(1)
    if freq <= 0:
        console.print(f"[red]Error: Frequency must be positive, got {freq}[/red]")
        raise typer.Exit(1)
    return freq


@app.command()
def scales(
    key: str = typer.Option("C", "-k", "--key", help="Key root used to spell pitch classes"),
):
    """List available scales and the notes they allow."""
    from .inference import SCALE_TABLE, key_name_to_pitch_class

    key_pc = key_name_to_pitch_class(key)
    if key_pc is None:
        console.print(f"[red]Error: Unknown key: {key}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Scales in {PITCH_NAMES[key_pc]}")
    table.add_column("Scale", style="cyan")
    table.add_column("Offsets", style="green")
    table.add_column("Notes", style="yellow")

    for scale in SCALE_TABLE.values():
        pcs = sorted(scale.pitch_classes(key_pc), key=lambda pc: (pc - key_pc) % 12)
        table.add_row(
            scale.name,
            " ".join(str(o) for o in sorted(scale.offsets)),
            " ".join(PITCH_NAMES[pc] for pc in pcs),
        )

    console.print(table)


@app.command()
def detect(
    freq: Optional[float] = typer.Option(None, "-f", "--freq", help="Tone frequency in Hz"),
    note: Optional[str] = typer.Option(None, "-n", "--note", help="Tone as a note name, e.g. A4"),
    sample_rate: int = typer.Option(44100, "--sr", help="Sample rate in Hz"),
    frame_size: int = typer.Option(1024, "--frame-size", help="Analysis frame length in samples"),
    fmin: float = typer.Option(80.0, "--fmin", help="Lowest detectable frequency"),
    fmax: float = typer.Option(1000.0, "--fmax", help="Highest detectable frequency"),
    amplitude: float = typer.Option(0.5, "--amplitude", help="Tone peak amplitude"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON (for scripting)"),
):
    """Detect the pitch of one synthesized frame."""
    from .analysis import PitchDetector
    from .simulation import synthesize_tone

    frequency = _resolve_frequency(freq, note)
    frame = synthesize_tone(frequency, sample_rate, frame_size, amplitude=amplitude)
    result = PitchDetector().detect(frame, sample_rate, fmin, fmax)

    note_name = librosa.hz_to_note(result.frequency_hz) if result.voiced else None

    if json_output:
        print(json.dumps({
            "input_hz": frequency,
            "frequency_hz": result.frequency_hz,
            "confidence": result.confidence,
            "voiced": result.voiced,
            "note": note_name,
        }, indent=2))
        return

    console.print(f"\n[bold]Input:[/bold] {frequency:.2f} Hz")
    if result.voiced:
        console.print(f"  Detected: {result.frequency_hz:.2f} Hz ({note_name})")
        console.print(f"  MIDI: {result.midi:.2f}")
    else:
        console.print("  Detected: [yellow]unvoiced[/yellow]")
    console.print(f"  Confidence: {result.confidence:.2f}")


@app.command()
def simulate(
    freq: Optional[float] = typer.Option(None, "-f", "--freq", help="Input frequency in Hz"),
    note: Optional[str] = typer.Option(None, "-n", "--note", help="Input as a note name, e.g. A4"),
    end_freq: Optional[float] = typer.Option(
        None, "--end-freq", help="Glide to this frequency over the simulation"
    ),
    key: str = typer.Option("C", "-k", "--key", help="Key root, e.g. C, F#, Bb"),
    scale: str = typer.Option("Major", "-s", "--scale", help="Scale name (see `autotune scales`)"),
    retune: float = typer.Option(0.1, "-r", "--retune", help="Retune speed in seconds (0.01-0.4)"),
    humanize: float = typer.Option(0.0, "--humanize", help="Stretch retune on held notes (0-1)"),
    ticks: int = typer.Option(10, "-t", "--ticks", help="Number of ticks to run"),
    sample_rate: int = typer.Option(44100, "--sr", help="Sample rate in Hz"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON (for scripting)"),
):
    """Run the correction engine on a synthetic voice and show each ramp command.

    **Examples:**

        autotune simulate --freq 450 --key C --scale Major

        autotune simulate --note A3 --end-freq 250 --ticks 40 --retune 0.05
    """
    from .engine import AutoTune, ManualScheduler, TickOutcome
    from .simulation import SimulatedAnalyser, SimulatedGraph, SimulatedPitchShifter, ToneFeeder

    _configure_logging(verbose)

    frequency = _resolve_frequency(freq, note)
    if ticks < 1:
        console.print("[red]Error: --ticks must be at least 1[/red]")
        raise typer.Exit(1)

    graph = SimulatedGraph(sample_rate=sample_rate)
    scheduler = ManualScheduler()
    engine = AutoTune(
        graph,
        scheduler=scheduler,
        initial_state={"key": key, "scale": scale, "retune": retune, "humanize": humanize},
    )
    analyser = graph.find(SimulatedAnalyser)[0]
    shifter = graph.find(SimulatedPitchShifter)[0]
    feeder = ToneFeeder.for_tone(
        analyser,
        frequency,
        sample_rate,
        hop_seconds=engine.config.tick_interval,
        hops=ticks,
        end_frequency=end_freq,
    )

    reports = []
    engine.start()
    for _ in range(ticks):
        report = engine.tick()
        if report is not None:
            reports.append(report)
        feeder.advance()
    last_tick_shift = shifter.pitch
    engine.dispose()

    state = engine.get_state()

    if json_output:
        print(json.dumps({
            "config": state.to_config(),
            "ticks": [
                {
                    "outcome": r.outcome.value,
                    "frequency_hz": r.detection.frequency_hz,
                    "confidence": r.detection.confidence,
                    "continuous_pitch": r.continuous_pitch,
                    "target_midi": r.target_midi,
                    "shift": r.shift,
                    "duration": r.duration,
                }
                for r in reports
            ],
            "commands": [
                {"shift": c.shift, "duration": c.duration} for c in shifter.commands
            ],
        }, indent=2))
        return

    console.print(
        f"\n[bold]Key:[/bold] {state.key_name} {state.scale_name}   "
        f"[bold]Retune:[/bold] {state.retune_seconds * 1000:.0f}ms"
    )

    table = Table(title="Correction Ticks")
    table.add_column("#", style="dim")
    table.add_column("Detected (Hz)", style="cyan")
    table.add_column("Confidence", style="magenta")
    table.add_column("Target", style="green")
    table.add_column("Shift (st)", style="yellow")
    table.add_column("Ramp (s)", style="yellow")

    for i, r in enumerate(reports):
        if r.outcome is TickOutcome.CORRECTED:
            target = librosa.midi_to_note(r.target_midi)
            detected = f"{r.detection.frequency_hz:.2f}"
        else:
            target = f"[dim]{r.outcome.value}[/dim]"
            detected = "-"
        table.add_row(
            str(i),
            detected,
            f"{r.detection.confidence:.2f}",
            target,
            f"{r.shift:+.3f}",
            f"{r.duration:.3f}",
        )

    console.print(table)
    console.print(
        f"  Corrected {engine.stats.corrected}/{engine.stats.ticks} ticks, "
        f"last tick shift: {last_tick_shift:+.3f} st "
        f"(released to {shifter.pitch:+.3f} st on dispose)"
    )


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
