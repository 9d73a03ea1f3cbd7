"""Terminal output for drill-sim.

JSON goes to stdout so sessions can be piped; everything meant for the
trainee (status lines, tables, game-over reports) goes to the stderr console.
"""

import json
import sys
from typing import Any, Literal

from rich.console import Console
from rich.table import Table

from drilling_simulator.engine import EventRecord, GameOverRecord, SimulationState
from drilling_simulator.formation import FormationLayer

console = Console(stderr=True)

Level = Literal["info", "ok", "warn", "error"]

_LEVEL_MARKS: dict[str, tuple[str, str, str | None]] = {
    "info": ("ℹ", "blue", None),
    "ok": ("✓", "green", None),
    "warn": ("⚠", "yellow", "yellow"),
    "error": ("✗", "red", "bold red"),
}

_SEVERITY_STYLES = {
    "info": "blue",
    "warning": "yellow",
    "critical": "bold red",
    "success": "green",
}


def emit_json(data: Any, compact: bool = False) -> None:
    """Write one JSON document to stdout; compact documents fit on one line."""
    sys.stdout.write(json.dumps(data, indent=None if compact else 2, default=str) + "\n")
    sys.stdout.flush()


def report(level: Level, message: str, quiet: bool = False) -> None:
    """Status line on stderr. Errors ignore ``quiet``."""
    if quiet and level != "error":
        return
    mark, color, style = _LEVEL_MARKS[level]
    console.print(f"[{color}]{mark}[/{color}] {message}", style=style)


# ============================================================================
# Session Reports
# ============================================================================


def log_event(event: EventRecord):
    """One-line event for verbose mode."""
    style = _SEVERITY_STYLES.get(event.severity.value, "white")
    console.print(
        f"  [dim]t={event.tick:>6}[/dim] [{style}]{event.type:<22}[/{style}] "
        f"{event.depth:>8.1f}ft  {event.description}"
    )


def log_state_summary(state: SimulationState, risk_level: float):
    """Key measurements as a table."""
    table = Table(title="Well Status", show_header=True)
    table.add_column("Measurement", style="cyan")
    table.add_column("Value", justify="right", style="white")

    table.add_row("Bit depth (ft)", f"{state.bit_depth:.1f}")
    table.add_row("Mud weight (ppg)", f"{state.mud_weight:.2f}")
    table.add_row("Standpipe (psi)", f"{state.standpipe_pressure:.0f}")
    table.add_row("Pit level (%)", f"{state.pit_level:.1f}")
    table.add_row("Gas level (%)", f"{state.gas_level:.1f}")
    table.add_row("Torque", f"{state.torque:.1f}")
    table.add_row("BOP", state.bop_status.value)
    table.add_row("Risk (%)", f"{risk_level:.0f}")

    console.print(table)


def log_game_over(record: GameOverRecord):
    """Game-over report with prevention tips."""
    console.print(f"\n[bold red]GAME OVER: {record.reason}[/bold red]")
    console.print(f"  {record.description}")
    console.print(f"  [dim]{record.consequence}[/dim]")
    console.print(f"  Tick {record.tick}, depth {record.depth:.0f}ft")
    if record.prevention_tips:
        console.print("  [bold]Prevention:[/bold]")
        for tip in record.prevention_tips:
            console.print(f"    • {tip}")
    for warning in record.missed_warnings:
        console.print(
            f"  [yellow]Missed warning at tick {warning.tick}:[/yellow] {warning.warning} "
            f"(required: {warning.required_action} within {warning.time_allowed})"
        )


def layer_table(layers: list[FormationLayer], title: str = "Formation Layers") -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Top (ft)", justify="right")
    table.add_column("Base (ft)", justify="right")
    table.add_column("Lithology", style="magenta")
    table.add_column("Pore (ppg)", justify="right")
    table.add_column("Frac (ppg)", justify="right")
    table.add_column("Perm (D)", justify="right")
    table.add_column("Kick risk", justify="right", style="yellow")

    for layer in layers:
        table.add_row(
            layer.name,
            f"{layer.top_depth:.0f}",
            f"{layer.bottom_depth:.0f}",
            layer.lithology.value,
            f"{layer.pore_pressure:.1f}",
            f"{layer.fracture_pressure:.1f}",
            f"{layer.permeability:g}",
            "-" if layer.kick_risk is None else f"{layer.kick_risk:.2f}",
        )
    return table
