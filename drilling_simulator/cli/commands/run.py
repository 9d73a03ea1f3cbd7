"""Run command - Drive a training session from a config file."""

import time
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from drilling_simulator.cli.output import (
    emit_json,
    log_event,
    log_game_over,
    log_state_summary,
    report,
)
from drilling_simulator.config import SessionConfig
from drilling_simulator.engine import Scenario, SimulationEngine


def _summary(engine: SimulationEngine, duration: float) -> dict:
    state = engine.get_current_data()
    risk = engine.get_risk_level()
    details = engine.get_game_over_details()
    return {
        "ticks": engine.tick,
        "duration_seconds": round(duration, 3),
        "scenario": engine.scenario.value,
        "state": state.to_dict(),
        "equipment": engine.get_equipment_status().to_dict(),
        "risk": {
            "level": risk.level,
            "type": risk.type.value if risk.type else None,
            "decaying": risk.decaying,
        },
        "bop_activations": engine.get_bop_activations(),
        "kicks_handled": engine.get_kicks_handled(),
        "events": len(engine.get_event_log()),
        "checkpoints": len(engine.get_checkpoints()),
        "target_depth": engine.get_target_depth(),
        "target_reached": engine.is_target_depth_reached(),
        "game_over": details.to_dict() if details else None,
    }


def run_session(
    config: Annotated[
        Path,
        typer.Option(
            "--config",
            "-c",
            help="Session file (YAML)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    ticks: Annotated[
        int,
        typer.Option("--ticks", "-t", help="Maximum number of ticks to run", min=1),
    ] = 600,
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", "-s", help="Override RNG seed"),
    ] = None,
    scenario: Annotated[
        Optional[str],
        typer.Option("--scenario", help="Override the training scenario"),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress logs (stdout only)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show every event as it happens"),
    ] = False,
    stream: Annotated[
        bool,
        typer.Option("--stream", help="Stream per-tick state as JSONL"),
    ] = False,
):
    """Run a training session headlessly.

    The session stops early on game over or when the target depth is reached.

    Examples:

        # Basic run with JSON summary
        drill-sim run --config session.yaml

        # Reproducible kick drill
        drill-sim run --config session.yaml --scenario kick --seed 7 --ticks 5000

        # Per-tick JSONL for plotting
        drill-sim run --config session.yaml --stream --quiet
    """
    try:
        report("info", f"Loading configuration from {config}", quiet)
        try:
            session = SessionConfig.from_yaml(config)
        except ValueError as e:
            report("error", str(e))
            raise typer.Exit(1)

        if seed is not None:
            session.engine = session.engine.model_copy(update={"rng_seed": seed})
            report("info", f"Overriding seed: {seed}", quiet)

        if scenario is not None:
            try:
                session.scenario = Scenario(scenario).value
            except ValueError:
                valid = ", ".join(s.value for s in Scenario)
                report("error", f"Unknown scenario {scenario!r} (expected one of: {valid})")
                raise typer.Exit(1)
            report("info", f"Overriding scenario: {scenario}", quiet)

        engine = session.build_engine()
        report(
            "info",
            f"Running up to {ticks} ticks (scenario: {engine.scenario.value}, "
            f"seed: {session.engine.rng_seed})",
            quiet,
        )

        start_time = time.time()
        for _ in range(ticks):
            engine.step()
            if verbose and not quiet:
                for event in engine.get_current_data().events:
                    log_event(event)
            if stream:
                row = {"tick": engine.tick, **engine.get_current_data().to_dict()}
                emit_json(row, compact=True)
            if engine.is_game_over():
                break
            if engine.is_target_depth_reached():
                report("ok", f"Target depth {engine.get_target_depth():.0f}ft reached", quiet)
                break
        duration = time.time() - start_time

        details = engine.get_game_over_details()
        if not quiet:
            log_state_summary(engine.get_current_data(), engine.get_risk_level().level)
            if details:
                log_game_over(details)
            else:
                report("ok", f"Completed {engine.tick} ticks in {duration:.3f}s", quiet)

        missed = engine.get_missed_warnings()
        if missed:
            report("warn", f"{len(missed)} missed warning(s)", quiet)

        if not stream:
            emit_json(_summary(engine, duration))

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        report("error", "Interrupted by user")
        raise typer.Exit(130)
    except Exception as e:
        report("error", f"Error: {e}")
        raise typer.Exit(1)
