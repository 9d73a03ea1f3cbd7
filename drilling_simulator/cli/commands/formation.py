"""Formation command - Inspect the layers a session drills through."""

from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from drilling_simulator.cli.output import console, emit_json, layer_table, report
from drilling_simulator.config import SessionConfig
from drilling_simulator.formation import FormationModel


def show_formation(
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Session file (YAML). Uses the default section when omitted.",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    reference: Annotated[
        bool,
        typer.Option("--reference", help="Show the six-layer reference section"),
    ] = False,
    depth: Annotated[
        Optional[float],
        typer.Option("--depth", "-d", help="Also report properties at this depth (ft)", min=0),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print layers as JSON on stdout"),
    ] = False,
):
    """Show formation layers, and optionally the rock at one depth.

    Examples:

        drill-sim formation
        drill-sim formation --config session.yaml --depth 2500
        drill-sim formation --reference --json
    """
    if config is not None and reference:
        report("error", "--config and --reference are mutually exclusive")
        raise typer.Exit(1)

    if reference:
        model = FormationModel.reference()
    elif config is not None:
        try:
            model = SessionConfig.from_yaml(config).build_formation()
        except ValueError as e:
            report("error", str(e))
            raise typer.Exit(1)
        if model is None:
            report("info", "Session runs without a formation (default rock properties)")
            model = FormationModel()
    else:
        model = FormationModel.default()

    layers = model.get_layers()
    result: dict = {"layers": [layer.model_dump(mode="json") for layer in layers]}

    if depth is not None:
        props = model.get_properties_at_depth(depth)
        layer = model.get_layer_at_depth(depth)
        result["at_depth"] = {
            "depth": depth,
            "layer": layer.name if layer else None,
            "properties": {**asdict(props), "lithology": props.lithology.value},
            "recommended": asdict(model.get_recommendations_at_depth(depth)),
        }

    if as_json:
        emit_json(result)
        return

    console.print(layer_table(layers))
    if depth is not None:
        at = result["at_depth"]
        rec = at["recommended"]
        console.print(
            f"\n[bold]At {depth:.0f}ft[/bold] ({at['layer'] or 'no layer'}): "
            f"pore {props.pore_pressure:.2f} ppg, fracture {props.fracture_pressure:.2f} ppg, "
            f"{props.lithology.value}"
        )
        console.print(
            f"  Recommended: ROP {rec['min_rop']:g}-{rec['max_rop']:g} ft/hr, "
            f"mud {rec['recommended_mud_weight']:g} ppg, {rec['recommended_rpm']:g} rpm"
        )
        console.print(f"  [dim]{rec['description']}[/dim]")
