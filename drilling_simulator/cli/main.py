"""Drilling Simulator CLI - Main entry point."""

import typer
from typing_extensions import Annotated

from drilling_simulator import __version__

app = typer.Typer(
    name="drill-sim",
    help="Drilling Simulator - Headless runner for well-control training sessions",
    add_completion=True,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from drilling_simulator.cli.output import console
        console.print(f"[bold]Drilling Simulator[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Drilling Simulator CLI - drive a training session without a UI."""
    pass


# Import commands after app is defined to avoid circular imports
from drilling_simulator.cli.commands.formation import show_formation
from drilling_simulator.cli.commands.run import run_session

app.command(name="run", help="Run a training session from a configuration file")(run_session)
app.command(name="formation", help="Show formation layers and drilling recommendations")(show_formation)


if __name__ == "__main__":
    app()
