"""stationgraph CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stationgraph.observability import close_file_logging, configure_logging, get_logger, get_logs_dir

if TYPE_CHECKING:
    from stationgraph.config import ProjectConfig
    from stationgraph.engine import NodeView
    from stationgraph.graph.registry import NodeRegistry

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="sg",
    help="stationgraph: dialogue graph engine and content QA tools.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False
_project_path: Path = Path()


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Enable file logging to {project}/logs/engine.jsonl.",
        ),
    ] = False,
    project: Annotated[
        Path,
        typer.Option(
            "--project",
            "-p",
            help="Project directory holding project.yaml (default: current directory).",
            envvar="SG_PROJECT",
        ),
    ] = Path(),
) -> None:
    """stationgraph: dialogue graph engine and content QA tools."""
    global _verbose, _log_enabled, _project_path
    _verbose = verbose
    _log_enabled = log_file
    _project_path = project

    # Console only; file logging waits until the project loads
    configure_logging(verbosity=verbose)


def _configure_project_logging(project_path: Path) -> None:
    """Configure file logging if --log was set."""
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_path)
        atexit.register(close_file_logging)


def _load_config() -> ProjectConfig:
    from stationgraph.config import ConfigError, load_project_config

    try:
        config = load_project_config(_project_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    _configure_project_logging(config.root)
    return config


def _build_registry(config: ProjectConfig, *, feedback: bool = False) -> NodeRegistry:
    """Build the configured corpus, exiting 1 on any authoring defect."""
    from stationgraph.graph import ContentBuildFailed, GraphFileError, load_corpus

    try:
        return load_corpus(config.content.paths, include_builtin=config.content.builtin)
    except GraphFileError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    except ContentBuildFailed as e:
        console.print(f"[red]✗[/red] Content build failed with {len(e.errors)} error(s)")
        for error in e.errors:
            if feedback:
                console.print()
                console.print(escape(error.to_feedback()))
            else:
                console.print(f"  [red]•[/red] {escape(str(error))}")
        raise typer.Exit(1) from e


@app.command()
def version() -> None:
    """Show version information."""
    from stationgraph import __version__

    console.print(f"stationgraph v{__version__}")


@app.command()
def validate(
    feedback: Annotated[
        bool,
        typer.Option("--feedback", help="Print detailed, author-facing fix suggestions for build errors."),
    ] = False,
) -> None:
    """Build the corpus and run lint checks."""
    from stationgraph.graph.lint import lint

    config = _load_config()
    registry = _build_registry(config, feedback=feedback)
    console.print(
        f"[green]✓[/green] Built {len(registry.graph_keys)} graph(s), {len(registry)} node(s)"
    )

    report = lint(registry)
    table = Table(title="Lint")
    table.add_column("Check", style="cyan")
    table.add_column("Result", style="bold")
    table.add_column("Detail")
    icons = {
        "pass": "[green]✓[/green] pass",
        "warn": "[yellow]![/yellow] warn",
        "fail": "[red]✗[/red] fail",
    }
    for check in report.checks:
        table.add_row(check.name, icons[check.severity], escape(check.message))
    console.print()
    console.print(table)
    console.print(f"Summary: {report.summary}")

    if report.has_failures:
        raise typer.Exit(1)


@app.command()
def audit(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Report path (default: qa.report from config)."),
    ] = None,
) -> None:
    """Write the unreachable-node report for the corpus."""
    from stationgraph.graph.reachability import analyze

    config = _load_config()
    registry = _build_registry(config)
    report = analyze(registry)
    path = report.write(output or config.qa.report)

    table = Table(title="Reachability")
    table.add_column("Graph", style="cyan")
    table.add_column("Nodes", justify="right")
    table.add_column("Reachable", justify="right")
    table.add_column("Unreachable", justify="right")
    for key, result in sorted(report.graphs.items()):
        unreachable = len(result.unreachable)
        table.add_row(
            key,
            str(result.node_count),
            str(len(result.reachable)),
            f"[yellow]{unreachable}[/yellow]" if unreachable else str(unreachable),
        )
    console.print(table)
    console.print(f"[green]✓[/green] Report written: [cyan]{path}[/cyan]")


@app.command()
def verify(
    report_path: Annotated[
        Path | None,
        typer.Option("--report", help="Unreachable report (default: qa.report from config)."),
    ] = None,
    quarantine_path: Annotated[
        Path | None,
        typer.Option("--quarantine", help="Quarantine list (default: qa.quarantine from config)."),
    ] = None,
    write_quarantine: Annotated[
        bool,
        typer.Option("--write-quarantine", help="Replace the quarantine list with the report's nodes."),
    ] = False,
) -> None:
    """Compare the unreachable report with the quarantine list (exit 1 on mismatch)."""
    from stationgraph.graph import quarantine

    config = _load_config()
    report_file = report_path or config.qa.report
    quarantine_file = quarantine_path or config.qa.quarantine

    try:
        unreachable = quarantine.load_report(report_file)
        if write_quarantine:
            quarantine.write_quarantine(quarantine_file, unreachable)
            console.print(
                f"[green]✓[/green] Wrote {len(unreachable)} node(s) to [cyan]{quarantine_file}[/cyan]"
            )
            return
        result = quarantine.diff(unreachable, quarantine.load_quarantine(quarantine_file))
    except quarantine.QuarantineFileError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    for line in result.format_lines(config.qa.max_examples):
        console.print(escape(line))
    if not result.ok:
        console.print()
        console.print(
            "Reconnect the node, or quarantine it with [cyan]sg verify --write-quarantine[/cyan]."
        )
        log.info("quarantine_mismatch", missing=len(result.missing), extra=len(result.extra))
        raise typer.Exit(result.exit_code)


@app.command()
def show(
    graph: Annotated[str, typer.Argument(help="Graph key (e.g. samuel).")],
    node: Annotated[str, typer.Argument(help="Node id within the graph.")],
    player: Annotated[
        str | None,
        typer.Option("--player", help="Render for this player's saved checkpoint."),
    ] = None,
) -> None:
    """Render a node the way a player would see it."""
    from stationgraph.engine import CheckpointError, CheckpointStore, RegistryDefectError, get_current_node
    from stationgraph.models import NodeKey, PlayerState

    config = _load_config()
    registry = _build_registry(config)

    if player is not None:
        try:
            state = CheckpointStore(config.engine.checkpoint_dir).load(player)
        except CheckpointError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from e
    else:
        state = PlayerState.new(characters=registry.characters)

    key = NodeKey(graph_key=graph, node_id=node)
    try:
        view = get_current_node(registry, key, state)
    except RegistryDefectError as e:
        console.print(f"[red]Error:[/red] Unknown node {escape(str(key))}")
        raise typer.Exit(1) from e

    _print_view(view)


@app.command()
def play(
    graph: Annotated[str, typer.Argument(help="Graph key to start in.")],
    node: Annotated[str, typer.Argument(help="Node id to start at.")],
    choose: Annotated[
        list[str] | None,
        typer.Option("--choose", "-c", help="Choice id to select; repeat to walk a path."),
    ] = None,
    player: Annotated[
        str,
        typer.Option("--player", help="Player id; an existing checkpoint is loaded."),
    ] = "player",
    save: Annotated[
        bool,
        typer.Option("--save", help="Save the final state as the player's checkpoint."),
    ] = False,
) -> None:
    """Walk a player through a sequence of choices with the project's engine settings."""
    from stationgraph.engine import CheckpointError, CheckpointStore, DialogueSession, EngineError
    from stationgraph.models import NodeKey, PlayerState

    config = _load_config()
    registry = _build_registry(config)
    store = CheckpointStore(config.engine.checkpoint_dir)

    try:
        if store.exists(player):
            state = store.load(player)
        else:
            state = PlayerState.new(player_id=player, characters=registry.characters)
    except CheckpointError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    session = DialogueSession.from_config(config, registry, state)
    try:
        view = session.start(NodeKey(graph_key=graph, node_id=node))
        for choice_id in choose or []:
            result = session.select_choice(choice_id)
            if result.is_handoff:
                console.print(
                    f"[cyan]{escape(choice_id)}[/cyan] -> [magenta]{result.resolution.sentinel}[/magenta]"
                )
                break
            console.print(f"[cyan]{escape(choice_id)}[/cyan] -> {escape(str(result.resolution))}")
            view = session.get_current_node()
    except EngineError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    console.print()
    if session.pending is None:
        _print_view(view)
    if save:
        path = store.save(player, session.state)
        console.print(f"[green]✓[/green] Saved: [cyan]{path}[/cyan]")
    logs_dir = get_logs_dir()
    if _log_enabled and logs_dir is not None:
        console.print(f"  Logs: [dim]{logs_dir}[/dim]")


def _print_view(view: NodeView) -> None:
    emotion = f" [dim]({escape(view.emotion)})[/dim]" if view.emotion else ""
    console.print(f"[bold]{escape(view.speaker)}[/bold]{emotion}")
    console.print(escape(view.text))
    console.print()
    if view.simulation is not None:
        console.print(f"[magenta]Simulation:[/magenta] {escape(view.simulation.title)}")
    if view.interrupt is not None:
        console.print(
            f"[yellow]Interrupt ({view.interrupt.type}, {view.interrupt.duration} ms):[/yellow] "
            f"{escape(view.interrupt.action)}"
        )

    table = Table(title="Choices")
    table.add_column("Id", style="cyan")
    table.add_column("Text")
    table.add_column("Status")
    for choice in view.visible_choices:
        if not choice.enabled:
            status = f"[dim]disabled: {escape(choice.disabled_reason or '')}[/dim]"
        elif choice.orb_locked:
            status = "[dim]orb locked[/dim]"
        else:
            status = "[green]available[/green]"
        table.add_row(choice.choice_id, escape(choice.text), status)
    console.print(table)


if __name__ == "__main__":
    app()
