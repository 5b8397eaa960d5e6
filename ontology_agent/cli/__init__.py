"""
Command-Line Interface

CLI commands for the ontology agent.

Commands:
    ontology-agent run          - Run the agent on a prompt
    ontology-agent steps        - List persisted steps of a run
    ontology-agent index        - Index the workspace graph for retrieval
    ontology-agent info         - Display workspace statistics
    ontology-agent init-config  - Write a default configuration file

Usage:
    # Run (repeat --type for each allowed node type)
    ontology-agent run "Add Ada Lovelace" --type Person --type Machine

    # Resume a run after a crash
    ontology-agent run "Add Ada Lovelace" --type Person --run-id run-42

    # Inspect what a run persisted
    ontology-agent steps run-42
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

__all__ = ["main", "app"]

app = typer.Typer(
    name="ontology-agent",
    help="Autonomous agent that plans and applies ontology edits",
    no_args_is_help=True,
)
console = Console()

_STATUS_STYLES = {
    "succeeded": "green",
    "failed": "red",
    "skipped": "dim",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("ontology_agent").setLevel(logging.DEBUG if verbose else logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def _load_config(config_path: Optional[Path]):
    from ontology_agent.config import AgentConfig

    if config_path is not None:
        return AgentConfig.from_file(config_path)
    return AgentConfig()


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    load_dotenv()
    _configure_logging(verbose)


@app.command()
def run(
    prompt: str = typer.Argument(
        ...,
        help="Natural-language request",
    ),
    types: list[str] = typer.Option(
        ...,
        "--type", "-t",
        help="Allowed node type (repeatable)",
    ),
    filters: Optional[list[str]] = typer.Option(
        None,
        "--filter", "-f",
        help="Restrict context to NODE, RELATIONSHIP or NOTE (repeatable)",
    ),
    workspace: Path = typer.Option(
        Path("./workspace"),
        "--workspace", "-w",
        help="Workspace directory",
    ),
    run_id: Optional[str] = typer.Option(
        None,
        "--run-id",
        help="Reuse to resume an earlier run",
    ),
    consumer: Optional[str] = typer.Option(
        None,
        "--consumer", "-c",
        help="Consumer id for progress notifications",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="TOML configuration file",
        exists=True,
    ),
    cost: bool = typer.Option(
        False,
        "--cost",
        help="Show estimated provider cost",
    ),
) -> None:
    """Run the agent on a prompt."""
    from ontology_agent.errors import AgentError, PlanValidationError
    from ontology_agent.types.context import ContextKind

    try:
        context_filter = [ContextKind(f.upper()) for f in filters] if filters else None
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--filter") from e

    async def _run() -> int:
        from ontology_agent.api.agent import OntologyAgent

        agent = OntologyAgent(workspace, config=_load_config(config_path))

        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Planning and executing...")
                result = await agent.run(
                    prompt,
                    types,
                    context_filter,
                    run_id=run_id,
                    consumer_id=consumer,
                    cost_debug=cost,
                )
                progress.update(task, completed=True)
        except PlanValidationError as e:
            console.print(Panel(str(e), title=f"Invalid plan ({e.kind.value})", border_style="red"))
            return 1
        except AgentError as e:
            console.print(f"[red]{e.kind.value}: {e}[/]")
            return 1
        finally:
            await agent.close()

        table = Table(title=f"Run {result.run_id} ({result.plan.intent.value})")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Action")
        table.add_column("Status")
        table.add_column("Detail", style="dim")

        for record in result.execution_records:
            status = record.status.value
            reasons = record.failure_reasons()
            detail = "; ".join(f"{k.value}: {r}" for k, r in reasons)
            if not detail and record.dispatch_result is not None:
                detail = record.dispatch_result.id
            table.add_row(
                str(record.step_number),
                record.action,
                f"[{_STATUS_STYLES[status]}]{status}[/]",
                detail,
            )

        console.print()
        console.print(table)
        console.print()
        console.print(Panel(Markdown(result.summary), title="Summary"))

        if result.cost is not None:
            breakdown = result.cost.breakdown
            console.print(
                f"\n[dim]Provider calls: {breakdown.total_calls}, "
                f"tokens: {breakdown.total_tokens}, "
                f"est. cost: ${breakdown.total_estimated_cost_usd:.4f}[/]"
            )
            for action_cost in breakdown.by_action:
                console.print(
                    f"[dim]  action {action_cost.action}: {action_cost.calls} calls, "
                    f"${action_cost.estimated_cost_usd:.4f}[/]"
                )
            for warning in result.cost.warnings:
                console.print(f"[yellow]{warning}[/]")

        console.print(f"\n[dim]Run time: {result.total_time_ms}ms[/]")
        return 0

    code = asyncio.run(_run())
    if code:
        raise typer.Exit(code)


@app.command()
def steps(
    run_id: str = typer.Argument(
        ...,
        help="Run id",
    ),
    workspace: Path = typer.Option(
        Path("./workspace"),
        "--workspace", "-w",
        help="Workspace directory",
        exists=True,
    ),
    show_values: bool = typer.Option(
        False,
        "--values",
        help="Print persisted step values",
    ),
) -> None:
    """List persisted steps of a run."""

    async def _run() -> None:
        from ontology_agent.api.agent import OntologyAgent

        agent = OntologyAgent(workspace, create=False)

        try:
            records = await agent.steps(run_id)
        finally:
            await agent.close()

        if not records:
            console.print(f"[yellow]No persisted steps for run {run_id}[/]")
            return

        table = Table(title=f"Steps of {run_id}")
        table.add_column("Step", style="cyan")
        table.add_column("Completed", style="dim")
        if show_values:
            table.add_column("Value")

        for record in records:
            row = [record.step_name, record.created_at.isoformat(timespec="seconds")]
            if show_values:
                row.append(json.dumps(record.value)[:200])
            table.add_row(*row)

        console.print(table)

    asyncio.run(_run())


@app.command()
def index(
    workspace: Path = typer.Option(
        Path("./workspace"),
        "--workspace", "-w",
        help="Workspace directory",
        exists=True,
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="TOML configuration file",
        exists=True,
    ),
) -> None:
    """Index the workspace graph so later runs retrieve it as context."""

    async def _run() -> int:
        from ontology_agent.api.agent import OntologyAgent

        agent = OntologyAgent(workspace, config=_load_config(config_path), create=False)
        try:
            return await agent.index_graph()
        finally:
            await agent.close()

    count = asyncio.run(_run())
    console.print(f"[green]Indexed {count} context items[/]")


@app.command()
def info(
    workspace: Path = typer.Option(
        Path("./workspace"),
        "--workspace", "-w",
        help="Workspace directory",
        exists=True,
    ),
) -> None:
    """Display workspace statistics."""

    async def _run() -> None:
        from ontology_agent.api.agent import OntologyAgent

        agent = OntologyAgent(workspace, create=False)

        try:
            stats = await agent.stats()

            table = Table(title=f"Workspace: {workspace}")
            table.add_column("Metric", style="cyan")
            table.add_column("Count", justify="right", style="green")

            table.add_row("Nodes", str(stats["nodes"]))
            table.add_row("Relationships", str(stats["relationships"]))
            table.add_row("Context items", str(stats["context_items"]))

            console.print(table)

        finally:
            await agent.close()

    asyncio.run(_run())


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(
        Path("./ontology-agent.toml"),
        help="Where to write the configuration",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing file",
    ),
) -> None:
    """Write a configuration file with the current settings."""
    from ontology_agent.config import AgentConfig

    if path.exists() and not force:
        console.print(f"[red]{path} already exists (use --force to overwrite)[/]")
        raise typer.Exit(1)

    AgentConfig().to_file(path)
    console.print(f"[green]Wrote {path}[/]")


def main() -> None:
    """Entry point for the CLI."""
    app()
