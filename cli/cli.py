"""Developer CLI for the Cadence engine.

Runs inference and plan generation locally against a JSON input file:

    {
        "snapshot": {...},
        "activities": [...],
        "daily_records": [...],
        "body_records": [...]
    }

Only "snapshot" is required for `plan`; `state` needs none of the keys.
"""

import json
import sys
from datetime import UTC, datetime
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cadence.config.settings import settings
from cadence.core.logger import setup_logger
from cadence.errors import PlannerError
from cadence.metrics import compute_runner_state
from cadence.planner import GeneratedPlan, generate
from cadence.runner import RunnerSnapshot
from cadence.safeguards import default_rule_set, load_rule_set
from cadence.state import RunnerState
from cadence.templates import all_templates

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="cadence",
    help="Cadence CLI - runner state inference and training plan generation",
    add_completion=False,
)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _setup_logging(debug: bool = False) -> None:
    """Send engine logs to stderr so stdout stays clean for JSON output."""
    setup_logger(level="DEBUG" if debug else settings.log_level)


def _load_input(path: Path) -> dict:
    """Read the JSON input file.

    Raises:
        typer.Exit: If the file is missing or not a JSON object
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] Input file not found: {path}", style="bold red")
        raise typer.Exit(1) from e
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] {path} is not valid JSON: {e}", style="bold red")
        raise typer.Exit(1) from e
    if not isinstance(data, dict):
        console.print(f"[red]Error:[/red] {path} must contain a JSON object", style="bold red")
        raise typer.Exit(1)
    return data


def _parse_as_of(value: str | None) -> datetime:
    if value is None:
        return datetime.now(UTC)
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        console.print(f"[red]Error:[/red] --as-of must be an ISO date or datetime, got {value!r}")
        raise typer.Exit(1) from e


def _state_from_input(data: dict, as_of: datetime, snapshot: RunnerSnapshot | None) -> RunnerState:
    return compute_runner_state(
        data.get("activities", []),
        data.get("daily_records", []),
        data.get("body_records", []),
        as_of,
        snapshot=snapshot,
    )


def _week_table(plan: GeneratedPlan) -> Table:
    labels = {label.week_index: label.label for label in plan.season_view.week_labels}
    table = Table(title=f"{plan.template_id}: {plan.duration_weeks} weeks, peak {plan.peak_volume_km:.1f} km")
    table.add_column("Week", justify="right")
    table.add_column("Phase")
    table.add_column("Label")
    table.add_column("Target km", justify="right")
    table.add_column("Final km", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Long run", justify="right")
    table.add_column("Key", justify="right")
    table.add_column("Sessions")

    for week in plan.weeks:
        sessions = plan.sessions_for_week(week.week_index)
        layout = " ".join(
            f"{DAY_NAMES[s.day_of_week]}:{s.session_type.value}" for s in sessions if s.distance_km > 0
        )
        final = f"{week.volume_km:.1f}"
        if abs(week.volume_km - week.target_volume_km) > 0.05:
            final = f"[yellow]{final}[/yellow]"
        table.add_row(
            str(week.week_index),
            week.phase_name,
            labels.get(week.week_index, ""),
            f"{week.target_volume_km:.1f}",
            final,
            f"{week.volume_change_percent:+d}%",
            f"{week.long_run_km:.1f}",
            str(week.key_session_count),
            layout,
        )
    return table


@app.command()
def templates() -> None:
    """List the built-in plan templates."""
    table = Table(title="Plan templates")
    table.add_column("ID")
    table.add_column("Goal")
    table.add_column("Weeks", justify="right")
    table.add_column("Recommended", justify="right")
    table.add_column("Phases")

    for template in all_templates():
        table.add_row(
            template.id,
            template.goal_type.value,
            f"{template.min_weeks}-{template.max_weeks}",
            str(template.recommended_weeks),
            " > ".join(phase.name for phase in template.phases),
        )
    console.print(table)


@app.command()
def state(
    input_file: Path = typer.Argument(..., help="JSON file with activities, daily_records and body_records"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date/time (ISO 8601); defaults to now"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Infer the runner state and print it as JSON."""
    _setup_logging(debug=debug)
    data = _load_input(input_file)
    reference = _parse_as_of(as_of)

    snapshot = None
    if "snapshot" in data:
        try:
            snapshot = RunnerSnapshot.model_validate(data["snapshot"])
        except ValidationError as e:
            console.print(f"[red]Error:[/red] Invalid snapshot: {e}", style="bold red")
            raise typer.Exit(1) from e

    runner_state = _state_from_input(data, reference, snapshot)
    typer.echo(runner_state.model_dump_json(indent=2))


@app.command()
def plan(
    input_file: Path = typer.Argument(..., help="JSON file with a snapshot and optional activity history"),
    goal: str | None = typer.Option(None, "--goal", "-g", help="Goal type; defaults to the snapshot goal"),
    weeks: int | None = typer.Option(None, "--weeks", "-w", help="Plan length; defaults to the template recommendation"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date/time (ISO 8601); defaults to now"),
    rules: Path | None = typer.Option(None, "--rules", help="YAML safeguard rule set; defaults to the built-in set"),
    as_json: bool = typer.Option(False, "--json", help="Print the full plan as JSON"),
    show_decisions: bool = typer.Option(False, "--decisions", help="Print the decision audit"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Generate a training plan."""
    _setup_logging(debug=debug)
    data = _load_input(input_file)
    reference = _parse_as_of(as_of)

    try:
        snapshot = RunnerSnapshot.model_validate(data.get("snapshot", {}))
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid snapshot: {e}", style="bold red")
        raise typer.Exit(1) from e

    try:
        rule_set = load_rule_set(rules) if rules is not None else default_rule_set()
        runner_state = _state_from_input(data, reference, snapshot)
        generated = generate(snapshot, runner_state, goal or snapshot.goal_type, weeks, rules=rule_set)
    except PlannerError as e:
        logger.error(f"Plan generation failed: {e.code} {e.details}")
        console.print(f"[red]Error ({e.code}):[/red] {e.message}", style="bold red")
        raise typer.Exit(1) from e
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    if as_json:
        typer.echo(generated.model_dump_json(indent=2))
        return

    console.print(Panel(generated.season_view.summary, title="Season", border_style="cyan"))
    console.print(_week_table(generated))
    if generated.season_view.identified_risks:
        console.print("\n[yellow]Identified risks:[/yellow]")
        for risk in generated.season_view.identified_risks:
            console.print(f"  - {risk}")
    outcomes = generated.season_view.expected_outcomes
    if outcomes is not None:
        console.print(
            f"\n[green]Expected outcome:[/green] {outcomes.primary_goal} (confidence {outcomes.confidence_level}%)"
        )
    if show_decisions:
        console.print("\n[cyan]Decisions:[/cyan]")
        for decision in generated.decision_audit:
            week = f"w{decision.week_index} " if decision.week_index is not None else ""
            rules_fired = escape(f" [{', '.join(decision.triggered_rule_ids)}]") if decision.triggered_rule_ids else ""
            console.print(f"  {week}{decision.stage.value}: {decision.chosen_value}{rules_fired} - {decision.rationale}")


if __name__ == "__main__":
    sys.exit(app())
