import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from project_events.config import settings
from project_events.errors import EventPublishError
from project_events.events.envelope import create_envelope
from project_events.events.types import EVENT_METADATA, ProjectEventType, is_valid_event_type
from project_events.events.domains.project import get_payload_type
from project_events.publisher import EventPublisher
from project_events.transports import create_transport

app = typer.Typer(help="project-events CLI - publish project events to the orchestration service")
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def load_payload(payload_file: Path) -> Dict[str, Any]:
    try:
        with open(payload_file, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error reading payload file {payload_file}: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        console.print("[red]Error: payload file must contain a JSON object[/red]")
        raise typer.Exit(1)
    return data


def _build_publisher() -> EventPublisher:
    return EventPublisher(create_transport(settings), settings=settings)


async def _publish_event(
    event_type: str,
    payload: Dict[str, Any],
    correlation_id: Optional[str],
    max_retries: Optional[int],
) -> Dict[str, float]:
    """Publish one event through a short-lived publisher and return its metrics."""
    publisher = _build_publisher()
    await publisher.start()
    try:
        await publisher.publish(
            event_type, payload, correlation_id=correlation_id, max_retries=max_retries
        )
        return publisher.get_metrics()
    finally:
        await publisher.close()


async def _health() -> Dict[str, Any]:
    publisher = _build_publisher()
    try:
        return await publisher.health_check()
    finally:
        await publisher.close()


# ============================================================================
# CLI Commands
# ============================================================================


@app.callback()
def main(
    log_level: str = typer.Option(
        os.getenv("LOG_LEVEL", "WARNING"), "--log-level", help="Python logging level"
    ),
):
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@app.command(name="list-events")
def list_events():
    """List all project event types with their delivery policy."""
    table = Table(title="Project events")
    table.add_column("Event type", style="cyan")
    table.add_column("Priority")
    table.add_column("Retry policy")
    table.add_column("Max retries", justify="right")
    table.add_column("Timeout (s)", justify="right")

    for event_type, metadata in EVENT_METADATA.items():
        table.add_row(
            event_type.value,
            metadata.priority.value,
            metadata.retry_policy.value,
            str(metadata.max_retries),
            f"{metadata.timeout:g}",
        )

    console.print(table)


@app.command(name="publish")
def publish_event(
    event_type: str = typer.Argument(..., help="Event type, e.g. project.created"),
    payload_file: Path = typer.Option(..., "--payload-file", "-f", help="JSON payload file"),
    correlation_id: Optional[str] = typer.Option(
        None, "--correlation-id", "-c", help="Correlation id passed through to the receiver"
    ),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", help="Override the event's retry budget"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print envelope without publishing"),
):
    """
    Publish a project event.

    Examples:
        project-events publish project.created -f created.json
        project-events publish project.updated -f updated.json --dry-run
    """
    if not is_valid_event_type(event_type):
        console.print(f"[red]Error: Unknown event type '{event_type}'.[/red]")
        console.print("[dim]Run 'project-events list-events' to see available events.[/dim]")
        raise typer.Exit(1)

    payload = load_payload(payload_file)

    try:
        model = get_payload_type(event_type).model_validate(payload)
    except ValidationError as e:
        console.print(f"[red]Invalid payload for {event_type}:[/red]\n{e}")
        raise typer.Exit(1)

    if dry_run:
        envelope = create_envelope(event_type, model, correlation_id=correlation_id)
        console.print("\n[bold]Dry run - would publish:[/bold]")
        wire = json.dumps(envelope.to_wire(), indent=2)
        console.print(Syntax(wire, "json", theme="monokai", line_numbers=True))
        return

    try:
        metrics = asyncio.run(_publish_event(event_type, payload, correlation_id, max_retries))
    except EventPublishError as e:
        console.print(f"[red]Error publishing event: {e}[/red]")
        raise typer.Exit(1)

    prefix = ProjectEventType(event_type).metric_prefix
    if metrics.get(f"{prefix}_error"):
        console.print(
            f"[yellow]Warning: {event_type} could not be delivered (best-effort event, "
            f"failure was swallowed)[/yellow]"
        )
        raise typer.Exit(1)

    attempts = int(metrics.get(f"{prefix}_attempt", 0))
    console.print(f"[green]✓ Published {event_type} ({attempts} attempt(s))[/green]")


@app.command(name="health")
def health():
    """Show health of the configured event transport."""
    status = asyncio.run(_health())
    console.print_json(json.dumps(status))
    if status["status"] != "healthy":
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
