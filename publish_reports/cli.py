"""Command line interface for replaying execution events."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from publish_reports.config import load_config
from publish_reports.contracts import PublishOutcome, RecordType
from publish_reports.errors import MalformedMessage
from publish_reports.extract import extract_message
from publish_reports.handler import build_handler
from publish_reports.transports import get_transport

app = typer.Typer(help="CLI for workflow report publishing")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for the run"),
) -> None:
    """publish-reports CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("publish")
def publish(
    event_file: Path,
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file"),
    backend: Optional[str] = typer.Option(None, help="Override transport backend"),
) -> None:
    """
    Replay one execution event through the report handler.

    Reads a JSON execution status event, publishes its execution, PDR and
    granule records to the configured topics and prints one line per record.

    Example:
        publish-reports publish event.json
        # Output: execution  arn:aws:states:...:execution:Wf:abc  published  reports-executions
        #         pdr        PDR1                                 published  reports-pdrs
    """
    if not event_file.exists():
        typer.secho(f"Event file not found: {event_file}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = load_config(str(config_path) if config_path else None)
    transport = get_transport(backend=backend, config=config)
    report_handler = build_handler(config, transport)

    try:
        event = json.loads(event_file.read_text())
        message = extract_message(event)
    except (json.JSONDecodeError, MalformedMessage) as e:
        typer.secho(f"Malformed event: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    async def _run() -> List[PublishOutcome]:
        await transport.connect()
        try:
            return await report_handler.publish_report_messages(message)
        finally:
            await transport.disconnect()

    for outcome in asyncio.run(_run()):
        typer.echo(
            "\t".join(
                [
                    outcome.record_type.value,
                    outcome.record_id or "-",
                    outcome.state.value,
                    outcome.topic or outcome.error or "-",
                ]
            )
        )


@app.command("topics")
def topics(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Config file"),
) -> None:
    """Show the topic bound to each record type."""
    config = load_config(str(config_path) if config_path else None)
    for record_type in RecordType:
        topic = config.topics.topic_for(record_type)
        typer.echo(f"{record_type.value}\t{topic or '(not published)'}")


if __name__ == "__main__":
    app()
