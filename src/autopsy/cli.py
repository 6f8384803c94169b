"""
Command-line interface for autopsy

Provides CLI commands for:
- Triaging an alert without persisting it: autopsy triage --alert-file alert.json
- Ingesting an alert end to end: autopsy ingest --alert-file alert.json
- Showing the public status page: autopsy status --period-hours 24
- Inspecting configuration: autopsy config --show
"""

import asyncio
import json
import sys
from typing import Any, Optional

import click
import yaml

from . import __version__
from .config import AutopsyConfig, get_config, set_config
from .models import Alert
from .observability import initialize_observability, shutdown_observability
from .orchestrator import IncidentOrchestrator
from .status_page import get_status_page
from .store import AlertStore, LocalFileStore, create_store
from .triage import registry


def _load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _open_store(store_path: Optional[str]) -> AlertStore:
    if store_path:
        return LocalFileStore(store_path)
    return create_store(get_config())


def _fail(message: str, error: Exception) -> None:
    click.echo(f"❌ {message}: {error}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="autopsy")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML configuration file",
)
@click.option("--verbose", is_flag=True, help="Enable logging, tracing and metrics")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """autopsy - alert triage, incident orchestration and availability reporting"""
    if config_path:
        set_config(AutopsyConfig.load_from_file(config_path))
    if verbose:
        config = get_config()
        telemetry = config.telemetry.model_copy(deep=True)
        telemetry.logging.level = config.log_level.upper()
        initialize_observability(telemetry)
        ctx.call_on_close(shutdown_observability)


@cli.command()
@click.option(
    "--alert-file",
    type=click.Path(exists=True),
    required=True,
    help="JSON file containing alert data",
)
def triage(alert_file: str):
    """Classify an alert and print the triage report without storing it"""
    try:
        alert = Alert.model_validate(_load_json(alert_file))
        agent = registry.create_agent(get_config().triage.agent)
        report = agent.review(alert)
    except Exception as e:
        _fail("Triage failed", e)
        return

    click.echo(f"🔍 Triage Report for {alert_file}")
    click.echo("=" * 50)
    click.echo(f"Decision: {report.decision.value}")
    click.echo(f"Summary: {report.summary}")
    click.echo(f"Likely Root Cause: {report.likely_root_cause}")
    click.echo(f"Confidence: {report.confidence.value}")

    if report.issue_title:
        click.echo(f"Issue Title: {report.issue_title}")

    if report.auto_fix_plan:
        click.echo("\nAuto-fix Plan:")
        for i, step in enumerate(report.auto_fix_plan, 1):
            click.echo(f"  {i}. {step}")

    click.echo("\nSuggested Actions:")
    for i, action in enumerate(report.suggested_actions, 1):
        click.echo(f"  {i}. {action}")

    click.echo("\nTimeline:")
    for step in report.timeline:
        click.echo(f"  [{step.timestamp.isoformat()}] {step.phase}: {step.detail}")


@cli.command()
@click.option(
    "--alert-file",
    type=click.Path(exists=True),
    required=True,
    help="JSON file containing alert data",
)
@click.option("--store-path", default=None, help="Local JSON store file to use")
def ingest(alert_file: str, store_path: Optional[str]):
    """Store an alert, triage it and open an incident when required"""

    async def run():
        store = _open_store(store_path)
        try:
            orchestrator = IncidentOrchestrator(store, config=get_config())
            return await orchestrator.handle_create_alert(_load_json(alert_file))
        finally:
            await store.close()

    try:
        outcome = asyncio.run(run())
    except Exception as e:
        _fail("Alert ingestion failed", e)
        return

    alert = outcome.alert
    click.echo(f"📥 Alert {alert.display_id} ({alert.severity.value}) from {alert.source}")
    click.echo(f"Status: {alert.status.value}")
    click.echo(f"Decision: {alert.triage.decision.value}")

    if outcome.incident:
        incident = outcome.incident
        click.echo(f"\n🚨 Incident {incident.display_id} opened")
        click.echo(f"  Service: {incident.service}")
        click.echo(f"  Title: {incident.title}")
        click.echo(f"  Status page: {incident.status_page_url}")
    else:
        click.echo("No incident opened")


@cli.command()
@click.option("--period-hours", default=None, help="Reporting window in hours (1-720)")
@click.option("--store-path", default=None, help="Local JSON store file to read")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def status(period_hours: Optional[str], store_path: Optional[str], output_format: str):
    """Show the public status page snapshot"""

    async def run():
        store = _open_store(store_path)
        try:
            return await get_status_page(store, period_hours, config=get_config())
        finally:
            await store.close()

    try:
        page = asyncio.run(run())
    except Exception as e:
        _fail("Status page failed", e)
        return

    if output_format == "json":
        click.echo(json.dumps(page.to_dict(), indent=2))
        return

    click.echo(f"📊 Overall Status: {page.overall_status.value}")
    click.echo(
        f"Window: {page.period_start.isoformat()} .. {page.period_end.isoformat()}"
    )
    click.echo("=" * 50)

    if not page.services:
        click.echo("No services registered")
    for entry in page.services:
        click.echo(
            f"  {entry.service}: {entry.availability_percent:.2f}% "
            f"({entry.downtime_minutes} min downtime)"
        )

    if page.incidents:
        click.echo(f"\n🚨 Open Incidents ({len(page.incidents)}):")
        for incident in page.incidents:
            click.echo(
                f"  {incident.id} [{incident.severity.value}] {incident.service}: "
                f"{incident.title} ({incident.status})"
            )


@cli.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--format", type=click.Choice(["yaml", "json"]), default="yaml", help="Output format")
def config(show: bool, format: str):
    """Manage autopsy configuration"""
    if not show:
        click.echo("Use --show to display current configuration")
        click.echo("Available options:")
        click.echo("  --show          Show current configuration")
        click.echo("  --format yaml   Output in YAML format (default)")
        click.echo("  --format json   Output in JSON format")
        return

    try:
        config_dict = get_config().model_dump(mode="json")
    except Exception as e:
        _fail("Failed to load configuration", e)
        return

    click.echo("🔧 Current autopsy Configuration")
    click.echo("=" * 40)

    if format == "yaml":
        click.echo(yaml.dump(config_dict, default_flow_style=False, indent=2))
    else:
        click.echo(json.dumps(config_dict, indent=2))


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
