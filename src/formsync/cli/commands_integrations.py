"""Integration CLI commands.

Commands:
- integrations list: List registered integrations
- drip settings: Show the discovered list and fields
- drip check: Verify the API accepts the configured token
- drip send: Send one submission built from --value pairs
- drip authorize-url: Print the OAuth authorization URL
"""

from __future__ import annotations

from typing import List, Optional

import typer
from typer import Typer

from formsync.cli.app import app, parse_pairs
from formsync.integrations import (
    IntegrationConfigError,
    IntegrationFactory,
    IntegrationRegistry,
    Submission,
)
from formsync.integrations.drip import DripIntegration

integrations_app = Typer(help="Registered integrations")
app.add_typer(integrations_app, name="integrations")

drip_app = Typer(help="Drip email-marketing integration")
app.add_typer(drip_app, name="drip")


def _load_drip() -> DripIntegration:
    try:
        return IntegrationFactory.from_config("drip")
    except IntegrationConfigError as e:
        typer.echo(f"❌ {e}", err=True)
        for field_name, message in e.field_errors.items():
            typer.echo(f"   {field_name}: {message}", err=True)
        raise typer.Exit(1)


def _report_errors(integration: DripIntegration) -> None:
    for entry in getattr(integration.error_reporter, "entries", []):
        typer.echo(f"   {entry.message}", err=True)


@integrations_app.command(name="list")
def integrations_list():
    """List registered integrations."""
    for name in IntegrationRegistry.list_integrations():
        integration_class = IntegrationRegistry.get(name)
        typer.echo(f"{name}\t{integration_class.display_name()}")


@drip_app.command(name="settings")
def drip_settings(
    as_json: bool = typer.Option(False, "--json", help="Print settings as JSON"),
):
    """Show the Drip list and its mappable fields."""
    integration = _load_drip()
    settings = integration.fetch_form_settings()

    if not settings.lists:
        typer.echo("❌ Could not reach Drip (no lists returned)", err=True)
        _report_errors(integration)
        raise typer.Exit(1)

    if as_json:
        typer.echo(settings.model_dump_json(indent=2))
        return

    for email_list in settings.lists:
        typer.echo(f"📋 {email_list.name} ({email_list.id})")
        for list_field in email_list.fields:
            marker = " *" if list_field.required else ""
            typer.echo(f"   {list_field.handle}: {list_field.name}{marker}")


@drip_app.command(name="check")
def drip_check():
    """Check that Drip accepts the configured access token."""
    integration = _load_drip()
    if integration.health_check():
        typer.echo("✅ Drip is reachable")
        return
    typer.echo("❌ Drip health check failed", err=True)
    raise typer.Exit(1)


@drip_app.command(name="send")
def drip_send(
    values: List[str] = typer.Option(
        [], "--value", "-v", help="Submitted value as handle=value (repeatable)"
    ),
    mappings: List[str] = typer.Option(
        [], "--map", "-m", help="Drip field as field={template} (repeatable)"
    ),
    submission_id: str = typer.Option("cli", "--submission-id", help="Submission ID to log"),
):
    """Send one submission to Drip.

    Without --map, every submitted handle maps to the Drip field of the same name.

    Examples:
        formsync drip send -v email=jo@example.com -v first_name=Jo
        formsync drip send -v your_email=jo@example.com -m email={your_email}
    """
    submitted = parse_pairs(values, "--value")
    field_mapping = parse_pairs(mappings, "--map") or {
        handle: f"{{{handle}}}" for handle in submitted
    }

    integration = _load_drip()
    integration.field_mapping = field_mapping
    submission = Submission(id=submission_id, form_handle="cli", values=submitted)

    if integration.send_payload(submission):
        typer.echo(f"✅ Submission {submission_id} sent to Drip")
        return

    typer.echo(f"❌ Submission {submission_id} was not sent", err=True)
    _report_errors(integration)
    raise typer.Exit(1)


@drip_app.command(name="authorize-url")
def drip_authorize_url(
    redirect_uri: str = typer.Option(..., "--redirect-uri", help="OAuth callback URL"),
    state: Optional[str] = typer.Option(None, "--state", help="Opaque CSRF state"),
):
    """Print the URL that starts the Drip OAuth authorization."""
    integration = _load_drip()
    typer.echo(integration.get_authorize_url(redirect_uri, state=state or ""))
