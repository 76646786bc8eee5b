"""Update Operator CLI (uop).

Usage:
    uop step spec.yaml                      # Run one reconciliation step
    uop step spec.yaml --context ctx.json   # Resume from a previous step
    uop run spec.yaml                       # Drive the update to completion
    uop diff spec.yaml                      # Show pending tag changes
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click

from .azure_provider import create_azure_provider
from .config import AzureProviderConfig, ConfigurationError, EngineConfig
from .engine import UpdateOrchestrator
from .errors import ErrorKind, ProviderError
from .main import DEFAULT_MAX_STEPS, run_to_completion, setup_logging
from .models import DesiredConfig, ResumableContext
from .provider import ResourceProvider
from .results import Failed
from .spec_loader import SpecLoadError, load_desired_config
from .tag_diff import compute_tag_diff


def _echo_json(data: dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def _load_context(value: str | None) -> ResumableContext:
    """Parse --context as inline JSON or as a path to a JSON file."""
    if not value:
        return ResumableContext()

    text = value
    path = Path(value)
    if not value.lstrip().startswith("{") and path.exists():
        text = path.read_text(encoding="utf-8")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"context is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise click.BadParameter("context must be a JSON object")
    return ResumableContext.from_payload(payload)


def _build(spec: str) -> tuple[EngineConfig, ResourceProvider, DesiredConfig]:
    try:
        engine_config = EngineConfig.from_env()
        provider_config = AzureProviderConfig.from_env()
        desired = load_desired_config(Path(spec))
    except (ConfigurationError, SpecLoadError) as e:
        raise click.ClickException(str(e)) from e
    return engine_config, create_azure_provider(provider_config), desired


def _unclassified(desired: DesiredConfig, exc: Exception) -> dict[str, Any]:
    return Failed(
        error_kind=ErrorKind.GENERAL_SERVICE_EXCEPTION,
        message=str(exc),
        resource_model=desired,
    ).to_envelope()


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="uop")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Update Operator CLI (uop).

    Reconciles a managed Azure resource toward a desired configuration,
    one non-blocking step at a time.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO)


@cli.command()
@click.argument("spec", type=click.Path(exists=True, dir_okay=False))
@click.option("--context", "context_value", help="Context JSON (inline or file path)")
def step(spec: str, context_value: str | None) -> None:
    """Run exactly one reconciliation step and print the result envelope."""
    engine_config, provider, desired = _build(spec)
    engine = UpdateOrchestrator(provider, engine_config)
    context = _load_context(context_value)

    try:
        result = engine.step(desired, context)
    except Exception as e:
        _echo_json(_unclassified(desired, e))
        raise SystemExit(1) from e

    _echo_json(result.to_envelope())
    if isinstance(result, Failed):
        raise SystemExit(1)


@cli.command()
@click.argument("spec", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-steps", default=DEFAULT_MAX_STEPS, show_default=True, type=int)
def run(spec: str, max_steps: int) -> None:
    """Drive the update until it succeeds or fails."""
    engine_config, provider, desired = _build(spec)
    engine = UpdateOrchestrator(provider, engine_config)

    try:
        result = asyncio.run(run_to_completion(engine, desired, max_steps=max_steps))
    except Exception as e:
        _echo_json(_unclassified(desired, e))
        raise SystemExit(1) from e

    _echo_json(result.to_envelope())
    if isinstance(result, Failed):
        raise SystemExit(1)


@cli.command()
@click.argument("spec", type=click.Path(exists=True, dir_okay=False))
def diff(spec: str) -> None:
    """Show the tag changes an update would apply, without applying them."""
    _, provider, desired = _build(spec)

    try:
        observed = provider.lookup(desired.identity)
    except ProviderError as e:
        raise click.ClickException(e.message) from e

    tag_diff = compute_tag_diff(desired.tags, observed.tags)
    if tag_diff.is_empty:
        click.echo("Tags are up to date")
        return

    for key in sorted(tag_diff.to_remove):
        click.secho(f"- {key}", fg="red")
    for key in sorted(tag_diff.to_add):
        click.secho(f"+ {key}={tag_diff.to_add[key]}", fg="green")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
