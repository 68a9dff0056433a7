"""Entrypoint for the command line interface."""

import asyncio
import json

import typer

from siteicons.config_logging import configure_logging
from siteicons.configs import settings
from siteicons.exceptions import SiteIconsError
from siteicons.models import ImageDescriptor
from siteicons.pipeline import extract_icons_sync, probe_image

http_settings = settings.http

# CLI Options
user_agent_option = typer.Option(
    http_settings.user_agent,
    "--user-agent",
    help="User-Agent header sent with every request",
)

timeout_option = typer.Option(
    http_settings.timeout_sec,
    "--timeout",
    min=0.1,
    help="Timeout in seconds for each individual request",
)

max_concurrency_option = typer.Option(
    http_settings.max_concurrency,
    "--max-concurrency",
    min=1,
    help="Maximum number of icon probes in flight at once",
)

json_option = typer.Option(
    False,
    "--json",
    help="Print the result as a JSON array",
)

cli = typer.Typer(no_args_is_help=True, add_completion=False)


def _format_icon(icon: ImageDescriptor) -> str:
    return f"{icon.url}\t{icon.image_type.value}\t{icon.width}x{icon.height}"


@cli.callback()
def setup():
    """CLI Entrypoint"""
    configure_logging()


@cli.command()
def extract(
    url: str = typer.Argument(..., help="Page to discover icons on"),
    user_agent: str = user_agent_option,
    timeout: float = timeout_option,
    max_concurrency: int = max_concurrency_option,
    as_json: bool = json_option,
):
    """List the icons referenced by a page that are reachable images."""
    try:
        icons = extract_icons_sync(url, user_agent, timeout, max_concurrency)
    except SiteIconsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    icons = sorted(icons, key=lambda icon: (-icon.width * icon.height, icon.url))
    if as_json:
        typer.echo(json.dumps([icon.model_dump(mode="json") for icon in icons], indent=2))
        return
    for icon in icons:
        typer.echo(_format_icon(icon))


@cli.command()
def probe(
    url: str = typer.Argument(..., help="Image to probe"),
    user_agent: str = user_agent_option,
    timeout: float = timeout_option,
    as_json: bool = json_option,
):
    """Print the format and dimensions of a single image."""
    try:
        icon = asyncio.run(probe_image(url, user_agent, timeout))
    except SiteIconsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(icon.model_dump(mode="json")) if as_json else _format_icon(icon))


if __name__ == "__main__":
    cli()
