"""CLI entrypoint for the pixel SDK."""

from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable

import click
from pydantic import ValidationError

from relay42pixel.client import PixelClient
from relay42pixel.config.models import PixelConfig
from relay42pixel.config.store import ConfigStore, load_config
from relay42pixel.dispatch import build_url
from relay42pixel.encoding import (
    SYNC_PATH,
    cachebuster,
    encode_engagement,
    encode_fact,
    encode_mapping,
    tracking_path,
)
from relay42pixel.errors import PixelError
from relay42pixel.events import Engagement, Fact, Mapping
from relay42pixel.results import Failure, Result
from relay42pixel.runtime_logging import configure_runtime_logging
from relay42pixel.version import __version__


def _parse_properties(
    ctx: click.Context,  # noqa: ARG001
    param: click.Parameter,  # noqa: ARG001
    values: tuple[str, ...],
) -> dict[str, str]:
    properties: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {raw!r}")
        properties[key] = value
    return properties


property_option = click.option(
    "-p",
    "--property",
    "properties",
    multiple=True,
    callback=_parse_properties,
    help="Custom property as key=value (repeatable, max 32 sent)",
)


def _build_client(config: PixelConfig | None) -> PixelClient:
    return PixelClient(config)


def _require_config() -> PixelConfig:
    try:
        config = load_config()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    if config is None:
        raise click.ClickException("Not configured; run `relay42pixel configure --site-id ...` first")
    return config


def _send(call: Callable[[PixelClient], Awaitable[Result]]) -> None:
    try:
        config = load_config()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")

    async def runner() -> Result:
        async with _build_client(config) as client:
            return await call(client)

    result = asyncio.run(runner())
    if isinstance(result, Failure):
        raise click.ClickException(str(result.error))
    click.echo(json.dumps({"ok": True, "status": result.status_code, "url": result.url}))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--log-level", default=None, help="off, error, warning, info or debug")
def main(log_level: str | None) -> None:
    """Send engagements, facts and mappings to a pixel collector."""
    configure_runtime_logging(level=log_level)


@main.command()
@click.option("--site-id", required=True, help="Site id used in /t-<site_id>")
@click.option("--partner-id", default=None, help="Default partner id for mappings")
@click.option("--base-url", default=None, help="Pixel endpoint host")
def configure(site_id: str, partner_id: str | None, base_url: str | None) -> None:
    """Save the pixel configuration."""
    data: dict[str, str | None] = {"site_id": site_id, "default_partner_id": partner_id}
    if base_url:
        data["base_url"] = base_url
    try:
        config = PixelConfig.model_validate(data)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")

    store = ConfigStore()
    store.save(config)
    click.echo(str(store.path))


@main.command("show-config")
def show_config() -> None:
    """Print the effective configuration (file plus environment)."""
    config = _require_config()
    for key, value in config.setting_items():
        click.echo(f"{key}={value}")


@main.command("config-path")
def config_path_command() -> None:
    """Print config file path."""
    click.echo(str(ConfigStore().path))


@main.command()
def about() -> None:
    """Show version and project summary."""
    payload = {
        "name": "relay42pixel",
        "version": __version__,
        "description": "Pixel-style event tracking client",
    }
    click.echo(json.dumps(payload, indent=2))


@main.group()
def url() -> None:
    """Print the URL a call would request, without sending it."""


@url.command("engagement")
@click.argument("uuid")
@click.argument("type")
@property_option
def url_engagement(uuid: str, type: str, properties: dict[str, str]) -> None:
    config = _require_config()
    items = encode_engagement(Engagement(uuid=uuid, type=type, properties=properties), cachebuster())
    click.echo(_dry_url(config.base_url, tracking_path(config), items))


@url.command("fact")
@click.argument("uuid")
@click.argument("type")
@click.option("--ttl", "ttl_seconds", type=int, required=True, help="Time to live in seconds")
@property_option
def url_fact(uuid: str, type: str, ttl_seconds: int, properties: dict[str, str]) -> None:
    config = _require_config()
    event = Fact(uuid=uuid, type=type, ttl_seconds=ttl_seconds, properties=properties)
    click.echo(_dry_url(config.base_url, tracking_path(config), encode_fact(event, cachebuster())))


@url.command("mapping")
@click.argument("uuid")
@click.argument("profile_id")
@click.option("--partner-id", default=None)
@click.option("--merge/--no-merge", default=True, show_default=True)
def url_mapping(uuid: str, profile_id: str, partner_id: str | None, merge: bool) -> None:
    config = _require_config()
    event = Mapping(uuid=uuid, profile_id=profile_id, partner_id=partner_id, merge=merge)
    try:
        items = encode_mapping(event, config, cachebuster())
    except PixelError as exc:
        raise click.ClickException(str(exc))
    click.echo(_dry_url(config.base_url, SYNC_PATH, items))


def _dry_url(base_url: str, path: str, items: list[tuple[str, str]]) -> str:
    try:
        return build_url(base_url, path, items)
    except PixelError as exc:
        raise click.ClickException(str(exc))


@main.command()
@click.argument("uuid")
@click.argument("type")
@property_option
def engagement(uuid: str, type: str, properties: dict[str, str]) -> None:
    """Send an engagement."""
    _send(lambda client: client.track_engagement(uuid, type, properties))


@main.command()
@click.argument("uuid")
@click.argument("type")
@click.option("--ttl", "ttl_seconds", type=int, required=True, help="Time to live in seconds")
@property_option
def fact(uuid: str, type: str, ttl_seconds: int, properties: dict[str, str]) -> None:
    """Send a fact."""
    _send(lambda client: client.track_fact(uuid, type, ttl_seconds, properties))


@main.command()
@click.argument("uuid")
@click.argument("profile_id")
@click.option("--partner-id", default=None, help="Overrides the configured default partner id")
@click.option("--merge/--no-merge", default=True, show_default=True)
def mapping(uuid: str, profile_id: str, partner_id: str | None, merge: bool) -> None:
    """Send an identity mapping (syncResponse)."""
    _send(lambda client: client.sync_mapping(uuid, profile_id, partner_id, merge))


if __name__ == "__main__":
    main()
