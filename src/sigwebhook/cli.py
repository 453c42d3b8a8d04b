"""sigwebhook CLI - Command line interface."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any, BinaryIO

import click
import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sigwebhook.algorithms import AlgorithmFamily
from sigwebhook.config import WebhookSettings, resolve_config
from sigwebhook.errors import ConfigError, VerificationError

console = Console()

EXIT_INVALID = 1
EXIT_ERROR = 2


def _configure_logging(log_level: str) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
    )


def signature_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that needs a signature config."""
    func = click.option(
        "--public-key-path",
        type=click.Path(dir_okay=False),
        help="PEM public key for RS*, PS* and ES* algorithms",
    )(func)
    func = click.option("--secret", help="Shared secret for HS* algorithms")(func)
    func = click.option("--algorithm", "-a", help="Signature algorithm (e.g. HS256, RS256)")(func)
    func = click.option(
        "--config", "-c",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        help="Path to YAML or TOML config file",
    )(func)
    return func


def load_settings(config_file: str | None, **overrides: Any) -> WebhookSettings:
    """Build settings from a config file, the environment and CLI overrides.

    When neither --log-level nor --verbose was given, logging is reconfigured
    to the settings' log_level.

    Raises:
        ConfigError: If the file cannot be loaded or a value is out of range.
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        if config_file:
            settings = WebhookSettings.from_file(config_file, **overrides)
        else:
            settings = WebhookSettings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    ctx = click.get_current_context(silent=True)
    if ctx is not None and not (ctx.find_object(dict) or {}).get("log_level"):
        _configure_logging(settings.log_level)
    return settings


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Log level (default: SIGWEBHOOK_LOG_LEVEL or info)",
)
@click.version_option(package_name="sigwebhook")
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_level: str | None) -> None:
    """sigwebhook - Verify signed Vehicle Detector webhooks."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = "debug" if verbose else log_level
    _configure_logging(ctx.obj["log_level"] or "info")


@main.command("check-config")
@signature_options
def check_config(
    config_file: str | None,
    algorithm: str | None,
    secret: str | None,
    public_key_path: str | None,
) -> None:
    """Validate the signature configuration and exit."""
    try:
        settings = load_settings(
            config_file,
            algorithm=algorithm,
            secret=secret,
            public_key_path=public_key_path,
        )
        resolved = resolve_config(settings.signature_config())
    except ConfigError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        sys.exit(EXIT_ERROR)

    table = Table(title="Signature Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Algorithm", resolved.algorithm)
    table.add_row("Family", resolved.family.value)
    table.add_row("Material", f"{len(resolved.verification_material)} bytes")
    if resolved.family is AlgorithmFamily.ASYMMETRIC:
        table.add_row("Public key", settings.public_key_path)
    console.print(table)
    console.print("[green]Configuration OK[/green]")


@main.command()
@click.argument("payload", type=click.File("rb"))
@click.option("--signature", "-s", required=True, help="Contents of the x-signature header")
@signature_options
def verify(
    payload: BinaryIO,
    signature: str,
    config_file: str | None,
    algorithm: str | None,
    secret: str | None,
    public_key_path: str | None,
) -> None:
    """Verify SIGNATURE over the PAYLOAD file (use - for stdin).

    Exits 0 when the signature is valid, 1 when it is not, and 2 when the
    configuration or key material is unusable.
    """
    from sigwebhook.verifier import verify_signature

    try:
        settings = load_settings(
            config_file,
            algorithm=algorithm,
            secret=secret,
            public_key_path=public_key_path,
        )
        valid = verify_signature(payload.read(), signature, settings.signature_config())
    except (ConfigError, VerificationError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(EXIT_ERROR)

    if not valid:
        console.print("[red]Signature is invalid[/red]")
        sys.exit(EXIT_INVALID)

    console.print("[green]Signature is valid[/green]")


@main.command()
@signature_options
@click.option("--host", default=None, help="Address to bind (default: 127.0.0.1)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default: 8080)")
@click.option("--path", default=None, help="Webhook route (default: /webhook)")
def serve(
    config_file: str | None,
    algorithm: str | None,
    secret: str | None,
    public_key_path: str | None,
    host: str | None,
    port: int | None,
    path: str | None,
) -> None:
    """Run a receiver that logs verified webhook events."""
    from aiohttp import web

    from sigwebhook.receiver import create_app

    try:
        settings = load_settings(
            config_file,
            algorithm=algorithm,
            secret=secret,
            public_key_path=public_key_path,
            host=host,
            port=port,
            path=path,
        )
        app = create_app(settings.signature_config(), path=settings.path)
    except ConfigError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        sys.exit(EXIT_ERROR)

    console.print(
        f"Listening for webhooks on http://{settings.host}:{settings.port}{settings.path}",
        style="yellow",
    )
    console.print("Press Ctrl+C to stop.\n", style="dim")
    web.run_app(app, host=settings.host, port=settings.port, print=None)


if __name__ == "__main__":
    main()
