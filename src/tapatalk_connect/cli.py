"""Command-line interface for Tapatalk Connect.

Provides commands to run the demo login server and to walk through
the login flow by hand.
"""

from __future__ import annotations

import asyncio
import sys

import typer

from tapatalk_connect import __version__
from tapatalk_connect.config import Config, ConfigError, load_config
from tapatalk_connect.exceptions import TapatalkSDKError
from tapatalk_connect.logging_config import get_logger, setup_logging
from tapatalk_connect.oauth.login import create_login_service
from tapatalk_connect.oauth.session import SessionStore, create_session_store
from tapatalk_connect.oauth.urls import CallbackRequest

app = typer.Typer(
    name="tapatalk-connect",
    help="Tapatalk Connect - login with Tapatalk",
    add_completion=False,
)

# Session namespace shared by login-url and exchange
CLI_SESSION = "cli"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tapatalk-connect version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Tapatalk Connect CLI."""


def _load(config_path: str | None, cli_args: dict[str, str | int | None]) -> Config:
    """Load configuration and set up logging, exiting on errors."""
    try:
        config = load_config(path=config_path, cli_args=cli_args)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1) from None

    setup_logging(config)
    return config


def _session_store(config: Config) -> SessionStore:
    """Session store that persists between CLI invocations when configured."""
    if not config.session_store_path:
        get_logger(__name__).warning(
            "No session_store_path configured; state will not survive this command"
        )
    return create_session_store(
        encryption_key=(
            config.session_encryption_key.get_secret_value()
            if config.session_encryption_key
            else None
        ),
        file_path=config.session_store_path,
        namespace=CLI_SESSION,
    )


@app.command()
def serve(
    config_path: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file (JSON or YAML)",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind to"),
) -> None:
    """Run the demo login server."""
    config = _load(config_path, {"log_level": log_level, "host": host, "port": port})
    logger = get_logger(__name__)

    from tapatalk_connect.web import create_web_app, run_web

    try:
        web_app = create_web_app(config)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1) from None

    logger.info(
        "Starting %s (env: %s) at http://%s:%d/login",
        config.app_name,
        config.environment.value,
        config.host,
        config.port,
    )

    try:
        asyncio.run(run_web(web_app, config.host, config.port))
    except KeyboardInterrupt:
        logger.info("Shutting down (keyboard interrupt)")
        raise typer.Exit(code=0) from None


@app.command("login-url")
def login_url(
    redirect_url: str | None = typer.Option(
        None, "--redirect-url", "-r", help="Callback URL (defaults to configuration)"
    ),
    scope: str | None = typer.Option(
        None, "--scope", "-s", help="Comma-separated permissions"
    ),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to configuration file (JSON or YAML)"
    ),
) -> None:
    """Print the URL that starts a login."""
    config = _load(config_path, {"redirect_url": redirect_url, "scope": scope})

    if not config.redirect_url:
        typer.echo("Configuration error: redirect_url is required", err=True)
        raise typer.Exit(code=1)

    try:
        with create_login_service(config, _session_store(config)) as flow:
            url = flow.get_login_url(config.redirect_url, config.scopes)
    except (ConfigError, TapatalkSDKError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(url)


@app.command()
def exchange(
    callback_url: str = typer.Argument(..., help="Full URL Tapatalk redirected to"),
    redirect_url: str | None = typer.Option(
        None, "--redirect-url", "-r", help="Redirect URL sent with the exchange"
    ),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to configuration file (JSON or YAML)"
    ),
) -> None:
    """Validate a callback URL and exchange its code for a token."""
    config = _load(config_path, {"redirect_url": redirect_url})

    try:
        with create_login_service(config, _session_store(config)) as flow:
            body = flow.get_access_token(
                CallbackRequest.from_url(callback_url), config.redirect_url
            )
    except (ConfigError, TapatalkSDKError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    if body is None:
        typer.echo("Error: no authorization code in callback URL", err=True)
        raise typer.Exit(code=1)

    typer.echo(body)


@app.command()
def version() -> None:
    """Print version information."""
    typer.echo(f"tapatalk-connect version {__version__}")
    typer.echo(f"Python {sys.version}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
