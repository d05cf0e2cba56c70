"""Command line interface for browser-action-api."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console

from .client import ActionServiceClient
from .config import load_config
from .executor.service import create_app
from .workflow import WorkflowStep, run_content_workflow

app = typer.Typer(help="Browser Action API entry point")


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("browser-action-api"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def serve(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option(
            "--env-file",
            help="Path to an .env file with default configuration values.",
        ),
    ] = None,
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Binding address for the HTTP service."),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", help="HTTP port for the service."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    api_key: Annotated[
        Optional[str],
        typer.Option("--api-key", help="Require this key on every action route."),
    ] = None,
    action_timeout: Annotated[
        Optional[float],
        typer.Option("--action-timeout", help="Per-action wait bound in seconds."),
    ] = None,
) -> None:
    """Serve the browser action API."""

    import uvicorn

    overrides: dict[str, Any] = {}
    if host is not None or port is not None:
        overrides.setdefault("server", {})
        if host is not None:
            overrides["server"]["host"] = host
        if port is not None:
            overrides["server"]["port"] = port
    if headless is not None or action_timeout is not None:
        overrides.setdefault("browser", {})
        if headless is not None:
            overrides["browser"]["headless"] = headless
        if action_timeout is not None:
            overrides["browser"]["action_timeout"] = action_timeout
    if api_key is not None:
        overrides["auth"] = {"api_key": api_key}

    config = load_config(config_path, env_file=env_file, **overrides)
    logging.getLogger().setLevel(config.log_level.upper())
    typer.echo(f"Serving {config.server.host}:{config.server.port}")
    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)


@app.command()
def workflow(
    base_url: Annotated[
        str,
        typer.Option("--base-url", help="Address of a running service."),
    ] = "http://localhost:3001",
    url: Annotated[
        str,
        typer.Option("--url", help="Page to start the workflow from."),
    ] = "https://www.instagram.com/explore/",
    api_key: Annotated[
        Optional[str],
        typer.Option("--api-key", help="API key for a gated service."),
    ] = None,
) -> None:
    """Chain the tools end to end against a running service."""

    console = Console()

    def report(step: WorkflowStep) -> None:
        style = "green" if step.success else "red"
        mark = "OK" if step.success else "FAILED"
        console.print(f"{mark:<6} {step.name}: {step.summary}", style=style, markup=False)

    with ActionServiceClient(base_url, api_key=api_key) as client:
        steps = run_content_workflow(client, url, on_step=report)
    if not steps or not steps[-1].success:
        raise typer.Exit(code=1)
    console.print("Workflow completed.", style="bold green")


if __name__ == "__main__":
    app()
