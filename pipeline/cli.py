"""CLI entrypoint for the DevOps agent router."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import typer
import uvicorn
from jose import jwt
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from llm_backend import detect_backend, get_backend
from pipeline import __version__
from pipeline.config import get_config
from pipeline.log_config import setup_logging

app = typer.Typer(
    name="devops-agents",
    help="LLM-backed DevOps agents behind an authenticated HTTP API.",
    add_completion=False,
)
console = Console()


def _mask(value: str) -> str:
    if not value:
        return "[dim]unset[/dim]"
    return "***" + value[-4:] if len(value) > 8 else "***"


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: config)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="json or rich (default: config)"
    ),
) -> None:
    """Run the API server."""
    config = get_config()
    setup_logging(config.server.log_level, log_format or config.server.log_format)

    rprint(f"[bold blue]DevOps Agent Router[/bold blue] v{__version__} ({config.environment})")
    if config.auth.development and config.auth.shared_secret:
        rprint("[yellow]Development auth bypass is enabled.[/yellow]")

    uvicorn.run(
        "api.app:create_app",
        factory=True,
        host=host or config.server.host,
        port=port or config.server.port,
        reload=reload,
        log_config=None,
    )


@app.command()
def token(
    subject: str = typer.Option("system", "--subject", "-s", help="Token subject (id claim)"),
    role: str = typer.Option("admin", "--role", "-r", help="Role claim"),
    expires_minutes: Optional[int] = typer.Option(
        None, "--expires", "-e", help="Lifetime in minutes (default: config)"
    ),
) -> None:
    """Mint a signed bearer token for calling the API."""
    config = get_config()
    if not config.auth.signing_key:
        rprint("[red]No signing key configured.[/red] Set JWT_SECRET.")
        raise typer.Exit(1)

    now = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.auth.token_ttl_minutes)
    claims = {
        "id": subject,
        "sub": subject,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
    }
    encoded = jwt.encode(claims, config.auth.signing_key, algorithm=config.auth.algorithm)
    typer.echo(encoded)


@app.command()
def check() -> None:
    """Show the effective configuration and LLM backend availability."""
    config = get_config()

    table = Table(title="Effective Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("environment", config.environment)
    table.add_row("auth.shared_secret", _mask(config.auth.shared_secret))
    table.add_row("auth.signing_key", _mask(config.auth.signing_key))
    table.add_row("auth.algorithm", config.auth.algorithm)
    table.add_row("auth.development", str(config.auth.development))
    table.add_row("llm.backend", config.llm.backend)
    table.add_row("llm.model", config.llm.model or "[dim]backend default[/dim]")
    table.add_row("github.api_url", config.github.api_url)
    table.add_row("github.token", _mask(config.github.token))
    table.add_row("devops.mode", config.devops.mode)
    table.add_row("devops.registry_url", config.devops.registry_url or "[dim]unset[/dim]")
    table.add_row("server", f"{config.server.host}:{config.server.port}")
    console.print(table)

    kind = config.llm.backend
    if kind == "auto":
        kind = detect_backend()

    options = {"timeout": config.llm.timeout}
    if config.llm.model:
        options["model"] = config.llm.model
    if config.llm.base_url:
        options["base_url"] = config.llm.base_url

    try:
        backend = get_backend(kind, **options)
    except (ValueError, ImportError) as e:
        rprint(f"[red]LLM backend unavailable:[/red] {e}")
        raise typer.Exit(1)

    if backend.is_available():
        rprint(f"[green]LLM backend {kind} is available[/green] (model: {backend.model})")
    else:
        rprint(f"[red]LLM backend {kind} is not responding.[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    rprint(f"[bold blue]DevOps Agent Router[/bold blue] v{__version__}")


if __name__ == "__main__":
    app()
