#!/usr/bin/env python3
"""
Expo Auth Relay CLI

Command-line interface for running and inspecting the OAuth/PKCE login
relay that sits between the identity provider and the mobile app.
"""

import logging
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .authorize import build_authorization_url
from .config import RelayConfig, load_config
from .errors import ConfigurationError, RelayError
from .pkce import generate_pkce_pair

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="expo-auth",
    help="Expo Auth Relay - OAuth/PKCE login relay for mobile clients",
    add_completion=False,
)
console = Console()


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def get_config() -> RelayConfig:
    """Get relay configuration from environment."""
    try:
        config = load_config()
    except ValueError as e:
        console.print(Panel(
            f"[bold red]Invalid configuration![/bold red]\n\n{e}",
            title="⚠️ Configuration Error",
            border_style="red"
        ))
        raise typer.Exit(1)

    if not config.tenants:
        console.print(
            Panel(
                "[bold red]Missing configuration![/bold red]\n\n"
                "Please set these environment variables in your .env file:\n"
                "  • AUTH0_DOMAIN\n"
                "  • AUTH0_CLIENT_ID\n"
                "  • AUTH0_CLIENT_SECRET (optional, PKCE is used without it)\n"
                "  • AUTH0_AUDIENCE (optional)\n\n"
                "or list several tenants in AUTH0_TENANTS.",
                title="⚠️ Configuration Error",
                border_style="red"
            )
        )
        raise typer.Exit(1)

    return config


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    Run the relay web server.
    """
    import uvicorn

    from .app import create_app

    configure_logging(verbose)
    config = get_config()

    console.print(Panel(
        f"[bold]Expo Auth Relay[/bold]\n\n"
        f"Tenants: {', '.join(t.name for t in config.tenants)}\n"
        f"Listening on http://{host}:{port}",
        title="🔐 Relay",
        border_style="blue"
    ))
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


@app.command()
def status():
    """
    Show configured tenants and settings.
    """
    config = get_config()

    table = Table(title="Tenants")
    table.add_column("Name", style="cyan")
    table.add_column("Audience")
    table.add_column("Domain")
    table.add_column("Client ID")
    table.add_column("Mode", style="green")

    for tenant in config.tenants:
        client_id = f"{tenant.client_id[:12]}..." if tenant.client_id else "[red]✗ Missing[/red]"
        table.add_row(
            tenant.name,
            tenant.audience or "(default)",
            tenant.domain or "[red]✗ Missing[/red]",
            client_id,
            "PKCE" if tenant.uses_pkce else "Client secret",
        )

    console.print(table)
    console.print(f"\nCallback: {config.callback_url() if config.public_base_url else '(request origin)/expo-callback'}")
    console.print(f"Scopes: {config.scopes}")
    console.print(f"Return URL schemes: {', '.join(sorted(config.return_schemes))}")
    console.print(f"Redirect delay: {config.redirect_delay:g}s")
    console.print(f"Token exchange timeout: {config.exchange_timeout:g}s")


@app.command()
def pkce():
    """
    Print a fresh PKCE verifier and challenge.
    """
    verifier, challenge = generate_pkce_pair()
    console.print(f"[cyan]code_verifier:[/cyan]  {verifier}")
    console.print(f"[cyan]code_challenge:[/cyan] {challenge}")


@app.command("authorize-url")
def authorize_url(
    return_url: str = typer.Option(..., "--return-url", help="App URL that receives the tokens"),
    state: str = typer.Option(..., "--state", help="Opaque state echoed back to the app"),
    audience: Optional[str] = typer.Option(None, "--audience", help="Tenant audience"),
    base_url: str = typer.Option("http://localhost:8080", "--base-url", help="Relay base URL"),
):
    """
    Print the authorization URL the relay would redirect to.
    """
    config = get_config()
    try:
        url = build_authorization_url(
            config,
            return_url=return_url,
            caller_state=state,
            redirect_uri=config.callback_url(base_url),
            audience=audience,
        )
    except RelayError as e:
        reason = e.reason if isinstance(e, ConfigurationError) else (e.details or "No details")
        console.print(Panel(
            f"[bold red]{e.message}[/bold red]\n\n{reason}",
            title="✗ Failed",
            border_style="red"
        ))
        raise typer.Exit(1)

    console.print(url, soft_wrap=True)


if __name__ == "__main__":
    app()
