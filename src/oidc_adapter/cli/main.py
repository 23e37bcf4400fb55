"""CLI entry point."""

import asyncio

import httpx
import typer
from rich.console import Console

from oidc_adapter.auth.errors import DiscoveryError
from oidc_adapter.auth.key_store_memory import MemoryKeyStore
from oidc_adapter.auth.oidc_client import OIDCClient
from oidc_adapter.auth.provider_oidc import OIDCProvider
from oidc_adapter.auth.providers import GENERATE_STATE, AuthorizationURLWithState
from oidc_adapter.settings import settings

app = typer.Typer(name="oidc-adapter", help="OpenID Connect adapter CLI")
console = Console()


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, help="API server host"),
    port: int = typer.Option(settings.api_port, help="API server port"),
    reload: bool = typer.Option(settings.api_reload, help="Auto-reload on code changes"),
) -> None:
    """Start the API server with the /oidc login and callback routes.

    Examples:
        oidc-adapter serve
        oidc-adapter serve --reload
        oidc-adapter serve --host 127.0.0.1 --port 8080
    """
    import uvicorn

    console.print(f"[green]Starting OIDC adapter API on {host}:{port}[/green]")
    console.print(f"[dim]Login:[/dim] http://{host}:{port}/oidc/login")
    console.print(f"[dim]Docs:[/dim] http://{host}:{port}/docs")

    uvicorn.run(
        "oidc_adapter.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def discover(
    issuer_url: str = typer.Option(settings.oidc.issuer_url, help="OIDC issuer URL"),
) -> None:
    """Fetch and print the provider discovery document.

    Example:
        oidc-adapter discover --issuer-url https://accounts.google.com
    """
    if not issuer_url:
        console.print("[red]Error:[/red] issuer URL required (--issuer-url or OIDC__ISSUER_URL)")
        raise typer.Exit(code=1)

    try:
        client = asyncio.run(
            OIDCClient.discover(
                issuer_url,
                client_id=settings.oidc.client_id,
                client_secret=settings.oidc.client_secret,
                timeout=settings.oidc.http_timeout,
            )
        )
    except (httpx.HTTPError, DiscoveryError) as e:
        console.print(f"[red]Discovery failed:[/red] {e}")
        raise typer.Exit(code=1)

    console.print_json(data=client.metadata.model_dump(exclude_none=True))


@app.command("authorize-url")
def authorize_url(
    issuer_url: str = typer.Option(settings.oidc.issuer_url, help="OIDC issuer URL"),
    client_id: str = typer.Option(settings.oidc.client_id, help="OAuth client ID"),
    redirect_uri: str = typer.Option(settings.oidc.redirect_uri, help="Redirect URI"),
    state: str = typer.Option(
        None, help="Use this state value instead of a random one (\"\" sends no state)"
    ),
    no_state: bool = typer.Option(False, "--no-state", help="Omit the state parameter"),
) -> None:
    """Discover the provider and print an authorization URL.

    Examples:
        oidc-adapter authorize-url
        oidc-adapter authorize-url --state my-state
        oidc-adapter authorize-url --no-state
    """
    if not issuer_url or not client_id:
        console.print("[red]Error:[/red] issuer URL and client ID are required")
        raise typer.Exit(code=1)

    config = settings.oidc.model_copy(
        update={"issuer_url": issuer_url, "client_id": client_id, "redirect_uri": redirect_uri}
    ).to_config()
    provider = OIDCProvider(MemoryKeyStore(), config)

    try:
        asyncio.run(provider.init())
    except (httpx.HTTPError, DiscoveryError) as e:
        console.print(f"[red]Discovery failed:[/red] {e}")
        raise typer.Exit(code=1)

    if no_state:
        state = None
    elif state is None:
        state = GENERATE_STATE

    result = provider.get_authorization_url(state)
    console.print(result.url, soft_wrap=True, markup=False)
    if isinstance(result, AuthorizationURLWithState):
        console.print(f"[dim]State:[/dim] {result.state}")


if __name__ == "__main__":
    app()
