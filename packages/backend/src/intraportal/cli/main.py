"""Intraportal CLI — run the server, mint dev tokens, poke a running portal.

Usage:
    intraportal serve --reload                   # Run the API + /ws with uvicorn
    intraportal token <user-id> --role admin     # Print a signed access token
    intraportal health                           # GET /api/v1/health
    intraportal news --limit 5                   # Latest news items
    intraportal stats                            # Live WebSocket connection stats
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from intraportal import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("INTRAPORTAL_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the portal backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token_from_ctx(token: Optional[str]) -> str:
    """Resolve the bearer token from flag or INTRAPORTAL_TOKEN env var."""
    tok = token or os.environ.get("INTRAPORTAL_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set INTRAPORTAL_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) or "-")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _fail(resp: httpx.Response) -> None:
    click.secho(f"Error: HTTP {resp.status_code} — {resp.text}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="intraportal")
def main():
    """Intraportal — intranet portal backend with live updates."""


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: INTRAPORTAL_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: INTRAPORTAL_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the HTTP API and the /ws endpoint."""
    import uvicorn

    from intraportal.config import settings

    uvicorn.run(
        "intraportal.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# token
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.option("--email", "-e", help="Email claim")
@click.option("--role", "-r", default="user", show_default=True, help="Role claim")
@click.option("--minutes", "-m", type=int, default=None, help="Lifetime override")
def token(user_id: str, email: Optional[str], role: str, minutes: Optional[int]):
    """Print an access token signed with INTRAPORTAL_JWT_SECRET."""
    from intraportal.auth.jwt import create_access_token

    click.echo(create_access_token(user_id, email=email, role=role, expires_minutes=minutes))


# ---------------------------------------------------------------------------
# health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Check a running portal's health endpoint."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as client:
        try:
            resp = await client.get("/api/v1/health")
        except httpx.HTTPError as e:
            click.secho(f"Error: cannot reach {_api_url()} — {e}", fg="red", err=True)
            sys.exit(1)

    data = resp.json()
    color = "green" if data.get("status") == "healthy" else "yellow"
    click.secho(f"Status: {data.get('status')}", fg=color, bold=True)
    click.echo(f"  version:     {data.get('version')}")
    click.echo(f"  database:    {data.get('database')}")
    click.echo(f"  connections: {data.get('realtime', {}).get('connections')}")


# ---------------------------------------------------------------------------
# news
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", "-t", "tok", help="Bearer token (or set INTRAPORTAL_TOKEN)")
@click.option("--limit", "-l", default=10, help="Max results")
@click.option("--featured", is_flag=True, help="Featured items only")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def news(tok: Optional[str], limit: int, featured: bool, as_json: bool):
    """List the latest news items."""
    _run(_news_impl(_token_from_ctx(tok), limit, featured, as_json))


async def _news_impl(tok: str, limit: int, featured: bool, as_json: bool):
    params = {"limit": limit}
    if featured:
        params["featured"] = "true"
    async with _client(tok) as client:
        resp = await client.get("/api/v1/news", params=params)
    if resp.status_code != 200:
        _fail(resp)

    items = resp.json()["items"]
    if as_json:
        click.echo(_pretty_json(items))
        return
    if not items:
        click.echo("No news.")
        return
    _print_table(
        items,
        [("TITLE", "title", 40), ("AUTHOR", "author_name", 20), ("CATEGORY", "category", 14)],
    )


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", "-t", "tok", help="Bearer token (or set INTRAPORTAL_TOKEN)")
def stats(tok: Optional[str]):
    """Show live WebSocket connection stats."""
    _run(_stats_impl(_token_from_ctx(tok)))


async def _stats_impl(tok: str):
    async with _client(tok) as client:
        resp = await client.get("/api/v1/realtime/stats")
    if resp.status_code != 200:
        _fail(resp)
    click.echo(_pretty_json(resp.json()))


if __name__ == "__main__":
    main()
