"""CLI commands that talk to a running Cachecast instance.

Usage:
    cachecast get abc
    cachecast update abc --url http://localhost:8080
"""

from __future__ import annotations

from urllib.parse import quote

import httpx
import typer
from rich.console import Console

console = Console()

DEFAULT_URL = "http://localhost:8080"

UrlOption = typer.Option(DEFAULT_URL, "--url", "-u", help="Base URL of the Cachecast instance")
TimeoutOption = typer.Option(10.0, "--timeout", "-t", help="Request timeout in seconds")


def _call(base_url: str, path: str, timeout: float) -> httpx.Response:
    try:
        return httpx.get(f"{base_url.rstrip('/')}{path}", timeout=timeout)
    except httpx.HTTPError as e:
        console.print(f"[red]Request failed:[/red] {e}")
        raise typer.Exit(code=1)


def _report_error(response: httpx.Response) -> None:
    try:
        messages = response.json().get("messages", [])
        text = "; ".join(m.get("text", "") for m in messages) or response.text
    except ValueError:
        text = response.text
    console.print(f"[red]Error {response.status_code}:[/red] {text}")
    raise typer.Exit(code=1)


def get(
    key: str = typer.Argument(..., help="Key to read"),
    url: str = UrlOption,
    timeout: float = TimeoutOption,
) -> None:
    """Read a key through the instance's cache."""
    response = _call(url, f"/data/get/{quote(key, safe='')}", timeout)
    if response.status_code != 200:
        _report_error(response)
    typer.echo(response.json())


def update(
    key: str = typer.Argument(..., help="Key to update"),
    url: str = UrlOption,
    timeout: float = TimeoutOption,
) -> None:
    """Update a key and broadcast its invalidation."""
    response = _call(url, f"/data/update/{quote(key, safe='')}", timeout)
    if response.status_code != 200:
        _report_error(response)
    console.print(f"[green]✓[/green] {response.text}")
