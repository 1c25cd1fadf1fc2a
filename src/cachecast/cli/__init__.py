"""CLI commands for Cachecast.

Provides command-line interface using Typer:
- cachecast serve: Run the API server
- cachecast get: Read a key from a running instance
- cachecast update: Update a key and broadcast its invalidation

Usage:
    cachecast --help
    cachecast serve --port 8080
    cachecast get abc
    cachecast update abc
"""

import typer

from cachecast.cli import client_cmd
from cachecast.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="cachecast",
    help="Cachecast: cache-aside reads with broadcast invalidation",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.command("get")(client_cmd.get)
app.command("update")(client_cmd.update)


@app.callback()
def callback() -> None:
    """Cachecast: cache-aside reads with broadcast invalidation."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
