"""
CLI interface for gemini-relay.

Provides command-line interface for running the relay server.
"""

import os
from typing import Optional

# Load environment variables from .env file FIRST, before any other imports
from dotenv import load_dotenv

load_dotenv()

import typer
import uvicorn

from gemini_relay import __version__

# Create Typer app
app = typer.Typer(
    name="gemini-relay",
    help="HTTP relay that forwards prompts to Gemini with retries and model fallback",
    rich_markup_mode="rich",
)


@app.command()
def run(
    host: Optional[str] = typer.Option(
        None, "--host", help="Host to bind the server to (default: HOST or 0.0.0.0)"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", help="Port to bind the server to (default: PORT or 3000)"
    ),
    reload: bool = typer.Option(
        False, "--reload", help="Enable auto-reload for development"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level for the server (default: LOG_LEVEL or info)"
    ),
):
    """
    Start the relay server.

    By default, it listens on 0.0.0.0:3000.
    """
    host = host or os.getenv("HOST", "0.0.0.0")
    port = port or int(os.getenv("PORT", "3000"))
    log_level = (log_level or os.getenv("LOG_LEVEL", "info")).lower()

    # The app factory reads LOG_LEVEL when it builds Settings
    os.environ["LOG_LEVEL"] = log_level

    typer.echo(f"Starting gemini-relay on {host}:{port}")
    uvicorn.run(
        "gemini_relay.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


@app.command()
def version():
    """Show the version of gemini-relay."""
    typer.echo(f"gemini-relay version {__version__}")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
