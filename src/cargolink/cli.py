"""Shared CLI utilities for cargolink commands.

Provides the common Typer options and the standardised output / error helpers
so every command reports failures the same way: a red ``error:`` line on
stderr (or ``{"error": ...}`` on stdout in JSON mode) and exit status 1.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

# Re-usable Typer options
OutDirOption: Path | None = typer.Option(
    None,
    "--out-dir",
    "-o",
    envvar="OUT_DIR",
    help="Directory to start searching for config.rust from (default: $OUT_DIR, then cwd).",
)

SettingsOption: Path | None = typer.Option(
    None,
    "--settings",
    "-s",
    help="Explicit config.rust path; skips the upward search.",
)

ProfilesOption: Path | None = typer.Option(
    None,
    "--profiles",
    envvar="CARGOLINK_PROFILES",
    help="TOML file with extra [packages.<name>] link profiles.",
)

JsonOption: bool = typer.Option(False, "--json", help="Emit machine-readable JSON on stdout.")


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        err_console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False, soft_wrap=True)
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def note(msg: str, *, verbose: bool) -> None:
    """Print a dim diagnostic line on stderr when *verbose* is set."""
    if verbose:
        err_console.print(f"[dim]{msg}[/dim]", highlight=False, soft_wrap=True)
