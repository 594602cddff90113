"""main.py – CLI entry point for cargolink.

``cargolink emit`` is what a Cargo build script runs: it finds the
``config.rust`` written by ``configure``, looks up the link profile for
``$CARGO_PKG_NAME`` and prints the ``cargo:rustc-link-*`` directives.
Nothing reaches stdout until every directive has been built, so a broken
configuration never leaves Cargo with half a link line.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from cargolink.cli import (
    JsonOption,
    OutDirOption,
    ProfilesOption,
    SettingsOption,
    error_exit,
    json_print,
    note,
)
from cargolink.errors import CargoLinkError
from cargolink.profiles import PackageProfile, build_directives, merged_profiles
from cargolink.settings import Settings, load_settings

app = typer.Typer(
    help="Translate autoconf's config.rust into Cargo link directives.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    epilog="""\
[bold]Typical use from build.rs:[/bold]
  cargolink emit                       Directives for $CARGO_PKG_NAME
  cargolink emit -p crypto --json      Same, as JSON
  cargolink show TOR_OPENSSL_LIBS      Inspect one configure setting
  cargolink packages                   List packages with link profiles

[dim]config.rust is searched for in $OUT_DIR and each of its parents.[/dim]""",
)


def _load(out_dir: Path | None, settings_path: Path | None, json_mode: bool) -> Settings:
    try:
        return load_settings(start=out_dir, path=settings_path)
    except (CargoLinkError, OSError) as exc:
        error_exit(str(exc), json_mode=json_mode)


def _profiles(profiles_path: Path | None, json_mode: bool) -> dict[str, PackageProfile]:
    try:
        return merged_profiles(profiles_path)
    except (CargoLinkError, OSError) as exc:
        error_exit(str(exc), json_mode=json_mode)


@app.command()
def emit(
    package: str = typer.Option(
        ...,
        "--package",
        "-p",
        envvar="CARGO_PKG_NAME",
        help="Package to emit directives for (default: $CARGO_PKG_NAME).",
    ),
    out_dir: Path | None = OutDirOption,
    settings_path: Path | None = SettingsOption,
    profiles_path: Path | None = ProfilesOption,
    rerun_if_changed: bool = typer.Option(
        False,
        "--rerun-if-changed",
        help="Also print cargo:rerun-if-changed for the settings file.",
    ),
    json_output: bool = JsonOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
) -> None:
    """Print the link directives for a package."""
    settings = _load(out_dir, settings_path, json_output)
    note(f"settings: {escape(str(settings.path))} ({len(settings)} keys)", verbose=verbose)
    profiles = _profiles(profiles_path, json_output)

    try:
        directives = build_directives(settings, package, profiles)
    except CargoLinkError as exc:
        error_exit(str(exc), json_mode=json_output)
    note(f"package {escape(package)}: {len(directives)} directives", verbose=verbose)

    if json_output:
        json_print(
            {
                "package": package,
                "settings": str(settings.path),
                "directives": directives.as_json(),
            }
        )
        return

    lines = directives.render()
    if rerun_if_changed and settings.path is not None:
        lines.append(f"cargo:rerun-if-changed={settings.path}")
    for line in lines:
        print(line)


@app.command()
def show(
    key: str | None = typer.Argument(None, help="Print only this key's value."),
    out_dir: Path | None = OutDirOption,
    settings_path: Path | None = SettingsOption,
    json_output: bool = JsonOption,
) -> None:
    """Show the parsed config.rust settings."""
    settings = _load(out_dir, settings_path, json_output)

    if key is not None:
        try:
            value = settings.get(key)
        except CargoLinkError as exc:
            error_exit(str(exc), json_mode=json_output)
        if json_output:
            json_print({key: value})
        else:
            print(value)
        return

    if json_output:
        json_print(settings.as_dict())
        return
    for k in sorted(settings):
        print(f"{k}={settings.get(k)}")


@app.command()
def packages(
    profiles_path: Path | None = ProfilesOption,
    json_output: bool = JsonOption,
) -> None:
    """List the packages that have a link profile."""
    profiles = _profiles(profiles_path, json_output)

    if json_output:
        json_print({name: p.to_dict() for name, p in sorted(profiles.items())})
        return
    for name, profile in sorted(profiles.items()):
        counts = ", ".join(f"{field}={len(values)}" for field, values in profile.to_dict().items() if values)
        print(f"{name}: {counts}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
