"""Loader for the ``config.rust`` settings file written by ``configure``.

The file is a series of ``KEY=VALUE`` lines.  Blank lines and lines whose
first non-space character is ``#`` are ignored.  Everything before the first
``=`` is the key and everything after it is the value; neither is trimmed or
unescaped.  When a key appears more than once the last occurrence wins.

autoconf writes the file into the build directory, which may sit several
levels above the per-crate ``OUT_DIR`` Cargo gives a build script, so the
loader searches upward from ``OUT_DIR`` the same way ``git`` locates
``.git/``.

Usage::

    from cargolink.settings import load_settings

    settings = load_settings()               # discover from $OUT_DIR
    builddir = settings.get("BUILDDIR")      # MissingKeyError if absent
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from cargolink.errors import (
    MalformedLineError,
    MissingKeyError,
    SettingsDecodeError,
    SettingsNotFoundError,
)

SETTINGS_FILENAME = "config.rust"


# ---------------------------------------------------------------------------
# Settings mapping
# ---------------------------------------------------------------------------


class Settings:
    """Read-only view of a parsed ``config.rust``."""

    def __init__(self, values: dict[str, str], path: Path | None = None) -> None:
        self._values = dict(values)
        self.path = path

    def get(self, key: str) -> str:
        """Return the value for *key*.

        Raises :class:`MissingKeyError` if the key is absent: callers only ask
        for keys the active configuration profile is known to define.
        """
        try:
            return self._values[key]
        except KeyError:
            raise MissingKeyError(key, self.path) from None

    __getitem__ = get

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Settings):
            return NotImplemented
        return self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Settings({len(self._values)} keys, path={self.path!r})"

    def keys(self) -> list[str]:
        return list(self._values)

    def as_dict(self) -> dict[str, str]:
        """Return a copy of the underlying mapping."""
        return dict(self._values)


# ---------------------------------------------------------------------------
# Discovery and parsing
# ---------------------------------------------------------------------------


def find_settings(start: Path, filename: str = SETTINGS_FILENAME) -> Path:
    """Walk up from *start* to find *filename*.

    Checks *start* itself first, then each parent in turn, and gives up with
    :class:`SettingsNotFoundError` once the filesystem root has been checked.
    """
    candidate = Path(start).resolve()
    while True:
        path = candidate / filename
        if path.is_file():
            return path
        if candidate == candidate.parent:
            raise SettingsNotFoundError(Path(start), filename)
        candidate = candidate.parent


def parse_settings(lines: Iterable[str], path: Path | None = None) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines into a dict.

    *path* is only used to make error messages point at the file.
    """
    values: dict[str, str] = {}
    for lineno, raw in enumerate(lines, start=1):
        line = raw
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise MalformedLineError(lineno, line, path)
        values[key] = value
    return values


def _default_start() -> Path:
    out_dir = os.environ.get("OUT_DIR")
    return Path(out_dir) if out_dir else Path.cwd()


def load_settings(start: Path | None = None, path: Path | None = None) -> Settings:
    """Locate and parse ``config.rust``.

    Args:
        start: Directory to begin the upward search from.  Defaults to
               ``$OUT_DIR``, or the current directory when that is unset.
        path: Explicit settings file.  Skips discovery entirely.
    """
    if path is None:
        path = find_settings(start if start is not None else _default_start())
    # Only \n ends a line; a lone \r belongs to the value
    with open(path, encoding="utf-8", newline="\n") as f:
        try:
            values = parse_settings(f, path)
        except UnicodeDecodeError as exc:
            raise SettingsDecodeError(path, exc) from exc
    return Settings(values, path)
