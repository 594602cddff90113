"""Exception types raised while translating config.rust into link directives.

Each error also subclasses the builtin exception a caller would naturally
catch (``FileNotFoundError``, ``ValueError``, ``KeyError``), so code that only
knows the builtins still works, while the CLI can catch :class:`CargoLinkError`
in a single clause.
"""

from __future__ import annotations

from pathlib import Path


class CargoLinkError(Exception):
    """Base class for every cargolink failure."""


class SettingsNotFoundError(CargoLinkError, FileNotFoundError):
    """No ``config.rust`` was found in the start directory or any parent."""

    def __init__(self, start: Path, filename: str = "config.rust") -> None:
        self.start = start
        self.settings_name = filename
        super().__init__(f"No {filename} found in {start} or any parent directory")

    def __str__(self) -> str:
        return self.args[0]


class MalformedLineError(CargoLinkError, ValueError):
    """A non-blank, non-comment settings line has no ``=`` separator."""

    def __init__(self, lineno: int, line: str, path: Path | None = None) -> None:
        self.lineno = lineno
        self.line = line
        self.path = path
        where = f"{path}:{lineno}" if path is not None else f"line {lineno}"
        super().__init__(f"{where}: missing '=' in {line!r}")


class SettingsDecodeError(CargoLinkError, ValueError):
    """The settings file is not valid UTF-8."""

    def __init__(self, path: Path, cause: UnicodeDecodeError) -> None:
        self.path = path
        super().__init__(f"{path}: not valid UTF-8 ({cause.reason})")


class MissingKeyError(CargoLinkError, KeyError):
    """A required settings key is absent."""

    def __init__(self, key: str, path: Path | None = None) -> None:
        self.key = key
        self.path = path
        source = str(path) if path is not None else "settings"
        super().__init__(f"Key '{key}' not found in {source}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class UnknownPackageError(CargoLinkError, KeyError):
    """The package being built has no link profile."""

    def __init__(self, package: str, known: list[str] | None = None) -> None:
        self.package = package
        self.known = sorted(known or [])
        msg = f"No configuration for package '{package}'"
        if self.known:
            msg += f".  Known packages: {self.known}"
        super().__init__(msg)

    def __str__(self) -> str:
        return self.args[0]


class ProfileError(CargoLinkError, ValueError):
    """A package profile file is malformed."""
