"""Per-package link profiles.

Each Rust package that links against the C build gets a
:class:`PackageProfile` listing what to link and where to look.  Profiles
are plain data, so adding a package means adding a table entry rather than
another branch of code.

Extra profiles can be supplied in a TOML file::

    [packages.crypto]
    ldflag_keys = ["TOR_LDFLAGS_zlib"]
    link_relpaths = ["src/lib"]
    components = ["tor-log"]
    lib_keys = ["LIBS"]

A loaded profile replaces a built-in profile of the same name.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from cargolink.directives import LinkDirectives
from cargolink.errors import ProfileError, UnknownPackageError
from cargolink.settings import Settings


@dataclass(frozen=True)
class PackageProfile:
    """Link configuration for one package.

    :meth:`apply` walks the fields in declaration order, so flag-derived
    search paths come before the project's own libraries and flag-derived
    libraries come last.
    """

    name: str
    # Settings keys holding -L flags (e.g. TOR_LDFLAGS_openssl)
    ldflag_keys: tuple[str, ...] = ()
    link_paths: tuple[str, ...] = ()
    # Relative to BUILDDIR
    link_relpaths: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    # Settings keys holding -l flags (e.g. TOR_OPENSSL_LIBS)
    lib_keys: tuple[str, ...] = ()

    def apply(self, directives: LinkDirectives) -> LinkDirectives:
        for key in self.ldflag_keys:
            directives.from_cflags(key)
        for path in self.link_paths:
            directives.link_path(path)
        for relpath in self.link_relpaths:
            directives.link_relpath(relpath)
        for name in self.components:
            directives.component(name)
        for name in self.dependencies:
            directives.dependency(name)
        for key in self.lib_keys:
            directives.from_cflags(key)
        return directives

    def to_dict(self) -> dict[str, list[str]]:
        return {f.name: list(getattr(self, f.name)) for f in fields(self) if f.name != "name"}


_LIST_FIELDS = tuple(f.name for f in fields(PackageProfile) if f.name != "name")


# ---------------------------------------------------------------------------
# Built-in profiles
# ---------------------------------------------------------------------------

# The crypto crate's tests call into the C crypto library, which drags in
# logging, containers and the ed25519/curve25519 implementations.  The
# *-testing variants are used so that libtor-testing (and with it every other
# Rust crate) stays out of the link.
CRYPTO = PackageProfile(
    name="crypto",
    ldflag_keys=(
        "TOR_LDFLAGS_zlib",
        "TOR_LDFLAGS_openssl",
        "TOR_LDFLAGS_libevent",
    ),
    link_relpaths=(
        "src/lib",
        "src/common",
        "src/ext/keccak-tiny",
        "src/ext/ed25519/ref10",
        "src/ext/ed25519/donna",
        "src/trunnel",
    ),
    components=(
        "tor-crypt-ops-testing",
        "or-testing",
        "tor-log",
        "tor-lock",
        "tor-fdio",
        "tor-container-testing",
        "tor-smartlist-core-testing",
        "tor-string-testing",
        "tor-malloc",
        "tor-wallclock",
        "tor-err-testing",
        "or-event-testing",
        "tor-intmath-testing",
        "tor-ctime-testing",
        "curve25519_donna",
        "keccak-tiny",
        "ed25519_ref10",
        "ed25519_donna",
        "or-trunnel-testing",
    ),
    lib_keys=(
        "TOR_ZLIB_LIBS",
        "TOR_LIB_MATH",
        "TOR_OPENSSL_LIBS",
        "TOR_LIBEVENT_LIBS",
        "TOR_LIB_WS32",
        "TOR_LIB_GDI",
        "TOR_LIB_USERENV",
        "CURVE25519_LIBS",
        "TOR_LZMA_LIBS",
        "TOR_ZSTD_LIBS",
        "LIBS",
    ),
)

BUILTIN_PROFILES: dict[str, PackageProfile] = {
    CRYPTO.name: CRYPTO,
}


# ---------------------------------------------------------------------------
# Loading and lookup
# ---------------------------------------------------------------------------


def _profile_from_table(name: str, table: object, source: Path) -> PackageProfile:
    if not isinstance(table, dict):
        raise ProfileError(f"{source}: [packages.{name}] must be a table")
    unknown = sorted(set(table) - set(_LIST_FIELDS))
    if unknown:
        raise ProfileError(
            f"{source}: unknown field(s) {unknown} in [packages.{name}].  "
            f"Allowed: {list(_LIST_FIELDS)}"
        )
    kwargs: dict[str, tuple[str, ...]] = {}
    for key, value in table.items():
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ProfileError(f"{source}: packages.{name}.{key} must be a list of strings")
        kwargs[key] = tuple(value)
    return PackageProfile(name=name, **kwargs)


def load_profiles(path: Path) -> dict[str, PackageProfile]:
    """Read ``[packages.<name>]`` tables from a TOML file."""
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ProfileError(f"{path}: {exc}") from exc

    packages = raw.get("packages", {})
    if not isinstance(packages, dict):
        raise ProfileError(f"{path}: 'packages' must be a table")
    return {name: _profile_from_table(name, table, path) for name, table in packages.items()}


def merged_profiles(extra: Path | None = None) -> dict[str, PackageProfile]:
    """Return the built-in profiles, overridden by those in *extra* if given."""
    profiles = dict(BUILTIN_PROFILES)
    if extra is not None:
        profiles.update(load_profiles(extra))
    return profiles


def get_profile(package: str, profiles: dict[str, PackageProfile] | None = None) -> PackageProfile:
    if profiles is None:
        profiles = BUILTIN_PROFILES
    try:
        return profiles[package]
    except KeyError:
        raise UnknownPackageError(package, list(profiles)) from None


def build_directives(
    settings: Settings,
    package: str,
    profiles: dict[str, PackageProfile] | None = None,
) -> LinkDirectives:
    """Look up *package* and run its profile against *settings*."""
    profile = get_profile(package, profiles)
    return profile.apply(LinkDirectives(settings))
