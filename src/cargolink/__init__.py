"""cargolink — bridge autoconf's config.rust into Cargo link directives.

Reads the ``KEY=VALUE`` settings that ``configure`` writes for Rust builds
and turns per-package link profiles into ``cargo:rustc-link-lib`` and
``cargo:rustc-link-search`` lines for a build script to print.
"""

__version__ = "0.1.0"
