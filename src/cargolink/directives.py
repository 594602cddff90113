"""Link directives for Cargo build scripts.

:class:`LinkDirectives` collects directives in the order they are requested
instead of printing them as it goes; :meth:`LinkDirectives.render` turns the
list into the ``cargo:`` lines a build script writes to stdout.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from cargolink.settings import Settings

# Directive kinds
COMPONENT = "component"
DEPENDENCY = "dependency"
SEARCH_PATH = "search_path"

_TEMPLATES: dict[str, str] = {
    COMPONENT: "cargo:rustc-link-lib=static={}",
    DEPENDENCY: "cargo:rustc-link-lib={}",
    SEARCH_PATH: "cargo:rustc-link-search=native={}",
}


@dataclass(frozen=True)
class Directive:
    """A single linker instruction."""

    kind: str
    value: str

    def render(self) -> str:
        """Return the ``cargo:`` line for this directive."""
        return _TEMPLATES[self.kind].format(self.value)

    def to_dict(self) -> dict[str, str]:
        """Return the directive as a JSON-ready dict."""
        return {"kind": self.kind, "value": self.value}


@dataclass
class LinkDirectives:
    """Ordered directive list built against one :class:`Settings`."""

    settings: Settings
    directives: list[Directive] = field(default_factory=list)

    def _add(self, kind: str, value: str) -> Directive:
        d = Directive(kind, value)
        self.directives.append(d)
        return d

    def component(self, name: str) -> Directive:
        """Link a static library that is built as part of the same project."""
        return self._add(COMPONENT, name)

    def dependency(self, name: str) -> Directive:
        """Link a native library that is not part of the project."""
        return self._add(DEPENDENCY, name)

    def link_relpath(self, relpath: str) -> Directive:
        """Add a search path relative to ``BUILDDIR``."""
        builddir = self.settings.get("BUILDDIR")
        return self._add(SEARCH_PATH, f"{builddir}/{relpath}")

    def link_path(self, path: str) -> Directive:
        """Add an absolute search path."""
        return self._add(SEARCH_PATH, path)

    def from_cflags(self, key: str) -> list[Directive]:
        """Expand the ``-l``/``-L`` items in the flag string stored under *key*.

        Both the joined (``-lfoo``, ``-L/usr/lib``) and split (``-l foo``,
        ``-L /usr/lib``) forms are understood.  Other tokens are ignored, as
        is a trailing ``-l`` or ``-L`` with nothing after it.
        """
        added: list[Directive] = []
        next_is_lib = False
        next_is_path = False
        for ent in self.settings.get(key).split():
            if next_is_lib:
                added.append(self.dependency(ent))
                next_is_lib = False
            elif next_is_path:
                added.append(self.link_path(ent))
                next_is_path = False
            elif ent == "-l":
                next_is_lib = True
            elif ent == "-L":
                next_is_path = True
            elif ent.startswith("-L"):
                added.append(self.link_path(ent[2:]))
            elif ent.startswith("-l"):
                added.append(self.dependency(ent[2:]))
        return added

    # -----------------------------------------------------------------------
    # Output
    # -----------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.directives)

    def __iter__(self) -> Iterator[Directive]:
        return iter(self.directives)

    def render(self) -> list[str]:
        """Return the ``cargo:`` lines in emission order."""
        return [d.render() for d in self.directives]

    def as_json(self) -> list[dict[str, Any]]:
        """Return every directive as a dict, in emission order."""
        return [d.to_dict() for d in self.directives]
