"""Per-axis strategy tables: detail, color, and symbols.

Each table maps one axis value to a pure function or a glyph set.  None of
them looks at another axis, which is what lets every layout combine freely
with every detail, color, and symbol choice.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from wcwidth import wcswidth

from furnace.axes import Color, Detail, Symbols
from furnace.model import (
    Aggregate,
    AnyDeclaration,
    Contract,
    DeclKind,
    Function,
    Location,
    Namespace,
    Unit,
    Variant,
)

# Roles are what color and symbol tables key on: one per declaration kind
# plus the containers and the unparsed marker.
ROLE_UNIT = "unit"
ROLE_NAMESPACE = "namespace"
ROLE_UNPARSED = "unparsed"

KIND_LABELS: dict[DeclKind, str] = {
    DeclKind.FUNCTION: "fn",
    DeclKind.AGGREGATE: "struct",
    DeclKind.CONTRACT: "trait",
    DeclKind.VARIANT: "enum",
}


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DetailView:
    """The attributes of one entity that a detail level chooses to show."""

    name: str
    label: str | None = None
    location: str | None = None
    extras: tuple[str, ...] = ()

    def suffix(self) -> str:
        """Everything after the name, in inline form."""
        text = ""
        meta = [part for part in (self.label, self.location) if part]
        if meta:
            text += f" ({', '.join(meta)})"
        if self.extras:
            text += " " + " ".join(self.extras)
        return text


def format_location(location: Location) -> str:
    if location.start_line == location.end_line:
        return f"{location.file}:{location.start_line}"
    return f"{location.file}:{location.start_line}-{location.end_line}"


def _listing(label: str, items) -> str:
    return f"{label}({', '.join(items)})"


def _declaration_extras(decl: AnyDeclaration) -> tuple[str, ...]:
    if isinstance(decl, Function):
        return (_listing("params", decl.params),)
    if isinstance(decl, Aggregate):
        extras = [_listing("fields", decl.fields)]
        if decl.methods:
            extras.append(_listing("methods", decl.methods))
        return tuple(extras)
    if isinstance(decl, Contract):
        return (_listing("methods", (f"{m.name}/{m.arity}" for m in decl.methods)),)
    if isinstance(decl, Variant):
        extras = [_listing("variants", decl.variants)]
        if decl.methods:
            extras.append(_listing("methods", decl.methods))
        return tuple(extras)
    return ()


def _decl_minimal(decl: AnyDeclaration) -> DetailView:
    return DetailView(decl.name)


def _decl_standard(decl: AnyDeclaration) -> DetailView:
    return DetailView(
        decl.name,
        label=KIND_LABELS[decl.kind],
        location=format_location(decl.location),
    )


def _decl_verbose(decl: AnyDeclaration) -> DetailView:
    base = _decl_standard(decl)
    return DetailView(
        base.name,
        label=base.label,
        location=base.location,
        extras=_declaration_extras(decl),
    )


DECLARATION_DETAIL: dict[Detail, Callable[[AnyDeclaration], DetailView]] = {
    Detail.MINIMAL: _decl_minimal,
    Detail.STANDARD: _decl_standard,
    Detail.VERBOSE: _decl_verbose,
}


def unit_view(unit: Unit, detail: Detail) -> DetailView:
    if detail is Detail.MINIMAL:
        return DetailView(unit.name)
    extras: tuple[str, ...] = ()
    if detail is Detail.VERBOSE and unit.dependencies:
        extras = (_listing("deps", unit.dependencies),)
    return DetailView(unit.name, label=f"v{unit.version}", location=unit.path, extras=extras)


def namespace_view(ns: Namespace, detail: Detail, *, qualified: bool) -> DetailView:
    name = ns.qualified_name if qualified else ns.name
    if detail is Detail.MINIMAL:
        return DetailView(name)
    extras: tuple[str, ...] = ()
    if detail is Detail.VERBOSE and ns.digest:
        extras = (f"sha256:{ns.digest[:12]}",)
    return DetailView(name, location=ns.source_file, extras=extras)


def declaration_view(decl: AnyDeclaration, detail: Detail) -> DetailView:
    return DECLARATION_DETAIL[detail](decl)


# ---------------------------------------------------------------------------
# Color
# ---------------------------------------------------------------------------

_ANSI_CODES: dict[str, str] = {
    ROLE_UNIT: "1;35",
    ROLE_NAMESPACE: "1;34",
    DeclKind.FUNCTION.value: "32",
    DeclKind.AGGREGATE.value: "36",
    DeclKind.CONTRACT.value: "33",
    DeclKind.VARIANT.value: "35",
    ROLE_UNPARSED: "1;31",
}

_BADGES: dict[str, str] = {
    ROLE_UNIT: "⬛",
    ROLE_NAMESPACE: "⬜",
    DeclKind.FUNCTION.value: "🟢",
    DeclKind.AGGREGATE.value: "🔵",
    DeclKind.CONTRACT.value: "🟣",
    DeclKind.VARIANT.value: "🟠",
    ROLE_UNPARSED: "🔴",
}

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def _paint_none(text: str, role: str) -> str:
    return text


def _paint_ansi(text: str, role: str) -> str:
    return f"\x1b[{_ANSI_CODES[role]}m{text}\x1b[0m"


def _paint_badge(text: str, role: str) -> str:
    return f"{_BADGES[role]} {text}"


PAINTERS: dict[Color, Callable[[str, str], str]] = {
    Color.NONE: _paint_none,
    Color.STANDARD: _paint_ansi,
    Color.BADGES: _paint_badge,
}


def paint(text: str, role: str, color: Color) -> str:
    return PAINTERS[color](text, role)


def visible_len(text: str) -> int:
    """Terminal columns taken by *text*, ignoring ANSI escape sequences.

    Emoji glyphs and badges count as two columns.
    """
    plain = _ANSI_RE.sub("", text)
    width = wcswidth(plain)
    # wcswidth gives -1 when a control character is present
    return width if width >= 0 else len(plain)


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------

_GLYPHS: dict[Symbols, dict[str, str]] = {
    Symbols.NONE: {},
    Symbols.ASCII: {
        ROLE_UNIT: "[crate]",
        ROLE_NAMESPACE: "[mod]",
        DeclKind.FUNCTION.value: "[fn]",
        DeclKind.AGGREGATE.value: "[struct]",
        DeclKind.CONTRACT.value: "[trait]",
        DeclKind.VARIANT.value: "[enum]",
        ROLE_UNPARSED: "[!]",
    },
    Symbols.UNICODE: {
        ROLE_UNIT: "📦",
        ROLE_NAMESPACE: "📁",
        DeclKind.FUNCTION.value: "🔧",
        DeclKind.AGGREGATE.value: "🏗️",
        DeclKind.CONTRACT.value: "📜",
        DeclKind.VARIANT.value: "🧩",
        ROLE_UNPARSED: "⚠️",
    },
}


@dataclass(frozen=True)
class TreeGlyphs:
    tee: str
    elbow: str
    pipe: str
    blank: str


TREE_GLYPHS: dict[Symbols, TreeGlyphs] = {
    Symbols.NONE: TreeGlyphs("  ", "  ", "  ", "  "),
    Symbols.ASCII: TreeGlyphs("|-- ", "`-- ", "|   ", "    "),
    Symbols.UNICODE: TreeGlyphs("├── ", "└── ", "│   ", "    "),
}


def glyph(role: str, symbols: Symbols) -> str:
    return _GLYPHS[symbols].get(role, "")
