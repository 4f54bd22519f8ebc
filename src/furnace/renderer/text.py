"""Render a ProjectGraph to text under an AxisSelection."""

from __future__ import annotations

from typing import Callable

from furnace.axes import AxisSelection, Layout
from furnace.model import AnyDeclaration, Namespace, ProjectGraph, Unit
from furnace.renderer.strategies import (
    ROLE_NAMESPACE,
    ROLE_UNIT,
    ROLE_UNPARSED,
    TREE_GLYPHS,
    DetailView,
    declaration_view,
    glyph,
    namespace_view,
    paint,
    unit_view,
    visible_len,
)

EMPTY_GRAPH = "(no units)"


def render(graph: ProjectGraph, selection: AxisSelection) -> str:
    """Render *graph* as text; the layout shapes it, the other axes fill it in."""
    if graph.empty:
        lines = [EMPTY_GRAPH]
    else:
        lines = LAYOUTS[selection.layout](graph, selection)
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Entity labels shared by all layouts
# ---------------------------------------------------------------------------


def _label(view: DetailView, role: str, sel: AxisSelection) -> str:
    parts = [glyph(role, sel.symbols), paint(view.name, role, sel.color) + view.suffix()]
    return " ".join(part for part in parts if part)


def _unit_label(unit: Unit, sel: AxisSelection) -> str:
    return _label(unit_view(unit, sel.detail), ROLE_UNIT, sel)


def _namespace_label(ns: Namespace, sel: AxisSelection, *, qualified: bool) -> str:
    return _label(namespace_view(ns, sel.detail, qualified=qualified), ROLE_NAMESPACE, sel)


def _declaration_label(decl: AnyDeclaration, sel: AxisSelection) -> str:
    return _label(declaration_view(decl, sel.detail), decl.kind.value, sel)


def _unparsed_label(ns: Namespace, sel: AxisSelection) -> str:
    return _label(DetailView(f"UNPARSED: {ns.unparsed}"), ROLE_UNPARSED, sel)


def _entries(ns: Namespace, sel: AxisSelection) -> list[str]:
    """The unparsed marker (if any) followed by the namespace's declarations."""
    entries = [_unparsed_label(ns, sel)] if ns.is_unparsed else []
    entries.extend(_declaration_label(decl, sel) for decl in ns.declarations)
    return entries


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------


def _layout_plain(graph: ProjectGraph, sel: AxisSelection) -> list[str]:
    lines: list[str] = []
    for i, unit in enumerate(graph.units):
        if i:
            lines.append("")
        lines.append(_unit_label(unit, sel))
        for _, ns in unit.walk():
            lines.append("  " + _namespace_label(ns, sel, qualified=True))
            lines.extend("    " + entry for entry in _entries(ns, sel))
    return lines


def _layout_tree(graph: ProjectGraph, sel: AxisSelection) -> list[str]:
    glyphs = TREE_GLYPHS[sel.symbols]
    lines: list[str] = []

    def visit(unit: Unit, index: int, prefix: str, last: bool) -> None:
        ns = unit.namespaces[index]
        lines.append(
            prefix
            + (glyphs.elbow if last else glyphs.tee)
            + _namespace_label(ns, sel, qualified=False)
        )
        inner = prefix + (glyphs.blank if last else glyphs.pipe)
        entries = _entries(ns, sel)
        total = len(entries) + len(ns.children)
        for i, entry in enumerate(entries):
            lines.append(inner + (glyphs.elbow if i == total - 1 else glyphs.tee) + entry)
        for j, child in enumerate(ns.children):
            visit(unit, child, inner, len(entries) + j == total - 1)

    for i, unit in enumerate(graph.units):
        if i:
            lines.append("")
        lines.append(_unit_label(unit, sel))
        for j, root in enumerate(unit.roots):
            visit(unit, root, "", j == len(unit.roots) - 1)
    return lines


_GRID_HEADERS = ("Unit", "Namespace", "Name", "Kind", "Location", "Details")


def _layout_grid(graph: ProjectGraph, sel: AxisSelection) -> list[str]:
    rows: list[list[str]] = []
    for unit in graph.units:
        unit_cell = paint(unit.name, ROLE_UNIT, sel.color)
        unit_rows = 0
        for _, ns in unit.walk():
            ns_cell = paint(ns.qualified_name, ROLE_NAMESPACE, sel.color)
            if ns.is_unparsed:
                rows.append([unit_cell, ns_cell, _unparsed_label(ns, sel), "", "", ""])
                unit_rows += 1
            for decl in ns.declarations:
                view = declaration_view(decl, sel.detail)
                name_cell = _label(DetailView(view.name), decl.kind.value, sel)
                rows.append(
                    [
                        unit_cell,
                        ns_cell,
                        name_cell,
                        view.label or "",
                        view.location or "",
                        " ".join(view.extras),
                    ]
                )
                unit_rows += 1
        if not unit_rows:
            rows.append([unit_cell, "", "", "", "", ""])

    # Name is always shown; the optional columns appear when any row fills them
    keep = [
        i
        for i in range(len(_GRID_HEADERS))
        if i <= 2 or any(row[i] for row in rows)
    ]
    headers = [_GRID_HEADERS[i] for i in keep]
    table = [[row[i] for i in keep] for row in rows]

    widths = [
        max([visible_len(headers[c])] + [visible_len(row[c]) for row in table])
        for c in range(len(headers))
    ]
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def row_line(cells: list[str]) -> str:
        padded = [cell + " " * (w - visible_len(cell)) for cell, w in zip(cells, widths)]
        return "| " + " | ".join(padded) + " |"

    return [border, row_line(headers), border, *(row_line(r) for r in table), border]


def _layout_compact(graph: ProjectGraph, sel: AxisSelection) -> list[str]:
    lines: list[str] = []
    for unit in graph.units:
        segments = []
        for _, ns in unit.walk():
            entries = _entries(ns, sel)
            if entries:
                label = _namespace_label(ns, sel, qualified=True)
                segments.append(f"{label} [{' | '.join(entries)}]")
        lines.append(f"{_unit_label(unit, sel)}: {'; '.join(segments) or '-'}")
    return lines


LAYOUTS: dict[Layout, Callable[[ProjectGraph, AxisSelection], list[str]]] = {
    Layout.PLAIN: _layout_plain,
    Layout.TREE: _layout_tree,
    Layout.GRID: _layout_grid,
    Layout.COMPACT: _layout_compact,
}
