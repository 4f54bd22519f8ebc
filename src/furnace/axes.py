"""Rendering axes, named presets, and the resolver that combines them."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Mapping

from furnace.errors import ConfigError


class Layout(Enum):
    PLAIN = "plain"
    TREE = "tree"
    GRID = "grid"
    COMPACT = "compact"


class Detail(Enum):
    MINIMAL = "minimal"
    STANDARD = "standard"
    VERBOSE = "verbose"


class Color(Enum):
    NONE = "none"
    STANDARD = "standard"
    BADGES = "badges"


class Symbols(Enum):
    NONE = "none"
    ASCII = "ascii"
    UNICODE = "unicode"


AXES: dict[str, type[Enum]] = {
    "layout": Layout,
    "detail": Detail,
    "color": Color,
    "symbols": Symbols,
}


@dataclass(frozen=True)
class AxisSelection:
    """One resolved strategy per axis."""

    layout: Layout = Layout.TREE
    detail: Detail = Detail.STANDARD
    color: Color = Color.STANDARD
    symbols: Symbols = Symbols.UNICODE


@dataclass(frozen=True)
class PartialAxisSelection:
    """Explicit per-axis overrides; ``None`` leaves the axis alone."""

    layout: Layout | str | None = None
    detail: Detail | str | None = None
    color: Color | str | None = None
    symbols: Symbols | str | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> PartialAxisSelection:
        unknown = sorted(set(values) - set(AXES))
        if unknown:
            raise ConfigError(f"Unknown axis: {', '.join(unknown)}")
        return cls(**{k: v for k, v in values.items() if v is not None})

    def merged(self, other: PartialAxisSelection) -> PartialAxisSelection:
        """Return a copy where the axes set in *other* win."""
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)


DEFAULT_SELECTION = AxisSelection()

PRESETS: dict[str, AxisSelection] = {
    "plain": AxisSelection(Layout.PLAIN, Detail.STANDARD, Color.NONE, Symbols.NONE),
    "tree": AxisSelection(Layout.TREE, Detail.STANDARD, Color.STANDARD, Symbols.UNICODE),
    "compact": AxisSelection(Layout.COMPACT, Detail.MINIMAL, Color.NONE, Symbols.NONE),
    "verbose": AxisSelection(Layout.TREE, Detail.VERBOSE, Color.STANDARD, Symbols.UNICODE),
    "minimal": AxisSelection(Layout.PLAIN, Detail.MINIMAL, Color.NONE, Symbols.NONE),
    "grid": AxisSelection(Layout.GRID, Detail.STANDARD, Color.NONE, Symbols.ASCII),
    "markdown": AxisSelection(Layout.PLAIN, Detail.STANDARD, Color.NONE, Symbols.ASCII),
    "html": AxisSelection(Layout.TREE, Detail.STANDARD, Color.NONE, Symbols.NONE),
    "badges": AxisSelection(Layout.PLAIN, Detail.STANDARD, Color.BADGES, Symbols.UNICODE),
    "monochrome": AxisSelection(Layout.TREE, Detail.STANDARD, Color.NONE, Symbols.UNICODE),
}


def resolve(
    preset: str | None = None,
    overrides: PartialAxisSelection | None = None,
) -> AxisSelection:
    """Combine a named preset with explicit per-axis overrides.

    Without a preset the default selection (tree, standard, standard,
    unicode) is the base.  Each override replaces exactly its own axis.
    Unknown preset names and axis values raise :class:`ConfigError`.
    """
    if preset is None:
        selection = DEFAULT_SELECTION
    else:
        key = preset.strip().lower()
        if key not in PRESETS:
            raise ConfigError(
                f"Unknown preset '{preset}' (expected one of: {', '.join(PRESETS)})"
            )
        selection = PRESETS[key]

    if overrides is None:
        return selection

    updates = {}
    for axis in AXES:
        value = getattr(overrides, axis)
        if value is not None:
            updates[axis] = parse_axis_value(axis, value)
    return replace(selection, **updates)


def parse_axis_value(axis: str, value: Enum | str) -> Enum:
    """Turn ``"Verbose"`` or ``Detail.VERBOSE`` into ``Detail.VERBOSE`` for *axis*."""
    try:
        enum_type = AXES[axis]
    except KeyError:
        raise ConfigError(f"Unknown axis '{axis}'") from None

    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        try:
            return enum_type(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_type)
    raise ConfigError(f"Unknown {axis} '{value}' (expected one of: {allowed})")
