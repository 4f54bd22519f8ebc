"""
tests/test_axes.py: Tests for furnace.axes.

Tests verify:
- Every named preset resolves to a full AxisSelection.
- A preset plus one override changes exactly that axis.
- Axis values parse case-insensitively; unknown names raise ConfigError.
"""

import pytest

from furnace.axes import (
    DEFAULT_SELECTION,
    PRESETS,
    AxisSelection,
    Color,
    Detail,
    Layout,
    PartialAxisSelection,
    Symbols,
    parse_axis_value,
    resolve,
)
from furnace.errors import ConfigError


class TestResolve:

    def test_default_without_preset(self):
        assert resolve() == AxisSelection(
            Layout.TREE, Detail.STANDARD, Color.STANDARD, Symbols.UNICODE
        )
        assert resolve() == DEFAULT_SELECTION

    def test_ten_presets(self):
        assert sorted(PRESETS) == sorted(
            [
                "plain",
                "tree",
                "compact",
                "verbose",
                "minimal",
                "grid",
                "markdown",
                "html",
                "badges",
                "monochrome",
            ]
        )

    @pytest.mark.parametrize("name", list(PRESETS))
    def test_preset_resolves_to_itself(self, name):
        assert resolve(name) == PRESETS[name]

    def test_preset_with_one_override(self):
        """Preset "tree" with Detail=Verbose differs from "tree" only in detail."""
        selection = resolve("tree", PartialAxisSelection(detail=Detail.VERBOSE))
        tree = PRESETS["tree"]
        assert selection.detail is Detail.VERBOSE
        assert selection.layout is tree.layout
        assert selection.color is tree.color
        assert selection.symbols is tree.symbols

    def test_string_overrides(self):
        selection = resolve("grid", PartialAxisSelection(color="Standard", symbols="NONE"))
        assert selection == AxisSelection(
            Layout.GRID, Detail.STANDARD, Color.STANDARD, Symbols.NONE
        )

    def test_preset_name_case_insensitive(self):
        assert resolve(" Compact ") == PRESETS["compact"]

    def test_unknown_preset(self):
        with pytest.raises(ConfigError, match="Unknown preset 'fancy'"):
            resolve("fancy")

    def test_unknown_axis_value(self):
        with pytest.raises(ConfigError, match="Unknown layout 'spiral'"):
            resolve(None, PartialAxisSelection(layout="spiral"))


class TestPartialSelection:

    def test_from_mapping_drops_none(self):
        partial = PartialAxisSelection.from_mapping({"layout": "grid", "detail": None})
        assert partial == PartialAxisSelection(layout="grid")

    def test_from_mapping_unknown_axis(self):
        with pytest.raises(ConfigError, match="Unknown axis: shape"):
            PartialAxisSelection.from_mapping({"shape": "round"})

    def test_merged_later_wins(self):
        base = PartialAxisSelection(layout="grid", detail="minimal")
        merged = base.merged(PartialAxisSelection(detail="verbose"))
        assert merged == PartialAxisSelection(layout="grid", detail="verbose")


class TestParseAxisValue:

    def test_enum_passthrough(self):
        assert parse_axis_value("symbols", Symbols.ASCII) is Symbols.ASCII

    def test_wrong_enum_for_axis(self):
        with pytest.raises(ConfigError):
            parse_axis_value("layout", Detail.MINIMAL)

    def test_unknown_axis(self):
        with pytest.raises(ConfigError, match="Unknown axis 'size'"):
            parse_axis_value("size", "big")
