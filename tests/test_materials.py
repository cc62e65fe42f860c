"""Tests for weighted choice, palettes and material properties."""

from collections import Counter

import pytest

from py_parkour.core.materials import (
    CellSpec,
    Material,
    MaterialCollection,
    MaterialKind,
    Palette,
    UnknownMaterialError,
)
from py_parkour.core.weighted import EmptyCollectionError, WeightedList


class TestWeightedList:
    """Test weighted random choice."""

    def test_empty_list(self):
        """Test that an empty list cannot be drawn from."""
        with pytest.raises(EmptyCollectionError):
            WeightedList().get_random()

    def test_zero_weights(self):
        """Test that a list of zero weights cannot be drawn from."""
        with pytest.raises(EmptyCollectionError):
            WeightedList([("a", 0.0), ("b", 0.0)]).get_random()

    def test_empty_collection_error_is_value_error(self):
        """Test that the empty collection error is a ValueError."""
        assert issubclass(EmptyCollectionError, ValueError)

    def test_negative_weight(self):
        """Test that negative weights are rejected."""
        with pytest.raises(ValueError):
            WeightedList([("a", -1.0)])

    def test_zero_weight_item_never_chosen(self):
        """Test that zero-weight items are never drawn."""
        items = WeightedList([("a", 1.0), ("never", 0.0), ("b", 3.0)])
        counts = Counter(items.get_random() for _ in range(2000))

        assert counts["never"] == 0
        assert counts["b"] > counts["a"] > 0

    @pytest.mark.parametrize("draw, expected", [(0.0, "a"), (0.999, "a"), (1.0, "b"), (3.5, "b")])
    def test_leading_zero_weight_skipped_at_bounds(self, monkeypatch, draw, expected):
        """Test that a draw on a weight boundary never lands on a zero-weight item."""

        class FixedDraw:
            def uniform(self, low, high):
                return draw

        monkeypatch.setattr("py_parkour.core.weighted.get_rng", lambda: FixedDraw())
        items = WeightedList([("never", 0.0), ("a", 1.0), ("b", 3.0)])

        assert items.get_random() == expected

    def test_iteration_and_indexing(self):
        """Test basic iteration, indexing and total weight."""
        items = WeightedList([("a", 1.0), ("b", 2.0)])

        assert list(items) == ["a", "b"]
        assert items[1] == "b"
        assert items.total_weight() == 3.0


class TestPalette:
    """Test palette building and lookups."""

    def test_unknown_name(self, built_palette):
        """Test that an unknown palette name raises."""
        with pytest.raises(UnknownMaterialError):
            built_palette.get("does_not_exist")

    def test_unknown_name_is_key_error(self):
        """Test that the unknown material error is a KeyError."""
        assert issubclass(UnknownMaterialError, KeyError)

    def test_uniform_collection_is_fixed_per_build(self):
        """Test that a uniform collection picks one material per build."""
        palette = Palette()
        palette.add("walls", MaterialCollection.of(
            Material("a"), Material("b"), Material("c"), Material("d"), uniform=True,
        ))

        built = palette.build()
        first = built.get("walls")
        assert all(built.get("walls") == first for _ in range(50))

    def test_mixed_collection_varies(self):
        """Test that a mixed collection draws a new material per cell."""
        palette = Palette()
        palette.add("walls", MaterialCollection.of(Material("a"), Material("b"), Material("c")))

        built = palette.build()
        assert len({built.get("walls").name for _ in range(100)}) > 1

    def test_property_override(self, built_palette):
        """Test that requested properties override the stored ones."""
        material = built_palette.get("stairs", (("facing", "south"), ("half", "top")))

        assert material.name == "stone_stairs"
        assert dict(material.properties) == {"facing": "south", "half": "top"}

    def test_is_liquid(self, built_palette):
        """Test basic liquid lookup by palette name."""
        assert built_palette.is_liquid("water")
        assert not built_palette.is_liquid("stone")

    def test_material_kinds(self):
        """Test that only solid materials are solid."""
        assert Material("stone").is_solid
        assert Material("water", MaterialKind.LIQUID).is_liquid
        assert not Material("water", MaterialKind.LIQUID).is_solid


class TestCellSpec:
    """Test oriented property transforms."""

    def test_rotate_facing(self):
        """Test that rotation turns the facing property."""
        spec = CellSpec("stairs", (("facing", "north"),))

        assert spec.rotate_cw().properties == (("facing", "east"),)
        assert spec.rotate_cw().rotate_cw().rotate_cw().rotate_cw() == spec

    def test_rotate_side_properties(self):
        """Test that rotation renames side properties."""
        spec = CellSpec("fence", (("north", "true"), ("west", "false")))
        assert spec.rotate_cw().properties == (("east", "true"), ("north", "false"))

    def test_flip_x(self):
        """Test that flipping swaps east and west."""
        spec = CellSpec("stairs", (("facing", "east"), ("east", "true")))
        assert spec.flip_x().properties == (("facing", "west"), ("west", "true"))

    def test_flip_keeps_north(self):
        """Test that flipping leaves north facing alone."""
        spec = CellSpec("stairs", (("facing", "north"),))
        assert spec.flip_x() == spec

    def test_axis_rotation(self):
        """Test that rotation swaps the x and z axes."""
        spec = CellSpec("log", (("axis", "x"),))
        assert spec.rotate_cw().properties == (("axis", "z"),)
