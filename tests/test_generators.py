"""Tests for the segment generators that build from a palette."""

import math

import numpy as np
import pytest
from structlog.testing import capture_logs

from py_parkour.core.generators import (
    BlinkBlocksGenerator,
    BounceGenerator,
    CaveGenerator,
    ChainedPreset,
    CustomGenerator,
    HeadJumpGenerator,
    IndoorGenerator,
    IslandGenerator,
    MultiCustomGenerator,
    RunUpGenerator,
    SingleCustomPreset,
    SingleGenerator,
)
from py_parkour.core.generators.base import GeneratorParams
from py_parkour.core.generators.bounce import bounce_yaw
from py_parkour.core.generators.indoor import ROOM_HEIGHT
from py_parkour.core.generators.island import get_x_radius
from py_parkour.core.grid import GridPos, JumpDirection
from py_parkour.core.materials import AIR, CellSpec
from py_parkour.core.noise import fbm_noise_map
from py_parkour.core.trajectory import TrajectoryState, simulate_jump
from py_parkour.core.weighted import WeightedList
from py_parkour.utils.random import set_random_seed

ORIGIN = GridPos(0, 0, 0)


def landing_of(child):
    """The platform cell is the first cell a child layout records."""
    return next(iter(child.cells))


class TestSingleGenerator:
    """Test the one-cell generator."""

    def test_one_cell(self, built_palette):
        """Test basic single cell output."""
        result = SingleGenerator("platform").generate(GeneratorParams(palette=built_palette))

        assert result.start == result.end == ORIGIN
        assert result.cells == {ORIGIN: built_palette.get("platform")}

    def test_validate_unknown_name(self, palette):
        """Test that an unknown material name fails validation."""
        with pytest.raises(ValueError):
            SingleGenerator("missing").validate(palette.collections.keys())


class TestCaveGenerator:
    """Test cave volume and platform placement."""

    @pytest.mark.parametrize("seed", range(20))
    def test_landings_stay_inside(self, built_palette, seed):
        """Test that cave platforms stay inside the cave walls."""
        set_random_seed(seed)
        generator = CaveGenerator("stone", min_size=GridPos(5, 12, 15), max_size=GridPos(12, 14, 25))
        result = generator.generate(GeneratorParams(palette=built_palette))

        # The shell runs from x = -1 to x = width
        width = max(pos.x for pos in result.cells)
        assert result.children
        for child in result.children:
            landing = landing_of(child)
            assert 1 <= landing.x < width - 1

    def test_start_and_end(self, built_palette):
        """Test that the cave starts on a solid cell and ends on its last platform."""
        result = CaveGenerator("stone").generate(GeneratorParams(palette=built_palette))

        assert result.start.y == 1 and result.start.z == 0
        assert result.cells[result.start].is_solid
        assert result.end == landing_of(result.children[-1])
        assert result.lines

    def test_path_is_carved(self, built_palette):
        """Test that air is carved above every platform."""
        result = CaveGenerator("stone").generate(GeneratorParams(palette=built_palette))

        carved = [pos for pos, material in result.cells.items() if material == AIR]
        assert carved
        # Nothing solid directly above a platform
        for child in result.children:
            above = landing_of(child).offset(dy=1)
            assert result.cells.get(above, AIR) == AIR

    def test_jump_cells_are_not_filled(self, built_palette):
        """Test that the approach jump cells are left open."""
        jump_cells = frozenset({GridPos(0, 1, 0), GridPos(0, 2, 0), GridPos(1, 2, -1)})
        result = CaveGenerator("stone").generate(GeneratorParams(palette=built_palette, jump_cells=jump_cells))

        for cell in jump_cells:
            assert not result.cells.get(result.start + cell, AIR).is_solid

    def test_straight_heading_fallback(self, built_palette):
        """Test that platforms fall back to straight jumps when no heading is tried."""
        with capture_logs() as logs:
            result = CaveGenerator("stone").generate(GeneratorParams(palette=built_palette, max_platform_attempts=0))

        assert any(log["event"] == "Platform jump out of bounds, using straight heading" for log in logs)
        assert result.children
        assert all(landing_of(child).x == result.start.x for child in result.children)
        assert result.end.x == result.start.x

    def test_invalid_size(self):
        """Test that invalid size bounds are rejected."""
        with pytest.raises(ValueError):
            CaveGenerator("stone", min_size=GridPos(30, 12, 15))
        with pytest.raises(ValueError):
            CaveGenerator("stone", min_size=GridPos(2, 12, 15), max_size=GridPos(4, 18, 60))


class TestIndoorGenerator:
    """Test room layout."""

    def test_no_floor(self, built_palette):
        """Test basic room walls and platforms without a floor."""
        generator = IndoorGenerator("walls", "platform")
        result = generator.generate(GeneratorParams(palette=built_palette))

        width = max(pos.x for pos in result.cells) + 1
        assert 5 <= width <= 10
        assert result.start.y == 0
        for child in result.children:
            landing = landing_of(child)
            assert landing.y == 0
            assert 1 <= landing.x < width - 1

        depth = result.end.z + 1
        for z in range(depth):
            assert result.cells[GridPos(0, 0, z)].name == "bricks"
            assert result.cells[GridPos(width - 1, ROOM_HEIGHT - 1, z)].name == "bricks"
            assert result.cells[GridPos(1, ROOM_HEIGHT, z)].name == "bricks"

    def test_solid_floor(self, built_palette):
        """Test that a solid floor raises the platforms by two."""
        result = IndoorGenerator("walls", "platform", floor="floor").generate(GeneratorParams(palette=built_palette))

        assert result.start.y == 2
        assert all(landing_of(child).y == 2 for child in result.children)
        assert result.cells[GridPos(1, 0, 1)].name == "oak_planks"
        assert result.cells[GridPos(1, 1, 0)].name == "bricks"

    def test_liquid_floor(self, built_palette):
        """Test that a liquid floor sits on a sub-floor of wall cells."""
        result = IndoorGenerator("walls", "platform", floor="water").generate(GeneratorParams(palette=built_palette))

        assert result.start.y == 1
        assert all(landing_of(child).y == 1 for child in result.children)
        # Sub-floor below the liquid, which starts one row in
        assert result.cells[GridPos(1, 0, 0)].name == "bricks"
        assert result.cells[GridPos(1, 0, 3)].name == "bricks"
        assert result.cells[result.start].name == "stone"
        depth = result.end.z + 1
        assert any(
            result.cells[GridPos(1, 1, z)].is_liquid for z in range(1, depth)
        )

    def test_jump_cells_are_not_filled(self, built_palette):
        """Test that the approach jump cells are left open."""
        set_random_seed(3)
        result = IndoorGenerator("walls", "platform").generate(GeneratorParams(palette=built_palette))
        start = result.start
        wall = GridPos(0, 3, 2) - start

        set_random_seed(3)
        result = IndoorGenerator("walls", "platform").generate(
            GeneratorParams(palette=built_palette, jump_cells=frozenset({wall}))
        )
        assert GridPos(0, 3, 2) not in result.cells

    def test_straight_heading_fallback(self, built_palette):
        """Test that platforms fall back to straight jumps when no heading is tried."""
        with capture_logs() as logs:
            result = IndoorGenerator("walls", "platform").generate(
                GeneratorParams(palette=built_palette, max_platform_attempts=0)
            )

        assert any(log["event"] == "Platform jump out of bounds, using straight heading" for log in logs)
        assert result.children
        assert all(landing_of(child).x == result.start.x for child in result.children)

    def test_invalid_width(self):
        """Test that invalid room ranges are rejected."""
        with pytest.raises(ValueError):
            IndoorGenerator("walls", "platform", width_range=(2, 4))
        with pytest.raises(ValueError):
            IndoorGenerator("walls", "platform", depth_range=(30, 15))


class TestBlinkBlocksGenerator:
    """Test blinking pad pairs."""

    def test_pairs(self, built_palette):
        """Test that only the first blink pair starts reached."""
        generator = BlinkBlocksGenerator("on", "off")
        result = generator.generate(GeneratorParams(palette=built_palette))
        on = generator.on_schedule(built_palette)
        off = generator.off_schedule(built_palette)

        assert 1 <= len(result.children) <= 6
        assert result.children[0].reached
        assert not any(child.reached for child in result.children[1:])

        for child in result.children:
            assert set(child.cells) == set(child.timed_cells)
            assert all(material == AIR for material in child.cells.values())
            assert set(child.timed_cells.values()) == {on, off}
            assert len(child.timed_cells) == 18

    def test_start_on_first_pair(self, built_palette):
        """Test that the segment starts on the first pair."""
        result = BlinkBlocksGenerator("on", "off").generate(GeneratorParams(palette=built_palette))
        assert ORIGIN in result.children[0].timed_cells

    def test_invalid_size(self):
        """Test that invalid size bounds are rejected."""
        with pytest.raises(ValueError):
            BlinkBlocksGenerator("on", "off", size=(0, 3))


class TestIslandGenerator:
    """Test island terrain."""

    def test_x_radius(self):
        """Test the island half-width at each depth."""
        assert get_x_radius(5, 0) == 5
        assert get_x_radius(5, 5) == 2
        assert get_x_radius(5, -5) == 2
        assert get_x_radius(5, 3) == 4

    def test_generate(self, built_palette):
        """Test basic island generation."""
        generator = IslandGenerator("grass", "dirt", "stone", "water")
        result = generator.generate(GeneratorParams(palette=built_palette))

        assert result.start == ORIGIN
        assert result.cells[ORIGIN].is_solid
        assert result.cells[result.end].is_solid
        assert 10 <= result.end.z <= 20

        names = {material.name for material in result.cells.values()}
        assert {"grass_block", "dirt", "stone"} <= names

    def test_water_rests_on_ground(self, built_palette):
        """Test that water cells always sit on ground."""
        result = IslandGenerator("grass", "dirt", "stone", "water").generate(GeneratorParams(palette=built_palette))

        for pos, material in result.cells.items():
            if material.is_liquid:
                below = result.cells[pos.offset(dy=-1)]
                assert below.is_liquid or below.name == "dirt"

    def test_invalid_radius(self):
        """Test that invalid island radii are rejected."""
        with pytest.raises(ValueError):
            IslandGenerator("grass", "dirt", "stone", "water", min_radius=10, max_radius=5)


class TestNoise:
    """Test the fractal noise height field."""

    def test_shape_and_range(self):
        """Test that the noise map has the requested shape and range."""
        height_map = fbm_noise_map(21, (-1.0, 1.0), seed=42)

        assert height_map.shape == (21, 21)
        assert np.all(np.isfinite(height_map))
        assert np.all(np.abs(height_map) <= 1.5)

    def test_seed_is_deterministic(self):
        """Test that the same seed gives the same noise."""
        a = fbm_noise_map(15, (-0.5, 0.5), seed=9)
        b = fbm_noise_map(15, (-0.5, 0.5), seed=9)
        c = fbm_noise_map(15, (-0.5, 0.5), seed=10)

        assert np.array_equal(a, b)
        assert not np.array_equal(a, c)


class TestCustomGenerators:
    """Test fixed presets and preset chains."""

    @pytest.fixture
    def preset(self):
        return SingleCustomPreset(
            cells={
                ORIGIN: CellSpec("platform"),
                GridPos(1, 0, 1): CellSpec("stairs", (("facing", "east"),)),
                GridPos(2, 1, 2): CellSpec("platform"),
            },
            start=ORIGIN,
            end=GridPos(2, 1, 2),
        )

    def test_build(self, preset, built_palette):
        """Test basic preset rendering."""
        cells = preset.build(GridPos(10, 0, 0), built_palette)

        assert set(cells) == {GridPos(10, 0, 0), GridPos(11, 0, 1), GridPos(12, 1, 2)}
        assert dict(cells[GridPos(11, 0, 1)].properties)["facing"] == "east"

    def test_mirrored(self, preset):
        """Test that a mirrored preset flips x and oriented properties."""
        mirrored = preset.mirrored()

        assert mirrored.start == ORIGIN
        assert mirrored.end == GridPos(-2, 1, 2)
        assert mirrored.cells[GridPos(-1, 0, 1)] == CellSpec("stairs", (("facing", "west"),))
        assert mirrored.mirrored() == preset

    def test_custom_generator(self, preset, built_palette):
        """Test basic custom preset output."""
        result = CustomGenerator(preset).generate(GeneratorParams(palette=built_palette))

        assert result.start == ORIGIN
        assert result.end == GridPos(2, 1, 2)
        assert len(result.cells) == 3

    def test_custom_generator_mirrors(self, preset, built_palette):
        """Test that a mirroring preset ends on either side."""
        generator = CustomGenerator(preset, allow_mirror=True)
        ends = {generator.generate(GeneratorParams(palette=built_palette)).end for _ in range(40)}
        assert ends == {GridPos(2, 1, 2), GridPos(-2, 1, 2)}

    def test_chain(self, preset, built_palette):
        """Test that a preset chain builds reachable children."""
        presets = {
            "a": ChainedPreset(preset, nexts=("a", "b")),
            "b": ChainedPreset(preset, nexts=("a",), fixed_offset=GridPos(0, 0, 2)),
        }
        generator = MultiCustomGenerator(presets, WeightedList([("a", 1.0)]), WeightedList([("b", 1.0)]))
        result = generator.generate(GeneratorParams(palette=built_palette))

        assert 1 <= len(result.children) <= generator.max_length + 1
        assert result.children[0].reached
        assert result.start == ORIGIN
        assert ORIGIN in result.children[0].cells
        assert result.end in result.children[-1].cells

    def test_chain_unknown_names(self, preset):
        """Test that a chain naming unknown presets is rejected."""
        presets = {"a": ChainedPreset(preset, nexts=("missing",))}
        with pytest.raises(ValueError):
            MultiCustomGenerator(presets, WeightedList([("a", 1.0)]), WeightedList([("a", 1.0)]))

    def test_chain_needs_starts(self, preset):
        """Test that a chain needs at least one start preset."""
        presets = {"a": ChainedPreset(preset, nexts=("a",))}
        with pytest.raises(ValueError):
            MultiCustomGenerator(presets, WeightedList(), WeightedList([("a", 1.0)]))

    def test_chain_dead_end(self, preset):
        """Test that a chain preset without successors is rejected."""
        presets = {"a": ChainedPreset(preset)}
        with pytest.raises(ValueError):
            MultiCustomGenerator(presets, WeightedList([("a", 1.0)]), WeightedList([("a", 1.0)]))

    def test_material_names(self, preset):
        """Test that preset material names are collected."""
        assert set(CustomGenerator(preset).material_names()) == {"platform", "stairs"}


class TestHeadJumpGenerator:
    """Test the ceiling bar and the drop under it."""

    def test_bar_above_start(self, built_palette):
        """Test that the bar spans five cells three above the cell ahead."""
        result = HeadJumpGenerator("platform").generate(GeneratorParams(palette=built_palette))

        assert result.start == ORIGIN
        assert result.cells[ORIGIN].name == "stone"
        for x in range(-2, 3):
            assert GridPos(x, 3, 1) in result.cells
        assert len(result.cells) == 6

    @pytest.mark.parametrize("seed", range(10))
    def test_climbing_drops_one_cell(self, built_palette, seed):
        """Test that a climbing course only drops one cell after the hit."""
        set_random_seed(seed)
        result = HeadJumpGenerator("platform").generate(
            GeneratorParams(palette=built_palette, direction=JumpDirection.UP)
        )

        assert result.end.y == -1
        assert result.end.z >= 2
        assert -2 <= result.end.x <= 2
        assert 4 <= len(result.lines) <= 6

    def test_descending_drops_further(self, built_palette):
        """Test that a descending course falls between one and four cells."""
        drops = set()
        for seed in range(20):
            set_random_seed(seed)
            result = HeadJumpGenerator("platform").generate(
                GeneratorParams(palette=built_palette, direction=JumpDirection.DOWN)
            )
            assert -4 <= result.end.y <= -1
            drops.add(result.end.y)

        assert min(drops) < -1

    def test_landing_platform_and_path(self, built_palette):
        """Test basic landing child and the cells crossed by the fall."""
        result = HeadJumpGenerator("platform").generate(GeneratorParams(palette=built_palette))

        assert result.children[0].cells == {result.end: built_palette.get("platform")}
        assert result.path_cells
        assert not result.path_cells & set(result.cells)


class TestRunUpGenerator:
    """Test ramp steps and slabs."""

    def test_level_course_uses_shortest_ramp(self, built_palette):
        """Test that a level course gets a two-step ramp."""
        result = RunUpGenerator("platform", "slab").generate(GeneratorParams(palette=built_palette))

        assert result.start == ORIGIN
        assert result.end == GridPos(0, 1, 2)
        assert len(result.cells) == 12
        for x in (-1, 0, 1):
            assert result.cells[GridPos(x, 0, 0)].name == "stone"
            assert result.cells[GridPos(x, 1, 2)].name == "stone"

    def test_slab_halves(self, built_palette):
        """Test that each gap has a bottom slab over a top slab."""
        result = RunUpGenerator("platform", "slab").generate(GeneratorParams(palette=built_palette))

        upper = result.cells[GridPos(0, 1, 1)]
        lower = result.cells[GridPos(0, 0, 1)]
        assert upper.name == lower.name == "stone_slab"
        assert dict(upper.properties) == {"type": "bottom"}
        assert dict(lower.properties) == {"type": "top"}

    def test_climbing_course_uses_longer_ramps(self, built_palette):
        """Test that a climbing course draws the ramp length from the range."""
        generator = RunUpGenerator("platform", "slab", length_range=(2, 4))
        ends = set()
        for _ in range(40):
            result = generator.generate(GeneratorParams(palette=built_palette, direction=JumpDirection.UP))
            assert result.end in result.cells
            ends.add(result.end)

        assert ends == {GridPos(0, 1, 2), GridPos(0, 2, 4), GridPos(0, 3, 6)}

    def test_invalid_length(self):
        """Test that ramps shorter than two steps are rejected."""
        with pytest.raises(ValueError):
            RunUpGenerator("platform", "slab", length_range=(1, 3))
        with pytest.raises(ValueError):
            RunUpGenerator("platform", "slab", length_range=(4, 2))


class TestBounceGenerator:
    """Test the pad under the landing and the platform it throws onto."""

    @pytest.mark.parametrize("seed", range(10))
    def test_platform_above_pad(self, built_palette, seed):
        """Test that the platform sits at least the minimum rise above the pad."""
        set_random_seed(seed)
        result = BounceGenerator("slime", "platform").generate(GeneratorParams(palette=built_palette))

        pad_levels = {pos.y for pos in result.cells}
        assert len(result.cells) == 9
        assert len(pad_levels) == 1
        pad_y = pad_levels.pop()
        assert pad_y <= 0
        assert all(material.name == "slime_block" for material in result.cells.values())
        assert result.end.y - pad_y >= 1
        assert result.children[0].cells == {result.end: built_palette.get("platform")}
        assert result.end not in result.path_cells
        assert not result.path_cells & set(result.cells)

    def test_follows_approach(self, built_palette):
        """Test that the bounce continues the jump onto the landing cell."""
        jump = simulate_jump(TrajectoryState.running_jump_block(GridPos(0, 0, -4), 0.0), 1)
        approach = jump.state.offset(ORIGIN - jump.landing)

        result = BounceGenerator("slime", "platform").generate(
            GeneratorParams(palette=built_palette, approach=approach)
        )

        assert result.lines
        assert result.lines[0].start == approach.position()
        assert result.end.z > 0

    def test_unreachable_rise_leaves_pad(self, built_palette):
        """Test that a rise no pad depth can reach falls back to the pad alone."""
        with capture_logs() as logs:
            result = BounceGenerator("slime", "platform", rise_range=(40, 40)).generate(
                GeneratorParams(palette=built_palette)
            )

        assert any(log["event"] == "Bounce never cleared its platform, using pad only" for log in logs)
        assert result.start == result.end == ORIGIN
        assert len(result.cells) == 9
        assert not result.children

    def test_steering(self):
        """Test that wide headings are nudged back toward straight ahead."""
        for _ in range(50):
            assert math.radians(45.0) <= bounce_yaw(math.radians(60.0)) <= math.radians(60.0)
            assert math.radians(-60.0) <= bounce_yaw(math.radians(-60.0)) <= math.radians(-45.0)
            assert abs(bounce_yaw(0.0)) <= math.radians(15.0)

    def test_invalid_rise(self):
        """Test that a bounce has to rise at least one cell."""
        with pytest.raises(ValueError):
            BounceGenerator("slime", "platform", rise_range=(0, 2))
        with pytest.raises(ValueError):
            BounceGenerator("slime", "platform", rise_range=(3, 1))
