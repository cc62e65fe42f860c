"""
Built-in course themes.

Themes are built once at import time and shared; they are never mutated.
"""

from typing import Dict, List

from ..core.generators import (
    BlinkBlocksGenerator,
    BounceGenerator,
    CaveGenerator,
    ChainedPreset,
    ComplexCell,
    ComplexGenerator,
    Connector,
    CustomGenerator,
    Direction,
    HeadJumpGenerator,
    IndoorGenerator,
    IslandGenerator,
    MultiCustomGenerator,
    RunUpGenerator,
    SingleCustomPreset,
    SingleGenerator,
    SnakeGenerator,
)
from ..core.grid import GridPos
from ..core.materials import CellSpec, Material, MaterialCollection, MaterialKind, Palette
from ..core.theme import Theme
from ..core.weighted import WeightedList

WATER = Material("water", MaterialKind.LIQUID)


def _overworld_palette() -> Palette:
    palette = Palette()
    palette.add("platform", MaterialCollection.of(
        Material("stone"), Material("cobblestone"), Material("andesite"), Material("oak_planks"),
    ))
    palette.add("grass", MaterialCollection.of(Material("grass_block")))
    palette.add("dirt", MaterialCollection.of(Material("dirt")))
    palette.add("stone", MaterialCollection.of(Material("stone")))
    palette.add("water", MaterialCollection.of(WATER))
    palette.add("cave", MaterialCollection.of(
        Material("stone"), Material("deepslate"), Material("tuff"), uniform=True,
    ))
    palette.add("walls", MaterialCollection.of(
        Material("stone_bricks"), Material("bricks"), Material("polished_blackstone_bricks"), uniform=True,
    ))
    palette.add("floor", MaterialCollection.of(WATER))
    palette.add("slab", MaterialCollection.of(Material("stone_slab", properties=(("type", "bottom"),))))
    palette.add("stairs", MaterialCollection.of(
        Material("stone_brick_stairs", properties=(("facing", "north"), ("half", "bottom"))),
    ))
    palette.add("ramp", MaterialCollection.of(Material("stone_bricks")))
    palette.add("ramp_slab", MaterialCollection.of(Material("stone_brick_slab")))
    palette.add("slime", MaterialCollection.of(Material("slime_block")))
    return palette


def _step_up_preset() -> SingleCustomPreset:
    return SingleCustomPreset(
        cells={
            GridPos(0, 0, 0): CellSpec("platform"),
            GridPos(0, 0, 1): CellSpec("stairs", (("facing", "south"),)),
            GridPos(0, 1, 2): CellSpec("platform"),
            GridPos(1, 1, 2): CellSpec("slab"),
        },
        start=GridPos(0, 0, 0),
        end=GridPos(0, 1, 2),
    )


def _ledge_preset() -> SingleCustomPreset:
    return SingleCustomPreset(
        cells={
            GridPos(0, 0, 0): CellSpec("platform"),
            GridPos(1, 0, 0): CellSpec("slab"),
            GridPos(1, 0, 1): CellSpec("slab"),
            GridPos(2, 0, 2): CellSpec("platform"),
        },
        start=GridPos(0, 0, 0),
        end=GridPos(2, 0, 2),
    )


def _pillar_preset() -> SingleCustomPreset:
    return SingleCustomPreset(
        cells={
            GridPos(0, 0, 0): CellSpec("platform"),
            GridPos(0, -1, 0): CellSpec("stone"),
            GridPos(0, -2, 0): CellSpec("stone"),
        },
        start=GridPos(0, 0, 0),
        end=GridPos(0, 0, 0),
    )


def _preset_chain() -> MultiCustomGenerator:
    presets = {
        "step_up": ChainedPreset(_step_up_preset(), nexts=("ledge", "pillar")),
        "ledge": ChainedPreset(_ledge_preset(), nexts=("pillar", "step_up"), fixed_offset=GridPos(0, 0, 1)),
        "pillar": ChainedPreset(_pillar_preset(), nexts=("step_up", "ledge")),
    }
    return MultiCustomGenerator(
        presets=presets,
        starts=WeightedList([("pillar", 2.0), ("step_up", 1.0)]),
        ends=WeightedList([("pillar", 1.0)]),
        min_length=2,
        max_length=4,
    )


def _overworld() -> Theme:
    generators = WeightedList([
        (SingleGenerator("platform"), 12.0),
        (IslandGenerator("grass", "dirt", "stone", "water"), 1.0),
        (CaveGenerator("cave"), 1.0),
        (IndoorGenerator("walls", "platform", floor="floor"), 1.0),
        (CustomGenerator(_step_up_preset(), allow_mirror=True), 2.0),
        (_preset_chain(), 1.0),
        (HeadJumpGenerator("platform"), 1.0),
        (RunUpGenerator("ramp", "ramp_slab"), 1.0),
        (BounceGenerator("slime", "platform"), 1.0),
    ])
    return Theme("overworld", generators, _overworld_palette(), fallback="platform")


def _blink() -> Theme:
    palette = Palette()
    palette.add("platform", MaterialCollection.of(Material("quartz_block")))
    palette.add("on", MaterialCollection.of(Material("lime_concrete")))
    palette.add("off", MaterialCollection.of(Material("red_concrete")))
    palette.add("snake", MaterialCollection.of(
        Material("light_blue_wool"), Material("cyan_wool"), Material("blue_wool"),
    ))

    generators = WeightedList([
        (SingleGenerator("platform"), 4.0),
        (BlinkBlocksGenerator("on", "off"), 2.0),
        (SnakeGenerator("snake", snake_length=6, delay=10), 1.0),
        (SnakeGenerator("snake", snake_count=2, snake_length=4, delay=8, reverse=True), 1.0),
    ])
    return Theme("blink", generators, palette, fallback="platform")


def _maze_cells() -> List[ComplexCell]:
    straight = ComplexCell(
        top=Connector("maze_path", Direction.BOTTOM),
        bottom=Connector("maze_path", Direction.TOP),
    )
    turn = ComplexCell(
        bottom=Connector("maze_path", Direction.LEFT),
        left=Connector("maze_path", Direction.BOTTOM),
    )
    crossing = ComplexCell(
        top=Connector("maze_path", Direction.BOTTOM),
        bottom=Connector("maze_path", Direction.TOP),
        left=Connector("maze_bridge", Direction.RIGHT),
        right=Connector("maze_bridge", Direction.LEFT),
    )
    return [straight, turn, crossing]


def _maze() -> Theme:
    palette = Palette()
    palette.add("platform", MaterialCollection.of(Material("prismarine")))
    palette.add("maze_path", MaterialCollection.of(Material("prismarine_bricks")))
    palette.add("maze_bridge", MaterialCollection.of(Material("dark_prismarine")))
    palette.add("maze_filler", MaterialCollection.of(Material("sea_lantern")))

    generators = WeightedList([
        (SingleGenerator("platform"), 3.0),
        (ComplexGenerator(tuple(_maze_cells()), "maze_filler"), 1.0),
    ])
    return Theme("maze", generators, palette, fallback="platform")


def _single() -> Theme:
    palette = Palette()
    palette.add("platform", MaterialCollection.of(Material("stone")))
    return Theme("single", WeightedList([(SingleGenerator("platform"), 1.0)]), palette)


THEMES: Dict[str, Theme] = {
    theme.name: theme for theme in (_overworld(), _blink(), _maze(), _single())
}


def get_theme(name: str) -> Theme:
    """
    Get a built-in theme by name.

    Args:
        name: Theme name

    Returns:
        Theme
    """
    if name not in THEMES:
        raise ValueError(f"Unknown theme: {name}. Available: {list_themes()}")
    return THEMES[name]


def list_themes() -> List[str]:
    """List available theme names."""
    return list(THEMES.keys())
