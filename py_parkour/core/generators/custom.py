"""
Hand-made presets.

``CustomGenerator`` places one fixed preset. ``MultiCustomGenerator`` chains
named presets, either with a fixed offset between them or by a simulated
jump.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from ...utils.random import gen_bool, gen_range, get_rng, random_yaw
from ..grid import GridPos, ORIGIN
from ..materials import BuiltPalette, CellSpec, Material
from ..segment import ChildLayout, GenerateResult
from ..trajectory import TrajectoryState, simulate_jump
from ..weighted import WeightedList
from .base import GeneratorKind, GeneratorParams, SegmentGenerator, check_range

logger = structlog.get_logger()


@dataclass(frozen=True)
class SingleCustomPreset:
    """Fixed cells with a start and an end cell."""

    cells: Dict[GridPos, CellSpec]
    start: GridPos
    end: GridPos

    def material_names(self) -> Iterable[str]:
        return {spec.name for spec in self.cells.values()}

    def mirrored(self) -> "SingleCustomPreset":
        """Mirror along x through the start cell, flipping oriented properties."""
        return SingleCustomPreset(
            {pos.flip_x(self.start): spec.flip_x() for pos, spec in self.cells.items()},
            self.start,
            self.end.flip_x(self.start),
        )

    def build(self, offset: GridPos, palette: BuiltPalette) -> Dict[GridPos, Material]:
        return {pos + offset: spec.resolve(palette) for pos, spec in self.cells.items()}


@dataclass
class CustomGenerator(SegmentGenerator):
    """One preset, optionally mirrored at random."""

    preset: SingleCustomPreset
    allow_mirror: bool = False

    kind = GeneratorKind.CUSTOM

    def material_names(self) -> Iterable[str]:
        return self.preset.material_names()

    def generate(self, params: GeneratorParams) -> GenerateResult:
        preset = self.preset
        if self.allow_mirror and gen_bool():
            preset = preset.mirrored()
        return GenerateResult(
            start=preset.start,
            end=preset.end,
            cells=preset.build(ORIGIN, params.palette),
        )


@dataclass(frozen=True)
class ChainedPreset:
    """
    A preset in a chain.

    ``nexts`` names the presets that may follow. With a ``fixed_offset`` the
    preset is placed that far from the previous end; otherwise it is reached
    by a jump.
    """

    preset: SingleCustomPreset
    nexts: Tuple[str, ...] = ()
    fixed_offset: Optional[GridPos] = None


@dataclass
class MultiCustomGenerator(SegmentGenerator):
    presets: Dict[str, ChainedPreset]
    starts: WeightedList[str]
    ends: WeightedList[str]
    min_length: int = 2
    max_length: int = 4

    kind = GeneratorKind.MULTI_CUSTOM

    def __post_init__(self):
        check_range("preset chain length", (self.min_length, self.max_length))
        if self.min_length < 0:
            raise ValueError(f"Preset chain length must not be negative, got {self.min_length}")

        if not len(self.starts) or not len(self.ends):
            raise ValueError("Preset chain needs start and end presets")

        followed = set(self.starts)
        for chained in self.presets.values():
            followed.update(chained.nexts)

        missing = sorted((followed | set(self.ends)) - set(self.presets))
        if missing:
            raise ValueError(f"Unknown preset names: {missing}")

        if self.max_length > 1:
            stuck = sorted(name for name in followed if not self.presets[name].nexts)
            if stuck:
                raise ValueError(f"Presets without next presets: {stuck}")

    def material_names(self) -> Iterable[str]:
        names = set()
        for chained in self.presets.values():
            names.update(chained.preset.material_names())
        return sorted(names)

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        remaining = gen_range(self.min_length, self.max_length)

        children: List[ChildLayout] = []
        lines = []
        end_pos = ORIGIN
        name = self.starts.get_random()
        first = True

        while remaining >= 0:
            chained = self.presets[name]
            preset = chained.preset

            if first:
                origin = ORIGIN - preset.start
            elif chained.fixed_offset is not None:
                origin = end_pos + chained.fixed_offset
            else:
                target_y = end_pos.y + 1 + gen_range(-1, 1)
                jump = simulate_jump(TrajectoryState.running_jump_block(end_pos, random_yaw()), target_y)
                if jump is None:
                    logger.warning("Preset jump did not land, ending chain", preset=name)
                    break
                lines.extend(jump.lines)
                origin = jump.landing - preset.start

            child = ChildLayout(preset.build(origin, palette))
            # The agent starts on the first preset
            child.reached = first
            children.append(child)

            end_pos = origin + preset.end
            first = False
            remaining -= 1

            if remaining == 0:
                name = self.ends.get_random()
            elif remaining > 0:
                nexts = chained.nexts
                name = nexts[int(get_rng().integers(len(nexts)))]

        return GenerateResult(start=ORIGIN, end=end_pos, lines=lines, children=children)
