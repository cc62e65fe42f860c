"""
Island generator.

A disc of noise-shaped terrain. Low parts of the surface are flooded up to
the average height of the far edge; the underside is a stone silhouette that
narrows toward the rim.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
import structlog

from ...utils.random import gen_range, gen_uniform
from ..grid import GridPos, ORIGIN
from ..noise import fbm_noise_map
from ..segment import GenerateResult
from .base import GeneratorKind, GeneratorParams, SegmentGenerator, check_range

logger = structlog.get_logger()

HEIGHT_SCALE = 5.0


def get_x_radius(radius: int, z: int) -> int:
    """Half width of the disc at row ``z`` (relative to the centre)."""
    size = float(radius)
    z = float(z)
    # The rim rows would otherwise be a single cell wide
    if z == -size:
        z = 0.25 - size
    elif z == size:
        z = size - 0.25
    return int(round(math.sqrt(size * size - z * z)))


def get_height(height_map: np.ndarray, x: int, z: int) -> int:
    radius = height_map.shape[1] // 2
    return int(round(height_map[z, x + radius] * HEIGHT_SCALE))


@dataclass
class IslandGenerator(SegmentGenerator):
    grass: str
    dirt: str
    stone: str
    water: str
    min_radius: int = 5
    max_radius: int = 10
    min_point_power: float = 1.0
    max_point_power: float = 1.75

    kind = GeneratorKind.ISLAND

    def __post_init__(self):
        check_range("island radius", (self.min_radius, self.max_radius))
        check_range("island point power", (self.min_point_power, self.max_point_power))
        if self.min_radius < 1:
            raise ValueError(f"Island radius must be positive, got {self.min_radius}")

    def material_names(self) -> Iterable[str]:
        return (self.grass, self.dirt, self.stone, self.water)

    def _edge_heights(self, height_map: np.ndarray, radius: int) -> Tuple[int, Tuple[int, int], Tuple[int, int]]:
        """Average and highest (height, x) of the far row, lowest (height, x) of the near row."""
        far_z = radius * 2
        half = get_x_radius(radius, far_z - radius)

        total = 0
        max_y, max_x = None, 0
        min_y, min_x = None, 0
        for x in range(-half, half + 1):
            y = get_height(height_map, x, far_z)
            total += y
            if max_y is None or y > max_y or (y == max_y and abs(x) < abs(max_x)):
                max_y, max_x = y, x

            y = get_height(height_map, x, 0)
            if min_y is None or y < min_y or (y == min_y and abs(x) < abs(min_x)):
                min_y, min_x = y, x

        # Truncating division, matching integer averages of negative heights
        average = int(total / (half * 2 + 1))
        return average, (max_y, max_x), (min_y, min_x)

    def generate(self, params: GeneratorParams) -> GenerateResult:
        palette = params.palette
        radius = gen_range(self.min_radius, self.max_radius)
        power = gen_uniform(self.min_point_power, self.max_point_power)

        bound = radius / 10.0
        height_map = fbm_noise_map(radius * 2 + 1, (-bound, bound))

        average, (max_y, max_x), (min_start, min_start_x) = self._edge_heights(height_map, radius)

        # Shift so the lowest near-edge cell is the start
        base = GridPos(-min_start_x, -min_start, 0)

        cells = {}
        lowest = None
        for z in range(radius * 2 + 1):
            half = get_x_radius(radius, z - radius)
            for x in range(-half, half + 1):
                y = get_height(height_map, x, z)
                pos = base + (x, y, z)

                if y < average:
                    for dy in range(1, average - y + 1):
                        cells[pos.offset(dy=dy)] = palette.get(self.water)
                    cells[pos] = palette.get(self.dirt)
                else:
                    cells[pos] = palette.get(self.grass)

                cells[pos.offset(dy=-1)] = palette.get(self.dirt)

                if lowest is None or y < lowest:
                    lowest = y

        for z in range(radius * 2 + 1):
            half = get_x_radius(radius, z - radius)
            for x in range(-half, half + 1):
                dist = math.hypot(x, z - radius)
                y = get_height(height_map, x, z)

                down_to = lowest - int(round((radius - dist + 1.0) ** power))
                down_to += int((y - lowest) * (dist / radius) ** 2)

                for stone_y in range(down_to, y):
                    cells[base + (x, stone_y - 1, z)] = palette.get(self.stone)

        end = GridPos(base.x + max_x, base.y + max_y, base.z + radius * 2)

        logger.debug("Island generated", radius=radius, power=power, average=average)

        return GenerateResult(start=ORIGIN, end=end, cells=cells)
