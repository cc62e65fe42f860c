"""
Grid geometry shared by the simulator, the generators and the orchestrator.

Coordinates follow the voxel convention: y is up, +z is "forward" (a heading
of 0 radians), and a heading rotates toward -x as it grows.
"""

import math
from enum import Enum
from typing import List, NamedTuple, Tuple

from ..utils.random import gen_bool, gen_range

# Agent footprint used when testing which floor cells the agent stands on
AGENT_WIDTH = 0.6

Vec3 = Tuple[float, float, float]


class GridPos(NamedTuple):
    """Integer cell coordinate."""

    x: int
    y: int
    z: int

    def __add__(self, other) -> "GridPos":
        return GridPos(self.x + other[0], self.y + other[1], self.z + other[2])

    def __sub__(self, other) -> "GridPos":
        return GridPos(self.x - other[0], self.y - other[1], self.z - other[2])

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "GridPos":
        return GridPos(self.x + dx, self.y + dy, self.z + dz)

    def scale(self, factor: int) -> "GridPos":
        return GridPos(self.x * factor, self.y * factor, self.z * factor)

    def flip_x(self, origin: "GridPos") -> "GridPos":
        """Mirror along the x axis through ``origin``."""
        return GridPos(2 * origin.x - self.x, self.y, self.z)


ORIGIN = GridPos(0, 0, 0)


class Line3(NamedTuple):
    """A straight trace segment between two simulated positions."""

    start: Vec3
    end: Vec3

    def offset(self, by: GridPos) -> "Line3":
        return Line3(
            (self.start[0] + by.x, self.start[1] + by.y, self.start[2] + by.z),
            (self.end[0] + by.x, self.end[1] + by.y, self.end[2] + by.z),
        )


class JumpDirection(str, Enum):
    """Vertical preference for the next jump."""

    UP = "up"
    DOWN = "down"
    NONE = "none"

    def get_y_offset(self) -> int:
        """Target apex offset relative to the current standing height."""
        if self is JumpDirection.UP:
            return 1
        if self is JumpDirection.DOWN:
            return -gen_range(1, 2)
        return gen_range(-1, 1)

    def y_offsets(self) -> Tuple[int, ...]:
        """Every offset ``get_y_offset`` can return, level first."""
        if self is JumpDirection.UP:
            return (1,)
        if self is JumpDirection.DOWN:
            return (-1, -2)
        return (0, -1, 1)

    def go_down(self) -> bool:
        if self is JumpDirection.UP:
            return False
        if self is JumpDirection.DOWN:
            return True
        return gen_bool()


def get_edge_of_block(pos: GridPos, yaw: float, dist: float = 0.0) -> Vec3:
    """Centre of the cell's bottom face, pushed ``dist`` along the heading."""
    return (
        pos.x + 0.5 - math.sin(yaw) * dist,
        float(pos.y),
        pos.z + 0.5 + math.cos(yaw) * dist,
    )


def get_player_floor_blocks(pos: Vec3) -> List[GridPos]:
    """Cells under an agent footprint standing at ``pos``."""
    x, y, z = pos
    if y % 1.0 == 0.0:
        y -= 1.0

    half = AGENT_WIDTH / 2.0
    floor_y = math.floor(y)

    return [
        GridPos(bx, floor_y, bz)
        for bx in range(math.floor(x - half), math.floor(x + half) + 1)
        for bz in range(math.floor(z - half), math.floor(z + half) + 1)
    ]


def get_min_max_yaw(prev: GridPos, width: int) -> Tuple[float, float]:
    """
    Heading limits for a jump inside a volume ``width`` cells wide.

    The sampled heading is ``-uniform(min_yaw, max_yaw)``; each bound shrinks
    as the jump start approaches the corresponding side wall so a five cell
    jump does not leave the interior.
    """
    dist = 5.0
    limit = math.radians(45.0)

    room_left = prev.x - 1
    if room_left >= dist:
        min_yaw = limit
    else:
        min_yaw = min(math.pi / 2 - math.acos(max(room_left, 0) / dist), limit)

    room_right = width - 2 - prev.x
    if room_right >= dist:
        max_yaw = limit
    else:
        max_yaw = min(math.pi / 2 - math.acos(max(room_right, 0) / dist), limit)

    return -min_yaw, max_yaw


def horizontal_dirs() -> List[GridPos]:
    return [GridPos(1, 0, 0), GridPos(-1, 0, 0), GridPos(0, 0, 1), GridPos(0, 0, -1)]
