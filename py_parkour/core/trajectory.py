"""
Deterministic tick-based jump simulator.

This is the reachability oracle for the whole generator: it is used both to
decide where a segment lands and, independently, to validate that decision.
Identical (position, velocity, heading) inputs always produce bit-identical
ticks; there is no randomness and no shared state in this module.

Movement model (per tick, airborne):
- input acceleration along the heading, scaled by the air control speed
- position integrated by the updated velocity
- gravity then drag on the vertical velocity
- friction on the horizontal velocity
"""

import math
from typing import Callable, List, NamedTuple, Optional, Set, Tuple

import numpy as np

from .grid import GridPos, Line3, Vec3, get_edge_of_block

# Constants are single-precision values widened to double
FRICTION = 0.9100000262260437
BLOCK_FRICTION = 0.6000000238418579
GRAVITY = 0.08
DRAG = 0.9800000190734863
GROUND_SPEED = 0.13000001013278961
AIR_SPEED = 0.019999999552965164
INPUT_ACCEL = 0.98
ON_GROUND = False

RUNNING_SPEED = 0.28
RUN_JUMP_SPEED = 0.47
JUMP_VELOCITY = 0.42
HEAD_HIT_HEIGHT = 0.2

# Bounding box used for intersection tests, slightly larger than the agent
BOX_WIDTH = 0.8
BOX_HEIGHT = 2.0

# Upper bound for one simulated jump; a running jump lands well within this
MAX_JUMP_TICKS = 200


def _friction_influenced_speed(friction: float) -> float:
    if ON_GROUND:
        return GROUND_SPEED * (0.21600002 / (friction * friction * friction))
    return AIR_SPEED


def _input_vector(accel: np.ndarray, speed: float, yaw: float) -> np.ndarray:
    length_sq = float(accel @ accel)
    if length_sq < 1.0e-7:
        return np.zeros(3)

    if length_sq > 1.0:
        accel = accel / math.sqrt(length_sq)
    scaled = accel * speed

    sin = math.sin(yaw)
    cos = math.cos(yaw)
    return np.array(
        [
            scaled[0] * cos - scaled[2] * sin,
            scaled[1],
            scaled[2] * cos + scaled[0] * sin,
        ]
    )


class TrajectoryState:
    """Position, velocity and heading of the simulated agent at one tick."""

    __slots__ = ("pos", "vel", "yaw")

    def __init__(self, pos, vel, yaw: float):
        pos = np.array(pos, dtype=np.float64)
        vel = np.array(vel, dtype=np.float64)
        pos.setflags(write=False)
        vel.setflags(write=False)
        self.pos = pos
        self.vel = vel
        self.yaw = float(yaw)

    @classmethod
    def running_jump_vec(cls, pos: Vec3, yaw: float) -> "TrajectoryState":
        """Running jump starting exactly at ``pos``."""
        vel = (
            -RUN_JUMP_SPEED * math.sin(yaw),
            JUMP_VELOCITY,
            RUN_JUMP_SPEED * math.cos(yaw),
        )
        return cls(pos, vel, yaw)

    @classmethod
    def running_jump_block(cls, cell: GridPos, yaw: float) -> "TrajectoryState":
        """Running jump from the top of ``cell``."""
        return cls.running_jump_vec(get_edge_of_block(cell.offset(dy=1), yaw), yaw)

    @classmethod
    def head_hit_jump(cls, cell: GridPos, yaw: float) -> "TrajectoryState":
        """A jump cut short by a low ceiling one cell ahead of ``cell``."""
        x, y, z = get_edge_of_block(cell, yaw, 1.0)
        vel = (-RUNNING_SPEED * math.sin(yaw), 0.0, RUNNING_SPEED * math.cos(yaw))
        return cls((x, y + 1.0 + HEAD_HIT_HEIGHT, z), vel, yaw)

    def _accel(self) -> np.ndarray:
        return np.array(
            [-INPUT_ACCEL * math.sin(self.yaw), 0.0, INPUT_ACCEL * math.cos(self.yaw)]
        )

    def tick(self) -> "TrajectoryState":
        """Advance one tick, returning the new state."""
        vel = self.vel + _input_vector(
            self._accel(), _friction_influenced_speed(BLOCK_FRICTION), self.yaw
        )
        pos = self.pos + vel

        vel[1] -= GRAVITY
        vel[1] *= DRAG
        vel[0] *= FRICTION
        vel[2] *= FRICTION

        return TrajectoryState(pos, vel, self.yaw)

    def with_yaw(self, yaw: float) -> "TrajectoryState":
        return TrajectoryState(self.pos, self.vel, yaw)

    def get_block_pos(self) -> GridPos:
        """The cell below the agent's feet."""
        return GridPos(
            math.floor(self.pos[0]),
            math.floor(self.pos[1]) - 1,
            math.floor(self.pos[2]),
        )

    def get_intersected_blocks(self) -> Set[GridPos]:
        """Cells touched by the agent's bounding box, sampled on a 3x3x3 lattice."""
        base_x = self.pos[0] - BOX_WIDTH / 2.0
        base_y = self.pos[1]
        base_z = self.pos[2] - BOX_WIDTH / 2.0

        cells = set()
        for i in range(3):
            for j in range(3):
                for k in range(3):
                    cells.add(
                        GridPos(
                            math.floor(base_x + i * BOX_WIDTH / 2.0),
                            math.floor(base_y + j * BOX_HEIGHT / 2.0),
                            math.floor(base_z + k * BOX_WIDTH / 2.0),
                        )
                    )
        return cells

    def position(self) -> Vec3:
        return (float(self.pos[0]), float(self.pos[1]), float(self.pos[2]))

    def get_state_in_ticks(self, ticks: int) -> Tuple["TrajectoryState", List[Line3]]:
        """State after ``ticks`` ticks, plus the trace lines along the way."""
        state = self
        lines = []
        for _ in range(ticks):
            new_state = state.tick()
            lines.append(Line3(state.position(), new_state.position()))
            state = new_state
        return state, lines

    def offset(self, by: GridPos) -> "TrajectoryState":
        return TrajectoryState(self.pos + np.array(by, dtype=np.float64), self.vel, self.yaw)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TrajectoryState):
            return NotImplemented
        return (
            np.array_equal(self.pos, other.pos)
            and np.array_equal(self.vel, other.vel)
            and self.yaw == other.yaw
        )

    def __repr__(self) -> str:
        return f"TrajectoryState(pos={self.position()}, vel={tuple(self.vel)}, yaw={self.yaw:.4f})"


def can_reach(from_pos: Vec3, to: GridPos) -> bool:
    """
    Check whether one running jump from ``from_pos`` aimed at ``to`` reaches it.

    The jump counts as reaching the cell once the agent is above it (within one
    cell horizontally) at or above its height; it fails once the agent is
    falling below the cell's height.
    """
    target_x = to.x + 0.5
    target_z = to.z + 0.5
    yaw = math.atan2(-(target_x - from_pos[0]), target_z - from_pos[2])

    state = TrajectoryState.running_jump_vec(from_pos, yaw)

    for _ in range(MAX_JUMP_TICKS):
        cell = state.get_block_pos()
        if cell.y >= to.y and abs(state.pos[0] - target_x) <= 1.0 and abs(state.pos[2] - target_z) <= 1.0:
            return True
        if cell.y < to.y and state.vel[1] < 0.0:
            return False
        state = state.tick()

    return False


class JumpSimulation(NamedTuple):
    """A simulated jump from its initial state to its landing state."""

    initial: TrajectoryState
    state: TrajectoryState
    ticks: int
    lines: List[Line3]
    cells: Set[GridPos]

    @property
    def landing(self) -> GridPos:
        return self.state.get_block_pos()


def simulate_jump(
    initial: TrajectoryState,
    target_y: float,
    reject: Optional[Callable[[TrajectoryState], bool]] = None,
) -> Optional[JumpSimulation]:
    """
    Tick ``initial`` until it stops rising at or below ``target_y``.

    Every accepted tick adds a trace line and the cells its bounding box
    intersects. The landing is the block under the last accepted state.

    Args:
        initial: State the jump starts from
        target_y: Height the jump has to come down to
        reject: Called with every new state; returning True abandons the jump

    Returns:
        The simulation, or None if the jump was rejected or never came down
    """
    state = initial
    lines = []
    cells = set()

    for ticks in range(MAX_JUMP_TICKS):
        new_state = state.tick()
        if reject is not None and reject(new_state):
            return None

        if new_state.vel[1] > 0.0 or new_state.pos[1] > target_y:
            lines.append(Line3(state.position(), new_state.position()))
            state = new_state
            cells |= state.get_intersected_blocks()
        else:
            return JumpSimulation(initial, state, ticks, lines, cells)

    return None
