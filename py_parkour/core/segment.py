"""
Generated course units.

A generator returns a ``GenerateResult`` in coordinates relative to its own
start cell; the orchestrator wraps it in a ``Segment`` with an absolute offset,
the state the agent leaves it with and the jump that reached it.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple

from .environment import GridEnvironment
from .grid import GridPos, Line3, Vec3, get_player_floor_blocks
from .materials import AIR, Material
from .schedule import TimedMaterialSchedule
from .trajectory import TrajectoryState

CellMap = Dict[GridPos, Material]
TimedCellMap = Dict[GridPos, TimedMaterialSchedule]


def _relative(position: Vec3, offset: GridPos) -> Vec3:
    return (position[0] - offset.x, position[1] - offset.y, position[2] - offset.z)


def _apply_schedule(env: GridEnvironment, pos: GridPos, schedule: TimedMaterialSchedule, tick: int) -> None:
    variant = schedule.query(tick)
    # Non-solid variants are drawn by the host as displays, the cell stays open
    env.set_cell(pos, variant.material if variant.solid else AIR)


@dataclass
class ChildLayout:
    """A sub-layout of a segment, scored separately by the host."""

    cells: CellMap = field(default_factory=dict)
    timed_cells: TimedCellMap = field(default_factory=dict)
    reached: bool = False

    def positions(self) -> Set[GridPos]:
        return set(self.cells) | set(self.timed_cells)

    def has_reached(self, position: Vec3, offset: GridPos) -> bool:
        """Mark and report the first time the agent stands on this child."""
        if self.reached:
            return False

        positions = self.positions()
        for pos in get_player_floor_blocks(_relative(position, offset)):
            if pos in positions:
                self.reached = True
                return True
        return False


@dataclass
class GenerateResult:
    """Output of a generator, relative to its start cell's frame."""

    start: GridPos
    end: GridPos
    cells: CellMap = field(default_factory=dict)
    lines: List[Line3] = field(default_factory=list)
    children: List[ChildLayout] = field(default_factory=list)
    timed_cells: TimedCellMap = field(default_factory=dict)
    # Cells crossed by jumps inside the result; they must stay clear of earlier segments
    path_cells: Set[GridPos] = field(default_factory=set)

    def all_positions(self) -> Set[GridPos]:
        positions = set(self.cells) | set(self.timed_cells)
        for child in self.children:
            positions |= child.positions()
        return positions

    def solid_positions(self) -> Set[GridPos]:
        """Cells an agent could collide with: solid cells and every timed cell."""
        solid = {pos for pos, material in self.cells.items() if material.is_solid}
        solid |= set(self.timed_cells)
        for child in self.children:
            solid |= {pos for pos, material in child.cells.items() if material.is_solid}
            solid |= set(child.timed_cells)
        return solid


@dataclass(frozen=True)
class JumpPlan:
    """
    The simulated jump that reached a segment.

    Replaying ``initial`` for ``ticks`` ticks ends on a state whose block
    position is ``landing``.
    """

    initial: TrajectoryState
    ticks: int
    landing: GridPos
    lines: Tuple[Line3, ...]
    cells: FrozenSet[GridPos]

    def replay(self) -> GridPos:
        state, _ = self.initial.get_state_in_ticks(self.ticks)
        return state.get_block_pos()


@dataclass(frozen=True)
class Segment:
    """One placed unit of the course."""

    kind: str
    cells: CellMap
    offset: GridPos
    end_state: TrajectoryState
    start: GridPos
    end: GridPos
    children: Tuple[ChildLayout, ...] = ()
    timed_cells: TimedCellMap = field(default_factory=dict)
    lines: Tuple[Line3, ...] = ()
    jump_cells: FrozenSet[GridPos] = frozenset()
    plan: Optional[JumpPlan] = None

    @property
    def absolute_start(self) -> GridPos:
        return self.start + self.offset

    @property
    def absolute_end(self) -> GridPos:
        return self.end + self.offset

    def iter_cells(self) -> Iterator[Tuple[GridPos, Material]]:
        """Absolute (position, material) pairs of static cells, children included."""
        for pos, material in self.cells.items():
            yield pos + self.offset, material
        for child in self.children:
            for pos, material in child.cells.items():
                yield pos + self.offset, material

    def iter_timed_cells(self) -> Iterator[Tuple[GridPos, TimedMaterialSchedule]]:
        for pos, schedule in self.timed_cells.items():
            yield pos + self.offset, schedule
        for child in self.children:
            for pos, schedule in child.timed_cells.items():
                yield pos + self.offset, schedule

    def occupied_cells(self) -> Set[GridPos]:
        """Absolute positions of every cell this segment writes."""
        cells = {pos for pos, _ in self.iter_cells()}
        cells |= {pos for pos, _ in self.iter_timed_cells()}
        return cells

    def solid_cells(self) -> Set[GridPos]:
        cells = {pos for pos, material in self.iter_cells() if material.is_solid}
        cells |= {pos for pos, _ in self.iter_timed_cells()}
        return cells

    def place(self, env: GridEnvironment, tick: int = 0) -> None:
        for pos, material in self.iter_cells():
            env.set_cell(pos, material)
        self.update_timed_cells(env, tick)

    def remove(self, env: GridEnvironment) -> None:
        for pos in self.occupied_cells():
            env.remove_cell(pos)

    def update_timed_cells(self, env: GridEnvironment, tick: int) -> None:
        for pos, schedule in self.iter_timed_cells():
            _apply_schedule(env, pos, schedule, tick)

    def has_reached(self, position: Vec3) -> bool:
        """True if the agent at ``position`` stands on any cell of this segment."""
        floor = get_player_floor_blocks(_relative(position, self.offset))
        for pos in floor:
            if pos in self.cells or pos in self.timed_cells:
                return True
            for child in self.children:
                if pos in child.cells or pos in child.timed_cells:
                    return True
        return False

    def has_reached_child(self, position: Vec3) -> int:
        """
        Number of children newly reached at ``position``.

        Reaching a later child marks every earlier one as reached as well.
        """
        reached_count = 0
        for i, child in enumerate(self.children):
            if child.reached:
                reached_count += 1
                continue
            if child.has_reached(position, self.offset):
                for earlier in self.children[:i]:
                    earlier.reached = True
                return i - reached_count + 1
        return 0

    def unreached_child_count(self) -> int:
        return sum(1 for child in self.children if not child.reached)
