"""
Segment orchestrator.

Drives a course one segment at a time: finds a landing cell by simulating a
jump from the previous segment's exit, checks the landing does not create a
shortcut onto earlier geometry, asks a theme generator for the next segment
and places it so its start sits on the landing.

The host owns the ``Course`` (one per session) and passes it in; the
generator itself keeps no per-course state.
"""

import dataclasses
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Set

import structlog

from ..config.config import Settings, settings as default_settings
from ..utils.random import random_yaw
from .environment import GridEnvironment
from .generators.base import GeneratorParams, SegmentGenerator
from .grid import ORIGIN, GridPos, JumpDirection, Line3, Vec3
from .segment import GenerateResult, JumpPlan, Segment
from .theme import Theme
from .trajectory import JumpSimulation, TrajectoryState, can_reach, simulate_jump

logger = structlog.get_logger()

# Landing validation looks for earlier geometry within this neighbourhood
SHORTCUT_VERTICAL_RANGE = 2
SHORTCUT_HORIZONTAL_RANGE = 5

# Headings tried in order once the random landing search is exhausted
FALLBACK_YAWS = (0.0, math.pi / 6, -math.pi / 6, math.pi / 3, -math.pi / 3)


class CourseGenerationError(RuntimeError):
    """Raised when a course cannot be extended without breaking its landing rules."""


@dataclass
class Course:
    """
    Per-session course state.

    Segments are numbered in generation order; the cell indexes map absolute
    positions to the number of the segment that placed them.
    """

    anchor: GridPos
    segments: Deque[Segment] = field(default_factory=deque)
    target_y: Optional[int] = None
    jump_cells: Set[GridPos] = field(default_factory=set)
    occupied: Dict[GridPos, int] = field(default_factory=dict)
    solid: Dict[GridPos, int] = field(default_factory=dict)
    first_number: int = 0

    @property
    def last(self) -> Segment:
        return self.segments[-1]

    @property
    def last_number(self) -> int:
        return self.first_number + len(self.segments) - 1

    def __len__(self) -> int:
        return len(self.segments)

    def direction(self) -> JumpDirection:
        """Vertical hint for the next jump."""
        if self.target_y is None or not self.segments:
            return JumpDirection.NONE
        end_y = self.last.absolute_end.y
        if end_y < self.target_y:
            return JumpDirection.UP
        if end_y > self.target_y:
            return JumpDirection.DOWN
        return JumpDirection.NONE

    def update_target(self, height_band: int) -> None:
        """Steer back to the anchor height once one more jump could leave the band."""
        end_y = self.last.absolute_end.y
        if abs(end_y - self.anchor.y) + 2 > height_band:
            self.target_y = self.anchor.y
        elif end_y == self.anchor.y:
            self.target_y = None

    def _index(self, number: int, segment: Segment) -> None:
        for pos in segment.occupied_cells():
            self.occupied[pos] = number
        for pos in segment.solid_cells():
            self.solid[pos] = number
        self.jump_cells |= segment.jump_cells

    def _rebuild_index(self) -> None:
        self.occupied = {}
        self.solid = {}
        self.jump_cells = set()
        for number, segment in enumerate(self.segments, start=self.first_number):
            self._index(number, segment)

    def append(self, segment: Segment) -> None:
        self.segments.append(segment)
        self._index(self.last_number, segment)

    def replace_last(self, segment: Segment) -> None:
        self.segments[-1] = segment
        self.jump_cells |= segment.jump_cells

    def pop_oldest(self) -> Segment:
        segment = self.segments.popleft()
        self.first_number += 1
        self._rebuild_index()
        return segment

    def reached_index(self, position: Vec3) -> Optional[int]:
        """Index in ``segments`` of the newest segment the agent stands on."""
        for i in range(len(self.segments) - 1, -1, -1):
            if self.segments[i].has_reached(position):
                return i
        return None


class CourseGenerator:
    """Generates segments for courses of one theme."""

    def __init__(self, theme: Theme, settings: Optional[Settings] = None):
        self.theme = theme
        self.settings = settings or default_settings

    def _params(
        self, palette, direction=JumpDirection.NONE, yaw=0.0, jump_cells=frozenset(), lines=(), approach=None
    ) -> GeneratorParams:
        return GeneratorParams(
            palette=palette,
            direction=direction,
            yaw=yaw,
            jump_cells=jump_cells,
            lines=list(lines),
            approach=approach,
            max_platform_attempts=self.settings.max_platform_attempts,
            max_search_restarts=self.settings.max_search_restarts,
        )

    def _make_segment(
        self,
        generator: SegmentGenerator,
        result: GenerateResult,
        offset: GridPos,
        jump: Optional[JumpSimulation] = None,
    ) -> Segment:
        lines: List[Line3] = list(jump.lines) if jump is not None else []
        lines.extend(line.offset(offset) for line in result.lines)

        plan = None
        if jump is not None:
            plan = JumpPlan(
                initial=jump.initial,
                ticks=jump.ticks,
                landing=jump.landing,
                lines=tuple(jump.lines),
                cells=frozenset(jump.cells),
            )

        return Segment(
            kind=generator.kind.value,
            cells=result.cells,
            offset=offset,
            end_state=TrajectoryState.running_jump_block(result.end + offset, random_yaw()),
            start=result.start,
            end=result.end,
            children=tuple(result.children),
            timed_cells=result.timed_cells,
            lines=tuple(lines),
            plan=plan,
        )

    def start_course(self, anchor: Optional[Iterable[int]] = None) -> Course:
        """Create a course whose first segment starts on ``anchor``."""
        anchor = GridPos(*(anchor if anchor is not None else self.settings.anchor))
        course = Course(anchor=anchor)

        generator = self.theme.random_generator()
        params = self._params(self.theme.build_palette(), yaw=random_yaw())
        result = generator.generate(params)

        segment = self._make_segment(generator, result, anchor - result.start)
        course.append(segment)
        course.update_target(self.settings.height_band)

        logger.info(
            "Course started",
            theme=self.theme.name,
            anchor=anchor,
            kind=segment.kind,
            cells=len(segment.cells),
        )
        return course

    def _collides(self, course: Course, state: TrajectoryState) -> bool:
        return any(pos in course.solid for pos in state.get_intersected_blocks())

    def is_valid_landing(self, course: Course, landing: GridPos) -> bool:
        """
        Check a landing does not reuse or shortcut onto earlier geometry.

        Rejects cells already jumped through or placed, and cells close to
        (and reachable in one jump from) any segment but the predecessor.
        """
        if landing in course.jump_cells or landing in course.occupied:
            return False

        predecessor = course.last_number
        h = SHORTCUT_HORIZONTAL_RANGE
        v = SHORTCUT_VERTICAL_RANGE
        for dx in range(-h, h + 1):
            for dz in range(-h, h + 1):
                for dy in range(-v, v + 1):
                    pos = landing.offset(dx, dy, dz)
                    owner = course.solid.get(pos)
                    if owner is None or owner == predecessor:
                        continue
                    if can_reach((pos.x + 0.5, pos.y + 1.0, pos.z + 0.5), landing):
                        return False
        return True

    def _find_landing(self, course: Course, direction: JumpDirection) -> Optional[JumpSimulation]:
        prev = course.last
        exit_cell = prev.absolute_end

        for attempt in range(self.settings.max_landing_attempts):
            initial = prev.end_state if attempt == 0 else TrajectoryState.running_jump_block(exit_cell, random_yaw())
            target_y = math.floor(initial.pos[1]) + direction.get_y_offset()

            jump = simulate_jump(initial, target_y, lambda state: self._collides(course, state))
            if jump is None:
                continue
            if self.is_valid_landing(course, jump.landing):
                logger.debug("Landing found", landing=jump.landing, attempts=attempt + 1)
                return jump

        return None

    def _fallback_landing(self, course: Course, direction: JumpDirection) -> JumpSimulation:
        """
        Try fixed headings at every height the hint allows.

        Fallback jumps go through the same collision and landing checks as
        sampled ones.

        Raises:
            CourseGenerationError: If no fixed heading gives a valid landing
        """
        exit_cell = course.last.absolute_end

        for yaw in FALLBACK_YAWS:
            initial = TrajectoryState.running_jump_block(exit_cell, yaw)
            for dy in direction.y_offsets():
                jump = simulate_jump(
                    initial,
                    math.floor(initial.pos[1]) + dy,
                    lambda state: self._collides(course, state),
                )
                if jump is None or not self.is_valid_landing(course, jump.landing):
                    continue

                logger.warning(
                    "Landing search exhausted, using fixed heading",
                    exit=exit_cell,
                    landing=jump.landing,
                    yaw=yaw,
                    attempts=self.settings.max_landing_attempts,
                    direction=direction.value,
                )
                return jump

        logger.error(
            "No valid landing",
            exit=exit_cell,
            attempts=self.settings.max_landing_attempts,
            direction=direction.value,
        )
        raise CourseGenerationError(f"No valid landing from {exit_cell}")

    def _fits(self, course: Course, result: GenerateResult, offset: GridPos, approach: Set[GridPos]) -> bool:
        for pos in result.all_positions():
            if pos + offset in course.occupied:
                return False
        for pos in result.solid_positions():
            if pos + offset in approach:
                return False
        for pos in result.path_cells:
            if pos + offset in course.solid:
                return False
        return True

    def next_segment(self, course: Course) -> Segment:
        """Generate, validate and append the next segment of ``course``."""
        direction = course.direction()

        jump = self._find_landing(course, direction)
        if jump is None:
            jump = self._fallback_landing(course, direction)
        landing = jump.landing

        approach = frozenset(jump.cells)

        relative_cells: FrozenSet[GridPos] = frozenset(pos - landing for pos in approach)
        relative_lines = [line.offset(ORIGIN - landing) for line in jump.lines]

        generator = None
        result = None
        for attempt in range(self.settings.max_generation_attempts):
            candidate = self.theme.random_generator()
            params = self._params(
                self.theme.build_palette(),
                direction=direction,
                yaw=jump.state.yaw,
                jump_cells=relative_cells,
                lines=relative_lines,
                approach=jump.state.offset(ORIGIN - landing),
            )
            generated = candidate.generate(params)
            if self._fits(course, generated, landing - generated.start, approach):
                generator, result = candidate, generated
                break
            logger.debug("Generated segment collides, retrying", kind=candidate.kind.value, attempt=attempt)

        if result is None:
            logger.warning(
                "No generator result fits, using single cell",
                landing=landing,
                attempts=self.settings.max_generation_attempts,
            )
            generator = self.theme.fallback_generator()
            result = generator.generate(self._params(self.theme.build_palette(), direction=direction))
            if not self._fits(course, result, landing - result.start, approach):
                logger.error("Single cell does not fit at landing", landing=landing)
                raise CourseGenerationError(f"Nothing fits at landing {landing}")

        # The predecessor owns the cells its exit jump passed through
        course.replace_last(dataclasses.replace(course.last, jump_cells=approach))
        segment = self._make_segment(generator, result, landing - result.start, jump)
        course.append(segment)
        course.update_target(self.settings.height_band)

        logger.info(
            "Segment generated",
            kind=segment.kind,
            landing=landing,
            end=segment.absolute_end,
            direction=direction.value,
            target_y=course.target_y,
        )
        return segment

    def extend(self, course: Course, count: int) -> List[Segment]:
        return [self.next_segment(course) for _ in range(count)]

    def advance(self, course: Course, position: Vec3, env: Optional[GridEnvironment] = None) -> int:
        """
        Drop segments behind the agent and top the course back up.

        Returns the number of segments generated. New segments are placed in
        ``env`` and dropped ones removed from it when an environment is given.
        """
        reached = course.reached_index(position)
        if reached:
            for _ in range(reached):
                old = course.pop_oldest()
                if env is not None:
                    old.remove(env)

        missing = self.settings.lookahead_segments - len(course)
        added = self.extend(course, max(0, missing))
        if env is not None:
            for segment in added:
                segment.place(env)
        return len(added)
