"""
Core course generation functionality.
"""

from .grid import GridPos, JumpDirection, Line3
from .trajectory import TrajectoryState, JumpSimulation, can_reach, simulate_jump
from .materials import Material, MaterialKind, MaterialCollection, Palette, CellSpec, AIR
from .schedule import MaterialVariant, TimedMaterialSchedule
from .segment import GenerateResult, JumpPlan, Segment
from .theme import Theme
from .orchestrator import Course, CourseGenerationError, CourseGenerator
from .environment import GridEnvironment, InMemoryGrid

__all__ = ['GridPos', 'JumpDirection', 'Line3', 'TrajectoryState', 'JumpSimulation',
           'can_reach', 'simulate_jump', 'Material', 'MaterialKind', 'MaterialCollection',
           'Palette', 'CellSpec', 'AIR', 'MaterialVariant', 'TimedMaterialSchedule',
           'GenerateResult', 'JumpPlan', 'Segment', 'Theme', 'Course',
           'CourseGenerationError', 'CourseGenerator', 'GridEnvironment', 'InMemoryGrid']
