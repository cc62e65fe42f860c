"""
Segment generator variants.
"""

from .base import GeneratorKind, GeneratorParams, SegmentGenerator
from .blink import BlinkBlocksGenerator
from .bounce import BounceGenerator
from .cave import CaveGenerator
from .complex import ComplexCell, ComplexGenerator, Connector, Direction
from .custom import ChainedPreset, CustomGenerator, MultiCustomGenerator, SingleCustomPreset
from .head_jump import HeadJumpGenerator
from .indoor import IndoorGenerator
from .island import IslandGenerator
from .run_up import RunUpGenerator
from .single import SingleGenerator
from .snake import SnakeGenerator

__all__ = ['GeneratorKind', 'GeneratorParams', 'SegmentGenerator',
           'BlinkBlocksGenerator', 'BounceGenerator', 'CaveGenerator', 'ComplexCell',
           'ComplexGenerator', 'Connector', 'Direction', 'ChainedPreset', 'CustomGenerator',
           'MultiCustomGenerator', 'SingleCustomPreset', 'HeadJumpGenerator',
           'IndoorGenerator', 'IslandGenerator', 'RunUpGenerator', 'SingleGenerator',
           'SnakeGenerator']
