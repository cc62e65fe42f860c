"""
Shared utilities.
"""

from .random import set_random_seed, get_rng

__all__ = ['set_random_seed', 'get_rng']
