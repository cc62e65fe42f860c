"""
Random number generation utilities.

All generation code draws from one shared NumPy ``Generator``. It is unseeded
by default; call ``set_random_seed`` to make a run reproducible (tests do).
"""

import math
from typing import Optional

import numpy as np

# Global generator instance
_rng: Optional[np.random.Generator] = None


def set_random_seed(seed: Optional[int]) -> None:
    """
    Reset the shared generator.

    Args:
        seed: Integer seed, or None for fresh OS entropy
    """
    global _rng

    _rng = np.random.default_rng(seed)


def get_rng() -> np.random.Generator:
    """
    Get the shared generator instance.

    Returns:
        numpy Generator
    """
    global _rng
    if _rng is None:
        _rng = np.random.default_rng()
    return _rng


def gen_range(low: int, high: int) -> int:
    """Random integer in [low, high] inclusive."""
    return int(get_rng().integers(low, high + 1))


def gen_uniform(low: float, high: float) -> float:
    """Random float in [low, high)."""
    return float(get_rng().uniform(low, high))


def gen_bool(probability: float = 0.5) -> bool:
    """True with the given probability."""
    return bool(get_rng().random() < probability)


def random_sign() -> int:
    return 1 if gen_bool() else -1


def random_yaw_dist(degrees: float) -> float:
    """Random heading in (-degrees, degrees), returned in radians."""
    return math.radians(gen_uniform(-degrees, degrees))


def random_yaw() -> float:
    """Random heading within 60 degrees of straight ahead (+z)."""
    return random_yaw_dist(60.0)
