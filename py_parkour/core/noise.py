"""
Fractal gradient noise for terrain height fields.

A small NumPy implementation of 2D gradient (Perlin) noise summed over octaves
(fractional Brownian motion). Used by the island generator to shape its
surface.
"""

from typing import Optional, Tuple

import numpy as np

from ..utils.random import get_rng


def _fade(t: np.ndarray) -> np.ndarray:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(a: np.ndarray, b: np.ndarray, t: np.ndarray) -> np.ndarray:
    return a + t * (b - a)


class GradientNoise:
    """
    2D gradient noise with a seeded permutation table.

    Output lies roughly in [-1, 1] and is 0 at every integer lattice point.
    """

    TABLE_SIZE = 256

    def __init__(self, seed: int):
        rng = np.random.default_rng(seed)

        perm = rng.permutation(self.TABLE_SIZE)
        self._perm = np.concatenate([perm, perm])

        angles = rng.uniform(0.0, 2.0 * np.pi, self.TABLE_SIZE)
        self._gradients = np.stack([np.cos(angles), np.sin(angles)], axis=1)

    def _corner(self, xi: np.ndarray, yi: np.ndarray, dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
        gradient = self._gradients[self._perm[self._perm[xi] + yi]]
        return gradient[..., 0] * dx + gradient[..., 1] * dy

    def sample(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Evaluate the noise at arrays of coordinates."""
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        x0 = np.floor(x).astype(np.int64)
        y0 = np.floor(y).astype(np.int64)
        fx = x - x0
        fy = y - y0

        mask = self.TABLE_SIZE - 1
        xi = x0 & mask
        yi = y0 & mask

        n00 = self._corner(xi, yi, fx, fy)
        n10 = self._corner(xi + 1, yi, fx - 1.0, fy)
        n01 = self._corner(xi, yi + 1, fx, fy - 1.0)
        n11 = self._corner(xi + 1, yi + 1, fx - 1.0, fy - 1.0)

        u = _fade(fx)
        v = _fade(fy)

        # Perlin 2D peaks at sqrt(1/2); rescale to about [-1, 1]
        return _lerp(_lerp(n00, n10, u), _lerp(n01, n11, u), v) * np.sqrt(2.0)


def fbm_noise_map(
    size: int,
    bounds: Tuple[float, float],
    octaves: int = 4,
    frequency: float = 0.5,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Build a square fBm noise map.

    Args:
        size: Number of samples per side
        bounds: (low, high) plane bounds used for both axes
        octaves: Number of noise layers summed
        frequency: Frequency of the first octave
        persistence: Amplitude multiplier per octave
        lacunarity: Frequency multiplier per octave
        seed: Noise seed, drawn from the shared generator when None

    Returns:
        Array of shape (size, size); ``map[i, j]`` samples plane point
        (low + i * step, low + j * step)
    """
    if size <= 0:
        raise ValueError(f"Noise map size must be positive, got {size}")
    if octaves <= 0:
        raise ValueError(f"Octave count must be positive, got {octaves}")

    if seed is None:
        seed = int(get_rng().integers(0, 2**31 - 1))

    low, high = bounds
    step = (high - low) / size
    coords = low + step * np.arange(size)
    xs, ys = np.meshgrid(coords, coords, indexing="ij")

    noise = GradientNoise(seed)

    result = np.zeros((size, size))
    amplitude = 1.0
    total_amplitude = 0.0
    freq = frequency
    for octave in range(octaves):
        # Shift each octave so lattice zeros do not line up
        result += noise.sample(xs * freq + octave * 17.31, ys * freq + octave * 31.7) * amplitude
        total_amplitude += amplitude
        amplitude *= persistence
        freq *= lacunarity

    return result / total_amplitude
