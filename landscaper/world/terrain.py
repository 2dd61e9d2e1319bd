"""Initial height-map generation.

Two fills are supported: a constant (flat) terrain, and a smooth
pseudo-random terrain built from a few octaves of value noise.  Each
octave is a coarse lattice of uniform random values bilinearly
upsampled to the grid size, so the result is coherent rather than
per-cell white noise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from scipy.ndimage import zoom

if TYPE_CHECKING:
    from numpy.random import Generator
    from numpy.typing import NDArray


def flat_heights(size: int, height: float) -> NDArray[np.float64]:
    """Return a ``size x size`` matrix filled with ``height``."""
    return np.full((size, size), height, dtype=np.float64)


def _smooth_noise(size: int, lattice: int, rng: Generator) -> NDArray[np.float64]:
    """One octave: a ``lattice x lattice`` random grid upsampled to ``size``."""
    lattice = max(2, min(lattice, size))
    coarse = rng.random((lattice, lattice))
    smooth = zoom(coarse, size / lattice, order=1)

    # zoom may round the output shape by one cell either way
    smooth = smooth[:size, :size]
    pad_y = size - smooth.shape[0]
    pad_x = size - smooth.shape[1]
    if pad_y > 0 or pad_x > 0:
        smooth = np.pad(smooth, ((0, pad_y), (0, pad_x)), mode="edge")
    return smooth


def noise_heights(
    size: int,
    rng: Generator,
    *,
    base: float,
    amplitude: float,
    scale: float,
    octaves: int = 3,
) -> NDArray[np.float64]:
    """Generate a smooth random height map.

    Octave ``k`` uses a lattice of ``scale * 2**k`` points per side and
    contributes with weight ``0.5**k``.  The summed noise is normalised
    to ``[0, 1]`` and mapped to ``[base, base + amplitude]``.

    Args:
        size: Grid dimension.
        rng: Seeded random generator.
        base: Height of the lowest point.
        amplitude: Height range above ``base``.
        scale: Number of lattice points per side for the first octave.
        octaves: Number of octaves to sum.

    Returns:
        A ``size x size`` float matrix.
    """
    noise = np.zeros((size, size), dtype=np.float64)
    weight = 1.0
    lattice = max(2.0, scale)
    for _ in range(max(1, octaves)):
        noise += weight * _smooth_noise(size, int(round(lattice)), rng)
        weight *= 0.5
        lattice *= 2.0

    span = noise.max() - noise.min()
    if span > 0:
        noise = (noise - noise.min()) / span
    else:
        noise = np.zeros_like(noise)
    return base + amplitude * noise
