from typing import NamedTuple

import numpy as np

from core.configs import ISO2DFDConfig

# Source wavelet, indexed by ring distance from the grid center
WAVELET = np.array(
    [
        0.016387336,
        -0.041464937,
        -0.067372555,
        0.386110067,
        0.812723635,
        0.416998396,
        0.076488599,
        -0.059434419,
        0.023680172,
        0.005611435,
        0.001823209,
        -0.000720549,
    ]
)

SNAPSHOT_DTYPE = np.float32


class Wavefield(NamedTuple):
    prev: np.ndarray
    next: np.ndarray
    vel: np.ndarray


def get_dtype(precision: str):
    return np.float32 if precision == "f32" else np.float64


def source_rings(n_rows: int, n_cols: int) -> np.ndarray:
    """
    Ring index of every grid point with respect to the center.

    Ring s is the square of rows [n_rows//2 - s, n_rows//2 + s) and columns
    [n_cols//2 - s, n_cols//2 + s), minus the smaller squares nested in it.
    """
    cr, cc = n_rows // 2, n_cols // 2
    rows = np.arange(n_rows)
    cols = np.arange(n_cols)
    ring_r = np.maximum(cr - rows, rows - cr + 1)
    ring_c = np.maximum(cc - cols, cols - cc + 1)
    return np.maximum.outer(ring_r, ring_c)


def initialize(config: ISO2DFDConfig) -> Wavefield:
    """Allocate the three grids and seed the source wavelet into prev."""
    print("Initializing ... ")
    dtype = get_dtype(config.precision)
    shape = (config.n_rows, config.n_cols)

    prev = np.zeros(shape, dtype=dtype)
    # next is the field at t = -1: zero amplitude
    nxt = np.zeros(shape, dtype=dtype)
    # Pre-computed squared velocity v*v
    vel = np.full(shape, config.velocity * config.velocity, dtype=dtype)

    rings = source_rings(config.n_rows, config.n_cols)
    mask = rings < len(WAVELET)
    # The source stays off the halo
    h = config.half_length
    mask[:h, :] = False
    mask[-h:, :] = False
    mask[:, :h] = False
    mask[:, -h:] = False
    prev[mask] = WAVELET[rings[mask]]

    return Wavefield(prev, nxt, vel)


def write_snapshot(path, field) -> None:
    """Raw row-major dump of 32-bit floats in host byte order, no header."""
    np.ascontiguousarray(field, dtype=SNAPSHOT_DTYPE).tofile(path)


def read_snapshot(path, n_rows: int, n_cols: int) -> np.ndarray:
    data = np.fromfile(path, dtype=SNAPSHOT_DTYPE)
    if data.size != n_rows * n_cols:
        raise ValueError(
            f"{path} holds {data.size} values, expected {n_rows}x{n_cols}"
        )
    return data.reshape(n_rows, n_cols)
