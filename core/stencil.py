"""
Second-order (space and time) stencil for the 2D isotropic acoustic wave
equation.

The update is the leapfrog recurrence

    u(t+1) = 2 u(t) - u(t-1) + v^2 * dt^2 / dxy^2 * laplacian(u(t))

evaluated on interior points only. Halo points are never written, so the
outer ring keeps its initial value (no boundary condition is applied).
"""

from core.configs import ISO2DFDConfig


def stencil_update(center, left, right, up, down, older, vel, dt_div_dxy):
    """Next value of one grid point.

    ``older`` is the point's value two steps back (the buffer being
    overwritten). Arguments may be scalars or equally shaped array slices,
    so the same expression serves the serial loop and the vectorized sweeps.
    """
    laplacian = right - 2.0 * center + left
    laplacian += down - 2.0 * center + up
    value = laplacian * (dt_div_dxy * vel)
    return 2.0 * center - older + value


def interior(config: ISO2DFDConfig) -> tuple[slice, slice]:
    h = config.half_length
    return slice(h, config.n_rows - h), slice(h, config.n_cols - h)


def buffer_roles(k: int, a, b):
    """(current, older) for step k: even steps read a, odd steps read b."""
    if k % 2 == 0:
        return a, b
    return b, a


def sweep(current, older, vel, config: ISO2DFDConfig):
    """
    Apply one global stencil sweep in place on ``older`` for array libraries
    with NumPy slicing semantics (NumPy, CuPy).

    The right-hand side is fully evaluated before assignment and each interior
    point only reads its own ``older`` cell, so no point sees another point's
    output from the same step.
    """
    rows, cols = interior(config)
    h = config.half_length
    n_rows, n_cols = config.n_rows, config.n_cols
    older[rows, cols] = stencil_update(
        current[rows, cols],
        current[rows, h - 1 : n_cols - h - 1],
        current[rows, h + 1 : n_cols - h + 1],
        current[h - 1 : n_rows - h - 1, cols],
        current[h + 1 : n_rows - h + 1, cols],
        older[rows, cols],
        vel[rows, cols],
        config.dt_div_dxy,
    )
