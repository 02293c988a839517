import platform

import numpy as np
from core.configs import ISO2DFDConfig
from core.stencil import stencil_update
from core.wavefield import initialize


class ISO2DFDSerial:
    """
    Reference propagator: one grid point at a time, rows outer, columns
    inner, on the calling thread. Used as the correctness oracle for the
    parallel backends, so it is kept deliberately plain.
    """

    def __init__(self, config: ISO2DFDConfig):
        self.cfg = config
        self.nx = config.n_rows
        self.ny = config.n_cols
        self.reset()

    def reset(self):
        field = initialize(self.cfg)
        self.prev = field.prev
        self.next = field.next
        self.vel = field.vel
        self.k = 0

    @property
    def current(self):
        return self.next if self.k % 2 == 1 else self.prev

    def _sweep(self, current, older):
        # Flat row-major views: gid = row * n_cols + col
        cur = current.reshape(-1)
        old = older.reshape(-1)
        vel = self.vel.reshape(-1)
        h = self.cfg.half_length
        n_cols = self.ny
        dt_div_dxy = self.cfg.dt_div_dxy

        for i in range(h, self.nx - h):
            for j in range(h, n_cols - h):
                gid = j + i * n_cols
                old[gid] = stencil_update(
                    cur[gid],
                    cur[gid - 1],
                    cur[gid + 1],
                    cur[gid - n_cols],
                    cur[gid + n_cols],
                    old[gid],
                    vel[gid],
                    dt_div_dxy,
                )

    def step(self):
        if self.k % 2 == 0:
            self._sweep(self.prev, self.next)
        else:
            self._sweep(self.next, self.prev)
        self.k += 1

    def run(self):
        if self.k % 2 == 0:
            current, older = self.prev, self.next
        else:
            current, older = self.next, self.prev
        for _ in range(self.cfg.iterations):
            self._sweep(current, older)
            # Swap arrays
            current, older = older, current
            self.k += 1

    def synchronize(self):
        pass

    def wavefield(self) -> np.ndarray:
        return self.current.copy()

    def describe(self) -> str:
        return f"host ({platform.processor() or platform.machine()}, serial)"
