import numpy as np
from core.configs import ISO2DFDConfig
from core.stencil import buffer_roles, sweep
from core.wavefield import initialize


class ISO2DFDNumPy:
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
        # Buffer written by the last step; prev holds the seed before any step
        return self.next if self.k % 2 == 1 else self.prev

    def step(self):
        # Every interior point of a sweep is independent: one vectorized update
        current, older = buffer_roles(self.k, self.prev, self.next)
        sweep(current, older, self.vel, self.cfg)
        self.k += 1

    def run(self):
        for _ in range(self.cfg.iterations):
            self.step()

    def synchronize(self):
        pass

    def wavefield(self) -> np.ndarray:
        return self.current.copy()

    def describe(self) -> str:
        return f"host (NumPy {np.__version__})"
