from functools import partial

import jax
import jax.numpy as jnp
from jax import jit, lax
import numpy as np
from core.configs import ISO2DFDConfig
from core.stencil import buffer_roles, stencil_update
from core.wavefield import initialize


class ISO2DFDJax:
    def __init__(self, config: ISO2DFDConfig):
        if config.precision == "f64":
            jax.config.update("jax_enable_x64", True)
        else:
            jax.config.update("jax_enable_x64", False)

        self.cfg = config
        self.nx = config.n_rows
        self.ny = config.n_cols
        self.reset()

    def reset(self):
        field = initialize(self.cfg)
        self.prev = jnp.asarray(field.prev)
        self.next = jnp.asarray(field.next)
        self.vel = jnp.asarray(field.vel)
        self.k = 0

    @property
    def current(self):
        return self.next if self.k % 2 == 1 else self.prev

    @staticmethod
    @partial(jit, static_argnums=(4,))
    def step_fn(current, older, vel, dt_div_dxy, half_length):
        # Arrays are immutable: return the older buffer with its interior replaced
        h = half_length
        n_rows, n_cols = current.shape
        rows = slice(h, n_rows - h)
        cols = slice(h, n_cols - h)

        updated = stencil_update(
            current[rows, cols],
            current[rows, h - 1 : n_cols - h - 1],
            current[rows, h + 1 : n_cols - h + 1],
            current[h - 1 : n_rows - h - 1, cols],
            current[h + 1 : n_rows - h + 1, cols],
            older[rows, cols],
            vel[rows, cols],
            dt_div_dxy,
        )
        return older.at[rows, cols].set(updated)

    def _store(self, current, older):
        # Rebind the two physical buffers after self.k steps
        if self.k % 2 == 1:
            self.next, self.prev = current, older
        else:
            self.prev, self.next = current, older

    def step(self):
        current, older = buffer_roles(self.k, self.prev, self.next)
        new = self.step_fn(
            current, older, self.vel, self.cfg.dt_div_dxy, self.cfg.half_length
        )
        self.k += 1
        self._store(new.block_until_ready(), current)

    def run(self):
        vel = self.vel
        dt_div_dxy = self.cfg.dt_div_dxy
        h = self.cfg.half_length

        # fori_loop carries (current, older) and rotates them each step
        def body(_, carry):
            current, older = carry
            new = ISO2DFDJax.step_fn(current, older, vel, dt_div_dxy, h)
            return new, current

        current, older = lax.fori_loop(
            0,
            self.cfg.iterations,
            body,
            buffer_roles(self.k, self.prev, self.next),
        )
        current.block_until_ready()
        self.k += self.cfg.iterations
        self._store(current, older)

    def synchronize(self):
        self.current.block_until_ready()

    def wavefield(self) -> np.ndarray:
        return np.array(self.current)

    def describe(self) -> str:
        device = jax.devices()[0]
        return f"{device.device_kind} ({device.platform})"
