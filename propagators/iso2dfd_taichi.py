import taichi as ti
import numpy as np
from core.configs import ISO2DFDConfig
from core.stencil import buffer_roles
from core.wavefield import initialize

# ti.init is global and resets the runtime, so only re-init on an arch change
_arch = None


def init_taichi(device: str):
    global _arch
    arch = ti.gpu if device == "cuda" else ti.cpu
    if _arch != arch:
        ti.init(arch=arch)
        _arch = arch


@ti.func
def stencil_update(center, left, right, up, down, older, vel, dt_div_dxy):
    laplacian = (right - 2.0 * center + left) + (down - 2.0 * center + up)
    value = laplacian * (dt_div_dxy * vel)
    return 2.0 * center - older + value


@ti.kernel
def iso2dfd_step_kernel(
    current: ti.types.ndarray(),
    older: ti.types.ndarray(),
    vel: ti.types.ndarray(),
    dt_div_dxy: ti.f64,
    half_length: int,
    dtype: ti.template(),
):
    coeff = ti.cast(dt_div_dxy, dtype)
    n_rows = current.shape[0]
    n_cols = current.shape[1]
    for row, col in ti.ndrange(
        (half_length, n_rows - half_length), (half_length, n_cols - half_length)
    ):
        older[row, col] = stencil_update(
            current[row, col],
            current[row, col - 1],
            current[row, col + 1],
            current[row - 1, col],
            current[row + 1, col],
            older[row, col],
            vel[row, col],
            coeff,
        )


class ISO2DFDTaichi:
    def __init__(self, config: ISO2DFDConfig):
        init_taichi(config.device)

        self.cfg = config
        self.nx = config.n_rows
        self.ny = config.n_cols

        self.dtype = ti.f32 if config.precision == "f32" else ti.f64
        self.reset()

    def reset(self):
        field = initialize(self.cfg)
        shape = (self.nx, self.ny)
        self.prev = ti.ndarray(dtype=self.dtype, shape=shape)
        self.next = ti.ndarray(dtype=self.dtype, shape=shape)
        self.vel = ti.ndarray(dtype=self.dtype, shape=shape)
        self.prev.from_numpy(field.prev)
        self.next.from_numpy(field.next)
        self.vel.from_numpy(field.vel)
        self.k = 0

    @property
    def current(self):
        return self.next if self.k % 2 == 1 else self.prev

    def step(self):
        current, older = buffer_roles(self.k, self.prev, self.next)
        iso2dfd_step_kernel(
            current,
            older,
            self.vel,
            self.cfg.dt_div_dxy,
            self.cfg.half_length,
            self.dtype,
        )
        self.k += 1

    def run(self):
        ti.sync()
        for _ in range(self.cfg.iterations):
            self.step()
        ti.sync()

    def synchronize(self):
        ti.sync()

    def wavefield(self) -> np.ndarray:
        return self.current.to_numpy()

    def describe(self) -> str:
        return f"taichi {ti.lang.impl.current_cfg().arch.name}"
