import warp as wp
import numpy as np
from core.configs import ISO2DFDConfig
from core.stencil import buffer_roles
from core.wavefield import initialize


@wp.func
def stencil_update_f32(
    center: wp.float32,
    left: wp.float32,
    right: wp.float32,
    up: wp.float32,
    down: wp.float32,
    older: wp.float32,
    vel: wp.float32,
    dt_div_dxy: wp.float32,
):
    laplacian = (right - wp.float32(2.0) * center + left) + (
        down - wp.float32(2.0) * center + up
    )
    value = laplacian * (dt_div_dxy * vel)
    return wp.float32(2.0) * center - older + value


@wp.func
def stencil_update_f64(
    center: wp.float64,
    left: wp.float64,
    right: wp.float64,
    up: wp.float64,
    down: wp.float64,
    older: wp.float64,
    vel: wp.float64,
    dt_div_dxy: wp.float64,
):
    laplacian = (right - wp.float64(2.0) * center + left) + (
        down - wp.float64(2.0) * center + up
    )
    value = laplacian * (dt_div_dxy * vel)
    return wp.float64(2.0) * center - older + value


@wp.kernel
def iso2dfd_step_kernel_f32(
    current: wp.array(dtype=wp.float32, ndim=2),
    older: wp.array(dtype=wp.float32, ndim=2),
    vel: wp.array(dtype=wp.float32, ndim=2),
    dt_div_dxy: wp.float32,
    half_length: int,
    n_rows: int,
    n_cols: int,
):
    row, col = wp.tid()

    # Only points outside the halo are updated
    if row < half_length or row >= n_rows - half_length:
        return
    if col < half_length or col >= n_cols - half_length:
        return

    older[row, col] = stencil_update_f32(
        current[row, col],
        current[row, col - 1],
        current[row, col + 1],
        current[row - 1, col],
        current[row + 1, col],
        older[row, col],
        vel[row, col],
        dt_div_dxy,
    )


@wp.kernel
def iso2dfd_step_kernel_f64(
    current: wp.array(dtype=wp.float64, ndim=2),
    older: wp.array(dtype=wp.float64, ndim=2),
    vel: wp.array(dtype=wp.float64, ndim=2),
    dt_div_dxy: wp.float64,
    half_length: int,
    n_rows: int,
    n_cols: int,
):
    row, col = wp.tid()

    if row < half_length or row >= n_rows - half_length:
        return
    if col < half_length or col >= n_cols - half_length:
        return

    older[row, col] = stencil_update_f64(
        current[row, col],
        current[row, col - 1],
        current[row, col + 1],
        current[row - 1, col],
        current[row + 1, col],
        older[row, col],
        vel[row, col],
        dt_div_dxy,
    )


class ISO2DFDWarp:
    def __init__(self, config: ISO2DFDConfig):
        self.cfg = config
        self.nx = config.n_rows
        self.ny = config.n_cols

        if config.precision == "f32":
            self.dtype = wp.float32
            self.kernel = iso2dfd_step_kernel_f32
        else:
            self.dtype = wp.float64
            self.kernel = iso2dfd_step_kernel_f64

        self.device = config.device
        self.reset()

    def reset(self):
        field = initialize(self.cfg)
        self.prev = wp.array(field.prev, dtype=self.dtype, device=self.device)
        self.next = wp.array(field.next, dtype=self.dtype, device=self.device)
        self.vel = wp.array(field.vel, dtype=self.dtype, device=self.device)
        self.k = 0

    @property
    def current(self):
        return self.next if self.k % 2 == 1 else self.prev

    def step(self):
        # One thread per grid point; launches on a device are serialized,
        # which is the barrier between consecutive steps
        current, older = buffer_roles(self.k, self.prev, self.next)
        wp.launch(
            kernel=self.kernel,
            dim=(self.nx, self.ny),
            inputs=[
                current,
                older,
                self.vel,
                self.cfg.dt_div_dxy,
                self.cfg.half_length,
                self.nx,
                self.ny,
            ],
            device=self.device,
        )
        self.k += 1

    def run(self):
        wp.synchronize_device(self.device)
        for _ in range(self.cfg.iterations):
            self.step()
        wp.synchronize_device(self.device)

    def synchronize(self):
        wp.synchronize_device(self.device)

    def wavefield(self) -> np.ndarray:
        return self.current.numpy()

    def describe(self) -> str:
        device = wp.get_device(self.device)
        return f"{device.name} ({device.alias})"
