import contextlib

import cupy as cp
import numpy as np
from core.configs import ISO2DFDConfig
from core.stencil import buffer_roles, sweep
from core.wavefield import initialize


@contextlib.contextmanager
def profile_section(name):
    cp.cuda.nvtx.RangePush(name)
    try:
        yield
    finally:
        cp.cuda.nvtx.RangePop()


class ISO2DFDCuPy:
    def __init__(self, config: ISO2DFDConfig):
        self.cfg = config
        self.nx = config.n_rows
        self.ny = config.n_cols
        self.reset()

    def reset(self):
        # Seed on the host, then move to the device
        field = initialize(self.cfg)
        self.prev = cp.asarray(field.prev)
        self.next = cp.asarray(field.next)
        self.vel = cp.asarray(field.vel)
        self.k = 0

    @property
    def current(self):
        return self.next if self.k % 2 == 1 else self.prev

    def step(self):
        current, older = buffer_roles(self.k, self.prev, self.next)
        sweep(current, older, self.vel, self.cfg)
        self.k += 1

    def run(self):
        self.synchronize()
        with profile_section("iso2dfd_cupy"):
            for _ in range(self.cfg.iterations):
                self.step()
        self.synchronize()

    def synchronize(self):
        cp.cuda.Stream.null.synchronize()

    def wavefield(self) -> np.ndarray:
        return cp.asnumpy(self.current)

    def describe(self) -> str:
        device = cp.cuda.Device()
        props = cp.cuda.runtime.getDeviceProperties(device.id)
        name = props["name"]
        if isinstance(name, bytes):
            name = name.decode()
        return (
            f"{name} | max threads per block: {props['maxThreadsPerBlock']}"
            f" | multiprocessors: {props['multiProcessorCount']}"
        )
