from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class ISO2DFDConfig:
    n_rows: int = 512
    n_cols: int = 512
    iterations: int = 1000
    dt: float = 0.002  # Time step
    dxy: float = 20.0  # Grid spacing
    half_length: int = 1  # Stencil radius, also the halo width
    velocity: float = 1500.0  # m/s, stored squared in the velocity grid
    delta: float = 0.1  # Validation tolerance
    precision: str = "f32"
    device: str = "cuda"

    def __post_init__(self):
        if self.n_rows <= 0 or self.n_cols <= 0:
            raise ValueError(
                f"Grid sizes must be positive, got {self.n_rows}x{self.n_cols}"
            )
        if self.iterations < 0:
            raise ValueError(f"Iterations must be >= 0, got {self.iterations}")
        if self.half_length < 1:
            raise ValueError(f"half_length must be >= 1, got {self.half_length}")
        if min(self.n_rows, self.n_cols) <= 2 * self.half_length:
            raise ValueError(
                f"Grid {self.n_rows}x{self.n_cols} has no interior "
                f"for half_length={self.half_length}"
            )
        if self.precision not in ("f32", "f64"):
            raise ValueError(f"Unknown precision: {self.precision}")

    @property
    def dt_div_dxy(self) -> float:
        return (self.dt * self.dt) / (self.dxy * self.dxy)

    @property
    def size(self) -> int:
        return self.n_rows * self.n_cols
