from dataclasses import dataclass, field

import numpy as np


@dataclass(slots=True)
class Mismatch:
    x: int  # column
    y: int  # row
    output: float
    reference: float
    difference: float


@dataclass(slots=True)
class ValidationReport:
    error: bool
    norm: float
    mismatches: list[Mismatch] = field(default_factory=list)


def within_epsilon(output, reference, radius: int, delta: float = 0.01):
    """
    Compare two wavefields over their interior (halo of width ``radius``
    excluded).

    Returns a ValidationReport whose ``norm`` is the Euclidean norm of the
    point-wise differences and whose ``error`` is set when any difference
    exceeds ``delta``. Offending points are listed in row-major order.
    """
    output = np.asarray(output)
    reference = np.asarray(reference)
    if output.shape != reference.shape or output.ndim != 2:
        raise ValueError(
            f"Cannot compare wavefields of shapes {output.shape} and {reference.shape}"
        )

    n_rows, n_cols = output.shape
    rows = slice(radius, n_rows - radius)
    cols = slice(radius, n_cols - radius)
    out = output[rows, cols]
    ref = reference[rows, cols]

    difference = np.abs(ref - out)
    norm = float(np.sqrt(np.sum(difference.astype(np.float64) ** 2)))

    mismatches = [
        Mismatch(
            x=int(c) + radius,
            y=int(r) + radius,
            output=float(out[r, c]),
            reference=float(ref[r, c]),
            difference=float(difference[r, c]),
        )
        for r, c in np.argwhere(difference > delta)
    ]
    return ValidationReport(error=bool(mismatches), norm=norm, mismatches=mismatches)


def write_error_log(path, report: ValidationReport) -> None:
    with open(path, "w") as f:
        for m in report.mismatches:
            f.write(
                f" ERROR: {m.x}, {m.y}   {m.output:g}   instead of "
                f"{m.reference:g}  (|e|={m.difference:g})\n"
            )
