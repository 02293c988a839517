import argparse
import sys
import os

os.environ["XLA_PYTHON_CLIENT_PREALLOCATE"] = "false"
os.environ["XLA_PYTHON_CLIENT_MEM_FRACTION"] = "0.8"

import json
from datetime import datetime, timezone
from pathlib import Path

from core.configs import ISO2DFDConfig
from core.profiler import Profiler
from core.validation import within_epsilon, write_error_log
from core.wavefield import write_snapshot
from propagators.iso2dfd_serial import ISO2DFDSerial

BACKENDS = ["numpy", "cupy", "jax", "warp", "taichi"]

DEVICE_SNAPSHOT = "wavefield_snapshot.bin"
CPU_SNAPSHOT = "wavefield_snapshot_cpu.bin"
ERROR_LOG = "error_diff.txt"


def usage(program_name):
    print(" Incorrect parameters ")
    print(" Usage: ", end="")
    print(f"{program_name} n1 n2 Iterations ")
    print()
    print(" n1 n2      : Grid sizes for the stencil ")
    print(" Iterations : No. of timesteps. ")


class ISO2DFDArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        usage(self.prog)
        print(f" {message}")
        self.exit(1)


def positive_int(value):
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return ivalue


def non_negative_int(value):
    ivalue = int(value)
    if ivalue < 0:
        raise argparse.ArgumentTypeError(f"{value} is not a non-negative integer")
    return ivalue


def build_propagator(backend, cfg):
    # Accelerator libraries are imported on demand so hosts without them can
    # still run the numpy backend
    match backend:
        case "numpy":
            from propagators.iso2dfd_numpy import ISO2DFDNumPy

            return ISO2DFDNumPy(cfg)
        case "cupy":
            from propagators.iso2dfd_cupy import ISO2DFDCuPy

            return ISO2DFDCuPy(cfg)
        case "jax":
            from propagators.iso2dfd_jax import ISO2DFDJax

            return ISO2DFDJax(cfg)
        case "warp":
            from propagators.iso2dfd_warp import ISO2DFDWarp

            return ISO2DFDWarp(cfg)
        case "taichi":
            from propagators.iso2dfd_taichi import ISO2DFDTaichi

            return ISO2DFDTaichi(cfg)
        case _:
            raise ValueError(f"Unknown backend: {backend}")


def run_iso2dfd(args, cfg):
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Grid Sizes: {cfg.n_rows} {cfg.n_cols}")
    print(f"Iterations: {cfg.iterations}")
    print()

    solver = build_propagator(args.backend, cfg)

    print("Computing wavefield in device ..")
    print(f" Running on {solver.describe()}")

    # JIT backends compile on their first step; discard that step
    if args.backend != "numpy":
        solver.step()
        solver.reset()

    with Profiler(f"iso2dfd_{args.backend}", sync=solver.synchronize) as p:
        solver.run()

    print(f"Kernel time: {p.milliseconds} ms")
    print()

    device_field = solver.wavefield()
    write_snapshot(output_dir / DEVICE_SNAPSHOT, device_field)

    print("Computing wavefield in CPU ..")
    # Fresh buffers, never shared with the device run
    reference = ISO2DFDSerial(cfg)

    with Profiler("iso2dfd_serial") as p_cpu:
        reference.run()

    print(f"CPU time: {p_cpu.milliseconds} ms")
    print()

    cpu_field = reference.wavefield()
    report = within_epsilon(device_field, cpu_field, cfg.half_length, cfg.delta)
    write_error_log(output_dir / ERROR_LOG, report)

    if report.error:
        print(f"error (Euclidean norm): {report.norm:.9e}")
        print("Final wavefields from device and CPU are different: Error")
    else:
        print("Final wavefields from device and CPU are equivalent: Success")

    write_snapshot(output_dir / CPU_SNAPSHOT, cpu_field)
    print("Final wavefields (from device and CPU) written to disk")

    if args.output_json:
        # Mpts/s over the whole grid, as for the other stencil benchmarks
        total_ops = cfg.size * cfg.iterations
        perf_value = (total_ops / p.duration) / 1e6 if p.duration > 0 else 0.0
        results = {
            "benchmark": "iso2dfd",
            "backend": args.backend,
            "n_rows": cfg.n_rows,
            "n_cols": cfg.n_cols,
            "iterations": cfg.iterations,
            "precision": cfg.precision,
            "device_time": p.duration,
            "cpu_time": p_cpu.duration,
            "performance_metric": perf_value,
            "performance_unit": "Mpts/s",
            "norm": report.norm,
            "error": report.error,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        with open(args.output_json, "w") as f:
            json.dump(results, f, indent=4)
        print(f"Results saved to {args.output_json}")

    print("Finished.  ")
    return 1 if report.error else 0


def main(argv=None):
    parser = ISO2DFDArgumentParser(
        description="2D finite-difference acoustic wave propagation"
    )
    parser.add_argument("n1", type=positive_int, help="Grid rows")
    parser.add_argument("n2", type=positive_int, help="Grid columns")
    parser.add_argument("iterations", type=non_negative_int, help="Time steps")
    parser.add_argument(
        "--backend",
        type=str,
        default="numpy",
        choices=BACKENDS,
        help="Backend for the parallel propagator",
    )
    parser.add_argument(
        "--precision",
        type=str,
        default="f32",
        choices=["f32", "f64"],
        help="Precision (f32 or f64)",
    )
    parser.add_argument(
        "--delta", type=float, default=0.1, help="Validation tolerance"
    )
    parser.add_argument(
        "--device",
        type=str,
        default="cuda",
        help="Target for the warp and taichi backends (cuda or cpu)",
    )
    parser.add_argument(
        "--output-dir", type=str, default=".", help="Directory for wavefield dumps"
    )
    parser.add_argument(
        "--output-json", type=str, help="Path to save results in JSON format"
    )

    args = parser.parse_args(argv)

    try:
        cfg = ISO2DFDConfig(
            n_rows=args.n1,
            n_cols=args.n2,
            iterations=args.iterations,
            delta=args.delta,
            precision=args.precision,
            device=args.device,
        )
    except ValueError as e:
        parser.error(str(e))

    return run_iso2dfd(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
