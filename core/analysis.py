import json
import glob
import os
import argparse
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from core.wavefield import read_snapshot


def load_results(directory="results"):
    """
    Search for all ISO2DFD result JSON files under the directory tree.
    Files that are not result records are skipped.
    """
    results = []
    pattern = os.path.join(directory, "**/*.json")

    for result_path in sorted(glob.glob(pattern, recursive=True)):
        try:
            with open(result_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Skipping {result_path}: {e}")
            continue

        records = data if isinstance(data, list) else [data]
        for r in records:
            if (
                isinstance(r, dict)
                and r.get("benchmark") == "iso2dfd"
                and "performance_metric" in r
            ):
                r["total_cells"] = r["n_rows"] * r["n_cols"]
                results.append(r)

    return results


def filter_results(results, backend=None, precision=None):
    filtered = results
    if backend:
        filtered = [r for r in filtered if r.get("backend") == backend]
    if precision:
        filtered = [r for r in filtered if r.get("precision") == precision]
    return filtered


def group_by_backend(results):
    groups = {}
    for r in results:
        key = (r["backend"], r.get("precision", "unknown"))
        groups.setdefault(key, []).append(r)
    return groups


def mean_by_size(data, metric):
    """(sizes, means) of a metric, averaged over repeated runs per grid size."""
    sizes = sorted(set(r["total_cells"] for r in data))
    means = []
    for s in sizes:
        matches = [metric(r) for r in data if r["total_cells"] == s]
        means.append(sum(matches) / len(matches))
    return sizes, means


def speedup(record):
    if record["device_time"] <= 0:
        return 0.0
    return record["cpu_time"] / record["device_time"]


def _save(output_path, suffix):
    base, ext = os.path.splitext(output_path)
    if not ext:
        ext = ".png"
    out = f"{base}_{suffix}{ext}"
    plt.savefig(out)
    plt.close()
    print(f"Saved plot to {out}")
    return out


def plot_scaling(results, output_path=None, precision=None):
    results = filter_results(results, precision=precision)
    if not results:
        print("No ISO2DFD results found")
        return None

    plt.figure(figsize=(12, 7))
    for (backend, prec), data in sorted(group_by_backend(results).items()):
        sizes, means = mean_by_size(data, lambda r: r["performance_metric"])
        label = f"{backend} ({prec})"
        marker = "o" if prec == "f32" else "s"
        line = plt.plot(sizes, means, marker + "-", label=label, alpha=0.8)
        plt.scatter(
            [r["total_cells"] for r in data],
            [r["performance_metric"] for r in data],
            color=line[0].get_color(),
            alpha=0.5,
            s=20,
        )

    plt.xscale("log", base=2)
    plt.yscale("log")
    plt.xlabel("Total Cells (n_rows * n_cols)")
    plt.ylabel("Performance (Mpts/s)")
    title = "Scaling Analysis: ISO2DFD"
    if precision:
        title += f" ({precision})"
    plt.title(title)
    plt.legend(bbox_to_anchor=(1.05, 1), loc="upper left")
    plt.grid(True, which="both", ls="--", alpha=0.5)
    plt.tight_layout()

    if output_path:
        return _save(output_path, "scaling")
    return None


def plot_speedup(results, output_path=None, precision=None):
    """Serial reference time over parallel time, per backend."""
    results = filter_results(results, precision=precision)
    if not results:
        return None

    plt.figure(figsize=(12, 7))
    for (backend, prec), data in sorted(group_by_backend(results).items()):
        sizes, means = mean_by_size(data, speedup)
        marker = "o" if prec == "f32" else "s"
        plt.plot(sizes, means, marker + "-", label=f"{backend} ({prec})", alpha=0.8)

    plt.xscale("log", base=2)
    plt.yscale("log")
    plt.xlabel("Total Cells (n_rows * n_cols)")
    plt.ylabel("Speedup over serial reference")
    plt.title("ISO2DFD Speedup")
    plt.legend(bbox_to_anchor=(1.05, 1), loc="upper left")
    plt.grid(True, which="both", ls="--", alpha=0.5)
    plt.tight_layout()

    if output_path:
        return _save(output_path, "speedup")
    return None


def plot_snapshot(path, n_rows, n_cols, output_path=None):
    field = read_snapshot(path, n_rows, n_cols)
    limit = float(abs(field).max()) or 1.0

    plt.figure(figsize=(8, 7))
    plt.imshow(field, cmap="seismic", vmin=-limit, vmax=limit, origin="upper")
    plt.colorbar(label="Amplitude")
    plt.xlabel("Column")
    plt.ylabel("Row")
    plt.title(os.path.basename(path))
    plt.tight_layout()

    if output_path:
        return _save(output_path, "snapshot")
    return None


def main():
    parser = argparse.ArgumentParser(description="ISO2DFD Results Analysis CLI")
    parser.add_argument(
        "--dir", type=str, default="results", help="Directory containing JSON results"
    )
    parser.add_argument("--output", type=str, help="Output image filename (prefix)")
    parser.add_argument(
        "--precision", type=str, choices=["f32", "f64"], help="Filter by precision"
    )
    parser.add_argument("--snapshot", type=str, help="Raw wavefield dump to render")
    parser.add_argument("--rows", type=int, help="Rows of the snapshot grid")
    parser.add_argument("--cols", type=int, help="Columns of the snapshot grid")

    args = parser.parse_args()

    if args.snapshot:
        if args.rows is None or args.cols is None:
            parser.error("--snapshot requires --rows and --cols")
        plot_snapshot(args.snapshot, args.rows, args.cols, output_path=args.output)
        return

    results = load_results(args.dir)
    print(f"Loaded {len(results)} result entries from {args.dir}")

    if not results:
        return

    plot_scaling(results, output_path=args.output, precision=args.precision)
    plot_speedup(results, output_path=args.output, precision=args.precision)


if __name__ == "__main__":
    main()
