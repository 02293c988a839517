import json

import numpy as np

from core.analysis import (
    filter_results,
    load_results,
    mean_by_size,
    plot_scaling,
    plot_snapshot,
    plot_speedup,
)
from core.wavefield import write_snapshot


def make_record(backend, n, perf, precision="f32"):
    return {
        "benchmark": "iso2dfd",
        "backend": backend,
        "n_rows": n,
        "n_cols": n,
        "iterations": 10,
        "precision": precision,
        "device_time": 0.5,
        "cpu_time": 2.0,
        "performance_metric": perf,
        "performance_unit": "Mpts/s",
    }


def write_results(directory):
    (directory / "run1").mkdir()
    records = [
        make_record("numpy", 64, 10.0),
        make_record("numpy", 64, 20.0),
        make_record("jax", 128, 40.0, precision="f64"),
    ]
    for i, r in enumerate(records):
        (directory / "run1" / f"r{i}.json").write_text(json.dumps(r))
    (directory / "other.json").write_text(json.dumps({"benchmark": "lbm"}))
    (directory / "broken.json").write_text("{not json")


def test_load_and_filter(tmp_path):
    write_results(tmp_path)
    results = load_results(str(tmp_path))

    assert len(results) == 3
    assert {r["total_cells"] for r in results} == {64 * 64, 128 * 128}
    assert len(filter_results(results, backend="numpy")) == 2
    assert len(filter_results(results, precision="f64")) == 1


def test_mean_by_size(tmp_path):
    write_results(tmp_path)
    numpy_results = filter_results(load_results(str(tmp_path)), backend="numpy")
    sizes, means = mean_by_size(numpy_results, lambda r: r["performance_metric"])
    assert sizes == [64 * 64]
    assert means == [15.0]


def test_plots_are_written(tmp_path):
    write_results(tmp_path)
    results = load_results(str(tmp_path))
    prefix = str(tmp_path / "plot.png")

    scaling = plot_scaling(results, output_path=prefix)
    speedup = plot_speedup(results, output_path=prefix)

    assert scaling.endswith("plot_scaling.png")
    assert speedup.endswith("plot_speedup.png")
    assert (tmp_path / "plot_scaling.png").stat().st_size > 0
    assert (tmp_path / "plot_speedup.png").stat().st_size > 0


def test_plot_snapshot(tmp_path):
    snap = tmp_path / "wavefield_snapshot.bin"
    write_snapshot(snap, np.linspace(-1, 1, 200).reshape(10, 20))
    out = plot_snapshot(str(snap), 10, 20, output_path=str(tmp_path / "field"))
    assert out.endswith("field_snapshot.png")
    assert (tmp_path / "field_snapshot.png").exists()


def test_no_results(tmp_path):
    assert load_results(str(tmp_path)) == []
    assert plot_scaling([]) is None
