import json

import pytest
import numpy as np

import main
from core.wavefield import read_snapshot


def run_cli(tmp_path, *args):
    return main.main([*args, "--output-dir", str(tmp_path)])


class TestArguments:
    @pytest.mark.parametrize(
        "argv",
        [
            [],
            ["10", "10"],
            ["ten", "10", "1"],
            ["10", "10", "1.5"],
            ["0", "10", "1"],
            ["10", "-3", "1"],
            ["10", "10", "-1"],
            ["2", "10", "1"],
            ["10", "10", "1", "--backend", "opencl"],
        ],
    )
    def test_malformed_arguments_exit_1(self, argv, capsys):
        with pytest.raises(SystemExit) as exc:
            main.main(argv)
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "Incorrect parameters" in out
        assert "n1 n2 Iterations" in out

    def test_unknown_backend_in_selector(self):
        with pytest.raises(ValueError):
            main.build_propagator("opencl", None)


class TestRun:
    def test_success(self, tmp_path, capsys):
        assert run_cli(tmp_path, "10", "10", "1") == 0

        out = capsys.readouterr().out
        assert "Grid Sizes: 10 10" in out
        assert "Kernel time:" in out
        assert "CPU time:" in out
        assert "equivalent: Success" in out

        for name in (main.DEVICE_SNAPSHOT, main.CPU_SNAPSHOT):
            assert (tmp_path / name).stat().st_size == 10 * 10 * 4
        assert (tmp_path / main.ERROR_LOG).read_text() == ""

    def test_snapshots_agree(self, tmp_path):
        assert run_cli(tmp_path, "24", "32", "8") == 0
        device = read_snapshot(tmp_path / main.DEVICE_SNAPSHOT, 24, 32)
        cpu = read_snapshot(tmp_path / main.CPU_SNAPSHOT, 24, 32)
        np.testing.assert_allclose(device, cpu, rtol=1e-5, atol=1e-6)
        assert np.all(device[0, :] == 0.0)

    def test_zero_iterations_dump_seed(self, tmp_path):
        assert run_cli(tmp_path, "16", "16", "0") == 0
        field = read_snapshot(tmp_path / main.DEVICE_SNAPSHOT, 16, 16)
        np.testing.assert_array_equal(field, np.rot90(field, 2))
        assert np.any(field != 0.0)

    def test_dumps_are_deterministic(self, tmp_path):
        first, second = tmp_path / "a", tmp_path / "b"
        assert run_cli(first, "20", "20", "5") == 0
        assert run_cli(second, "20", "20", "5") == 0
        for name in (main.DEVICE_SNAPSHOT, main.CPU_SNAPSHOT):
            assert (first / name).read_bytes() == (second / name).read_bytes()

    def test_divergence_exits_1(self, tmp_path, monkeypatch, capsys):
        class Skewed:
            # Parallel propagator whose result is off by 1.0 at one point
            def __init__(self, cfg):
                from propagators.iso2dfd_numpy import ISO2DFDNumPy

                self.inner = ISO2DFDNumPy(cfg)

            def __getattr__(self, name):
                return getattr(self.inner, name)

            def wavefield(self):
                field = self.inner.wavefield()
                field[3, 4] += 1.0
                return field

        monkeypatch.setattr(main, "build_propagator", lambda backend, cfg: Skewed(cfg))

        assert run_cli(tmp_path, "10", "10", "2") == 1

        out = capsys.readouterr().out
        assert "error (Euclidean norm)" in out
        assert "different: Error" in out
        lines = (tmp_path / main.ERROR_LOG).read_text().splitlines()
        assert len(lines) == 1
        assert lines[0].startswith(" ERROR: 4, 3 ")

    def test_json_results(self, tmp_path):
        results = tmp_path / "results.json"
        assert run_cli(tmp_path, "12", "14", "3", "--output-json", str(results)) == 0

        record = json.loads(results.read_text())
        assert record["benchmark"] == "iso2dfd"
        assert record["backend"] == "numpy"
        assert (record["n_rows"], record["n_cols"], record["iterations"]) == (12, 14, 3)
        assert record["precision"] == "f32"
        assert record["performance_unit"] == "Mpts/s"
        assert record["error"] is False
        assert record["timestamp"].endswith("Z")
