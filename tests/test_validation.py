import pytest
import numpy as np

from core.validation import Mismatch, ValidationReport, within_epsilon, write_error_log


def test_single_point_beyond_tolerance():
    reference = np.zeros((10, 10), dtype=np.float32)
    output = reference.copy()
    output[4, 6] = 0.2

    report = within_epsilon(output, reference, radius=1, delta=0.1)

    assert report.error
    assert report.norm == pytest.approx(0.2, rel=1e-6)
    assert len(report.mismatches) == 1
    m = report.mismatches[0]
    assert (m.x, m.y) == (6, 4)
    assert m.output == pytest.approx(0.2)
    assert m.reference == 0.0
    assert m.difference == pytest.approx(0.2)


def test_identical_fields_pass():
    field = np.random.default_rng(0).standard_normal((12, 16))
    report = within_epsilon(field, field.copy(), radius=1, delta=0.1)
    assert report == ValidationReport(error=False, norm=0.0, mismatches=[])


def test_small_differences_count_towards_norm_only():
    reference = np.zeros((8, 8))
    output = reference.copy()
    output[2, 2] = 0.03
    output[5, 3] = -0.04

    report = within_epsilon(output, reference, radius=1, delta=0.1)

    assert not report.error
    assert report.mismatches == []
    assert report.norm == pytest.approx(0.05)


def test_halo_is_excluded():
    reference = np.zeros((6, 6))
    output = reference.copy()
    output[0, :] = 5.0
    output[:, -1] = 5.0

    report = within_epsilon(output, reference, radius=1, delta=0.1)
    assert not report.error
    assert report.norm == 0.0

    report = within_epsilon(output, reference, radius=0, delta=0.1)
    assert report.error
    assert len(report.mismatches) == 11


def test_mismatches_in_row_major_order():
    reference = np.zeros((6, 6))
    output = reference.copy()
    output[3, 1] = 1.0
    output[1, 4] = 1.0
    output[1, 2] = 1.0

    report = within_epsilon(output, reference, radius=1, delta=0.5)
    assert [(m.y, m.x) for m in report.mismatches] == [(1, 2), (1, 4), (3, 1)]


def test_shape_mismatch():
    with pytest.raises(ValueError):
        within_epsilon(np.zeros((4, 4)), np.zeros((4, 5)), radius=1)


def test_error_log(tmp_path):
    report = ValidationReport(
        error=True,
        norm=0.25,
        mismatches=[
            Mismatch(x=3, y=2, output=0.5, reference=0.25, difference=0.25),
            Mismatch(x=1, y=4, output=1.0, reference=0.0, difference=1.0),
        ],
    )
    path = tmp_path / "error_diff.txt"
    write_error_log(path, report)

    lines = path.read_text().splitlines()
    assert lines == [
        " ERROR: 3, 2   0.5   instead of 0.25  (|e|=0.25)",
        " ERROR: 1, 4   1   instead of 0  (|e|=1)",
    ]


def test_error_log_empty_on_success(tmp_path):
    path = tmp_path / "error_diff.txt"
    path.write_text("stale\n")
    write_error_log(path, ValidationReport(error=False, norm=0.0))
    assert path.read_text() == ""
