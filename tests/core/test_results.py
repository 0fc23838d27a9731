import json

import numpy as np
import pytest

from madsbridge.core.point import EvalPoint, EvalStatus
from madsbridge.core.results import OptimizationResult, PointSnapshot, capture_point, capture_points


def _evaluated(x, outputs) -> EvalPoint:
    point = EvalPoint.create(x, len(outputs))
    for i, value in enumerate(outputs):
        point.set_output(i, value)
    return point


def test_capture_copies_values():
    point = _evaluated([1.0, 2.0, 3.0], [4.0, -1.0])

    snapshot = capture_point(point, 3, 2)

    assert snapshot == PointSnapshot(x=(1.0, 2.0, 3.0), outputs=(4.0, -1.0))
    assert all(type(v) is float for v in snapshot.x + snapshot.outputs)


def test_capture_is_independent_of_later_invalidation():
    point = _evaluated([0.5], [0.25])
    snapshot = capture_point(point, 1, 1)

    point.invalidate()
    point.x[0] = 123.0

    assert point.status is EvalStatus.INVALID
    assert snapshot.x == (0.5,)
    assert snapshot.outputs == (0.25,)


def test_capture_takes_leading_values_only():
    point = _evaluated([1.0, 2.0, 3.0], [7.0, 8.0, 9.0])

    snapshot = capture_point(point, 2, 1)

    assert snapshot.x == (1.0, 2.0)
    assert snapshot.outputs == (7.0,)


def test_absent_point_captures_none():
    assert capture_point(None, 2, 2) is None


def test_capture_points_are_independent():
    feasible = _evaluated([1.0], [0.0])

    captured = capture_points(feasible, None, 1, 1)

    assert captured[0] is not None
    assert captured[1] is None


@pytest.mark.parametrize(("n", "m"), [(3, 1), (1, 2)])
def test_malformed_sizes_raise(n, m):
    with pytest.raises(ValueError):
        capture_point(_evaluated([1.0, 2.0], [0.0]), n, m)


def test_failure_record():
    result = OptimizationResult.failure()

    assert result.success is False
    assert result.has_feasible is False
    assert result.has_infeasible is False
    assert result.stat_avg is None and result.stat_sum is None


def test_presence_flags_are_independent_of_success():
    snap = PointSnapshot(x=(0.0,), outputs=(1.0,))

    assert OptimizationResult(success=True, best_infeasible=snap).has_infeasible
    assert not OptimizationResult(success=True, best_infeasible=snap).has_feasible
    assert OptimizationResult(success=False, best_feasible=snap).has_feasible


def test_result_is_frozen():
    result = OptimizationResult(success=True)

    with pytest.raises(AttributeError):
        result.success = False  # type: ignore[misc]


def test_export_json(tmp_path):
    result = OptimizationResult(
        success=True,
        best_feasible=PointSnapshot(x=(1.0, 2.0), outputs=(3.0,)),
        bb_eval=12,
        stat_sum=4.5,
        seed=3,
    )

    path = result.export_json(tmp_path / "out" / "result.json")
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload == {
        "success": True,
        "has_feasible": True,
        "has_infeasible": False,
        "best_feasible": {"x": [1.0, 2.0], "outputs": [3.0]},
        "best_infeasible": None,
        "bb_eval": 12,
        "stat_avg": None,
        "stat_sum": 4.5,
        "seed": 3,
    }


def test_eval_point_create():
    point = EvalPoint.create(np.array([[1.0, 2.0]]), 3, tag=4)

    assert point.dimension == 2
    assert point.outputs.shape == (3,)
    assert np.isnan(point.outputs).all()
    assert point.key() == (1.0, 2.0)
    assert point.value(1) == 2.0
    assert point.status is EvalStatus.PENDING
