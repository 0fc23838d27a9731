"""Tests for MLflow experiment tracking."""

import tempfile
from pathlib import Path

import mlflow

from madsbridge.core.results import OptimizationResult, PointSnapshot
from madsbridge.engine.parameters import OutputType, Parameters
from madsbridge.logging import MLflowTracker


def _result() -> OptimizationResult:
    return OptimizationResult(
        success=True,
        best_feasible=PointSnapshot(x=(1.0, 2.0), outputs=(-0.5, 0.25)),
        bb_eval=42,
        stat_sum=3.0,
        seed=5,
    )


def _parameters() -> Parameters:
    return Parameters(x0=[0.0, 0.0], output_types=[OutputType.PB, OutputType.OBJ], seed=5)


class TestMLflowTracker:
    """MLflow tracker tests."""

    def test_initialization(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tracker = MLflowTracker(
                experiment_name="test_exp",
                tracking_uri=str(Path(tmpdir) / "mlruns"),
            )
            assert tracker.experiment_name == "test_exp"
            assert tracker.experiment_id is not None

    def test_existing_experiment_is_reused(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            uri = str(Path(tmpdir) / "mlruns")
            first = MLflowTracker(experiment_name="shared", tracking_uri=uri)
            second = MLflowTracker(experiment_name="shared", tracking_uri=uri)

            assert first.experiment_id == second.experiment_id

    def test_log_run(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tracker = MLflowTracker(
                experiment_name="test_exp",
                tracking_uri=str(Path(tmpdir) / "mlruns"),
            )

            tracker.log_run(_parameters(), _result(), run_name="run-1")

            runs = mlflow.search_runs(experiment_ids=[tracker.experiment_id])
            assert len(runs) == 1
            row = runs.iloc[0]
            assert row["metrics.bb_eval"] == 42.0
            assert row["metrics.success"] == 1.0
            assert row["metrics.best_feasible_objective"] == 0.25
            assert row["metrics.stat_sum"] == 3.0
            assert row["params.output_types"] == "PB,OBJ"
            assert row["params.best_feasible"] == "[1.0, 2.0]"
            assert mlflow.active_run() is None

    def test_log_failed_result(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tracker = MLflowTracker(
                experiment_name="test_exp",
                tracking_uri=str(Path(tmpdir) / "mlruns"),
            )
            tracker.start_run("failed")
            tracker.log_result(OptimizationResult.failure())
            tracker.end_run()

            runs = mlflow.search_runs(experiment_ids=[tracker.experiment_id])
            row = runs.iloc[0]
            assert row["metrics.success"] == 0.0
            assert row["metrics.has_feasible"] == 0.0

    def test_get_best_run(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tracker = MLflowTracker(
                experiment_name="best_exp",
                tracking_uri=str(Path(tmpdir) / "mlruns"),
            )
            tracker.log_run(_parameters(), _result(), run_name="good")
            worse = OptimizationResult(
                success=True,
                best_feasible=PointSnapshot(x=(0.0, 0.0), outputs=(0.0, 9.0)),
                bb_eval=10,
            )
            tracker.log_run(_parameters(), worse, run_name="worse")

            best = MLflowTracker.get_best_run("best_exp")

            assert best is not None
            assert best["metrics.best_feasible_objective"] == 0.25

    def test_get_best_run_unknown_experiment(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            MLflowTracker(experiment_name="exists", tracking_uri=str(Path(tmpdir) / "mlruns"))

            assert MLflowTracker.get_best_run("missing") is None
