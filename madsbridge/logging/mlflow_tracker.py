"""MLflow integration for experiment tracking.

Records the parameters and the outcome of optimization runs so runs can be
compared across blackboxes, seeds and budgets.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

import mlflow

from madsbridge.core.results import OptimizationResult
from madsbridge.engine.parameters import OutputType, Parameters


class MLflowTracker:
    """Track optimization runs with MLflow.

    Parameters
    ----------
    experiment_name : str
        Name of the MLflow experiment.
    tracking_uri : str | None
        MLflow tracking server URI (default: local filesystem).
    """

    def __init__(
        self,
        experiment_name: str = "madsbridge",
        tracking_uri: str | None = None,
    ) -> None:
        self.experiment_name = experiment_name
        self.tracking_uri = tracking_uri or "./mlruns"

        mlflow.set_tracking_uri(self.tracking_uri)

        try:
            self.experiment_id = mlflow.create_experiment(experiment_name)
        except mlflow.exceptions.MlflowException:
            # Experiment already exists
            experiment = mlflow.get_experiment_by_name(experiment_name)
            self.experiment_id = experiment.experiment_id

    def start_run(self, run_name: str | None = None) -> None:
        mlflow.set_experiment(self.experiment_name)
        mlflow.start_run(run_name=run_name)

    def end_run(self) -> None:
        mlflow.end_run()

    def log_parameters(self, parameters: Parameters) -> None:
        """Log run parameters; list-valued settings are stored as strings."""
        params: dict[str, Any] = {
            "dimension": parameters.dimension,
            "output_types": ",".join(t.value for t in parameters.output_types),
            "max_bb_eval": parameters.max_bb_eval,
            "max_iterations": parameters.max_iterations,
            "initial_poll_size": parameters.initial_poll_size,
            "min_poll_size": parameters.min_poll_size,
            "opportunistic": parameters.opportunistic,
            "has_sgte": parameters.has_sgte,
            "seed": parameters.seed,
            "workers": parameters.workers,
            "worker_mode": parameters.worker_mode,
            "x0": json.dumps([float(v) for v in parameters.x0]),
        }
        mlflow.log_params(params)

    def log_result(self, result: OptimizationResult, objective_index: int = 0) -> None:
        """Log the final result as metrics (and the best points as params)."""
        metrics: dict[str, float] = {
            "success": float(result.success),
            "has_feasible": float(result.has_feasible),
            "has_infeasible": float(result.has_infeasible),
            "bb_eval": float(result.bb_eval),
        }
        if result.stat_avg is not None:
            metrics["stat_avg"] = result.stat_avg
        if result.stat_sum is not None:
            metrics["stat_sum"] = result.stat_sum
        if result.best_feasible is not None:
            metrics["best_feasible_objective"] = result.best_feasible.outputs[objective_index]
            mlflow.log_param("best_feasible", json.dumps(list(result.best_feasible.x)))
        if result.best_infeasible is not None:
            mlflow.log_param("best_infeasible", json.dumps(list(result.best_infeasible.x)))
        if result.seed is not None:
            mlflow.log_param("result_seed", result.seed)
        mlflow.log_metrics(metrics)

    def log_artifact_json(self, data: dict[str, Any], filename: str = "result.json") -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / filename
            with open(path, "w") as f:
                json.dump(data, f, indent=2)
            mlflow.log_artifact(str(path))

    def log_run(self, parameters: Parameters, result: OptimizationResult, run_name: str | None = None) -> None:
        """Log one run end to end: parameters, result and a JSON artifact."""
        self.start_run(run_name)
        try:
            self.log_parameters(parameters)
            self.log_result(result, parameters.indices(OutputType.OBJ)[0])
            self.log_artifact_json(result.to_dict())
        finally:
            self.end_run()

    @staticmethod
    def get_best_run(experiment_name: str) -> dict[str, Any] | None:
        """Return the successful run with the lowest feasible objective, if any."""
        experiment = mlflow.get_experiment_by_name(experiment_name)
        if experiment is None:
            return None

        runs = mlflow.search_runs(
            experiment_ids=[experiment.experiment_id],
            filter_string="metrics.success = 1",
            order_by=["metrics.best_feasible_objective ASC"],
        )

        if runs.empty:
            return None

        return runs.iloc[0].to_dict()
