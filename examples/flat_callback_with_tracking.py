"""Drive ``run`` with a flat callback, process workers and MLflow tracking."""

from __future__ import annotations

import numpy as np

from madsbridge import DisplayConfig, OutputType, Parameters, run
from madsbridge.logging import MLflowTracker


def callback(request: np.ndarray) -> np.ndarray:
    """``n`` coordinates in; objective, statistic, success and count flags out."""
    f = float(np.sum(np.abs(request - 0.5) ** 1.5))
    return np.array([f, f, 1.0, 1.0])


def main() -> None:
    tracker = MLflowTracker(experiment_name="madsbridge-demo", tracking_uri="./mlruns")

    parameters = Parameters(
        x0=[3.0, -2.0, 1.0],
        output_types=[OutputType.OBJ, OutputType.STAT_AVG],
        max_bb_eval=600,
        workers=4,
        worker_mode="process",
        seed=42,
    )
    result = run(parameters, DisplayConfig(degree=1), 3, 2, callback, has_stat_avg=True)

    tracker.log_run(parameters, result, run_name="flat-callback")
    print(result.to_dict())


if __name__ == "__main__":
    main()
