"""Minimise a constrained blackbox with the high-level API."""

from __future__ import annotations

from madsbridge import DisplayConfig, OutputType, Parameters, optimize


def blackbox(x):
    """Objective ``(x0 - 1)^2 + (x1 - 2)^2`` subject to ``x0 + x1 <= 2``."""
    f = (x[0] - 1.0) ** 2 + (x[1] - 2.0) ** 2
    c = x[0] + x[1] - 2.0
    return True, True, [f, c]


def main() -> None:
    parameters = Parameters(
        x0=[0.0, 0.0],
        output_types=[OutputType.OBJ, OutputType.PB],
        lower_bound=[-5.0, -5.0],
        upper_bound=[5.0, 5.0],
        max_bb_eval=1000,
    )

    result = optimize(blackbox, parameters, display=DisplayConfig(degree=1))

    if not result.success:
        print("Run failed; see the log above.")
        return
    if result.best_feasible is not None:
        print(f"best feasible x={result.best_feasible.x} f={result.best_feasible.outputs[0]:.6f}")
    if result.best_infeasible is not None:
        print(f"best infeasible x={result.best_infeasible.x}")
    print(f"blackbox evaluations: {result.bb_eval}")


if __name__ == "__main__":
    main()
