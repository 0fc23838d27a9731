import math

import pytest

from madsbridge.engine.parameters import DisplayConfig, OutputType, Parameters
from madsbridge.exceptions import ParameterError


def _params(**overrides) -> Parameters:
    base = {"x0": [0.0, 0.0], "output_types": [OutputType.OBJ, OutputType.PB]}
    base.update(overrides)
    return Parameters(**base)


def test_defaults_are_valid():
    params = _params()
    params.check()

    assert params.dimension == 2
    assert params.output_count == 2
    assert params.indices(OutputType.PB) == [1]
    assert not params.has_stat_avg
    assert not params.has_stat_sum


def test_stat_flags_follow_output_types():
    params = _params(output_types=[OutputType.STAT_SUM, OutputType.OBJ, OutputType.STAT_AVG])

    assert params.has_stat_avg
    assert params.has_stat_sum


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"x0": []}, "at least one coordinate"),
        ({"x0": [0.0, math.nan]}, "finite"),
        ({"lower_bound": [0.0]}, "lower_bound has 1 entries"),
        ({"upper_bound": [1.0, 1.0, 1.0]}, "upper_bound has 3 entries"),
        ({"lower_bound": [1.0, 0.0], "upper_bound": [0.0, 1.0], "x0": [0.5, 0.5]}, "exceeds"),
        ({"lower_bound": [1.0, 1.0]}, "outside"),
        ({"output_types": []}, "must not be empty"),
        ({"output_types": [OutputType.PB]}, "Exactly one OBJ"),
        ({"output_types": [OutputType.OBJ, OutputType.OBJ]}, "Exactly one OBJ"),
        ({"output_types": [OutputType.OBJ, "PB"]}, "Unknown output types"),
        ({"max_bb_eval": 0}, "max_bb_eval"),
        ({"max_iterations": 0}, "max_iterations"),
        ({"initial_poll_size": 0.0}, "strictly positive"),
        ({"min_poll_size": 2.0}, "exceeds initial_poll_size"),
        ({"sgte_cost": 0}, "sgte_cost"),
        ({"workers": 0}, "workers"),
        ({"worker_mode": "gpu"}, "Unknown worker mode"),
    ],
)
def test_check_rejects_invalid_settings(overrides, fragment):
    with pytest.raises(ParameterError) as excinfo:
        _params(**overrides).check()

    assert fragment in excinfo.value.message


def test_parameter_error_is_a_value_error():
    with pytest.raises(ValueError):
        _params(x0=[]).check()


def test_released_parameters_cannot_be_checked_again():
    params = _params()
    params.release()

    assert params.released
    with pytest.raises(ParameterError) as excinfo:
        params.check()
    assert excinfo.value.suggestion == "Build a new Parameters object for each run"


def test_display_degrees(caplog):
    display = DisplayConfig(degree=2)

    assert display.enabled(1)
    assert display.enabled(2)
    assert not display.enabled(3)

    with caplog.at_level("INFO", logger="madsbridge.engine"):
        display.log(2, "shown %d", 2)
        display.log(3, "hidden %d", 3)

    messages = [rec.getMessage() for rec in caplog.records]
    assert messages == ["shown 2"]
