import io
import json

import numpy as np
import pandas as pd
import pytest

from config import APP_NAME, MonteCarloConfig
from exporters import (
    _json_default,
    export_monte_carlo,
    export_percentiles_csv,
    export_projection_csv,
    export_result,
)
from monte_carlo import run_monte_carlo
from simulation import calculate_fire


@pytest.fixture
def result(saver):
    return calculate_fire(saver, "PT")


@pytest.fixture
def mc(saver, result):
    return run_monte_carlo(result, saver, config=MonteCarloConfig(n_paths=50, seed=3, workers=1))


def test_result_json(result):
    name, blob = export_result(result)
    assert name == "fire_pt.json"
    data = json.loads(blob)
    assert data["currency"] == "EUR"
    assert data["generator"] == APP_NAME
    assert len(data["projections"]) == len(result.projections)
    assert data["fire_number"] == pytest.approx(result.fire_number)


def test_monte_carlo_json(mc):
    name, blob = export_monte_carlo(mc)
    data = json.loads(blob)
    assert name == "monte_carlo.json"
    assert len(data["p50"]) == 51
    assert data["seed"] == 3
    assert sum(data["failure_year_distribution"]) == round((1 - mc.success_rate) * 50)


def test_projection_csv(result):
    name, blob = export_projection_csv(result)
    df = pd.read_csv(io.BytesIO(blob))
    assert name == "projection_pt.csv"
    assert len(df) == len(result.projections)
    assert {"age", "liquid_end", "illiquid_end", "portfolio_end", "tax_paid"} <= set(df.columns)


def test_percentiles_csv(mc):
    _, blob = export_percentiles_csv(mc)
    df = pd.read_csv(io.BytesIO(blob))
    assert list(df["age"]) == list(mc.ages)


def test_json_default_handles_numpy():
    assert _json_default(np.float64(1.5)) == 1.5
    assert _json_default(np.arange(3)) == [0, 1, 2]
    with pytest.raises(TypeError):
        _json_default(object())
