# exporters.py
import json

import numpy as np

from config import APP_NAME
from monte_carlo import MonteCarloResult
from simulation import FireResult


def _json_default(o):
    # Handle numpy arrays & scalars cleanly for JSON
    if isinstance(o, np.ndarray):
        return o.tolist()
    if isinstance(o, np.generic):
        return o.item()
    # Let json raise for anything else unexpected
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


def _finite(obj):
    # JSON has no inf; unbounded bracket limits become null
    if isinstance(obj, float) and not np.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _finite(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_finite(v) for v in obj]
    return obj


def export_result(result: FireResult) -> tuple[str, bytes]:
    data = {"generator": APP_NAME, **result.to_dict()}
    blob = json.dumps(_finite(data), indent=2, default=_json_default)
    return f"fire_{result.country_code.lower()}.json", blob.encode()


def export_monte_carlo(mc: MonteCarloResult) -> tuple[str, bytes]:
    blob = json.dumps(mc.to_dict(), indent=2, default=_json_default)
    return "monte_carlo.json", blob.encode()


def export_projection_csv(result: FireResult) -> tuple[str, bytes]:
    df = result.to_dataframe()
    return f"projection_{result.country_code.lower()}.csv", df.to_csv(index=False).encode()


def export_percentiles_csv(mc: MonteCarloResult) -> tuple[str, bytes]:
    return "monte_carlo_percentiles.csv", mc.to_dataframe().to_csv(index=False).encode()
