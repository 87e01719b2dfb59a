"""
Monte Carlo outcome distribution for a deterministic FireResult.

Each path starts from the result's liquid balance and runs a fixed number of years
in real terms: yearly return is a stock/bond blend of two independent normal draws,
then savings are added (before retirement) or the withdrawal net of pensions is
taken (after). A path that hits zero stays at zero.

Paths are simulated in chunks. Every chunk owns an independent child random stream
and a disjoint block of rows in one pre-sized buffer, so chunks run on a thread pool
without locks and the outcome depends only on the seed, not on scheduling.
"""

import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from config import DEFAULT_MONTE_CARLO, MonteCarloConfig
from simulation import FireResult, UserProfile

PERCENTILES = (0.10, 0.25, 0.50, 0.75, 0.90)


class SimulationTimeout(RuntimeError):
    pass


@dataclass
class MonteCarloResult:
    success_rate: float                  # fraction of paths never depleted
    ages: np.ndarray
    p10: np.ndarray
    p25: np.ndarray
    p50: np.ndarray
    p75: np.ndarray
    p90: np.ndarray
    average_failure_age: Optional[float]
    median_ending_balance: float
    failure_year_distribution: np.ndarray  # failures per simulated year index
    n_paths: int
    seed: Optional[int]

    def bands(self) -> Dict[str, np.ndarray]:
        return {"p10": self.p10, "p25": self.p25, "p50": self.p50, "p75": self.p75, "p90": self.p90}

    def to_dict(self) -> dict:
        return {
            "success_rate": self.success_rate,
            "ages": self.ages,
            **self.bands(),
            "average_failure_age": self.average_failure_age,
            "median_ending_balance": self.median_ending_balance,
            "failure_year_distribution": self.failure_year_distribution,
            "n_paths": self.n_paths,
            "seed": self.seed,
        }

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame({"age": self.ages, **self.bands()})
        df["failures"] = self.failure_year_distribution
        return df


# ---------- Sampling ----------
def standard_normal(rng: np.random.Generator, size: int) -> np.ndarray:
    """Box-Muller transform of two uniform draws per sample."""
    u1 = 1.0 - rng.random(size)   # (0, 1], keeps log finite
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def nearest_rank(sorted_values: np.ndarray, p: float) -> np.ndarray:
    """Discrete percentile along axis 0 of an ascending-sorted array: no interpolation."""
    n = sorted_values.shape[0]
    return sorted_values[int(math.floor(p * (n - 1)))]


# ---------- Planning ----------
def retirement_gate(result: FireResult) -> Optional[int]:
    """Retirement age the paths use: the deterministic one, None when it never retires."""
    return result.retirement_age


def yearly_flows(result: FireResult, profile: UserProfile, years: int) -> np.ndarray:
    """Real cash flow applied after growth in each simulated year (negative = withdrawal)."""
    gate = retirement_gate(result)
    savings = 0.0 if profile.retiring_now else result.annual_savings
    flows = np.empty(years)
    for t in range(years):
        age = result.start_age + t
        if gate is not None and age >= gate:
            flows[t] = -max(0.0, result.gross_withdrawal - result.pension_income_at(age))
        else:
            flows[t] = savings
    return flows


def _run_chunk(rng: np.random.Generator, balances: np.ndarray, first_zero: np.ndarray,
               flows: np.ndarray, weight: float, cfg: MonteCarloConfig,
               deadline: Optional[float]) -> None:
    """Fill balances[:, 1:] in place. balances[:, 0] holds the start value."""
    n, points = balances.shape
    bal = balances[:, 0].copy()
    alive = bal > 0
    first_zero[~alive] = 0
    bal[~alive] = 0.0
    balances[:, 0] = bal

    for t in range(1, points):
        if deadline is not None and time.monotonic() > deadline:
            raise SimulationTimeout(f"Monte Carlo exceeded {cfg.deadline_seconds}s deadline")
        stock = cfg.stock_mean + cfg.stock_vol * standard_normal(rng, n)
        bond = cfg.bond_mean + cfg.bond_vol * standard_normal(rng, n)
        r = weight * stock + (1.0 - weight) * bond

        nxt = np.where(alive, bal * (1.0 + r) + flows[t - 1], 0.0)
        died = alive & (nxt <= 0)
        first_zero[died] = t
        alive &= ~died
        bal = np.maximum(nxt, 0.0)
        balances[:, t] = bal


def _child_streams(n: int, seed: Optional[int], rng: Optional[np.random.Generator]):
    if rng is not None:
        return rng.spawn(n), None
    ss = np.random.SeedSequence(seed)
    return [np.random.default_rng(s) for s in ss.spawn(n)], ss.entropy


# ---------- Public API ----------
def run_monte_carlo(result: FireResult, profile: UserProfile,
                    stock_allocation: Optional[float] = None,
                    config: Optional[MonteCarloConfig] = None,
                    rng: Optional[np.random.Generator] = None) -> MonteCarloResult:
    """
    Simulate config.n_paths paths over config.years years.

    Reproducible when config.seed or rng is given; otherwise every call draws fresh
    entropy (recorded on the result as seed). Raises SimulationTimeout past the deadline.
    """
    cfg = config or DEFAULT_MONTE_CARLO
    if cfg.n_paths <= 0 or cfg.years <= 0:
        raise ValueError("n_paths and years must be positive")
    weight = profile.stock_allocation if stock_allocation is None else stock_allocation
    weight = min(max(weight, 0.0), 1.0)

    years, n = cfg.years, cfg.n_paths
    flows = yearly_flows(result, profile, years)
    balances = np.empty((n, years + 1))
    balances[:, 0] = result.liquid_value
    first_zero = np.full(n, -1, dtype=np.int64)

    chunk = max(1, cfg.chunk_size)
    bounds = [(lo, min(lo + chunk, n)) for lo in range(0, n, chunk)]
    streams, seed_used = _child_streams(len(bounds), cfg.seed, rng)

    started = time.monotonic()
    deadline = None if cfg.deadline_seconds is None else started + cfg.deadline_seconds
    logger.debug(f"Monte Carlo: {n} paths x {years} years in {len(bounds)} chunks, "
                 f"stock weight {weight:.2f}")

    def work(i: int) -> None:
        lo, hi = bounds[i]
        _run_chunk(streams[i], balances[lo:hi], first_zero[lo:hi], flows, weight, cfg, deadline)

    workers = max(1, min(cfg.workers, len(bounds)))
    if workers == 1:
        for i in range(len(bounds)):
            work(i)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(work, i) for i in range(len(bounds))]
            for f in futures:
                f.result()

    ordered = np.sort(balances, axis=0)
    bands: List[np.ndarray] = [nearest_rank(ordered, p) for p in PERCENTILES]

    failed = first_zero[first_zero >= 0]
    avg_failure_age = float(result.start_age + failed.mean()) if failed.size else None

    out = MonteCarloResult(
        success_rate=float((first_zero < 0).mean()),
        ages=result.start_age + np.arange(years + 1),
        p10=bands[0],
        p25=bands[1],
        p50=bands[2],
        p75=bands[3],
        p90=bands[4],
        average_failure_age=avg_failure_age,
        median_ending_balance=float(bands[2][-1]),
        failure_year_distribution=np.bincount(failed, minlength=years + 1),
        n_paths=n,
        seed=seed_used,
    )
    logger.debug(f"Monte Carlo done in {time.monotonic() - started:.2f}s: "
                 f"success {out.success_rate:.1%}")
    return out


def run_monte_carlo_safe(result: FireResult, profile: UserProfile, **kwargs) -> Optional[MonteCarloResult]:
    """run_monte_carlo, with any failure logged and reported as None (simulation unavailable)."""
    try:
        return run_monte_carlo(result, profile, **kwargs)
    except Exception:
        logger.exception("Monte Carlo simulation unavailable")
        return None
