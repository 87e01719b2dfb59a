import os
from dataclasses import dataclass
from typing import Optional

from returns_presets import ASSET_STATS

APP_NAME = "FIRE Abroad: retire-early calculator"

# Default profile assumptions (nominal unless noted)
DEFAULTS = {
    "current_age": 35,
    "target_retirement_age": 50,
    "origin_country": "US",
    "destination_country": "PT",

    # Portfolio
    "portfolio_value": 500_000,
    "portfolio_currency": "USD",
    "balances": {
        "tax_deferred": 200_000,
        "tax_free": 50_000,
        "taxable": 200_000,
        "crypto": 0,
        "cash": 50_000,
        "property_equity": 0,
    },

    # Lifestyle
    "annual_spending": 40_000,
    "spending_currency": "USD",
    "annual_savings": 30_000,

    # Market assumptions
    "expected_return": 0.07,          # nominal, stocks
    "inflation_rate": 0.03,
    "safe_withdrawal_rate": 0.04,
    "stock_allocation": 0.8,          # Monte Carlo stock/bond split

    # Pensions
    "pension_age": 67,                # used when the registry has no record
}


@dataclass(frozen=True)
class EngineConfig:
    # 25% of each withdrawal is taxed as ordinary income, 75% as capital gains
    withdrawal_income_share: float = 0.25
    # retirement may start once liquid assets reach this share of the FIRE number
    retirement_threshold: float = 0.80
    horizon_age: int = 100
    min_projection_years: int = 50
    min_tax_divisor: float = 0.01
    min_swr: float = 0.001
    property_real_appreciation: float = ASSET_STATS["property"]["real_mu"]
    gross_up_iterations: int = 200
    gross_up_tolerance: float = 1e-9
    reference_currency: str = "USD"


@dataclass(frozen=True)
class MonteCarloConfig:
    n_paths: int = 1000
    years: int = 50
    stock_mean: float = ASSET_STATS["stocks"]["real_mu"]
    stock_vol: float = ASSET_STATS["stocks"]["vol"]
    bond_mean: float = ASSET_STATS["bonds"]["real_mu"]
    bond_vol: float = ASSET_STATS["bonds"]["vol"]
    seed: Optional[int] = None        # None = fresh entropy each call
    chunk_size: int = 250
    workers: int = min(4, os.cpu_count() or 1)
    deadline_seconds: Optional[float] = 10.0


DEFAULT_ENGINE = EngineConfig()
DEFAULT_MONTE_CARLO = MonteCarloConfig()
