"""
Reverse views: what a portfolio sustains, and the Coast FIRE number.
"""

from dataclasses import dataclass
from typing import Optional

from config import DEFAULT_ENGINE, EngineConfig
from currency import RateProvider, convert
from simulation import FireResult, UserProfile
from tax_models import blended_effective_rate
from taxes import get_country

# Upper bounds (USD net per year, cost-of-living normalised to the US) per lifestyle level
LIFESTYLE_LEVELS = (
    ("lean", 30_000),
    ("moderate", 60_000),
    ("comfortable", 100_000),
)
TOP_LIFESTYLE = "fat"


@dataclass
class SustainableSpending:
    country_code: str
    currency: str
    safe_withdrawal_rate: float
    gross: float
    net: float
    effective_tax_rate: float
    monthly_net: float
    lifestyle: str
    vs_current_pct: Optional[float] = None
    can_afford_more: Optional[bool] = None


@dataclass
class CoastFire:
    target_age: int
    coast_number: float
    years_to_target: int
    already_coast: bool
    gap: float                 # still missing today, 0 once coasting


def lifestyle_level(usd_net_col_adjusted: float) -> str:
    for name, upper in LIFESTYLE_LEVELS:
        if usd_net_col_adjusted < upper:
            return name
    return TOP_LIFESTYLE


def calculate_sustainable_spending(portfolio: float, currency: str, country_code: str,
                                   swr: float = 0.04, current_spending: Optional[float] = None,
                                   provider: Optional[RateProvider] = None,
                                   config: Optional[EngineConfig] = None) -> SustainableSpending:
    """
    Annual spending a portfolio supports in a country at the given withdrawal rate.

    current_spending, if given, is in the portfolio currency; the comparison is the
    percentage by which sustainable net spending exceeds it.
    """
    config = config or DEFAULT_ENGINE
    country = get_country(country_code)
    portfolio_local = convert(portfolio, currency, country.currency, provider)
    gross = max(0.0, portfolio_local * swr)
    rate = blended_effective_rate(gross, country.income_brackets,
                                  country.capital_gains_brackets, config.withdrawal_income_share)
    net = gross * (1 - rate)

    usd_net = convert(net, country.currency, config.reference_currency, provider)
    level = lifestyle_level(usd_net / country.col_index * 100)

    out = SustainableSpending(
        country_code=country.code,
        currency=country.currency,
        safe_withdrawal_rate=swr,
        gross=gross,
        net=net,
        effective_tax_rate=rate,
        monthly_net=net / 12,
        lifestyle=level,
    )
    if current_spending is not None and current_spending > 0:
        current_local = convert(current_spending, currency, country.currency, provider)
        out.vs_current_pct = (net - current_local) / current_local * 100
        out.can_afford_more = net >= current_local
    return out


def calculate_coast_fire(result: FireResult, profile: UserProfile,
                         target_age: Optional[int] = None) -> CoastFire:
    """
    Liquid assets needed today so that real growth alone, with no further saving,
    reaches the FIRE number by target_age (default: the profile's target age).
    """
    target_age = profile.target_retirement_age if target_age is None else target_age
    real_return = profile.expected_return - profile.inflation_rate
    years = target_age - profile.current_age
    if years <= 0 or real_return <= 0:
        coast, years = result.fire_number, max(years, 0)
    else:
        coast = result.fire_number / (1 + real_return) ** years
    return CoastFire(
        target_age=target_age,
        coast_number=coast,
        years_to_target=years,
        already_coast=result.liquid_value >= coast,
        gap=max(0.0, coast - result.liquid_value),
    )
