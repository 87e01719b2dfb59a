"""
Deterministic FIRE projection.

One pass per year from the current age to the horizon, tracking two pools in the
target country's currency: liquid (accounts, crypto, cash) which funds spending,
and illiquid (property equity) which only appreciates.
"""

from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

import pandas as pd
from loguru import logger

from config import DEFAULT_ENGINE, DEFAULTS, EngineConfig
from costs import col_adjust
from currency import RateProvider, convert
from pensions import PensionSpec, get_state_pension
from tax_models import blended_effective_rate, gross_for_net, index_brackets, tax_due
from taxes import CountryProfile, get_country

LIQUID_CLASSES = ("tax_deferred", "tax_free", "taxable", "crypto", "cash")


@dataclass(frozen=True)
class AssetBalances:
    tax_deferred: float = 0.0
    tax_free: float = 0.0
    taxable: float = 0.0
    crypto: float = 0.0
    cash: float = 0.0
    property_equity: float = 0.0

    @property
    def stocks(self) -> float:
        return self.tax_deferred + self.tax_free + self.taxable

    @property
    def liquid(self) -> float:
        return sum(getattr(self, k) for k in LIQUID_CLASSES)

    @property
    def illiquid(self) -> float:
        return self.property_equity

    @property
    def total(self) -> float:
        return self.liquid + self.illiquid


@dataclass(frozen=True)
class AssetReturns:
    # nominal; None means "use the profile-level default"
    stocks: Optional[float] = None
    crypto: Optional[float] = None
    cash: Optional[float] = None
    property_equity: Optional[float] = None


@dataclass(frozen=True)
class UserProfile:
    current_age: int
    target_retirement_age: int
    origin_country: str
    destination_country: str
    portfolio_value: float
    portfolio_currency: str
    annual_spending: float
    spending_currency: str
    annual_savings: float = 0.0          # in portfolio currency
    expected_return: float = 0.07        # nominal
    inflation_rate: float = 0.03
    safe_withdrawal_rate: float = 0.04
    balances: AssetBalances = field(default_factory=AssetBalances)
    asset_returns: AssetReturns = field(default_factory=AssetReturns)
    origin_pension: PensionSpec = field(default_factory=PensionSpec)
    destination_pension: PensionSpec = field(default_factory=PensionSpec)
    stock_allocation: float = 0.8

    @classmethod
    def from_defaults(cls, **overrides) -> "UserProfile":
        """DEFAULTS with overrides; a portfolio_value given without balances replaces the default split."""
        base = {k: v for k, v in DEFAULTS.items() if k != "pension_age"}
        base["balances"] = AssetBalances(**base["balances"])
        if "portfolio_value" in overrides and "balances" not in overrides:
            base["balances"] = AssetBalances()
        base.update(overrides)
        return cls(**base)

    @property
    def retiring_now(self) -> bool:
        return self.current_age >= self.target_retirement_age


@dataclass(frozen=True)
class YearlyProjection:
    year: int
    age: int
    liquid_start: float
    liquid_end: float
    illiquid_start: float
    illiquid_end: float
    liquid_growth: float
    illiquid_growth: float
    savings: float
    withdrawal: float        # gross, actually drawn from liquid
    shortfall: float         # requested but not available
    pension_income: float
    tax_paid: float
    retired: bool
    pension_active: bool

    @property
    def portfolio_start(self) -> float:
        return self.liquid_start + self.illiquid_start

    @property
    def portfolio_end(self) -> float:
        return self.liquid_end + self.illiquid_end


@dataclass(frozen=True)
class ResolvedPension:
    label: str               # "origin" or "destination"
    country_code: str
    start_age: int
    annual_amount: float     # local currency, in start-age money
    currency: str

    def amount_at(self, age: int, inflation: float = 0.0) -> float:
        if age < self.start_age:
            return 0.0
        return self.annual_amount * (1 + inflation) ** (age - self.start_age)


@dataclass
class FireResult:
    country_code: str
    currency: str
    fire_number: float
    fire_number_usd: float
    can_retire: bool
    retirement_age: Optional[int]
    years_until_fire: Optional[int]
    effective_tax_rate: float
    gross_withdrawal: float
    net_withdrawal: float
    projections: Tuple[YearlyProjection, ...]
    warnings: List[str]
    notes: List[str]
    liquid_value: float
    illiquid_value: float
    pensions: Tuple[ResolvedPension, ...]
    annual_savings: float
    start_age: int

    def pension_income_at(self, age: int, inflation: float = 0.0) -> float:
        return sum(p.amount_at(age, inflation) for p in self.pensions)

    def to_dict(self) -> dict:
        return asdict(self)

    def to_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame([asdict(p) for p in self.projections])
        if not df.empty:
            df["portfolio_start"] = df["liquid_start"] + df["illiquid_start"]
            df["portfolio_end"] = df["liquid_end"] + df["illiquid_end"]
        return df


# ---------- Helpers ----------
def liquid_return(profile: UserProfile) -> float:
    """Balance-weighted nominal return of the liquid classes."""
    r = profile.asset_returns
    stocks = profile.expected_return if r.stocks is None else r.stocks
    crypto = profile.expected_return if r.crypto is None else r.crypto
    cash = profile.inflation_rate if r.cash is None else r.cash
    b = profile.balances
    weight = b.stocks + b.crypto + b.cash
    if weight <= 0:
        return stocks
    return (b.stocks * stocks + b.crypto * crypto + b.cash * cash) / weight


def property_return(profile: UserProfile, config: EngineConfig = DEFAULT_ENGINE) -> float:
    r = profile.asset_returns.property_equity
    return profile.inflation_rate + config.property_real_appreciation if r is None else r


def resolve_pension(label: str, spec: PensionSpec, country_code: str, local_ccy: str,
                    fallback_ccy: str, provider: Optional[RateProvider] = None
                    ) -> Optional[ResolvedPension]:
    if not spec.enabled:
        return None
    info = get_state_pension(country_code)
    if info is None and (spec.amount is None or spec.start_age is None):
        logger.warning(f"No state pension record for {country_code}; using generic defaults")

    amount = spec.amount
    if amount is None:
        amount = info.average_annual_benefit if info else 0.0
    currency = spec.currency or (info.currency if info else fallback_ccy)
    start_age = spec.start_age
    if start_age is None:
        start_age = info.eligibility_age if info else DEFAULTS["pension_age"]

    return ResolvedPension(
        label=label,
        country_code=country_code,
        start_age=int(start_age),
        annual_amount=convert(max(amount, 0.0), currency, local_ccy, provider),
        currency=local_ccy,
    )


def country_notes(country: CountryProfile, profile: UserProfile) -> List[str]:
    notes = []
    if country.crypto_gains_rate is not None and profile.balances.crypto > 0:
        if country.crypto_gains_rate == 0:
            notes.append(f"{country.name} has no capital gains tax on crypto.")
        else:
            notes.append(f"Crypto is subject to {country.crypto_gains_rate * 100:g}% "
                         f"capital gains tax in {country.name}.")
    if not country.has_capital_gains_tax:
        notes.append(f"{country.name} has no capital gains tax on private investments.")
    if not country.has_income_tax:
        notes.append(f"{country.name} has no personal income tax.")
    for regime in country.special_regimes:
        notes.append(f"{regime.name}: {regime.description}")
    social = country.social_tax
    if social is not None and social.applies_to_investment_income and social.rate > 0:
        notes.append(f"{social.name} ({social.rate:.1%}) also applies to investment income "
                     f"and is not included in the FIRE number.")
    if country.notes:
        notes.append(country.notes)
    return notes


# ---------- Engine ----------
def calculate_fire(profile: UserProfile, target_code: Optional[str] = None,
                   provider: Optional[RateProvider] = None,
                   config: Optional[EngineConfig] = None) -> FireResult:
    """
    Project the profile year by year in the target country (default: its destination).

    Raises CountryNotFoundError for an unknown target or origin code; every other
    degenerate input produces a finite result.
    """
    config = config or DEFAULT_ENGINE
    target = get_country(target_code or profile.destination_country)
    origin = get_country(profile.origin_country)
    ccy = target.currency
    share = config.withdrawal_income_share

    def to_local(amount: float, from_ccy: str) -> float:
        return convert(amount, from_ccy, ccy, provider)

    def rate_at(gross: float) -> float:
        return blended_effective_rate(gross, target.income_brackets,
                                      target.capital_gains_brackets, share)

    # 1-3: lifestyle cost in the target, grossed up for tax, capitalised at the SWR
    spending = max(0.0, to_local(profile.annual_spending, profile.spending_currency))
    net_needed = col_adjust(spending, origin.code, target.code)
    gross_needed = gross_for_net(net_needed, rate_at, config.min_tax_divisor,
                                 config.gross_up_iterations, config.gross_up_tolerance)
    swr = max(profile.safe_withdrawal_rate, config.min_swr)
    fire_number = gross_needed / swr
    fire_number_usd = convert(fire_number, ccy, config.reference_currency, provider)
    effective_rate = rate_at(gross_needed)

    # 4: opening pools
    b = profile.balances
    if b.total > 0:
        liquid = to_local(b.liquid, profile.portfolio_currency)
        illiquid = to_local(b.illiquid, profile.portfolio_currency)
    else:
        liquid = to_local(profile.portfolio_value, profile.portfolio_currency)
        illiquid = 0.0
    liquid, illiquid = max(liquid, 0.0), max(illiquid, 0.0)
    liquid_value, illiquid_value = liquid, illiquid
    r_liquid = liquid_return(profile)
    r_property = property_return(profile, config)
    savings_local = to_local(profile.annual_savings, profile.portfolio_currency)

    pensions = tuple(p for p in (
        resolve_pension("origin", profile.origin_pension, origin.code, ccy,
                        profile.portfolio_currency, provider),
        resolve_pension("destination", profile.destination_pension, target.code, ccy,
                        profile.portfolio_currency, provider),
    ) if p is not None)

    logger.debug(f"calculate_fire {origin.code}->{target.code}: net {net_needed:,.0f} {ccy}, "
                 f"gross {gross_needed:,.0f}, FIRE number {fire_number:,.0f}")

    inflation = profile.inflation_rate
    threshold = config.retirement_threshold * fire_number
    last_age = max(config.horizon_age, profile.current_age + config.min_projection_years)

    projections = []
    retirement_age = None
    depleted = None
    for year, age in enumerate(range(profile.current_age, last_age + 1)):
        liquid_start, illiquid_start = liquid, illiquid

        # 5: retirement gate, latched
        if retirement_age is None and age >= profile.target_retirement_age and liquid_start >= threshold:
            retirement_age = age
        retired = retirement_age is not None

        liquid_growth = liquid_start * r_liquid
        illiquid_growth = illiquid_start * r_property
        pension_income = sum(p.amount_at(age, inflation) for p in pensions)
        pension_active = any(age >= p.start_age for p in pensions)

        savings = withdrawal = shortfall = tax_paid = 0.0
        if retired:
            # 6: inflated need, net of pensions, drawn from liquid only
            required = gross_needed * (1 + inflation) ** (age - retirement_age)
            need = max(0.0, required - pension_income)
            withdrawal = min(need, max(0.0, liquid_start + liquid_growth))
            shortfall = need - withdrawal

            factor = (1 + inflation) ** year
            income_table = index_brackets(target.income_brackets, factor)
            gains_table = index_brackets(target.capital_gains_brackets, factor)
            # pension income stacks on the ordinary-income share of the withdrawal
            tax_paid = (tax_due(withdrawal * share + pension_income, income_table)
                        + tax_due(withdrawal * (1 - share), gains_table))
        elif not profile.retiring_now:
            # 7
            savings = savings_local

        liquid = max(0.0, liquid_start + liquid_growth + savings - withdrawal)
        illiquid = max(0.0, illiquid_start + illiquid_growth)

        projections.append(YearlyProjection(
            year=year,
            age=age,
            liquid_start=liquid_start,
            liquid_end=liquid,
            illiquid_start=illiquid_start,
            illiquid_end=illiquid,
            liquid_growth=liquid_growth,
            illiquid_growth=illiquid_growth,
            savings=savings,
            withdrawal=withdrawal,
            shortfall=shortfall,
            pension_income=pension_income,
            tax_paid=tax_paid,
            retired=retired,
            pension_active=pension_active,
        ))

        if retired and liquid <= 0:
            if depleted is None and (liquid_start > 0 or shortfall > 0):
                depleted = projections[-1]
            if illiquid <= 0:
                break

    warnings = _warnings(profile, target, origin, projections, depleted, retirement_age,
                         fire_number, threshold, config, last_age)

    result = FireResult(
        country_code=target.code,
        currency=ccy,
        fire_number=fire_number,
        fire_number_usd=fire_number_usd,
        can_retire=retirement_age is not None,
        retirement_age=retirement_age,
        years_until_fire=None if retirement_age is None else retirement_age - profile.current_age,
        effective_tax_rate=effective_rate,
        gross_withdrawal=gross_needed,
        net_withdrawal=net_needed,
        projections=tuple(projections),
        warnings=warnings,
        notes=country_notes(target, profile),
        liquid_value=liquid_value,
        illiquid_value=illiquid_value,
        pensions=pensions,
        annual_savings=savings_local,
        start_age=profile.current_age,
    )
    logger.debug(f"calculate_fire {target.code}: can_retire={result.can_retire}, "
                 f"retirement_age={result.retirement_age}, {len(projections)} years projected")
    return result


def _warnings(profile, target, origin, projections, depleted, retirement_age,
              fire_number, threshold, config, last_age) -> List[str]:
    ccy = target.currency
    out = []
    if depleted is not None:
        if depleted.illiquid_end > 0:
            out.append(f"Liquid assets depleted at age {depleted.age}; "
                       f"{depleted.illiquid_end:,.0f} {ccy} in property remains but is not "
                       f"available for spending.")
        else:
            out.append(f"Portfolio depleted at age {depleted.age}.")

    if profile.origin_pension.enabled and origin.code != target.code:
        info = get_state_pension(origin.code)
        if info is not None and not info.can_claim_abroad:
            out.append(f"{info.name} may not be payable while living in {target.name}. "
                       f"Verify eligibility.")

    if retirement_age is None:
        out.append(f"FIRE number of {fire_number:,.0f} {ccy} is not reached by age {last_age}.")
    if retirement_age is None or retirement_age > profile.target_retirement_age:
        at_target = next((p for p in projections if p.age >= profile.target_retirement_age), None)
        if at_target is not None and fire_number > 0:
            out.append(f"At age {at_target.age} liquid assets cover "
                       f"{at_target.liquid_start / fire_number:.0%} of the FIRE number; "
                       f"retirement needs {config.retirement_threshold:.0%}.")
    return out
