from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from config import DEFAULT_ENGINE, EngineConfig
from tax_models import BracketSlice, bracket_slices, slices_to_df
from taxes import get_country

INCOME_TYPES = ("withdrawal", "capital_gains", "mixed")


@dataclass
class TaxBreakdown:
    gross_income: float
    currency: str
    income_type: str
    income_tax: float
    capital_gains_tax: float
    social_tax: float
    total_tax: float
    effective_rate: float
    net_income: float
    income_brackets: List[BracketSlice] = field(default_factory=list)
    gains_brackets: List[BracketSlice] = field(default_factory=list)

    @property
    def income_tax_rate(self) -> float:
        return self.income_tax / self.gross_income if self.gross_income > 0 else 0.0

    @property
    def capital_gains_rate(self) -> float:
        return self.capital_gains_tax / self.gross_income if self.gross_income > 0 else 0.0

    @property
    def social_tax_rate(self) -> float:
        return self.social_tax / self.gross_income if self.gross_income > 0 else 0.0

    def to_dataframe(self) -> pd.DataFrame:
        income = slices_to_df(self.income_brackets).assign(kind="income")
        gains = slices_to_df(self.gains_brackets).assign(kind="capital_gains")
        return pd.concat([income, gains], ignore_index=True)


def calculate_tax_breakdown(gross: float, country_code: str, income_type: str = "mixed",
                            config: Optional[EngineConfig] = None) -> TaxBreakdown:
    """
    Itemised tax on a gross amount in a country's currency.

    withdrawal: everything through the income brackets; capital_gains: everything
    through the gains brackets; mixed: split by the engine's withdrawal income share.
    Social tax is added only where the country levies it on investment income.
    """
    if income_type not in INCOME_TYPES:
        raise ValueError(f"income_type must be one of {INCOME_TYPES}, got {income_type!r}")
    config = config or DEFAULT_ENGINE
    country = get_country(country_code)
    gross = max(0.0, gross)

    share = {"withdrawal": 1.0, "capital_gains": 0.0}.get(income_type, config.withdrawal_income_share)
    income_rows = bracket_slices(gross * share, country.income_brackets)
    gains_rows = bracket_slices(gross * (1 - share), country.capital_gains_brackets)
    income_tax = sum(s.tax for s in income_rows)
    gains_tax = sum(s.tax for s in gains_rows)

    social = country.social_tax
    social_tax = gross * social.rate if social is not None and social.applies_to_investment_income else 0.0

    total = income_tax + gains_tax + social_tax
    return TaxBreakdown(
        gross_income=gross,
        currency=country.currency,
        income_type=income_type,
        income_tax=income_tax,
        capital_gains_tax=gains_tax,
        social_tax=social_tax,
        total_tax=total,
        effective_rate=total / gross if gross > 0 else 0.0,
        net_income=gross - total,
        income_brackets=income_rows,
        gains_brackets=gains_rows,
    )
