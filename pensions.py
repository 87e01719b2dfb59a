"""
State / public pension reference data.

Amounts are annual, in the pension's own currency. Used to fill in default pension
amounts and start ages, and to warn when a pension may stop once you move abroad.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class StatePension:
    name: str
    eligibility_age: int
    average_annual_benefit: float
    max_annual_benefit: float
    currency: str
    can_claim_abroad: bool = True


STATE_PENSIONS: Dict[str, StatePension] = {
    "US": StatePension("Social Security", 67, 22_000, 57_288, "USD"),
    "UK": StatePension("State Pension", 66, 9_500, 11_502, "GBP"),
    "DE": StatePension("Gesetzliche Rentenversicherung", 67, 18_000, 38_000, "EUR"),
    "FR": StatePension("Retraite de base", 64, 17_000, 42_000, "EUR"),
    "ES": StatePension("Pension de jubilacion", 67, 16_000, 44_450, "EUR"),
    "PT": StatePension("Pensao de velhice", 66, 9_000, 30_000, "EUR"),
    "IT": StatePension("Pensione di vecchiaia", 67, 18_000, 40_000, "EUR"),
    "NL": StatePension("AOW", 67, 15_000, 18_000, "EUR"),
    "IE": StatePension("State Pension (Contributory)", 66, 12_000, 14_420, "EUR"),
    "CH": StatePension("AHV/AVS (1st Pillar)", 65, 22_000, 29_400, "CHF"),
    "CA": StatePension("CPP/QPP + OAS", 65, 15_000, 24_000, "CAD"),
    "AU": StatePension("Age Pension", 67, 24_000, 28_000, "AUD"),
    "JP": StatePension("Kokumin Nenkin", 65, 650_000, 800_000, "JPY"),
    # CPF LIFE payouts require remaining in (or periodically returning to) Singapore
    "SG": StatePension("CPF LIFE", 65, 15_000, 24_000, "SGD", can_claim_abroad=False),
    "MX": StatePension("IMSS Pension", 65, 60_000, 120_000, "MXN"),
    "NZ": StatePension("NZ Superannuation", 65, 24_000, 26_000, "NZD"),
}


@dataclass(frozen=True)
class PensionSpec:
    """
    A pension the user expects to receive.

    amount/currency/start_age left as None are filled from the registry entry of
    the country paying the pension when the engine resolves it.
    """
    enabled: bool = False
    amount: Optional[float] = None
    currency: Optional[str] = None
    start_age: Optional[int] = None


def get_state_pension(code: str) -> Optional[StatePension]:
    return STATE_PENSIONS.get(code)


def default_pension_spec(code: str) -> PensionSpec:
    """An enabled pension at the registry's average benefit, or a disabled one if unknown."""
    info = get_state_pension(code)
    if info is None:
        return PensionSpec(enabled=False)
    return PensionSpec(
        enabled=True,
        amount=info.average_annual_benefit,
        currency=info.currency,
        start_age=info.eligibility_age,
    )
