"""
Country reference data: simplified tax tables, cost-of-living index, social taxes.
Goal: give realistic ballpark, not handle every edge case.

All bracket amounts are in the country's own currency. Tables are validated when
this module is imported, so a malformed entry fails loudly instead of skewing results.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tax_models import Bracket, brackets, validate_brackets


class CountryNotFoundError(KeyError):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    def __str__(self):
        return f"Country {self.code} not found"


@dataclass(frozen=True)
class SocialTaxRule:
    name: str
    rate: float
    applies_to_investment_income: bool = False
    applies_to_pensions: bool = False


@dataclass(frozen=True)
class SpecialRegime:
    name: str
    description: str


@dataclass(frozen=True)
class CountryProfile:
    code: str
    name: str
    currency: str
    income_brackets: Tuple[Bracket, ...]
    capital_gains_brackets: Tuple[Bracket, ...]
    col_index: float                      # US = 100
    social_tax: Optional[SocialTaxRule] = None
    special_regimes: Tuple[SpecialRegime, ...] = field(default_factory=tuple)
    crypto_gains_rate: Optional[float] = None
    notes: str = ""

    @property
    def has_income_tax(self) -> bool:
        return any(b.rate > 0 for b in self.income_brackets)

    @property
    def has_capital_gains_tax(self) -> bool:
        return any(b.rate > 0 for b in self.capital_gains_brackets)


def _country(code, name, currency, income, gains, col_index, social=None,
             regimes=(), crypto=None, notes=""):
    return CountryProfile(
        code=code,
        name=name,
        currency=currency,
        income_brackets=tuple(brackets(*income)),
        capital_gains_brackets=tuple(brackets(*gains)),
        col_index=col_index,
        social_tax=social,
        special_regimes=tuple(SpecialRegime(n, d) for n, d in regimes),
        crypto_gains_rate=crypto,
        notes=notes,
    )


def _us():
    # Federal only, single filer (simplified). State taxes not included.
    return _country(
        "US", "United States", "USD",
        income=[(0, 11_925, 0.10), (11_925, 48_475, 0.12), (48_475, 103_350, 0.22),
                (103_350, 197_300, 0.24), (197_300, 250_525, 0.32),
                (250_525, 626_350, 0.35), (626_350, None, 0.37)],
        gains=[(0, 48_350, 0.0), (48_350, 533_400, 0.15), (533_400, None, 0.20)],
        col_index=100,
        social=SocialTaxRule("FICA", 0.153),
        notes="Simplified federal brackets; no state tax modeled.",
    )


def _uk():
    return _country(
        "UK", "United Kingdom", "GBP",
        income=[(0, 37_700, 0.20), (37_700, 125_140, 0.40), (125_140, None, 0.45)],
        gains=[(0, 37_700, 0.18), (37_700, None, 0.24)],
        col_index=85,
        social=SocialTaxRule("National Insurance", 0.06),
        regimes=[("Remittance Basis", "Only UK-source and remitted foreign income taxed.")],
        notes="Personal allowance taper ignored.",
    )


def _ie():
    return _country(
        "IE", "Ireland", "EUR",
        income=[(0, 42_000, 0.20), (42_000, None, 0.40)],
        gains=[(0, None, 0.33)],
        col_index=95,
        social=SocialTaxRule("PRSI + USC", 0.04, applies_to_investment_income=True),
        crypto=0.33,
        notes="41% exit tax with 8-year deemed disposal on ETFs is not modeled.",
    )


def _pt():
    return _country(
        "PT", "Portugal", "EUR",
        income=[(0, 7_703, 0.1325), (7_703, 11_623, 0.18), (11_623, 16_472, 0.23),
                (16_472, 21_321, 0.26), (21_321, 27_146, 0.3275), (27_146, 39_791, 0.37),
                (39_791, 51_997, 0.435), (51_997, 81_199, 0.45), (81_199, None, 0.48)],
        gains=[(0, None, 0.28)],
        col_index=65,
        social=SocialTaxRule("Social Security", 0.214),
        regimes=[("NHR 2.0", "20% flat tax on eligible employment income. "
                             "Foreign pensions may be taxed at source country rates.")],
        crypto=0.28,
    )


def _es():
    return _country(
        "ES", "Spain", "EUR",
        income=[(0, 12_450, 0.19), (12_450, 20_200, 0.24), (20_200, 35_200, 0.30),
                (35_200, 60_000, 0.37), (60_000, 300_000, 0.45), (300_000, None, 0.47)],
        gains=[(0, 6_000, 0.19), (6_000, 50_000, 0.21), (50_000, 200_000, 0.23),
               (200_000, 300_000, 0.27), (300_000, None, 0.28)],
        col_index=60,
        social=SocialTaxRule("Social Security", 0.30),
        regimes=[("Beckham Law", "24% flat tax on Spanish income up to EUR 600k. "
                                 "Foreign income exempt except employment.")],
    )


def _de():
    # Simplified stepwise approximation of the continuous German curve
    return _country(
        "DE", "Germany", "EUR",
        income=[(0, 11_604, 0.0), (11_604, 17_005, 0.14), (17_005, 66_760, 0.24),
                (66_760, 277_825, 0.42), (277_825, None, 0.45)],
        gains=[(0, None, 0.26375)],
        col_index=75,
        social=SocialTaxRule("Social Insurance", 0.20, applies_to_pensions=True),
        crypto=0.0,
        notes="Crypto held over one year is tax-free.",
    )


def _nl():
    return _country(
        "NL", "Netherlands", "EUR",
        income=[(0, 75_518, 0.3697), (75_518, None, 0.495)],
        gains=[(0, None, 0.36)],
        col_index=80,
        social=SocialTaxRule("Social Insurance", 0.2765, applies_to_pensions=True),
        regimes=[("30% Ruling", "30% of salary tax-free. Box 3 exemption for foreign assets.")],
        notes="Box 3 deemed-return tax approximated as a flat gains rate.",
    )


def _ca():
    return _country(
        "CA", "Canada", "CAD",
        income=[(0, 55_867, 0.15), (55_867, 111_733, 0.205), (111_733, 173_205, 0.26),
                (173_205, 246_752, 0.29), (246_752, None, 0.33)],
        gains=[(0, None, 0.25)],
        col_index=75,
        social=SocialTaxRule("CPP/EI", 0.119),
        notes="Federal only; provincial tax not modeled.",
    )


def _au():
    return _country(
        "AU", "Australia", "AUD",
        income=[(0, 18_200, 0.0), (18_200, 45_000, 0.19), (45_000, 120_000, 0.325),
                (120_000, 180_000, 0.37), (180_000, None, 0.45)],
        # 50% CGT discount for assets held over 12 months
        gains=[(0, 18_200, 0.0), (18_200, 45_000, 0.095), (45_000, 120_000, 0.1625),
               (120_000, 180_000, 0.185), (180_000, None, 0.225)],
        col_index=80,
        social=SocialTaxRule("Medicare Levy", 0.02, applies_to_investment_income=True,
                             applies_to_pensions=True),
    )


def _fr():
    return _country(
        "FR", "France", "EUR",
        income=[(0, 11_294, 0.0), (11_294, 28_797, 0.11), (28_797, 82_341, 0.30),
                (82_341, 177_106, 0.41), (177_106, None, 0.45)],
        gains=[(0, None, 0.30)],
        col_index=75,
        social=SocialTaxRule("Social Charges", 0.172, applies_to_investment_income=True,
                             applies_to_pensions=True),
        notes="Simplified, one part (no quotient familial).",
    )


def _it():
    return _country(
        "IT", "Italy", "EUR",
        income=[(0, 28_000, 0.23), (28_000, 50_000, 0.35), (50_000, None, 0.43)],
        gains=[(0, None, 0.26)],
        col_index=65,
        social=SocialTaxRule("INPS", 0.26),
        regimes=[
            ("Flat Tax for Retirees", "7% flat tax on ALL foreign income for retirees "
                                      "in Southern Italy/small towns."),
            ("Impatriate Regime", "70-90% income exemption for workers."),
        ],
    )


def _ch():
    # Federal only; cantonal tax varies widely
    return _country(
        "CH", "Switzerland", "CHF",
        income=[(0, 31_600, 0.0), (31_600, 41_400, 0.0077), (41_400, 55_200, 0.0088),
                (55_200, 72_500, 0.0264), (72_500, 78_100, 0.0297), (78_100, 103_600, 0.0561),
                (103_600, 134_600, 0.0666), (134_600, 176_000, 0.0888), (176_000, None, 0.115)],
        gains=[(0, None, 0.0)],
        col_index=130,
        social=SocialTaxRule("AHV/IV/EO", 0.10, applies_to_pensions=True),
        regimes=[("Lump-sum Taxation", "Tax based on living expenses, not income/assets.")],
        crypto=0.0,
    )


def _ae():
    return _country(
        "AE", "UAE (Dubai)", "AED",
        income=[(0, None, 0.0)],
        gains=[(0, None, 0.0)],
        col_index=70,
        crypto=0.0,
    )


def _sg():
    return _country(
        "SG", "Singapore", "SGD",
        income=[(0, 20_000, 0.0), (20_000, 30_000, 0.02), (30_000, 40_000, 0.035),
                (40_000, 80_000, 0.07), (80_000, 120_000, 0.115), (120_000, 160_000, 0.15),
                (160_000, 200_000, 0.18), (200_000, 240_000, 0.19), (240_000, 280_000, 0.195),
                (280_000, 320_000, 0.20), (320_000, 500_000, 0.22), (500_000, 1_000_000, 0.23),
                (1_000_000, None, 0.24)],
        gains=[(0, None, 0.0)],
        col_index=90,
        social=SocialTaxRule("CPF", 0.105),
        crypto=0.0,
    )


def _mx():
    return _country(
        "MX", "Mexico", "MXN",
        income=[(0, 8_952, 0.0192), (8_952, 75_984, 0.064), (75_984, 133_536, 0.1088),
                (133_536, 155_229, 0.16), (155_229, 185_852, 0.1792),
                (185_852, 374_837, 0.2136), (374_837, 590_796, 0.2352),
                (590_796, 1_127_926, 0.30), (1_127_926, 1_503_902, 0.32),
                (1_503_902, 4_511_707, 0.34), (4_511_707, None, 0.35)],
        gains=[(0, None, 0.10)],
        col_index=35,
        social=SocialTaxRule("IMSS", 0.05),
    )


def _th():
    return _country(
        "TH", "Thailand", "THB",
        income=[(0, 150_000, 0.0), (150_000, 300_000, 0.05), (300_000, 500_000, 0.10),
                (500_000, 750_000, 0.15), (750_000, 1_000_000, 0.20),
                (1_000_000, 2_000_000, 0.25), (2_000_000, 5_000_000, 0.30),
                (5_000_000, None, 0.35)],
        gains=[(0, None, 0.0)],
        col_index=30,
        social=SocialTaxRule("Social Security", 0.0),
    )


def _cr():
    return _country(
        "CR", "Costa Rica", "CRC",
        income=[(0, 4_200_000, 0.0), (4_200_000, 6_300_000, 0.10),
                (6_300_000, 10_500_000, 0.15), (10_500_000, 21_000_000, 0.20),
                (21_000_000, None, 0.25)],
        gains=[(0, None, 0.15)],
        col_index=45,
        social=SocialTaxRule("CCSS", 0.1067),
    )


def _gr():
    return _country(
        "GR", "Greece", "EUR",
        income=[(0, 10_000, 0.09), (10_000, 20_000, 0.22), (20_000, 30_000, 0.28),
                (30_000, 40_000, 0.36), (40_000, None, 0.44)],
        gains=[(0, None, 0.15)],
        col_index=55,
        social=SocialTaxRule("EFKA", 0.20),
        regimes=[("Non-Dom Regime", "7% flat tax on foreign income. "
                                    "No reporting of foreign assets.")],
    )


COUNTRIES: Dict[str, CountryProfile] = {
    c.code: c for c in (
        _us(), _uk(), _ie(), _pt(), _es(), _de(), _nl(), _ca(), _au(), _fr(),
        _it(), _ch(), _ae(), _sg(), _mx(), _th(), _cr(), _gr(),
    )
}


def validate_country(country: CountryProfile) -> None:
    validate_brackets(country.income_brackets, f"{country.code} income")
    validate_brackets(country.capital_gains_brackets, f"{country.code} capital gains")
    if country.col_index <= 0:
        raise ValueError(f"{country.code}: cost-of-living index must be positive")


for _c in COUNTRIES.values():
    validate_country(_c)


def get_country(code: str) -> CountryProfile:
    try:
        return COUNTRIES[code]
    except KeyError:
        raise CountryNotFoundError(code) from None


def country_codes() -> List[str]:
    return sorted(COUNTRIES)
