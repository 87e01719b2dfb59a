from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from loguru import logger

from config import EngineConfig
from currency import RateProvider
from simulation import FireResult, UserProfile, calculate_fire


@dataclass
class ComparisonResult:
    origin_code: str
    destination_code: str
    origin: FireResult
    destination: FireResult
    fire_number_difference_usd: float      # absolute
    fire_number_difference_pct: float      # of the mean of both, in percent
    tax_rate_difference: float             # absolute, in rate points
    lower_fire_number: str
    lower_effective_tax_rate: str
    earlier_retirement: str

    def to_dict(self) -> dict:
        return {
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "origin_code": self.origin_code,
            "destination_code": self.destination_code,
            "fire_number_difference_usd": self.fire_number_difference_usd,
            "fire_number_difference_pct": self.fire_number_difference_pct,
            "tax_rate_difference": self.tax_rate_difference,
            "lower_fire_number": self.lower_fire_number,
            "lower_effective_tax_rate": self.lower_effective_tax_rate,
            "earlier_retirement": self.earlier_retirement,
        }


def _retirement_rank(res: FireResult) -> Tuple[float, float]:
    years = float("inf") if res.years_until_fire is None else res.years_until_fire
    return years, res.fire_number_usd


def compare_fire(profile: UserProfile, origin_code: Optional[str] = None,
                 destination_code: Optional[str] = None,
                 provider: Optional[RateProvider] = None,
                 config: Optional[EngineConfig] = None) -> ComparisonResult:
    """
    Run the same profile in two countries.

    earlier_retirement ranks by years until FIRE (never retiring ranks last), then by
    the lower USD FIRE number; a full tie goes to the origin.
    """
    a_code = origin_code or profile.origin_country
    b_code = destination_code or profile.destination_country
    a = calculate_fire(profile, a_code, provider, config)
    b = calculate_fire(profile, b_code, provider, config)

    diff = abs(a.fire_number_usd - b.fire_number_usd)
    mean = (a.fire_number_usd + b.fire_number_usd) / 2
    out = ComparisonResult(
        origin_code=a.country_code,
        destination_code=b.country_code,
        origin=a,
        destination=b,
        fire_number_difference_usd=diff,
        fire_number_difference_pct=diff / mean * 100 if mean > 0 else 0.0,
        tax_rate_difference=abs(a.effective_tax_rate - b.effective_tax_rate),
        lower_fire_number=a.country_code if a.fire_number_usd <= b.fire_number_usd else b.country_code,
        lower_effective_tax_rate=(a.country_code if a.effective_tax_rate <= b.effective_tax_rate
                                  else b.country_code),
        earlier_retirement=(a.country_code if _retirement_rank(a) <= _retirement_rank(b)
                            else b.country_code),
    )
    logger.debug(f"compare_fire {out.origin_code} vs {out.destination_code}: "
                 f"earlier={out.earlier_retirement}, diff={diff:,.0f} USD")
    return out


def compare_variants(profile: UserProfile, variants: List[Tuple[str, dict]],
                     target_code: Optional[str] = None,
                     provider: Optional[RateProvider] = None,
                     config: Optional[EngineConfig] = None) -> Dict[str, FireResult]:
    """
    variants: list of (name, overrides-dict) applied to the profile's fields
    returns: dict name -> FireResult
    """
    res = {}
    for name, edits in variants:
        res[name] = calculate_fire(replace(profile, **edits), target_code, provider, config)
    return res
