from dataclasses import dataclass
from typing import Callable, List, Sequence
import math

import pandas as pd

# ---------- Data structures ----------
@dataclass(frozen=True)
class Bracket:
    lower: float  # inclusive lower bound
    upper: float  # exclusive upper bound; math.inf for the top bracket
    rate: float   # marginal rate, e.g., 0.20

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class BracketSlice:
    lower: float
    upper: float
    rate: float
    taxable: float
    tax: float


def brackets(*rows) -> List[Bracket]:
    """Build a bracket table from (lower, upper, rate) rows; upper=None is unbounded."""
    return [Bracket(lower=float(lo), upper=(math.inf if up is None else float(up)), rate=float(r))
            for lo, up, r in rows]


def validate_brackets(table: Sequence[Bracket], name: str = "brackets") -> None:
    if not table:
        raise ValueError(f"{name}: empty bracket table")
    if table[0].lower != 0:
        raise ValueError(f"{name}: first bracket must start at 0, got {table[0].lower}")
    for i, b in enumerate(table):
        if not 0.0 <= b.rate <= 1.0:
            raise ValueError(f"{name}: bracket {i} rate {b.rate} outside [0, 1]")
        if b.upper <= b.lower:
            raise ValueError(f"{name}: bracket {i} upper bound {b.upper} <= lower bound {b.lower}")
        if i > 0 and b.lower != table[i - 1].upper:
            raise ValueError(
                f"{name}: bracket {i} starts at {b.lower}, previous ends at {table[i - 1].upper}"
            )


# ---------- Evaluation ----------
def bracket_slices(income: float, table: Sequence[Bracket]) -> List[BracketSlice]:
    out = []
    remaining = income
    for b in table:
        if remaining <= 0:
            break
        taxable = min(remaining, b.width)
        if taxable > 0:
            out.append(BracketSlice(b.lower, b.upper, b.rate, taxable, taxable * b.rate))
            remaining -= taxable
    return out


def tax_due(income: float, table: Sequence[Bracket]) -> float:
    if income <= 0:
        return 0.0
    tax = 0.0
    remaining = income
    for b in table:
        taxable = min(remaining, b.width)
        if taxable > 0:
            tax += taxable * b.rate
            remaining -= taxable
        if remaining <= 0:
            break
    return tax


def index_brackets(table: Sequence[Bracket], factor: float) -> List[Bracket]:
    """Scale thresholds by factor (to approximate bracket indexation with CPI)."""
    def idx(x): return (x if math.isinf(x) else x * factor)
    return [Bracket(lower=idx(b.lower), upper=idx(b.upper), rate=b.rate) for b in table]


def blended_tax(amount: float, income_table: Sequence[Bracket],
                gains_table: Sequence[Bracket], income_share: float) -> float:
    """Tax on a withdrawal split between ordinary income and capital gains."""
    if amount <= 0:
        return 0.0
    return (tax_due(amount * income_share, income_table)
            + tax_due(amount * (1.0 - income_share), gains_table))


def blended_effective_rate(amount: float, income_table: Sequence[Bracket],
                           gains_table: Sequence[Bracket], income_share: float) -> float:
    if amount <= 0:
        return 0.0
    return blended_tax(amount, income_table, gains_table, income_share) / amount


def gross_for_net(net_target: float, rate_fn: Callable[[float], float],
                  min_divisor: float = 0.01, max_iter: int = 200, tol: float = 1e-9) -> float:
    """
    Solve gross = net / (1 - rate(gross)) by fixed-point iteration.

    The effective rate of a progressive table rises with income, so iterating from
    gross = net climbs monotonically to the fixed point. The divisor is floored at
    min_divisor, which bounds gross at net / min_divisor.
    """
    if net_target <= 0:
        return 0.0
    gross = net_target
    for _ in range(max_iter):
        divisor = max(1.0 - rate_fn(gross), min_divisor)
        nxt = net_target / divisor
        if abs(nxt - gross) <= tol * max(1.0, nxt):
            return nxt
        gross = nxt
    return gross


# ---------- Tabular helpers ----------
def slices_to_df(slices: Sequence[BracketSlice]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "bracket": format_bracket(s.lower, s.upper),
            "rate": s.rate,
            "taxable": s.taxable,
            "tax": s.tax,
        }
        for s in slices
    ], columns=["bracket", "rate", "taxable", "tax"])


def _short(amount: float) -> str:
    if amount == 0:
        return "0"
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"{amount / 1_000:.0f}K"
    return f"{amount:g}"


def format_bracket(lower: float, upper: float) -> str:
    if math.isinf(upper):
        return f"{_short(lower)}+"
    return f"{_short(lower)} - {_short(upper)}"
