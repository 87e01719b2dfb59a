import pandas as pd
from loguru import logger

from taxes import get_country

CATEGORIES = ("rent", "groceries", "restaurants", "transportation", "healthcare")

# Category price indices relative to US = 100 (Numbeo / OECD PPP, 2024-2025 estimates).
# Healthcare is the out-of-pocket level: 0 where a public system covers it.
CATEGORY_INDEX = {
    "US": {"rent": 100, "groceries": 100, "restaurants": 100, "transportation": 100, "healthcare": 100},
    "UK": {"rent": 75, "groceries": 85, "restaurants": 95, "transportation": 110, "healthcare": 0},
    "DE": {"rent": 55, "groceries": 80, "restaurants": 80, "transportation": 95, "healthcare": 10},
    "FR": {"rent": 60, "groceries": 90, "restaurants": 85, "transportation": 90, "healthcare": 15},
    "ES": {"rent": 45, "groceries": 70, "restaurants": 60, "transportation": 75, "healthcare": 10},
    "PT": {"rent": 40, "groceries": 65, "restaurants": 50, "transportation": 65, "healthcare": 10},
    "IT": {"rent": 50, "groceries": 80, "restaurants": 75, "transportation": 85, "healthcare": 10},
    "GR": {"rent": 35, "groceries": 65, "restaurants": 50, "transportation": 60, "healthcare": 10},
    "NL": {"rent": 70, "groceries": 85, "restaurants": 90, "transportation": 95, "healthcare": 20},
    "IE": {"rent": 85, "groceries": 90, "restaurants": 95, "transportation": 90, "healthcare": 30},
    "CH": {"rent": 120, "groceries": 130, "restaurants": 150, "transportation": 130, "healthcare": 50},
    "CA": {"rent": 75, "groceries": 90, "restaurants": 85, "transportation": 90, "healthcare": 0},
    "AU": {"rent": 80, "groceries": 95, "restaurants": 90, "transportation": 100, "healthcare": 15},
    "SG": {"rent": 110, "groceries": 85, "restaurants": 65, "transportation": 80, "healthcare": 25},
    "MX": {"rent": 25, "groceries": 50, "restaurants": 35, "transportation": 40, "healthcare": 20},
    "TH": {"rent": 20, "groceries": 45, "restaurants": 25, "transportation": 35, "healthcare": 15},
    "CR": {"rent": 35, "groceries": 60, "restaurants": 45, "transportation": 50, "healthcare": 20},
    "AE": {"rent": 85, "groceries": 75, "restaurants": 70, "transportation": 60, "healthcare": 50},
}


def col_multiplier(origin_code: str, target_code: str) -> float:
    """Ratio of the target's headline cost-of-living index to the origin's."""
    origin = get_country(origin_code)
    target = get_country(target_code)
    return target.col_index / origin.col_index


def col_adjust(amount: float, origin_code: str, target_code: str) -> float:
    """Re-price a spending level from the origin's cost of living to the target's."""
    return amount * col_multiplier(origin_code, target_code)


def category_comparison(origin_code: str, target_code: str) -> pd.DataFrame:
    """
    One row per spending category plus an "overall" row built from the headline index.
    diff_pct is (target - origin) / origin * 100, and 0 when the origin index is 0.
    Categories are left out when either country has no category data.
    """
    origin = get_country(origin_code)
    target = get_country(target_code)
    rows = [("overall", origin.col_index, target.col_index)]
    o_cats = CATEGORY_INDEX.get(origin.code)
    t_cats = CATEGORY_INDEX.get(target.code)
    if o_cats and t_cats:
        rows += [(cat, o_cats[cat], t_cats[cat]) for cat in CATEGORIES]
    else:
        missing = [c.code for c, cats in ((origin, o_cats), (target, t_cats)) if not cats]
        logger.warning(f"No category cost data for {', '.join(missing)}; showing overall index only")

    df = pd.DataFrame(rows, columns=["category", "origin_index", "target_index"])
    base = df["origin_index"].where(df["origin_index"] > 0)
    df["diff_pct"] = ((df["target_index"] - df["origin_index"]) / base * 100).fillna(0.0)
    df["cheaper"] = df["target_index"] < df["origin_index"]
    return df
