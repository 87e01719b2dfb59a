from dataclasses import replace

import pytest

from reverse import calculate_coast_fire, calculate_sustainable_spending, lifestyle_level
from simulation import calculate_fire
from taxes import CountryNotFoundError


def test_zero_tax_country():
    out = calculate_sustainable_spending(1_000_000, "USD", "AE")
    assert out.currency == "AED"
    assert out.gross == pytest.approx(3_670_000 * 0.04)
    assert out.net == out.gross
    assert out.effective_tax_rate == 0
    assert out.monthly_net == pytest.approx(out.net / 12)
    # 40k USD net at a COL index of 70
    assert out.lifestyle == "moderate"


@pytest.mark.parametrize("usd, level", [
    (0, "lean"), (29_999, "lean"), (30_000, "moderate"), (59_999, "moderate"),
    (60_000, "comfortable"), (99_999, "comfortable"), (100_000, "fat"),
])
def test_lifestyle_thresholds(usd, level):
    assert lifestyle_level(usd) == level


def test_compares_with_current_spending():
    out = calculate_sustainable_spending(2_000_000, "USD", "US", current_spending=50_000)
    assert out.can_afford_more
    assert out.vs_current_pct == pytest.approx((out.net - 50_000) / 50_000 * 100)
    assert calculate_sustainable_spending(2_000_000, "USD", "US").vs_current_pct is None


def test_taxed_country_nets_less():
    out = calculate_sustainable_spending(1_000_000, "EUR", "PT")
    assert 0 < out.effective_tax_rate < 1
    assert out.net == pytest.approx(out.gross * (1 - out.effective_tax_rate))


def test_unknown_country():
    with pytest.raises(CountryNotFoundError):
        calculate_sustainable_spending(1, "USD", "ZZ")


def test_coast_fire(saver):
    res = calculate_fire(saver)
    coast = calculate_coast_fire(res, saver)
    assert coast.years_to_target == 10
    assert coast.coast_number == pytest.approx(res.fire_number / 1.04 ** 10)
    assert coast.already_coast == (res.liquid_value >= coast.coast_number)
    assert coast.gap == pytest.approx(max(0.0, coast.coast_number - res.liquid_value))

    at_65 = calculate_coast_fire(res, saver, target_age=65)
    assert at_65.coast_number < coast.coast_number


def test_coast_fire_without_real_growth(saver):
    flat = replace(saver, expected_return=0.02, inflation_rate=0.03)
    res = calculate_fire(flat)
    coast = calculate_coast_fire(res, flat)
    assert coast.coast_number == res.fire_number
