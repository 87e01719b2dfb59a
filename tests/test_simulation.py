import math
from dataclasses import replace

import pytest

from config import EngineConfig
from currency import RateTable, convert
from pensions import PensionSpec
from simulation import AssetBalances, UserProfile, calculate_fire, liquid_return
from taxes import CountryNotFoundError


def test_wealthy_profile_retires_immediately(wealthy_retiree):
    res = calculate_fire(wealthy_retiree)
    assert res.can_retire
    assert res.years_until_fire == 0
    assert res.retirement_age == 40
    assert res.projections[0].retired
    assert res.projections[0].savings == 0


def test_underfunded_profile_cannot_retire(saver):
    poor = replace(saver, portfolio_value=10_000, annual_spending=200_000, annual_savings=0)
    res = calculate_fire(poor)
    assert not res.can_retire
    assert res.retirement_age is None
    assert res.years_until_fire is None
    assert not any(p.retired for p in res.projections)
    assert any("not reached" in w for w in res.warnings)


@pytest.mark.parametrize("origin", ["AE", "US"])
def test_zero_tax_country_needs_no_gross_up(saver, origin):
    res = calculate_fire(replace(saver, origin_country=origin), "AE")
    assert res.effective_tax_rate == 0
    assert res.gross_withdrawal == res.net_withdrawal
    assert res.currency == "AED"


def test_fire_number_non_decreasing_in_spending(saver):
    numbers = [
        calculate_fire(replace(saver, annual_spending=s), "PT").fire_number
        for s in (0, 10_000, 20_000, 40_000, 80_000, 160_000, 320_000, 1_000_000)
    ]
    assert numbers == sorted(numbers)
    assert numbers[0] == 0


def test_cost_of_living_moves_fire_number(saver):
    home = calculate_fire(saver, "US").fire_number_usd
    assert calculate_fire(saver, "TH").fire_number_usd < home
    assert calculate_fire(saver, "CH").fire_number_usd > home


def test_saver_trajectory(saver):
    res = calculate_fire(saver)
    first = res.projections[0]
    assert first.savings == pytest.approx(40_000)
    assert first.liquid_growth == pytest.approx(300_000 * 0.07)
    assert first.liquid_end == pytest.approx(300_000 * 1.07 + 40_000)
    assert res.can_retire
    assert res.retirement_age >= saver.target_retirement_age
    retired = [p for p in res.projections if p.retired]
    assert all(p.savings == 0 for p in retired)
    assert retired[0].withdrawal == pytest.approx(res.gross_withdrawal)


def test_retirement_is_latched(property_heavy):
    res = calculate_fire(property_heavy)
    flags = [p.retired for p in res.projections]
    first = flags.index(True)
    assert all(flags[first:])


def test_liquid_depletion_leaves_property_growing(property_heavy):
    res = calculate_fire(property_heavy)
    assert res.retirement_age == 60
    assert res.illiquid_value == pytest.approx(300_000)
    assert any(w.startswith("Liquid assets depleted at age") for w in res.warnings)

    depleted = next(i for i, p in enumerate(res.projections) if p.retired and p.liquid_end == 0)
    after = res.projections[depleted:]
    assert len(after) > 1
    assert all(p.liquid_end == 0 for p in after)
    assert all(p.illiquid_end > p.illiquid_start > 0 for p in after)
    assert any(p.shortfall > 0 for p in after)
    assert res.projections[-1].age == 110


def test_depletion_without_property_stops_early(property_heavy):
    liquid_only = replace(property_heavy, balances=AssetBalances(taxable=850_000))
    res = calculate_fire(liquid_only)
    assert any(w.startswith("Portfolio depleted at age") for w in res.warnings)
    assert res.projections[-1].liquid_end == 0
    assert res.projections[-1].age < 110


def test_retiring_now_suppresses_savings(saver):
    late = replace(saver, current_age=50, target_retirement_age=45, portfolio_value=10_000,
                   annual_savings=50_000)
    res = calculate_fire(late)
    assert not res.can_retire
    assert all(p.savings == 0 for p in res.projections)


def test_horizon(saver):
    assert calculate_fire(saver).projections[-1].age == 100
    old = replace(saver, current_age=70, target_retirement_age=75, portfolio_value=3_000_000)
    res = calculate_fire(old)
    assert res.projections[0].age == 70
    assert res.projections[-1].age == 120


def test_unknown_countries_raise(saver):
    with pytest.raises(CountryNotFoundError):
        calculate_fire(saver, "ZZ")
    with pytest.raises(CountryNotFoundError):
        calculate_fire(replace(saver, origin_country="ZZ"))


def test_degenerate_inputs_stay_finite(saver):
    empty = replace(saver, portfolio_value=0, annual_spending=0, annual_savings=0,
                    safe_withdrawal_rate=0)
    res = calculate_fire(empty)
    assert res.fire_number == 0
    zero_swr = calculate_fire(replace(saver, safe_withdrawal_rate=0))
    assert math.isfinite(zero_swr.fire_number)
    assert zero_swr.fire_number == pytest.approx(zero_swr.gross_withdrawal / 0.001)
    for r in (res, zero_swr):
        for p in r.projections:
            assert math.isfinite(p.liquid_end) and math.isfinite(p.tax_paid)


def test_pension_offsets_withdrawal(wealthy_retiree):
    profile = replace(wealthy_retiree, current_age=60, target_retirement_age=60,
                      origin_pension=PensionSpec(enabled=True, amount=20_000,
                                                 currency="USD", start_age=67))
    res = calculate_fire(profile)
    by_age = {p.age: p for p in res.projections}
    assert by_age[66].pension_income == 0 and not by_age[66].pension_active
    assert by_age[67].pension_income == pytest.approx(20_000)
    assert by_age[68].pension_income == pytest.approx(20_000 * 1.03)
    assert by_age[67].pension_active
    required = res.gross_withdrawal * 1.03 ** 7
    assert by_age[67].withdrawal == pytest.approx(required - 20_000)


def test_pension_defaults_from_registry(wealthy_retiree):
    profile = replace(wealthy_retiree, origin_pension=PensionSpec(enabled=True))
    (pension,) = calculate_fire(profile).pensions
    assert pension.label == "origin"
    assert pension.annual_amount == pytest.approx(22_000)
    assert pension.start_age == 67


def test_missing_pension_record_falls_back(wealthy_retiree, log_messages):
    profile = replace(wealthy_retiree, origin_country="AE", destination_country="AE",
                      origin_pension=PensionSpec(enabled=True))
    (pension,) = calculate_fire(profile).pensions
    assert pension.annual_amount == 0
    assert pension.start_age == 67
    assert any("AE" in m for m in log_messages)


def test_pension_abroad_warning(wealthy_retiree):
    profile = replace(wealthy_retiree, origin_country="SG", destination_country="PT",
                      origin_pension=PensionSpec(enabled=True))
    res = calculate_fire(profile)
    assert any("CPF LIFE may not be payable" in w for w in res.warnings)


def test_country_notes(wealthy_retiree):
    ae = calculate_fire(replace(wealthy_retiree, destination_country="AE"))
    assert any("no personal income tax" in n for n in ae.notes)
    assert any("no capital gains tax" in n for n in ae.notes)

    holder = replace(wealthy_retiree, balances=AssetBalances(taxable=1_400_000, crypto=100_000))
    pt = calculate_fire(holder, "PT")
    assert "Crypto is subject to 28% capital gains tax in Portugal." in pt.notes
    assert any(n.startswith("NHR 2.0") for n in pt.notes)


def test_liquid_return_is_balance_weighted(saver):
    profile = replace(saver, balances=AssetBalances(taxable=100_000, cash=100_000))
    assert liquid_return(profile) == pytest.approx((0.07 + 0.03) / 2)
    assert liquid_return(saver) == pytest.approx(0.07)


def test_policy_constants_are_configurable(saver):
    strict = calculate_fire(saver, config=EngineConfig(retirement_threshold=1.0))
    lenient = calculate_fire(saver, config=EngineConfig(retirement_threshold=0.5))
    assert lenient.retirement_age <= strict.retirement_age
    no_income_share = calculate_fire(saver, "UK", config=EngineConfig(withdrawal_income_share=0.0))
    assert no_income_share.effective_tax_rate < calculate_fire(saver, "UK").effective_tax_rate


def test_injected_rate_provider(saver):
    cheap_euro = RateTable(rates={"USD": 1.0, "EUR": 0.5})
    res = calculate_fire(saver, "PT", provider=cheap_euro)
    default = calculate_fire(saver, "PT")
    assert res.fire_number < default.fire_number


def test_from_defaults_and_dataframe():
    profile = UserProfile.from_defaults(current_age=40)
    assert profile.current_age == 40
    assert profile.balances.liquid == pytest.approx(500_000)
    res = calculate_fire(profile)
    df = res.to_dataframe()
    assert len(df) == len(res.projections)
    assert (df["portfolio_end"] == df["liquid_end"] + df["illiquid_end"]).all()
    assert res.to_dict()["country_code"] == "PT"


def test_from_defaults_portfolio_value_replaces_default_balances():
    profile = UserProfile.from_defaults(portfolio_value=2_000_000)
    assert profile.balances.total == 0
    assert calculate_fire(profile).liquid_value == pytest.approx(convert(2_000_000, "USD", "EUR"))
    split = UserProfile.from_defaults(portfolio_value=1, balances=AssetBalances(cash=10_000))
    assert split.balances.liquid == 10_000


def test_balance_views():
    b = AssetBalances(tax_deferred=1, tax_free=2, taxable=3, crypto=4, cash=5, property_equity=100)
    assert b.stocks == 6
    assert b.liquid == 15
    assert b.illiquid == 100
    assert b.total == 115
