import pytest
from loguru import logger

from simulation import AssetBalances, UserProfile


@pytest.fixture
def saver():
    """Mid-career saver, US to US, not yet at the FIRE number."""
    return UserProfile(
        current_age=35,
        target_retirement_age=45,
        origin_country="US",
        destination_country="US",
        portfolio_value=300_000,
        portfolio_currency="USD",
        annual_spending=40_000,
        spending_currency="USD",
        annual_savings=40_000,
    )


@pytest.fixture
def wealthy_retiree():
    """Age 40, retiring now, $1.5M liquid, $40k/yr spending at a 4% SWR."""
    return UserProfile(
        current_age=40,
        target_retirement_age=40,
        origin_country="US",
        destination_country="US",
        portfolio_value=1_500_000,
        portfolio_currency="USD",
        annual_spending=40_000,
        spending_currency="USD",
        safe_withdrawal_rate=0.04,
    )


@pytest.fixture
def property_heavy():
    """Retires at 60 with just enough liquid to pass the gate, plus property equity."""
    return UserProfile(
        current_age=60,
        target_retirement_age=60,
        origin_country="US",
        destination_country="US",
        portfolio_value=1_150_000,
        portfolio_currency="USD",
        annual_spending=40_000,
        spending_currency="USD",
        expected_return=0.03,
        inflation_rate=0.03,
        balances=AssetBalances(taxable=850_000, property_equity=300_000),
    )


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
