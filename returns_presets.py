# Long-run return assumptions per asset class. "real_mu" is after inflation.
# Vol = annualized standard deviation.
# Monte Carlo draws stocks and bonds from these; property appreciation in the
# deterministic engine defaults to inflation plus the property real_mu.

ASSET_STATS = {
    "stocks": {"real_mu": 0.07, "vol": 0.175},
    "bonds": {"real_mu": 0.02, "vol": 0.06},
    "property": {"real_mu": 0.02, "vol": 0.08},
    "crypto": {"real_mu": 0.10, "vol": 0.60},
    "cash": {"real_mu": 0.00, "vol": 0.01},
}
