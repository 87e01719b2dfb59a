"""
Currency conversion over an injectable rate provider.

Rates are quoted as units of currency per 1 USD. A provider may also carry direct
pair quotes ("USD-EUR"); those win over the cross rate. Missing data never raises:
direct pair -> inverse pair -> cross via USD, with each missing leg taken from the
static fallback table and, failing that, 1.0.
"""

import json
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Optional

from loguru import logger

BASE_CURRENCY = "USD"

# Fallback rates (Feb 2025)
FALLBACK_RATES: Dict[str, float] = {
    "USD": 1.0,
    "GBP": 0.79,
    "EUR": 0.92,
    "CAD": 1.36,
    "AUD": 1.53,
    "CHF": 0.88,
    "AED": 3.67,
    "SGD": 1.34,
    "MXN": 17.15,
    "THB": 35.5,
    "CRC": 510.0,
    "JPY": 149.5,
    "NZD": 1.62,
    "COP": 4150.0,
    "MYR": 4.47,
    "VND": 24500.0,
}

CACHE_TTL_SECONDS = 60 * 60


def _pair_key(from_ccy: str, to_ccy: str) -> str:
    return f"{from_ccy}-{to_ccy}"


def _clean(rates: Optional[Dict[str, float]]) -> Dict[str, float]:
    # non-positive or non-numeric entries count as missing
    out = {}
    for k, v in (rates or {}).items():
        try:
            v = float(v)
        except (TypeError, ValueError):
            continue
        if v > 0:
            out[k] = v
    return out


class RateProvider:
    def get_rate(self, code: str) -> Optional[float]:
        raise NotImplementedError

    def get_pair(self, from_ccy: str, to_ccy: str) -> Optional[float]:
        return None


class RateTable(RateProvider):
    """
    Read-mostly rate table. Readers grab the current snapshot without locking;
    update() builds a new snapshot and swaps it in under a lock.
    """

    def __init__(self, rates: Optional[Dict[str, float]] = None,
                 pairs: Optional[Dict[str, float]] = None):
        self._lock = threading.Lock()
        self._rates = _clean(FALLBACK_RATES if rates is None else rates)
        self._pairs = _clean(pairs)
        self.updated_at: Optional[float] = None

    def get_rate(self, code: str) -> Optional[float]:
        return self._rates.get(code)

    def get_pair(self, from_ccy: str, to_ccy: str) -> Optional[float]:
        return self._pairs.get(_pair_key(from_ccy, to_ccy))

    def snapshot(self) -> Dict[str, float]:
        return dict(self._rates)

    def update(self, rates: Optional[Dict[str, float]] = None,
               pairs: Optional[Dict[str, float]] = None,
               timestamp: Optional[float] = None) -> None:
        with self._lock:
            if rates is not None:
                merged = dict(self._rates)
                merged.update(_clean(rates))
                self._rates = merged
            if pairs is not None:
                self._pairs = _clean(pairs)
            self.updated_at = time.time() if timestamp is None else timestamp


class StaticRateProvider(RateProvider):
    """The fallback table as a provider; never changes."""

    def get_rate(self, code: str) -> Optional[float]:
        return FALLBACK_RATES.get(code)


class CachedRateProvider(RateTable):
    """
    Rate table refreshed from a fetch callable with a one-hour TTL and an optional
    JSON file cache. Fetch failures keep the current (or fallback) rates.
    """

    def __init__(self, fetcher: Callable[[], Dict[str, float]],
                 cache_path: Optional[Path] = None,
                 ttl: float = CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        super().__init__()
        self.fetcher = fetcher
        self.cache_path = Path(cache_path) if cache_path is not None else None
        self.ttl = ttl
        self.clock = clock

    @property
    def is_stale(self) -> bool:
        return self.updated_at is None or self.clock() - self.updated_at >= self.ttl

    def _load_cache(self) -> bool:
        if self.cache_path is None or not self.cache_path.exists():
            return False
        try:
            blob = json.loads(self.cache_path.read_text(encoding="utf-8"))
            rates, ts = blob["rates"], float(blob["timestamp"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable FX cache {self.cache_path}: {e}")
            return False
        if self.clock() - ts >= self.ttl:
            return False
        self.update(rates, timestamp=ts)
        logger.debug("Using cached FX rates")
        return True

    def _save_cache(self) -> None:
        if self.cache_path is None:
            return
        blob = {"rates": self.snapshot(), "timestamp": self.updated_at}
        try:
            self.cache_path.write_text(json.dumps(blob), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write FX cache {self.cache_path}: {e}")

    def refresh(self, force: bool = False) -> bool:
        """Returns True when fresh rates are in place after the call."""
        if not force and not self.is_stale:
            return True
        if not force and self._load_cache():
            return True
        try:
            rates = self.fetcher()
        except Exception as e:
            logger.warning(f"Failed to fetch live FX rates, keeping current rates: {e}")
            return False
        self.update(rates, timestamp=self.clock())
        self._save_cache()
        logger.debug(f"Fetched live FX rates for {len(rates)} currencies")
        return True


_default_provider: RateProvider = RateTable()


def default_provider() -> RateProvider:
    return _default_provider


def set_default_provider(provider: RateProvider) -> None:
    global _default_provider
    _default_provider = provider


def _base_rate(provider: RateProvider, code: str) -> float:
    rate = provider.get_rate(code)
    if rate:
        return rate
    rate = FALLBACK_RATES.get(code)
    if rate:
        logger.warning(f"Missing FX rate for {code}, using fallback {rate}")
        return rate
    logger.warning(f"No FX rate known for {code}, treating as 1:1 with {BASE_CURRENCY}")
    return 1.0


def convert(amount: float, from_ccy: str, to_ccy: str,
            provider: Optional[RateProvider] = None) -> float:
    if from_ccy == to_ccy:
        return amount
    if not amount:
        return 0.0
    provider = provider or default_provider()

    direct = provider.get_pair(from_ccy, to_ccy)
    if direct:
        return amount * direct
    inverse = provider.get_pair(to_ccy, from_ccy)
    if inverse:
        return amount / inverse

    in_base = amount / _base_rate(provider, from_ccy)
    return in_base * _base_rate(provider, to_ccy)
