"""Memoizing runner for repeated copy-trade replays.

The engine is pure, so a result can be cached under a key derived from
(trade-set fingerprint, configuration). Callers that recompute on every
refresh, such as a live view polling for new trades, only pay for a
replay when the trades or the configuration actually change.

Example:
    >>> from copysim.analytics.simulation import SimulationRunner
    >>> from copysim.core.config import SimulationConfig
    >>>
    >>> runner = SimulationRunner()
    >>> result = runner.run_backtest(trades, SimulationConfig(), days=30)
    >>> again = runner.run_backtest(trades, SimulationConfig(), days=30)
    >>> assert result is again
"""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Sequence

from copysim.analytics.simulation.engine import CopyTradeEngine
from copysim.analytics.simulation.results import SimulationResult
from copysim.analytics.simulation.windows import (
    ReplayWindow,
    backtest_window,
    backtest_window_for_days,
    live_window,
)
from copysim.core.config import SimulationConfig, SimulationSettings, get_settings
from copysim.core.exceptions import ConfigurationError
from copysim.core.models import Trade

logger = logging.getLogger(__name__)

CACHE_KEY_VERSION = 1


def _digest(payload) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def trade_fingerprint(trades: Sequence[Trade]) -> str:
    """SHA-256 over the canonical JSON of every trade, in input order."""
    return _digest([t.model_dump(mode="json") for t in trades])


def config_fingerprint(config: SimulationConfig) -> str:
    """SHA-256 over the canonical JSON of a configuration."""
    return _digest(config.model_dump(mode="json"))


def cache_key(trades: Sequence[Trade], config: SimulationConfig) -> str:
    """Cache key for a (trades, config) pair."""
    return _digest({
        "v": CACHE_KEY_VERSION,
        "trades": trade_fingerprint(trades),
        "config": config_fingerprint(config),
    })


@dataclass(frozen=True)
class CacheInfo:
    hits: int
    misses: int
    size: int
    max_entries: int


def _stamped_with_wall_clock(config: SimulationConfig, result: SimulationResult) -> bool:
    """True when no trade was replayed and the run has no window to fall back on."""
    return (
        config.start_ts is None
        and config.end_ts is None
        and result.meta.used_trade_count == result.meta.dropped_trade_count
    )


class SimulationRunner:
    """Run replays through an LRU cache of results.

    Safe to share between threads: the cache is guarded by a lock and
    replays themselves hold no shared state.

    Attributes:
        settings: Settings passed to every engine
        max_entries: Maximum number of cached results
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        settings: Optional[SimulationSettings] = None,
    ):
        """Initialize the runner.

        Args:
            max_entries: Cache capacity. Defaults to settings.cache_max_entries.
            settings: Process-wide settings. If None, uses get_settings().

        Raises:
            ConfigurationError: If max_entries is not positive
        """
        self.settings = settings or get_settings()
        self.max_entries = max_entries if max_entries is not None else self.settings.cache_max_entries
        if self.max_entries <= 0:
            raise ConfigurationError(f"max_entries must be positive, got {self.max_entries}")
        self._cache: "OrderedDict[str, SimulationResult]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def run(self, trades: Sequence[Trade], config: SimulationConfig) -> SimulationResult:
        """Return the cached result for (trades, config), replaying on a miss."""
        trades = list(trades)
        key = cache_key(trades, config)

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                self._hits += 1
                logger.debug(f"Cache hit {key[:12]}")
                return cached
            self._misses += 1

        result = CopyTradeEngine(config=config, settings=self.settings).run(trades)

        if _stamped_with_wall_clock(config, result):
            # The lone equity point carries "now"; a later hit would replay a stale time
            return result

        with self._lock:
            self._cache[key] = result
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_entries:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug(f"Evicted cached result {evicted[:12]}")
        return result

    def run_window(
        self,
        trades: Sequence[Trade],
        config: SimulationConfig,
        window: ReplayWindow,
    ) -> SimulationResult:
        """Run with ``config``'s window replaced by ``window``."""
        windowed = config.model_copy(
            update={"start_ts": window.start_ts, "end_ts": window.end_ts}
        )
        return self.run(trades, windowed)

    def run_backtest(
        self,
        trades: Sequence[Trade],
        config: SimulationConfig,
        start_ts: Optional[int] = None,
        end_ts: Optional[int] = None,
        days: Optional[int] = None,
    ) -> SimulationResult:
        """Historical replay over an explicit window or the last ``days`` days.

        With neither bounds nor days, uses settings.default_history_days.
        """
        trades = list(trades)
        if start_ts is not None or end_ts is not None:
            if days is not None:
                raise ConfigurationError("Pass either start_ts/end_ts or days, not both")
            window = backtest_window(start_ts, end_ts)
        else:
            window = backtest_window_for_days(
                trades, days if days is not None else self.settings.default_history_days
            )
        return self.run_window(trades, config, window)

    def run_live(
        self,
        trades: Sequence[Trade],
        config: SimulationConfig,
        live_start_ts: Optional[int] = None,
    ) -> SimulationResult:
        """Replay only trades since the user started following."""
        trades = list(trades)
        return self.run_window(trades, config, live_window(trades, live_start_ts))

    @property
    def cache_info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                max_entries=self.max_entries,
            )

    def clear(self) -> None:
        """Drop all cached results and reset counters."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
