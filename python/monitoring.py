"""
Screening Performance Monitoring

This module provides:
- Screening timing context manager for slow screening detection
- Prometheus metrics for screenings, rule failures and rule reloads
- In-process operation statistics

Usage:
    from monitoring import screening_timer, get_screening_metrics

    with screening_timer("filter_customer"):
        result = screener.filter_customer(customer)
"""

import collections
import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from prometheus_client import Counter, Histogram

from config_manager import MonitoringConfig

logger = logging.getLogger(__name__)


# ============================================
# CONFIGURATION
# ============================================

_config = MonitoringConfig()


def configure_monitoring(config: Optional[MonitoringConfig] = None) -> None:
    """
    Configure monitoring settings.

    Args:
        config: Monitoring section of the application config
    """
    global _config
    _config = config or MonitoringConfig()


# ============================================
# PROMETHEUS METRICS
# ============================================

screening_duration = Histogram(
    'watchlist_screening_duration_seconds',
    'Screening duration in seconds',
    ['operation', 'status'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

screenings_total = Counter(
    'watchlist_screenings_total',
    'Total number of completed screenings by risk tier',
    ['tier']
)

slow_screenings_total = Counter(
    'watchlist_slow_screenings_total',
    'Total number of slow screenings',
    ['operation']
)

rule_evaluation_failures_total = Counter(
    'watchlist_rule_evaluation_failures_total',
    'Rules that raised during evaluation',
    ['rule_id']
)

rule_config_reloads_total = Counter(
    'watchlist_rule_config_reloads_total',
    'Rule configuration reload attempts',
    ['status']
)


def record_screening_outcome(tier: str) -> None:
    _registry.add_tier(tier)
    if _config.enable_prometheus:
        screenings_total.labels(tier=tier).inc()


def record_rule_failure(rule_id: str) -> None:
    if _config.enable_prometheus:
        rule_evaluation_failures_total.labels(rule_id=rule_id).inc()


def record_config_reload(success: bool) -> None:
    if _config.enable_prometheus:
        rule_config_reloads_total.labels(status="success" if success else "error").inc()


# ============================================
# IN-PROCESS SCREENING STATS
# ============================================

RECENT_WINDOW = 1000


def _percentile(sorted_values: List[float], fraction: float) -> float:
    if not sorted_values:
        return 0.0
    index = min(len(sorted_values) - 1, int(round(fraction * (len(sorted_values) - 1))))
    return sorted_values[index]


@dataclass
class ScreeningStats:
    """Counters and recent durations for one screening operation"""
    operation: str
    screenings: int = 0
    failures: int = 0
    slow: int = 0
    recent_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=RECENT_WINDOW))
    last_run: Optional[datetime] = None

    def add(self, duration_ms: float, failed: bool, slow: bool) -> None:
        self.screenings += 1
        self.failures += int(failed)
        self.slow += int(slow)
        self.recent_ms.append(duration_ms)
        self.last_run = datetime.now()

    def summary(self) -> Dict[str, Any]:
        recent = sorted(self.recent_ms)
        return {
            'operation': self.operation,
            'screenings': self.screenings,
            'failures': self.failures,
            'slow': self.slow,
            'mean_ms': round(sum(recent) / len(recent), 2) if recent else 0.0,
            'p50_ms': round(_percentile(recent, 0.5), 2),
            'p95_ms': round(_percentile(recent, 0.95), 2),
            'max_ms': round(recent[-1], 2) if recent else 0.0,
            'last_run': self.last_run.isoformat() if self.last_run else None,
        }


class ScreeningStatsRegistry:
    """Thread-safe per-operation stats plus tier counts"""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_operation: Dict[str, ScreeningStats] = {}
        self._tiers: Dict[str, int] = collections.Counter()
        self._since = datetime.now()

    def add(self, operation: str, duration_ms: float, failed: bool, slow: bool) -> None:
        with self._lock:
            stats = self._by_operation.setdefault(operation, ScreeningStats(operation))
            stats.add(duration_ms, failed, slow)

    def add_tier(self, tier: str) -> None:
        with self._lock:
            self._tiers[tier] += 1

    def snapshot(self, operation: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            if operation is not None:
                stats = self._by_operation.get(operation)
                return stats.summary() if stats else {}
            return {
                'since': self._since.isoformat(),
                'tiers': dict(self._tiers),
                'operations': {name: s.summary() for name, s in self._by_operation.items()},
            }

    def slow_operations(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [s.summary() for s in self._by_operation.values() if s.slow]

    def clear(self) -> None:
        with self._lock:
            self._by_operation.clear()
            self._tiers.clear()
            self._since = datetime.now()


_registry = ScreeningStatsRegistry()


def get_screening_metrics(operation: Optional[str] = None) -> Dict[str, Any]:
    """
    Current in-process screening statistics.

    Args:
        operation: Limit the result to one operation

    Returns:
        Summary for that operation, or every operation plus tier counts
    """
    return _registry.snapshot(operation)


def get_slow_screening_report() -> List[Dict[str, Any]]:
    return _registry.slow_operations()


def reset_metrics() -> None:
    """Clear in-process statistics; Prometheus counters are cumulative"""
    _registry.clear()


# ============================================
# SCREENING TIMER
# ============================================

@contextmanager
def screening_timer(operation: str):
    """
    Time a screening operation and flag it when slow.

    Args:
        operation: Name of the operation (e.g., 'filter_customer')

    Usage:
        with screening_timer("filter_customer"):
            result = screener.filter_customer(customer)
    """
    started = time.perf_counter()
    failed = True
    try:
        yield
        failed = False
    finally:
        elapsed = time.perf_counter() - started
        elapsed_ms = elapsed * 1000
        slow = elapsed_ms > _config.slow_screening_threshold_ms

        _registry.add(operation, elapsed_ms, failed, slow)

        if _config.enable_prometheus:
            screening_duration.labels(
                operation=operation, status="error" if failed else "success"
            ).observe(elapsed)
            if slow:
                slow_screenings_total.labels(operation=operation).inc()

        if slow:
            logger.warning("SLOW SCREENING: %s took %.2fms (threshold: %sms)",
                           operation, elapsed_ms, _config.slow_screening_threshold_ms)
