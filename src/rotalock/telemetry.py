"""Telemetry - logging and metrics entry point

Log format: [module:panel[:8]] msg
Metric examples: rotation.dispatch, rotation.fallback, rotation.timeout_reset,
bus.handler_errors, timer.errors
"""

import logging

from . import config

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger

    Args:
        name: module name (usually ``__name__``)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for the console entry points

    Args:
        level: level name, defaults to ``config.LOG_LEVEL``
    """
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format=_LOG_FORMAT,
    )


def format_panel_log(module: str, panel_key: str, msg: str) -> str:
    """Format a log line tagged with a panel key

    Args:
        module: component tag
        panel_key: panel identifier
        msg: message

    Returns:
        ``[module:panel_key[:8]] msg``
    """
    panel_short = panel_key[:8] if panel_key else "unknown"
    return f"[{module}:{panel_short}] {msg}"


Labels = dict[str, str] | None
SeriesKey = tuple[str, tuple[tuple[str, str], ...]]


def _series(name: str, labels: Labels) -> SeriesKey:
    return name, tuple(sorted((labels or {}).items()))


def _render(key: SeriesKey) -> str:
    """``name`` or ``name{k=v,...}`` for export"""
    name, labels = key
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


class Metrics:
    """Process-wide counters and gauges

    Each series is a metric name plus its label set. Values stay in memory;
    ``/api/metrics`` exports them with rendered series names.
    """

    def __init__(self):
        self._counters: dict[SeriesKey, int] = {}
        self._gauges: dict[SeriesKey, float] = {}

    def inc(self, name: str, labels: Labels = None, value: int = 1) -> None:
        """Add ``value`` to a counter series

        Args:
            name: metric name, e.g. ``rotation.fallback``
            labels: optional labels, e.g. ``{"strategy": "direct"}``
            value: increment
        """
        if config.METRICS_ENABLED:
            key = _series(name, labels)
            self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, labels: Labels = None) -> None:
        if config.METRICS_ENABLED:
            self._gauges[_series(name, labels)] = value

    def get_counter(self, name: str, labels: Labels = None) -> int:
        return self._counters.get(_series(name, labels), 0)

    def get_gauge(self, name: str, labels: Labels = None) -> float:
        return self._gauges.get(_series(name, labels), 0.0)

    def get_all_counters(self) -> dict[str, int]:
        return {_render(key): value for key, value in self._counters.items()}

    def get_all_gauges(self) -> dict[str, float]:
        return {_render(key): value for key, value in self._gauges.items()}

    def reset(self) -> None:
        """Forget every series (tests)"""
        self._counters.clear()
        self._gauges.clear()


metrics = Metrics()
