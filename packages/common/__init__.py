"""Common utilities for readyup.

This package provides reusable utilities like logging, config, tracing,
retry policies and health checks.

Note: Factory functions are available via direct import to avoid circular dependencies:
    from packages.common.factories import make_bring_up_use_case, make_runtime
"""

from packages.common.durations import DurationError, parse_duration

__all__ = ["DurationError", "parse_duration"]
