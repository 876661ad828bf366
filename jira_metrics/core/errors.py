"""Exceptions raised while assembling an analysis configuration."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised at setup time when statuses, boards or cycle time rules conflict.

    These are never raised while scanning issue data; anomalies found in the
    data itself are reported as data quality problems instead.
    """
