"""azcorr/errors.py
Author: Sabin Thapa <sthapa3@kent.edu>

Exception types. Per-event anomalies are vetoes, not exceptions; only
configuration and lifecycle misuse raise.
"""

from __future__ import annotations


class AzcorrError(Exception):
    """Base class for every error raised by azcorr."""


class ConfigError(AzcorrError, ValueError):
    """Malformed run configuration (bins, trigger bands, cuts, binning)."""


class AlreadyFinalizedError(AzcorrError, RuntimeError):
    """Normalization was requested, or state mutated, after finalize."""


class NotConfiguredError(AzcorrError, RuntimeError):
    """An event was processed before the pipeline was configured."""


class BinningMismatchError(AzcorrError, ValueError):
    """Histograms or accumulators with different binning were combined."""
