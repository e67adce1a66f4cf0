"""azcorr/centrality.py
Author: Sabin Thapa <sthapa3@kent.edu>

Centrality estimation and event -> bin classification.

The estimator contract:
- ``calibrate(W)`` opens a warm-up window of W events;
- ``centrality(event)`` returns a percentile in [0, 100] once calibrated,
  and the sentinel ``UNCALIBRATED`` (-1.0) while the window is still open.

Anything outside [0, 100) is a veto for the analysis, never an error.

ImpactParameterCentrality follows the usual generator-level recipe: the
impact parameters of the warm-up events form the reference sample, and a
later event's centrality is the percentage of reference events with
b <= b_event (small b = central). The warm-up events themselves carry
no centrality, so W should cover enough events for a stable reference
without eating the statistics of the run.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

import numpy as np
from scipy.stats import percentileofscore

from .config import CentralityBin
from .event import Event
from .logs import get_logger

log = get_logger("centrality")

UNCALIBRATED = -1.0


def is_valid_centrality(c: float) -> bool:
    return math.isfinite(c) and 0.0 <= c < 100.0


def find_bin(bins: Sequence[CentralityBin], c: float) -> Optional[CentralityBin]:
    """Bin whose [low, high) range holds c, or None.

    Defined for every float: NaN, the sentinel and values outside every
    configured range all map to None.
    """
    if not is_valid_centrality(c):
        return None
    for b in bins:
        if b.contains(c):
            return b
    return None


class CentralityEstimator(ABC):
    """Maps an event to a centrality percentile."""

    @abstractmethod
    def calibrate(self, warmup_event_count: int) -> None:
        ...

    @abstractmethod
    def centrality(self, event: Event) -> float:
        ...


class ImpactParameterCentrality(CentralityEstimator):
    """Generator impact-parameter percentile, calibrated on the first W events."""

    def __init__(self, warmup_event_count: Optional[int] = None):
        self._warmup = 0
        self._seen = 0
        self._reference: list[float] = []
        self._sorted: Optional[np.ndarray] = None
        if warmup_event_count is not None:
            self.calibrate(warmup_event_count)

    def calibrate(self, warmup_event_count: int) -> None:
        n = int(warmup_event_count)
        if n < 0:
            raise ValueError("warmup_event_count must be >= 0.")
        self._warmup = n
        self._seen = 0
        self._reference = []
        self._sorted = None
        log.info("Impact-parameter centrality: calibrating on the first %d events.", n)

    @property
    def is_calibrated(self) -> bool:
        return self._seen >= self._warmup and len(self._reference) > 0

    @property
    def reference_size(self) -> int:
        return len(self._reference)

    def centrality(self, event: Event) -> float:
        b = float(event.impact_parameter)

        if self._seen < self._warmup:
            self._seen += 1
            if math.isfinite(b):
                self._reference.append(b)
            if self._seen == self._warmup:
                log.info("Centrality calibration complete with %d reference events.", len(self._reference))
            return UNCALIBRATED

        if not self._reference or not math.isfinite(b):
            return UNCALIBRATED
        if self._sorted is None:
            self._sorted = np.sort(np.asarray(self._reference, dtype=float))
        c = float(percentileofscore(self._sorted, b, kind="weak"))
        return float(np.clip(c, 0.0, 100.0))


class FunctionCentrality(CentralityEstimator):
    """Centrality from a user function, e.g. a lookup of precomputed values.

    ``calibrate`` only opens a warm-up window of the same kind as
    ImpactParameterCentrality: the first W events return UNCALIBRATED.
    """

    def __init__(self, func: Callable[[Event], float], warmup_event_count: int = 0):
        self.func = func
        self._warmup = 0
        self._seen = 0
        self.calibrate(warmup_event_count)

    def calibrate(self, warmup_event_count: int) -> None:
        n = int(warmup_event_count)
        if n < 0:
            raise ValueError("warmup_event_count must be >= 0.")
        self._warmup = n
        self._seen = 0

    def centrality(self, event: Event) -> float:
        if self._seen < self._warmup:
            self._seen += 1
            return UNCALIBRATED
        return float(self.func(event))
