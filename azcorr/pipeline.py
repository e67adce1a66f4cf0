"""azcorr/pipeline.py
Author: Sabin Thapa <sthapa3@kent.edu>

The analysis as an explicit object with three operations:

    pipe = CorrelationPipeline(estimator=ImpactParameterCentrality())
    pipe.configure(PHENIX_2009_CONFIG)
    for ev in events:
        pipe.process_event(ev)
    result = pipe.finalize()

``run`` chains the three for an iterable of events. The pipeline does not
own the event source; any iterable of Event works.
"""

from __future__ import annotations

import time
from typing import Iterable, Optional

from .accumulator import CorrelationAccumulator
from .centrality import CentralityEstimator, ImpactParameterCentrality
from .config import AnalysisConfig
from .errors import NotConfiguredError
from .event import Event
from .logs import get_logger
from .normalize import AnalysisResult, Normalizer
from .output import OutputSink, publish
from .selection import associated_selection, trigger_selection

log = get_logger("pipeline")


class CorrelationPipeline:
    """Centrality classification -> selection -> pair accumulation -> normalization."""

    def __init__(self, estimator: Optional[CentralityEstimator] = None, sink: Optional[OutputSink] = None):
        self.estimator = estimator if estimator is not None else ImpactParameterCentrality()
        self.sink = sink
        self.cfg: Optional[AnalysisConfig] = None
        self.accumulator: Optional[CorrelationAccumulator] = None
        self.result: Optional[AnalysisResult] = None

    def configure(self, cfg: AnalysisConfig) -> "CorrelationPipeline":
        """Build selections and empty per-bin state; calibrate the estimator.

        The configuration is validated on construction, so a malformed one
        never gets here.
        """
        trig = trigger_selection(cfg)
        assoc = associated_selection(cfg)
        self.cfg = cfg
        self.accumulator = CorrelationAccumulator(cfg, trigger=trig, associated=assoc)
        self.result = None
        self.estimator.calibrate(cfg.warmup_event_count)

        log.info("Pipeline configured with %d centrality bins: %s",
                 len(cfg.centrality_bins), ", ".join(b.label for b in cfg.centrality_bins))
        log.info("Trigger bands: %s", "; ".join(b.label for b in cfg.trigger_bands))
        log.info("  %s", trig)
        log.info("  %s", assoc)
        return self

    def _require_configured(self) -> CorrelationAccumulator:
        if self.accumulator is None:
            raise NotConfiguredError("CorrelationPipeline.configure() must be called before processing events.")
        return self.accumulator

    def process_event(self, event: Event) -> Optional[int]:
        """Returns the updated bin index, or None if the event was vetoed."""
        acc = self._require_configured()
        # a rejected event must not reach the estimator's warm-up sample
        acc.check_open()
        c = self.estimator.centrality(event)
        return acc.add_event(event, c)

    def finalize(self) -> AnalysisResult:
        acc = self._require_configured()
        result = Normalizer().finalize(acc)
        self.result = result
        for line in result.summary_lines():
            log.info(line)
        if self.sink is not None:
            n = publish(result, self.sink)
            log.info("Published %d distributions.", n)
        return result

    def run(self, events: Iterable[Event]) -> AnalysisResult:
        if self.accumulator is None:
            raise NotConfiguredError("CorrelationPipeline.configure() must be called before run().")
        t0 = time.perf_counter()
        n = 0
        for ev in events:
            self.process_event(ev)
            n += 1
        log.info("Processed %d events in %.3f s.", n, time.perf_counter() - t0)
        return self.finalize()
