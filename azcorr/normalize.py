"""azcorr/normalize.py
Author: Sabin Thapa <sthapa3@kent.edu>

Per-trigger normalization, run exactly once after the event stream.

For every centrality bin with n triggers:
- n > 0: every accumulator of the bin (yield, IAA, IAAz, all-bands and
  per trigger band alike) is scaled by 1/n;
- n == 0: nothing is scaled, the bin is flagged invalid and the problem is
  reported (logged and kept in the result), never turned into inf/NaN.

A second finalize of the same accumulator raises AlreadyFinalizedError.

``ratio_to_reference`` then forms IAA-type ratios between a normalized
A+A result and a normalized p+p reference with the same binning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .accumulator import IAA, IAAZ, CorrelationAccumulator, VetoCounts
from .config import CentralityBin
from .errors import AlreadyFinalizedError, BinningMismatchError
from .histogram import Histo1D
from .logs import get_logger

log = get_logger("normalize")


@dataclass(frozen=True)
class ZeroTriggerNormalization:
    """Record of a bin that could not be normalized."""
    bin_index: int
    label: str
    n_events: int

    def __str__(self) -> str:
        return f"centrality bin {self.bin_index} ({self.label}): 0 triggers in {self.n_events} accepted events"


@dataclass
class BinResult:
    bin: CentralityBin
    histograms: Dict[str, Histo1D]
    n_trigger: int
    n_pairs: int
    n_events: int
    valid: bool
    scale: Optional[float]  # 1/n_trigger, None when invalid
    bands: Dict[int, Dict[str, Histo1D]] = field(default_factory=dict)
    band_triggers: Dict[int, int] = field(default_factory=dict)

    def __getitem__(self, kind: str) -> Histo1D:
        return self.histograms[kind]

    def band(self, index: int, kind: str) -> Histo1D:
        return self.bands[index][kind]


@dataclass
class AnalysisResult:
    bins: Dict[int, BinResult]
    vetoes: VetoCounts
    n_events_seen: int
    problems: List[ZeroTriggerNormalization] = field(default_factory=list)

    def __getitem__(self, index: int) -> BinResult:
        return self.bins[index]

    @property
    def invalid_bins(self) -> Tuple[int, ...]:
        return tuple(i for i, r in self.bins.items() if not r.valid)

    def summary_lines(self) -> List[str]:
        lines = [
            f"events seen: {self.n_events_seen}, vetoed: {self.vetoes.total} "
            f"(invalid centrality {self.vetoes.invalid_centrality}, no bin {self.vetoes.no_bin}, "
            f"malformed {self.vetoes.malformed})"
        ]
        for i, r in sorted(self.bins.items()):
            state = "ok" if r.valid else "INVALID"
            lines.append(
                f"  bin {i} [{r.bin.label}]: events={r.n_events} triggers={r.n_trigger} pairs={r.n_pairs} {state}"
            )
        return lines


class Normalizer:
    """Turns raw pair counts into per-trigger yields."""

    def finalize(self, acc: CorrelationAccumulator) -> AnalysisResult:
        if acc.finalized:
            raise AlreadyFinalizedError("Accumulator already finalized; refusing to scale a second time.")

        results: Dict[int, BinResult] = {}
        problems: List[ZeroTriggerNormalization] = []
        for idx, state in acc.bins.items():
            n = state.n_trigger
            if n == 0:
                problem = ZeroTriggerNormalization(idx, state.bin.label, state.n_events)
                log.warning("Cannot normalize %s; bin left unscaled and marked invalid.", problem)
                problems.append(problem)
                scale = None
            else:
                scale = 1.0 / n
                for h in state.all_histograms():
                    h.scale_w(scale)
            results[idx] = BinResult(
                bin=state.bin,
                histograms=state.histograms,
                bands=state.bands,
                band_triggers=dict(state.band_triggers),
                n_trigger=n,
                n_pairs=state.n_pairs,
                n_events=state.n_events,
                valid=scale is not None,
                scale=scale,
            )

        acc.finalized = True
        return AnalysisResult(
            bins=results,
            vetoes=VetoCounts(**vars(acc.vetoes)),
            n_events_seen=acc.n_events_seen,
            problems=problems,
        )


def finalize(acc: CorrelationAccumulator) -> AnalysisResult:
    return Normalizer().finalize(acc)


# ----------------------------------------------------------------------
# Ratios to a p+p reference
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Ratio:
    """Point-wise ratio A/B on shared bins; ``mask`` marks defined points."""
    edges: np.ndarray
    values: np.ndarray
    errors: np.ndarray
    mask: np.ndarray

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[:-1] + self.edges[1:])


def divide(num: Histo1D, den: Histo1D) -> Ratio:
    """num/den with uncorrelated errors; bins with den <= 0 give 0 and mask False."""
    if not num.same_binning(den):
        raise BinningMismatchError(f"Cannot divide '{num.name}' by '{den.name}': edges differ.")
    ok = den.sumw > 0.0
    safe = np.where(ok, den.sumw, 1.0)
    values = np.where(ok, num.sumw / safe, 0.0)

    # relative errors added in quadrature, zero where a content is zero
    num_safe = np.where(num.sumw != 0.0, num.sumw, 1.0)
    rel2 = np.where(num.sumw != 0.0, num.sumw2 / num_safe ** 2, 0.0) + np.where(ok, den.sumw2 / safe ** 2, 0.0)
    errors = np.where(ok, np.abs(values) * np.sqrt(rel2), 0.0)
    return Ratio(edges=num.edges.copy(), values=values, errors=errors, mask=ok)


def ratio_to_reference(
    result: AnalysisResult,
    reference: AnalysisResult,
    *,
    reference_bin: Optional[int] = None,
    kinds: Iterable[str] = (IAA, IAAZ),
) -> Dict[Tuple[int, str], Ratio]:
    """I_AA(x) = Y_AA(x) / Y_pp(x) for every valid bin of ``result``.

    ``reference`` is a normalized p+p result; its ``reference_bin`` (default:
    the lowest valid index) serves as the denominator for every A+A bin.
    Invalid bins on either side are skipped.
    """
    if reference_bin is None:
        valid_ref = sorted(i for i, r in reference.bins.items() if r.valid)
        if not valid_ref:
            raise ValueError("Reference result has no valid (normalized) bin.")
        reference_bin = valid_ref[0]
    ref = reference[reference_bin]
    if not ref.valid:
        raise ValueError(f"Reference bin {reference_bin} is not normalized (0 triggers).")

    out: Dict[Tuple[int, str], Ratio] = {}
    for idx, r in sorted(result.bins.items()):
        if not r.valid:
            log.info("Skipping ratio for invalid bin %d (%s).", idx, r.bin.label)
            continue
        for kind in kinds:
            out[(idx, kind)] = divide(r[kind], ref[kind])
    return out
