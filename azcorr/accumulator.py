"""azcorr/accumulator.py
Author: Sabin Thapa <sthapa3@kent.edu>

Per-event trigger/associated pair accumulation, one state per centrality bin.

For an event that survives classification:

    n_trigger[bin] += |T|
    for t in T, a in A with a.pt < t.pt:
        yield[bin].fill(Δφ)          Δφ = a.phi - t.phi, lifted into [0, 2π)
        iaa[bin].fill(a.pt)
        iaaz[bin].fill(a.pt / t.pt)

Every pair is filled twice: once into the bin's all-bands histograms and
once into the histograms of the trigger band that t falls in. Bands are
numbered by their position in ``AnalysisConfig.trigger_bands``.

All weights are 1. State lives in a dict keyed by the bin index; there
are no parallel arrays to keep in step. An event is first turned into a
complete list of pair entries and only then committed, so a vetoed or
malformed event leaves every bin exactly as it was.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .centrality import find_bin, is_valid_centrality
from .config import AnalysisConfig, CentralityBin
from .errors import AlreadyFinalizedError, BinningMismatchError
from .event import Event, Particle
from .histogram import Histo1D
from .logs import get_logger
from .physics import wrap_delta_phi, z_t
from .selection import Selection, associated_selection, trigger_selection

log = get_logger("accumulator")

YIELD = "yield"
IAA = "iaa"
IAAZ = "iaaz"

# Output sub-index of the all-bands histograms; band i is written as i + 1.
ALL_BANDS = 0


def band_sub_index(band: int) -> int:
    return band + 1


@dataclass
class VetoCounts:
    """Events dropped before touching any bin, by reason."""
    invalid_centrality: int = 0
    no_bin: int = 0
    malformed: int = 0

    @property
    def total(self) -> int:
        return self.invalid_centrality + self.no_bin + self.malformed

    def __iadd__(self, other: "VetoCounts") -> "VetoCounts":
        self.invalid_centrality += other.invalid_centrality
        self.no_bin += other.no_bin
        self.malformed += other.malformed
        return self


def _book(cfg: AnalysisConfig, tag: str) -> Dict[str, Histo1D]:
    return {
        YIELD: Histo1D(cfg.dphi_edges, name=f"{tag}/{YIELD}"),
        IAA: Histo1D(cfg.iaa_pt_edges, name=f"{tag}/{IAA}"),
        IAAZ: Histo1D(cfg.iaaz_edges, name=f"{tag}/{IAAZ}"),
    }


@dataclass
class BinState:
    bin: CentralityBin
    histograms: Dict[str, Histo1D]
    bands: Dict[int, Dict[str, Histo1D]]
    band_triggers: Dict[int, int]
    n_trigger: int = 0
    n_pairs: int = 0
    n_events: int = 0

    @classmethod
    def empty(cls, b: CentralityBin, cfg: AnalysisConfig) -> "BinState":
        tag = f"cent{b.index}"
        n_bands = len(cfg.trigger_bands)
        return cls(
            bin=b,
            histograms=_book(cfg, f"{tag}/all"),
            bands={i: _book(cfg, f"{tag}/band{i}") for i in range(n_bands)},
            band_triggers={i: 0 for i in range(n_bands)},
        )

    def all_histograms(self) -> Iterator[Histo1D]:
        yield from self.histograms.values()
        for hists in self.bands.values():
            yield from hists.values()

    def __iadd__(self, other: "BinState") -> "BinState":
        if self.bin != other.bin:
            raise BinningMismatchError(f"Cannot merge state of {self.bin.label} with {other.bin.label}.")
        if set(self.bands) != set(other.bands):
            raise BinningMismatchError(
                f"Trigger bands differ in {self.bin.label}: {len(self.bands)} vs {len(other.bands)}."
            )
        for kind, h in self.histograms.items():
            h += other.histograms[kind]
        for i, hists in self.bands.items():
            for kind, h in hists.items():
                h += other.bands[i][kind]
            self.band_triggers[i] += other.band_triggers[i]
        self.n_trigger += other.n_trigger
        self.n_pairs += other.n_pairs
        self.n_events += other.n_events
        return self


@dataclass(frozen=True)
class PairEntry:
    dphi: float
    pt_assoc: float
    z_t: float
    band: Optional[int] = None


def delta_phi(trigger: Particle, assoc: Particle) -> float:
    return wrap_delta_phi(assoc.phi - trigger.phi)


def iter_pairs(triggers: Sequence[Particle], assocs: Sequence[Particle]) -> Iterator[Tuple[Particle, Particle]]:
    """Every (t, a) with a.pt < t.pt, triggers in the outer loop."""
    for t in triggers:
        for a in assocs:
            if a.pt < t.pt:
                yield t, a


def _finite_angles(particles: Sequence[Particle]) -> bool:
    return all(math.isfinite(p.phi) for p in particles)


class CorrelationAccumulator:
    """Owns the trigger counters and observable histograms of every bin."""

    def __init__(
        self,
        cfg: AnalysisConfig,
        *,
        trigger: Optional[Selection] = None,
        associated: Optional[Selection] = None,
    ):
        self.cfg = cfg
        self.trigger = trigger if trigger is not None else trigger_selection(cfg)
        self.associated = associated if associated is not None else associated_selection(cfg)
        self.bins: Dict[int, BinState] = {b.index: BinState.empty(b, cfg) for b in cfg.centrality_bins}
        self.vetoes = VetoCounts()
        self.n_events_seen = 0
        self.finalized = False

    # ---- access ----

    def state(self, index: int) -> BinState:
        if index not in self.bins:
            raise KeyError(f"No centrality bin with index {index}; configured: {sorted(self.bins)}")
        return self.bins[index]

    def histogram(self, index: int, kind: str, band: Optional[int] = None) -> Histo1D:
        """All-bands histogram of a bin, or that of one trigger band."""
        state = self.state(index)
        if band is None:
            return state.histograms[kind]
        return state.bands[band][kind]

    def n_trigger(self, index: int) -> int:
        return self.state(index).n_trigger

    @property
    def n_events_accepted(self) -> int:
        return sum(s.n_events for s in self.bins.values())

    # ---- filling ----

    def check_open(self) -> None:
        if self.finalized:
            raise AlreadyFinalizedError("Accumulator has been finalized; no more events can be added.")

    def add_event(self, event: Event, centrality: float) -> Optional[int]:
        """Accumulate one event at the given centrality.

        Returns the index of the bin that was updated, or None if the event
        was vetoed (invalid centrality, no matching bin, non-finite angles).
        """
        self.check_open()
        self.n_events_seen += 1

        if not is_valid_centrality(centrality):
            self.vetoes.invalid_centrality += 1
            log.debug("Event %d vetoed: centrality %r outside [0, 100).", event.event_number, centrality)
            return None
        b = find_bin(self.cfg.centrality_bins, centrality)
        if b is None:
            self.vetoes.no_bin += 1
            log.debug("Event %d vetoed: centrality %.2f in no configured bin.", event.event_number, centrality)
            return None

        triggers = self.trigger.select(event)
        assocs = self.associated.select(event)
        if not (_finite_angles(triggers) and _finite_angles(assocs)):
            self.vetoes.malformed += 1
            log.debug("Event %d vetoed: non-finite phi among selected particles.", event.event_number)
            return None

        trigger_bands = [self.cfg.band_index(t.pid, t.pt) for t in triggers]
        entries: List[PairEntry] = [
            PairEntry(delta_phi(t, a), a.pt, z_t(a.pt, t.pt), self.cfg.band_index(t.pid, t.pt))
            for t, a in iter_pairs(triggers, assocs)
        ]
        self._commit(self.bins[b.index], trigger_bands, entries)
        return b.index

    def _commit(self, state: BinState, trigger_bands: Sequence[Optional[int]], entries: Sequence[PairEntry]) -> None:
        state.n_events += 1
        state.n_trigger += len(trigger_bands)
        state.n_pairs += len(entries)
        for i in trigger_bands:
            if i is not None:
                state.band_triggers[i] += 1
        for e in entries:
            targets = [state.histograms]
            if e.band is not None:
                targets.append(state.bands[e.band])
            for h in targets:
                h[YIELD].fill(e.dphi, 1.0)
                h[IAA].fill(e.pt_assoc, 1.0)
                h[IAAZ].fill(e.z_t, 1.0)

    # ---- sharding ----

    def merge(self, other: "CorrelationAccumulator") -> "CorrelationAccumulator":
        """Add another shard's counters and histograms into this one."""
        self.check_open()
        if other.finalized:
            raise AlreadyFinalizedError("Cannot merge a finalized accumulator.")
        if set(self.bins) != set(other.bins):
            raise BinningMismatchError(
                f"Centrality binning differs: {sorted(self.bins)} vs {sorted(other.bins)}."
            )
        for idx, state in self.bins.items():
            state += other.bins[idx]
        self.vetoes += other.vetoes
        self.n_events_seen += other.n_events_seen
        return self
