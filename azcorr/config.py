"""azcorr/config.py
Author: Sabin Thapa <sthapa3@kent.edu>

Run-level configuration.

Everything here is immutable and validated when constructed, so a
malformed configuration fails before the first event is read:

- centrality bins: [low, high) percentiles inside [0, 100], no overlaps
- trigger bands: (pid, [pt_low, pt_high)) with pt_low < pt_high
- associated-particle window and eta acceptances
- histogram binning for the Δφ, pT and z_T accumulators
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigError
from .physics import PID_GAMMA, PID_PI0, TWO_PI


@dataclass(frozen=True)
class CentralityBin:
    """Percentile range [low, high) with a stable integer identifier."""
    index: int
    low: float
    high: float

    def __post_init__(self):
        if not (0.0 <= self.low < self.high <= 100.0):
            raise ConfigError(
                f"Centrality bin {self.index} = [{self.low}, {self.high}) must satisfy 0 <= low < high <= 100."
            )

    def contains(self, c: float) -> bool:
        return self.low <= c < self.high

    @property
    def label(self) -> str:
        return f"{self.low:g}-{self.high:g}%"


@dataclass(frozen=True)
class TriggerBand:
    pid: int
    pt_low: float
    pt_high: float

    def __post_init__(self):
        if not self.pt_low < self.pt_high:
            raise ConfigError(f"Trigger band for pid {self.pid} has pt_low={self.pt_low} >= pt_high={self.pt_high}.")
        if self.pt_low < 0.0:
            raise ConfigError(f"Trigger band for pid {self.pid} has negative pt_low={self.pt_low}.")

    def contains(self, pid: int, pt: float) -> bool:
        return pid == self.pid and self.pt_low <= pt < self.pt_high

    @property
    def label(self) -> str:
        return f"pid {self.pid} {self.pt_low:g}-{self.pt_high:g} GeV"


def make_centrality_bins(edges: Sequence[Tuple[float, float]]) -> Tuple[CentralityBin, ...]:
    """Build indexed bins from (low, high) pairs, in the given order."""
    return tuple(CentralityBin(i, float(lo), float(hi)) for i, (lo, hi) in enumerate(edges))


def _check_no_overlap(bins: Sequence[CentralityBin]) -> None:
    ordered = sorted(bins, key=lambda b: b.low)
    for a, b in zip(ordered[:-1], ordered[1:]):
        if b.low < a.high:
            raise ConfigError(f"Centrality bins {a.label} and {b.label} overlap.")


def _check_band_overlap(bands: Sequence[TriggerBand]) -> None:
    by_pid: Dict[int, list] = {}
    for band in bands:
        by_pid.setdefault(band.pid, []).append(band)
    for pid, group in by_pid.items():
        ordered = sorted(group, key=lambda b: b.pt_low)
        for a, b in zip(ordered[:-1], ordered[1:]):
            if b.pt_low < a.pt_high:
                raise ConfigError(
                    f"Trigger bands for pid {pid} overlap: [{a.pt_low}, {a.pt_high}) and [{b.pt_low}, {b.pt_high})."
                )


@dataclass(frozen=True)
class AnalysisConfig:
    centrality_bins: Tuple[CentralityBin, ...]
    trigger_bands: Tuple[TriggerBand, ...]
    trigger_eta_max: float = 1.0
    assoc_pt_min: float = 1.2
    assoc_pt_max: float = 20.0
    assoc_eta_max: float = 1.0
    warmup_event_count: int = 50

    # accumulator binning
    n_dphi_bins: int = 30
    iaa_pt_edges: Tuple[float, ...] = (1.2, 2.0, 3.0, 5.0, 7.0, 9.0, 12.0, 20.0)
    iaaz_edges: Tuple[float, ...] = (0.0, 0.1, 0.2, 0.3, 0.4, 0.6, 0.8, 1.0)

    def __post_init__(self):
        object.__setattr__(self, "centrality_bins", tuple(self.centrality_bins))
        object.__setattr__(self, "trigger_bands", tuple(self.trigger_bands))
        object.__setattr__(self, "iaa_pt_edges", tuple(float(x) for x in self.iaa_pt_edges))
        object.__setattr__(self, "iaaz_edges", tuple(float(x) for x in self.iaaz_edges))

        if not self.centrality_bins:
            raise ConfigError("At least one centrality bin is required.")
        indices = [b.index for b in self.centrality_bins]
        if len(set(indices)) != len(indices):
            raise ConfigError(f"Centrality bin indices must be unique, got {indices}.")
        _check_no_overlap(self.centrality_bins)

        if not self.trigger_bands:
            raise ConfigError("At least one trigger band is required.")
        _check_band_overlap(self.trigger_bands)

        if self.trigger_eta_max <= 0.0 or self.assoc_eta_max <= 0.0:
            raise ConfigError("Eta acceptances must be positive.")
        if not (0.0 <= self.assoc_pt_min < self.assoc_pt_max):
            raise ConfigError(
                f"Associated pt window ({self.assoc_pt_min}, {self.assoc_pt_max}) must satisfy 0 <= min < max."
            )
        if int(self.warmup_event_count) < 0:
            raise ConfigError("warmup_event_count must be >= 0.")
        if int(self.n_dphi_bins) < 1:
            raise ConfigError("n_dphi_bins must be >= 1.")
        for name in ("iaa_pt_edges", "iaaz_edges"):
            edges = np.asarray(getattr(self, name))
            if edges.size < 2 or np.any(np.diff(edges) <= 0.0):
                raise ConfigError(f"{name} must hold at least two strictly increasing edges.")

    # ---- derived ----

    @property
    def dphi_edges(self) -> np.ndarray:
        return np.linspace(0.0, TWO_PI, int(self.n_dphi_bins) + 1)

    @property
    def trigger_pids(self) -> Tuple[int, ...]:
        return tuple(sorted({b.pid for b in self.trigger_bands}))

    def bands_for(self, pid: int) -> Tuple[TriggerBand, ...]:
        return tuple(b for b in self.trigger_bands if b.pid == pid)

    def band_index(self, pid: int, pt: float) -> Optional[int]:
        """Position of the band holding (pid, pt) in ``trigger_bands``, or None."""
        for i, band in enumerate(self.trigger_bands):
            if band.contains(pid, pt):
                return i
        return None

    def bin_by_index(self, index: int) -> CentralityBin:
        for b in self.centrality_bins:
            if b.index == index:
                return b
        raise KeyError(f"No centrality bin with index {index}")

    # ---- (de)serialization ----

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["centrality_bins"] = [[b.low, b.high] for b in self.centrality_bins]
        d["trigger_bands"] = [[b.pid, [b.pt_low, b.pt_high]] for b in self.trigger_bands]
        d["iaa_pt_edges"] = list(self.iaa_pt_edges)
        d["iaaz_edges"] = list(self.iaaz_edges)
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AnalysisConfig":
        """Build from plain data.

        Accepts the camelCase option names of the run card
        (``centralityBins``, ``triggerBands``, ``assocPtMin`` ...) as well as
        the snake_case attribute names. Trigger bands are
        ``[pid, [pt_low, pt_high]]`` pairs.
        """
        d = {_SNAKE.get(k, k): v for k, v in d.items()}
        unknown = set(d) - _FIELDS
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {sorted(unknown)}")
        try:
            bins = make_centrality_bins(d.pop("centrality_bins"))
            bands = tuple(TriggerBand(int(pid), float(lo), float(hi)) for pid, (lo, hi) in d.pop("trigger_bands"))
        except KeyError as e:
            raise ConfigError(f"Missing required configuration option {e.args[0]!r}") from e
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(f"Malformed centrality bins or trigger bands: {e}") from e
        return cls(centrality_bins=bins, trigger_bands=bands, **d)


_FIELDS = {
    "centrality_bins", "trigger_bands", "trigger_eta_max", "assoc_pt_min", "assoc_pt_max",
    "assoc_eta_max", "warmup_event_count", "n_dphi_bins", "iaa_pt_edges", "iaaz_edges",
}

_SNAKE = {
    "centralityBins": "centrality_bins",
    "triggerBands": "trigger_bands",
    "triggerEtaMax": "trigger_eta_max",
    "assocPtMin": "assoc_pt_min",
    "assocPtMax": "assoc_pt_max",
    "assocEtaMax": "assoc_eta_max",
    "warmupEventCount": "warmup_event_count",
    "nDphiBins": "n_dphi_bins",
    "iaaPtEdges": "iaa_pt_edges",
    "iaazEdges": "iaaz_edges",
}


def load_config(path: str | Path) -> AnalysisConfig:
    """Read an AnalysisConfig from a JSON run card."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with path.open() as f:
        return AnalysisConfig.from_dict(json.load(f))


# Settings of the PHENIX gamma/pi0-hadron analysis (Au+Au, 200 GeV).
PHENIX_2009_CONFIG = AnalysisConfig(
    centrality_bins=make_centrality_bins([(0, 20), (20, 40), (40, 60)]),
    trigger_bands=(
        TriggerBand(PID_GAMMA, 5.0, 7.0),
        TriggerBand(PID_GAMMA, 7.0, 9.0),
        TriggerBand(PID_GAMMA, 9.0, 12.0),
        TriggerBand(PID_GAMMA, 12.0, 15.0),
        TriggerBand(PID_PI0, 13.0, 20.0),
    ),
    trigger_eta_max=1.0,
    assoc_pt_min=1.2,
    assoc_pt_max=20.0,
    assoc_eta_max=1.0,
    warmup_event_count=50,
)
