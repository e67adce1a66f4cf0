"""azcorr/selection.py
Author: Sabin Thapa <sthapa3@kent.edu>

Trigger and associated particle selections.

A Selection is a named Cut applied to a whole event. It is pure: the same
event always yields the same particles, sorted by descending pt, and
nothing about centrality enters.

The per-pair requirement pt_assoc < pt_trig is not a selection cut; it
depends on the trigger in the pair and is applied while pairing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .config import AnalysisConfig
from .cuts import Cut, abseta_lt, all_of, any_of, charged, pid_in, pt_between, pt_in
from .event import Event, Particle


@dataclass(frozen=True)
class Selection:
    name: str
    cut: Cut

    def accepts(self, p: Particle) -> bool:
        return self.cut(p)

    def select(self, event: Event) -> Tuple[Particle, ...]:
        return tuple(p for p in event.particles_by_pt() if self.cut(p))

    def __str__(self) -> str:
        return f"{self.name}: {self.cut.label}"


def trigger_cut(cfg: AnalysisConfig) -> Cut:
    """pid in the trigger species && |eta| < max && pt in any band of that species."""
    per_species = []
    for pid in cfg.trigger_pids:
        bands = any_of(*(pt_in(b.pt_low, b.pt_high) for b in cfg.bands_for(pid)))
        per_species.append(pid_in(pid) & bands)
    return abseta_lt(cfg.trigger_eta_max) & any_of(*per_species)


def associated_cut(cfg: AnalysisConfig) -> Cut:
    return all_of(charged(), abseta_lt(cfg.assoc_eta_max), pt_between(cfg.assoc_pt_min, cfg.assoc_pt_max))


def trigger_selection(cfg: AnalysisConfig) -> Selection:
    return Selection("trigger", trigger_cut(cfg))


def associated_selection(cfg: AnalysisConfig) -> Selection:
    return Selection("associated", associated_cut(cfg))
