"""azcorr/event.py
Author: Sabin Thapa <sthapa3@kent.edu>

Per-event value types handed over by the event source.

A Particle is immutable once produced. An Event is an unordered bag of
particles plus the raw information the centrality estimator needs (here:
the generator impact parameter).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

from .physics import charge3


@dataclass(frozen=True)
class Particle:
    """Final-state particle: pt [GeV], eta, phi [rad, any range], PDG pid."""
    pt: float
    eta: float
    phi: float
    pid: int

    def __post_init__(self):
        if not self.pt >= 0.0:
            raise ValueError(f"Particle pt must be >= 0, got {self.pt}")

    @property
    def abseta(self) -> float:
        return abs(self.eta)

    @property
    def charge3(self) -> int:
        return charge3(self.pid)

    @property
    def is_charged(self) -> bool:
        return self.charge3 != 0


@dataclass(frozen=True)
class Event:
    particles: Tuple[Particle, ...] = ()
    impact_parameter: float = math.nan  # fm
    event_number: int = 0

    def __post_init__(self):
        # accept any iterable but store a tuple so the event stays hashable/immutable
        object.__setattr__(self, "particles", tuple(self.particles))

    def __len__(self) -> int:
        return len(self.particles)

    def particles_by_pt(self) -> Tuple[Particle, ...]:
        """Particles sorted by descending pt (stable for equal pt)."""
        return tuple(sorted(self.particles, key=lambda p: p.pt, reverse=True))


def make_event(particles: Iterable[Particle], *, impact_parameter: float = math.nan, event_number: int = 0) -> Event:
    return Event(particles=tuple(particles), impact_parameter=float(impact_parameter), event_number=int(event_number))
