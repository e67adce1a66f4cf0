"""azcorr/histogram.py
Author: Sabin Thapa <sthapa3@kent.edu>

Weighted 1D histogram used for every observable accumulator.

Bins are half-open [e_i, e_{i+1}) on fixed edges; values below the first
edge go to the underflow, values at or above the last edge to the
overflow. Weights (sumw) and squared weights (sumw2) are kept so that
scaling by a constant c multiplies sumw by c and sumw2 by c^2.

Two histograms with identical edges add element-wise, which is what
merging independently filled shards needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .errors import BinningMismatchError


@dataclass(eq=False)
class Histo1D:
    edges: np.ndarray
    name: str = ""
    sumw: np.ndarray = field(default=None)
    sumw2: np.ndarray = field(default=None)
    underflow: float = 0.0
    overflow: float = 0.0
    entries: int = 0

    def __post_init__(self):
        self.edges = np.asarray(self.edges, dtype=float)
        if self.edges.ndim != 1 or self.edges.size < 2 or np.any(np.diff(self.edges) <= 0.0):
            raise ValueError("Histogram edges must be 1D, with at least two strictly increasing values.")
        nb = self.edges.size - 1
        self.sumw = np.zeros(nb) if self.sumw is None else np.asarray(self.sumw, dtype=float).copy()
        self.sumw2 = np.zeros(nb) if self.sumw2 is None else np.asarray(self.sumw2, dtype=float).copy()
        if self.sumw.shape != (nb,) or self.sumw2.shape != (nb,):
            raise ValueError("sumw/sumw2 must have one entry per bin.")

    # ---- geometry ----

    @property
    def nbins(self) -> int:
        return self.edges.size - 1

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[:-1] + self.edges[1:])

    @property
    def widths(self) -> np.ndarray:
        return np.diff(self.edges)

    def find(self, x: float) -> Optional[int]:
        """Index of the bin holding x, or None for under/overflow."""
        i = int(np.searchsorted(self.edges, x, side="right")) - 1
        if i < 0 or i >= self.nbins:
            return None
        return i

    # ---- filling ----

    def fill(self, x: float, weight: float = 1.0) -> None:
        w = float(weight)
        self.entries += 1
        i = self.find(x)
        if i is None:
            if x < self.edges[0]:
                self.underflow += w
            else:
                self.overflow += w
            return
        self.sumw[i] += w
        self.sumw2[i] += w * w

    # ---- derived ----

    def integral(self, include_overflow: bool = False) -> float:
        total = float(self.sumw.sum())
        if include_overflow:
            total += self.underflow + self.overflow
        return total

    def errors(self) -> np.ndarray:
        return np.sqrt(self.sumw2)

    def density(self) -> np.ndarray:
        """sumw divided by bin width, e.g. dN/dΔφ."""
        return self.sumw / self.widths

    # ---- arithmetic ----

    def scale_w(self, factor: float) -> None:
        f = float(factor)
        if not np.isfinite(f):
            raise ValueError(f"Refusing to scale histogram '{self.name}' by non-finite factor {f}.")
        self.sumw *= f
        self.sumw2 *= f * f
        self.underflow *= f
        self.overflow *= f

    def same_binning(self, other: "Histo1D") -> bool:
        return self.edges.shape == other.edges.shape and bool(np.allclose(self.edges, other.edges))

    def __iadd__(self, other: "Histo1D") -> "Histo1D":
        if not self.same_binning(other):
            raise BinningMismatchError(f"Cannot add histograms '{self.name}' and '{other.name}': edges differ.")
        self.sumw += other.sumw
        self.sumw2 += other.sumw2
        self.underflow += other.underflow
        self.overflow += other.overflow
        self.entries += other.entries
        return self

    def __add__(self, other: "Histo1D") -> "Histo1D":
        out = self.copy()
        out += other
        return out

    def copy(self) -> "Histo1D":
        return Histo1D(
            edges=self.edges.copy(),
            name=self.name,
            sumw=self.sumw,
            sumw2=self.sumw2,
            underflow=self.underflow,
            overflow=self.overflow,
            entries=self.entries,
        )

    def to_arrays(self) -> dict:
        return {
            "edges": self.edges.copy(),
            "sumw": self.sumw.copy(),
            "sumw2": self.sumw2.copy(),
            "underflow": np.array(self.underflow),
            "overflow": np.array(self.overflow),
            "entries": np.array(self.entries),
        }
