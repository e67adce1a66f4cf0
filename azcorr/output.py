"""azcorr/output.py
Author: Sabin Thapa <sthapa3@kent.edu>

Hand-off of finished distributions.

Each distribution is identified by an OutputKey (centrality bin index,
observable kind, sub-index for related plots of the same kind: 0 for all
trigger bands together, i + 1 for trigger band i). Sinks
receive the histogram together with the validity flag of its bin; an
invalid bin is still written, unscaled, so that downstream code can see
what was dropped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

import numpy as np

from .accumulator import ALL_BANDS, band_sub_index
from .histogram import Histo1D
from .logs import get_logger
from .normalize import AnalysisResult

log = get_logger("output")


@dataclass(frozen=True, order=True)
class OutputKey:
    bin_index: int
    kind: str
    sub_index: int = 0

    @property
    def path(self) -> str:
        return f"cent{self.bin_index}/{self.kind}/{self.sub_index}"


class OutputSink(ABC):
    @abstractmethod
    def write(self, key: OutputKey, hist: Histo1D, valid: bool) -> None:
        ...

    def close(self) -> None:
        pass


class MemorySink(OutputSink):
    """Keeps copies of everything written, keyed by OutputKey."""

    def __init__(self):
        self.items: Dict[OutputKey, Tuple[Histo1D, bool]] = {}

    def write(self, key: OutputKey, hist: Histo1D, valid: bool) -> None:
        self.items[key] = (hist.copy(), bool(valid))

    def __getitem__(self, key: OutputKey) -> Histo1D:
        return self.items[key][0]

    def __len__(self) -> int:
        return len(self.items)


class NpzSink(OutputSink):
    """Collects arrays and writes a single compressed .npz on close()."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._arrays: Dict[str, np.ndarray] = {}

    def write(self, key: OutputKey, hist: Histo1D, valid: bool) -> None:
        for name, arr in hist.to_arrays().items():
            self._arrays[f"{key.path}/{name}"] = arr
        self._arrays[f"{key.path}/valid"] = np.array(bool(valid))

    def close(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(self.path, **self._arrays)
        log.info("Wrote %d arrays to %s", len(self._arrays), self.path)


def publish(result: AnalysisResult, sink: OutputSink) -> int:
    """Send every histogram of every bin to ``sink``; returns the count written.

    The all-bands histograms go out with sub-index 0, those of trigger
    band i with sub-index i + 1.
    """
    n = 0
    for idx, r in sorted(result.bins.items()):
        for kind, hist in r.histograms.items():
            sink.write(OutputKey(idx, kind, ALL_BANDS), hist, r.valid)
            n += 1
        for band, hists in sorted(r.bands.items()):
            for kind, hist in hists.items():
                sink.write(OutputKey(idx, kind, band_sub_index(band)), hist, r.valid)
                n += 1
    sink.close()
    return n
