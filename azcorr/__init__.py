"""Centrality-binned two-particle azimuthal correlations.

Author: Sabin Thapa <sthapa3@kent.edu>

This small package turns a stream of heavy-ion collision events into
per-trigger Δφ yields and the IAA / IAAz ratio observables, binned in
collision centrality:

- particle / event value types and declarative kinematic cuts
- impact-parameter centrality with a warm-up calibration window
- trigger/associated pair accumulation into weighted histograms
- per-trigger normalization and ratios to a p+p reference

Momenta are in GeV, angles in radians, impact parameters in fm.
"""

from .config import AnalysisConfig, CentralityBin, TriggerBand, PHENIX_2009_CONFIG, load_config
from .event import Particle, Event
from .centrality import ImpactParameterCentrality, UNCALIBRATED
from .pipeline import CorrelationPipeline

__all__ = [
    "AnalysisConfig",
    "CentralityBin",
    "TriggerBand",
    "PHENIX_2009_CONFIG",
    "load_config",
    "Particle",
    "Event",
    "ImpactParameterCentrality",
    "UNCALIBRATED",
    "CorrelationPipeline",
]
