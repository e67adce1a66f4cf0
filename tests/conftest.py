"""
Pytest fixtures for the azcorr test suite.
"""

import pytest

from azcorr.config import AnalysisConfig, TriggerBand, make_centrality_bins, PHENIX_2009_CONFIG
from azcorr.event import Particle, make_event
from azcorr.physics import PID_GAMMA, PID_PI0, PID_PIPLUS


def gamma(pt, phi=0.0, eta=0.0):
    return Particle(pt=pt, eta=eta, phi=phi, pid=PID_GAMMA)


def pi0(pt, phi=0.0, eta=0.0):
    return Particle(pt=pt, eta=eta, phi=phi, pid=PID_PI0)


def hadron(pt, phi=0.0, eta=0.0, pid=PID_PIPLUS):
    return Particle(pt=pt, eta=eta, phi=phi, pid=pid)


@pytest.fixture
def phenix_cfg():
    return PHENIX_2009_CONFIG


@pytest.fixture
def cfg():
    """Three bins, photon bands of the reference analysis, and a wide pi0 band."""
    return AnalysisConfig(
        centrality_bins=make_centrality_bins([(0, 20), (20, 40), (40, 60)]),
        trigger_bands=(
            TriggerBand(PID_GAMMA, 5.0, 7.0),
            TriggerBand(PID_GAMMA, 7.0, 9.0),
            TriggerBand(PID_GAMMA, 9.0, 12.0),
            TriggerBand(PID_GAMMA, 12.0, 15.0),
            TriggerBand(PID_PI0, 5.0, 20.0),
        ),
        warmup_event_count=0,
    )


@pytest.fixture
def single_pair_event():
    """One pi0 trigger (10 GeV, phi=1.0) and one charged hadron (2 GeV, phi=4.5)."""
    return make_event([pi0(10.0, phi=1.0), hadron(2.0, phi=4.5)], event_number=1)
