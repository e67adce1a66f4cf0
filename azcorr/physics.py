"""azcorr/physics.py
Author: Sabin Thapa <sthapa3@kent.edu>

Small, stable physics utilities used across the analysis.
Keep this file boring and well-tested.

Conventions:
- momenta: GeV
- angles: radians
- particle identity: PDG Monte Carlo numbering
"""

from __future__ import annotations

import math

import numpy as np

TWO_PI = 2.0 * np.pi

# --- PDG codes ---
PID_GAMMA = 22
PID_PI0 = 111
PID_PIPLUS = 211
PID_KPLUS = 321
PID_PROTON = 2212

# Three times the electric charge of the particle (not the antiparticle).
# Only long-lived species that reach a final state are listed; anything
# else is treated as neutral.
_CHARGE3: dict[int, int] = {
    11: -3,    # e-
    13: -3,    # mu-
    15: -3,    # tau-
    211: +3,   # pi+
    321: +3,   # K+
    411: +3,   # D+
    431: +3,   # Ds+
    521: +3,   # B+
    2212: +3,  # p
    3112: -3,  # Sigma-
    3222: +3,  # Sigma+
    3312: -3,  # Xi-
    3334: -3,  # Omega-
}


def charge3(pid: int) -> int:
    """Three times the charge of PDG code ``pid``; antiparticles flip sign."""
    pid = int(pid)
    q3 = _CHARGE3.get(abs(pid), 0)
    return -q3 if pid < 0 else q3


def is_charged(pid: int) -> bool:
    return charge3(pid) != 0


def wrap_delta_phi(dphi: float) -> float:
    r"""Shift Δφ up by the smallest multiple of 2π that makes it non-negative.

    Only the lower edge is enforced: inputs are assumed to be below 2π
    already, and a value $\geq 2\pi$ is returned unchanged. ``math.fmod``
    is exact, so arbitrarily large negative inputs land in $[0, 2\pi]$.
    """
    dphi = float(dphi)
    if dphi < 0.0:
        dphi = math.fmod(dphi, TWO_PI)
        if dphi < 0.0:
            dphi += TWO_PI
    return dphi


def z_t(pt_assoc: float, pt_trigger: float) -> float:
    r"""Momentum fraction $z_T = p_T^{assoc} / p_T^{trig}$."""
    return float(pt_assoc) / float(pt_trigger)
