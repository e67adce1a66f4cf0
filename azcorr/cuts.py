"""azcorr/cuts.py
Author: Sabin Thapa <sthapa3@kent.edu>

Declarative particle cuts.

A Cut wraps a pure predicate over a Particle together with a readable
label. Cuts compose into an expression tree with the usual operators:

    trig = pid_in(22) & abseta_lt(1.0) & (pt_in(5, 7) | pt_in(7, 9))

- ``a & b``  both must pass
- ``a | b``  either passes
- ``~a``     negation

Composition never evaluates anything; the tree is only walked when the
cut is called on a particle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Tuple

from .event import Particle

Predicate = Callable[[Particle], bool]


@dataclass(frozen=True)
class Cut:
    predicate: Predicate
    label: str
    op: str = "leaf"  # "leaf" | "and" | "or" | "not"
    children: Tuple["Cut", ...] = ()

    def __call__(self, p: Particle) -> bool:
        return bool(self.predicate(p))

    def __and__(self, other: "Cut") -> "Cut":
        return all_of(self, other)

    def __or__(self, other: "Cut") -> "Cut":
        return any_of(self, other)

    def __invert__(self) -> "Cut":
        inner = self
        return Cut(lambda p: not inner(p), f"!({inner.label})", op="not", children=(inner,))

    def __str__(self) -> str:
        return self.label


def _flatten(op: str, cuts: Iterable[Cut]) -> Tuple[Cut, ...]:
    out = []
    for c in cuts:
        if c.op == op:
            out.extend(c.children)
        else:
            out.append(c)
    return tuple(out)


def all_of(*cuts: Cut) -> Cut:
    """AND of the given cuts (the empty AND accepts everything)."""
    kids = _flatten("and", cuts)
    if len(kids) == 1:
        return kids[0]
    label = " && ".join(f"({c.label})" if c.op == "or" else c.label for c in kids) or "true"
    return Cut(lambda p: all(c(p) for c in kids), label, op="and", children=kids)


def any_of(*cuts: Cut) -> Cut:
    """OR of the given cuts (the empty OR rejects everything)."""
    kids = _flatten("or", cuts)
    if len(kids) == 1:
        return kids[0]
    label = " || ".join(c.label for c in kids) or "false"
    return Cut(lambda p: any(c(p) for c in kids), label, op="or", children=kids)


# ---- leaf factories ----

ACCEPT_ALL = Cut(lambda p: True, "true")


def pid_in(*pids: int) -> Cut:
    codes = frozenset(int(x) for x in pids)
    shown = ",".join(str(x) for x in sorted(codes))
    return Cut(lambda p: p.pid in codes, f"pid in {{{shown}}}")


def abspid_in(*pids: int) -> Cut:
    codes = frozenset(abs(int(x)) for x in pids)
    shown = ",".join(str(x) for x in sorted(codes))
    return Cut(lambda p: abs(p.pid) in codes, f"|pid| in {{{shown}}}")


def abseta_lt(eta_max: float) -> Cut:
    eta_max = float(eta_max)
    return Cut(lambda p: p.abseta < eta_max, f"|eta| < {eta_max:g}")


def pt_in(lo: float, hi: float) -> Cut:
    """Half-open band lo <= pt < hi."""
    lo, hi = float(lo), float(hi)
    return Cut(lambda p: lo <= p.pt < hi, f"{lo:g} <= pt < {hi:g}")


def pt_between(lo: float, hi: float) -> Cut:
    """Open interval lo < pt < hi."""
    lo, hi = float(lo), float(hi)
    return Cut(lambda p: lo < p.pt < hi, f"{lo:g} < pt < {hi:g}")


def charged() -> Cut:
    return Cut(lambda p: p.is_charged, "charged")

