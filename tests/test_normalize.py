"""
Tests for per-trigger normalization and ratios to a reference.
"""

import logging

import numpy as np
import pytest

from azcorr.accumulator import IAA, IAAZ, YIELD, CorrelationAccumulator
from azcorr.config import AnalysisConfig, TriggerBand, make_centrality_bins
from azcorr.errors import AlreadyFinalizedError, BinningMismatchError
from azcorr.event import make_event
from azcorr.histogram import Histo1D
from azcorr.normalize import Normalizer, divide, finalize, ratio_to_reference
from azcorr.physics import PID_GAMMA

from conftest import gamma, hadron


def _filled(cfg):
    acc = CorrelationAccumulator(cfg)
    # bin 0: 2 triggers, 3 pairs
    acc.add_event(make_event([gamma(10.0, phi=0.5), gamma(6.0, phi=1.0), hadron(4.0, phi=2.0), hadron(8.0, phi=3.0)]), 5.0)
    # bin 1: 1 trigger, 1 pair
    acc.add_event(make_event([gamma(8.0, phi=3.0), hadron(2.0, phi=0.1)]), 25.0)
    # bin 2: accepted event, no trigger
    acc.add_event(make_event([hadron(3.0)]), 50.0)
    return acc


class TestScaling:

    def test_single_pair_becomes_unit_yield(self, cfg, single_pair_event):
        acc = CorrelationAccumulator(cfg)
        acc.add_event(single_pair_event, 10.0)
        result = finalize(acc)
        r = result[0]
        assert r.valid
        assert r.scale == 1.0
        assert r[YIELD].sumw[r[YIELD].find(3.5)] == 1.0

    def test_linear_scaling_by_inverse_trigger_count(self, cfg):
        acc = _filled(cfg)
        before = {k: acc.histogram(0, k).sumw.copy() for k in (YIELD, IAA, IAAZ)}
        result = Normalizer().finalize(acc)
        assert result[0].n_trigger == 2
        assert result[0].scale == 0.5
        for k, arr in before.items():
            np.testing.assert_allclose(result[0][k].sumw, arr * 0.5)
        assert result[0][YIELD].integral() == pytest.approx(1.5)
        assert result[1][YIELD].integral() == pytest.approx(1.0)

    def test_band_histograms_scaled_by_bin_trigger_count(self, cfg):
        acc = _filled(cfg)
        result = finalize(acc)
        r = result[0]
        # gamma 10 (band 2) has two softer hadrons, gamma 6 (band 0) one
        assert r.band_triggers[0] == 1
        assert r.band_triggers[2] == 1
        assert r.band(2, YIELD).integral() == pytest.approx(1.0)
        assert r.band(0, YIELD).integral() == pytest.approx(0.5)
        total = sum(r.band(i, YIELD).integral() for i in r.bands)
        assert total == pytest.approx(r[YIELD].integral())

    def test_refinalize_rejected(self, cfg):
        acc = _filled(cfg)
        finalize(acc)
        once = acc.histogram(0, YIELD).sumw.copy()
        with pytest.raises(AlreadyFinalizedError):
            finalize(acc)
        np.testing.assert_allclose(acc.histogram(0, YIELD).sumw, once)

    def test_pair_and_event_counts_carried(self, cfg):
        result = finalize(_filled(cfg))
        assert result[0].n_pairs == 3
        assert result[0].n_events == 1
        assert result.n_events_seen == 3


class TestZeroTriggerBin:

    def test_marked_invalid_and_unscaled(self, cfg):
        result = finalize(_filled(cfg))
        r = result[2]
        assert not r.valid
        assert r.scale is None
        assert r.n_events == 1
        assert result.invalid_bins == (2,)
        for k in (YIELD, IAA, IAAZ):
            assert np.all(np.isfinite(r[k].sumw))
            assert np.all(r[k].sumw == 0.0)

    def test_problem_reported(self, cfg, caplog):
        with caplog.at_level(logging.WARNING, logger="azcorr"):
            result = finalize(_filled(cfg))
        assert len(result.problems) == 1
        assert result.problems[0].bin_index == 2
        assert "0 triggers" in str(result.problems[0])
        assert any("Cannot normalize" in rec.message for rec in caplog.records)

    def test_bin_without_events(self, cfg):
        acc = CorrelationAccumulator(cfg)
        result = finalize(acc)
        assert result.invalid_bins == (0, 1, 2)
        assert all(p.n_events == 0 for p in result.problems)

    def test_summary_lines(self, cfg):
        lines = finalize(_filled(cfg)).summary_lines()
        assert lines[0].startswith("events seen: 3")
        assert "INVALID" in lines[3]
        assert "ok" in lines[1]


class TestDivide:

    def test_ratio_and_mask(self):
        num = Histo1D([0.0, 1.0, 2.0, 3.0])
        den = Histo1D([0.0, 1.0, 2.0, 3.0])
        num.fill(0.5, 2.0)
        num.fill(1.5, 1.0)
        den.fill(0.5, 4.0)
        r = divide(num, den)
        np.testing.assert_allclose(r.values, [0.5, 0.0, 0.0])
        assert list(r.mask) == [True, False, False]
        assert np.all(np.isfinite(r.errors))
        np.testing.assert_allclose(r.centers, [0.5, 1.5, 2.5])

    def test_error_propagation(self):
        num = Histo1D([0.0, 1.0])
        den = Histo1D([0.0, 1.0])
        for _ in range(4):
            num.fill(0.5)
        for _ in range(16):
            den.fill(0.5)
        r = divide(num, den)
        assert r.values[0] == pytest.approx(0.25)
        assert r.errors[0] == pytest.approx(0.25 * np.sqrt(1 / 4 + 1 / 16))

    def test_mismatch(self):
        with pytest.raises(BinningMismatchError):
            divide(Histo1D([0.0, 1.0]), Histo1D([0.0, 2.0]))


class TestRatioToReference:

    def _pp_reference(self):
        pp_cfg = AnalysisConfig(
            centrality_bins=make_centrality_bins([(0, 100)]),
            trigger_bands=(TriggerBand(PID_GAMMA, 5.0, 15.0),),
        )
        acc = CorrelationAccumulator(pp_cfg)
        acc.add_event(make_event([gamma(10.0, phi=0.5), hadron(4.0, phi=2.0), hadron(8.0, phi=3.0)]), 50.0)
        acc.add_event(make_event([gamma(8.0, phi=3.0), hadron(2.0, phi=0.1), hadron(4.5, phi=1.0)]), 50.0)
        return finalize(acc)

    def test_ratios_for_valid_bins_only(self, cfg):
        aa = finalize(_filled(cfg))
        pp = self._pp_reference()
        ratios = ratio_to_reference(aa, pp)
        assert set(ratios) == {(0, IAA), (0, IAAZ), (1, IAA), (1, IAAZ)}
        for r in ratios.values():
            assert np.all(np.isfinite(r.values))

    def test_ratio_values(self, cfg):
        aa = finalize(_filled(cfg))
        pp = self._pp_reference()
        r = ratio_to_reference(aa, pp, kinds=(IAA,))[(1, IAA)]
        # bin 1 of A+A: one pair at pT=2 per trigger; p+p: one pair at pT=2 per 2 triggers
        i = aa[1][IAA].find(2.0)
        assert r.values[i] == pytest.approx(1.0 / 0.5)

    def test_reference_without_valid_bin(self, cfg):
        aa = finalize(_filled(cfg))
        empty = finalize(CorrelationAccumulator(cfg))
        with pytest.raises(ValueError):
            ratio_to_reference(aa, empty)
