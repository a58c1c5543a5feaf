"""
Unit tests for envfusion/core/correlation.py
"""
from datetime import timedelta

import pytest

from envfusion.core.correlation import (
    CAUSAL_RULES,
    CausalRule,
    CorrelationEngine,
    spatial_confidence,
    temporal_confidence,
)
from envfusion.core.fusion import FusionEngine
from envfusion.core.models import Category, CorrelationType, Location, NormalizedRecord

from conftest import NOW, TARGET

NEARBY = Location(lat=45.1, lon=-122.0)  # ~11 km
OUTSIDE_CUTOFF = Location(lat=45.6, lon=-122.0)  # ~67 km


def rec(source_id, observed_at=NOW, coordinates=TARGET, category=Category.WEATHER, **fields):
    return NormalizedRecord(
        category=category,
        source_id=source_id,
        fields=fields,
        observed_at=observed_at,
        coordinates=coordinates,
    )


@pytest.fixture
def fuse(fake_registry):
    engine = FusionEngine(registry=fake_registry, default_radius_km=100.0)

    def _fuse(*records):
        return engine.fuse(list(records), TARGET)
    return _fuse


@pytest.fixture
def engine():
    return CorrelationEngine(
        spatial_cutoff_km=50.0,
        temporal_decay_seconds=3600.0,
        agreement_threshold=0.5,
    )


# =============================================================================
# Confidence curves
# =============================================================================


@pytest.mark.unit
def test_spatial_confidence_decreases_with_distance():
    values = [spatial_confidence(d, 100.0) for d in (0, 10, 25, 50, 99)]
    assert values[0] == 1.0
    assert all(a > b for a, b in zip(values, values[1:]))
    assert spatial_confidence(100.0, 100.0) == 0.0
    assert spatial_confidence(250.0, 100.0) == 0.0


@pytest.mark.unit
def test_temporal_confidence_bounds():
    assert temporal_confidence(0, 3600) == 1.0
    assert temporal_confidence(1800, 3600) == pytest.approx(0.5)
    assert temporal_confidence(7200, 3600) == 0.0
    assert temporal_confidence(10, 0) == 0.0


# =============================================================================
# Passes
# =============================================================================


class TestSpatial:

    @pytest.mark.unit
    def test_only_sources_within_cutoff(self, engine, fuse):
        fused = fuse(
            rec("alpha", temperature=10.0),
            rec("beta", coordinates=NEARBY, temperature=10.0),
            rec("gamma", coordinates=OUTSIDE_CUTOFF, temperature=10.0),
        )
        spatial = engine.spatial(fused)

        assert [c.subjects for c in spatial] == [("alpha", "target"), ("beta", "target")]
        assert spatial[0].confidence == 1.0
        assert 0.85 < spatial[1].confidence < 0.9


class TestTemporal:

    @pytest.mark.unit
    def test_single_source_has_no_temporal_entry(self, engine, fuse):
        assert engine.temporal(fuse(rec("alpha", temperature=10.0))) == []

    @pytest.mark.unit
    def test_aligned_sources(self, engine, fuse):
        fused = fuse(
            rec("alpha", observed_at=NOW - timedelta(minutes=15), temperature=10.0),
            rec("beta", temperature=10.0),
        )
        [correlation] = engine.temporal(fused)

        assert correlation.type == CorrelationType.TEMPORAL
        assert correlation.subjects == ("alpha", "beta")
        assert correlation.confidence == pytest.approx(0.75)

    @pytest.mark.unit
    def test_spread_beyond_decay_yields_nothing(self, engine, fuse):
        fused = fuse(
            rec("alpha", observed_at=NOW - timedelta(hours=2), temperature=10.0),
            rec("beta", temperature=10.0),
        )
        assert engine.temporal(fused) == []


class TestCausal:

    @pytest.mark.unit
    def test_rule_table_is_enumerable(self):
        names = [rule.name for rule in CAUSAL_RULES]
        assert names == ["HIGH_OCEAN_TEMP", "STRONG_WINDS", "LOW_PRESSURE"]
        assert all(0.0 < rule.confidence <= 1.0 for rule in CAUSAL_RULES)

    @pytest.mark.unit
    def test_warm_ocean_heavy_rain_rule(self):
        rule = CAUSAL_RULES[0]
        assert rule.matches({
            "ocean": {"surface_temperature": 28.0},
            "weather": {"precipitation_intensity": "HEAVY"},
        })
        assert not rule.matches({
            "ocean": {"surface_temperature": 20.0},
            "weather": {"precipitation_intensity": "HEAVY"},
        })
        assert not rule.matches({"weather": {"precipitation_intensity": "HEAVY"}})

    @pytest.mark.unit
    def test_strong_winds_high_seas_from_ocean_record(self, engine, fuse):
        fused = fuse(
            rec("buoy", category=Category.OCEAN, wave_height=5.0, wind_speed=20.0),
        )
        causal = engine.causal(fused)

        assert [c.subjects for c in causal] == [("STRONG_WINDS", "HIGH_SEAS")]
        assert causal[0].confidence == 0.6
        assert causal[0].rationale

    @pytest.mark.unit
    def test_low_pressure_rule(self, engine, fuse):
        fused = fuse(rec(
            "alpha", temperature=15.0, pressure=990.0, precipitation_intensity="HEAVY"
        ))
        assert [c.subjects[0] for c in engine.causal(fused)] == ["LOW_PRESSURE"]

    @pytest.mark.unit
    def test_custom_rules_and_broken_predicate(self, fuse):
        rules = [
            CausalRule("ALWAYS", "A", "B", lambda g: True, 0.9, "always"),
            CausalRule("BROKEN", "C", "D", lambda g: g["missing"]["x"], 0.9, "never"),
        ]
        engine = CorrelationEngine(rules=rules)
        causal = engine.causal(fuse(rec("alpha", temperature=1.0)))
        assert [c.subjects for c in causal] == [("A", "B")]


class TestCrossSource:

    @pytest.mark.unit
    def test_agreement_over_overlapping_fields(self, engine, fuse):
        fused = fuse(
            rec("alpha", temperature=20.0, humidity=50.0),
            rec("beta", temperature=22.0, pressure=1010.0),
        )
        score, compared = engine.agreement(fused, "alpha", "beta")

        assert compared == ["temperature"]
        assert score == pytest.approx(0.9)

    @pytest.mark.unit
    def test_circular_difference_for_wind_direction(self, engine, fuse):
        fused = fuse(
            rec("alpha", temperature=20.0, wind_direction=350.0),
            rec("beta", temperature=20.0, wind_direction=10.0),
        )
        score, _ = engine.agreement(fused, "alpha", "beta")
        # temperature 1.0, direction 1 - 20/180
        assert score == pytest.approx((1.0 + (1 - 20 / 180)) / 2)

    @pytest.mark.unit
    def test_disagreement_below_threshold_is_dropped(self, engine, fuse):
        fused = fuse(
            rec("alpha", temperature=0.0),
            rec("beta", temperature=15.0),
        )
        assert engine.cross_source(fused) == []

    @pytest.mark.unit
    def test_pairs_are_ordered(self, engine, fuse):
        fused = fuse(
            rec("gamma", temperature=20.0),
            rec("alpha", temperature=20.5),
            rec("beta", temperature=21.0),
        )
        pairs = [c.subjects for c in engine.cross_source(fused)]
        assert pairs == [("alpha", "beta"), ("alpha", "gamma"), ("beta", "gamma")]


@pytest.mark.unit
def test_correlate_is_order_independent(engine, fuse):
    records = [
        rec("alpha", temperature=20.0),
        rec("beta", coordinates=NEARBY, observed_at=NOW - timedelta(minutes=5), temperature=21.0),
        rec("gamma", temperature=22.0),
    ]
    forward = engine.correlate(fuse(*records))
    backward = engine.correlate(fuse(*reversed(records)))

    assert forward == backward
    types = {c.type for c in forward}
    assert types == {CorrelationType.SPATIAL, CorrelationType.TEMPORAL, CorrelationType.CROSS_SOURCE}
