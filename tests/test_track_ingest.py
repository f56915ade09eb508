"""
Tests for track reduction: distance, climbing, averages, HR zones.
"""

from datetime import datetime, timedelta, timezone

import pytest

from track_ingest import (
    EMPTY_ACTIVITY_ID,
    classify_zone,
    haversine_km,
    reference_max_hr,
    summarize_track,
    zone_seconds,
)

START = datetime(2024, 1, 1, 8, 0, 0)

# 1 km along a meridian: 1 / (6371 · π / 180) degrees of latitude
ONE_KM_LAT = 0.0089932


def _meridian_km(make_point, n_seconds=60, hr=160.0, power=200.0):
    step = ONE_KM_LAT / n_seconds
    return [
        make_point(START + timedelta(seconds=i), lat=i * step, heart_rate=hr, power=power)
        for i in range(n_seconds + 1)
    ]


class TestGeometry:
    def test_one_degree_of_latitude(self):
        assert abs(haversine_km(0, 0, 1, 0) - 111.195) < 0.01

    def test_same_point_is_zero(self):
        assert haversine_km(49.2, 16.6, 49.2, 16.6) == 0.0


class TestZones:
    def test_reference_max_hr_is_floored(self):
        assert reference_max_hr(160) == 185
        assert reference_max_hr(200) == 200

    @pytest.mark.parametrize("hr,zone", [
        (100, "z1"),   # 0.54
        (111, "z2"),   # exactly 0.60 → next zone
        (140, "z3"),   # 0.757
        (160, "z4"),   # 0.865
        (170, "z5"),   # 0.919
    ])
    def test_classify_zone(self, hr, zone):
        assert classify_zone(hr, 185) == zone

    def test_missing_or_zero_hr_has_no_zone(self):
        assert classify_zone(None, 185) == ""
        assert classify_zone(0, 185) == ""

    def test_pause_gap_is_not_attributed(self, make_point):
        points = [
            make_point(START, heart_rate=150),
            make_point(START + timedelta(seconds=5), heart_rate=150),
            make_point(START + timedelta(seconds=65), heart_rate=150),
        ]
        seconds = zone_seconds(points, 185)
        assert sum(seconds.values()) == 5

    def test_interval_uses_first_point_hr(self, make_point):
        points = [
            make_point(START, heart_rate=100),
            make_point(START + timedelta(seconds=10), heart_rate=180),
        ]
        assert dict(zone_seconds(points, 185)) == {"z1": 10}


class TestSummarizeTrack:
    def test_empty_track(self):
        summary = summarize_track([])
        assert summary.id == EMPTY_ACTIVITY_ID
        assert summary.date is None and summary.timestamp is None
        assert summary.distance_km == 0 and summary.duration_minutes == 0
        assert summary.avg_hr == 0 and summary.efficiency == 0
        assert summary.zones.total == 0

    def test_single_point(self, make_point):
        summary = summarize_track([make_point(START, heart_rate=140, power=180)])
        assert summary.duration_minutes == 0
        assert summary.distance_km == 0
        assert summary.elevation_gain_m == 0
        assert summary.avg_hr == 140
        assert summary.zones.total == 0

    def test_one_kilometre_steady_effort(self, make_point):
        summary = summarize_track(_meridian_km(make_point))
        assert abs(summary.distance_km - 1.0) < 0.01
        assert summary.duration_minutes == 1
        assert summary.avg_hr == 160 and summary.max_hr == 160
        assert summary.avg_power == 200
        assert summary.efficiency == 1.25
        assert summary.zones.as_dict() == {"z1": 0, "z2": 0, "z3": 0, "z4": 1, "z5": 0}

    def test_elevation_gain_counts_climbs_only(self, make_point):
        elevations = [100, 105, 103, 110, 90]
        points = [make_point(START + timedelta(seconds=i), ele=e) for i, e in enumerate(elevations)]
        assert summarize_track(points).elevation_gain_m == 12

    def test_half_minute_rounds_up(self, make_point):
        points = [make_point(START + timedelta(seconds=i), heart_rate=100) for i in range(151)]
        assert summarize_track(points).zones.z1 == 3   # 150 s

    def test_half_average_rounds_up(self, make_point):
        points = [
            make_point(START, heart_rate=150, power=200),
            make_point(START + timedelta(seconds=1), heart_rate=151, power=201),
        ]
        summary = summarize_track(points)
        assert summary.avg_hr == 151
        assert summary.avg_power == 201

    def test_averages_skip_missing_samples(self, make_point):
        points = [
            make_point(START, heart_rate=100, cadence=80),
            make_point(START + timedelta(seconds=1)),
            make_point(START + timedelta(seconds=2), heart_rate=200, cadence=90),
        ]
        summary = summarize_track(points)
        assert summary.avg_hr == 150
        assert summary.max_hr == 200
        assert summary.avg_cadence == 85
        assert summary.avg_power == 0 and summary.max_power == 0

    def test_efficiency_zero_without_hr(self, make_point):
        points = [make_point(START + timedelta(seconds=i), power=250) for i in range(3)]
        summary = summarize_track(points)
        assert summary.avg_power == 250
        assert summary.efficiency == 0

    def test_duration_truncates_to_whole_minutes(self, make_point):
        points = [make_point(START), make_point(START + timedelta(seconds=119))]
        assert summarize_track(points).duration_minutes == 1

    def test_identity_from_first_timestamp(self, make_point):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        summary = summarize_track([make_point(start), make_point(start + timedelta(seconds=1))])
        assert summary.id == "act_1704067200000"
        assert summary.date == "2024-01-01"
        assert summary.timestamp == start

    def test_naive_timestamps_are_read_as_utc(self, make_point):
        summary = summarize_track([make_point(datetime(2024, 1, 1))])
        assert summary.id == "act_1704067200000"

    def test_deterministic(self, make_point):
        points = _meridian_km(make_point)
        assert summarize_track(points) == summarize_track(points)

    def test_points_are_kept(self, make_point):
        points = _meridian_km(make_point)
        assert summarize_track(points).points == tuple(points)
