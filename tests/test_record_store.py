from datetime import datetime

import pytest

from health_models import FitnessMetric, UserProfile, ZoneDistribution
from record_store import RecordStore, load_csv

START = datetime(2024, 2, 10, 9, 15)


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path)


class TestActivities:
    def test_empty_store(self, store):
        assert store.get_all_activities() == []
        assert store.get_all_daily_logs() == []
        assert store.get_profile() is None

    def test_round_trip_without_points(self, store, make_activity, make_point):
        act = make_activity(
            START, duration_minutes=45, distance_km=10.25, avg_hr=148, efficiency=1.32,
            zones=ZoneDistribution(z2=30, z3=15), points=(make_point(START),),
        )
        store.save_activity(act)
        [loaded] = store.get_all_activities()
        assert loaded.id == act.id
        assert loaded.timestamp == START
        assert loaded.distance_km == 10.25
        assert loaded.zones == ZoneDistribution(z2=30, z3=15)
        assert loaded.points == ()

    def test_replace_by_id(self, store, make_activity):
        store.save_activity(make_activity(START, distance_km=5.0))
        store.save_activity(make_activity(START, distance_km=6.0))
        assert [a.distance_km for a in store.get_all_activities()] == [6.0]

    def test_empty_activity_not_stored(self, store, make_activity):
        store.save_activity(make_activity(START, id="act_empty", timestamp=None, date=None))
        assert not store.activities_csv.exists()

    def test_invalid_timestamp_rows_skipped(self, store, make_activity):
        store.save_activity(make_activity(START))
        text = store.activities_csv.read_text()
        store.activities_csv.write_text(text + "act_bad,2024-02-11,not-a-date,0,0,0,0,0,0,0,0,0,0,0,0,0,0\n")
        assert len(store.get_all_activities()) == 1


class TestDailyLogs:
    def test_merge_by_date(self, store, make_log):
        store.save_daily_logs([make_log(START, sleep_score=80, hrv=55, notes="easy day")])
        store.save_daily_logs([make_log(START, hrv=61, steps=12000)])
        [entry] = store.get_all_daily_logs()
        assert entry.sleep_score == 80
        assert entry.hrv == 61
        assert entry.steps == 12000
        assert entry.notes == "easy day"
        assert entry.weight is None


class TestProfileAndTimeline:
    def test_profile_round_trip(self, store):
        store.save_profile(UserProfile(birthdate="1991-04-02", name="Jana"))
        assert store.get_profile() == UserProfile(birthdate="1991-04-02", name="Jana")

    def test_fitness_timeline_written(self, store):
        path = store.save_fitness_timeline([
            FitnessMetric("2024-02-10", datetime(2024, 2, 10), 100, 2, 13, -11),
        ])
        assert path.read_text().splitlines() == ["date,daily_load,ctl,atl,tsb", "2024-02-10,100,2,13,-11"]


def test_load_csv_required(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_csv(tmp_path / "missing.csv", required=True)
    assert load_csv(tmp_path / "missing.csv").empty


def test_empty_activity_fixture(make_activity):
    empty = make_activity(None)
    assert empty.id == "act_empty"
    assert empty.timestamp is None and empty.date is None
