"""
Unit tests for per-vehicle baseline estimation.
"""

from math import isclose, sqrt

from src.anomaly.baselines import BaselineBuilder, BaselineStore, compute_metric_stats
from src.core.config import BaselineConfig
from src.data.schema import Vehicle


def test_metric_stats_population_variance():
    stats = compute_metric_stats([70.0, 80.0, 90.0], std_floor=1.0, default=80.0)

    assert isclose(stats.mean, 80.0)
    assert isclose(stats.std_dev, sqrt(200.0 / 3.0))
    assert stats.min == 70.0
    assert stats.max == 90.0


def test_metric_stats_identical_samples_hit_floor():
    stats = compute_metric_stats([8.0] * 6, std_floor=1.0, default=10.0)

    assert stats.mean == 8.0
    assert stats.std_dev == 1.0


def test_metric_stats_empty_uses_synthetic_sample():
    stats = compute_metric_stats([], std_floor=1.0, default=50.0)

    assert stats.mean == 50.0
    assert stats.std_dev == 1.0
    assert stats.min == stats.max == 50.0


def test_baseline_includes_current_reading(vehicle_factory, trip_factory, now):
    vehicle = vehicle_factory(
        sensors={"engine_temp": 80.0},
        trips=trip_factory(1, engine_temperature=70.0) + trip_factory(1, engine_temperature=90.0),
    )

    baseline = BaselineBuilder(settings=BaselineConfig()).build(vehicle, vehicle.trips, now)

    assert isclose(baseline.engine_temp.mean, 80.0)
    assert isclose(baseline.engine_temp.std_dev, sqrt(200.0 / 3.0))
    assert baseline.data_points == 3
    assert baseline.last_updated == now


def test_identical_history_never_yields_zero_std(vehicle_factory, trip_factory, now):
    vehicle = vehicle_factory(
        fuel_efficiency=9.0,
        sensors={"engine_temp": 85.0},
        trips=trip_factory(12, engine_temperature=85.0, fuel_efficiency=9.0, average_speed=40.0, idle_time=5.0),
    )

    baseline = BaselineBuilder(settings=BaselineConfig()).build(vehicle, vehicle.trips, now)

    for stats in (baseline.engine_temp, baseline.fuel_efficiency, baseline.avg_speed, baseline.idle_time):
        assert stats.std_dev >= 1.0


def test_defaults_for_vehicle_without_data(now):
    vehicle = Vehicle(id="bare")

    baseline = BaselineBuilder(settings=BaselineConfig()).build(vehicle, [], now)

    assert baseline.engine_temp.mean == 80.0
    assert baseline.fuel_efficiency.mean == 8.0
    assert baseline.avg_speed.mean == 50.0
    assert baseline.idle_time.mean == 10.0
    assert (baseline.oil_pressure.mean, baseline.oil_pressure.std_dev) == (40.0, 5.0)
    assert (baseline.oil_pressure.min, baseline.oil_pressure.max) == (30.0, 60.0)
    assert (baseline.battery_voltage.mean, baseline.battery_voltage.std_dev) == (12.6, 0.5)
    assert (baseline.battery_voltage.min, baseline.battery_voltage.max) == (11.5, 14.5)
    assert baseline.data_points == 1


def test_fixed_sensors_centre_on_current_reading(vehicle_factory, now):
    vehicle = vehicle_factory(sensors={"oil_pressure": 35.0, "battery_voltage": 13.1})

    baseline = BaselineBuilder(settings=BaselineConfig()).build(vehicle, vehicle.trips, now)

    assert baseline.oil_pressure.mean == 35.0
    assert baseline.oil_pressure.std_dev == 5.0
    assert baseline.battery_voltage.mean == 13.1
    assert baseline.battery_voltage.max == 14.5


def test_missing_trip_fields_are_skipped(vehicle_factory, trip_factory, now):
    trips = trip_factory(3, engine_temperature=90.0) + trip_factory(2, idle_time=30.0)
    vehicle = vehicle_factory(sensors={"engine_temp": 90.0}, trips=trips)

    baseline = BaselineBuilder(settings=BaselineConfig()).build(vehicle, trips, now)

    assert baseline.engine_temp.mean == 90.0
    assert baseline.avg_speed.mean == 50.0  # no speed samples at all
    assert baseline.idle_time.mean == 30.0
    assert baseline.data_points == 6


def test_build_is_idempotent(vehicle_factory, now):
    vehicle = vehicle_factory()
    builder = BaselineBuilder(settings=BaselineConfig())

    first = builder.build(vehicle, vehicle.trips, now)
    second = builder.build(vehicle, vehicle.trips, now)

    assert first == second


def test_store_upsert_replaces(vehicle_factory, trip_factory, now):
    store = BaselineStore()
    builder = BaselineBuilder(settings=BaselineConfig())
    vehicle = vehicle_factory()

    store.upsert(builder.build(vehicle, vehicle.trips, now))
    store.upsert(builder.build(vehicle, trip_factory(2, engine_temperature=95.0), now))

    assert len(store) == 1
    assert "veh-1" in store
    assert store.get("veh-1").data_points == 3
    assert store.get("unknown") is None
