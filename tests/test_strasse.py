import pytest

from strasse import LANE_METERS, flow_distance, road_offset_delta, speed_ms


def test_speed_conversion():
    assert speed_ms(36.) == pytest.approx(10.)
    assert speed_ms(0.) == 0.


def test_flow_distance_scenario():
    assert flow_distance(50., 0.1, 1.0) == pytest.approx(1.389, abs=1e-3)


def test_flow_distance_scales_with_time_scale():
    assert flow_distance(50., 0.1, 0.) == 0.
    assert flow_distance(50., 0.1, 3.) == pytest.approx(3. * flow_distance(50., 0.1, 1.))


def test_road_offset_is_distance_per_texture_repeat():
    assert LANE_METERS == 10.
    assert road_offset_delta(50., 0.1, 1.0) == pytest.approx(flow_distance(50., 0.1, 1.0) / 10.)
    assert road_offset_delta(36., 1., 1., lane_meters=5.) == pytest.approx(2.)


def test_standing_vehicle_does_not_scroll():
    assert road_offset_delta(0., 0.5, 2.) == 0.
