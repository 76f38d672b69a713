#!/usr/bin/env python3
"""Coupling of the vehicle speed to the road texture and the trail flow"""

LANE_METERS = 10.0    # m of road per texture repeat


def speed_ms(speed_kph: float) -> float:
    return speed_kph / 3.6


def flow_distance(speed_kph: float, delta_time: float, time_scale: float = 1.) -> float:
    """distance [m] the vehicle covers during one frame"""
    return speed_ms(speed_kph) * delta_time * time_scale


def road_offset_delta(speed_kph: float, delta_time: float, time_scale: float = 1.,
                      lane_meters: float = LANE_METERS) -> float:
    """Texture offset increment for one frame.

    One unit of texture offset moves the road by one texture repeat, so the
    distance covered is divided by the length of road a repeat represents.
    The caller accumulates the increments, the texture wraps on its own.
    """
    return flow_distance(speed_kph, delta_time, time_scale) / lane_meters
