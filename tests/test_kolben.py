import math

import numpy as np
import pytest

import kolben
from kolben import (
    CylinderSpec,
    PistonState,
    advance_crank_angle,
    angular_velocity,
    compute_accelerations,
    compute_offsets,
    compute_velocities,
    cylinder_specs,
    visual_rpm,
)


@pytest.mark.parametrize("rpm", [0., 1., 250., 999.9, 1000.])
def test_visual_rpm_is_identity_up_to_threshold(rpm):
    assert visual_rpm(rpm) == rpm


@pytest.mark.parametrize("rpm, expected", [(1001., 1000.1), (2000., 1100.), (8000., 1700.)])
def test_visual_rpm_compresses_above_threshold(rpm, expected):
    assert visual_rpm(rpm) == pytest.approx(expected)
    assert visual_rpm(rpm) == pytest.approx(1000. + (rpm - 1000.) * 0.1)


def test_visual_rpm_is_monotonic():
    values = [visual_rpm(rpm) for rpm in np.linspace(0., 8000., 801)]
    assert all(b >= a for a, b in zip(values, values[1:]))


def test_angular_velocity_at_1000_rpm():
    assert angular_velocity(1000.) == pytest.approx(104.72, abs=1e-2)
    assert advance_crank_angle(0., 1000., 0.1, 1.0) == pytest.approx(10.472, abs=1e-3)


def test_angular_velocity_at_8000_rpm_uses_visual_rpm():
    assert angular_velocity(8000.) == pytest.approx(1700. * 2. * math.pi / 60.)
    assert angular_velocity(8000.) == pytest.approx(178.02, abs=1e-2)


def test_crank_angle_scales_with_time_scale():
    assert advance_crank_angle(3., 1000., 0.1, 0.) == 3.
    slow = advance_crank_angle(0., 1000., 0.1, 0.5)
    fast = advance_crank_angle(0., 1000., 0.1, 2.0)
    assert fast == pytest.approx(4. * slow)


def test_crank_angle_is_not_wrapped():
    angle = 0.
    for _ in range(100):
        angle = advance_crank_angle(angle, 1000., 0.1)
    assert angle > 2. * math.pi * 100


@pytest.mark.parametrize("count", range(1, 13))
def test_phases_are_evenly_spread(count):
    cylinders = cylinder_specs(count)
    phases = [c.phase for c in cylinders]

    assert len(cylinders) == count
    assert phases[0] == 0.
    assert all(math.isclose(p, 2. * math.pi * i / count) for i, p in enumerate(phases))
    assert all(b > a for a, b in zip(phases, phases[1:]))
    assert [c.index for c in cylinders] == list(range(count))


def test_cylinders_are_centred_along_the_engine():
    cylinders = cylinder_specs(4)
    zs = [c.z for c in cylinders]
    assert sum(zs) == pytest.approx(0., abs=1e-12)
    assert np.allclose(np.diff(zs), kolben.CYLINDER_SPACING)
    assert np.array_equal(cylinders[2].resting_position, [0., 0., zs[2]])


def test_cylinder_spec_is_immutable():
    cylinder = CylinderSpec(index=0, phase=0.)
    with pytest.raises(AttributeError):
        cylinder.phase = 1.


def test_offsets_follow_sine_law():
    cylinders = cylinder_specs(6)
    for angle in [0., 0.3, 2., 17.5, 1234.5]:
        offsets = compute_offsets(angle, cylinders)
        expected = [0.5 * math.sin(angle + c.phase) for c in cylinders]
        assert offsets.shape == (6,)
        assert np.allclose(offsets, expected, rtol=0, atol=1e-12)


def test_offsets_are_bounded_by_half_stroke():
    cylinders = cylinder_specs(12)
    for angle in np.linspace(0., 40. * math.pi, 2001):
        assert np.all(np.abs(compute_offsets(angle, cylinders)) <= 0.5)


def test_offset_reaches_half_stroke():
    cylinders = cylinder_specs(1)
    assert compute_offsets(math.pi / 2., cylinders)[0] == pytest.approx(0.5)
    assert compute_offsets(3. * math.pi / 2., cylinders)[0] == pytest.approx(-0.5)


def test_offsets_are_pure():
    cylinders = cylinder_specs(3)
    first = compute_offsets(1.25, cylinders)
    second = compute_offsets(1.25, cylinders)
    assert np.array_equal(first, second)


def test_velocity_is_time_derivative_of_offset():
    cylinders = cylinder_specs(4)
    omega, angle, h = angular_velocity(1500.), 0.7, 1e-6
    numeric = (compute_offsets(angle + h, cylinders) - compute_offsets(angle - h, cylinders)) / (2. * h) * omega
    assert np.allclose(compute_velocities(angle, omega, cylinders), numeric, rtol=1e-6, atol=1e-6)


def test_acceleration_at_constant_speed():
    cylinders = cylinder_specs(4)
    omega, angle = angular_velocity(1000.), 2.1
    expected = -compute_offsets(angle, cylinders) * omega ** 2
    assert np.allclose(compute_accelerations(angle, omega, cylinders), expected)


def test_velocity_vanishes_when_standing():
    cylinders = cylinder_specs(2)
    assert np.allclose(compute_velocities(1., 0., cylinders), 0.)
    assert compute_velocities(1., 0., cylinders).shape == (2,)


def test_piston_position():
    cylinder = cylinder_specs(2)[1]
    piston = PistonState(cylinder=cylinder, axial_offset=0.25)
    assert np.array_equal(piston.position, [0., 0.25, cylinder.z])
