import numpy as np
import pytest

from spektrum import (
    alias_frequency,
    aliasing_report,
    dominant_frequency,
    format_report,
    harmonic_comp,
    harmonic_decomp,
    sample_piston,
)


@pytest.mark.parametrize("f, seen", [(10., 10.), (30., 30.), (50., 10.), (60., 0.), (8000. / 60., 40. / 3.)])
def test_alias_frequency(f, seen):
    assert alias_frequency(f, 60.) == pytest.approx(seen)


def test_visual_rpm_stays_below_nyquist():
    report = aliasing_report(np.linspace(0., 8000., 161), refresh_rate=60.)
    f_visual, seen_visual = report[:, 4], report[:, 5]
    assert np.all(f_visual < 30.)
    assert np.allclose(seen_visual, f_visual)


def test_raw_rpm_aliases_above_1800():
    report = aliasing_report([1000., 1800., 4000., 8000.])
    f_raw, seen_raw = report[:, 1], report[:, 2]
    assert seen_raw[0] == pytest.approx(f_raw[0])
    assert seen_raw[1] == pytest.approx(30.)
    assert seen_raw[2] < f_raw[2]
    assert seen_raw[3] == pytest.approx(40. / 3.)


def test_dominant_frequency_of_sampled_piston():
    t, y = sample_piston(600., refresh_rate=60., duration=2.)
    assert dominant_frequency(t, y) == pytest.approx(10., abs=0.5)


def test_dominant_frequency_shows_aliasing():
    t, y = sample_piston(8000., refresh_rate=60., duration=2.)
    assert dominant_frequency(t, y) == pytest.approx(40. / 3., abs=0.5)


def test_non_uniform_frame_times_are_resampled():
    rng = np.random.default_rng(3)
    t = np.arange(120) / 60. + rng.uniform(-1e-4, 1e-4, 120)
    t[0] = 0.
    y = 0.5 * np.sin(2. * np.pi * 10. * t)
    assert dominant_frequency(t, y) == pytest.approx(10., abs=0.5)


def test_decomposition_recombines():
    t = np.arange(100) * 0.01
    y = 3. + 2. * np.sin(2. * np.pi * 5. * t) + 0.5 * np.cos(2. * np.pi * 12. * t)
    fft = harmonic_decomp(t, y)
    assert fft.shape == (50, 3)
    assert np.allclose(harmonic_comp(t, fft), y, atol=1e-9)


def test_format_report():
    text = format_report(aliasing_report([1000., 8000.]))
    assert "Nyquist 30.0 Hz" in text
    assert "1700" in text
