#!/usr/bin/env python3
"""Apparent piston frequencies on a sampled display

A piston oscillating at f Hz drawn at a refresh rate fs is only seen at the
frequency it aliases to. Above fs / 2 the motion appears to slow down and
reverse, which is what the visual rpm remap in kolben.py avoids.
"""

from typing import Iterable

import numpy as np
import scipy.fft
import scipy.interpolate

from protokoll import get_logger, logLines
from kolben import visual_rpm

logger = get_logger(__name__)


def rpm_to_frequency(rpm: float) -> float:
    return rpm / 60.


def alias_frequency(frequency: float, sample_rate: float) -> float:
    """frequency [Hz] seen after sampling with sample_rate [Hz]"""
    return abs(frequency - sample_rate * np.round(frequency / sample_rate))


def harmonic_decomp(t: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Harmonic decomposition of a time signal to a combination of sines
    and cosines, such that:

    y(t) = Σ (A_i cos(2 π f_i t) + B_i sin(2 π f_i t))

    Args:
        t (np.ndarray): time vector, e.g. the frame times of a recording
        y (np.ndarray): signal data, if the time step is not uniform, will be resampled

    Returns:
        (np.ndarray): [f, A, B]
    """
    t = np.asarray(t, dtype=float)
    y = np.asarray(y, dtype=float)
    N  = t.shape[0]
    T  = t[-1] - t[0]
    dt = t[1:] - t[:-1]

    # is timestep uniform?
    if np.isclose(np.min(dt), np.max(dt)):  # yes
        dt = np.mean(dt)
    else:                                   # no -> resample
        logger.info("Resampling data to uniform timestep.")
        dt = T / (N - 1)
        f = scipy.interpolate.interp1d(t, y)
        t = np.linspace(t[0], t[-1], N)
        y = f(t)

    midpoint = N // 2
    fft = scipy.fft.fft(y)[:midpoint] * (2.0 / N)
    fft[0] /= 2.
    frq = scipy.fft.fftfreq(N, dt)[:midpoint]

    return np.vstack([frq, fft.real, -fft.imag]).T


def harmonic_comp(t: np.ndarray, fft: np.ndarray) -> np.ndarray:
    res = np.zeros(np.asarray(t).shape[0])
    for f, A, B in fft:
        res += A * np.cos(2. * np.pi * f * t) + B * np.sin(2. * np.pi * f * t)
    return res


def dominant_frequency(t: np.ndarray, y: np.ndarray) -> float:
    """frequency of the largest non-constant harmonic"""
    fft = harmonic_decomp(t, y)
    amplitude = np.hypot(fft[1:, 1], fft[1:, 2])
    return float(fft[1 + np.argmax(amplitude), 0])


def sample_piston(rpm: float, refresh_rate: float = 60., duration: float = 2.,
                  phase: float = 0., stroke: float = 1.) -> tuple:
    """piston offset as drawn, sampled once per display refresh"""
    t = np.arange(int(round(duration * refresh_rate))) / refresh_rate
    omega = rpm * 2. * np.pi / 60.
    return t, stroke / 2. * np.sin(omega * t + phase)


def aliasing_report(rpms: Iterable[float], refresh_rate: float = 60.) -> np.ndarray:
    """Per rpm: [rpm, f_raw, f_raw seen, visual rpm, f_visual, f_visual seen]"""
    rows = []
    for rpm in rpms:
        rpm = float(rpm)
        vrpm = visual_rpm(rpm)
        f_raw, f_vis = rpm_to_frequency(rpm), rpm_to_frequency(vrpm)
        rows.append([rpm, f_raw, alias_frequency(f_raw, refresh_rate),
                     vrpm, f_vis, alias_frequency(f_vis, refresh_rate)])
    return np.array(rows, dtype=float).reshape(-1, 6)


def format_report(report: np.ndarray, refresh_rate: float = 60.) -> str:
    lines = [f"Apparent piston frequency at {refresh_rate:.1f} Hz refresh (Nyquist {refresh_rate / 2.:.1f} Hz)",
             f"{'rpm':>8s} {'f [Hz]':>9s} {'seen':>9s} {'vis rpm':>9s} {'f [Hz]':>9s} {'seen':>9s}"]
    for rpm, f_raw, s_raw, vrpm, f_vis, s_vis in report:
        lines.append(f"{rpm:8.0f} {f_raw:9.2f} {s_raw:9.2f} {vrpm:9.0f} {f_vis:9.2f} {s_vis:9.2f}")
    return logLines(lines)
