#!/usr/bin/env python3
"""Piston kinematics of the inline engine

The piston displacement is a stylized sinusoid of the crank angle, every
cylinder shifted by its own phase so the strokes are evenly spread over one
revolution:

    y_i(t) = s / 2 * sin(q(t) + phi_i)

The law is set up in SymPy and lambdified to numpy together with its first and
second time derivative, the same way the positions, velocities and
accelerations of the crank train parts are obtained by double derivation.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import sympy as sm
import sympy.physics.mechanics as me

from protokoll import get_logger

logger = get_logger(__name__)


STROKE_LENGTH = 1.0             # m (visual)
CYLINDER_SPACING = 1.2          # m

VISUAL_RPM_THRESHOLD = 1000.    # rpm - identity below
VISUAL_RPM_COMPRESSION = 0.1    # slope above the threshold


#--------------------------------------------------------------- PISTON LAW ---#
def _lambdify_piston_law():
    logger.debug("Deriving piston position, velocity and acceleration.")
    q, u, a = me.dynamicsymbols("q, u, a")
    phi, s = sm.symbols("phi, s")
    t = me.dynamicsymbols._t

    qd_repl  = {q.diff(t): u}
    qdd_repl = {q.diff(t, 2): a, u.diff(t): a}

    pos = s / 2 * sm.sin(q + phi)
    vel = pos.diff(t).xreplace(qd_repl)
    acc = vel.diff(t).xreplace(qdd_repl).xreplace(qd_repl)

    # plain symbols for the numerical functions
    qs, us, as_ = sm.symbols("q_s, u_s, a_s")
    plain = {q: qs, u: us, a: as_}
    args = (as_, us, qs, phi, s)

    return [sm.lambdify(args, expr.xreplace(plain), modules="numpy") for expr in (pos, vel, acc)]


_POS, _VEL, _ACC = _lambdify_piston_law()


#----------------------------------------------------------------- CYLINDER ---#
@dataclass(frozen=True)
class CylinderSpec:
    """One cylinder of the engine.

    Parameters
    ----------
    index : int
        position in the engine, 0 is the front cylinder
    phase : float
        crank angle offset [rad], 2 pi index / count
    z : float
        axial position of the cylinder along the engine [m], the engine is
        centred on z = 0
    """

    index: int
    phase: float
    z: float = 0.

    @property
    def resting_position(self) -> np.ndarray:
        return np.array([0., 0., self.z], dtype=float)


@dataclass
class PistonState:
    cylinder: CylinderSpec
    axial_offset: float = 0.

    @property
    def position(self) -> np.ndarray:
        return np.array([0., self.axial_offset, self.cylinder.z], dtype=float)


def cylinder_specs(count: int, spacing: float = CYLINDER_SPACING) -> list:
    """Evenly phased cylinders, centred along the engine axis"""
    total_length = (count - 1) * spacing
    start_z = -total_length / 2.
    return [CylinderSpec(index=i,
                         phase=2. * np.pi * i / count,
                         z=start_z + i * spacing) for i in range(count)]


def phases(cylinders: Sequence[CylinderSpec]) -> np.ndarray:
    return np.array([c.phase for c in cylinders], dtype=float)


#--------------------------------------------------------------- CRANKSHAFT ---#
def visual_rpm(rpm: float) -> float:
    """Remap the engine speed to the speed the pistons are drawn with.

    A display refreshing at 60 Hz cannot show more than 30 revolutions per
    second (1800 rpm) without the motion appearing to slow down or reverse.
    Up to 1000 rpm the speed is shown as is, above it every further 1000 rpm
    adds only 100 rpm, so 8000 rpm are drawn at 1700 rpm.

    Args:
        rpm (float): engine speed, already sanitized (finite, >= 0)

    Returns:
        (float): visual engine speed [rpm]
    """
    if rpm <= VISUAL_RPM_THRESHOLD:
        return rpm
    return VISUAL_RPM_THRESHOLD + (rpm - VISUAL_RPM_THRESHOLD) * VISUAL_RPM_COMPRESSION


def angular_velocity(rpm: float) -> float:
    """visual crank angular velocity [rad/s]"""
    return visual_rpm(rpm) * 2. * np.pi / 60.


def advance_crank_angle(crank_angle: float, rpm: float, delta_time: float,
                        time_scale: float = 1.) -> float:
    # the angle is not wrapped, only its sine is ever taken
    return crank_angle + angular_velocity(rpm) * delta_time * time_scale


def compute_offsets(crank_angle: float, cylinders: Sequence[CylinderSpec],
                    stroke: float = STROKE_LENGTH) -> np.ndarray:
    """axial piston offset per cylinder, |offset| <= stroke / 2"""
    phi = phases(cylinders)
    return np.asarray(_POS(0., 0., crank_angle, phi, stroke), dtype=float).reshape(phi.shape)


def compute_velocities(crank_angle: float, omega: float, cylinders: Sequence[CylinderSpec],
                       stroke: float = STROKE_LENGTH) -> np.ndarray:
    phi = phases(cylinders)
    vel = _VEL(0., omega, crank_angle, phi, stroke)
    return np.broadcast_to(np.asarray(vel, dtype=float), phi.shape).copy()


def compute_accelerations(crank_angle: float, omega: float, cylinders: Sequence[CylinderSpec],
                          stroke: float = STROKE_LENGTH, alpha: float = 0.) -> np.ndarray:
    phi = phases(cylinders)
    acc = _ACC(alpha, omega, crank_angle, phi, stroke)
    return np.broadcast_to(np.asarray(acc, dtype=float), phi.shape).copy()
