#!/usr/bin/env python3

import version

__doc__ = f"""Piston trails of a running engine in a moving vehicle

author:  {version.__author__:s}
date:    {version.__date__:s}
version: {version.__version__:s}

description:
{version.__description__:s}
"""

import sys
import copy
import argparse
import datetime
from dataclasses import dataclass, field, replace

import numpy as np

import kolben
import spur
import strasse
import spektrum
import protokoll
from default import default_kolbenspur
from protokoll import get_logger, logLines

#------------------------------------------------------------- GENERAL SETUP ---#
_NOW = datetime.datetime.strftime(datetime.datetime.now(), "%Y%m%d_%H%M%S")

logger = get_logger(__name__)


#---------------------------------------------------------------- KOLBENSPUR ---#
class KolbenspurError(Exception):
    pass


def _fail(message: str):
    logger.error(message)
    raise KolbenspurError(message)


@dataclass(frozen=True)
class EngineConfiguration:
    """The four live parameters of the illustration.

    `sanitized` is the input boundary, the simulation core never checks
    these values again.
    """

    cylinder_count: int = 4
    rpm: float = 1000.
    speed_kph: float = 50.
    time_scale: float = 1.

    @classmethod
    def sanitized(cls, cylinder_count=4, rpm=1000., speed_kph=50., time_scale=1.) -> "EngineConfiguration":
        values = {"cylinder_count": cylinder_count,
                  "rpm":            rpm,
                  "speed_kph":      speed_kph,
                  "time_scale":     time_scale}

        for name, value in values.items():
            try:
                value = float(value)
            except (TypeError, ValueError):
                _fail(f"{cls.__name__:s}: {name:s} must be a number, got {value!r}.")
            if not np.isfinite(value):
                _fail(f"{cls.__name__:s}: {name:s} must be finite, got {value!r}.")
            values[name] = value

        count = values["cylinder_count"]
        if count != int(count) or count < 1:
            _fail(f"{cls.__name__:s}: cylinder_count must be an integer >= 1, got {cylinder_count!r}.")
        values["cylinder_count"] = int(count)

        for name in ("rpm", "speed_kph", "time_scale"):
            if values[name] < 0.:
                logger.warning(f"{cls.__name__:s}: negative {name:s} = {values[name]:g} clamped to 0.")
                values[name] = 0.

        return cls(**values)

    @classmethod
    def from_dict(cls, setup: dict) -> "EngineConfiguration":
        return cls.sanitized(cylinder_count=setup["motor"]["zylinder"],
                             rpm=setup["motor"]["drehzahl"],
                             speed_kph=setup["fahrzeug"]["geschwindigkeit"],
                             time_scale=setup["simulation"]["zeitraffer"])


@dataclass
class SimulationContext:
    """All mutable simulation state, owned by one Kolbenspur driver"""

    config: EngineConfiguration
    cylinders: list = field(default_factory=list)
    pistons: list = field(default_factory=list)
    trails: list = field(default_factory=list)
    trail_points: list = field(default_factory=list)
    offsets: np.ndarray = field(default_factory=lambda: np.zeros(0))
    crank_angle: float = 0.
    road_offset: float = 0.
    time: float = 0.
    frame: int = 0


@dataclass(frozen=True)
class FrameOutput:
    """What the renderer pulls after each frame"""

    offsets: np.ndarray
    trails: list
    road_offset: float
    crank_angle: float
    cylinders: list


class Kolbenspur:
    def __init__(self, setup: dict = None):
        logger.info("Setting Kolbenspur simulation.")
        setup = copy.deepcopy(default_kolbenspur if setup is None else setup)
        self.setup = setup

        self.stroke = float(setup["motor"]["hub"])
        self.spacing = float(setup["motor"]["zylinderabstand"])
        self.trail_length = int(setup["simulation"]["spurlaenge"])
        self.lane_meters = float(setup["darstellung"]["fahrbahn raster"])

        if self.trail_length < 1:
            _fail(f"{type(self).__name__:s}: the trail length must be positive, got {self.trail_length:n}.")

        self.ctx = SimulationContext(config=EngineConfiguration.from_dict(setup))
        self.rebuild(self.ctx.config.cylinder_count)

    #------------------------------------------------------------ PARAMETERS ---#
    @property
    def config(self) -> EngineConfiguration:
        return self.ctx.config

    @property
    def cylinders(self) -> list:
        return self.ctx.cylinders

    @property
    def pistons(self) -> list:
        return self.ctx.pistons

    @property
    def trails(self) -> list:
        return self.ctx.trails

    @property
    def crank_angle(self) -> float:
        return self.ctx.crank_angle

    @property
    def road_offset(self) -> float:
        return self.ctx.road_offset

    def set_parameters(self, cylinder_count=None, rpm=None, speed_kph=None, time_scale=None) -> EngineConfiguration:
        """Apply a parameter change from the user.

        Only a change of the cylinder count rebuilds the engine, the other
        parameters take effect with the next frame.
        """
        old = self.ctx.config
        new = EngineConfiguration.sanitized(
            cylinder_count=old.cylinder_count if cylinder_count is None else cylinder_count,
            rpm=old.rpm if rpm is None else rpm,
            speed_kph=old.speed_kph if speed_kph is None else speed_kph,
            time_scale=old.time_scale if time_scale is None else time_scale)

        if new.cylinder_count != old.cylinder_count:
            self.rebuild(new.cylinder_count)
        self.ctx.config = new
        logger.debug(f"Parameters: {new.cylinder_count:n} cylinders, {new.rpm:.0f} rpm, "
                     f"{new.speed_kph:.1f} km/h, time scale {new.time_scale:.2f}.")
        return new

    #--------------------------------------------------------------- REBUILD ---#
    def rebuild(self, cylinder_count: int):
        """Drop all cylinders, pistons and trails and build them anew.

        The new engine is assembled completely before it replaces the old
        one, a failing rebuild leaves the previous engine untouched.
        """
        logger.info(f"Rebuilding engine with {cylinder_count:n} cylinders.")
        try:
            cylinders = kolben.cylinder_specs(cylinder_count, self.spacing)
            trails = spur.build_trails(cylinders, self.trail_length)
            trail_points = [np.empty((len(trail), 3), dtype=float) for trail in trails]
            pistons = [kolben.PistonState(cylinder=c) for c in cylinders]
            offsets = np.zeros(len(cylinders), dtype=float)
        except MemoryError as e:
            _fail(f"{type(self).__name__:s}: rebuild with {cylinder_count:n} cylinders failed ({e!r}), "
                  f"keeping {len(self.ctx.cylinders):n} cylinders.")

        old_trails = self.ctx.trails
        (self.ctx.cylinders, self.ctx.pistons, self.ctx.trails,
         self.ctx.trail_points, self.ctx.offsets) = cylinders, pistons, trails, trail_points, offsets
        self.ctx.config = replace(self.ctx.config, cylinder_count=cylinder_count)
        spur.release_trails(old_trails)

    def restart(self):
        logger.info("Restarting simulation.")
        self.ctx.crank_angle = 0.
        self.ctx.road_offset = 0.
        self.ctx.time = 0.
        self.ctx.frame = 0
        self.rebuild(self.ctx.config.cylinder_count)

    #----------------------------------------------------------------- FRAME ---#
    def step(self, delta_time: float) -> FrameOutput:
        """Advance the simulation by one frame of delta_time seconds wall time"""
        if not np.isfinite(delta_time) or delta_time < 0.:
            _fail(f"{type(self).__name__:s}: delta time must be finite and >= 0, got {delta_time!r}.")

        ctx = self.ctx
        cfg = ctx.config

        # 1. crankshaft and pistons
        ctx.crank_angle = kolben.advance_crank_angle(ctx.crank_angle, cfg.rpm, delta_time, cfg.time_scale)
        ctx.offsets[:] = kolben.compute_offsets(ctx.crank_angle, ctx.cylinders, self.stroke)
        for piston, offset in zip(ctx.pistons, ctx.offsets):
            piston.axial_offset = float(offset)

        # 2. trails flowing backwards with the vehicle
        flow = strasse.flow_distance(cfg.speed_kph, delta_time, cfg.time_scale)
        for trail, piston in zip(ctx.trails, ctx.pistons):
            spur.advance(trail, (0., piston.axial_offset, piston.cylinder.z), flow)

        # 3. road texture
        ctx.road_offset += strasse.road_offset_delta(cfg.speed_kph, delta_time, cfg.time_scale, self.lane_meters)

        ctx.time += delta_time * cfg.time_scale
        ctx.frame += 1
        return self.frame_output()

    def frame_output(self) -> FrameOutput:
        """Ordered trail points in the buffers of the current engine.

        The arrays are the same objects every frame until the next rebuild
        and are overwritten by the following step.
        """
        ctx = self.ctx
        for trail, points in zip(ctx.trails, ctx.trail_points):
            trail.points(out=points)
        return FrameOutput(offsets=ctx.offsets,
                           trails=ctx.trail_points,
                           road_offset=ctx.road_offset,
                           crank_angle=ctx.crank_angle,
                           cylinders=ctx.cylinders)

    #-------------------------------------------------------------- HEADLESS ---#
    def record(self, frames: int, delta_time: float = None) -> np.ndarray:
        """Run on a fixed timer, rows [time, crank angle, road offset, offsets...]"""
        if delta_time is None:
            delta_time = float(self.setup["simulation"]["dt"])
        logger.info(f"Recording {frames:n} frames at dt = {delta_time:.5f} s.")

        results = np.empty((frames, 3 + len(self.ctx.cylinders)), dtype=float)
        for i in range(frames):
            out = self.step(delta_time)
            results[i, :3] = self.ctx.time, out.crank_angle, out.road_offset
            results[i, 3:] = out.offsets
        return results

    def animate(self):
        import darstellung
        darstellung.Darstellung(self).show()


def write_results(filename: str, results: np.ndarray):
    with open(filename, "wt") as resfile:
        logger.info(f"Writing {resfile.name:s}.")
        ncyl = results.shape[1] - 3
        header = ["time", "crank", "road"] + [f"zyl_{i + 1:d}" for i in range(ncyl)]
        resfile.write("#" + " ".join(f"{h:>12s}" for h in header)[1:] + "\n")
        for row in results:
            resfile.write(" ".join(f"{v:12.6f}" for v in row) + "\n")


def main(argv=None):
    # Create options parser object.
    parser = argparse.ArgumentParser(description=__doc__,
                                     formatter_class=argparse.RawTextHelpFormatter)

    # Add arguments
    parser.add_argument("-v", "--verbose", dest="verbose", action="count", default=0,
                        help="""Increase verbosity.""")

    parser.add_argument("-o", "--output", dest="result_file", nargs=1, type=str, default=[None],
                        help="""Save the results of a headless run as a text file (implies -n 600 when -n is not given)""")

    parser.add_argument("-l", "--log", dest="log_file", nargs="?", type=str, const="", default=None,
                        help="""Write a log file (default name kolbenspur_<date>.pro)""")

    parser.add_argument("-z", "--zylinder", dest="cylinders", type=int, default=None,
                        help="""Number of cylinders (1 - 12)""")

    parser.add_argument("-r", "--rpm", dest="rpm", type=float, default=None,
                        help="""Engine speed in rpm (0 - 8000)""")

    parser.add_argument("-s", "--speed", dest="speed", type=float, default=None,
                        help="""Vehicle speed in km/h (0 - 300)""")

    parser.add_argument("-t", "--time-scale", dest="time_scale", type=float, default=None,
                        help="""Time scale multiplier (0 - 3)""")

    parser.add_argument("-n", "--frames", dest="frames", type=int, default=0,
                        help="""Run headless for this many frames instead of animating""")

    parser.add_argument("--dt", dest="dt", type=float, default=None,
                        help="""Frame step of a headless run in seconds""")

    parser.add_argument("--spektrum", dest="spektrum", action="store_true",
                        help="""Report the apparent piston frequencies on the display""")

    # Parse command-line arguments.
    args = parser.parse_args(argv)

    protokoll.set_verbosity(args.verbose)
    if args.log_file is not None:
        protokoll.add_file_handler(args.log_file or f"kolbenspur_{_NOW:s}.pro", args.verbose + 1)

    setup = copy.deepcopy(default_kolbenspur)
    if args.cylinders is not None:
        setup["motor"]["zylinder"] = args.cylinders
    if args.rpm is not None:
        setup["motor"]["drehzahl"] = args.rpm
    if args.speed is not None:
        setup["fahrzeug"]["geschwindigkeit"] = args.speed
    if args.time_scale is not None:
        setup["simulation"]["zeitraffer"] = args.time_scale
    if args.dt is not None:
        setup["simulation"]["dt"] = args.dt

    try:
        ks = Kolbenspur(setup)
    except KolbenspurError:
        return 1

    if args.spektrum:
        refresh = float(setup["darstellung"]["bildrate"])
        rpms = sorted({0., 500., 1000., 1800., 2000., 4000., 6000., 8000., ks.config.rpm})
        logger.message(spektrum.format_report(spektrum.aliasing_report(rpms, refresh), refresh))
        return 0

    if args.result_file[0] is not None and args.frames <= 0:
        args.frames = int(round(float(setup["darstellung"]["bildrate"]) * 10.))
        logger.warning(f"--output needs a headless run, recording {args.frames:n} frames instead of animating.")

    if args.frames > 0:
        try:
            results = ks.record(args.frames)
        except KolbenspurError:
            return 1
        if args.result_file[0] is not None:
            write_results(args.result_file[0], results)
        else:
            logger.message(logLines([f"{args.frames:n} frames, t = {ks.ctx.time:.3f} s",
                                     f"crank angle  {ks.crank_angle:12.4f} rad",
                                     f"road offset  {ks.road_offset:12.4f}",
                                     "offsets      " + " ".join(f"{o:8.4f}" for o in ks.ctx.offsets)]))
        return 0

    ks.animate()
    return 0


if __name__ == "__main__":
    sys.exit(main())
