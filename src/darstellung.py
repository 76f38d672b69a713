#!/usr/bin/env python3
"""matplotlib rendering of a Kolbenspur simulation

Simulation coordinates are y up and z along the engine and the direction of
travel. The 3D axes show simulation z on X, simulation x on Y and simulation
y on Z.
"""

import time
import functools

import numpy as np

import matplotlib.pyplot as plt
import matplotlib.gridspec as gs
import matplotlib.animation as animation
from matplotlib.widgets import Slider

import kolben
from protokoll import get_logger

logger = get_logger(__name__)


ZORDER = {"strasse":    0,
          "spur":      10,
          "block":     20,
          "kolben":    30,
          "karosserie": 40,}

COLORS = {"hintergrund": "#0d1117",
          "strasse":     "#333333",
          "markierung":  "#666666",
          "kolben":      "#dddddd",
          "pleuel":      "#aaaaaa",
          "block":       "#555555",
          "karosserie":  "#2266cc",
          "spur":        "#ff3333",}

PISTON_HEIGHT = 0.6
CONROD_LENGTH = 1.5
ROAD_LEVEL = -2.0
ROAD_WIDTH = 20.0
ROAD_LINE_SPACING = 1.0       # m, major line every 5 m
VIEW_Z = (-15., 60.)          # m along the direction of travel
HISTORY = 240                 # frames in the piston plot
BODY_REST_Y = 0.5
MAX_FRAME_TIME = 0.25         # s, longer pauses are not replayed


#------------------------------------------------------------------ HELPERS ---#
def karosserie_jitter(rpm: float, rng: np.random.Generator) -> tuple:
    """Random vibration of the car body, bounded by the engine speed"""
    if rpm <= 0.:
        return 0., 0.
    return ((rng.random() - 0.5) * 0.02 * (rpm / 8000.),
            (rng.random() - 0.5) * 0.01 * (rpm / 8000.))


def road_lines(road_offset: float, lane_meters: float, z_min: float, z_max: float,
               spacing: float = ROAD_LINE_SPACING) -> tuple:
    """z positions of the road grid lines and which of them are major lines.

    The number of lines does not depend on the offset, the same line artists
    can be moved every frame.
    """
    shift = (road_offset * lane_meters) % lane_meters
    first = int(np.floor((z_min - lane_meters) / spacing))
    last = int(np.ceil(z_max / spacing))
    j = np.arange(first, last + 1)
    return j * spacing + shift, (j % int(round(5. / spacing))) == 0


def box_edges(center, size) -> list:
    """12 edges of an axis aligned box as pairs of simulation points"""
    c = np.asarray(center, dtype=float)
    h = np.asarray(size, dtype=float) / 2.
    corners = np.array([[sx, sy, sz] for sx in (-1, 1) for sy in (-1, 1) for sz in (-1, 1)], dtype=float) * h + c
    edges = []
    for i in range(8):
        for j in range(i + 1, 8):
            if np.count_nonzero(corners[i] != corners[j]) == 1:
                edges.append((corners[i], corners[j]))
    return edges


def _axes(points: np.ndarray) -> tuple:
    points = np.atleast_2d(points)
    return points[:, 2], points[:, 0], points[:, 1]


def _piston_segments(piston) -> tuple:
    p = piston.position
    top = p + np.array([0., PISTON_HEIGHT / 2., 0.])
    bottom = p - np.array([0., PISTON_HEIGHT / 2., 0.])
    crank = p - np.array([0., PISTON_HEIGHT / 2. + CONROD_LENGTH, 0.])
    return np.vstack([bottom, top]), np.vstack([crank, bottom])


#--------------------------------------------------------------- DARSTELLUNG ---#
class Darstellung:
    def __init__(self, kolbenspur, rng: np.random.Generator = None, fig=None):
        logger.debug("Setting up the scene.")
        self.ks = kolbenspur
        self.rng = np.random.default_rng() if rng is None else rng
        self.body_size = np.array(kolbenspur.setup["darstellung"]["karosserie"], dtype=float)
        self.refresh = float(kolbenspur.setup["darstellung"]["bildrate"])

        self.fig = plt.figure(figsize=(16, 10)) if fig is None else fig
        self.fig.suptitle("Kolbenspur")
        self.fig.patch.set_facecolor(COLORS["hintergrund"])

        gspec = gs.GridSpec(6, 5, wspace=0.5, hspace=0.6)
        self.ax = self.fig.add_subplot(gspec[:, :3], projection="3d")
        self.axd = self.fig.add_subplot(gspec[0:2, 3:])
        self.axv = self.axd.twinx()
        self.axa = self.axd.twinx()
        self.axa.spines.right.set_position(("axes", 1.2))

        self._setup_view()
        self._setup_road()
        self._setup_body()
        self._setup_plot()
        self._setup_sliders(gspec)

        self._cylinders = None
        self._engine_artists = []
        self._pistons = []
        self._trails = []
        self._build_engine()

        self._last = None
        self.ani = None

    #----------------------------------------------------------------- SCENE ---#
    def _setup_view(self):
        ax = self.ax
        ax.set_facecolor(COLORS["hintergrund"])
        ax.set_xlim(*VIEW_Z)
        ax.set_ylim(-ROAD_WIDTH / 2., ROAD_WIDTH / 2.)
        ax.set_zlim(ROAD_LEVEL, ROAD_LEVEL + 8.)
        ax.set_box_aspect((VIEW_Z[1] - VIEW_Z[0], ROAD_WIDTH, 8.))
        ax.view_init(elev=20., azim=-60.)
        ax.set_axis_off()
        self.hud = ax.text2D(0.02, 0.95, "", transform=ax.transAxes, color="white", family="monospace")

    def _setup_road(self):
        self._road = []
        zs, major = road_lines(self.ks.road_offset, self.ks.lane_meters, *VIEW_Z)
        for z, m in zip(zs, major):
            line, = self.ax.plot([z, z], [-ROAD_WIDTH / 2., ROAD_WIDTH / 2.], [ROAD_LEVEL, ROAD_LEVEL],
                                 color=COLORS["markierung" if m else "strasse"],
                                 linewidth=2. if m else 1., zorder=ZORDER["strasse"])
            self._road.append(line)

    def _setup_body(self):
        self._body = []
        for p0, p1 in box_edges((0., BODY_REST_Y, 0.), self.body_size):
            line, = self.ax.plot(*_axes(np.vstack([p0, p1])), color=COLORS["karosserie"],
                                 alpha=0.6, zorder=ZORDER["karosserie"])
            self._body.append(line)

    def _setup_plot(self):
        self.axd.set_ylabel("Kolben Displacement", color="red")
        self.axv.set_ylabel("Kolben Velocity",     color="blue")
        self.axa.set_ylabel("Kolben Acceleration", color="orange")
        self.axd.set_xlim(0, HISTORY - 1)
        self._history = np.full((3, HISTORY), np.nan, dtype=float)
        frames = np.arange(HISTORY)
        self.dky, = self.axd.plot(frames, self._history[0], color="red",    label="$d_{y,kolben}$")
        self.vky, = self.axv.plot(frames, self._history[1], color="blue",   label="$v_{y,kolben}$")
        self.aky, = self.axa.plot(frames, self._history[2], color="orange", label="$a_{y,kolben}$")
        self.axd.legend([self.dky, self.vky, self.aky], [k.get_label() for k in [self.dky, self.vky, self.aky]],
                        loc="upper left")

    def _setup_sliders(self, gspec):
        cfg = self.ks.config
        specs = [("zylinder",        "Zylinder",   1.,    12.,   cfg.cylinder_count, 1.),
                 ("rpm",             "Drehzahl",   0.,  8000.,   cfg.rpm,           50.),
                 ("speed_kph",       "km/h",       0.,   300.,   cfg.speed_kph,      1.),
                 ("time_scale",      "Zeitraffer", 0.,     3.,   cfg.time_scale,     0.1)]
        self.sliders = {}
        for row, (name, label, vmin, vmax, vinit, vstep) in enumerate(specs):
            sax = self.fig.add_subplot(gspec[3 + row // 2, 3 + row % 2])
            slider = Slider(sax, label, vmin, vmax, valinit=vinit, valstep=vstep)
            slider.on_changed(functools.partial(self._on_slider, name))
            self.sliders[name] = slider

    def _on_slider(self, name: str, value: float):
        if name == "zylinder":
            self.ks.set_parameters(cylinder_count=int(value))
        else:
            self.ks.set_parameters(**{name: value})

    #---------------------------------------------------------------- ENGINE ---#
    def _build_engine(self):
        """(Re)create the engine artists, the old trails are removed from the scene"""
        for artist in self._engine_artists + self._trails:
            artist.remove()
        self._engine_artists, self._pistons, self._trails = [], [], []

        cylinders = self.ks.cylinders
        count = len(cylinders)
        total_length = (count - 1) * self.ks.spacing
        for p0, p1 in box_edges((0., 0., 0.), (2., 2.5, total_length + 2.)):
            line, = self.ax.plot(*_axes(np.vstack([p0, p1])), color=COLORS["block"],
                                 alpha=0.5, zorder=ZORDER["block"])
            self._engine_artists.append(line)

        for cylinder, trail in zip(cylinders, self.ks.trails):
            piston_head, conrod = _piston_segments(kolben.PistonState(cylinder=cylinder))
            head, = self.ax.plot(*_axes(piston_head), color=COLORS["kolben"], linewidth=8., solid_capstyle="butt",
                                 zorder=ZORDER["kolben"])
            rod, = self.ax.plot(*_axes(conrod), color=COLORS["pleuel"], linewidth=2., zorder=ZORDER["kolben"])
            line, = self.ax.plot(*_axes(trail.points()), color=COLORS["spur"], linewidth=1.5,
                                 zorder=ZORDER["spur"])
            self._pistons.append((head, rod))
            self._engine_artists.extend([head, rod])
            self._trails.append(line)

        self._cylinders = cylinders
        logger.debug(f"Scene holds {count:n} pistons and trails.")

    #---------------------------------------------------------------- UPDATE ---#
    def _frame_time(self) -> float:
        now = time.perf_counter()
        dt = 0. if self._last is None else min(now - self._last, MAX_FRAME_TIME)
        self._last = now
        return dt

    def update(self, frame=None, delta_time: float = None):
        dt = self._frame_time() if delta_time is None else delta_time
        out = self.ks.step(dt)
        cfg = self.ks.config

        if self._cylinders is not self.ks.cylinders:
            self._build_engine()

        for (head, rod), piston in zip(self._pistons, self.ks.pistons):
            piston_head, conrod = _piston_segments(piston)
            head.set_data_3d(*_axes(piston_head))
            rod.set_data_3d(*_axes(conrod))

        for line, trail, points in zip(self._trails, self.ks.trails, out.trails):
            if trail.needs_update:
                line.set_data_3d(*_axes(points))
                trail.mark_synced()

        zs, _ = road_lines(out.road_offset, self.ks.lane_meters, *VIEW_Z)
        for line, z in zip(self._road, zs):
            line.set_data_3d([z, z], [-ROAD_WIDTH / 2., ROAD_WIDTH / 2.], [ROAD_LEVEL, ROAD_LEVEL])

        jx, jy = karosserie_jitter(cfg.rpm, self.rng)
        size = self.body_size * np.array([1., 1., max(1., cfg.cylinder_count / 4.)])
        for line, (p0, p1) in zip(self._body, box_edges((jx, BODY_REST_Y + jy, 0.), size)):
            line.set_data_3d(*_axes(np.vstack([p0, p1])))

        self._update_plot(cfg)
        self.hud.set_text(f"{cfg.cylinder_count:2d} Zyl  {cfg.rpm:6.0f} rpm "
                          f"(visuell {kolben.visual_rpm(cfg.rpm):6.0f})  {cfg.speed_kph:5.0f} km/h  "
                          f"x{cfg.time_scale:.1f}")

        return [self.hud, self.dky, self.vky, self.aky] + self._trails

    def _update_plot(self, cfg):
        cylinders = self.ks.cylinders[:1]
        omega = kolben.angular_velocity(cfg.rpm)
        values = [kolben.compute_offsets(self.ks.crank_angle, cylinders, self.ks.stroke)[0],
                  kolben.compute_velocities(self.ks.crank_angle, omega, cylinders, self.ks.stroke)[0],
                  kolben.compute_accelerations(self.ks.crank_angle, omega, cylinders, self.ks.stroke)[0]]
        self._history = np.roll(self._history, -1, axis=1)
        self._history[:, -1] = values
        for ax_, line, v in zip([self.axd, self.axv, self.axa], [self.dky, self.vky, self.aky], self._history):
            line.set_ydata(v)
            n, x = np.nanmin(v), np.nanmax(v)
            dv = max(np.abs(x - n), 1e-6)
            ax_.set_ylim(n - 0.1 * dv, x + 0.1 * dv)

    def show(self):
        logger.info("Animating Kolbenspur.")
        self.ani = animation.FuncAnimation(self.fig, self.update, interval=1000. / self.refresh,
                                           cache_frame_data=False, blit=False)
        plt.show(block=True)
