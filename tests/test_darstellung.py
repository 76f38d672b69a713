import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

import darstellung
from darstellung import Darstellung, box_edges, karosserie_jitter, road_lines
from kolbenspur import Kolbenspur


def test_jitter_is_bounded_by_rpm():
    rng = np.random.default_rng(0)
    for rpm in [500., 4000., 8000.]:
        for _ in range(500):
            jx, jy = karosserie_jitter(rpm, rng)
            assert abs(jx) <= 0.01 * rpm / 8000.
            assert abs(jy) <= 0.005 * rpm / 8000.


def test_no_jitter_when_standing():
    assert karosserie_jitter(0., np.random.default_rng(0)) == (0., 0.)


def test_road_lines_wrap_with_texture_repeat():
    z0, major0 = road_lines(0., 10., -15., 60.)
    z1, major1 = road_lines(1., 10., -15., 60.)
    zh, _ = road_lines(0.05, 10., -15., 60.)
    assert len(z0) == len(z1) == len(zh)
    assert np.allclose(z0, z1)
    assert np.array_equal(major0, major1)
    assert np.allclose(zh - z0, 0.5)
    assert np.all(np.mod(z0[major0], 5.) == 0.)


def test_box_edges():
    edges = box_edges((0., 0., 0.), (2., 4., 6.))
    assert len(edges) == 12
    lengths = sorted(np.linalg.norm(b - a) for a, b in edges)
    assert lengths == pytest.approx([2.] * 4 + [4.] * 4 + [6.] * 4)


def test_scene_follows_simulation():
    ks = Kolbenspur()
    scene = Darstellung(ks, rng=np.random.default_rng(0))
    try:
        artists = scene.update(delta_time=1. / 60.)
        assert len(scene._trails) == 4
        assert all(not trail.needs_update for trail in ks.trails)
        assert scene.hud in artists
        xs, ys, zs = scene._trails[0].get_data_3d()
        assert np.array_equal(xs, ks.trails[0].points()[:, 2])
        assert np.array_equal(zs, ks.trails[0].points()[:, 1])

        old_trails = list(scene._trails)
        old_pistons = [artist for pair in scene._pistons for artist in pair]
        lines_with_4 = len(scene.ax.lines)

        ks.set_parameters(cylinder_count=6)
        scene.update(delta_time=1. / 60.)
        assert len(scene._trails) == len(scene._pistons) == 6
        # two more cylinders, each with piston, rod and trail
        assert len(scene.ax.lines) == lines_with_4 + 2 * 3
        assert not any(line in scene.ax.lines for line in old_trails + old_pistons)

        scene.sliders["rpm"].set_val(3000.)
        assert ks.config.rpm == 3000.
        assert ks.config.cylinder_count == 6
    finally:
        plt.close(scene.fig)
