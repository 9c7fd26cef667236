import numpy as np
import pytest

from orbitwatch.projector import Camera, CameraView, Projector


@pytest.mark.parametrize("yaw, pitch, zoom", [
    (0.0, 0.0, 1.0),
    (0.5, 0.2, 1.2),
    (-2.0, 1.5, 3.7),
    (10.0, -1.2, 0.5),
])
def test_origin_projects_to_centre(yaw, pitch, zoom):
    p = Projector(CameraView(yaw, pitch, zoom), 800, 600).project(np.zeros(3))
    assert p.x == pytest.approx(400.0)
    assert p.y == pytest.approx(300.0)
    assert p.depth == pytest.approx(0.0)
    assert p.scale == pytest.approx(zoom)


def test_identity_view_projection():
    proj = Projector(CameraView(0.0, 0.0, 1.0), 800, 600, camera_distance=800)
    p = proj.project([100.0, 50.0, 0.0])
    assert (p.x, p.y) == pytest.approx((500.0, 250.0))

    far = proj.project([100.0, 0.0, 800.0])
    assert far.scale == pytest.approx(0.5)
    assert far.x == pytest.approx(450.0)


def test_yaw_rotates_about_vertical_axis():
    proj = Projector(CameraView(np.pi / 2, 0.0, 1.0), 100, 100)
    cam = proj.rotate([1.0, 0.0, 0.0])
    np.testing.assert_allclose(cam, [0.0, 0.0, 1.0], atol=1e-12)


def test_pitch_rotates_about_horizontal_axis():
    proj = Projector(CameraView(0.0, np.pi / 2, 1.0), 100, 100)
    cam = proj.rotate([0.0, 1.0, 0.0])
    np.testing.assert_allclose(cam, [0.0, 0.0, 1.0], atol=1e-12)


def test_project_many_matches_project():
    proj = Projector(CameraView(0.3, -0.4, 2.0), 640, 480)
    pts = np.array([[10.0, 20.0, 30.0], [-50.0, 5.0, 70.0], [0.0, -60.0, -10.0]])
    sx, sy, depth, scale = proj.project_many(pts)
    for k, pt in enumerate(pts):
        p = proj.project(pt)
        assert (p.x, p.y, p.depth, p.scale) == pytest.approx((sx[k], sy[k], depth[k], scale[k]))


def test_near_plane_rejection():
    proj = Projector(CameraView(0.0, 0.0, 1.0), 100, 100, camera_distance=800)
    assert proj.is_visible(proj.project([0.0, 0.0, -799.0]))
    assert not proj.is_visible(proj.project([0.0, 0.0, -801.0]))
    np.testing.assert_array_equal(proj.depth_visible([-900.0, 0.0, 900.0]), [False, True, True])


def test_drag_changes_yaw_and_pitch():
    cam = Camera(yaw=0.0, pitch=0.0, zoom=1.0)
    cam.pointer_down(100, 100)
    cam.pointer_move(120, 90)
    assert cam.yaw == pytest.approx(20 * 0.005)
    assert cam.pitch == pytest.approx(-10 * 0.005)
    cam.pointer_move(130, 90)
    assert cam.yaw == pytest.approx(30 * 0.005)


def test_move_without_press_is_ignored():
    cam = Camera(yaw=0.0, pitch=0.0)
    cam.pointer_move(500, 500)
    assert (cam.yaw, cam.pitch) == (0.0, 0.0)


def test_pitch_is_clamped():
    cam = Camera(pitch=0.0)
    cam.pointer_down(0, 0)
    cam.pointer_move(0, 10000)
    assert cam.pitch == pytest.approx(np.pi / 2)
    cam.pointer_move(0, -20000)
    assert cam.pitch == pytest.approx(-np.pi / 2)


def test_pointer_up_and_leave_end_drag():
    cam = Camera()
    cam.pointer_down(0, 0)
    cam.pointer_up()
    assert not cam.dragging
    cam.pointer_down(0, 0)
    cam.pointer_leave()
    assert not cam.dragging


def test_wheel_zoom_is_multiplicative_and_clamped():
    cam = Camera(zoom=1.0)
    cam.wheel(100)
    assert cam.zoom == pytest.approx(np.exp(-0.1))
    cam.wheel(-100)
    assert cam.zoom == pytest.approx(1.0)
    cam.wheel(-100000)
    assert cam.zoom == 4.0
    cam.wheel(100000)
    assert cam.zoom == 0.5


def test_click_versus_drag():
    cam = Camera()
    cam.pointer_down(50, 50)
    assert not cam.moved_since_press(52, 51)
    assert cam.moved_since_press(60, 50)


def test_snapshot_is_immutable_copy():
    cam = Camera(yaw=0.1, pitch=0.2, zoom=1.5)
    view = cam.snapshot()
    cam.wheel(500)
    assert view.zoom == 1.5
    with pytest.raises(Exception):
        view.zoom = 2.0
