"""Unit tests for the look-at perspective camera.

Tests cover:
- Camera validation
- Projection and view matrices
- Ray origin, direction and max distance through pixels
- Image orientation (row 0 at the top)
"""

import math

import numpy as np
import pytest


class TestCameraConfig:
    """Tests for the Camera dataclass."""

    def test_defaults(self):
        """Test the default camera."""
        from sdfmarch.camera import Camera

        camera = Camera()
        assert camera.eye == (0.0, 0.0, 10.0)
        assert camera.target == (0.0, 0.0, 0.0)
        assert camera.aspect == 1.5

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"aspect": 0.0}, "Aspect"),
            ({"fovy": 0.0}, "Field of view"),
            ({"fovy": math.pi}, "Field of view"),
            ({"z_near": 0.0}, "Clip planes"),
            ({"z_near": 10.0, "z_far": 5.0}, "Clip planes"),
            ({"eye": (0.0, 0.0, 0.0)}, "differ"),
            ({"up": (0.0, 0.0, 1.0)}, "parallel"),
        ],
    )
    def test_invalid_camera_rejected(self, kwargs, message):
        """Test that invalid camera parameters raise ValueError."""
        from sdfmarch.camera import Camera

        with pytest.raises(ValueError, match=message):
            Camera(**kwargs)


class TestMatrices:
    """Tests for the NumPy matrix helpers."""

    def test_look_at_moves_eye_to_origin(self):
        """Test that the view matrix maps the eye to the origin."""
        from sdfmarch.camera import look_at_matrix

        view = look_at_matrix((1.0, 2.0, 3.0), (4.0, 2.0, 3.0), (0.0, 1.0, 0.0))
        assert np.allclose(view @ [1.0, 2.0, 3.0, 1.0], [0.0, 0.0, 0.0, 1.0])
        # The target lies on the -z axis of the view
        assert np.allclose(view @ [4.0, 2.0, 3.0, 1.0], [0.0, 0.0, -3.0, 1.0])

    def test_perspective_maps_clip_planes(self):
        """Test that the near and far planes map to NDC z = -1 and +1."""
        from sdfmarch.camera import perspective_matrix

        proj = perspective_matrix(1.5, math.pi / 4.0, 1.0, 100.0)
        near = proj @ [0.0, 0.0, -1.0, 1.0]
        far = proj @ [0.0, 0.0, -100.0, 1.0]
        assert abs(near[2] / near[3] + 1.0) < 1e-12
        assert abs(far[2] / far[3] - 1.0) < 1e-12

    def test_inverse_view_projection_unprojects_center(self):
        """Test that the NDC center unprojects onto the view axis."""
        from sdfmarch.camera import Camera, inverse_view_projection

        inv = inverse_view_projection(Camera())
        h = inv @ [0.0, 0.0, -1.0, 1.0]
        assert np.allclose(h[:3] / h[3], [0.0, 0.0, 9.0])


class TestRayGeneration:
    """Tests for per-pixel rays."""

    def test_center_pixel_ray(self):
        """Test the ray through the image center."""
        from sdfmarch.camera import Camera, get_ray_info, setup_camera

        setup_camera(Camera())
        info = get_ray_info(150, 100, 300, 200)

        assert np.allclose(info["origin"], (0.0, 0.0, 9.0), atol=1e-4)
        assert np.allclose(info["direction"], (0.0, 0.0, -1.0), atol=1e-5)
        assert abs(info["max_t"] - 99.0) < 1e-2

    def test_top_left_pixel_points_up_and_left(self):
        """Test that pixel (0, 0) is the top-left corner of the view."""
        from sdfmarch.camera import Camera, get_ray_info, setup_camera

        camera = Camera()
        setup_camera(camera)
        info = get_ray_info(0, 0, 300, 200)
        dx, dy, dz = info["direction"]

        assert dx < 0.0
        assert dy > 0.0
        assert dz < 0.0
        # The corner sits at the edge of the frustum
        half = math.tan(camera.fovy / 2.0)
        assert abs(dy / -dz - half) < 1e-4
        assert abs(dx / -dz + half * camera.aspect) < 1e-4

    def test_bottom_rows_point_down(self):
        """Test that the last row looks below the view axis."""
        from sdfmarch.camera import Camera, get_ray_info, setup_camera

        setup_camera(Camera())
        info = get_ray_info(150, 199, 300, 200)
        assert info["direction"][1] < 0.0

    def test_directions_are_unit_length(self):
        """Test that every generated direction is normalized."""
        from sdfmarch.camera import Camera, get_ray_info, setup_camera

        setup_camera(Camera(eye=(3.0, -2.0, 5.0), target=(0.0, 1.0, -4.0)))
        for x, y in [(0, 0), (17, 33), (299, 199)]:
            info = get_ray_info(x, y, 300, 200)
            assert abs(np.linalg.norm(info["direction"]) - 1.0) < 1e-5

    def test_ray_reaches_far_plane(self):
        """Test that origin + max_t * direction lies on the far plane."""
        from sdfmarch.camera import Camera, get_ray_info, setup_camera

        camera = Camera()
        setup_camera(camera)
        info = get_ray_info(30, 40, 300, 200)
        end = np.add(info["origin"], np.multiply(info["max_t"], info["direction"]))

        # The far plane is z_far in front of the eye along -z
        assert abs(end[2] - (camera.eye[2] - camera.z_far)) < 1e-2
