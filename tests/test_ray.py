"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector helpers (near_zero, safe_normalize, reflect, refract, Schlick)
"""

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from rtweekend.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes correct point along ray."""
        from rtweekend.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_length_squared(self):
        """Test length_squared of a 3-4-0 vector."""
        from rtweekend.core.ray import length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = length_squared(vec3(3.0, 4.0, 0.0))

        test_kernel()
        assert abs(result[None] - 25.0) < 1e-5

    def test_near_zero(self):
        """Test near_zero only accepts vectors with all tiny components."""
        from rtweekend.core.ray import near_zero, vec3

        tiny = ti.field(dtype=ti.i32, shape=())
        small = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            tiny[None] = near_zero(vec3(1e-9, -1e-9, 0.0))
            small[None] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert tiny[None] == 1
        assert small[None] == 0

    def test_safe_normalize(self):
        """Test safe_normalize returns a unit vector, or the fallback for zero."""
        from rtweekend.core.ray import safe_normalize, vec3

        normal = ti.field(dtype=ti.math.vec3, shape=())
        fallback = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            normal[None] = safe_normalize(vec3(0.0, 3.0, 4.0), vec3(1.0, 0.0, 0.0))
            fallback[None] = safe_normalize(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))

        test_kernel()
        n = normal[None]
        assert abs(n[1] - 0.6) < 1e-6
        assert abs(n[2] - 0.8) < 1e-6
        f = fallback[None]
        assert f[0] == 1.0 and f[1] == 0.0 and f[2] == 0.0

    def test_reflect(self):
        """Test reflection of a 45-degree ray off a horizontal surface."""
        from rtweekend.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_reflect_preserves_length(self):
        """Reflection about a unit normal preserves vector length."""
        from rtweekend.core.ray import reflect, vec3

        num_cases = 32
        in_len = ti.field(dtype=ti.f32, shape=num_cases)
        out_len = ti.field(dtype=ti.f32, shape=num_cases)

        @ti.kernel
        def test_kernel():
            for i in range(num_cases):
                angle = ti.cast(i, ti.f32) * 0.37
                incident = vec3(ti.cos(angle) * 2.0, -1.5, ti.sin(angle))
                normal = ti.math.normalize(vec3(0.3, 1.0, -0.2 * ti.cast(i % 3, ti.f32)))
                in_len[i] = incident.norm()
                out_len[i] = reflect(incident, normal).norm()

        test_kernel()
        for i in range(num_cases):
            assert abs(in_len[i] - out_len[i]) < 1e-4

    def test_refract_straight_through(self):
        """Test that a ray along the normal is not bent."""
        from rtweekend.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-5
        assert abs(r[2]) < 1e-6

    def test_refract_snell(self):
        """Test the refracted angle satisfies Snell's law."""
        from rtweekend.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        sin_i = 1.0 / 2.0**0.5
        sin_t = abs(r[0]) / (r[0] ** 2 + r[1] ** 2 + r[2] ** 2) ** 0.5
        assert sin_t == pytest.approx(sin_i / 1.5, abs=1e-5)
        assert r[1] < 0.0

    def test_refract_total_internal_reflection(self):
        """Test refract returns zero when no refracted direction exists."""
        from rtweekend.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            # Leaving glass at a grazing angle
            incident = ti.math.normalize(vec3(1.0, -0.1, 0.0))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        r = result[None]
        assert r[0] == 0.0 and r[1] == 0.0 and r[2] == 0.0

    def test_schlick_fresnel(self):
        """Test Schlick reflectance at normal and grazing incidence."""
        from rtweekend.core.ray import schlick_fresnel

        normal = ti.field(dtype=ti.f32, shape=())
        grazing = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal[None] = schlick_fresnel(1.0, 1.5)
            grazing[None] = schlick_fresnel(0.0, 1.5)

        test_kernel()
        assert normal[None] == pytest.approx(0.04, abs=1e-5)
        assert grazing[None] == pytest.approx(1.0, abs=1e-5)
