"""Stateless random number generation and sampling for the path tracer.

The kernels never call ``ti.random()``: its hidden per-thread state would
make images depend on how the backend schedules pixels. Instead every random
draw is a pure function of a small ``u32`` state, and the state of a path is
derived by hashing (pixel x, pixel y, sample index, frame seed) and re-keyed
for every bounce. Two renders with the same seed are identical on any
backend and thread count.

Every draw returns the value together with the advanced state::

    u, rng = random_f32(rng)
    direction, rng = random_unit_vector(rng)

Hashing uses Thomas Wang's 32-bit integer hash; the per-draw stream is a
32-bit xorshift generator. Both only need shifts, xors and multiplications
with constants below 2**31, which every Taichi backend supports.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Substituted for a zero hash; xorshift would otherwise stay at zero forever.
_NONZERO_STATE = 0x6D2B79F5

# 2**-24: converts the top 24 bits of a u32 into a float in [0, 1).
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(seed: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Wang hash)."""
    x = (seed ^ ti.u32(61)) ^ (seed >> ti.u32(16))
    x *= ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x *= ti.u32(0x27D4EB2D)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def _nonzero(state: ti.u32) -> ti.u32:
    result = state
    if result == ti.u32(0):
        result = ti.u32(_NONZERO_STATE)
    return result


@ti.func
def seed_rng(pixel_i: ti.i32, pixel_j: ti.i32, sample: ti.i32, frame_seed: ti.i32) -> ti.u32:
    """Derive the RNG state of one camera path.

    Args:
        pixel_i: Pixel x-coordinate.
        pixel_j: Pixel y-coordinate.
        sample: Index of the sample within the pixel.
        frame_seed: Seed chosen by the caller for the current frame.

    Returns:
        A non-zero u32 state unique to (pixel, sample, frame_seed).
    """
    h = wang_hash(ti.cast(frame_seed, ti.u32))
    h = wang_hash(h ^ ti.cast(pixel_i, ti.u32))
    h = wang_hash(h ^ ti.cast(pixel_j, ti.u32))
    h = wang_hash(h ^ ti.cast(sample, ti.u32))
    return _nonzero(h)


@ti.func
def bounce_rng(path_seed: ti.u32, bounce: ti.i32) -> ti.u32:
    """Re-key a path's RNG state for the given bounce.

    Makes every draw a function of (pixel, sample, bounce, draw index)
    rather than of how many draws earlier bounces consumed.
    """
    return _nonzero(wang_hash(path_seed ^ wang_hash(ti.cast(bounce + 1, ti.u32))))


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state."""
    x = state
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    return x


@ti.func
def random_f32(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple (value, new_state).
    """
    new_state = next_u32(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a direction uniformly distributed on the unit sphere.

    Uses the inverse-CDF construction (uniform z, uniform azimuth) so the
    cost is fixed: no rejection loop.

    Returns:
        A tuple (unit_vector, new_state).
    """
    rng = state
    r1, rng = random_f32(rng)
    r2, rng = random_f32(rng)
    z = 1.0 - 2.0 * r1
    r = ti.sqrt(tm.max(0.0, 1.0 - z * z))
    phi = 2.0 * tm.pi * r2
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z), rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly distributed inside the unit disk (z = 0).

    Used for the lens offset of depth-of-field rays.

    Returns:
        A tuple (point, new_state) with point.x**2 + point.y**2 <= 1.
    """
    rng = state
    r1, rng = random_f32(rng)
    r2, rng = random_f32(rng)
    r = ti.sqrt(r1)
    theta = 2.0 * tm.pi * r2
    return vec3(r * ti.cos(theta), r * ti.sin(theta), 0.0), rng
