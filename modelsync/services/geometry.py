"""Vector helpers shared by the normalizer, anchor resolver and planner."""

import math
from typing import Optional

from modelsync import config

Vec3 = tuple[float, float, float]

AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


def snap_value(value: float, grid: Optional[float]) -> float:
    if not grid or grid <= 0:
        return value
    # Half-up rounding; round() would use banker's rounding.
    return math.floor(value / grid + 0.5) * grid


def snap_vec3(vec: Vec3, grid: Optional[float]) -> Vec3:
    return (snap_value(vec[0], grid), snap_value(vec[1], grid), snap_value(vec[2], grid))


def apply_bounds(vec: Vec3, bounds) -> Vec3:
    """Clamp each component to ``bounds.min``/``bounds.max`` when bounds are set."""
    if bounds is None:
        return vec
    return tuple(
        min(max(vec[i], bounds.min[i]), bounds.max[i])
        for i in range(3)
    )


def add_vec3(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub_vec3(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale_vec3(vec: Vec3, factor: float) -> Vec3:
    return (vec[0] * factor, vec[1] * factor, vec[2] * factor)


def box_center(from_: Vec3, to: Vec3) -> Vec3:
    return ((from_[0] + to[0]) / 2, (from_[1] + to[1]) / 2, (from_[2] + to[2]) / 2)


def box_size(from_: Vec3, to: Vec3) -> Vec3:
    return sub_vec3(to, from_)


def box_around(center: Vec3, size: Vec3) -> tuple[Vec3, Vec3]:
    """Return (from, to) of a box with the given center and size."""
    half = scale_vec3(size, 0.5)
    return sub_vec3(center, half), add_vec3(center, half)


def is_zero_size(size: Vec3) -> bool:
    return size[0] == 0 and size[1] == 0 and size[2] == 0


def vec_equal(a: Vec3, b: Vec3, epsilon: Optional[float] = None) -> bool:
    eps = config.VECTOR_EPSILON if epsilon is None else epsilon
    return all(abs(a[i] - b[i]) <= eps for i in range(3))


def vec2_equal(a, b, epsilon: Optional[float] = None) -> bool:
    eps = config.VECTOR_EPSILON if epsilon is None else epsilon
    return abs(a[0] - b[0]) <= eps and abs(a[1] - b[1]) <= eps


def rotate_point(point: Vec3, axis: str, angle_deg: float, center: Vec3) -> Vec3:
    """Rotate ``point`` around a world axis passing through ``center``.

    Right-handed: a positive angle about Y turns +X towards -Z.
    """
    rad = math.radians(angle_deg)
    cos_a = math.cos(rad)
    sin_a = math.sin(rad)
    dx, dy, dz = sub_vec3(point, center)
    if axis == "x":
        rotated = (dx, dy * cos_a - dz * sin_a, dy * sin_a + dz * cos_a)
    elif axis == "y":
        rotated = (dx * cos_a + dz * sin_a, dy, -dx * sin_a + dz * cos_a)
    else:
        rotated = (dx * cos_a - dy * sin_a, dx * sin_a + dy * cos_a, dz)
    return add_vec3(center, rotated)


def mirror_rotation(rotation: Vec3, axis: str) -> Vec3:
    """Euler rotation of a shape mirrored across the plane normal to ``axis``."""
    rx, ry, rz = rotation
    if axis == "x":
        return (rx, -ry, -rz)
    if axis == "y":
        return (-rx, ry, -rz)
    return (-rx, -ry, rz)
