"""Instance expansion: mirror, linear repeat and radial repeat of one source cube."""

import logging
import math
from dataclasses import replace
from typing import Optional

from modelsync.errors import ModelSpecError
from modelsync.models import MirrorInstance, RadialInstance, RepeatInstance
from modelsync.services.geometry import (
    AXIS_INDEX,
    add_vec3,
    box_around,
    box_center,
    box_size,
    mirror_rotation,
    rotate_point,
    scale_vec3,
    sub_vec3,
)
from modelsync.services.model_state import NormalizedCube, Vec3

logger = logging.getLogger(__name__)


def _copy_cube(source: NormalizedCube, cube_id: str, name: str, **changes) -> NormalizedCube:
    return replace(source, id=cube_id, name=name, explicit=replace(source.explicit), **changes)


def _mirror(instance: MirrorInstance, source: NormalizedCube) -> list[NormalizedCube]:
    idx = AXIS_INDEX[instance.axis]
    cube_id = instance.new_id or f"{source.id}_mirror_{instance.axis}"

    def reflect(value: float) -> float:
        return 2 * instance.about - value

    a = reflect(source.from_[idx])
    b = reflect(source.to[idx])
    from_ = list(source.from_)
    to = list(source.to)
    origin = list(source.origin)
    from_[idx] = min(a, b)
    to[idx] = max(a, b)
    origin[idx] = reflect(origin[idx])
    return [
        _copy_cube(
            source,
            cube_id,
            instance.new_name or cube_id,
            from_=tuple(from_),
            to=tuple(to),
            origin=tuple(origin),
            rotation=mirror_rotation(source.rotation, instance.axis),
        )
    ]


def _repeat(instance: RepeatInstance, source: NormalizedCube) -> list[NormalizedCube]:
    if instance.count <= 0:
        raise ModelSpecError(f"repeat count must be a positive integer (got {instance.count})")
    prefix = instance.prefix or source.id
    copies = []
    for step in range(1, instance.count + 1):
        cube_id = f"{prefix}_r{step}"
        offset = scale_vec3(instance.delta, step)
        copies.append(
            _copy_cube(
                source,
                cube_id,
                cube_id,
                from_=add_vec3(source.from_, offset),
                to=add_vec3(source.to, offset),
                origin=add_vec3(source.origin, offset),
            )
        )
    return copies


def _radial(instance: RadialInstance, source: NormalizedCube) -> list[NormalizedCube]:
    if instance.count <= 1:
        raise ModelSpecError(f"radial count must be an integer greater than 1 (got {instance.count})")
    center = instance.center
    size = box_size(source.from_, source.to)
    base_offset = sub_vec3(box_center(source.from_, source.to), center)
    offset_len = math.hypot(*base_offset)
    target_radius = max(0.0, instance.radius) if instance.radius is not None else offset_len

    if offset_len > 0:
        radial_offset: Vec3 = scale_vec3(base_offset, target_radius / offset_len)
    else:
        # Source sits on the center: with no radius every copy stays there.
        radial_offset = (target_radius, 0.0, 0.0)
    start = add_vec3(center, radial_offset)

    axis_idx = AXIS_INDEX[instance.axis]
    prefix = instance.prefix or source.id
    copies = []
    for step in range(1, instance.count + 1):
        angle = instance.start_angle + (360 / instance.count) * step
        cube_id = f"{prefix}_r{step}"
        from_, to = box_around(rotate_point(start, instance.axis, angle, center), size)
        rotation = list(source.rotation)
        rotation[axis_idx] += angle
        copies.append(
            _copy_cube(
                source,
                cube_id,
                cube_id,
                from_=from_,
                to=to,
                origin=rotate_point(source.origin, instance.axis, angle, center),
                rotation=tuple(rotation),
            )
        )
    return copies


EXPANDERS = {
    "mirror": _mirror,
    "repeat": _repeat,
    "radial": _radial,
}


def too_many_cubes(total: int, max_cubes: int) -> ModelSpecError:
    return ModelSpecError(
        f"too many cubes ({total} > {max_cubes})",
        fix="Reduce cubes or instance counts.",
    )


def _copy_count(instance) -> int:
    if instance.type == "mirror":
        return 1
    return instance.count


def apply_instances(
    instances: list,
    cubes: dict[str, NormalizedCube],
    max_cubes: Optional[int] = None,
) -> list[str]:
    """Append generated cubes to ``cubes`` and return warnings.

    Sources are looked up in ``cubes`` as it was before this pass, so a
    directive cannot use another directive's output as its source. Nothing is
    added unless every directive succeeds. With ``max_cubes`` a directive that
    would push the total past the limit fails before any copy is built.
    """
    warnings: list[str] = []
    generated: dict[str, NormalizedCube] = {}

    for instance in instances:
        expand = EXPANDERS.get(instance.type)
        if expand is None:
            message = f"unknown instance type skipped: {instance.type or 'unknown'}"
            logger.warning(message)
            warnings.append(message)
            continue
        source = cubes.get(instance.source_cube_id)
        if source is None:
            raise ModelSpecError(
                f"{instance.type} instance source cube not found: {instance.source_cube_id}"
            )
        if max_cubes is not None:
            total = len(cubes) + len(generated) + _copy_count(instance)
            if total > max_cubes:
                raise too_many_cubes(total, max_cubes)
        for cube in expand(instance, source):
            if cube.id in cubes or cube.id in generated:
                raise ModelSpecError(f"duplicate cube id: {cube.id}")
            generated[cube.id] = cube

    cubes.update(generated)
    logger.debug(f"Instance expansion added {len(generated)} cubes")
    return warnings
