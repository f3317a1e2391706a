"""Spec normalization: desired model spec -> normalized bones and cubes."""

import logging

from modelsync.errors import ModelSpecError
from modelsync.models import BoneSpec, CubeSpec, ModelSpec
from modelsync.services.anchors import apply_anchors
from modelsync.services.geometry import (
    add_vec3,
    apply_bounds,
    box_around,
    box_center,
    is_zero_size,
    snap_vec3,
)
from modelsync.services.identity import resolve_id
from modelsync.services.instances import apply_instances, too_many_cubes
from modelsync.services.model_state import (
    DEFAULT_PIVOT,
    DEFAULT_ROTATION,
    DEFAULT_SCALE,
    BoneExplicit,
    CubeExplicit,
    NormalizedBone,
    NormalizedCube,
    NormalizedModel,
    Vec3,
)
from modelsync.services.spec_validation import validate_model_spec
from modelsync.templates import build_rig_template

logger = logging.getLogger(__name__)

ROOT_BONE_ID = "root"


def _vec3(value) -> Vec3:
    return (float(value[0]), float(value[1]), float(value[2]))


def _resolve_cube_bounds(spec: CubeSpec):
    if spec.from_ is not None and spec.to is not None:
        return _vec3(spec.from_), _vec3(spec.to)
    if spec.center is not None and spec.size is not None:
        return box_around(_vec3(spec.center), _vec3(spec.size))
    return None


class _Normalizer:
    def __init__(self, model: ModelSpec):
        self.model = model
        policies = model.policies
        self.id_policy = policies.id_policy
        self.default_parent_id = policies.default_parent_id
        self.enforce_root = policies.enforce_root
        self.grid = policies.snap.grid if policies.snap else None
        self.bounds = policies.bounds
        self.bones: dict[str, NormalizedBone] = {}
        self.cubes: dict[str, NormalizedCube] = {}

    def snap(self, vec) -> Vec3:
        return snap_vec3(_vec3(vec), self.grid)

    # ── template ──

    def add_template(self) -> None:
        for part in build_rig_template(self.model.rig_template):
            pivot = self.snap(part.pivot or DEFAULT_PIVOT)
            self.bones[part.id] = NormalizedBone(
                id=part.id,
                name=part.id,
                parent_id=part.parent,
                pivot=pivot,
                explicit=BoneExplicit(
                    parent_id=part.parent is not None,
                    pivot=part.pivot is not None,
                ),
            )
            if is_zero_size(part.size):
                continue
            self.cubes[part.id] = NormalizedCube(
                id=part.id,
                name=part.id,
                parent_id=part.id,
                from_=self.snap(part.offset),
                to=self.snap(add_vec3(part.offset, part.size)),
                origin=pivot,
                origin_from_spec=part.pivot is not None,
                inflate=part.inflate,
                mirror=part.mirror,
                explicit=CubeExplicit(
                    parent_id=True,
                    from_to=True,
                    origin=part.pivot is not None,
                    inflate=part.inflate is not None,
                    mirror=part.mirror is not None,
                ),
            )

    # ── caller specs ──

    def resolve_bone(self, spec: BoneSpec, index: int) -> NormalizedBone:
        if "parent_id" in spec.model_fields_set:
            parent_id = spec.parent_id
        else:
            parent_id = None if spec.id == ROOT_BONE_ID else self.default_parent_id
        bone_id = resolve_id("bone", spec.id, spec.name, parent_id, index, self.id_policy)
        return NormalizedBone(
            id=bone_id,
            name=spec.name if spec.name is not None else bone_id,
            parent_id=parent_id,
            pivot=self.snap(spec.pivot or DEFAULT_PIVOT),
            rotation=_vec3(spec.rotation or DEFAULT_ROTATION),
            scale=_vec3(spec.scale or DEFAULT_SCALE),
            pivot_anchor_id=spec.pivot_anchor_id,
            visibility=spec.visibility,
            explicit=BoneExplicit(
                name=spec.name is not None,
                parent_id="parent_id" in spec.model_fields_set,
                pivot=spec.pivot is not None or spec.pivot_anchor_id is not None,
                rotation=spec.rotation is not None,
                scale=spec.scale is not None,
                visibility=spec.visibility is not None,
            ),
        )

    def resolve_cube(self, spec: CubeSpec, index: int) -> NormalizedCube:
        parent_id = spec.parent_id or self.default_parent_id
        cube_id = resolve_id("cube", spec.id, spec.name, parent_id, index, self.id_policy)
        bounds = _resolve_cube_bounds(spec)
        if bounds is None:
            raise ModelSpecError(
                f"cube bounds missing for {spec.name or cube_id}",
                fix="Provide from/to or center/size.",
            )
        from_ = self.snap(bounds[0])
        to = self.snap(bounds[1])
        origin = self.snap(spec.origin if spec.origin is not None else box_center(from_, to))
        return NormalizedCube(
            id=cube_id,
            name=spec.name if spec.name is not None else cube_id,
            parent_id=parent_id,
            from_=from_,
            to=to,
            origin=origin,
            rotation=_vec3(spec.rotation or DEFAULT_ROTATION),
            origin_from_spec=spec.origin is not None,
            origin_anchor_id=spec.origin_anchor_id,
            center_anchor_id=spec.center_anchor_id,
            inflate=spec.inflate,
            mirror=spec.mirror,
            visibility=spec.visibility,
            box_uv=spec.box_uv,
            uv_offset=spec.uv_offset,
            explicit=CubeExplicit(
                name=spec.name is not None,
                parent_id=spec.parent_id is not None,
                from_to=True,
                origin=spec.origin is not None or spec.origin_anchor_id is not None,
                rotation=spec.rotation is not None,
                inflate=spec.inflate is not None,
                mirror=spec.mirror is not None,
                visibility=spec.visibility is not None,
                box_uv=spec.box_uv is not None,
                uv_offset=spec.uv_offset is not None,
            ),
        )

    def add_caller_specs(self) -> None:
        # The template may be overridden by id; the caller may not collide with itself.
        seen_bones: set[str] = set()
        for index, spec in enumerate(self.model.bones):
            bone = self.resolve_bone(spec, index)
            if bone.id in seen_bones:
                raise ModelSpecError(f"duplicate bone id: {bone.id}")
            seen_bones.add(bone.id)
            self.bones[bone.id] = bone

        seen_cubes: set[str] = set()
        for index, spec in enumerate(self.model.cubes):
            cube = self.resolve_cube(spec, index)
            if cube.id in seen_cubes:
                raise ModelSpecError(f"duplicate cube id: {cube.id}")
            seen_cubes.add(cube.id)
            self.cubes[cube.id] = cube

    def ensure_root(self) -> None:
        if self.enforce_root and ROOT_BONE_ID not in self.bones:
            self.bones[ROOT_BONE_ID] = NormalizedBone(id=ROOT_BONE_ID, name=ROOT_BONE_ID, parent_id=None)

    # ── invariants ──

    def check_unique_names(self) -> None:
        bone_names: set[str] = set()
        for bone in self.bones.values():
            if bone.name in bone_names:
                raise ModelSpecError(f"duplicate bone name: {bone.name}")
            bone_names.add(bone.name)
        cube_names: set[str] = set()
        for cube in self.cubes.values():
            if cube.name in cube_names:
                raise ModelSpecError(f"duplicate cube name: {cube.name}")
            cube_names.add(cube.name)

    def check_parents(self) -> None:
        for bone in self.bones.values():
            if bone.parent_id and bone.parent_id not in self.bones:
                raise ModelSpecError(
                    f"bone parent not found: {bone.parent_id} (bone {bone.id})",
                    fix="Define the parent bone or set enforceRoot to inject root.",
                )
        for cube in self.cubes.values():
            if cube.parent_id not in self.bones:
                raise ModelSpecError(
                    f"cube parent bone not found: {cube.parent_id} (cube {cube.id})",
                    fix="Set parentId to an existing bone id.",
                )

    # ── finish ──

    def place(self, vec: Vec3) -> Vec3:
        return apply_bounds(snap_vec3(vec, self.grid), self.bounds)

    def finalize(self, warnings: list[str]) -> NormalizedModel:
        for bone in self.bones.values():
            bone.pivot = self.place(bone.pivot)
        for cube in self.cubes.values():
            cube.from_ = self.place(cube.from_)
            cube.to = self.place(cube.to)
            cube.origin = self.place(cube.origin)
        return NormalizedModel(
            bones=list(self.bones.values()),
            cubes=list(self.cubes.values()),
            warnings=warnings,
        )


def normalize_model_spec(model: ModelSpec, max_cubes: int) -> NormalizedModel:
    """Normalize a desired model spec.

    Steps: validate anchor references, expand the rig template, resolve caller
    bones and cubes, inject ``root`` when enforced, check uniqueness and
    parents, resolve anchors, expand instances, enforce the cube ceiling, then
    snap and clamp every position.

    Raises ModelSpecError on the first fatal problem.
    """
    validate_model_spec(model)

    normalizer = _Normalizer(model)
    normalizer.add_template()
    normalizer.add_caller_specs()
    normalizer.ensure_root()
    normalizer.check_unique_names()
    normalizer.check_parents()

    apply_anchors(model, normalizer.bones, normalizer.cubes)

    warnings = apply_instances(model.instances, normalizer.cubes, max_cubes) if model.instances else []
    normalizer.check_unique_names()

    if len(normalizer.cubes) > max_cubes:
        raise too_many_cubes(len(normalizer.cubes), max_cubes)

    normalized = normalizer.finalize(warnings)
    logger.debug(
        f"Normalized {len(normalized.bones)} bones, {len(normalized.cubes)} cubes "
        f"({len(warnings)} warnings)"
    )
    return normalized
