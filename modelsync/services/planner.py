"""Diff planning: normalized desired model vs. existing live state."""

import logging
from typing import Any, Optional

from modelsync.errors import ModelSpecError
from modelsync.models import ExistingBone, ExistingCube
from modelsync.services.geometry import box_center, vec2_equal, vec_equal
from modelsync.services.model_state import (
    DEFAULT_ROTATION,
    DEFAULT_SCALE,
    CreateBoneOp,
    CreateCubeOp,
    DeleteBoneOp,
    DeleteCubeOp,
    ModelPlan,
    NormalizedBone,
    NormalizedCube,
    NormalizedModel,
    PlanOp,
    PlanSummary,
    UpdateBoneOp,
    UpdateCubeOp,
)
from modelsync.services.sequencer import sort_ops

logger = logging.getLogger(__name__)

PLAN_MODES = ("create", "merge", "replace", "patch")
ROOT_BONE_ID = "root"


def compute_bone_changes(
    bone: NormalizedBone,
    existing: ExistingBone,
    mode: str,
    bone_names: dict[str, str],
) -> Optional[dict[str, Any]]:
    """Changed attributes of ``bone``; None when nothing differs.

    Outside replace mode only attributes the caller set explicitly are compared.
    """
    every = mode == "replace"
    explicit = bone.explicit
    changes: dict[str, Any] = {}

    # Existing state refers to parents by name.
    desired_parent = bone_names.get(bone.parent_id, bone.parent_id) if bone.parent_id else None
    if desired_parent is None:
        parent_changed = bool(existing.parent)
    else:
        parent_changed = desired_parent != existing.parent

    if (every or explicit.parent_id) and parent_changed:
        changes["parent_id"] = bone.parent_id
        if bone.parent_id is None:
            changes["parent_root"] = True
    if (every or explicit.name) and bone.name != existing.name:
        changes["new_name"] = bone.name
    if (every or explicit.pivot) and not vec_equal(bone.pivot, existing.pivot):
        changes["pivot"] = bone.pivot
    if (every or explicit.rotation) and not vec_equal(bone.rotation, existing.rotation or DEFAULT_ROTATION):
        changes["rotation"] = bone.rotation
    if (every or explicit.scale) and not vec_equal(bone.scale, existing.scale or DEFAULT_SCALE):
        changes["scale"] = bone.scale
    if (every or explicit.visibility) and bone.visibility != existing.visibility:
        changes["visibility"] = bone.visibility

    return changes or None


def compute_cube_changes(
    cube: NormalizedCube,
    existing: ExistingCube,
    mode: str,
    bone_names: dict[str, str],
) -> Optional[dict[str, Any]]:
    """Changed attributes of ``cube``; None when nothing differs."""
    every = mode == "replace"
    explicit = cube.explicit
    changes: dict[str, Any] = {}

    desired_parent = bone_names.get(cube.parent_id, cube.parent_id)
    if (every or explicit.parent_id) and desired_parent != existing.bone:
        changes["parent_id"] = cube.parent_id
        if cube.parent_id == ROOT_BONE_ID:
            changes["bone_root"] = True
    if (every or explicit.name) and cube.name != existing.name:
        changes["new_name"] = cube.name
    if (every or explicit.from_to) and (
        not vec_equal(cube.from_, existing.from_) or not vec_equal(cube.to, existing.to)
    ):
        changes["from"] = cube.from_
        changes["to"] = cube.to
    if every or explicit.origin:
        existing_origin = existing.origin or box_center(existing.from_, existing.to)
        if not vec_equal(cube.origin, existing_origin):
            changes["origin"] = cube.origin
    if (every or explicit.rotation) and not vec_equal(cube.rotation, existing.rotation or DEFAULT_ROTATION):
        changes["rotation"] = cube.rotation
    if (every or explicit.inflate) and cube.inflate != existing.inflate:
        changes["inflate"] = cube.inflate
    if (every or explicit.mirror) and cube.mirror != existing.mirror:
        changes["mirror"] = cube.mirror
    if (every or explicit.visibility) and cube.visibility != existing.visibility:
        changes["visibility"] = cube.visibility
    if (every or explicit.box_uv) and cube.box_uv != existing.box_uv:
        changes["box_uv"] = cube.box_uv
    if (every or explicit.uv_offset) and cube.uv_offset is not None:
        if existing.uv_offset is None or not vec2_equal(cube.uv_offset, existing.uv_offset):
            changes["uv_offset"] = cube.uv_offset

    return changes or None


def _match(item_id: Optional[str], name: str, by_id: dict, by_name: dict):
    if item_id and item_id in by_id:
        return by_id[item_id]
    return by_name.get(name)


def build_plan(
    desired: NormalizedModel,
    existing_bones: list[ExistingBone],
    existing_cubes: list[ExistingCube],
    mode: str,
    delete_orphans: bool,
) -> ModelPlan:
    """Compute the ordered create/update/delete plan.

    Desired entities match existing ones by id first, then by name.
    ``create`` fails on any match, ``patch`` fails on any miss. With
    ``delete_orphans`` every existing entity whose id is not desired is
    deleted, except id-less entities whose name is still desired.

    Raises ModelSpecError on existence mismatches.
    """
    if mode not in PLAN_MODES:
        raise ModelSpecError(f"unknown plan mode: {mode}", fix=f"Use one of: {', '.join(PLAN_MODES)}")

    bone_by_id = {bone.id: bone for bone in existing_bones if bone.id}
    bone_by_name = {bone.name: bone for bone in existing_bones}
    cube_by_id = {cube.id: cube for cube in existing_cubes if cube.id}
    cube_by_name = {cube.name: cube for cube in existing_cubes}
    bone_names = {bone.id: bone.name for bone in desired.bones}

    ops: list[PlanOp] = []
    summary = PlanSummary()

    for bone in desired.bones:
        existing = _match(bone.id, bone.name, bone_by_id, bone_by_name)
        if existing is None:
            if mode == "patch":
                raise ModelSpecError(f"bone not found: {bone.name}", fix="Use mode merge to create it.")
            ops.append(CreateBoneOp(bone=bone))
            summary.create_bones += 1
            continue
        if mode == "create":
            raise ModelSpecError(f"bone already exists: {bone.name}", fix="Use mode merge or replace.")
        changes = compute_bone_changes(bone, existing, mode, bone_names)
        if changes:
            ops.append(UpdateBoneOp(bone=bone, changes=changes))
            summary.update_bones += 1

    for cube in desired.cubes:
        existing = _match(cube.id, cube.name, cube_by_id, cube_by_name)
        if existing is None:
            if mode == "patch":
                raise ModelSpecError(f"cube not found: {cube.name}", fix="Use mode merge to create it.")
            ops.append(CreateCubeOp(cube=cube))
            summary.create_cubes += 1
            continue
        if mode == "create":
            raise ModelSpecError(f"cube already exists: {cube.name}", fix="Use mode merge or replace.")
        changes = compute_cube_changes(cube, existing, mode, bone_names)
        if changes:
            ops.append(UpdateCubeOp(cube=cube, changes=changes))
            summary.update_cubes += 1

    if delete_orphans:
        desired_cube_ids = {cube.id for cube in desired.cubes}
        desired_cube_names = {cube.name for cube in desired.cubes}
        for cube in existing_cubes:
            if cube.id and cube.id in desired_cube_ids:
                continue
            if not cube.id and cube.name in desired_cube_names:
                continue
            ops.append(DeleteCubeOp(id=cube.id, name=cube.name))
            summary.delete_cubes += 1

        desired_bone_ids = {bone.id for bone in desired.bones}
        desired_bone_names = {bone.name for bone in desired.bones}
        for bone in existing_bones:
            if bone.id and bone.id in desired_bone_ids:
                continue
            if not bone.id and bone.name in desired_bone_names:
                continue
            ops.append(DeleteBoneOp(id=bone.id, name=bone.name))
            summary.delete_bones += 1

    logger.info(
        f"Plan ({mode}): bones +{summary.create_bones} ~{summary.update_bones} -{summary.delete_bones}, "
        f"cubes +{summary.create_cubes} ~{summary.update_cubes} -{summary.delete_cubes}"
    )
    return ModelPlan(ops=sort_ops(ops, desired.bones), summary=summary)
