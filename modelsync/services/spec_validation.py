"""Structural checks on a desired model spec before it is normalized.

Pydantic already guarantees shapes (3-vectors, arrays, numbers). What is left
here are the cross-references inside one spec: anchor ids and the anchor
references made by bones and cubes.
"""

from typing import Optional

from modelsync.errors import ModelSpecError
from modelsync.models import ModelSpec

ANCHORS_REQUIRED_MESSAGE = "anchors required for id references"


def has_anchor_refs(model: ModelSpec) -> bool:
    return any(bone.pivot_anchor_id for bone in model.bones) or any(
        cube.center_anchor_id or cube.origin_anchor_id for cube in model.cubes
    )


def _check_anchor_ref(anchor_id: Optional[str], label: str, anchor_ids: set[str]) -> None:
    if anchor_id is None:
        return
    if not anchor_id.strip():
        raise ModelSpecError(f"{label} must be a non-empty string")
    if not anchor_ids:
        raise ModelSpecError(
            f"{ANCHORS_REQUIRED_MESSAGE} ({label})",
            fix="Add an anchors array that defines every referenced anchor id.",
        )
    if anchor_id not in anchor_ids:
        raise ModelSpecError(f"anchor not found: {anchor_id}")


def validate_model_spec(model: ModelSpec) -> None:
    """Raise ModelSpecError on the first inconsistent anchor definition or reference."""
    anchor_ids: set[str] = set()
    for anchor in model.anchors:
        if not anchor.id.strip():
            raise ModelSpecError("anchor id is required")
        if anchor.id in anchor_ids:
            raise ModelSpecError(f"duplicate anchor id: {anchor.id}")
        anchor_ids.add(anchor.id)
        bone_id = anchor.target.bone_id
        cube_id = anchor.target.cube_id
        if (bone_id is None) == (cube_id is None):
            raise ModelSpecError(
                f"anchor {anchor.id} target must reference exactly one of boneId or cubeId"
            )
        if bone_id is not None and not bone_id.strip():
            raise ModelSpecError(f"anchor {anchor.id} target boneId must be a non-empty string")
        if cube_id is not None and not cube_id.strip():
            raise ModelSpecError(f"anchor {anchor.id} target cubeId must be a non-empty string")

    for bone in model.bones:
        _check_anchor_ref(bone.pivot_anchor_id, "bone pivotAnchorId", anchor_ids)
    for cube in model.cubes:
        _check_anchor_ref(cube.center_anchor_id, "cube centerAnchorId", anchor_ids)
        _check_anchor_ref(cube.origin_anchor_id, "cube originAnchorId", anchor_ids)
