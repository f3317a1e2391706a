"""Anchor resolution: symbolic position references turned into coordinates.

An anchor points at a bone pivot or a cube center/origin, optionally offset.
Bones and cubes can themselves be placed by anchors, so resolution is a
mutual recursion over three kinds of keys (``anchor:<id>``, ``bone:<id>``,
``cube:<id>``). Each kind is memoized; a key already on the in-progress stack
means the reference graph has a cycle.
"""

import logging
from dataclasses import dataclass

from modelsync.errors import ModelSpecError
from modelsync.models import ModelSpec
from modelsync.services.geometry import add_vec3, box_around, box_center, box_size
from modelsync.services.model_state import NormalizedBone, NormalizedCube, Vec3
from modelsync.services.spec_validation import ANCHORS_REQUIRED_MESSAGE, has_anchor_refs

logger = logging.getLogger(__name__)

ZERO_OFFSET: Vec3 = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class CubePlacement:
    from_: Vec3
    to: Vec3
    origin: Vec3
    center: Vec3


class AnchorResolver:
    def __init__(
        self,
        model: ModelSpec,
        bones: dict[str, NormalizedBone],
        cubes: dict[str, NormalizedCube],
    ):
        self.bones = bones
        self.cubes = cubes
        self.anchors = {anchor.id: anchor for anchor in model.anchors}
        self._anchor_points: dict[str, Vec3] = {}
        self._bone_pivots: dict[str, Vec3] = {}
        self._cube_placements: dict[str, CubePlacement] = {}

    @staticmethod
    def _enter(stack: set[str], kind: str, item_id: str) -> str:
        key = f"{kind}:{item_id}"
        if key in stack:
            raise ModelSpecError(f"anchor cycle detected ({kind}:{item_id})")
        stack.add(key)
        return key

    def anchor_point(self, anchor_id: str, stack: set[str]) -> Vec3:
        if anchor_id in self._anchor_points:
            return self._anchor_points[anchor_id]
        key = self._enter(stack, "anchor", anchor_id)
        anchor = self.anchors.get(anchor_id)
        if anchor is None:
            raise ModelSpecError(f"anchor not found: {anchor_id}")
        target = anchor.target
        if target.bone_id:
            base = self.bone_pivot(target.bone_id, stack)
        elif target.cube_id:
            placement = self.cube_placement(target.cube_id, stack)
            cube = self.cubes[target.cube_id]
            if cube.explicit.origin or cube.origin_anchor_id:
                base = placement.origin
            else:
                base = placement.center
        else:
            raise ModelSpecError(
                f"anchor {anchor_id} target must reference exactly one of boneId or cubeId"
            )
        point = add_vec3(base, anchor.offset or ZERO_OFFSET)
        stack.discard(key)
        self._anchor_points[anchor_id] = point
        return point

    def bone_pivot(self, bone_id: str, stack: set[str]) -> Vec3:
        if bone_id in self._bone_pivots:
            return self._bone_pivots[bone_id]
        key = self._enter(stack, "bone", bone_id)
        bone = self.bones.get(bone_id)
        if bone is None:
            raise ModelSpecError(f"anchor target bone not found: {bone_id}")
        pivot = bone.pivot
        if bone.pivot_anchor_id:
            pivot = self.anchor_point(bone.pivot_anchor_id, stack)
        stack.discard(key)
        self._bone_pivots[bone_id] = pivot
        return pivot

    def cube_placement(self, cube_id: str, stack: set[str]) -> CubePlacement:
        if cube_id in self._cube_placements:
            return self._cube_placements[cube_id]
        key = self._enter(stack, "cube", cube_id)
        cube = self.cubes.get(cube_id)
        if cube is None:
            raise ModelSpecError(f"anchor target cube not found: {cube_id}")

        from_, to = cube.from_, cube.to
        center = box_center(from_, to)
        if cube.center_anchor_id:
            center = self.anchor_point(cube.center_anchor_id, stack)
            from_, to = box_around(center, box_size(cube.from_, cube.to))

        if cube.origin_anchor_id:
            origin = self.anchor_point(cube.origin_anchor_id, stack)
        elif cube.origin_from_spec:
            origin = cube.origin
        else:
            origin = center

        placement = CubePlacement(from_=from_, to=to, origin=origin, center=center)
        stack.discard(key)
        self._cube_placements[cube_id] = placement
        return placement

    def resolve(self) -> None:
        """Apply anchor positions to every anchored bone, then every anchored cube."""
        for bone in self.bones.values():
            if not bone.pivot_anchor_id:
                continue
            bone.pivot = self.anchor_point(bone.pivot_anchor_id, set())
            bone.explicit.pivot = True

        for cube in self.cubes.values():
            if not cube.center_anchor_id and not cube.origin_anchor_id:
                continue
            placement = self.cube_placement(cube.id, set())
            cube.from_ = placement.from_
            cube.to = placement.to
            cube.origin = placement.origin
            if cube.center_anchor_id:
                cube.explicit.from_to = True
            cube.explicit.origin = True

        logger.debug(
            f"Resolved {len(self._anchor_points)} anchor points "
            f"({len(self._bone_pivots)} bones, {len(self._cube_placements)} cubes)"
        )


def apply_anchors(
    model: ModelSpec,
    bones: dict[str, NormalizedBone],
    cubes: dict[str, NormalizedCube],
) -> None:
    """Resolve anchor references in place on the bone and cube maps.

    Raises ModelSpecError on the first missing target or reference cycle.
    """
    if not model.anchors:
        if has_anchor_refs(model):
            raise ModelSpecError(
                ANCHORS_REQUIRED_MESSAGE,
                fix="Add an anchors array that defines every referenced anchor id.",
            )
        return
    AnchorResolver(model, bones, cubes).resolve()
