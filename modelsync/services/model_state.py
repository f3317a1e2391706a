"""Normalized model entities and plan operations.

These live only for the duration of one normalize/plan call. Every attribute
a caller may set has a matching flag on the entity's ``explicit`` record; the
planner reads those flags to decide which attributes merge-mode may touch.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Optional, Union

from pydantic.alias_generators import to_camel

Vec3 = tuple[float, float, float]
Vec2 = tuple[float, float]

DEFAULT_PIVOT: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_ROTATION: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_SCALE: Vec3 = (1.0, 1.0, 1.0)


@dataclass
class BoneExplicit:
    name: bool = False
    parent_id: bool = False
    pivot: bool = False
    rotation: bool = False
    scale: bool = False
    visibility: bool = False


@dataclass
class CubeExplicit:
    name: bool = False
    parent_id: bool = False
    from_to: bool = False
    origin: bool = False
    rotation: bool = False
    inflate: bool = False
    mirror: bool = False
    visibility: bool = False
    box_uv: bool = False
    uv_offset: bool = False


@dataclass
class NormalizedBone:
    id: str
    name: str
    parent_id: Optional[str]
    pivot: Vec3 = DEFAULT_PIVOT
    rotation: Vec3 = DEFAULT_ROTATION
    scale: Vec3 = DEFAULT_SCALE
    pivot_anchor_id: Optional[str] = None
    visibility: Optional[bool] = None
    explicit: BoneExplicit = field(default_factory=BoneExplicit)


@dataclass
class NormalizedCube:
    id: str
    name: str
    parent_id: str
    from_: Vec3
    to: Vec3
    origin: Vec3
    rotation: Vec3 = DEFAULT_ROTATION
    origin_from_spec: bool = False
    origin_anchor_id: Optional[str] = None
    center_anchor_id: Optional[str] = None
    inflate: Optional[float] = None
    mirror: Optional[bool] = None
    visibility: Optional[bool] = None
    box_uv: Optional[bool] = None
    uv_offset: Optional[Vec2] = None
    explicit: CubeExplicit = field(default_factory=CubeExplicit)


@dataclass
class NormalizedModel:
    bones: list[NormalizedBone]
    cubes: list[NormalizedCube]
    warnings: list[str] = field(default_factory=list)


# ── Plan operations ─────────────────────────────────────────────


@dataclass
class CreateBoneOp:
    bone: NormalizedBone
    op: str = "create_bone"


@dataclass
class UpdateBoneOp:
    bone: NormalizedBone
    changes: dict[str, Any]
    op: str = "update_bone"


@dataclass
class DeleteBoneOp:
    id: Optional[str]
    name: str
    op: str = "delete_bone"


@dataclass
class CreateCubeOp:
    cube: NormalizedCube
    op: str = "create_cube"


@dataclass
class UpdateCubeOp:
    cube: NormalizedCube
    changes: dict[str, Any]
    op: str = "update_cube"


@dataclass
class DeleteCubeOp:
    id: Optional[str]
    name: str
    op: str = "delete_cube"


PlanOp = Union[CreateBoneOp, UpdateBoneOp, DeleteBoneOp, CreateCubeOp, UpdateCubeOp, DeleteCubeOp]


@dataclass
class PlanSummary:
    create_bones: int = 0
    update_bones: int = 0
    delete_bones: int = 0
    create_cubes: int = 0
    update_cubes: int = 0
    delete_cubes: int = 0


@dataclass
class ModelPlan:
    ops: list[PlanOp]
    summary: PlanSummary


def _wire_key(name: str) -> str:
    return to_camel(name.rstrip("_"))


def to_payload(value: Any) -> Any:
    """Convert entities, ops and change records into camelCase JSON data."""
    if is_dataclass(value) and not isinstance(value, type):
        return {_wire_key(f.name): to_payload(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {_wire_key(key): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    return value
