"""Pydantic models for the modelsync reconciliation API."""

from typing import Annotated, Any, Optional, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

from modelsync import config

Vec3 = tuple[float, float, float]
Vec2 = tuple[float, float]
Axis = Literal["x", "y", "z"]
IdPolicy = Literal["explicit", "stable_path", "hash"]
PlanMode = Literal["create", "merge", "replace", "patch"]
RigTemplateKind = Literal["empty", "biped", "quadruped", "block_entity"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Desired spec ────────────────────────────────────────────────


class BoneSpec(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    parent_id: Optional[str] = None
    pivot: Optional[Vec3] = None
    pivot_anchor_id: Optional[str] = None
    rotation: Optional[Vec3] = None
    scale: Optional[Vec3] = None
    visibility: Optional[bool] = None


class CubeSpec(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    parent_id: Optional[str] = None
    from_: Optional[Vec3] = Field(None, alias="from")
    to: Optional[Vec3] = None
    center: Optional[Vec3] = None
    size: Optional[Vec3] = None
    origin: Optional[Vec3] = None
    origin_anchor_id: Optional[str] = None
    center_anchor_id: Optional[str] = None
    rotation: Optional[Vec3] = None
    inflate: Optional[float] = None
    mirror: Optional[bool] = None
    visibility: Optional[bool] = None
    box_uv: Optional[bool] = None
    uv_offset: Optional[Vec2] = None


class AnchorTarget(CamelModel):
    bone_id: Optional[str] = None
    cube_id: Optional[str] = None


class AnchorSpec(CamelModel):
    id: str
    target: AnchorTarget = Field(default_factory=AnchorTarget)
    offset: Optional[Vec3] = None


class MirrorInstance(CamelModel):
    type: Literal["mirror"] = "mirror"
    source_cube_id: str
    axis: Axis = "x"
    about: float = 0.0
    new_id: Optional[str] = None
    new_name: Optional[str] = None


class RepeatInstance(CamelModel):
    type: Literal["repeat"] = "repeat"
    source_cube_id: str
    count: int
    delta: Vec3 = (0.0, 0.0, 0.0)
    prefix: Optional[str] = None


class RadialInstance(CamelModel):
    type: Literal["radial"] = "radial"
    source_cube_id: str
    count: int
    axis: Axis = "y"
    center: Vec3 = (0.0, 0.0, 0.0)
    radius: Optional[float] = None
    start_angle: float = 0.0
    prefix: Optional[str] = None


class UnknownInstance(CamelModel):
    """Directive kind this engine does not know; skipped with a warning."""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None


INSTANCE_KINDS = {"mirror", "repeat", "radial"}


def _instance_kind(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in INSTANCE_KINDS else "unknown"


Instance = Annotated[
    Union[
        Annotated[MirrorInstance, Tag("mirror")],
        Annotated[RepeatInstance, Tag("repeat")],
        Annotated[RadialInstance, Tag("radial")],
        Annotated[UnknownInstance, Tag("unknown")],
    ],
    Discriminator(_instance_kind),
]


class SnapPolicy(CamelModel):
    grid: Optional[float] = Field(None, gt=0)


class BoundsPolicy(CamelModel):
    min: Vec3
    max: Vec3


class ModelPolicies(CamelModel):
    id_policy: IdPolicy = config.DEFAULT_ID_POLICY
    default_parent_id: str = config.DEFAULT_PARENT_ID
    enforce_root: bool = True
    snap: Optional[SnapPolicy] = None
    bounds: Optional[BoundsPolicy] = None


class ModelSpec(CamelModel):
    rig_template: RigTemplateKind = "empty"
    bones: list[BoneSpec] = []
    cubes: list[CubeSpec] = []
    anchors: list[AnchorSpec] = []
    instances: list[Instance] = []
    policies: ModelPolicies = Field(default_factory=ModelPolicies)


# ── Existing live state ─────────────────────────────────────────


class ExistingBone(CamelModel):
    id: Optional[str] = None
    name: str
    parent: Optional[str] = None
    pivot: Vec3 = (0.0, 0.0, 0.0)
    rotation: Optional[Vec3] = None
    scale: Optional[Vec3] = None
    visibility: Optional[bool] = None


class ExistingCube(CamelModel):
    id: Optional[str] = None
    name: str
    bone: str
    from_: Vec3 = Field(..., alias="from")
    to: Vec3
    origin: Optional[Vec3] = None
    rotation: Optional[Vec3] = None
    inflate: Optional[float] = None
    mirror: Optional[bool] = None
    visibility: Optional[bool] = None
    box_uv: Optional[bool] = None
    uv_offset: Optional[Vec2] = None


# ── API requests / responses ────────────────────────────────────


class ErrorInfo(CamelModel):
    code: str = "invalid_payload"
    message: str
    fix: Optional[str] = None


class ValidateRequest(CamelModel):
    model: ModelSpec = Field(..., description="Desired model spec to validate")
    max_cubes: Optional[int] = Field(None, ge=1)


class ValidateResponse(CamelModel):
    valid: bool
    bone_count: Optional[int] = None
    cube_count: Optional[int] = None
    anchor_count: Optional[int] = None
    error: Optional[str] = None


class NormalizeRequest(CamelModel):
    model: ModelSpec = Field(..., description="Desired model spec")
    max_cubes: Optional[int] = Field(None, ge=1)


class NormalizeResponse(CamelModel):
    bones: list[dict] = []
    cubes: list[dict] = []
    warnings: list[str] = []
    error: Optional[ErrorInfo] = None


class PlanRequest(CamelModel):
    model: ModelSpec = Field(..., description="Desired model spec")
    existing_bones: list[ExistingBone] = []
    existing_cubes: list[ExistingCube] = []
    mode: PlanMode = "merge"
    delete_orphans: Optional[bool] = None
    max_cubes: Optional[int] = Field(None, ge=1)


class PlanResponse(CamelModel):
    ops: list[dict] = []
    summary: Optional[dict] = None
    warnings: list[str] = []
    timings: Optional[dict] = None
    error: Optional[ErrorInfo] = None


class TemplateInfo(CamelModel):
    id: str
    bones: int
    cubes: int


class HealthResponse(CamelModel):
    status: str = "ok"
    version: str = ""
    limits: dict = {}
