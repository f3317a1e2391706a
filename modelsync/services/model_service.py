"""Model Service - normalize a desired spec and plan it against live state."""

import time
from typing import Optional

from modelsync import config
from modelsync.errors import ModelSpecError
from modelsync.models import ExistingBone, ExistingCube, ModelSpec
from modelsync.services.model_state import ModelPlan, NormalizedModel
from modelsync.services.normalizer import normalize_model_spec
from modelsync.services.planner import build_plan


def validate_model(
    model: ModelSpec,
    max_cubes: Optional[int] = None,
) -> tuple[bool, Optional[dict], Optional[str]]:
    """Validate a model spec by normalizing it.

    Anything ``normalize`` would reject is invalid here too. Counts are of
    the normalized model (template parts, injected root and instance copies
    included).

    Returns (valid, counts, error_message).
    """
    try:
        normalized = normalize(model, max_cubes)
    except ModelSpecError as e:
        return False, None, e.message
    return True, {
        "bones": len(normalized.bones),
        "cubes": len(normalized.cubes),
        "anchors": len(model.anchors),
    }, None


def normalize(model: ModelSpec, max_cubes: Optional[int] = None) -> NormalizedModel:
    """Normalize a desired spec. ``max_cubes`` defaults to the configured limit."""
    return normalize_model_spec(model, config.MAX_CUBES if max_cubes is None else max_cubes)


def plan(
    normalized: NormalizedModel,
    existing_bones: list[ExistingBone],
    existing_cubes: list[ExistingCube],
    mode: str = config.DEFAULT_MODE,
    delete_orphans: Optional[bool] = None,
) -> ModelPlan:
    """Plan ``normalized`` against live state.

    ``delete_orphans`` defaults to True in replace mode only.
    """
    if delete_orphans is None:
        delete_orphans = mode == "replace"
    return build_plan(normalized, existing_bones, existing_cubes, mode, delete_orphans)


def full_pipeline(
    model: ModelSpec,
    existing_bones: list[ExistingBone],
    existing_cubes: list[ExistingCube],
    mode: str = config.DEFAULT_MODE,
    delete_orphans: Optional[bool] = None,
    max_cubes: Optional[int] = None,
) -> tuple[NormalizedModel, ModelPlan, dict]:
    """Full pipeline: spec → normalize → plan.

    Returns (normalized, plan, stats).
    """
    timings = {}

    t0 = time.perf_counter()
    normalized = normalize(model, max_cubes)
    timings["normalize_ms"] = round((time.perf_counter() - t0) * 1000, 2)

    t0 = time.perf_counter()
    model_plan = plan(normalized, existing_bones, existing_cubes, mode, delete_orphans)
    timings["plan_ms"] = round((time.perf_counter() - t0) * 1000, 2)

    stats = {
        "bones": len(normalized.bones),
        "cubes": len(normalized.cubes),
        "ops": len(model_plan.ops),
        "timings": timings,
    }

    return normalized, model_plan, stats
