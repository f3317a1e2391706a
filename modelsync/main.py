"""modelsync FastAPI server: validate, normalize and plan model specs."""

import logging

from fastapi import FastAPI

from modelsync import __version__, config
from modelsync.errors import ModelSpecError
from modelsync.models import (
    ErrorInfo,
    HealthResponse,
    NormalizeRequest,
    NormalizeResponse,
    PlanRequest,
    PlanResponse,
    TemplateInfo,
    ValidateRequest,
    ValidateResponse,
)
from modelsync.services import model_service
from modelsync.services.geometry import is_zero_size
from modelsync.services.model_state import to_payload
from modelsync.templates import RIG_TEMPLATES

logger = logging.getLogger(__name__)

app = FastAPI(
    title="modelsync",
    description="Reconcile declarative bone/cube model specs into ordered edit plans",
    version=__version__,
)


def _error_info(e: ModelSpecError) -> ErrorInfo:
    return ErrorInfo(**e.to_dict())


# ── REST Endpoints ──────────────────────────────────────────────


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="ok",
        version=__version__,
        limits={"maxCubes": config.MAX_CUBES, "vectorEpsilon": config.VECTOR_EPSILON},
    )


@app.get("/api/templates", response_model=list[TemplateInfo])
async def templates():
    return [
        TemplateInfo(
            id=kind,
            bones=len(parts),
            cubes=sum(1 for part in parts if not is_zero_size(part.size)),
        )
        for kind, parts in RIG_TEMPLATES.items()
    ]


@app.post("/api/validate", response_model=ValidateResponse)
async def validate(req: ValidateRequest):
    valid, counts, error = model_service.validate_model(req.model, req.max_cubes)
    if not valid:
        return ValidateResponse(valid=False, error=error)
    return ValidateResponse(
        valid=True,
        bone_count=counts["bones"],
        cube_count=counts["cubes"],
        anchor_count=counts["anchors"],
    )


@app.post("/api/normalize", response_model=NormalizeResponse)
async def normalize(req: NormalizeRequest):
    try:
        normalized = model_service.normalize(req.model, req.max_cubes)
    except ModelSpecError as e:
        logger.info(f"Normalize rejected: {e.message}")
        return NormalizeResponse(error=_error_info(e))

    return NormalizeResponse(
        bones=to_payload(normalized.bones),
        cubes=to_payload(normalized.cubes),
        warnings=normalized.warnings,
    )


@app.post("/api/plan", response_model=PlanResponse)
async def plan(req: PlanRequest):
    try:
        normalized, model_plan, stats = model_service.full_pipeline(
            req.model,
            req.existing_bones,
            req.existing_cubes,
            mode=req.mode,
            delete_orphans=req.delete_orphans,
            max_cubes=req.max_cubes,
        )
    except ModelSpecError as e:
        logger.info(f"Plan rejected: {e.message}")
        return PlanResponse(error=_error_info(e))

    return PlanResponse(
        ops=to_payload(model_plan.ops),
        summary=to_payload(model_plan.summary),
        warnings=normalized.warnings,
        timings=stats["timings"],
    )


# ── Main ────────────────────────────────────────────────────────


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL)
    uvicorn.run(
        "modelsync.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=True,
    )
