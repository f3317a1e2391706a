__version__ = "0.1.0"

from modelsync.errors import ModelSpecError
from modelsync.services.model_service import full_pipeline, normalize, plan, validate_model

__all__ = [
    "__version__",
    "ModelSpecError",
    "normalize",
    "plan",
    "full_pipeline",
    "validate_model",
]
