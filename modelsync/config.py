"""Configuration for the modelsync reconciliation service."""

import os
from dotenv import load_dotenv

load_dotenv()

# Limits
MAX_CUBES = int(os.getenv("MODELSYNC_MAX_CUBES", "2048"))
VECTOR_EPSILON = float(os.getenv("MODELSYNC_VECTOR_EPSILON", "1e-6"))

# Default settings
DEFAULT_MODE = os.getenv("MODELSYNC_DEFAULT_MODE", "merge")
DEFAULT_ID_POLICY = "stable_path"
DEFAULT_PARENT_ID = "root"
HASH_WIDTH = 8

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
