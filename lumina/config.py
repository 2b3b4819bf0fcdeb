"""Configuration read from environment variables."""

import os
from typing import Optional

# Logging settings
LOG_LEVEL = os.getenv("LUMINA_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LUMINA_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
LOG_FILE: Optional[str] = os.getenv("LUMINA_LOG_FILE") or None

# Physics bake defaults
BAKE_DURATION = float(os.getenv("LUMINA_BAKE_DURATION", "3.0"))
BAKE_FPS = int(os.getenv("LUMINA_BAKE_FPS", "60"))
GRAVITY = float(os.getenv("LUMINA_GRAVITY", "-9.81"))
SIMPLIFY_TOLERANCE = float(os.getenv("LUMINA_SIMPLIFY_TOLERANCE", "0.01"))
SOLVER_ITERATIONS = int(os.getenv("LUMINA_SOLVER_ITERATIONS", "10"))

# Keyframes closer than this (seconds) are treated as the same keyframe
KEYFRAME_TIME_TOLERANCE = 0.01

__all__ = [
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
    "BAKE_DURATION",
    "BAKE_FPS",
    "GRAVITY",
    "SIMPLIFY_TOLERANCE",
    "SOLVER_ITERATIONS",
    "KEYFRAME_TIME_TOLERANCE",
]
