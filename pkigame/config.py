"""
Configuration module for pkigame.

Centralizes engine and logging settings with environment variable support
and validation.
"""

import os
from typing import Dict, Optional

# ============================================================
# Engine Configuration
# ============================================================

ENGINE = os.getenv("PKIGAME_ENGINE", "z3")  # z3|sampling

# Per-query solver timeout (milliseconds)
Z3_TIMEOUT_MS = int(os.getenv("PKIGAME_Z3_TIMEOUT_MS", "10000"))

# Sampling engine budget
SAMPLES = int(os.getenv("PKIGAME_SAMPLES", "2000"))
MAX_AMOUNT = int(os.getenv("PKIGAME_MAX_AMOUNT", "100"))


def _optional_int(value: str) -> Optional[int]:
    return int(value) if value.strip() else None


# Unset means a fresh seed per run
SEED = _optional_int(os.getenv("PKIGAME_SEED", ""))

ENGINE_NAMES = ("z3", "sampling")

# ============================================================
# Logging Configuration
# ============================================================

LOG_LEVEL = os.getenv("PKIGAME_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("PKIGAME_LOG_FORMAT", "json")  # json|text
LOG_FILE = os.getenv("PKIGAME_LOG_FILE", "") or None


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate the configured settings.
    Returns dict of setting -> valid.
    """
    return {
        "engine": ENGINE in ENGINE_NAMES,
        "z3_timeout_ms": Z3_TIMEOUT_MS > 0,
        "samples": SAMPLES > 0,
        "max_amount": MAX_AMOUNT > 0,
        "log_level": LOG_LEVEL.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        "log_format": LOG_FORMAT in ("json", "text"),
    }


# ============================================================
# Feature Flags
# ============================================================

def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("PKIGAME_DEBUG", "").lower() in ("1", "true", "yes")
