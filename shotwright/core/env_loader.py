"""
Centralized environment variable loading for Shotwright.

Ensures .env is loaded once and consistently across the package.

Usage:
    from shotwright.core.env_loader import ensure_env_loaded
    ensure_env_loaded()
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_env_loaded = False


def get_project_root() -> Path:
    """Get the project root directory (where .env is located)."""
    # shotwright/core/env_loader.py -> two levels up
    return Path(__file__).parent.parent.parent


def ensure_env_loaded(env_path: Optional[Path] = None, override: bool = False) -> bool:
    """
    Ensure environment variables from .env are loaded.

    Args:
        env_path: Explicit .env location (defaults to the project root)
        override: If True, .env values replace variables already set in the process

    Returns:
        True if .env was loaded, False if already loaded or file not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    env_path = Path(env_path) if env_path else get_project_root() / ".env"
    if not env_path.exists():
        return False

    load_dotenv(env_path, override=override)
    _env_loaded = True
    return True


def get_env_value(key_name: str, fallback_keys: Optional[list] = None) -> Optional[str]:
    """
    Get a value from the environment, trying fallback names in order.

    Empty strings count as absent.
    """
    ensure_env_loaded()

    for name in [key_name, *(fallback_keys or [])]:
        value = os.getenv(name)
        if value:
            return value
    return None
