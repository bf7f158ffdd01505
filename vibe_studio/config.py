"""
Vibe Studio Configuration

Handles environment configuration and secure path resolution.
"""

import os
from pathlib import Path


# Server configuration
HOST = os.getenv("VIBE_HOST", "127.0.0.1")
PORT = int(os.getenv("VIBE_PORT", "7777"))
LOG_LEVEL = os.getenv("VIBE_LOG_LEVEL", "INFO").upper()

# AI provider (Gemini generateContent REST API)
# The key is injected into the provider at startup, never looked up later.
CREDENTIAL_NAME = "GEMINI_API_KEY"
GEMINI_API_KEY = os.getenv(CREDENTIAL_NAME, "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
AI_TIMEOUT = float(os.getenv("VIBE_AI_TIMEOUT", "120"))

# Quiet period before the assistant explains the active file
EXPLAIN_DEBOUNCE_SECONDS = float(os.getenv("VIBE_EXPLAIN_DEBOUNCE", "1.5"))

# Workspace root - folders can only be opened beneath it
# Can be overridden with VIBE_WORKSPACE environment variable
DEFAULT_WORKSPACE = Path.home() / "Code"
WORKSPACE_ROOT = Path(os.getenv("VIBE_WORKSPACE", str(DEFAULT_WORKSPACE))).resolve()

# Ensure workspace exists
WORKSPACE_ROOT.mkdir(parents=True, exist_ok=True)


def resolve_path(relative_or_abs: str) -> Path:
    """
    Resolve a path safely within the workspace.

    Args:
        relative_or_abs: Path string (relative or absolute)

    Returns:
        Resolved absolute Path object

    Raises:
        ValueError: If resolved path is outside workspace
    """
    p = Path(relative_or_abs)

    # If not absolute, make it relative to workspace
    if not p.is_absolute():
        p = WORKSPACE_ROOT / p

    # Resolve to absolute path (handles .. and symlinks)
    p = p.resolve()

    try:
        p.relative_to(WORKSPACE_ROOT)
    except ValueError:
        raise ValueError(
            f"Path '{p}' is outside workspace root '{WORKSPACE_ROOT}'. "
            "Access denied for security."
        )

    return p


def get_workspace_root() -> Path:
    """Get the configured workspace root directory."""
    return WORKSPACE_ROOT
