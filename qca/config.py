from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parent

PLACEHOLDER_API_KEYS = {"MISSING_API_KEY", "__API_KEY__"}


@dataclass(frozen=True)
class Settings:
    """Configuration container for models, prompts, and generation limits."""
    gemini_api_key: str
    gemini_model: str
    imagen_model: str
    prompts_dir: Path
    frontend_dir: Path
    analysis_temperature: float
    illustration_excerpt_chars: int
    log_level: str


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables and filesystem paths.
    Dependencies: Uses os.getenv and BASE_DIR for default paths.
    Failure Modes: Invalid ANALYSIS_TEMPERATURE/ILLUSTRATION_EXCERPT_CHARS raise ValueError.
        The API key is not validated here; see require_api_key.
    If Removed: App cannot configure models or prompts and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve prompt and frontend paths, then build Settings.
    frontend_path = os.getenv("FRONTEND_DIR")
    if frontend_path:
        frontend_dir = Path(frontend_path)
    else:
        frontend_dir = (BASE_DIR / ".." / "frontend").resolve()

    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        imagen_model=os.getenv("IMAGEN_MODEL", "imagen-3.0-generate-002"),
        prompts_dir=(BASE_DIR / "prompts").resolve(),
        frontend_dir=frontend_dir,
        analysis_temperature=float(os.getenv("ANALYSIS_TEMPERATURE", "0.4")),
        illustration_excerpt_chars=int(os.getenv("ILLUSTRATION_EXCERPT_CHARS", "200")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def require_api_key(api_key: Optional[str]) -> str:
    """Return the credential, or raise ConfigurationError if it is absent or a placeholder."""
    cleaned = (api_key or "").strip()
    if not cleaned or cleaned in PLACEHOLDER_API_KEYS:
        raise ConfigurationError(
            "Gemini API Key is not configured. Set GEMINI_API_KEY (or API_KEY) in the environment or .env file."
        )
    return cleaned
