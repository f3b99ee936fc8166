"""
config.py — Runtime settings read from the environment (and .env).

Required env vars:
    GEMINI_API_KEY=...            (API_KEY is accepted as a fallback)

Optional:
    FUNNEL_TEXT_MODEL=gemini-2.5-flash
    FUNNEL_IMAGE_MODEL=imagen-4.0-generate-001
    FUNNEL_OUTPUT_DIR=outputs
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import GenerationError

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_OUTPUT_DIR = "outputs"


@dataclass(frozen=True)
class Settings:
    api_key: str
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY")
        if not api_key:
            raise GenerationError("API_KEY environment variable not set")
        return cls(
            api_key=api_key,
            text_model=env.get("FUNNEL_TEXT_MODEL") or DEFAULT_TEXT_MODEL,
            image_model=env.get("FUNNEL_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
            output_dir=Path(env.get("FUNNEL_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
        )
