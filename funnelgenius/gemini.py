"""
gemini.py — Thin async adapter over the google-genai SDK.

The pipeline only needs two capabilities:
  generate_json(prompt, schema, image)  → raw JSON text matching schema
  generate_image(prompt)                → raw image bytes

Anything implementing GenerationBackend can stand in for GeminiClient,
which is how the tests run without network access.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Type

from google import genai
from google.genai import types
from pydantic import BaseModel

from .config import Settings

logger = logging.getLogger(__name__)


class GenerationBackend(Protocol):
    async def generate_json(
        self,
        prompt: str,
        schema: Type[BaseModel],
        image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> str: ...

    async def generate_image(self, prompt: str) -> bytes: ...


class GeminiClient:
    """GenerationBackend backed by Gemini (text) and Imagen (images)."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client = genai.Client(api_key=settings.api_key)

    @classmethod
    def from_env(cls) -> "GeminiClient":
        return cls(Settings.from_env())

    async def generate_json(
        self,
        prompt: str,
        schema: Type[BaseModel],
        image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> str:
        if image:
            contents = [
                types.Part.from_bytes(data=image, mime_type=mime_type or "image/jpeg"),
                types.Part.from_text(text=prompt),
            ]
        else:
            contents = prompt

        logger.debug("generate_json model=%s schema=%s", self.settings.text_model, schema.__name__)
        response = await self._client.aio.models.generate_content(
            model=self.settings.text_model,
            contents=contents,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return (response.text or "").strip()

    async def generate_image(self, prompt: str) -> bytes:
        logger.debug("generate_image model=%s", self.settings.image_model)
        response = await self._client.aio.models.generate_images(
            model=self.settings.image_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type="image/jpeg",
                aspect_ratio="4:3",
            ),
        )
        if not response.generated_images:
            return b""
        image = response.generated_images[0].image
        return (image.image_bytes if image else None) or b""
