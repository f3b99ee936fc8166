"""
Imagery — generates the lifestyle product photos for the gallery.

IMAGE_COUNT independent Imagen requests run concurrently. The step is
all-or-nothing: every request is awaited, and if any one of them failed
the whole step fails. Results keep request order so photo i always pairs
with alt text i.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .copywriter import IMAGE_COUNT
from .errors import ImageGenerationError
from .gemini import GeminiClient, GenerationBackend
from .models import FunnelData, GeneratedCopy, GeneratedImage, resolve_angle

logger = logging.getLogger(__name__)

IMAGE_PROMPT_TEMPLATE = (
    "Fotografía hiperrealista de alta calidad para e-commerce. Muestra el producto "
    "\"{name}\" en un contexto de estilo de vida que se alinea con el titular: "
    "\"{headline}\". La imagen debe evocar un sentimiento de {feeling}. El estilo "
    "visual debe ser brillante, limpio y profesional. El producto en la imagen debe "
    "ser visualmente consistente con la imagen original subida por el usuario. "
    "Sin texto ni logos en la imagen."
)


def fallback_alt_text(product_name: str) -> str:
    return f"Imagen de {product_name}"


def build_image_prompt(data: FunnelData, copy: GeneratedCopy) -> str:
    angle = resolve_angle(data.marketing)
    # a custom angle's title is a placeholder; its text carries the feeling
    feeling = angle.description if data.marketing.uses_custom_angle else angle.title
    return IMAGE_PROMPT_TEMPLATE.format(
        name=data.product.name,
        headline=copy.headline,
        feeling=feeling,
    )


def alt_text_for(index: int, data: FunnelData, copy: GeneratedCopy) -> str:
    if index < len(copy.image_alt_texts) and copy.image_alt_texts[index].strip():
        return copy.image_alt_texts[index]
    return fallback_alt_text(data.product.name)


async def _generate_one(client: GenerationBackend, prompt: str, index: int) -> bytes:
    image_bytes = await client.generate_image(prompt)
    if not image_bytes:
        raise ImageGenerationError(f"La imagen {index + 1} llegó vacía.")
    logger.debug("image %d ready (%d KB)", index + 1, len(image_bytes) // 1024)
    return image_bytes


async def derive_images(
    data: FunnelData,
    copy: GeneratedCopy,
    client: Optional[GenerationBackend] = None,
    count: int = IMAGE_COUNT,
) -> List[GeneratedImage]:
    """
    Generate `count` product photos paired with their alt texts.

    Raises:
        ImageGenerationError: any single request failed or returned nothing
    """
    client = client or GeminiClient.from_env()
    prompts = [build_image_prompt(data, copy) for _ in range(count)]

    results = await asyncio.gather(
        *(_generate_one(client, prompt, i) for i, prompt in enumerate(prompts)),
        return_exceptions=True,
    )

    failures = [(i, r) for i, r in enumerate(results) if isinstance(r, BaseException)]
    if failures:
        index, first = failures[0]
        logger.error(
            "%d of %d image requests failed (first: image %d: %s)",
            len(failures), count, index + 1, first,
        )
        raise ImageGenerationError() from first

    logger.info("Generated %d product images", count)
    return [
        GeneratedImage(image_bytes=image_bytes, alt=alt_text_for(i, data, copy))
        for i, image_bytes in enumerate(results)
    ]
