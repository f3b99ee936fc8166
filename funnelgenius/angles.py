"""
Angles — asks Gemini for a handful of distinct marketing angles for the
uploaded product (title, one-line rationale, recommended flag).

The batch goes through two named post-processing steps before the wizard
sees it:
  dedupe_angle_titles        — titles are selection keys, so keep them unique
  ensure_recommended_default — exactly one angle carries the recommended flag
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError

from .errors import GenerationError, InputValidationError
from .gemini import GeminiClient, GenerationBackend
from .models import AnglesOutput, MarketingAngle, ProductDetails

logger = logging.getLogger(__name__)

ANGLE_COUNT = 5

ANGLES_ERROR = "Hubo un error al generar los ángulos de marketing. Por favor, intenta de nuevo."

ANGLES_PROMPT_TEMPLATE = """\
Analiza el siguiente producto de e-commerce. Basado en la imagen y los detalles \
proporcionados, genera {count} ángulos de marketing atractivos y distintos. Cada \
ángulo debe apuntar a un punto de dolor, deseo o caso de uso específico del \
cliente. Para cada ángulo, proporciona un 'title' (título) corto y pegadizo y una \
'description' (descripción) de una oración. Designa el ángulo más prometedor como \
'recommended' estableciendo una bandera booleana; solo un ángulo puede ser \
recomendado. El nombre del producto es "{name}" y los detalles son "{details}". \
Proporciona la salida en formato JSON."""


def build_angles_prompt(product: ProductDetails) -> str:
    return ANGLES_PROMPT_TEMPLATE.format(
        count=ANGLE_COUNT,
        name=product.name.strip(),
        details=product.details.strip(),
    )


async def derive_angles(
    product: ProductDetails,
    client: Optional[GenerationBackend] = None,
) -> List[MarketingAngle]:
    """
    Generate the angle batch for a product.

    Raises:
        InputValidationError: image, name or details missing
        GenerationError:      provider failed or returned an unusable batch
    """
    missing = product.missing_fields()
    if missing:
        raise InputValidationError(
            f"Por favor, completa todos los campos del producto ({', '.join(missing)})."
        )

    client = client or GeminiClient.from_env()
    try:
        raw = await client.generate_json(
            build_angles_prompt(product),
            AnglesOutput,
            image=product.image_bytes,
            mime_type=product.image_mime_type,
        )
    except Exception as exc:
        logger.error("Angle generation request failed: %s", exc)
        raise GenerationError(ANGLES_ERROR) from exc

    angles = parse_angles(raw)
    angles = dedupe_angle_titles(angles)
    angles = ensure_recommended_default(angles)
    logger.info("Generated %d marketing angles for %r", len(angles), product.name)
    return angles


def parse_angles(raw: str) -> List[MarketingAngle]:
    """Validate the raw JSON reply; any shape drift becomes a GenerationError."""
    if not raw:
        raise GenerationError(ANGLES_ERROR)
    try:
        output = AnglesOutput.model_validate_json(raw)
    except ValidationError as exc:
        logger.error("Angle response failed schema validation: %s", exc)
        raise GenerationError(ANGLES_ERROR) from exc

    if not output.angles:
        raise GenerationError(ANGLES_ERROR)
    for angle in output.angles:
        if not angle.title.strip() or not angle.description.strip():
            raise GenerationError(ANGLES_ERROR)

    return [
        angle.model_copy(update={"title": angle.title.strip(), "description": angle.description.strip()})
        for angle in output.angles
    ]


def dedupe_angle_titles(angles: List[MarketingAngle]) -> List[MarketingAngle]:
    """Suffix repeated titles with their occurrence number: 'Ahorro', 'Ahorro (2)'."""
    seen = {}
    taken = {a.title for a in angles}
    result = []
    for angle in angles:
        count = seen.get(angle.title, 0) + 1
        seen[angle.title] = count
        if count == 1:
            result.append(angle)
            continue
        n = count
        title = f"{angle.title} ({n})"
        while title in taken:
            n += 1
            title = f"{angle.title} ({n})"
        taken.add(title)
        result.append(angle.model_copy(update={"title": title}))
    return result


def ensure_recommended_default(angles: List[MarketingAngle]) -> List[MarketingAngle]:
    """
    Make exactly one angle recommended.

    If Gemini flagged none, the first angle becomes the recommendation.
    If it flagged several, only the first flagged one keeps the flag.
    """
    if not angles:
        return angles
    flagged = next((i for i, a in enumerate(angles) if a.recommended), 0)
    return [
        a.model_copy(update={"recommended": i == flagged})
        for i, a in enumerate(angles)
    ]


def default_selection(angles: List[MarketingAngle]) -> str:
    """Title the wizard should pre-select for a batch."""
    if not angles:
        return ""
    return next((a.title for a in angles if a.recommended), angles[0].title)
