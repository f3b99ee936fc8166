"""
Copywriter — turns the collected funnel data into a creative brief and asks
Gemini for the full landing-page copy as one structured GeneratedCopy.

The reply is checked before it leaves this module: every text field must
be filled and every list (benefits, testimonials, alt texts) non-empty.
A page is never rendered from partial copy.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from .errors import GenerationError
from .gemini import GeminiClient, GenerationBackend
from .models import FunnelData, GeneratedCopy, resolve_angle

logger = logging.getLogger(__name__)

# Number of product photos generated per funnel; the copy asks for one
# alt text per photo.
IMAGE_COUNT = 4

COPY_ERROR = "Hubo un error al escribir el copy de tu página de ventas. Por favor, intenta de nuevo."

REQUIRED_TEXT_FIELDS = (
    "seo_title",
    "seo_description",
    "headline",
    "subheadline",
    "urgency_text",
    "cta_primary",
    "footer_text",
)
REQUIRED_LIST_FIELDS = ("benefits", "testimonials", "image_alt_texts")


def build_creative_brief(data: FunnelData) -> str:
    angle = resolve_angle(data.marketing)
    brand = data.brand
    guarantee = f"{brand.guarantee.days} días" if brand.guarantee.enabled else "No"

    return f"""\
CREATIVE BRIEF PARA FUNNELGENIUS AI
- Nombre del Producto: {data.product.name}
- Detalles del Producto: {data.product.details}
- Ángulo de Marketing Principal: "{angle.title}" - {angle.description}
- Nombre de la Marca: {brand.brand_name}
- Precio: {brand.price}
- Oferta: Envío Gratis: {'Sí' if brand.free_shipping else 'No'}. Garantía de Devolución: {guarantee}.
- Order Bump Opcional: {data.addons.order_bump.describe()}.
- Upsell Opcional: {data.addons.upsell.describe()}.

TAREA:
Eres un redactor experto en respuesta directa especializado en páginas de ventas \
de e-commerce de alta conversión. Usando el creative brief proporcionado, genera \
todo el texto necesario para la página. El tono debe ser persuasivo, claro y \
centrado en los beneficios. Genera la salida como un único objeto JSON válido con \
la estructura exacta definida en el esquema. Asegúrate de que los testimonios sean \
realistas, con una calificación entera de 4 o 5, y refuercen los beneficios clave. \
Los beneficios deben centrarse en la transformación del cliente, no solo en las \
características del producto. El titular debe ser un gancho poderoso relacionado \
con el ángulo de marketing. Crea exactamente {IMAGE_COUNT} textos alternativos para \
imágenes que muestren el producto en uso.
"""


async def derive_copy(
    data: FunnelData,
    client: Optional[GenerationBackend] = None,
) -> GeneratedCopy:
    """
    Generate the landing-page copy for the selected (or custom) angle.

    Raises:
        InputValidationError: no usable angle selection
        GenerationError:      provider failed or returned incomplete copy
    """
    brief = build_creative_brief(data)

    client = client or GeminiClient.from_env()
    try:
        raw = await client.generate_json(brief, GeneratedCopy)
    except Exception as exc:
        logger.error("Copy generation request failed: %s", exc)
        raise GenerationError(COPY_ERROR) from exc

    copy = parse_copy(raw)
    logger.info(
        "Copy ready: %d benefits, %d testimonials, %d alt texts",
        len(copy.benefits), len(copy.testimonials), len(copy.image_alt_texts),
    )
    return copy


def parse_copy(raw: str) -> GeneratedCopy:
    if not raw:
        raise GenerationError(COPY_ERROR)
    try:
        copy = GeneratedCopy.model_validate_json(raw)
    except ValidationError as exc:
        logger.error("Copy response failed schema validation: %s", exc)
        raise GenerationError(COPY_ERROR) from exc

    empty = [name for name in REQUIRED_TEXT_FIELDS if not getattr(copy, name).strip()]
    empty += [name for name in REQUIRED_LIST_FIELDS if not getattr(copy, name)]
    if empty:
        logger.error("Copy response has empty required fields: %s", ", ".join(empty))
        raise GenerationError(COPY_ERROR)
    return copy
