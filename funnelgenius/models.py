"""
models.py — Everything the wizard collects, and everything Gemini returns.

User inputs are frozen dataclasses: the pipeline receives them by
reference and never mutates them. Each wizard step produces a new
FunnelData through one of the typed update_* helpers below.

AI outputs are pydantic models so the same class serves as the
response_schema sent to Gemini and as the validator for its reply.
"""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from .errors import InputValidationError

# Sentinel stored in MarketingChoice.selected_angle_title when the user
# writes their own angle instead of picking one from the batch.
CUSTOM_ANGLE = "__custom__"
CUSTOM_ANGLE_TITLE = "Personalizado"

MAX_NAME_LENGTH = 120
MAX_DETAILS_LENGTH = 300

ORIGINAL_IMAGE_STEM = "producto-original"

# mime type → (Pillow format, file extension)
SUPPORTED_IMAGE_TYPES = {
    "image/jpeg": ("JPEG", "jpg"),
    "image/png": ("PNG", "png"),
    "image/webp": ("WEBP", "webp"),
}


# ── Pydantic schema for structured Gemini output ─────────────────────────────

class MarketingAngle(BaseModel):
    title: str = Field(description="Título corto y pegadizo del ángulo de marketing")
    description: str = Field(description="Descripción de una sola oración")
    recommended: Optional[bool] = Field(
        default=None,
        description="true solo para el ángulo más prometedor",
    )


class AnglesOutput(BaseModel):
    angles: List[MarketingAngle]


class Benefit(BaseModel):
    icon: str = Field(description="Un solo emoji de unicode, ej: '✅'")
    title: str
    text: str


class Testimonial(BaseModel):
    name: str
    date: str = Field(description="Ej: '15 de Julio, 2024'")
    rating: int = Field(description="Un número entre 4 y 5")
    text: str


class GeneratedCopy(BaseModel):
    seo_title: str
    seo_description: str
    headline: str
    subheadline: str
    benefits: List[Benefit]
    testimonials: List[Testimonial]
    urgency_text: str
    cta_primary: str
    footer_text: str
    image_alt_texts: List[str]


# ── Wizard input model ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProductDetails:
    image_bytes: bytes = b""
    image_mime_type: str = ""
    name: str = ""
    details: str = ""

    @property
    def image_base64(self) -> str:
        return base64.b64encode(self.image_bytes).decode("ascii")

    @property
    def original_image_filename(self) -> str:
        """Fixed archive name of the uploaded photo, e.g. producto-original.jpg."""
        _, ext = SUPPORTED_IMAGE_TYPES.get(self.image_mime_type, ("JPEG", "jpg"))
        return f"{ORIGINAL_IMAGE_STEM}.{ext}"

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.image_bytes:
            missing.append("imagen")
        if not self.name.strip():
            missing.append("nombre")
        if not self.details.strip():
            missing.append("detalles")
        return missing

    @classmethod
    def from_file(cls, path: Path, name: str = "", details: str = "") -> "ProductDetails":
        """Load a product photo from disk and sniff its real format with Pillow."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise InputValidationError(f"No se pudo leer la imagen: {path}") from exc
        return cls(
            image_bytes=data,
            image_mime_type=sniff_image_mime_type(data),
            name=name,
            details=details,
        )


def sniff_image_mime_type(data: bytes) -> str:
    """Return the mime type of an uploaded image, or raise InputValidationError."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
    except (UnidentifiedImageError, OSError) as exc:
        raise InputValidationError("El archivo subido no es una imagen válida.") from exc

    for mime, (pil_format, _) in SUPPORTED_IMAGE_TYPES.items():
        if pil_format == fmt:
            return mime
    raise InputValidationError("Formato de imagen no soportado. Usa PNG, JPG o WEBP.")


@dataclass(frozen=True)
class MarketingChoice:
    angles: Tuple[MarketingAngle, ...] = ()
    selected_angle_title: str = ""
    custom_angle: str = ""

    @property
    def uses_custom_angle(self) -> bool:
        return self.selected_angle_title == CUSTOM_ANGLE


@dataclass(frozen=True)
class AddonProduct:
    """Order bump / upsell. Name and price only."""
    enabled: bool = False
    name: str = ""
    price: str = ""

    def describe(self) -> str:
        if not self.enabled:
            return "No activado"
        return f"{self.name} por ${self.price}"


@dataclass(frozen=True)
class Addons:
    order_bump: AddonProduct = field(default_factory=AddonProduct)
    upsell: AddonProduct = field(default_factory=AddonProduct)


@dataclass(frozen=True)
class Guarantee:
    enabled: bool = True
    days: int = 30


@dataclass(frozen=True)
class BrandOffer:
    brand_name: str = ""
    price: str = ""
    free_shipping: bool = True
    guarantee: Guarantee = field(default_factory=Guarantee)


@dataclass(frozen=True)
class FunnelData:
    product: ProductDetails = field(default_factory=ProductDetails)
    marketing: MarketingChoice = field(default_factory=MarketingChoice)
    addons: Addons = field(default_factory=Addons)
    brand: BrandOffer = field(default_factory=BrandOffer)


@dataclass(frozen=True)
class GeneratedImage:
    image_bytes: bytes
    alt: str

    @property
    def base64(self) -> str:
        return base64.b64encode(self.image_bytes).decode("ascii")


# ── Typed updates (one per wizard sub-object) ─────────────────────────────────

def initial_funnel_data() -> FunnelData:
    return FunnelData()


def update_product(data: FunnelData, **changes) -> FunnelData:
    return replace(data, product=replace(data.product, **changes))


def update_marketing(data: FunnelData, **changes) -> FunnelData:
    if "angles" in changes:
        changes["angles"] = tuple(changes["angles"])
    return replace(data, marketing=replace(data.marketing, **changes))


def update_addons(
    data: FunnelData,
    order_bump: Optional[AddonProduct] = None,
    upsell: Optional[AddonProduct] = None,
) -> FunnelData:
    addons = data.addons
    if order_bump is not None:
        addons = replace(addons, order_bump=order_bump)
    if upsell is not None:
        addons = replace(addons, upsell=upsell)
    return replace(data, addons=addons)


def update_brand(data: FunnelData, **changes) -> FunnelData:
    return replace(data, brand=replace(data.brand, **changes))


# ── Angle resolution ──────────────────────────────────────────────────────────

def resolve_angle(marketing: MarketingChoice) -> MarketingAngle:
    """
    Return the angle the copy should be written for.

    Either the batch entry whose title matches the selection, or the custom
    text wrapped as an equivalent angle record.
    """
    if marketing.uses_custom_angle:
        custom = marketing.custom_angle.strip()
        if not custom:
            raise InputValidationError("Escribe tu ángulo de marketing personalizado.")
        return MarketingAngle(title=CUSTOM_ANGLE_TITLE, description=custom)

    for angle in marketing.angles:
        if angle.title == marketing.selected_angle_title:
            return angle
    raise InputValidationError("Selecciona un ángulo de marketing.")
