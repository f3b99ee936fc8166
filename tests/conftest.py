import io
import json

import pytest
from PIL import Image

from funnelgenius.models import (
    AddonProduct,
    Addons,
    BrandOffer,
    FunnelData,
    GeneratedCopy,
    Guarantee,
    MarketingAngle,
    MarketingChoice,
    ProductDetails,
)


def make_image_bytes(fmt: str = "JPEG", color=(200, 120, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, format=fmt)
    return buf.getvalue()


def copy_payload(**overrides) -> dict:
    payload = {
        "seo_title": "Lámpara Solar EcoLux",
        "seo_description": "Ilumina tu jardín sin gastar en electricidad.",
        "headline": "Luz gratis cada noche",
        "subheadline": "Carga con el sol, brilla toda la noche.",
        "benefits": [
            {"icon": "☀️", "title": "Cero facturas", "text": "Funciona solo con energía solar."},
            {"icon": "💧", "title": "A prueba de lluvia", "text": "Certificación IP65."},
        ],
        "testimonials": [
            {"name": "Ana", "date": "15 de Julio, 2024", "rating": 5, "text": "Me encanta."},
            {"name": "Luis", "date": "2 de Agosto, 2024", "rating": 4, "text": "Muy buena."},
        ],
        "urgency_text": "¡Últimas unidades!",
        "cta_primary": "Comprar ahora",
        "footer_text": "Hecho con energía limpia.",
        "image_alt_texts": [
            "Lámpara en el jardín",
            "Lámpara en la terraza",
            "Lámpara junto a la piscina",
            "Lámpara en el camino",
        ],
    }
    payload.update(overrides)
    return payload


class FakeBackend:
    """In-memory GenerationBackend. Replies are keyed by schema class name."""

    def __init__(self, json_replies=None, image_replies=None):
        self.json_replies = dict(json_replies or {})
        self.image_replies = list(image_replies or [])
        self.json_calls = []
        self.image_prompts = []

    async def generate_json(self, prompt, schema, image=None, mime_type=None):
        self.json_calls.append(
            {"prompt": prompt, "schema": schema, "image": image, "mime_type": mime_type}
        )
        reply = self.json_replies[schema.__name__]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply

    async def generate_image(self, prompt):
        index = len(self.image_prompts)
        self.image_prompts.append(prompt)
        if self.image_replies:
            reply = self.image_replies[index % len(self.image_replies)]
        else:
            reply = f"jpeg-{index + 1}".encode()
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def product():
    return ProductDetails(
        image_bytes=make_image_bytes(),
        image_mime_type="image/jpeg",
        name="Lámpara Solar",
        details="Lámpara solar resistente al agua",
    )


@pytest.fixture
def funnel(product):
    return FunnelData(
        product=product,
        marketing=MarketingChoice(
            angles=(
                MarketingAngle(title="Ahorro de energía", description="Sin facturas.", recommended=True),
                MarketingAngle(title="Seguridad", description="Caminos iluminados."),
            ),
            selected_angle_title="Ahorro de energía",
        ),
        addons=Addons(
            order_bump=AddonProduct(enabled=True, name="Pack de baterías", price="9.99"),
            upsell=AddonProduct(),
        ),
        brand=BrandOffer(
            brand_name="EcoLux",
            price="29.99",
            free_shipping=True,
            guarantee=Guarantee(enabled=True, days=30),
        ),
    )


@pytest.fixture
def copy():
    return GeneratedCopy.model_validate(copy_payload())


@pytest.fixture
def backend():
    return FakeBackend(
        json_replies={
            "AnglesOutput": {
                "angles": [
                    {"title": "Ahorro de energía", "description": "Sin facturas.", "recommended": False},
                    {"title": "Seguridad", "description": "Caminos iluminados.", "recommended": True},
                ]
            },
            "GeneratedCopy": copy_payload(),
        }
    )
