import asyncio
import io
import re
import zipfile

import pytest

from funnelgenius.errors import (
    GenerationError,
    ImageGenerationError,
    InputValidationError,
    PipelineStateError,
)
from funnelgenius.models import (
    AddonProduct,
    BrandOffer,
    CUSTOM_ANGLE,
    FunnelData,
    Guarantee,
    ProductDetails,
)
from funnelgenius.pipeline import (
    MSG_ANGLES,
    MSG_ASSEMBLE,
    MSG_COPY,
    MSG_IMAGES,
    FunnelPipeline,
    PipelineState,
)
from tests.conftest import FakeBackend, copy_payload, make_image_bytes


def _pipeline(product, backend, **kwargs):
    return FunnelPipeline(FunnelData(product=product), client=backend, **kwargs)


def test_happy_path_walks_every_state(product, backend):
    messages = []
    pipeline = _pipeline(product, backend, on_progress=messages.append)
    assert pipeline.state is PipelineState.IDLE

    asyncio.run(pipeline.generate_angles())
    assert pipeline.state is PipelineState.ANGLES_READY
    assert pipeline.data.marketing.selected_angle_title == "Seguridad"

    pipeline.set_brand(brand_name="EcoLux", price="29.99")
    archive = asyncio.run(pipeline.build_funnel())

    assert pipeline.state is PipelineState.COMPLETE
    assert archive == pipeline.archive
    assert len(pipeline.images) == 4
    assert messages == [MSG_ANGLES, MSG_COPY, MSG_IMAGES, MSG_ASSEMBLE]


def test_select_angle_only_from_batch(product, backend):
    pipeline = _pipeline(product, backend)
    asyncio.run(pipeline.generate_angles())

    pipeline.select_angle("Ahorro de energía")
    assert pipeline.data.marketing.selected_angle_title == "Ahorro de energía"
    with pytest.raises(InputValidationError):
        pipeline.select_angle("Inventado")
    assert pipeline.state is PipelineState.ANGLES_READY
    assert pipeline.data.marketing.selected_angle_title == "Ahorro de energía"


def test_custom_angle_must_have_text_before_copy(product, backend):
    pipeline = _pipeline(product, backend)
    asyncio.run(pipeline.generate_angles())
    pipeline.use_custom_angle("   ")

    with pytest.raises(InputValidationError):
        asyncio.run(pipeline.build_funnel())
    assert pipeline.state is PipelineState.ANGLES_READY

    pipeline.use_custom_angle("Regalo perfecto")
    assert pipeline.data.marketing.selected_angle_title == CUSTOM_ANGLE
    asyncio.run(pipeline.build_funnel())
    assert pipeline.state is PipelineState.COMPLETE


def test_angle_failure_moves_to_failed(product):
    backend = FakeBackend(json_replies={"AnglesOutput": "{}"})
    pipeline = _pipeline(product, backend)
    with pytest.raises(GenerationError):
        asyncio.run(pipeline.generate_angles())
    assert pipeline.state is PipelineState.FAILED
    assert pipeline.error


def test_invalid_product_fails_angle_step(backend):
    pipeline = FunnelPipeline(client=backend)
    with pytest.raises(InputValidationError):
        asyncio.run(pipeline.generate_angles())
    assert pipeline.state is PipelineState.FAILED


def test_image_failure_leaves_no_archive(product, backend):
    backend.image_replies = [b"ok", RuntimeError("boom")]
    pipeline = _pipeline(product, backend)
    asyncio.run(pipeline.generate_angles())
    with pytest.raises(ImageGenerationError):
        asyncio.run(pipeline.build_funnel())
    assert pipeline.state is PipelineState.FAILED
    assert pipeline.archive is None
    assert pipeline.images == []


def test_states_are_not_reentered(product, backend):
    pipeline = _pipeline(product, backend)
    with pytest.raises(PipelineStateError):
        asyncio.run(pipeline.build_funnel())

    asyncio.run(pipeline.generate_angles())
    with pytest.raises(PipelineStateError):
        asyncio.run(pipeline.generate_angles())

    asyncio.run(pipeline.build_funnel())
    with pytest.raises(PipelineStateError):
        asyncio.run(pipeline.build_funnel())


def test_product_locked_once_generation_begins(product, backend):
    pipeline = _pipeline(product, backend)
    asyncio.run(pipeline.generate_angles())
    with pytest.raises(PipelineStateError):
        pipeline.set_product(name="Otro")
    pipeline.set_addons(upsell=AddonProduct(enabled=True, name="Poste", price="15"))
    assert pipeline.data.addons.upsell.enabled


def test_restart_returns_to_idle(product, backend):
    pipeline = _pipeline(product, backend)
    pipeline.set_brand(brand_name="EcoLux")
    asyncio.run(pipeline.generate_angles())
    asyncio.run(pipeline.build_funnel())

    pipeline.restart(keep_inputs=True)
    assert pipeline.state is PipelineState.IDLE
    assert pipeline.data.product == product
    assert pipeline.data.brand.brand_name == "EcoLux"
    assert pipeline.data.marketing.angles == ()
    assert pipeline.archive is None and pipeline.copy is None

    pipeline.restart()
    assert pipeline.data.product.name == ""


def test_end_to_end_custom_angle_scenario():
    product = ProductDetails(
        image_bytes=make_image_bytes(),
        image_mime_type="image/jpeg",
        name="Lámpara Solar",
        details="Lámpara solar resistente al agua",
    )
    backend = FakeBackend(
        json_replies={
            "AnglesOutput": {
                "angles": [{"title": "Ahorro de energía", "description": "Ahorra cada noche."}]
            },
            "GeneratedCopy": copy_payload(),
        }
    )
    pipeline = FunnelPipeline(FunnelData(product=product), client=backend)
    asyncio.run(pipeline.generate_angles())
    assert pipeline.angles[0].recommended is True
    pipeline.use_custom_angle("Ahorro de energía")
    pipeline.set_brand(
        brand_name="EcoLux",
        price="29.99",
        free_shipping=True,
        guarantee=Guarantee(enabled=True, days=30),
    )
    archive = asyncio.run(pipeline.build_funnel())

    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        html = zf.read("index.html").decode("utf-8")
        generated = [n for n in zf.namelist() if n.startswith("images/generated-image-")]

    assert "EcoLux" in html
    assert "29.99" in html
    assert "30 días" in html
    assert "¡Envío Gratis" in html
    assert len(generated) == 4
    gallery = re.search(r'<section class="gallery">(.*?)</section>', html, re.S).group(1)
    assert re.findall(r'<img src="images/([^"]+)"', gallery) == [
        f"generated-image-{i}.jpg" for i in range(1, 5)
    ]


def test_injection_scenario_through_pipeline(backend):
    product = ProductDetails(
        image_bytes=make_image_bytes("PNG"),
        image_mime_type="image/png",
        name="<script>alert(1)</script>",
        details="Producto",
    )
    pipeline = FunnelPipeline(
        FunnelData(product=product, brand=BrandOffer(brand_name="X", price="1")),
        client=backend,
    )
    asyncio.run(pipeline.generate_angles())
    archive = asyncio.run(pipeline.build_funnel())
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        html = zf.read("index.html").decode("utf-8")
        assert "images/producto-original.png" in zf.namelist()
    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
