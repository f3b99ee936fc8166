import asyncio

import pytest

from funnelgenius.errors import ImageGenerationError
from funnelgenius.imagery import build_image_prompt, derive_images
from funnelgenius.models import CUSTOM_ANGLE, GeneratedCopy, update_marketing
from tests.conftest import FakeBackend, copy_payload


class StaggeredBackend(FakeBackend):
    """Finishes requests in reverse issue order."""

    async def generate_image(self, prompt):
        index = len(self.image_prompts)
        self.image_prompts.append(prompt)
        await asyncio.sleep(0.01 * (4 - index))
        return f"img-{index}".encode()


class CountingFailBackend(FakeBackend):
    """Fails the second request; records how many requests completed."""

    def __init__(self):
        super().__init__()
        self.completed = 0

    async def generate_image(self, prompt):
        index = len(self.image_prompts)
        self.image_prompts.append(prompt)
        if index == 1:
            raise RuntimeError("quota exceeded")
        await asyncio.sleep(0.01)
        self.completed += 1
        return b"ok"


def test_prompt_mentions_product_headline_and_angle(funnel, copy):
    prompt = build_image_prompt(funnel, copy)
    assert '"Lámpara Solar"' in prompt
    assert '"Luz gratis cada noche"' in prompt
    assert "Ahorro de energía" in prompt
    assert "Sin texto ni logos" in prompt
    assert "consistente con la imagen original" in prompt


def test_prompt_uses_custom_angle_text(funnel, copy):
    data = update_marketing(funnel, selected_angle_title=CUSTOM_ANGLE, custom_angle="tranquilidad")
    assert "sentimiento de tranquilidad" in build_image_prompt(data, copy)


def test_issues_four_requests_and_pairs_alt_texts(funnel, copy, backend):
    images = asyncio.run(derive_images(funnel, copy, client=backend))
    assert len(backend.image_prompts) == 4
    assert [img.image_bytes for img in images] == [b"jpeg-1", b"jpeg-2", b"jpeg-3", b"jpeg-4"]
    assert [img.alt for img in images] == copy.image_alt_texts


def test_result_order_follows_issue_order(funnel, copy):
    backend = StaggeredBackend()
    images = asyncio.run(derive_images(funnel, copy, client=backend))
    assert [img.image_bytes for img in images] == [b"img-0", b"img-1", b"img-2", b"img-3"]


def test_missing_alt_texts_fall_back_to_product_name(funnel):
    short_copy = GeneratedCopy.model_validate(copy_payload(image_alt_texts=["Solo una"]))
    images = asyncio.run(derive_images(funnel, short_copy, client=FakeBackend()))
    assert images[0].alt == "Solo una"
    assert [img.alt for img in images[1:]] == ["Imagen de Lámpara Solar"] * 3


def test_single_failure_fails_whole_step_after_others_finish(funnel, copy):
    backend = CountingFailBackend()
    with pytest.raises(ImageGenerationError) as excinfo:
        asyncio.run(derive_images(funnel, copy, client=backend))
    assert backend.completed == 3
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_empty_image_counts_as_failure(funnel, copy):
    backend = FakeBackend(image_replies=[b"ok", b""])
    with pytest.raises(ImageGenerationError):
        asyncio.run(derive_images(funnel, copy, client=backend))
