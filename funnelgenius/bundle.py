"""
bundle.py — Package the rendered funnel into a downloadable ZIP.

Archive layout:
  index.html
  style.css
  images/producto-original.<ext>     — the photo the user uploaded
  images/generated-image-1.jpg … -4  — generated photos, gallery order
"""

from __future__ import annotations

import asyncio
import io
import logging
import zipfile
from pathlib import Path
from typing import List, Sequence

from .copywriter import IMAGE_COUNT
from .errors import AssemblyError
from .models import FunnelData, GeneratedCopy, GeneratedImage
from .renderer import render_site

logger = logging.getLogger(__name__)

BUNDLE_FILENAME = "funnelgenius_pagina_web.zip"
IMAGES_DIR = "images"


def generated_image_filenames(count: int) -> List[str]:
    return [f"generated-image-{i + 1}.jpg" for i in range(count)]


def build_archive(
    data: FunnelData,
    copy: GeneratedCopy,
    images: Sequence[GeneratedImage],
) -> bytes:
    """Render the site and zip it in memory. Synchronous; see assemble_bundle."""
    if not data.product.image_bytes:
        raise AssemblyError("Falta la imagen original del producto.")
    if len(images) != IMAGE_COUNT:
        raise AssemblyError(
            f"Se esperaban {IMAGE_COUNT} imágenes generadas y llegaron {len(images)}."
        )

    filenames = generated_image_filenames(len(images))
    site = render_site(data, copy, filenames)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("index.html", site.html)
        zf.writestr("style.css", site.css)
        zf.writestr(f"{IMAGES_DIR}/{data.product.original_image_filename}", data.product.image_bytes)
        for name, image in zip(filenames, images):
            zf.writestr(f"{IMAGES_DIR}/{name}", image.image_bytes)
    return buffer.getvalue()


async def assemble_bundle(
    data: FunnelData,
    copy: GeneratedCopy,
    images: Sequence[GeneratedImage],
) -> bytes:
    """
    Build the funnel ZIP off the event loop.

    Returns the archive bytes. Any failure is reported as one AssemblyError;
    nothing partial is returned.
    """
    try:
        archive = await asyncio.to_thread(build_archive, data, copy, images)
    except AssemblyError:
        raise
    except Exception as exc:
        logger.error("ZIP creation failed: %s", exc)
        raise AssemblyError() from exc

    logger.info("ZIP created: %d files (%d KB)", 3 + len(images), len(archive) // 1024)
    return archive


def write_bundle(archive: bytes, output_dir: Path, filename: str = BUNDLE_FILENAME) -> Path:
    """Save the archive to disk — the terminal 'download' step."""
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        zip_path = output_dir / filename
        zip_path.write_bytes(archive)
    except OSError as exc:
        raise AssemblyError(f"No se pudo guardar el ZIP en {output_dir}.") from exc
    logger.info("ZIP saved: %s", zip_path)
    return zip_path
