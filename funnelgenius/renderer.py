"""
Renderer — turns funnel data + generated copy into the static site files.

Pure and synchronous: no network, no filesystem writes. Given the same
inputs and the same year the HTML is byte-identical; the footer year is
the only input not supplied by the caller.

All interpolated text goes through jinja2 autoescaping, so product names,
brand names and AI copy can never break the document structure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .imagery import alt_text_for
from .models import FunnelData, GeneratedCopy

TEMPLATES_DIR = Path(__file__).parent / "templates"

MAX_STARS = 5
FILLED_STAR = "★"
EMPTY_STAR = "☆"


@dataclass(frozen=True)
class RenderedSite:
    html: str
    css: str


@dataclass(frozen=True)
class GalleryImage:
    filename: str
    alt: str


def render_stars(rating) -> str:
    """'★★★★☆' for 4. Out-of-range ratings are clamped to 0–5 filled stars."""
    try:
        filled = int(rating)
    except (TypeError, ValueError):
        filled = 0
    filled = max(0, min(MAX_STARS, filled))
    return FILLED_STAR * filled + EMPTY_STAR * (MAX_STARS - filled)


def _env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["stars"] = render_stars
    return env


_ENV = _env()


def gallery_images(
    data: FunnelData,
    copy: GeneratedCopy,
    image_filenames: Sequence[str],
) -> List[GalleryImage]:
    """Pair each filename with the alt text at the same index (no reordering)."""
    return [
        GalleryImage(filename=filename, alt=alt_text_for(i, data, copy))
        for i, filename in enumerate(image_filenames)
    ]


def render_html(
    data: FunnelData,
    copy: GeneratedCopy,
    image_filenames: Sequence[str],
    year: Optional[int] = None,
) -> str:
    template = _ENV.get_template("index.html.j2")
    return template.render(
        product=data.product,
        brand=data.brand,
        copy=copy,
        gallery=gallery_images(data, copy, image_filenames),
        year=year if year is not None else date.today().year,
    )


def render_css() -> str:
    """The fixed design system shipped with every funnel."""
    return STYLESHEET


def render_site(
    data: FunnelData,
    copy: GeneratedCopy,
    image_filenames: Sequence[str],
    year: Optional[int] = None,
) -> RenderedSite:
    return RenderedSite(
        html=render_html(data, copy, image_filenames, year=year),
        css=render_css(),
    )


STYLESHEET = """\
:root {
    --primary-color: #4f46e5;
    --secondary-color: #111827;
    --text-color: #e5e7eb;
    --bg-color: #030712;
    --card-bg: #1f2937;
}
body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;
    margin: 0;
    background-color: var(--bg-color);
    color: var(--text-color);
    line-height: 1.6;
}
.container {
    max-width: 960px;
    margin: 0 auto;
    padding: 0 1.5rem;
}
section { padding: 4rem 0; }
.hero {
    background-color: var(--secondary-color);
    text-align: center;
    padding: 4rem 0 2rem;
}
h1 { font-size: 2.8rem; margin-bottom: 1rem; color: #fff; }
.subheadline { font-size: 1.2rem; max-width: 600px; margin: 0 auto 2rem; }
.hero-image {
    max-width: 100%;
    width: 400px;
    border-radius: 12px;
    margin: 2rem auto;
    box-shadow: 0 10px 30px rgba(0,0,0,0.5);
}
.cta-button {
    display: inline-block;
    background-color: var(--primary-color);
    color: #fff;
    padding: 1rem 2.5rem;
    border-radius: 8px;
    text-decoration: none;
    font-size: 1.2rem;
    font-weight: bold;
    transition: transform 0.2s ease, background-color 0.2s ease;
}
.cta-button:hover { transform: scale(1.05); background-color: #6366f1; }
.guarantee { font-size: 0.9rem; margin-top: 1rem; opacity: 0.8; }
h2 { text-align: center; font-size: 2.2rem; margin-bottom: 3rem; }
.benefits-grid, .testimonials-grid {
    display: grid;
    grid-template-columns: repeat(auto-fit, minmax(280px, 1fr));
    gap: 2rem;
}
.benefit-card, .testimonial-card {
    background-color: var(--card-bg);
    padding: 2rem;
    border-radius: 12px;
    text-align: center;
}
.benefit-icon { font-size: 2.5rem; }
.benefit-card h3 { font-size: 1.3rem; margin: 1rem 0 0.5rem; }
.gallery { background-color: var(--secondary-color); }
.gallery .container {
    display: grid;
    grid-template-columns: repeat(2, 1fr);
    gap: 1rem;
}
.gallery img { width: 100%; border-radius: 8px; }
.testimonial-card .rating { color: #facc15; font-size: 1.2rem; margin-bottom: 1rem; }
.testimonial-text { font-style: italic; }
.testimonial-author { font-weight: bold; margin-top: 1rem; }
.testimonial-date { font-size: 0.8rem; opacity: 0.7; }
.cta-final { text-align: center; }
.cta-final p { margin-bottom: 2rem; }
.shipping { font-weight: bold; margin-top: 1rem; color: #34d399; }
footer { background-color: var(--secondary-color); padding: 2rem 0; text-align: center; font-size: 0.9rem; opacity: 0.8; }

@media (max-width: 768px) {
    h1 { font-size: 2.2rem; }
    .gallery .container { grid-template-columns: 1fr; }
}
"""
