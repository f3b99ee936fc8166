"""FunnelGenius — AI-generated sales funnels packaged as static websites."""

from .angles import derive_angles, ensure_recommended_default
from .bundle import assemble_bundle, write_bundle
from .copywriter import derive_copy
from .errors import (
    AssemblyError,
    FunnelError,
    GenerationError,
    ImageGenerationError,
    InputValidationError,
    PipelineStateError,
)
from .imagery import derive_images
from .models import FunnelData, GeneratedCopy, GeneratedImage, MarketingAngle
from .pipeline import FunnelPipeline, PipelineState
from .renderer import RenderedSite, render_site

__all__ = [
    "AssemblyError",
    "FunnelData",
    "FunnelError",
    "FunnelPipeline",
    "GeneratedCopy",
    "GeneratedImage",
    "GenerationError",
    "ImageGenerationError",
    "InputValidationError",
    "MarketingAngle",
    "PipelineState",
    "PipelineStateError",
    "RenderedSite",
    "assemble_bundle",
    "derive_angles",
    "derive_copy",
    "derive_images",
    "ensure_recommended_default",
    "render_site",
    "write_bundle",
]
