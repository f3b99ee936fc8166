"""
pipeline.py — Drives one funnel generation run through its states.

  IDLE → ANGLES_PENDING → ANGLES_READY → COPY_PENDING → COPY_READY
       → IMAGES_PENDING → IMAGES_READY → ASSEMBLING → COMPLETE

FAILED is reachable from every *_PENDING state and from ASSEMBLING. No
state is entered twice in a run; restart() is the only way back to IDLE.

FunnelPipeline owns the FunnelData. The core functions (derive_angles,
derive_copy, derive_images, assemble_bundle) only ever receive it by
reference.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .angles import default_selection, derive_angles
from .bundle import assemble_bundle
from .copywriter import derive_copy
from .errors import FunnelError, InputValidationError, PipelineStateError
from .gemini import GenerationBackend
from .imagery import derive_images
from .models import (
    CUSTOM_ANGLE,
    FunnelData,
    GeneratedCopy,
    GeneratedImage,
    MarketingAngle,
    initial_funnel_data,
    resolve_angle,
    update_addons,
    update_brand,
    update_marketing,
    update_product,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class PipelineState(str, Enum):
    IDLE = "idle"
    ANGLES_PENDING = "angles_pending"
    ANGLES_READY = "angles_ready"
    COPY_PENDING = "copy_pending"
    COPY_READY = "copy_ready"
    IMAGES_PENDING = "images_pending"
    IMAGES_READY = "images_ready"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    FAILED = "failed"


TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.ANGLES_PENDING},
    PipelineState.ANGLES_PENDING: {PipelineState.ANGLES_READY, PipelineState.FAILED},
    PipelineState.ANGLES_READY: {PipelineState.COPY_PENDING},
    PipelineState.COPY_PENDING: {PipelineState.COPY_READY, PipelineState.FAILED},
    PipelineState.COPY_READY: {PipelineState.IMAGES_PENDING},
    PipelineState.IMAGES_PENDING: {PipelineState.IMAGES_READY, PipelineState.FAILED},
    PipelineState.IMAGES_READY: {PipelineState.ASSEMBLING},
    PipelineState.ASSEMBLING: {PipelineState.COMPLETE, PipelineState.FAILED},
    PipelineState.COMPLETE: set(),
    PipelineState.FAILED: set(),
}

# Loading messages shown while each step runs
MSG_ANGLES = "Analizando tu producto y generando ángulos de venta..."
MSG_COPY = "Escribiendo el copy de tu página de ventas..."
MSG_IMAGES = "Diseñando imágenes de producto impactantes..."
MSG_ASSEMBLE = "Ensamblando tu embudo mágico..."


class FunnelPipeline:
    """One wizard session: inputs, generated outputs and the current state."""

    def __init__(
        self,
        data: Optional[FunnelData] = None,
        client: Optional[GenerationBackend] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.client = client
        self.on_progress = on_progress
        self._reset(data or initial_funnel_data())

    def _reset(self, data: FunnelData) -> None:
        self.data = data
        self.state = PipelineState.IDLE
        self.copy: Optional[GeneratedCopy] = None
        self.images: List[GeneratedImage] = []
        self.archive: Optional[bytes] = None
        self.error: str = ""
        self.elapsed_seconds: float = 0.0

    # ── State handling ────────────────────────────────────────────────────────

    def _transition(self, target: PipelineState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise PipelineStateError(
                f"Transición no permitida: {self.state.value} → {target.value}"
            )
        logger.debug("pipeline %s → %s", self.state.value, target.value)
        self.state = target

    def _require(self, *states: PipelineState) -> None:
        if self.state not in states:
            raise PipelineStateError()

    def _progress(self, message: str) -> None:
        logger.info(message)
        if self.on_progress:
            self.on_progress(message)

    def _fail(self, exc: FunnelError) -> None:
        self.error = exc.message
        self._transition(PipelineState.FAILED)

    def restart(self, keep_inputs: bool = False) -> None:
        """Back to IDLE. keep_inputs retains product, add-on and brand answers."""
        if keep_inputs:
            data = update_marketing(self.data, angles=(), selected_angle_title="", custom_angle="")
        else:
            data = initial_funnel_data()
        self._reset(data)

    @property
    def angles(self) -> List[MarketingAngle]:
        return list(self.data.marketing.angles)

    # ── Input updates ─────────────────────────────────────────────────────────

    def set_product(self, **changes) -> None:
        self._require(PipelineState.IDLE)
        self.data = update_product(self.data, **changes)

    def set_addons(self, **changes) -> None:
        self._require(PipelineState.IDLE, PipelineState.ANGLES_READY)
        self.data = update_addons(self.data, **changes)

    def set_brand(self, **changes) -> None:
        self._require(PipelineState.IDLE, PipelineState.ANGLES_READY)
        self.data = update_brand(self.data, **changes)

    def select_angle(self, title: str) -> None:
        self._require(PipelineState.ANGLES_READY)
        if title not in {a.title for a in self.data.marketing.angles}:
            raise InputValidationError(f"Ángulo desconocido: {title}")
        self.data = update_marketing(self.data, selected_angle_title=title)

    def use_custom_angle(self, text: str) -> None:
        self._require(PipelineState.ANGLES_READY)
        self.data = update_marketing(
            self.data, selected_angle_title=CUSTOM_ANGLE, custom_angle=text
        )

    # ── Steps ─────────────────────────────────────────────────────────────────

    async def generate_angles(self) -> List[MarketingAngle]:
        self._transition(PipelineState.ANGLES_PENDING)
        self._progress(MSG_ANGLES)
        try:
            angles = await derive_angles(self.data.product, client=self.client)
        except FunnelError as exc:
            self._fail(exc)
            raise
        self.data = update_marketing(
            self.data,
            angles=angles,
            selected_angle_title=default_selection(angles),
            custom_angle="",
        )
        self._transition(PipelineState.ANGLES_READY)
        return angles

    async def build_funnel(self) -> bytes:
        """Copy → images → ZIP. Returns the archive bytes."""
        self._require(PipelineState.ANGLES_READY)
        # the selection must be usable before anything is requested
        resolve_angle(self.data.marketing)
        start = time.time()

        self._transition(PipelineState.COPY_PENDING)
        self._progress(MSG_COPY)
        try:
            self.copy = await derive_copy(self.data, client=self.client)
        except FunnelError as exc:
            self._fail(exc)
            raise
        self._transition(PipelineState.COPY_READY)

        self._transition(PipelineState.IMAGES_PENDING)
        self._progress(MSG_IMAGES)
        try:
            self.images = await derive_images(self.data, self.copy, client=self.client)
        except FunnelError as exc:
            self._fail(exc)
            raise
        self._transition(PipelineState.IMAGES_READY)

        self._transition(PipelineState.ASSEMBLING)
        self._progress(MSG_ASSEMBLE)
        try:
            self.archive = await assemble_bundle(self.data, self.copy, self.images)
        except FunnelError as exc:
            self._fail(exc)
            raise
        self._transition(PipelineState.COMPLETE)

        self.elapsed_seconds = time.time() - start
        logger.info("Funnel complete in %.1fs", self.elapsed_seconds)
        return self.archive
