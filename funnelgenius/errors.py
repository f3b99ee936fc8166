"""
errors.py — Failure classes surfaced by the funnel pipeline.

Every step-level failure aborts the step and the pipeline. Each class
carries one human-readable message meant to be shown to the user as-is.
"""

from __future__ import annotations


class FunnelError(Exception):
    """Base class for all pipeline failures."""

    default_message = "Ocurrió un error inesperado."

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(FunnelError):
    """Required wizard fields are missing or unusable."""

    default_message = "Por favor, completa todos los campos del producto."


class GenerationError(FunnelError):
    """Structured generation returned malformed, empty or off-schema output."""

    default_message = "Hubo un error al generar el contenido. Por favor, intenta de nuevo."


class ImageGenerationError(FunnelError):
    """At least one of the product image requests failed."""

    default_message = "No se pudieron generar las imágenes del producto."


class AssemblyError(FunnelError):
    """The website archive could not be built."""

    default_message = "No se pudo ensamblar el archivo ZIP de tu página."


class PipelineStateError(FunnelError):
    """An operation was requested in a state that does not allow it."""

    default_message = "Operación no permitida en el estado actual del embudo."
