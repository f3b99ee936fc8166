"""
wizard.py — Interactive terminal wizard (4 steps) on top of FunnelPipeline.

  Paso 1  Producto        — photo, name, details → marketing angles
  Paso 2  Marketing       — pick an angle or write a custom one
  Paso 3  Ventas extra    — optional order bump / upsell
  Paso 4  Marca y Oferta  — brand, price, shipping, guarantee → ZIP
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.rule import Rule
from rich.table import Table

from .bundle import write_bundle
from .errors import FunnelError, InputValidationError
from .models import MAX_DETAILS_LENGTH, MAX_NAME_LENGTH, AddonProduct, Guarantee, ProductDetails
from .pipeline import FunnelPipeline

console = Console()

STEPS = ["Producto", "Marketing", "Ventas extra", "Marca y Oferta"]


# ── Display helpers ───────────────────────────────────────────────────────────

def show_stepper(current: int) -> None:
    parts = []
    for i, label in enumerate(STEPS, start=1):
        if i < current:
            parts.append(f"[green]✓ {label}[/green]")
        elif i == current:
            parts.append(f"[bold magenta]{i}. {label}[/bold magenta]")
        else:
            parts.append(f"[dim]{i}. {label}[/dim]")
    console.print(Rule("  →  ".join(parts)))


def show_error(message: str) -> None:
    console.print(Panel(message, title="[bold]Error[/bold]", border_style="red"))


def show_angles(pipeline: FunnelPipeline) -> None:
    table = Table(box=box.ROUNDED, show_lines=True)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Ángulo", style="bold cyan")
    table.add_column("Descripción")
    for i, angle in enumerate(pipeline.angles, start=1):
        title = angle.title + (" [green](Recomendado)[/green]" if angle.recommended else "")
        table.add_row(str(i), title, angle.description)
    table.add_row(str(len(pipeline.angles) + 1), "Ángulo personalizado", "Escribe el tuyo")
    console.print(table)


def _ask(label: str, default: str = "") -> str:
    """Prompt.ask that only offers a default when there is one."""
    if default:
        return (Prompt.ask(label, default=default) or "").strip()
    return (Prompt.ask(label) or "").strip()


def _ask_bounded(label: str, limit: int, default: str = "") -> str:
    while True:
        value = _ask(label, default)
        if len(value) <= limit:
            return value.strip()
        console.print(f"  [yellow]⚠ Máximo {limit} caracteres ({len(value)} escritos)[/yellow]")


# ── Steps ─────────────────────────────────────────────────────────────────────

def step_product(pipeline: FunnelPipeline) -> None:
    show_stepper(1)
    console.print("[bold]Paso 1: Describe tu Producto[/bold] — Empecemos con lo básico. ¿Qué vendes?")
    product = pipeline.data.product

    while True:
        if product.image_bytes and Confirm.ask("  Imagen cargada. ¿Conservarla?", default=True):
            break
        path = Prompt.ask("  Ruta de la imagen del producto (PNG, JPG o WEBP)")
        try:
            loaded = ProductDetails.from_file(Path(path).expanduser())
        except InputValidationError as exc:
            show_error(exc.message)
            continue
        pipeline.set_product(image_bytes=loaded.image_bytes, image_mime_type=loaded.image_mime_type)
        break

    name = _ask_bounded("  Nombre del producto", MAX_NAME_LENGTH, default=product.name)
    details = _ask_bounded("  Detalles del producto", MAX_DETAILS_LENGTH, default=product.details)
    pipeline.set_product(name=name, details=details)


def step_marketing(pipeline: FunnelPipeline) -> None:
    show_stepper(2)
    console.print("[bold]Paso 2: Elige tu Ángulo de Marketing[/bold]")
    show_angles(pipeline)

    custom_index = len(pipeline.angles) + 1
    current = pipeline.data.marketing.selected_angle_title
    default = next((i for i, a in enumerate(pipeline.angles, start=1) if a.title == current), 1)
    choice = IntPrompt.ask(
        "  Número del ángulo",
        choices=[str(i) for i in range(1, custom_index + 1)],
        default=default,
    )
    if choice == custom_index:
        while True:
            text = Prompt.ask("  Describe tu ángulo personalizado").strip()
            if text:
                break
            console.print("  [yellow]⚠ El ángulo personalizado no puede estar vacío[/yellow]")
        pipeline.use_custom_angle(text)
    else:
        pipeline.select_angle(pipeline.angles[choice - 1].title)


def _ask_addon(label: str, current: AddonProduct) -> AddonProduct:
    if not Confirm.ask(f"  ¿Activar {label}?", default=current.enabled):
        return AddonProduct(enabled=False, name=current.name, price=current.price)
    name = _ask(f"    Nombre del {label}", current.name)
    price = _ask(f"    Precio del {label}", current.price)
    return AddonProduct(enabled=True, name=name, price=price)


def step_addons(pipeline: FunnelPipeline) -> None:
    show_stepper(3)
    console.print("[bold]Paso 3: Aumenta tus Ventas[/bold] (opcional)")
    addons = pipeline.data.addons
    pipeline.set_addons(
        order_bump=_ask_addon("order bump", addons.order_bump),
        upsell=_ask_addon("upsell", addons.upsell),
    )


def step_brand(pipeline: FunnelPipeline) -> None:
    show_stepper(4)
    console.print("[bold]Paso 4: Define tu Marca y Oferta[/bold]")
    brand = pipeline.data.brand
    brand_name = _ask("  Nombre de la marca", brand.brand_name)
    price = _ask("  Precio del producto (ej: 29.99)", brand.price)
    free_shipping = Confirm.ask("  ¿Envío gratis?", default=brand.free_shipping)
    guarantee_on = Confirm.ask("  ¿Garantía de devolución?", default=brand.guarantee.enabled)
    days = brand.guarantee.days
    if guarantee_on:
        days = IntPrompt.ask("    Días de garantía", default=days)
    pipeline.set_brand(
        brand_name=brand_name,
        price=price,
        free_shipping=free_shipping,
        guarantee=Guarantee(enabled=guarantee_on, days=days),
    )


# ── Orchestration ─────────────────────────────────────────────────────────────

def _run_step(loop: asyncio.AbstractEventLoop, coro_factory) -> bool:
    try:
        with console.status("[bold cyan]Trabajando...[/bold cyan]", spinner="dots"):
            loop.run_until_complete(coro_factory())
        return True
    except FunnelError as exc:
        show_error(exc.message)
        return False


def run_wizard(pipeline: FunnelPipeline, output_dir: Path) -> Optional[Path]:
    """Walk the user through all four steps. Returns the saved ZIP path."""
    # one loop for the whole session: the Gemini client's async transport
    # is bound to the loop it first ran on
    loop = asyncio.new_event_loop()
    try:
        return _run_session(loop, pipeline, output_dir)
    finally:
        loop.close()


def _run_session(
    loop: asyncio.AbstractEventLoop,
    pipeline: FunnelPipeline,
    output_dir: Path,
) -> Optional[Path]:
    console.print(
        Panel(
            "Crea páginas de venta de alta conversión en minutos con IA.",
            title="[bold magenta]FunnelGenius[/bold magenta]",
            border_style="magenta",
        )
    )
    pipeline.on_progress = lambda msg: console.print(f"[bold cyan]→ {msg}[/bold cyan]")

    while True:
        step_product(pipeline)
        missing = pipeline.data.product.missing_fields()
        if missing:
            show_error("Por favor, completa todos los campos del producto.")
            continue
        if not _run_step(loop, pipeline.generate_angles):
            pipeline.restart(keep_inputs=True)
            continue

        step_marketing(pipeline)
        step_addons(pipeline)
        step_brand(pipeline)

        if _run_step(loop, pipeline.build_funnel):
            break
        if not Confirm.ask("  ¿Intentar de nuevo?", default=True):
            return None
        pipeline.restart(keep_inputs=True)

    zip_path = write_bundle(pipeline.archive, output_dir)
    console.print(
        Panel(
            f"[bold green]¡Tu embudo está listo![/bold green]\n\n"
            f"ZIP: [bold]{zip_path}[/bold]\n"
            f"Imágenes generadas: {len(pipeline.images)}\n"
            f"Tiempo: {pipeline.elapsed_seconds:.1f}s",
            title="[bold]Descarga[/bold]",
            border_style="green",
        )
    )
    return zip_path
