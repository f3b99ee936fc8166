"""
FunnelGenius — terminal wizard entry point.

Usage:
  python -m funnelgenius.main
  python -m funnelgenius.main --image producto.jpg --name "Lámpara Solar" \
      --details "Lámpara solar resistente al agua"
  python -m funnelgenius.main --output outputs/lampara --verbose
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import Settings
from .errors import FunnelError
from .gemini import GeminiClient
from .models import ProductDetails, initial_funnel_data, update_product
from .pipeline import FunnelPipeline
from .wizard import console, run_wizard, show_error

logger = logging.getLogger(__name__)


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="FunnelGenius — páginas de venta generadas con IA"
    )
    parser.add_argument("--image", default=None, help="Product photo (PNG, JPG or WEBP)")
    parser.add_argument("--name", default="", help="Product name")
    parser.add_argument("--details", default="", help="Product description")
    parser.add_argument(
        "--output",
        default=None,
        help="Directory for the ZIP (default: $FUNNEL_OUTPUT_DIR or outputs/)",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
        level=logging.DEBUG if verbose else logging.INFO,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_env()
        data = initial_funnel_data()
        if args.image:
            loaded = ProductDetails.from_file(Path(args.image).expanduser())
            data = update_product(
                data,
                image_bytes=loaded.image_bytes,
                image_mime_type=loaded.image_mime_type,
            )
        data = update_product(data, name=args.name, details=args.details)
    except FunnelError as exc:
        show_error(exc.message)
        return 1

    output_dir = Path(args.output) if args.output else settings.output_dir
    pipeline = FunnelPipeline(data, client=GeminiClient(settings))

    try:
        zip_path = run_wizard(pipeline, output_dir)
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelado.[/dim]")
        return 130
    except FunnelError as exc:
        show_error(exc.message)
        return 1

    return 0 if zip_path else 1


if __name__ == "__main__":
    sys.exit(main())
