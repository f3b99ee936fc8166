#!/usr/bin/env python3
"""
run_wizard.py — FunnelGenius terminal wizard entry point.

Usage:
    python run_wizard.py [--image producto.jpg] [--name ...] [--details ...]

Required env vars (in .env):
    GEMINI_API_KEY=...

Optional:
    FUNNEL_TEXT_MODEL=gemini-2.5-flash
    FUNNEL_IMAGE_MODEL=imagen-4.0-generate-001
    FUNNEL_OUTPUT_DIR=outputs
"""

from __future__ import annotations

import sys

from funnelgenius.main import main

if __name__ == "__main__":
    sys.exit(main())
