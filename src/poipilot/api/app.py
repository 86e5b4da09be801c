# src/poipilot/api/app.py
"""
FastAPI application wiring.

Creates the `FastAPI` instance and registers the routes. The control panel
(running in the simulator's embedded browser) talks to this API; business
logic lives in `poipilot.routing` and `poipilot.explorer`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from poipilot.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="POI Pilot API", version="0.1.0")

# The embedded browser loads the panel from a local origin (coui:// or localhost).
# Configure via env:
# - POIPILOT_CORS_ORIGINS="coui://html_ui,http://localhost:3000"
# - POIPILOT_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("POIPILOT_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("POIPILOT_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = os.getenv("POIPILOT_CORS_ALLOW_ORIGIN_REGEX", "").strip() or (
    r"^(coui://.*|https?://(localhost|127\.0\.0\.1)(:\d+)?)$" if cors_allow_local and not cors_origins else ""
)
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
