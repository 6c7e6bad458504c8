"""
CORS middleware — allowed origins come from CORS_ALLOWED_ORIGINS.

Kept out of main.py so the app module only wires routers.
Version: 1.0.0
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commerce_sync.core.config import Settings


def apply_cors(app: FastAPI, settings: Settings) -> None:
    """Apply CORS middleware; "*" disables credentialed requests per the CORS rules."""
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
