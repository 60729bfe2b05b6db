"""Cross-origin access for the admin dashboard and the mobile web build."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sampler.config import Settings
from sampler.middleware.request_id import REQUEST_ID_HEADER

# Feature endpoints are POST; only the health router serves GET
ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", REQUEST_ID_HEADER]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=[REQUEST_ID_HEADER],
    )
