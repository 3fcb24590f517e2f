"""CORS middleware configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from vault_guardian.api.middleware.auth import AUTH_HEADER_ADMIN_TOKEN, AUTH_HEADER_VAULT_TOKEN

if TYPE_CHECKING:
    from fastapi import FastAPI

_AUTH_HEADERS = [AUTH_HEADER_VAULT_TOKEN, AUTH_HEADER_ADMIN_TOKEN]


def setup_cors(app: FastAPI) -> None:
    """Allow browser clients to send the guardian's token headers."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", *_AUTH_HEADERS],
    )
