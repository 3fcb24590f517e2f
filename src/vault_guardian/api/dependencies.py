"""FastAPI dependency injection helpers.

Usage in a route::

    @router.post("/sign")
    async def sign(
        caller: Annotated[CallerContext, Depends(get_caller)],
        service: Annotated[GuardianService, Depends(get_service)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from vault_guardian.api.middleware.auth import (
    AUTH_HEADER_ADMIN_TOKEN,
    AUTH_HEADER_VAULT_TOKEN,
    CallerContext,
    authenticate_caller,
)
from vault_guardian.api.middleware.auth import (
    require_admin as _require_admin,
)
from vault_guardian.engine.client import GuardianEngine  # noqa: TC001
from vault_guardian.engine.services.guardian_service import GuardianService
from vault_guardian.errors.definitions import StoreUnavailableError

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_engine(request: Request) -> GuardianEngine:
    """Retrieve the engine stored on ``app.state`` during lifespan startup.

    Raises:
        StoreUnavailableError: If the engine is not initialized.
    """
    engine: GuardianEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        msg = "Guardian engine not initialized"
        raise StoreUnavailableError(msg)
    return engine


def get_service(
    engine: Annotated[GuardianEngine, Depends(get_engine)],
) -> GuardianService:
    return GuardianService(engine)


# ---------------------------------------------------------------------------
# Auth context
# ---------------------------------------------------------------------------


async def get_caller(
    engine: Annotated[GuardianEngine, Depends(get_engine)],
    x_vault_token: Annotated[str, Header(alias=AUTH_HEADER_VAULT_TOKEN)] = "",
) -> CallerContext:
    """Redeem the ``X-Vault-Token`` header, spending one use of the token."""
    return await authenticate_caller(engine, x_vault_token)


def require_admin(
    engine: Annotated[GuardianEngine, Depends(get_engine)],
    x_admin_token: Annotated[str, Header(alias=AUTH_HEADER_ADMIN_TOKEN)] = "",
) -> None:
    """Dependency guarding Config updates.

    Raises:
        GuardianError: 403 unless a configured admin token was presented.
    """
    _require_admin(engine, x_admin_token)
