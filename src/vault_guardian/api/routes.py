"""Guardian endpoints — login, authorize, sign, sign-tx, address lookup."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from vault_guardian.api.dependencies import get_caller, get_service, require_admin
from vault_guardian.api.schemas import (
    AddressResponse,
    AuthorizeRequest,
    AuthorizeResponse,
    LoginRequest,
    LoginResponse,
    SignRequest,
    SignResponse,
    SignTxRequest,
    SignTxResponse,
)
from vault_guardian.engine.services.guardian_service import (  # noqa: TC001
    GuardianService,
    TxParams,
)
from vault_guardian.engine.services.token_issuer import CallerContext  # noqa: TC001

router = APIRouter(prefix="/v1/guardian", tags=["guardian"])


# ---------------------------------------------------------------------------
# Identity / Config
# ---------------------------------------------------------------------------


@router.post("/login")
async def login(
    body: LoginRequest,
    service: Annotated[GuardianService, Depends(get_service)],
) -> dict:
    """Log in with Okta credentials; first-time users get a new key."""
    result = await service.login(
        body.okta_username,
        body.okta_password,
        include_address=body.get_address,
    )
    return LoginResponse(
        client_token=result.client_token,
        address=result.address,
    ).model_dump(exclude_none=True)


@router.post("/authorize", dependencies=[Depends(require_admin)])
async def authorize(
    body: AuthorizeRequest,
    service: Annotated[GuardianService, Depends(get_service)],
) -> dict:
    """Update the guardian's service credential and Okta settings."""
    await service.authorize(
        secret_id=body.secret_id,
        okta_url=body.okta_url,
        okta_token=body.okta_token,
    )
    return AuthorizeResponse().model_dump()


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


@router.post("/sign")
async def sign(
    body: SignRequest,
    caller: Annotated[CallerContext, Depends(get_caller)],
    service: Annotated[GuardianService, Depends(get_service)],
) -> dict:
    """Sign a pre-hashed digest and hand back a fresh session token."""
    result = await service.sign(body.raw_data, caller)
    return SignResponse(
        signature=result.signature,
        fresh_client_token=result.fresh_client_token,
    ).model_dump()


@router.post("/sign-tx")
async def sign_tx(
    body: SignTxRequest,
    caller: Annotated[CallerContext, Depends(get_caller)],
    service: Annotated[GuardianService, Depends(get_service)],
) -> dict:
    """Sign an EIP-155 transaction and hand back a fresh session token."""
    params = TxParams(**body.model_dump())
    result = await service.sign_tx(params, caller)
    return SignTxResponse(
        signed_tx_json=result.signed_tx_json,
        signed_tx_rlp=result.signed_tx_rlp,
        fresh_client_token=result.fresh_client_token,
    ).model_dump()


@router.get("/sign")
@router.get("/sign-tx")
async def get_address(
    caller: Annotated[CallerContext, Depends(get_caller)],
    service: Annotated[GuardianService, Depends(get_service)],
) -> dict:
    """Return the caller's public address.

    The presented token is spent like on any other request, but no fresh
    token is returned.
    """
    address = await service.get_address(caller)
    return AddressResponse(public_address=address).model_dump()
