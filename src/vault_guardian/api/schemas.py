"""Request/response Pydantic schemas for the guardian HTTP routes.

Field names match the wire contract existing clients already send
(``okta_username``, ``raw_data``, ``gas_limit`` ...).
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from vault_guardian.utils.hexutil import decode_hex

_UINT64_MAX = 2**64 - 1


def _check_hex(value: str | None) -> str | None:
    if value is not None:
        decode_hex(value)
    return value


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Login / Authorize
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """POST /v1/guardian/login."""

    okta_username: str = Field(min_length=1)
    okta_password: str = Field(min_length=1)
    get_address: bool = False


class LoginResponse(BaseModel):
    client_token: str
    address: str | None = None


class AuthorizeRequest(BaseModel):
    """POST /v1/guardian/authorize — every field optional, merged into Config."""

    secret_id: str | None = None
    okta_url: str | None = None
    okta_token: str | None = None


class AuthorizeResponse(BaseModel):
    configUpdated: bool = True  # noqa: N815


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


class SignRequest(BaseModel):
    """POST /v1/guardian/sign — ``raw_data`` is a pre-hashed digest in hex.

    ``address_index`` is accepted for compatibility; each user holds one key.
    """

    raw_data: str
    address_index: int = Field(0, ge=0, le=_UINT64_MAX)


class SignResponse(BaseModel):
    signature: str
    fresh_client_token: str


class SignTxRequest(BaseModel):
    """POST /v1/guardian/sign-tx.

    ``nonce``, ``to`` and ``gas_limit`` are required by the signer, but are
    optional here so a missing one yields the guardian's own error body.
    """

    nonce: int | None = Field(None, ge=0, le=_UINT64_MAX)
    to: str | None = None
    amount: int | None = Field(None, ge=0)
    gas_limit: int | None = Field(None, ge=0, le=_UINT64_MAX)
    gas_price: int | None = Field(None, ge=0)
    data: str | None = None
    chain_id: int | None = Field(None, gt=0)
    address_index: int = Field(0, ge=0, le=_UINT64_MAX)

    @field_validator("data")
    @classmethod
    def _data_is_hex(cls, value: str | None) -> str | None:
        return _check_hex(value)


class SignTxResponse(BaseModel):
    signed_tx_json: str
    signed_tx_rlp: str
    fresh_client_token: str


class AddressResponse(BaseModel):
    """GET /v1/guardian/sign and GET /v1/guardian/sign-tx."""

    public_address: str
