"""Caller authentication — Vault session tokens and the admin token.

- ``X-Vault-Token`` carries the end user's single-use session token. It is
  redeemed with ``auth/token/lookup-self`` made with that token, which
  spends its use.
- ``X-Guardian-Admin-Token`` guards Config updates. With no admin token
  configured in settings, Config updates are refused.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from vault_guardian.engine.services.key_custodian import KeyCustodian
from vault_guardian.engine.services.token_issuer import CallerContext, TokenIssuer
from vault_guardian.errors.definitions import ErrAdminRequired, ErrUnauthorized

if TYPE_CHECKING:
    from vault_guardian.engine.client import GuardianEngine

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

AUTH_HEADER_VAULT_TOKEN = "X-Vault-Token"  # noqa: S105
AUTH_HEADER_ADMIN_TOKEN = "X-Guardian-Admin-Token"  # noqa: S105


# ---------------------------------------------------------------------------
# Authentication logic
# ---------------------------------------------------------------------------


async def authenticate_caller(engine: GuardianEngine, token: str) -> CallerContext:
    """Redeem the caller's session token into a :class:`CallerContext`.

    The Config is checked first so an unconfigured guardian does not spend
    the caller's token.

    Raises:
        GuardianError: 401 if no token was sent, or Vault rejects it.
        ConfigIncompleteError: If the guardian has no service credential yet.
    """
    if not token:
        raise ErrUnauthorized

    cfg = await engine.config_manager.load()
    cfg.require_complete()
    async with engine.vault_session(cfg.service_credential) as vault:
        return await TokenIssuer(vault, KeyCustodian(vault)).redeem_session_token(token)


def require_admin(engine: GuardianEngine, admin_token: str) -> None:
    """Raise unless *admin_token* matches the configured admin token.

    Raises:
        GuardianError: 403 if no admin token is configured, or it does not match.
    """
    expected = engine.config.admin_token
    if not expected or not hmac.compare_digest(admin_token.encode(), expected.encode()):
        raise ErrAdminRequired
