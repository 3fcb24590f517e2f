"""TokenIssuer service — service credentials and single-use session tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vault_guardian.errors.definitions import (
    ErrUnauthorized,
    StoreUnavailableError,
    TokenIssuanceError,
    VaultResponseError,
)

if TYPE_CHECKING:
    from vault_guardian.engine.services.key_custodian import KeyCustodian
    from vault_guardian.vault.client import VaultClient

logger = logging.getLogger(__name__)

# Session tokens authorize exactly one request.
SESSION_TOKEN_USES = 1


@dataclass(frozen=True)
class CallerContext:
    """What Vault reported for a redeemed caller token.

    ``username`` is the token's ``meta.name`` and is empty for tokens the
    guardian did not mint. ``entity_id`` is empty for tokens minted directly
    by the guardian.
    """

    accessor: str
    username: str = ""
    entity_id: str = ""


class TokenIssuer:
    """Mints and redeems tokens on behalf of end users.

    Session tokens are single-use and carry ``meta.name = <username>``, which
    is how later requests are tied back to a key record. Vault enforces the
    single use; this service keeps no token state of its own.
    """

    def __init__(self, vault: VaultClient, custodian: KeyCustodian) -> None:
        self._vault = vault
        self._custodian = custodian

    async def exchange_service_secret(self, secret_id: str) -> str:
        """Exchange an AppRole SecretID for the long-lived service credential.

        Raises:
            TokenIssuanceError: If Vault rejects the SecretID.
        """
        try:
            auth = await self._vault.approle_login(self._vault.config.approle_role_id, secret_id)
        except StoreUnavailableError as exc:
            msg = "Error fetching token using SecretID"
            raise TokenIssuanceError(msg, cause=exc.message) from exc
        return auth["client_token"]

    async def issue_session_token(self, username: str) -> str:
        """Mint a single-use token bound to *username*.

        Raises:
            TokenIssuanceError: If Vault fails to create the token.
        """
        cfg = self._vault.config
        try:
            auth = await self._vault.create_token(
                cfg.token_role,
                policies=[cfg.enduser_policy],
                num_uses=SESSION_TOKEN_USES,
                meta={"name": username},
            )
        except StoreUnavailableError as exc:
            msg = "Error building single-sign token"
            raise TokenIssuanceError(msg, cause=exc.message) from exc
        return auth["client_token"]

    async def redeem_session_token(self, token: str) -> CallerContext:
        """Spend one use of *token* and return what Vault knows about it.

        The lookup is made with *token* itself, so Vault decrements its use
        count atomically. Of two requests presenting the same single-use
        token only one is accepted.

        Raises:
            GuardianError: 401 if the token is missing, unknown, or spent.
            StoreUnavailableError: If Vault cannot be reached.
        """
        if not token:
            raise ErrUnauthorized
        try:
            data = await self._vault.lookup_self(token)
        except VaultResponseError as exc:
            logger.debug("Token redemption rejected: %s", exc.errors)
            raise ErrUnauthorized from exc

        if not data or not data.get("accessor"):
            raise ErrUnauthorized
        meta = data.get("meta") or {}
        return CallerContext(
            accessor=data["accessor"],
            username=meta.get("name") or "",
            entity_id=data.get("entity_id") or "",
        )

    async def rotate_token(self, caller: CallerContext) -> str:
        """Mint the replacement for the caller's spent session token.

        The presented token was already consumed when it was redeemed, so
        minting is the last remote step and no extra token can be left
        behind by a later failure.

        Raises:
            IdentityLookupError: If the caller's token carried no username.
            TokenIssuanceError: If minting fails.
        """
        username = self._custodian.resolve_username_from_token(caller)
        fresh = await self.issue_session_token(username)
        logger.debug("Rotated session token for %s", username)
        return fresh
