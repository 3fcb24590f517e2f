"""IdentityBridge service — Okta accounts, Vault user registry, provisioning."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vault_guardian.crypto.engine import generate_keypair
from vault_guardian.errors.definitions import (
    IdentityProviderRejectedError,
    VaultResponseError,
)

if TYPE_CHECKING:
    from vault_guardian.engine.services.key_custodian import KeyCustodian
    from vault_guardian.okta.client import OktaClient
    from vault_guardian.vault.client import VaultClient

logger = logging.getLogger(__name__)


class IdentityBridge:
    """Connects Okta identities to Vault users and their key records.

    A user is known to Vault once registered in the Okta auth method, and
    separately owns a key once the custodian holds a record for them. The two
    are independent facts; callers combine them.
    """

    def __init__(self, vault: VaultClient, okta: OktaClient, custodian: KeyCustodian) -> None:
        self._vault = vault
        self._okta = okta
        self._custodian = custodian

    async def user_exists(self, username: str) -> bool:
        """Check Vault's Okta auth-method registry for *username*."""
        return await self._vault.okta_read_user(username) is not None

    async def verify_identity_provider_account(self, username: str) -> bool:
        """Ask Okta directly whether *username* belongs to the organization."""
        return await self._okta.user_exists(username)

    async def provision_account(
        self,
        username: str,
        *,
        registered: bool = False,
        has_key: bool = False,
    ) -> str:
        """Bring *username* to the registered-with-key state.

        Steps: register in the Vault Okta registry with the default group,
        then generate and store a keypair. Each step is skipped when its flag
        says it already happened, so a user left half-provisioned by an
        earlier failure is completed on the next login and an existing key is
        never replaced. Nothing is rolled back if a later step fails.

        Returns:
            The checksummed address of the user's key.
        """
        if not registered:
            await self._vault.okta_write_user(username, [self._vault.config.enduser_group])
            logger.info("Registered %s in Vault Okta auth method", username)
        if has_key:
            return await self._custodian.read_address(username)
        private_key_hex, address = generate_keypair()
        await self._custodian.store_key(username, private_key_hex, address)
        return address

    async def verify_credentials(self, username: str, password: str) -> None:
        """Check *username* / *password* through Vault's Okta auth method.

        The token Vault issues for this login is discarded; session tokens are
        minted separately by the token issuer.

        Raises:
            IdentityProviderRejectedError: If the credentials are rejected.
            StoreUnavailableError: If Vault cannot be reached.
        """
        try:
            await self._vault.okta_login(username, password)
        except VaultResponseError as exc:
            msg = "Unable to login with Okta with the provided credentials"
            raise IdentityProviderRejectedError(msg, cause="; ".join(exc.errors)) from exc
