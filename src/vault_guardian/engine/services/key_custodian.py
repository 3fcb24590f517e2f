"""KeyCustodian service — per-user key records in Vault.

Each user owns exactly one record at ``<keys_mount>/<username>`` holding
``privKeyHex`` and ``publicAddressHex``. Private keys leave this service only
as arguments to the crypto engine; they are never logged or returned to a
caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vault_guardian.crypto.engine import derive_address
from vault_guardian.errors.definitions import (
    IdentityLookupError,
    KeyNotFoundError,
    StoreUnavailableError,
)

if TYPE_CHECKING:
    from vault_guardian.engine.services.token_issuer import CallerContext
    from vault_guardian.vault.client import VaultClient

logger = logging.getLogger(__name__)


class KeyCustodian:
    """Reads and writes key material keyed by username.

    Also translates Vault's identity and token registries into usernames,
    since every key lookup starts from one of those caller handles.
    """

    def __init__(self, vault: VaultClient) -> None:
        self._vault = vault

    def _key_path(self, username: str) -> str:
        return f"{self._vault.config.keys_mount}/{username}"

    # ------------------------------------------------------------------
    # Key records
    # ------------------------------------------------------------------

    async def has_key(self, username: str) -> bool:
        """Check whether *username* already owns a key record."""
        resp = await self._vault.read(self._key_path(username))
        return bool(resp and (resp.get("data") or {}).get("privKeyHex"))

    async def store_key(self, username: str, private_key_hex: str, address_hex: str) -> None:
        """Write the single key record for *username*.

        Callers must only do this once per user; records are never rewritten.

        Raises:
            StoreUnavailableError: If Vault cannot be reached or refuses the write.
        """
        await self._vault.write(
            self._key_path(username),
            {"privKeyHex": private_key_hex, "publicAddressHex": address_hex},
        )
        logger.info("Stored key record for %s (address %s)", username, address_hex)

    async def read_key(self, username: str) -> str:
        """Return the private key hex for *username*.

        Raises:
            KeyNotFoundError: If the user has no key record.
            StoreUnavailableError: On transport failure.
        """
        resp = await self._vault.read(self._key_path(username))
        private_key_hex = ((resp or {}).get("data") or {}).get("privKeyHex")
        if not private_key_hex:
            msg = f"no key record for {username}"
            raise KeyNotFoundError(msg)
        return private_key_hex

    async def read_address(self, username: str) -> str:
        """Derive the public address of *username*'s key."""
        return derive_address(await self.read_key(username))

    # ------------------------------------------------------------------
    # Caller → username resolution
    # ------------------------------------------------------------------

    async def resolve_username_from_entity(self, entity_id: str) -> str:
        """Resolve an identity entity id to the username of its first alias.

        Raises:
            IdentityLookupError: If the entity is unknown, has no aliases, or
                the lookup fails.
        """
        try:
            data = await self._vault.lookup_entity(entity_id)
        except StoreUnavailableError as exc:
            msg = "Failed to look up identity entity"
            raise IdentityLookupError(msg, cause=exc.message) from exc

        aliases = (data or {}).get("aliases") or []
        name = aliases[0].get("name") if aliases and isinstance(aliases[0], dict) else None
        if not name:
            msg = "Identity entity has no aliases, could not find user"
            raise IdentityLookupError(msg)
        return name

    @staticmethod
    def resolve_username_from_token(caller: CallerContext) -> str:
        """Return the username bound to the caller's session token.

        Session tokens carry it in ``meta.name``. It is read from the record
        captured when the token was redeemed, because Vault revokes a spent
        single-use token and its accessor can no longer be looked up.

        Raises:
            IdentityLookupError: If the token carried no ``name`` metadata.
        """
        if not caller.username:
            msg = "Provided client_token does not have any attached metadata, could not find user"
            raise IdentityLookupError(msg)
        return caller.username
