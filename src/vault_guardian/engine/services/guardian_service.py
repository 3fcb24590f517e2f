"""Guardian service — the login, authorize, sign, sign-tx and address flows.

Each flow is a fixed linear sequence of remote calls. The order (existence
check, Okta check, provisioning, credential check, token) is part of the
protocol and must not be reordered or parallelized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vault_guardian.crypto.engine import sign_digest, sign_transaction
from vault_guardian.engine.services.key_custodian import KeyCustodian
from vault_guardian.engine.services.token_issuer import TokenIssuer
from vault_guardian.errors.definitions import (
    ErrMissingTxParams,
    ErrNotOktaAccount,
    InvalidPayloadError,
    StoreUnavailableError,
    VaultResponseError,
)
from vault_guardian.utils.hexutil import decode_hex, encode_hex

if TYPE_CHECKING:
    from vault_guardian.engine.client import GuardianEngine, GuardianSession
    from vault_guardian.engine.services.config_manager import GuardianConfig
    from vault_guardian.engine.services.token_issuer import CallerContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Flow inputs / outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TxParams:
    """Transaction parameters for sign-tx; required fields may arrive as None."""

    nonce: int | None = None
    to: str | None = None
    amount: int | None = None
    gas_limit: int | None = None
    gas_price: int | None = None
    data: str | None = None
    chain_id: int | None = None
    address_index: int = 0


@dataclass(frozen=True)
class LoginResult:
    client_token: str
    address: str | None = None
    created: bool = False


@dataclass(frozen=True)
class SignResult:
    signature: str
    fresh_client_token: str


@dataclass(frozen=True)
class SignTxResult:
    signed_tx_json: str
    signed_tx_rlp: str
    fresh_client_token: str


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class GuardianService:
    """Composes identity, custody, tokens and signing into the exposed operations."""

    def __init__(self, engine: GuardianEngine) -> None:
        self._engine = engine

    async def _load_config(self) -> GuardianConfig:
        cfg = await self._engine.config_manager.load()
        cfg.require_complete()
        return cfg

    # ------------------------------------------------------------------
    # login
    # ------------------------------------------------------------------

    async def login(
        self,
        username: str,
        password: str,
        *,
        include_address: bool = False,
    ) -> LoginResult:
        """Authenticate *username* and issue a single-use session token.

        First-time users that Okta recognizes are provisioned with a key,
        and their address is always returned.

        Raises:
            IdentityProviderRejectedError: Unknown Okta account or bad password.
        """
        with self._engine.metrics.track("login"):
            cfg = await self._load_config()
            async with self._engine.session(cfg) as session:
                return await self._login(session, username, password, include_address)

    async def _login(
        self,
        session: GuardianSession,
        username: str,
        password: str,
        include_address: bool,
    ) -> LoginResult:
        registered = await session.identity.user_exists(username)
        has_key = await session.custodian.has_key(username)

        address: str | None = None
        provisioned = not (registered and has_key)
        if provisioned:
            if not await session.identity.verify_identity_provider_account(username):
                raise ErrNotOktaAccount
            msg = "Error creating user and keys"
            try:
                address = await session.identity.provision_account(
                    username, registered=registered, has_key=has_key
                )
            except VaultResponseError as exc:
                raise VaultResponseError(
                    msg, vault_status=exc.vault_status, errors=exc.errors
                ) from exc
            except StoreUnavailableError as exc:
                raise StoreUnavailableError(msg, cause=exc.message) from exc
            if has_key:
                logger.info("Registered existing key holder %s", username)
            else:
                self._engine.metrics.record_provisioned()
                logger.info("Provisioned new guardian user %s", username)

        await session.identity.verify_credentials(username, password)
        token = await session.tokens.issue_session_token(username)

        if include_address:
            address = await session.custodian.read_address(username)
        if provisioned or include_address:
            return LoginResult(client_token=token, address=address, created=not has_key)
        return LoginResult(client_token=token)

    # ------------------------------------------------------------------
    # authorize
    # ------------------------------------------------------------------

    async def authorize(
        self,
        *,
        secret_id: str | None = None,
        okta_url: str | None = None,
        okta_token: str | None = None,
    ) -> GuardianConfig:
        """Merge new credentials into the persisted Config.

        A supplied *secret_id* is exchanged for a fresh service credential.
        Nothing is persisted unless all three fields end up non-empty.

        Raises:
            TokenIssuanceError: If the SecretID exchange fails.
            ConfigIncompleteError: If a field would remain empty.
        """
        with self._engine.metrics.track("authorize"):
            manager = self._engine.config_manager
            current = await manager.load()
            service_credential: str | None = None
            if secret_id is not None:
                async with self._engine.vault_session(current.service_credential) as vault:
                    issuer = TokenIssuer(vault, KeyCustodian(vault))
                    service_credential = await issuer.exchange_service_secret(secret_id)
            merged = manager.merge(
                current,
                service_credential=service_credential,
                identity_provider_url=okta_url,
                identity_provider_token=okta_token,
            )
            await manager.save(merged)
            return merged

    # ------------------------------------------------------------------
    # sign
    # ------------------------------------------------------------------

    async def sign(self, raw_data_hex: str, caller: CallerContext) -> SignResult:
        """Sign a pre-hashed digest with the caller's key, then rotate their token.

        If rotation fails the signature is withheld and the error returned.

        Raises:
            InvalidPayloadError: If *raw_data_hex* is not hex.
        """
        with self._engine.metrics.track("sign"):
            try:
                digest = decode_hex(raw_data_hex)
            except ValueError as exc:
                msg = "Unable to decode raw_data string from hex to bytes"
                raise InvalidPayloadError(msg, cause=exc) from exc

            cfg = await self._load_config()
            async with self._engine.session(cfg) as session:
                private_key_hex = await self._key_for_caller(session, caller)
                signature = sign_digest(digest, private_key_hex)
                fresh = await session.tokens.rotate_token(caller)
            self._engine.metrics.record_rotation()
            return SignResult(signature=encode_hex(signature), fresh_client_token=fresh)

    # ------------------------------------------------------------------
    # sign-tx
    # ------------------------------------------------------------------

    async def sign_tx(self, params: TxParams, caller: CallerContext) -> SignTxResult:
        """Sign an EIP-155 transaction with the caller's key, then rotate their token.

        Raises:
            InvalidPayloadError: If nonce, to or gas_limit is missing, or
                gas_price is missing on a chain that requires it.
        """
        with self._engine.metrics.track("sign_tx"):
            if params.nonce is None or params.to is None or params.gas_limit is None:
                raise ErrMissingTxParams

            signing = self._engine.config.signing
            chain_id = params.chain_id if params.chain_id is not None else signing.default_chain_id
            gas_price = params.gas_price
            if gas_price is None:
                if chain_id not in signing.zero_gas_price_chain_ids:
                    msg = f"gas_price is required on chain {chain_id}"
                    raise InvalidPayloadError(msg)
                gas_price = 0

            cfg = await self._load_config()
            async with self._engine.session(cfg) as session:
                private_key_hex = await self._key_for_caller(session, caller)
                signed = sign_transaction(
                    chain_id,
                    private_key_hex,
                    params.data or "",
                    params.to,
                    params.nonce,
                    params.gas_limit,
                    params.amount or 0,
                    gas_price,
                )
                fresh = await session.tokens.rotate_token(caller)
            self._engine.metrics.record_rotation()
            return SignTxResult(
                signed_tx_json=signed.json,
                signed_tx_rlp=signed.rlp,
                fresh_client_token=fresh,
            )

    # ------------------------------------------------------------------
    # get-address
    # ------------------------------------------------------------------

    async def get_address(self, caller: CallerContext) -> str:
        """Return the caller's address. Read-only: the token is not rotated.

        The caller is resolved by identity entity when the token has one,
        otherwise by the username its metadata carries.
        """
        with self._engine.metrics.track("get_address"):
            cfg = await self._load_config()
            async with self._engine.session(cfg) as session:
                if caller.entity_id:
                    username = await session.custodian.resolve_username_from_entity(
                        caller.entity_id
                    )
                else:
                    username = session.custodian.resolve_username_from_token(caller)
                return await session.custodian.read_address(username)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _key_for_caller(session: GuardianSession, caller: CallerContext) -> str:
        username = session.custodian.resolve_username_from_token(caller)
        return await session.custodian.read_key(username)
