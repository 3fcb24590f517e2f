"""Error taxonomy for identity, custody, token and signing failures.

Each failure class carries a fixed machine code and HTTP status; the message
is the context the failure was detected in, followed by the underlying cause.
"""

from __future__ import annotations

from vault_guardian.errors.guardian_errors import GuardianError

# -- Failure classes -------------------------------------------------------


class ConfigIncompleteError(GuardianError):
    """The persisted Config is missing one of its three required fields."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=412, code="config-incomplete", cause=cause)


class IdentityProviderRejectedError(GuardianError):
    """Bad credentials, or a username unknown to the identity provider."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=401, code="identity-provider-rejected", cause=cause)


class IdentityProviderError(GuardianError):
    """The identity provider could not be reached or answered unexpectedly."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 502,
        cause: BaseException | str | None = None,
    ) -> None:
        super().__init__(
            message, status_code=status_code, code="identity-provider-error", cause=cause
        )


class StoreUnavailableError(GuardianError):
    """Transport or infrastructure failure talking to the secret store."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 503,
        cause: BaseException | str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, code="store-unavailable", cause=cause)


class VaultResponseError(StoreUnavailableError):
    """Vault answered with a 4xx error body.

    Attributes:
        vault_status: The HTTP status Vault returned.
        errors: The ``errors`` list from the Vault response body.
    """

    def __init__(self, message: str, *, vault_status: int, errors: list[str]) -> None:
        super().__init__(message, status_code=502, cause="; ".join(errors))
        self.code = "vault-error"
        self.vault_status = vault_status
        self.errors = errors


class KeyNotFoundError(GuardianError):
    """No key record exists for the user."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=404, code="key-not-found", cause=cause)


class MalformedKeyError(GuardianError):
    """Stored key material does not decode to a valid secp256k1 scalar."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=500, code="malformed-key", cause=cause)


class SigningFailureError(GuardianError):
    """The signing primitive rejected its input."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=400, code="signing-failure", cause=cause)


class InvalidPayloadError(GuardianError):
    """Request payload failed validation (hex, addresses, required fields)."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=400, code="invalid-payload", cause=cause)


class TokenIssuanceError(GuardianError):
    """Vault refused or failed to mint a token."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=502, code="token-issuance-failure", cause=cause)


class IdentityLookupError(GuardianError):
    """A caller credential could not be resolved to a username."""

    def __init__(self, message: str, *, cause: BaseException | str | None = None) -> None:
        super().__init__(message, status_code=403, code="identity-lookup-failure", cause=cause)


# -- Pre-defined instances -------------------------------------------------

ErrUnauthorized = GuardianError("unauthorized", status_code=401, code="unauthorized")

ErrNotOktaAccount = IdentityProviderRejectedError(
    "Username does not belong to Guardian's Okta organization, not creating account."
)
ErrMissingTxParams = InvalidPayloadError(
    "nonce, to, and gas_limit are required transaction parameters"
)
ErrMissingSecretID = ConfigIncompleteError("secret_id was missing, could not get a guardianToken")
ErrMissingOktaURL = ConfigIncompleteError("Must provide an okta_url")
ErrMissingOktaToken = ConfigIncompleteError("Must provide an okta_token")
ErrAdminRequired = GuardianError(
    "admin token required to update guardian config", status_code=403, code="admin-required"
)
