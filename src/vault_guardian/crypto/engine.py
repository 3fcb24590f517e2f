"""Ethereum key engine — key generation, digest signing, EIP-155 transactions.

Stateless helpers around ``eth-account`` / ``eth-keys``:
- secp256k1 key generation and EIP-55 address derivation
- Raw digest signing returning 65-byte ``r || s || v`` signatures
- Legacy transaction signing with EIP-155 chain-replay protection
- RLP decoding of signed transactions back to their parameters

Private keys travel through this module as 64-char hex strings and are never
logged or stored here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import rlp
from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import ValidationError as EthValidationError
from eth_utils import big_endian_to_int, is_hex_address, keccak, to_checksum_address
from rlp.exceptions import DecodingError

from vault_guardian.errors.definitions import (
    InvalidPayloadError,
    MalformedKeyError,
    SigningFailureError,
)
from vault_guardian.utils.hexutil import decode_hex, encode_hex, to_quantity

# EIP-155: v = chain_id * 2 + 35 + recovery_id
_EIP155_OFFSET = 35
_LEGACY_TX_FIELDS = 9
# secp256k1 group order
_SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


@dataclass(frozen=True)
class SignedTx:
    """A signed transaction in both of its output forms.

    Attributes:
        json: geth-style JSON object with ``0x`` quantities.
        rlp: ``0x``-prefixed hex of the canonical RLP encoding.
        hash: ``0x``-prefixed Keccak-256 of the RLP encoding.
    """

    json: str
    rlp: str
    hash: str


@dataclass(frozen=True)
class DecodedTx:
    """Parameters recovered from an RLP-encoded legacy transaction."""

    nonce: int
    gas_price: int
    gas_limit: int
    to: str
    value: int
    payload: bytes
    chain_id: int | None
    v: int
    r: int
    s: int
    sender: str


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def _load_private_key(private_key_hex: str) -> keys.PrivateKey:
    """Parse a hex private key, raising MalformedKeyError on any defect."""
    try:
        raw = decode_hex(private_key_hex)
        if not 0 < big_endian_to_int(raw) < _SECP256K1_N:
            msg = "scalar out of range"
            raise ValueError(msg)
        return keys.PrivateKey(raw)
    except (ValueError, KeyValidationError, EthValidationError) as exc:
        msg = "private key is not a valid secp256k1 scalar"
        raise MalformedKeyError(msg, cause=exc) from exc


def generate_keypair() -> tuple[str, str]:
    """Generate a fresh secp256k1 key from the OS entropy source.

    Returns:
        Tuple of (64-char private key hex without ``0x``, checksummed address).
    """
    account = Account.create()
    return bytes(account.key).hex(), account.address


def derive_address(private_key_hex: str) -> str:
    """Return the EIP-55 checksummed address controlled by a private key.

    Raises:
        MalformedKeyError: If the hex does not decode to a valid scalar.
    """
    return _load_private_key(private_key_hex).public_key.to_checksum_address()


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def sign_digest(digest: bytes, private_key_hex: str) -> bytes:
    """Sign a pre-hashed digest with no further hashing.

    Args:
        digest: The 32-byte message hash. Other widths are rejected by the
            signing primitive.
        private_key_hex: Hex private key (``0x`` optional).

    Returns:
        65 bytes: ``r (32) || s (32) || v (1)`` with ``v`` in {0, 1}.

    Raises:
        MalformedKeyError: If the key is invalid.
        SigningFailureError: If the digest is rejected.
    """
    private_key = _load_private_key(private_key_hex)
    try:
        signature = private_key.sign_msg_hash(digest)
    except (ValueError, KeyValidationError, EthValidationError) as exc:
        msg = f"unable to sign {len(digest)}-byte digest"
        raise SigningFailureError(msg, cause=exc) from exc
    return signature.to_bytes()


def sign_transaction(
    chain_id: int,
    private_key_hex: str,
    payload_hex: str,
    to: str,
    nonce: int,
    gas_limit: int,
    value: int,
    gas_price: int,
) -> SignedTx:
    """Build and sign a legacy transaction bound to *chain_id* (EIP-155).

    Args:
        chain_id: Network identifier mixed into ``v``.
        private_key_hex: Hex private key (``0x`` optional).
        payload_hex: Call data as hex, ``0x`` optional, may be empty.
        to: Recipient address, ``0x``-prefixed.
        nonce: Sender account nonce.
        gas_limit: Gas limit.
        value: Amount in wei.
        gas_price: Gas price in wei.

    Raises:
        InvalidPayloadError: If *payload_hex* or *to* is malformed.
        MalformedKeyError: If the key is invalid.
        SigningFailureError: If the transaction cannot be signed.
    """
    try:
        payload = decode_hex(payload_hex)
    except ValueError as exc:
        msg = "data is not a valid hex string"
        raise InvalidPayloadError(msg, cause=exc) from exc
    if not to.startswith("0x") or not is_hex_address(to):
        msg = f"to is not a valid address: {to!r}"
        raise InvalidPayloadError(msg)

    private_key = _load_private_key(private_key_hex)
    tx = {
        "nonce": nonce,
        "gasPrice": gas_price,
        "gas": gas_limit,
        "to": to_checksum_address(to),
        "value": value,
        "data": payload,
        "chainId": chain_id,
    }
    try:
        signed = Account.sign_transaction(tx, private_key.to_bytes())
    except (TypeError, ValueError) as exc:
        msg = "failed to sign transaction"
        raise SigningFailureError(msg, cause=exc) from exc

    raw = bytes(signed.raw_transaction)
    tx_hash = encode_hex(keccak(raw))
    tx_json = {
        "type": "0x0",
        "chainId": to_quantity(chain_id),
        "nonce": to_quantity(nonce),
        "to": to.lower(),
        "gas": to_quantity(gas_limit),
        "gasPrice": to_quantity(gas_price),
        "value": to_quantity(value),
        "input": encode_hex(payload),
        "v": to_quantity(signed.v),
        "r": to_quantity(signed.r),
        "s": to_quantity(signed.s),
        "hash": tx_hash,
    }
    return SignedTx(json=json.dumps(tx_json), rlp=encode_hex(raw), hash=tx_hash)


def decode_transaction(encoded_hex: str) -> DecodedTx:
    """Decode an RLP-encoded, signed legacy transaction.

    Raises:
        InvalidPayloadError: If the input is not a signed legacy transaction.
    """
    try:
        raw = decode_hex(encoded_hex)
        fields = rlp.decode(raw)
    except (ValueError, DecodingError) as exc:
        msg = "signed transaction is not valid RLP"
        raise InvalidPayloadError(msg, cause=exc) from exc
    if not isinstance(fields, list) or len(fields) != _LEGACY_TX_FIELDS:
        msg = "signed transaction is not a legacy transaction"
        raise InvalidPayloadError(msg)

    nonce, gas_price, gas_limit, to, value, payload, v, r, s = fields
    v_int = big_endian_to_int(v)
    chain_id = (v_int - _EIP155_OFFSET) // 2 if v_int >= _EIP155_OFFSET else None
    return DecodedTx(
        nonce=big_endian_to_int(nonce),
        gas_price=big_endian_to_int(gas_price),
        gas_limit=big_endian_to_int(gas_limit),
        to=to_checksum_address(to),
        value=big_endian_to_int(value),
        payload=bytes(payload),
        chain_id=chain_id,
        v=v_int,
        r=big_endian_to_int(r),
        s=big_endian_to_int(s),
        sender=Account.recover_transaction(raw),
    )

