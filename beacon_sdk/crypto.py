# beacon_sdk/crypto.py
# SPDX-License-Identifier: Apache-2.0
"""
Key, address and identifier helpers.

- base58 / base58check codecs (bitcoin alphabet, double-sha256 checksum)
- Tezos address derivation from a public key (tz1 / tz2 / tz3)
- Stable account identifiers from (public key, network)
- The client's own Ed25519 identity, whose hex public key is the beacon id
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from typing import Dict, Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from .errors import InvalidInput
from .messages import Network, NetworkType
from .storage import Storage, StorageKey

LOG = logging.getLogger(__name__)

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_LOOKUP = {char: index for index, char in enumerate(_BASE58_ALPHABET)}

# public key prefix -> (encoded length, key prefix bytes, address prefix bytes)
_PUBLIC_KEY_PREFIXES: Dict[str, Tuple[int, bytes, bytes]] = {
    "edpk": (54, bytes([13, 15, 37, 217]), bytes([6, 161, 159])),   # tz1
    "sppk": (55, bytes([3, 254, 226, 86]), bytes([6, 161, 161])),   # tz2
    "p2pk": (55, bytes([3, 178, 139, 127]), bytes([6, 161, 164])),  # tz3
}
_TZ1_PREFIX = _PUBLIC_KEY_PREFIXES["edpk"][2]


# =============================================================================
# base58 / base58check
# =============================================================================

def base58_encode(data: bytes) -> str:
    """Encode bytes into base58 (no checksum)."""
    if not data:
        return ""
    num = int.from_bytes(data, "big")
    encoded = ""
    while num:
        num, rem = divmod(num, 58)
        encoded = _BASE58_ALPHABET[rem] + encoded
    # leading zero bytes are encoded as '1'
    pad = len(data) - len(data.lstrip(b"\x00"))
    return "1" * pad + encoded


def base58_decode(value: str) -> bytes:
    """Decode a base58 string into bytes (no checksum handling)."""
    value = value.strip()
    if not value:
        return b""

    num = 0
    for char in value:
        try:
            num = num * 58 + _BASE58_LOOKUP[char]
        except KeyError as exc:
            raise ValueError(f"invalid base58 character: {char!r}") from exc

    byte_length = (num.bit_length() + 7) // 8
    data = num.to_bytes(byte_length, "big") if byte_length else b""
    pad = len(value) - len(value.lstrip("1"))
    return b"\x00" * pad + data


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:4]


def b58check_encode(data: bytes) -> str:
    return base58_encode(data + _checksum(data))


def b58check_decode(value: str) -> bytes:
    raw = base58_decode(value)
    if len(raw) < 4:
        raise ValueError("base58check payload too short")
    data, checksum = raw[:-4], raw[-4:]
    if _checksum(data) != checksum:
        raise ValueError("base58check checksum mismatch")
    return data


# =============================================================================
# Addresses and identifiers
# =============================================================================

def get_address_from_public_key(pubkey: str) -> str:
    """
    Derive the Tezos address for a public key.

    Accepts a prefixed base58check key (``edpk``/``sppk``/``p2pk``) or a raw
    64-character hex Ed25519 key (treated as tz1).
    """
    if not pubkey:
        raise InvalidInput("public key must be provided")

    if len(pubkey) == 64:
        try:
            key_bytes = bytes.fromhex(pubkey)
        except ValueError as e:
            raise InvalidInput(f"invalid hex public key: {pubkey!r}") from e
        address_prefix = _TZ1_PREFIX
    else:
        for prefix, (length, key_prefix, addr_prefix) in _PUBLIC_KEY_PREFIXES.items():
            if pubkey.startswith(prefix) and len(pubkey) == length:
                try:
                    decoded = b58check_decode(pubkey)
                except ValueError as e:
                    raise InvalidInput(f"invalid public key: {pubkey!r}") from e
                key_bytes = decoded[len(key_prefix):]
                address_prefix = addr_prefix
                break
        else:
            raise InvalidInput(f"unsupported public key format: {pubkey[:8]}...")

    payload = hashlib.blake2b(key_bytes, digest_size=20).digest()
    return b58check_encode(address_prefix + payload)


def get_account_identifier(pubkey: str, network: Network) -> str:
    """
    Stable identifier for (public key, network).

    Custom network name and RPC URL are part of the identity so the same key
    on two custom networks yields two accounts.
    """
    data = [pubkey, NetworkType(network.type).value]
    if network.name:
        data.append(f"name:{network.name}")
    if network.rpc_url:
        data.append(f"rpc:{network.rpc_url}")
    digest = hashlib.blake2b("-".join(data).encode("utf-8"), digest_size=10).digest()
    return b58check_encode(digest)


def generate_guid() -> str:
    """Random 128-bit correlation id."""
    return str(uuid.uuid4())


# =============================================================================
# Client identity
# =============================================================================

class Identity:
    """
    The client's Ed25519 keypair.

    The secret seed is persisted under ``StorageKey.BEACON_SDK_SECRET_SEED`` so
    the beacon id survives restarts. The seed itself is never logged.
    """

    def __init__(self, private_key: ed25519.Ed25519PrivateKey) -> None:
        self._private_key = private_key
        raw = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.public_key_bytes = raw

    @property
    def beacon_id(self) -> str:
        return self.public_key_bytes.hex()

    def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data)

    @classmethod
    def from_seed(cls, seed: str) -> "Identity":
        secret = hashlib.blake2b(seed.encode("utf-8"), digest_size=32).digest()
        return cls(ed25519.Ed25519PrivateKey.from_private_bytes(secret))

    @classmethod
    async def load_or_create(cls, storage: Storage) -> "Identity":
        seed: Optional[str] = await storage.get(StorageKey.BEACON_SDK_SECRET_SEED)
        if not seed:
            seed = generate_guid()
            await storage.set(StorageKey.BEACON_SDK_SECRET_SEED, seed)
            LOG.debug("generated new client identity seed")
        identity = cls.from_seed(seed)
        LOG.debug("client identity ready beacon_id=%s", identity.beacon_id)
        return identity


__all__ = [
    "base58_encode",
    "base58_decode",
    "b58check_encode",
    "b58check_decode",
    "get_address_from_public_key",
    "get_account_identifier",
    "generate_guid",
    "Identity",
]
