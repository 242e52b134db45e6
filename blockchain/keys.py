"""Public keys and their chain-specific forms.

Curve arithmetic is delegated to ``eth_keys``; this module only moves
key bytes between the encodings each chain expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from eth_keys import keys
from eth_utils import ValidationError

from core.errors import KeyConversionFailure


class Curve(str, Enum):
    SECP256K1 = "secp256k1"
    SECP256R1 = "secp256r1"


@dataclass(frozen=True, slots=True)
class PublicKey:
    """Hex-encoded public key tagged with its curve."""

    curve: Curve
    hex: str

    def to_bytes(self) -> bytes:
        try:
            return bytes.fromhex(self.hex.removeprefix("0x"))
        except ValueError as exc:
            raise KeyConversionFailure(f"Public key is not valid hex: {self.hex!r}") from exc

    def to_eth_address(self) -> str:
        """Checksummed Ethereum address of a secp256k1 key."""
        if self.curve != Curve.SECP256K1:
            raise KeyConversionFailure(f"Cannot derive an Ethereum address from a {self.curve.value} key")
        raw = self.to_bytes()
        try:
            if len(raw) == 33:
                key = keys.PublicKey.from_compressed_bytes(raw)
            elif len(raw) == 65 and raw[0] == 0x04:
                key = keys.PublicKey(raw[1:])
            elif len(raw) == 64:
                key = keys.PublicKey(raw)
            else:
                raise KeyConversionFailure(f"Unsupported secp256k1 key length: {len(raw)} bytes")
            return key.to_checksum_address()
        except (ValidationError, ValueError) as exc:
            raise KeyConversionFailure("Public key is not a valid secp256k1 point") from exc


@dataclass(frozen=True, slots=True)
class NeoPublicKey:
    """Compressed secp256r1 public key as NEO contracts expect it."""

    compressed: bytes

    @classmethod
    def from_public_key(cls, public_key: PublicKey) -> NeoPublicKey:
        if public_key.curve != Curve.SECP256R1:
            raise KeyConversionFailure(
                f"NEO requires a secp256r1 key, got {public_key.curve.value}"
            )
        raw = public_key.to_bytes()
        if len(raw) == 33 and raw[0] in (0x02, 0x03):
            return cls(raw)
        if len(raw) == 65 and raw[0] == 0x04:
            prefix = 0x03 if raw[-1] & 1 else 0x02
            return cls(bytes([prefix]) + raw[1:33])
        raise KeyConversionFailure(f"Not a secp256r1 public key encoding ({len(raw)} bytes)")

    def to_hex(self) -> str:
        return self.compressed.hex()
