"""Sha512Digest — the fixed-length identity value used throughout keytrust.

Every key, certificate and signature is identified by a SHA-512 digest.
Digests are immutable, compare by value, and can be used as dict keys.
Computation goes through the ``cryptography`` hash primitive, either over a
whole buffer or incrementally over a binary stream.
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import BinaryIO, ClassVar

from cryptography.hazmat.primitives import hashes

from keytrust.exceptions import InvalidEncodingError, InvalidInputError

DIGEST_SIZE: int = 64

# SHA-512 consumes input in 128-byte blocks.
_STREAM_CHUNK_SIZE: int = 128 * 64

_BYTES_LIKE = (bytes, bytearray, memoryview)


def coerce_bytes(value: object, name: str) -> bytes:
    """Return an immutable copy of the bytes-like *value*.

    Raises
    ------
    InvalidInputError
        If *value* is None or not bytes-like.
    """
    if value is None:
        raise InvalidInputError(f"{name} must not be None.")
    if not isinstance(value, _BYTES_LIKE):
        raise InvalidInputError(
            f"{name} must be bytes-like, got {type(value).__name__}."
        )
    return bytes(value)


@dataclass(frozen=True)
class Sha512Digest:
    """A 64-byte SHA-512 digest.

    Parameters
    ----------
    value:
        The raw digest bytes. Must be exactly 64 bytes long.

    Raises
    ------
    InvalidInputError
        If *value* is None or not bytes-like.
    InvalidEncodingError
        If *value* is not exactly 64 bytes long.
    """

    value: bytes

    algorithm: ClassVar[str] = "SHA512"

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", coerce_bytes(self.value, "Digest value"))
        if len(self.value) != DIGEST_SIZE:
            raise InvalidEncodingError(
                f"Invalid SHA512 hash length: expected {DIGEST_SIZE} bytes, "
                f"got {len(self.value)}."
            )

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    @classmethod
    def compute(cls, data: bytes) -> "Sha512Digest":
        """Compute the SHA-512 digest of *data*.

        Raises
        ------
        InvalidInputError
            If *data* is None or not bytes-like.
        """
        hasher = hashes.Hash(hashes.SHA512())
        hasher.update(coerce_bytes(data, "Data to digest"))
        return cls(hasher.finalize())

    @classmethod
    def compute_stream(cls, stream: BinaryIO) -> "Sha512Digest":
        """Compute the SHA-512 digest of everything readable from *stream*.

        The stream is consumed from its current position to EOF.

        Raises
        ------
        InvalidInputError
            If *stream* is None.
        """
        if stream is None:
            raise InvalidInputError("Stream to digest must not be None.")
        hasher = hashes.Hash(hashes.SHA512())
        while True:
            chunk = stream.read(_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
        return cls(hasher.finalize())

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @staticmethod
    def hash_algorithm() -> hashes.HashAlgorithm:
        """Return the ``cryptography`` algorithm object matching this digest."""
        return hashes.SHA512()

    def hex(self) -> str:
        """Return the lowercase hexadecimal representation."""
        return self.value.hex()

    def to_base64(self) -> str:
        return base64.b64encode(self.value).decode("ascii")

    @classmethod
    def from_base64(cls, encoded: str) -> "Sha512Digest":
        """Decode a base64 string into a digest.

        Raises
        ------
        InvalidEncodingError
            If *encoded* is not valid base64 or does not decode to 64 bytes.
        """
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise InvalidEncodingError(f"Invalid base64 digest: {exc}") from exc
        return cls(raw)

    @classmethod
    def from_hex(cls, encoded: str) -> "Sha512Digest":
        try:
            raw = bytes.fromhex(encoded)
        except (ValueError, TypeError) as exc:
            raise InvalidEncodingError(f"Invalid hexadecimal digest: {exc}") from exc
        return cls(raw)

    def __bytes__(self) -> bytes:
        return self.value

    def __len__(self) -> int:
        return len(self.value)

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Sha512Digest({self.hex()[:16]}...)"


__all__ = ["DIGEST_SIZE", "Sha512Digest", "coerce_bytes"]
