"""Error taxonomy for keytrust.

Three families of failure are kept apart so callers can react to them
differently:

* :class:`InvalidInputError`: ``None`` or malformed arguments passed by
  the caller (programming errors, never recoverable by retrying).
* :class:`InvalidEncodingError`: persisted or transported data that
  cannot be turned back into digests, parameters or models.
* :class:`TrustViolation`: a certificate, signature or chain did not
  pass verification. The :attr:`TrustViolation.kind` attribute tells the
  failures apart.

Trust failures are not transient and are never retried internally.
"""
from __future__ import annotations

from enum import Enum


class KeyTrustError(Exception):
    """Base class for every error raised by keytrust."""


class InvalidInputError(KeyTrustError, ValueError):
    """Raised when an argument is missing or malformed."""


class PlaintextTooLongError(InvalidInputError):
    """Raised when a plaintext exceeds the PKCS#1 v1.5 capacity of a key."""


class CipherLengthError(InvalidInputError):
    """Raised when a cipher does not match the key size in bytes."""


class InvalidEncodingError(KeyTrustError, ValueError):
    """Raised when persisted parameters, digests or models are invalid or not supported."""


class DecryptionError(KeyTrustError):
    """Raised when the RSA primitive rejects a cipher's padding or content."""


class TrustViolationKind(str, Enum):
    """Reasons a trust check can fail."""

    UNSIGNED = "unsigned"
    AMBIGUOUS_SIGNER = "ambiguous_signer"
    UNTRUSTED_CHAIN = "untrusted_chain"
    SIGNER_NOT_FOUND = "signer_not_found"
    SIGNER_MISMATCH = "signer_mismatch"
    SIGNATURE_INVALID = "signature_invalid"
    CHAIN_TOO_LONG = "chain_too_long"


class TrustViolation(KeyTrustError):
    """Raised when a signature or a certificate chain cannot be trusted.

    Parameters
    ----------
    kind:
        The :class:`TrustViolationKind` describing the failure.
    message:
        Human-readable explanation.
    """

    def __init__(self, kind: TrustViolationKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def __repr__(self) -> str:
        return f"TrustViolation(kind={self.kind.value!r}, message={str(self)!r})"


__all__ = [
    "CipherLengthError",
    "DecryptionError",
    "InvalidEncodingError",
    "InvalidInputError",
    "KeyTrustError",
    "PlaintextTooLongError",
    "TrustViolation",
    "TrustViolationKind",
]
