"""RsaCertificate — the public projection of an RSA key.

A certificate holds only the public exponent and modulus, optional
embedded application data, and optionally a signature by which some other
party vouches for it. It can check signatures issued by the matching key
and encrypt data for it.

Two digests identify a certificate:

* ``identity_digest`` covers the parameters and the embedded data. It is
  what signers sign and what signatures reference.
* ``full_digest`` additionally covers the signature. It decides equality,
  so two differently signed copies of the same identity are distinct
  objects.
"""
from __future__ import annotations

import logging
from typing import Callable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import padding, utils
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from keytrust.digest import Sha512Digest, coerce_bytes
from keytrust.encoding import compute_rsa_hash, compute_rsa_hash_with_signature
from keytrust.exceptions import (
    InvalidInputError,
    PlaintextTooLongError,
    TrustViolation,
    TrustViolationKind,
)
from keytrust.hashable import Hashable
from keytrust.parameters import RsaParameters
from keytrust.signature import RsaSignature

logger = logging.getLogger(__name__)

# PKCS#1 v1.5 encryption overhead, expressed the way the capacity formula
# ((key_size_bits - 384) / 8) + 37 is usually written.
_PADDING_BITS: int = 384
_PADDING_SLACK: int = 37


class RsaCertificate:
    """An RSA certificate: public parameters, embedded data and optional signature.

    Parameters
    ----------
    parameters:
        RSA parameters. Only the exponent and modulus are kept; private
        values, if present, are dropped.
    embedded_data:
        Optional application data folded into the identity digest.
    signature:
        Optional signature vouching for this certificate's identity digest.

    Raises
    ------
    InvalidInputError
        If *parameters* is None.
    """

    __slots__ = (
        "_parameters",
        "_embedded_data",
        "_signature",
        "_identity_digest",
        "_full_digest",
    )

    def __init__(
        self,
        parameters: RsaParameters,
        embedded_data: Hashable | None = None,
        signature: RsaSignature | None = None,
    ) -> None:
        if parameters is None:
            raise InvalidInputError("parameters must not be None.")
        self._parameters = parameters.public()
        self._embedded_data = embedded_data
        self._signature = signature
        self._identity_digest = compute_rsa_hash(
            self._parameters,
            include_private=False,
            embedded_data=embedded_data,
        )
        self._full_digest = compute_rsa_hash_with_signature(
            self._parameters,
            include_private=False,
            embedded_data=embedded_data,
            signature=signature,
        )

    @classmethod
    def signed(
        cls,
        parameters: RsaParameters,
        sign_callback: Callable[[Sha512Digest], RsaSignature],
        embedded_data: Hashable | None = None,
    ) -> "RsaCertificate":
        """Build a certificate and sign it from its own identity digest.

        The identity digest is computed first, handed to *sign_callback*,
        and the returned signature is attached to the new certificate.
        Exceptions raised by the callback propagate unchanged.

        Raises
        ------
        InvalidInputError
            If *sign_callback* is None.
        """
        if sign_callback is None:
            raise InvalidInputError("sign_callback must not be None.")
        unsigned = cls(parameters, embedded_data=embedded_data)
        signature = sign_callback(unsigned.identity_digest)
        return cls(parameters, embedded_data=embedded_data, signature=signature)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> RsaParameters:
        return self._parameters

    @property
    def embedded_data(self) -> Hashable | None:
        return self._embedded_data

    @property
    def signature(self) -> RsaSignature | None:
        return self._signature

    @property
    def identity_digest(self) -> Sha512Digest:
        """Digest over the public parameters and the embedded data."""
        return self._identity_digest

    @property
    def full_digest(self) -> Sha512Digest:
        """Digest over the identity fields and the signature."""
        return self._full_digest

    @property
    def is_signed(self) -> bool:
        return self._signature is not None

    @property
    def key_size(self) -> int:
        return self._parameters.key_size

    @property
    def max_plaintext_length(self) -> int:
        """Largest plaintext in bytes that :meth:`encrypt` accepts."""
        return (self.key_size - _PADDING_BITS) // 8 + _PADDING_SLACK

    # ------------------------------------------------------------------
    # Crypto operations
    # ------------------------------------------------------------------

    def create_public_key(self) -> RSAPublicKey:
        """Return a fresh public key handle built from this certificate's parameters."""
        return self._parameters.to_public_key()

    def verify(self, digest: Sha512Digest, signature: RsaSignature) -> None:
        """Check that *signature* over *digest* was issued by this certificate's key.

        Only the supplied pair is checked; this certificate's own signature
        is not looked at.

        Parameters
        ----------
        digest:
            The digest that was signed.
        signature:
            The signature to check.

        Raises
        ------
        InvalidInputError
            If *digest* or *signature* is None.
        TrustViolation
            ``SIGNER_MISMATCH`` if the signature names a different signer
            certificate, ``SIGNATURE_INVALID`` if the RSA check fails.
        """
        if digest is None:
            raise InvalidInputError("digest must not be None.")
        if signature is None:
            raise InvalidInputError("signature must not be None.")
        if signature.signer_certificate_digest != self._identity_digest:
            raise TrustViolation(
                TrustViolationKind.SIGNER_MISMATCH,
                "The signature had been issued with a different key.",
            )

        public_key = self.create_public_key()
        try:
            public_key.verify(
                signature.signature,
                digest.value,
                padding.PKCS1v15(),
                utils.Prehashed(digest.hash_algorithm()),
            )
        except InvalidSignature as exc:
            raise TrustViolation(
                TrustViolationKind.SIGNATURE_INVALID,
                "Failed to verify signature.",
            ) from exc
        logger.debug(
            "Verified signature over %s with certificate %s",
            digest.hex()[:16],
            self._identity_digest.hex()[:16],
        )

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt *plaintext* with PKCS#1 v1.5 padding.

        Raises
        ------
        InvalidInputError
            If *plaintext* is None or not bytes-like.
        PlaintextTooLongError
            If *plaintext* is longer than :attr:`max_plaintext_length`.
        """
        plaintext = coerce_bytes(plaintext, "plaintext")
        if len(plaintext) > self.max_plaintext_length:
            raise PlaintextTooLongError(
                f"The plain text is too long: {len(plaintext)} bytes, "
                f"at most {self.max_plaintext_length} allowed."
            )
        return self.create_public_key().encrypt(plaintext, padding.PKCS1v15())

    # ------------------------------------------------------------------
    # Equality
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RsaCertificate):
            return NotImplemented
        return self._full_digest == other._full_digest

    def __hash__(self) -> int:
        return hash(self._full_digest)

    def __repr__(self) -> str:
        signed = "signed" if self.is_signed else "unsigned"
        return f"RsaCertificate({self._identity_digest.hex()[:16]}..., {signed})"


__all__ = ["RsaCertificate"]
