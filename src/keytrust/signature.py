"""RsaSignature — a signer's certificate digest bound to raw signature bytes."""
from __future__ import annotations

from keytrust.digest import Sha512Digest, coerce_bytes
from keytrust.encoding import compute_signature_hash
from keytrust.exceptions import InvalidInputError


class RsaSignature:
    """An RSA signature together with the identity of the certificate that can check it.

    The signer is referenced by its certificate's identity digest only; the
    certificate itself is resolved by lookup when the signature is verified.

    Parameters
    ----------
    signer_certificate_digest:
        Identity digest of the signer's certificate.
    signature:
        The raw PKCS#1 v1.5 signature bytes.

    Raises
    ------
    InvalidInputError
        If either argument is None, or *signature* is not bytes-like.
    """

    __slots__ = ("_signer_certificate_digest", "_signature", "_digest")

    def __init__(self, signer_certificate_digest: Sha512Digest, signature: bytes) -> None:
        if signer_certificate_digest is None:
            raise InvalidInputError("signer_certificate_digest must not be None.")
        if not isinstance(signer_certificate_digest, Sha512Digest):
            raise InvalidInputError(
                "signer_certificate_digest must be a Sha512Digest, "
                f"got {type(signer_certificate_digest).__name__}."
            )
        self._signer_certificate_digest = signer_certificate_digest
        self._signature = coerce_bytes(signature, "signature")
        self._digest = compute_signature_hash(signer_certificate_digest, self._signature)

    @property
    def signer_certificate_digest(self) -> Sha512Digest:
        return self._signer_certificate_digest

    @property
    def signature(self) -> bytes:
        return self._signature

    @property
    def digest(self) -> Sha512Digest:
        """Digest over the signer digest and the signature bytes."""
        return self._digest

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RsaSignature):
            return NotImplemented
        return self._digest == other._digest

    def __hash__(self) -> int:
        return hash(self._digest)

    def __repr__(self) -> str:
        return (
            f"RsaSignature(signer={self._signer_certificate_digest.hex()[:16]}..., "
            f"{len(self._signature)} bytes)"
        )


__all__ = ["RsaSignature"]
