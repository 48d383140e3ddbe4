"""RsaKey — full RSA key material with optional embedded data and signature.

A key signs digests and certificates, decrypts data encrypted for it, and
derives its public certificate on demand. Its identity digest covers the
private values and the embedded data, but never the signature: who vouches
for a key does not change which key it is.
"""
from __future__ import annotations

import logging
from typing import Callable

from cryptography.hazmat.primitives.asymmetric import padding, utils
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from keytrust.certificate import RsaCertificate
from keytrust.config import CryptoSettings
from keytrust.digest import Sha512Digest, coerce_bytes
from keytrust.encoding import compute_rsa_hash, compute_rsa_hash_with_signature
from keytrust.exceptions import CipherLengthError, DecryptionError, InvalidInputError
from keytrust.hashable import Hashable
from keytrust.parameters import RsaParameters
from keytrust.signature import RsaSignature

logger = logging.getLogger(__name__)

SignCallback = Callable[[Sha512Digest], RsaSignature]


class RsaKey:
    """An RSA key pair.

    Parameters
    ----------
    parameters:
        Full RSA parameters including the private values.
    embedded_data:
        Optional application data folded into the identity digest and
        carried over to derived certificates.
    signature:
        Optional signature by which a trusted party vouches for this key's
        certificate.

    Raises
    ------
    InvalidInputError
        If *parameters* is None or lacks the private values.
    """

    __slots__ = ("_parameters", "_embedded_data", "_signature", "_identity_digest")

    def __init__(
        self,
        parameters: RsaParameters,
        embedded_data: Hashable | None = None,
        signature: RsaSignature | None = None,
    ) -> None:
        if parameters is None:
            raise InvalidInputError("parameters must not be None.")
        if not parameters.has_private:
            raise InvalidInputError("An RSA key requires private parameters.")
        self._parameters = parameters
        self._embedded_data = embedded_data
        self._signature = signature
        self._identity_digest = compute_rsa_hash(
            parameters,
            include_private=True,
            embedded_data=embedded_data,
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def generate(
        cls,
        embedded_data: Hashable | None = None,
        settings: CryptoSettings | None = None,
    ) -> "RsaKey":
        """Generate a new, unsigned key.

        Parameters
        ----------
        embedded_data:
            Optional application data for the new key.
        settings:
            Key generation settings; defaults to 2048-bit keys.
        """
        parameters = RsaParameters.generate(settings)
        key = cls(parameters, embedded_data=embedded_data)
        logger.info(
            "Generated %d-bit RSA key %s",
            parameters.key_size,
            key.identity_digest.hex()[:16],
        )
        return key

    @classmethod
    def generate_signed(
        cls,
        sign_callback: SignCallback,
        embedded_data: Hashable | None = None,
        settings: CryptoSettings | None = None,
    ) -> "RsaKey":
        """Generate a new key and have it signed through *sign_callback*.

        The callback receives the identity digest of the new key's
        certificate (see :attr:`certificate_digest`) and must return the
        signature vouching for it, typically ``signer_key.sign``. Exceptions
        raised by the callback propagate unchanged and no key is returned.

        Raises
        ------
        InvalidInputError
            If *sign_callback* is None.
        """
        if sign_callback is None:
            raise InvalidInputError("sign_callback must not be None.")
        parameters = RsaParameters.generate(settings)
        unsigned = cls(parameters, embedded_data=embedded_data)
        signature = sign_callback(unsigned.certificate_digest)
        key = cls(parameters, embedded_data=embedded_data, signature=signature)
        logger.info(
            "Generated %d-bit RSA key %s signed by %s",
            parameters.key_size,
            key.identity_digest.hex()[:16],
            signature.signer_certificate_digest.hex()[:16],
        )
        return key

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
        """Digest over all parameters (private included) and the embedded data."""
        return self._identity_digest

    @property
    def certificate_digest(self) -> Sha512Digest:
        """Identity digest of the certificate derived from this key."""
        return compute_rsa_hash(
            self._parameters,
            include_private=False,
            embedded_data=self._embedded_data,
        )

    @property
    def full_digest(self) -> Sha512Digest:
        return compute_rsa_hash_with_signature(
            self._parameters,
            include_private=True,
            embedded_data=self._embedded_data,
            signature=self._signature,
        )

    @property
    def key_size(self) -> int:
        return self._parameters.key_size

    # ------------------------------------------------------------------
    # Crypto operations
    # ------------------------------------------------------------------

    def create_private_key(self) -> RSAPrivateKey:
        """Return a fresh private key handle built from this key's parameters."""
        return self._parameters.to_private_key()

    def derive_certificate(self) -> RsaCertificate:
        """Return the matching certificate.

        The certificate gets the exponent and modulus, the embedded data and
        this key's signature. Private values never leave the key.
        """
        return RsaCertificate(
            self._parameters.public(),
            embedded_data=self._embedded_data,
            signature=self._signature,
        )

    def sign(self, digest: Sha512Digest) -> RsaSignature:
        """Sign *digest* with PKCS#1 v1.5 padding.

        The returned signature names this key's certificate as the signer.

        Raises
        ------
        InvalidInputError
            If *digest* is None.
        """
        if digest is None:
            raise InvalidInputError("digest must not be None.")
        raw = self.create_private_key().sign(
            digest.value,
            padding.PKCS1v15(),
            utils.Prehashed(digest.hash_algorithm()),
        )
        return RsaSignature(signer_certificate_digest=self.certificate_digest, signature=raw)

    def sign_certificate(self, certificate: RsaCertificate) -> RsaCertificate:
        """Return a copy of *certificate* signed by this key.

        Any existing signature on *certificate* is discarded: the copy is
        rebuilt from the public parameters and embedded data, and its
        identity digest is signed.

        Raises
        ------
        InvalidInputError
            If *certificate* is None.
        """
        if certificate is None:
            raise InvalidInputError("certificate must not be None.")
        parameters = certificate.parameters.public()
        signed = RsaCertificate.signed(
            parameters,
            self.sign,
            embedded_data=certificate.embedded_data,
        )
        logger.debug(
            "Signed certificate %s with key %s",
            signed.identity_digest.hex()[:16],
            self._identity_digest.hex()[:16],
        )
        return signed

    def decrypt(self, cipher: bytes) -> bytes:
        """Decrypt a PKCS#1 v1.5 cipher produced by the matching certificate.

        Raises
        ------
        InvalidInputError
            If *cipher* is None or not bytes-like.
        CipherLengthError
            If the cipher length differs from the key size in bytes.
        DecryptionError
            If the cipher's padding or content is rejected.
        """
        cipher = coerce_bytes(cipher, "cipher")
        expected = self._parameters.key_size_bytes
        if len(cipher) != expected:
            raise CipherLengthError(
                f"Cipher length {len(cipher)} does not match the key size of {expected} bytes."
            )
        try:
            return self.create_private_key().decrypt(cipher, padding.PKCS1v15())
        except ValueError as exc:
            raise DecryptionError("Failed to decrypt cipher.") from exc

    # ------------------------------------------------------------------
    # Equality
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RsaKey):
            return NotImplemented
        return self.full_digest == other.full_digest

    def __hash__(self) -> int:
        return hash(self.full_digest)

    def __repr__(self) -> str:
        signed = "signed" if self._signature is not None else "unsigned"
        return f"RsaKey({self._identity_digest.hex()[:16]}..., {signed})"


__all__ = ["RsaKey", "SignCallback"]
