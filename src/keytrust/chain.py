"""ChainOfTrust — verify a certificate up to a locally trusted anchor.

A chain of trust directly trusts a fixed set of certificates. A certificate
under verification must carry a signature; the signer is looked up first
among the trusted certificates and, failing that, through an optional
certificate locator. Located signers are verified in turn until a trusted
anchor terminates the walk.

Instances never change after construction, so one chain can verify many
certificates concurrently.
"""
from __future__ import annotations

import logging
from typing import Iterable

from keytrust.certificate import RsaCertificate
from keytrust.exceptions import InvalidInputError, TrustViolation, TrustViolationKind
from keytrust.locator import CertificateLocator

logger = logging.getLogger(__name__)


class ChainOfTrust:
    """Verifies certificates against trusted anchors and located intermediates.

    Parameters
    ----------
    trusted_certificates:
        Certificates at which verification terminates successfully. The
        set must not hold two certificates with the same identity digest.
    locator:
        Optional lookup for signer certificates that are not trusted
        directly.
    max_depth:
        Optional bound on the number of located certificates walked before
        reaching a trusted anchor. ``None`` means unbounded.

    Raises
    ------
    InvalidInputError
        If *trusted_certificates* is None or *max_depth* is negative.
    """

    def __init__(
        self,
        trusted_certificates: Iterable[RsaCertificate],
        locator: CertificateLocator | None = None,
        max_depth: int | None = None,
    ) -> None:
        if trusted_certificates is None:
            raise InvalidInputError("trusted_certificates must not be None.")
        if max_depth is not None and max_depth < 0:
            raise InvalidInputError(f"max_depth must be non-negative, got {max_depth}.")
        self._trusted_certificates: tuple[RsaCertificate, ...] = tuple(trusted_certificates)
        self._locator = locator
        self._max_depth = max_depth

    @property
    def trusted_certificates(self) -> tuple[RsaCertificate, ...]:
        return self._trusted_certificates

    @property
    def locator(self) -> CertificateLocator | None:
        return self._locator

    @property
    def max_depth(self) -> int | None:
        return self._max_depth

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def verify(self, certificate: RsaCertificate) -> None:
        """Verify *certificate* against its signer and on up to a trusted anchor.

        Parameters
        ----------
        certificate:
            The certificate to verify.

        Raises
        ------
        InvalidInputError
            If *certificate* is None.
        TrustViolation
            ``UNSIGNED`` if a certificate in the chain carries no signature,
            ``AMBIGUOUS_SIGNER`` if several trusted certificates share the
            signer identity, ``UNTRUSTED_CHAIN`` if the signer is not trusted
            and no locator is configured, ``SIGNER_NOT_FOUND`` if the locator
            does not know the signer, ``CHAIN_TOO_LONG`` if *max_depth* is
            exceeded, or the failure raised by
            :meth:`RsaCertificate.verify`.
        """
        if certificate is None:
            raise InvalidInputError("certificate must not be None.")

        current = certificate
        located = 0
        while True:
            signature = current.signature
            if signature is None:
                raise self._fail(
                    TrustViolationKind.UNSIGNED,
                    "The certificate is either unsigned or the signature is untrusted.",
                )

            target = signature.signer_certificate_digest
            matches = [
                trusted
                for trusted in self._trusted_certificates
                if trusted.identity_digest == target
            ]
            if len(matches) > 1:
                raise self._fail(
                    TrustViolationKind.AMBIGUOUS_SIGNER,
                    "Ambiguous signer certificate.",
                )
            if matches:
                matches[0].verify(current.identity_digest, signature)
                logger.info(
                    "Certificate %s verified by trusted certificate %s after %d located link(s)",
                    certificate.identity_digest.hex()[:16],
                    target.hex()[:16],
                    located,
                )
                return

            if self._locator is None:
                raise self._fail(
                    TrustViolationKind.UNTRUSTED_CHAIN,
                    "Integrity of the certificate cannot be verified due to "
                    "untrusted certificate in the chain of trust.",
                )
            if self._max_depth is not None and located >= self._max_depth:
                raise self._fail(
                    TrustViolationKind.CHAIN_TOO_LONG,
                    f"The chain of trust exceeds the maximum depth of {self._max_depth}.",
                )

            logger.debug("Locating signer certificate %s", target.hex()[:16])
            signer = self._locator.get(target)
            if signer is None:
                raise self._fail(
                    TrustViolationKind.SIGNER_NOT_FOUND,
                    "The certificate's signer certificate could not be found.",
                )

            signer.verify(current.identity_digest, signature)
            located += 1
            current = signer

    def is_trusted(self, certificate: RsaCertificate) -> bool:
        """Return True if :meth:`verify` succeeds, False on a trust violation."""
        try:
            self.verify(certificate)
        except TrustViolation:
            return False
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _fail(kind: TrustViolationKind, message: str) -> TrustViolation:
        logger.warning("Chain of trust verification failed (%s): %s", kind.value, message)
        return TrustViolation(kind, message)


__all__ = ["ChainOfTrust"]
