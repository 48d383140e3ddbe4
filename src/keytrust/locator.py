"""Certificate locators — resolve an identity digest to a certificate.

CertificateLocator defines the lookup contract used by
:class:`~keytrust.chain.ChainOfTrust` for signers that are not directly
trusted. Two implementations are provided: an in-memory index and a
filesystem directory of JSON documents.

Locators own their thread safety; the chain of trust calls ``get`` as a
plain blocking call.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from keytrust.certificate import RsaCertificate
from keytrust.digest import Sha512Digest
from keytrust.exceptions import InvalidInputError
from keytrust.serialization import dumps_certificate, loads_certificate

logger = logging.getLogger(__name__)


class CertificateLocator(ABC):
    """Abstract base class for certificate lookup backends."""

    @abstractmethod
    def get(self, digest: Sha512Digest) -> RsaCertificate | None:
        """Locate a certificate by its identity digest.

        Parameters
        ----------
        digest:
            The identity digest of the wanted certificate.

        Returns
        -------
        RsaCertificate | None
            The certificate, or ``None`` if it is unknown.
        """


class InMemoryCertificateLocator(CertificateLocator):
    """Thread-safe in-memory certificate index keyed by identity digest.

    Parameters
    ----------
    certificates:
        Optional initial certificates.
    """

    def __init__(self, certificates: Iterable[RsaCertificate] = ()) -> None:
        self._certificates: dict[Sha512Digest, RsaCertificate] = {}
        self._lock = threading.Lock()
        for certificate in certificates:
            self.add(certificate)

    def add(self, certificate: RsaCertificate) -> None:
        """Index *certificate*, replacing any certificate with the same identity."""
        if certificate is None:
            raise InvalidInputError("certificate must not be None.")
        with self._lock:
            self._certificates[certificate.identity_digest] = certificate

    def remove(self, digest: Sha512Digest) -> None:
        """Remove the certificate with identity *digest*.

        Raises
        ------
        KeyError
            If no certificate with that identity is indexed.
        """
        with self._lock:
            if digest not in self._certificates:
                raise KeyError(f"No certificate indexed for digest {digest.hex()[:16]}...")
            del self._certificates[digest]

    def get(self, digest: Sha512Digest) -> RsaCertificate | None:
        if digest is None:
            raise InvalidInputError("digest must not be None.")
        with self._lock:
            return self._certificates.get(digest)

    def __contains__(self, digest: object) -> bool:
        with self._lock:
            return digest in self._certificates

    def __len__(self) -> int:
        with self._lock:
            return len(self._certificates)


class FilesystemCertificateLocator(CertificateLocator):
    """Filesystem-backed certificate directory.

    Each certificate is stored under *base_dir* as
    ``<identity digest hex>.json`` in the format written by
    :func:`keytrust.serialization.dumps_certificate`.

    Parameters
    ----------
    base_dir:
        Directory holding the certificate documents. Created if missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def save(self, certificate: RsaCertificate) -> Path:
        """Write *certificate* to disk and return the file path."""
        if certificate is None:
            raise InvalidInputError("certificate must not be None.")
        path = self._path(certificate.identity_digest)
        path.write_text(dumps_certificate(certificate), encoding="utf-8")
        logger.debug("Stored certificate %s at %s", certificate.identity_digest.hex()[:16], path)
        return path

    def get(self, digest: Sha512Digest) -> RsaCertificate | None:
        """Load the certificate with identity *digest*, or ``None`` if absent.

        Raises
        ------
        InvalidEncodingError
            If the stored document exists but cannot be parsed.
        """
        if digest is None:
            raise InvalidInputError("digest must not be None.")
        path = self._path(digest)
        if not path.exists():
            logger.debug("No certificate stored for %s", digest.hex()[:16])
            return None
        return loads_certificate(path.read_text(encoding="utf-8"))

    def delete(self, digest: Sha512Digest) -> None:
        """Remove the stored certificate.

        Raises
        ------
        KeyError
            If no certificate is stored for *digest*.
        """
        path = self._path(digest)
        if not path.exists():
            raise KeyError(f"No certificate stored for digest {digest.hex()[:16]}...")
        path.unlink()

    def exists(self, digest: Sha512Digest) -> bool:
        return self._path(digest).exists()

    def list_digests(self) -> list[Sha512Digest]:
        """Return the identity digests of all stored certificates, sorted by hex value."""
        return [
            Sha512Digest.from_hex(path.stem)
            for path in sorted(self._base_dir.glob("*.json"))
        ]

    def _path(self, digest: Sha512Digest) -> Path:
        return self._base_dir / f"{digest.hex()}.json"


__all__ = [
    "CertificateLocator",
    "FilesystemCertificateLocator",
    "InMemoryCertificateLocator",
]
