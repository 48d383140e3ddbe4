"""keytrust — RSA keys, certificates and chain-of-trust verification.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import keytrust
>>> keytrust.__version__
'0.1.0'

Quick start
-----------
::

    from keytrust import ChainOfTrust, RsaKey

    root = RsaKey.generate()
    leaf = RsaKey.generate_signed(root.sign)

    chain = ChainOfTrust([root.derive_certificate()])
    chain.verify(leaf.derive_certificate())
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Identity primitives
# ------------------------------------------------------------------
from keytrust.digest import DIGEST_SIZE, Sha512Digest
from keytrust.encoding import (
    compute_rsa_hash,
    compute_rsa_hash_with_signature,
    compute_signature_hash,
)
from keytrust.hashable import Hashable, HashableBytes, HashableJson, HashableString

# ------------------------------------------------------------------
# Keys, certificates, signatures
# ------------------------------------------------------------------
from keytrust.certificate import RsaCertificate
from keytrust.config import CryptoSettings
from keytrust.key import RsaKey
from keytrust.parameters import RsaParameters
from keytrust.signature import RsaSignature

# ------------------------------------------------------------------
# Chain of trust
# ------------------------------------------------------------------
from keytrust.chain import ChainOfTrust
from keytrust.locator import (
    CertificateLocator,
    FilesystemCertificateLocator,
    InMemoryCertificateLocator,
)

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from keytrust.exceptions import (
    CipherLengthError,
    DecryptionError,
    InvalidEncodingError,
    InvalidInputError,
    KeyTrustError,
    PlaintextTooLongError,
    TrustViolation,
    TrustViolationKind,
)

# ------------------------------------------------------------------
# Serialization
# ------------------------------------------------------------------
from keytrust.serialization import (
    dumps_certificate,
    dumps_key,
    loads_certificate,
    loads_key,
)

__all__ = [
    # version
    "__version__",
    # identity primitives
    "DIGEST_SIZE",
    "Hashable",
    "HashableBytes",
    "HashableJson",
    "HashableString",
    "Sha512Digest",
    "compute_rsa_hash",
    "compute_rsa_hash_with_signature",
    "compute_signature_hash",
    # keys, certificates, signatures
    "CryptoSettings",
    "RsaCertificate",
    "RsaKey",
    "RsaParameters",
    "RsaSignature",
    # chain of trust
    "CertificateLocator",
    "ChainOfTrust",
    "FilesystemCertificateLocator",
    "InMemoryCertificateLocator",
    # errors
    "CipherLengthError",
    "DecryptionError",
    "InvalidEncodingError",
    "InvalidInputError",
    "KeyTrustError",
    "PlaintextTooLongError",
    "TrustViolation",
    "TrustViolationKind",
    # serialization
    "dumps_certificate",
    "dumps_key",
    "loads_certificate",
    "loads_key",
]
