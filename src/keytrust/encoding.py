"""Canonical encoding of RSA material, embedded data and signatures.

Every identity digest in keytrust is produced here. The encoding writes an
ordered list of fields into one buffer and digests the buffer once with
SHA-512. For RSA parameters the field list is::

    exponent, modulus,
    private flag, [d, dp, dq, inverse_q, p, q],
    embedded flag, [digest of embedded data],
    signature flag, [digest of signature]       (with-signature variant only)

Each field is preceded by a 4-byte little-endian tag. Integers inside the
fields are big-endian, so the output does not depend on host byte order.

The tag is the constant :data:`FIELD_TAG` for every field. Existing
identity digests were produced with this layout and stay valid only as
long as it is kept byte-for-byte; presence flags and the fixed field widths
of :class:`~keytrust.parameters.RsaParameters` keep fields from sliding
into each other.
"""
from __future__ import annotations

import io
import struct
from typing import TYPE_CHECKING, Iterable

from keytrust.digest import Sha512Digest, coerce_bytes
from keytrust.exceptions import InvalidInputError
from keytrust.hashable import Hashable
from keytrust.parameters import RsaParameters

if TYPE_CHECKING:
    from keytrust.signature import RsaSignature

FIELD_TAG: int = 0

_ABSENT = b"\x00"
_PRESENT = b"\x01"


def _int32_le(value: int) -> bytes:
    return struct.pack("<i", value)


def _rsa_fields(
    parameters: RsaParameters,
    include_private: bool,
    embedded_data: Hashable | None,
) -> list[bytes]:
    if parameters is None:
        raise InvalidInputError("parameters must not be None.")

    fields: list[bytes] = [parameters.exponent, parameters.modulus]
    if include_private:
        if not parameters.has_private:
            raise InvalidInputError(
                "Cannot include private parameters: the RSA parameters are public only."
            )
        fields.append(_PRESENT)
        fields.extend(
            [
                parameters.d,  # type: ignore[list-item]
                parameters.dp,  # type: ignore[list-item]
                parameters.dq,  # type: ignore[list-item]
                parameters.inverse_q,  # type: ignore[list-item]
                parameters.p,  # type: ignore[list-item]
                parameters.q,  # type: ignore[list-item]
            ]
        )
    else:
        fields.append(_ABSENT)

    if embedded_data is not None:
        fields.append(_PRESENT)
        fields.append(embedded_data.compute_digest().value)
    else:
        fields.append(_ABSENT)

    return fields


def _digest_fields(fields: Iterable[bytes]) -> Sha512Digest:
    with io.BytesIO() as buffer:
        for field in fields:
            buffer.write(_int32_le(FIELD_TAG))
            buffer.write(field)
        buffer.seek(0)
        return Sha512Digest.compute_stream(buffer)


def compute_rsa_hash(
    parameters: RsaParameters,
    include_private: bool,
    embedded_data: Hashable | None = None,
) -> Sha512Digest:
    """Compute the identity digest of RSA parameters and optional embedded data.

    Parameters
    ----------
    parameters:
        The RSA parameters.
    include_private:
        ``True`` to fold in the private values (key identity), ``False`` to
        use the public values only (certificate identity). With ``False``
        the private values are skipped entirely, so a key and every
        certificate derived from it agree on the public digest.
    embedded_data:
        Optional application data whose digest is folded in.

    Returns
    -------
    Sha512Digest
        The identity digest.

    Raises
    ------
    InvalidInputError
        If *parameters* is None, or *include_private* is requested for
        public-only parameters.
    """
    fields = _rsa_fields(parameters, include_private, embedded_data)
    return _digest_fields(fields)


def compute_rsa_hash_with_signature(
    parameters: RsaParameters,
    include_private: bool,
    embedded_data: Hashable | None,
    signature: "RsaSignature | None",
) -> Sha512Digest:
    """Compute the full digest: identity fields plus the optional signature.

    Two objects with the same parameters and embedded data but different
    signatures get different full digests.
    """
    fields = _rsa_fields(parameters, include_private, embedded_data)
    if signature is not None:
        fields.append(_PRESENT)
        fields.append(signature.digest.value)
    else:
        fields.append(_ABSENT)
    return _digest_fields(fields)


def compute_signature_hash(
    signer_certificate_digest: Sha512Digest,
    signature_bytes: bytes,
) -> Sha512Digest:
    """Compute the digest identifying a signature.

    The layout is ``len || signer digest || len || signature bytes`` with
    4-byte little-endian lengths.
    """
    signer = signer_certificate_digest.value
    buffer = b"".join(
        [
            _int32_le(len(signer)),
            signer,
            _int32_le(len(signature_bytes)),
            coerce_bytes(signature_bytes, "signature_bytes"),
        ]
    )
    return Sha512Digest.compute(buffer)


__all__ = [
    "FIELD_TAG",
    "compute_rsa_hash",
    "compute_rsa_hash_with_signature",
    "compute_signature_hash",
]
