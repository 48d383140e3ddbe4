"""JSON persistence for keys and certificates.

Keys and certificates share one document layout::

    {
      "hash": "<identity digest, base64>",
      "embedded_data": "<base64>" | null,
      "parameters": {"exponent": "...", "modulus": "...", "d": "...", ...},
      "signer_certificate_hash": "<base64>" | null,
      "signature": "<base64>" | null
    }

Whether a document holds a key or a certificate is decided solely by the
presence of the private exponent ``d``. Every decoding failure surfaces as
:class:`~keytrust.exceptions.InvalidEncodingError` so corrupt input can be
told apart from programming errors.
"""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

from pydantic import BaseModel, ValidationError

from keytrust.certificate import RsaCertificate
from keytrust.digest import Sha512Digest
from keytrust.exceptions import InvalidEncodingError, InvalidInputError, KeyTrustError
from keytrust.hashable import Hashable, HashableBytes
from keytrust.key import RsaKey
from keytrust.parameters import RsaParameters
from keytrust.signature import RsaSignature

logger = logging.getLogger(__name__)


class RsaSerializationModel(BaseModel):
    """Base64-encoded RSA parameters."""

    exponent: Optional[str] = None
    modulus: Optional[str] = None
    d: Optional[str] = None
    dp: Optional[str] = None
    dq: Optional[str] = None
    inverse_q: Optional[str] = None
    p: Optional[str] = None
    q: Optional[str] = None


class SerializationModel(BaseModel):
    """Persisted form of a key or certificate."""

    hash: Optional[str] = None
    embedded_data: Optional[str] = None
    parameters: Optional[RsaSerializationModel] = None
    signer_certificate_hash: Optional[str] = None
    signature: Optional[str] = None

    @property
    def is_key(self) -> bool:
        return self.parameters is not None and self.parameters.d is not None


# ------------------------------------------------------------------
# Encoding helpers
# ------------------------------------------------------------------


def _b64(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _unb64(encoded: str | None) -> bytes | None:
    if encoded is None:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncodingError(f"Invalid base64 value: {exc}") from exc


def _embedded_bytes(embedded_data: Hashable | None) -> str | None:
    if embedded_data is None:
        return None
    try:
        raw = bytes(embedded_data)  # type: ignore[call-overload]
    except TypeError as exc:
        raise InvalidInputError(
            f"Embedded data of type {type(embedded_data).__name__} cannot be serialized."
        ) from exc
    return _b64(raw)


def parameters_to_model(parameters: RsaParameters) -> RsaSerializationModel:
    return RsaSerializationModel(
        exponent=_b64(parameters.exponent),
        modulus=_b64(parameters.modulus),
        d=_b64(parameters.d),
        dp=_b64(parameters.dp),
        dq=_b64(parameters.dq),
        inverse_q=_b64(parameters.inverse_q),
        p=_b64(parameters.p),
        q=_b64(parameters.q),
    )


def model_to_parameters(model: RsaSerializationModel) -> RsaParameters:
    """Decode RSA parameters.

    Raises
    ------
    InvalidEncodingError
        If a value is not valid base64 or the parameters are incomplete.
    """
    if model is None:
        raise InvalidEncodingError("The model does not include RSA parameters.")
    exponent = _unb64(model.exponent)
    modulus = _unb64(model.modulus)
    if exponent is None or modulus is None:
        raise InvalidEncodingError("Invalid RSA parameters: exponent and modulus are required.")
    return RsaParameters(
        exponent=exponent,
        modulus=modulus,
        d=_unb64(model.d),
        dp=_unb64(model.dp),
        dq=_unb64(model.dq),
        inverse_q=_unb64(model.inverse_q),
        p=_unb64(model.p),
        q=_unb64(model.q),
    )


def _model_signature(model: SerializationModel) -> RsaSignature | None:
    if (model.signer_certificate_hash is None) != (model.signature is None):
        raise InvalidEncodingError("The signature is incomplete.")
    if model.signature is None:
        return None
    signer = Sha512Digest.from_base64(model.signer_certificate_hash)  # type: ignore[arg-type]
    return RsaSignature(signer_certificate_digest=signer, signature=_unb64(model.signature))  # type: ignore[arg-type]


def _model_embedded(model: SerializationModel) -> HashableBytes | None:
    if model.embedded_data is None:
        return None
    return HashableBytes(_unb64(model.embedded_data))  # type: ignore[arg-type]


def _check_hash(model: SerializationModel, identity: Sha512Digest) -> None:
    if model.hash is None:
        return
    if Sha512Digest.from_base64(model.hash) != identity:
        raise InvalidEncodingError(
            "The stored hash does not match the parameters and embedded data."
        )


# ------------------------------------------------------------------
# Model conversion
# ------------------------------------------------------------------


def key_to_model(key: RsaKey) -> SerializationModel:
    """Convert *key* into its persisted form."""
    if key is None:
        raise InvalidInputError("key must not be None.")
    signature = key.signature
    return SerializationModel(
        hash=key.identity_digest.to_base64(),
        embedded_data=_embedded_bytes(key.embedded_data),
        parameters=parameters_to_model(key.parameters),
        signer_certificate_hash=(
            signature.signer_certificate_digest.to_base64() if signature else None
        ),
        signature=_b64(signature.signature) if signature else None,
    )


def certificate_to_model(certificate: RsaCertificate) -> SerializationModel:
    """Convert *certificate* into its persisted form."""
    if certificate is None:
        raise InvalidInputError("certificate must not be None.")
    signature = certificate.signature
    return SerializationModel(
        hash=certificate.identity_digest.to_base64(),
        embedded_data=_embedded_bytes(certificate.embedded_data),
        parameters=parameters_to_model(certificate.parameters),
        signer_certificate_hash=(
            signature.signer_certificate_digest.to_base64() if signature else None
        ),
        signature=_b64(signature.signature) if signature else None,
    )


def model_to_key(model: SerializationModel) -> RsaKey:
    """Rebuild a key from its persisted form.

    Raises
    ------
    InvalidInputError
        If *model* is None.
    InvalidEncodingError
        If the model holds a certificate, carries half a signature, or its
        values are invalid.
    """
    if model is None:
        raise InvalidInputError("model must not be None.")
    if not model.is_key:
        raise InvalidEncodingError("The model contains a certificate.")
    try:
        parameters = model_to_parameters(model.parameters)  # type: ignore[arg-type]
        # Rejects numbers that do not form a consistent RSA key.
        parameters.to_private_key()
        key = RsaKey(
            parameters,
            embedded_data=_model_embedded(model),
            signature=_model_signature(model),
        )
    except InvalidEncodingError:
        raise
    except KeyTrustError as exc:
        raise InvalidEncodingError("The model is invalid or not supported.") from exc
    _check_hash(model, key.identity_digest)
    return key


def model_to_certificate(model: SerializationModel) -> RsaCertificate:
    """Rebuild a certificate from its persisted form.

    Raises
    ------
    InvalidInputError
        If *model* is None.
    InvalidEncodingError
        If the model holds a key, carries half a signature, or its values
        are invalid.
    """
    if model is None:
        raise InvalidInputError("model must not be None.")
    if model.is_key:
        raise InvalidEncodingError("The model contains a key.")
    try:
        parameters = model_to_parameters(model.parameters)  # type: ignore[arg-type]
        parameters.to_public_key()
        certificate = RsaCertificate(
            parameters,
            embedded_data=_model_embedded(model),
            signature=_model_signature(model),
        )
    except InvalidEncodingError:
        raise
    except KeyTrustError as exc:
        raise InvalidEncodingError("The model is invalid or not supported.") from exc
    _check_hash(model, certificate.identity_digest)
    return certificate


# ------------------------------------------------------------------
# JSON text
# ------------------------------------------------------------------


def dumps_key(key: RsaKey) -> str:
    """Serialize *key* to a JSON document."""
    return key_to_model(key).model_dump_json(indent=2)


def dumps_certificate(certificate: RsaCertificate) -> str:
    """Serialize *certificate* to a JSON document."""
    return certificate_to_model(certificate).model_dump_json(indent=2)


def _parse(text: str | bytes) -> SerializationModel:
    if text is None:
        raise InvalidInputError("text must not be None.")
    try:
        return SerializationModel.model_validate_json(text)
    except ValidationError as exc:
        logger.debug("Rejected serialized document: %s", exc)
        raise InvalidEncodingError("The data is invalid or not supported.") from exc


def loads_key(text: str | bytes) -> RsaKey:
    """Deserialize a key from a JSON document.

    Raises
    ------
    InvalidEncodingError
        If the document is not a valid key document.
    """
    return model_to_key(_parse(text))


def loads_certificate(text: str | bytes) -> RsaCertificate:
    """Deserialize a certificate from a JSON document.

    Raises
    ------
    InvalidEncodingError
        If the document is not a valid certificate document.
    """
    return model_to_certificate(_parse(text))


__all__ = [
    "RsaSerializationModel",
    "SerializationModel",
    "certificate_to_model",
    "dumps_certificate",
    "dumps_key",
    "key_to_model",
    "loads_certificate",
    "loads_key",
    "model_to_certificate",
    "model_to_key",
    "model_to_parameters",
    "parameters_to_model",
]
