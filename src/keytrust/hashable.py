"""Hashable payloads that can be embedded into keys and certificates.

Application data attached to a key or certificate only needs to expose a
single capability: compute its own digest. The digest, not the data, is
folded into the owner's identity, so any payload type works as long as it
hashes deterministically.
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from keytrust.digest import Sha512Digest, coerce_bytes
from keytrust.exceptions import InvalidInputError


class Hashable(ABC):
    """Common interface of all payloads that can compute their own digest."""

    @abstractmethod
    def compute_digest(self) -> Sha512Digest:
        """Return the SHA-512 digest of this payload."""


class HashableBytes(Hashable):
    """Raw bytes as embedded data.

    Parameters
    ----------
    data:
        The payload bytes. A copy is stored.
    """

    def __init__(self, data: bytes) -> None:
        self._data = coerce_bytes(data, "data")

    @property
    def data(self) -> bytes:
        return self._data

    def compute_digest(self) -> Sha512Digest:
        return Sha512Digest.compute(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashableBytes):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"HashableBytes({len(self._data)} bytes)"


class HashableString(HashableBytes):
    """A text payload, hashed over its ASCII encoding.

    Characters outside ASCII are replaced by ``?`` before hashing, so two
    strings that differ only in non-ASCII characters at the same positions
    produce the same digest. Use :class:`HashableBytes` with an explicit
    encoding when that matters.
    """

    def __init__(self, text: str) -> None:
        if text is None:
            raise InvalidInputError("text must not be None.")
        super().__init__(text.encode("ascii", errors="replace"))
        self._text = text

    @property
    def text(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"HashableString({self._text!r})"


class HashableJson(HashableBytes):
    """Structured application data, hashed over canonical JSON.

    Object keys are sorted and insignificant whitespace is removed, so two
    logically equal mappings always hash identically.
    """

    def __init__(self, payload: Any) -> None:
        if payload is None:
            raise InvalidInputError("payload must not be None.")
        try:
            encoded = json.dumps(
                payload,
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            ).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"payload is not JSON-serializable: {exc}") from exc
        super().__init__(encoded)
        self._payload = payload

    @property
    def payload(self) -> Any:
        return self._payload

    def __repr__(self) -> str:
        return f"HashableJson({self._payload!r})"


__all__ = ["Hashable", "HashableBytes", "HashableJson", "HashableString"]
