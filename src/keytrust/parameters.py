"""RsaParameters — immutable RSA key material as big-endian byte strings.

The layout follows the conventional RSA parameter export: the modulus is
``k`` bytes long (``k`` = key size in bytes), the private exponent ``d`` is
padded to ``k`` bytes and the CRT values (``p``, ``q``, ``dp``, ``dq``,
``inverse_q``) are padded to ``ceil(k / 2)`` bytes, and the exponent has no
leading zero bytes. Every instance is normalized to these widths on
construction, so the canonical encoding does not depend on how many
leading zero bytes the input carried.

Because instances are frozen and hold ``bytes``, no two owners can ever
alias a mutable parameter buffer.
"""
from __future__ import annotations

from dataclasses import dataclass, fields

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from keytrust.config import DEFAULT_SETTINGS, CryptoSettings
from keytrust.digest import coerce_bytes
from keytrust.exceptions import InvalidEncodingError, InvalidInputError

_PRIVATE_FIELDS: tuple[str, ...] = ("d", "dp", "dq", "inverse_q", "p", "q")


def _int_to_bytes(value: int, length: int | None = None) -> bytes:
    """Encode a non-negative integer as big-endian bytes."""
    if length is None:
        length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, "big")


def _bytes_to_int(value: bytes) -> int:
    return int.from_bytes(value, "big")


def _fixed_width(name: str, value: bytes, length: int | None) -> bytes:
    try:
        return _int_to_bytes(_bytes_to_int(value), length)
    except OverflowError as exc:
        raise InvalidEncodingError(
            f"RSA parameter {name} does not fit in {length} bytes."
        ) from exc


@dataclass(frozen=True)
class RsaParameters:
    """RSA public and (optionally) private parameters.

    Parameters
    ----------
    exponent:
        Public exponent ``e``.
    modulus:
        Modulus ``n``.
    d, dp, dq, inverse_q, p, q:
        Private exponent and CRT values. Either all of them are set or none.

    Raises
    ------
    InvalidInputError
        If a value is not bytes-like.
    InvalidEncodingError
        If the public values are empty, the modulus is zero, the private
        values are only partially present, or a private value is wider
        than its slot.
    """

    exponent: bytes
    modulus: bytes
    d: bytes | None = None
    dp: bytes | None = None
    dq: bytes | None = None
    inverse_q: bytes | None = None
    p: bytes | None = None
    q: bytes | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                object.__setattr__(self, f.name, coerce_bytes(value, f.name))

        if not self.exponent or not self.modulus:
            raise InvalidEncodingError("RSA exponent and modulus are required.")

        present = [getattr(self, name) is not None for name in _PRIVATE_FIELDS]
        if any(present) and not all(present):
            missing = [name for name, ok in zip(_PRIVATE_FIELDS, present) if not ok]
            raise InvalidEncodingError(
                f"Incomplete private RSA parameters, missing: {', '.join(missing)}"
            )

        size = self.key_size_bytes
        if size == 0:
            raise InvalidEncodingError("RSA modulus must not be zero.")
        half = (size + 1) // 2
        widths = {"exponent": None, "modulus": size, "d": size}
        widths.update((name, half) for name in _PRIVATE_FIELDS[1:])
        for name, length in widths.items():
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _fixed_width(name, value, length))

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def generate(cls, settings: CryptoSettings | None = None) -> "RsaParameters":
        """Generate a fresh RSA key pair and return its full parameters."""
        settings = settings or DEFAULT_SETTINGS
        private_key = rsa.generate_private_key(
            public_exponent=settings.public_exponent,
            key_size=settings.key_size,
        )
        return cls.from_private_key(private_key)

    @classmethod
    def from_private_key(cls, private_key: RSAPrivateKey) -> "RsaParameters":
        """Export all parameters of a ``cryptography`` private key."""
        numbers = private_key.private_numbers()
        public = numbers.public_numbers
        size = (public.n.bit_length() + 7) // 8
        half = (size + 1) // 2
        return cls(
            exponent=_int_to_bytes(public.e),
            modulus=_int_to_bytes(public.n, size),
            d=_int_to_bytes(numbers.d, size),
            dp=_int_to_bytes(numbers.dmp1, half),
            dq=_int_to_bytes(numbers.dmq1, half),
            inverse_q=_int_to_bytes(numbers.iqmp, half),
            p=_int_to_bytes(numbers.p, half),
            q=_int_to_bytes(numbers.q, half),
        )

    @classmethod
    def from_public_key(cls, public_key: RSAPublicKey) -> "RsaParameters":
        """Export the public parameters of a ``cryptography`` public key."""
        public = public_key.public_numbers()
        size = (public.n.bit_length() + 7) // 8
        return cls(
            exponent=_int_to_bytes(public.e),
            modulus=_int_to_bytes(public.n, size),
        )

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @property
    def has_private(self) -> bool:
        return self.d is not None

    @property
    def key_size(self) -> int:
        """Modulus size in bits, rounded up to whole bytes."""
        return self.key_size_bytes * 8

    @property
    def key_size_bytes(self) -> int:
        return (_bytes_to_int(self.modulus).bit_length() + 7) // 8

    def public(self) -> "RsaParameters":
        """Return a copy holding only the exponent and modulus."""
        return RsaParameters(exponent=self.exponent, modulus=self.modulus)

    # ------------------------------------------------------------------
    # Crypto handles
    # ------------------------------------------------------------------

    def to_public_key(self) -> RSAPublicKey:
        """Build a short-lived public key handle.

        Raises
        ------
        InvalidEncodingError
            If the exponent and modulus do not form a valid RSA public key.
        """
        try:
            return rsa.RSAPublicNumbers(
                e=_bytes_to_int(self.exponent),
                n=_bytes_to_int(self.modulus),
            ).public_key()
        except ValueError as exc:
            raise InvalidEncodingError(f"Invalid RSA public parameters: {exc}") from exc

    def to_private_key(self) -> RSAPrivateKey:
        """Build a short-lived private key handle.

        Raises
        ------
        InvalidInputError
            If these parameters carry no private values.
        InvalidEncodingError
            If the values are not a consistent RSA private key.
        """
        if not self.has_private:
            raise InvalidInputError("RSA parameters do not include private values.")
        public = rsa.RSAPublicNumbers(
            e=_bytes_to_int(self.exponent),
            n=_bytes_to_int(self.modulus),
        )
        try:
            return rsa.RSAPrivateNumbers(
                p=_bytes_to_int(self.p),
                q=_bytes_to_int(self.q),
                d=_bytes_to_int(self.d),
                dmp1=_bytes_to_int(self.dp),
                dmq1=_bytes_to_int(self.dq),
                iqmp=_bytes_to_int(self.inverse_q),
                public_numbers=public,
            ).private_key()
        except ValueError as exc:
            raise InvalidEncodingError(f"Invalid RSA private parameters: {exc}") from exc

    def __repr__(self) -> str:
        kind = "private" if self.has_private else "public"
        return f"RsaParameters({kind}, {self.key_size} bits)"


__all__ = ["RsaParameters"]
