"""CryptoSettings — configurable RSA key generation parameters.

Key size is passed explicitly wherever keys are generated instead of living
in a global constant. Sensible defaults are provided for all parameters.
"""
from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_KEY_SIZE: int = 2048
DEFAULT_PUBLIC_EXPONENT: int = 65537


class CryptoSettings(BaseModel):
    """RSA key generation settings.

    Parameters
    ----------
    key_size:
        Modulus size in bits for newly generated keys. Must be at least 1024
        and a multiple of 8.
    public_exponent:
        Public exponent for newly generated keys (3 or 65537).
    """

    key_size: int = Field(default=DEFAULT_KEY_SIZE, ge=1024)
    public_exponent: int = DEFAULT_PUBLIC_EXPONENT

    model_config = {"frozen": True}

    @field_validator("key_size")
    @classmethod
    def _key_size_whole_bytes(cls, value: int) -> int:
        if value % 8 != 0:
            raise ValueError(f"key_size must be a multiple of 8, got {value}")
        return value

    @field_validator("public_exponent")
    @classmethod
    def _supported_exponent(cls, value: int) -> int:
        if value not in (3, 65537):
            raise ValueError(f"public_exponent must be 3 or 65537, got {value}")
        return value

    @property
    def key_size_bytes(self) -> int:
        return self.key_size // 8

    @classmethod
    def from_env(cls, prefix: str = "KEYTRUST_") -> "CryptoSettings":
        """Build settings from environment variables.

        Reads ``<prefix>KEY_SIZE`` and ``<prefix>PUBLIC_EXPONENT``; unset
        variables fall back to the defaults.

        Raises
        ------
        pydantic.ValidationError
            If a variable is set to an invalid value.
        """
        values: dict[str, str] = {}
        key_size = os.environ.get(f"{prefix}KEY_SIZE")
        if key_size:
            values["key_size"] = key_size
        public_exponent = os.environ.get(f"{prefix}PUBLIC_EXPONENT")
        if public_exponent:
            values["public_exponent"] = public_exponent
        return cls.model_validate(values)


DEFAULT_SETTINGS = CryptoSettings()

__all__ = [
    "CryptoSettings",
    "DEFAULT_KEY_SIZE",
    "DEFAULT_PUBLIC_EXPONENT",
    "DEFAULT_SETTINGS",
]
