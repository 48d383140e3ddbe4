#!/usr/bin/env python3
"""Example: Chains with located intermediates

Only the root certificate is trusted directly. Intermediate certificates
are stored in a directory and found through a certificate locator while
the chain is walked.

Usage:
    python examples/02_located_chain.py

Requirements:
    pip install keytrust
"""
from __future__ import annotations

import tempfile
from pathlib import Path

from keytrust import (
    ChainOfTrust,
    CryptoSettings,
    FilesystemCertificateLocator,
    RsaKey,
    TrustViolation,
)


def main() -> None:
    settings = CryptoSettings(key_size=2048)

    root = RsaKey.generate(settings=settings)
    department = RsaKey.generate_signed(root.sign, settings=settings)
    team = RsaKey.generate_signed(department.sign, settings=settings)
    member = RsaKey.generate_signed(team.sign, settings=settings)

    with tempfile.TemporaryDirectory() as tmp:
        store = FilesystemCertificateLocator(Path(tmp))
        for key in (department, team):
            path = store.save(key.derive_certificate())
            print(f"Stored {path.name[:16]}...")

        chain = ChainOfTrust([root.derive_certificate()], locator=store)
        chain.verify(member.derive_certificate())
        print("Member is trusted through two located certificates.")

        strict = ChainOfTrust([root.derive_certificate()], locator=store, max_depth=1)
        try:
            strict.verify(member.derive_certificate())
        except TrustViolation as exc:
            print(f"With max_depth=1: {exc} ({exc.kind.value})")


if __name__ == "__main__":
    main()
