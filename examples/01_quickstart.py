#!/usr/bin/env python3
"""Example: Quickstart

Generates a root key, a key signed by it, and verifies the signed key's
certificate against the root certificate.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install keytrust
"""
from __future__ import annotations

import keytrust
from keytrust import ChainOfTrust, HashableString, RsaKey, Sha512Digest, TrustViolation


def main() -> None:
    print(f"keytrust version: {keytrust.__version__}")

    # Step 1: A root key whose certificate everybody trusts
    root = RsaKey.generate()
    root_certificate = root.derive_certificate()
    print(f"Root certificate: {root_certificate.identity_digest.hex()[:16]}...")

    # Step 2: A key for "alice", signed by the root
    alice = RsaKey.generate_signed(root.sign, embedded_data=HashableString("alice"))
    alice_certificate = alice.derive_certificate()
    print(f"Alice certificate: {alice_certificate.identity_digest.hex()[:16]}...")

    # Step 3: Verify alice's certificate up to the root
    chain = ChainOfTrust([root_certificate])
    chain.verify(alice_certificate)
    print("Alice is trusted.")

    # Step 4: Alice signs a message, anybody holding her certificate checks it
    message = Sha512Digest.compute(b"Hello from alice")
    signature = alice.sign(message)
    alice_certificate.verify(message, signature)
    print("Message signature valid.")

    try:
        root_certificate.verify(message, signature)
    except TrustViolation as exc:
        print(f"Root certificate rejects it: {exc} ({exc.kind.value})")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
