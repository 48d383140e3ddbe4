"""Tests for keytrust.chain — ChainOfTrust."""
from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from keytrust.certificate import RsaCertificate
from keytrust.chain import ChainOfTrust
from keytrust.config import CryptoSettings
from keytrust.exceptions import InvalidInputError, TrustViolation, TrustViolationKind
from keytrust.key import RsaKey
from keytrust.locator import CertificateLocator, InMemoryCertificateLocator
from keytrust.signature import RsaSignature

SETTINGS = CryptoSettings(key_size=1024)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def root() -> RsaKey:
    return RsaKey.generate(settings=SETTINGS)


@pytest.fixture(scope="module")
def intermediate(root: RsaKey) -> RsaKey:
    return RsaKey.generate_signed(root.sign, settings=SETTINGS)


@pytest.fixture(scope="module")
def leaf(intermediate: RsaKey) -> RsaKey:
    return RsaKey.generate_signed(intermediate.sign, settings=SETTINGS)


@pytest.fixture(scope="module")
def stranger() -> RsaKey:
    return RsaKey.generate(settings=SETTINGS)


def _kind(chain: ChainOfTrust, certificate: RsaCertificate) -> TrustViolationKind:
    with pytest.raises(TrustViolation) as info:
        chain.verify(certificate)
    return info.value.kind


def _tamper(certificate: RsaCertificate) -> RsaCertificate:
    signature = certificate.signature
    assert signature is not None
    raw = bytearray(signature.signature)
    raw[0] ^= 0xFF
    return RsaCertificate(
        certificate.parameters,
        embedded_data=certificate.embedded_data,
        signature=RsaSignature(signature.signer_certificate_digest, bytes(raw)),
    )


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_none_trusted_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            ChainOfTrust(None)  # type: ignore[arg-type]

    def test_negative_depth_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            ChainOfTrust([], max_depth=-1)

    def test_trusted_are_frozen(self, root: RsaKey) -> None:
        anchors = [root.derive_certificate()]
        chain = ChainOfTrust(anchors)
        anchors.clear()
        assert len(chain.trusted_certificates) == 1

    def test_none_certificate_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            ChainOfTrust([]).verify(None)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Direct trust
# ---------------------------------------------------------------------------


class TestDirectTrust:
    def test_signed_by_trusted(self, root: RsaKey, intermediate: RsaKey) -> None:
        chain = ChainOfTrust([root.derive_certificate()])
        chain.verify(intermediate.derive_certificate())
        assert chain.is_trusted(intermediate.derive_certificate())

    def test_unsigned_certificate(self, root: RsaKey) -> None:
        chain = ChainOfTrust([root.derive_certificate()])
        assert _kind(chain, root.derive_certificate()) is TrustViolationKind.UNSIGNED

    def test_untrusted_without_locator(self, root: RsaKey, leaf: RsaKey) -> None:
        chain = ChainOfTrust([root.derive_certificate()])
        assert _kind(chain, leaf.derive_certificate()) is TrustViolationKind.UNTRUSTED_CHAIN
        assert chain.is_trusted(leaf.derive_certificate()) is False

    def test_empty_trust_set(self, intermediate: RsaKey) -> None:
        chain = ChainOfTrust([])
        assert (
            _kind(chain, intermediate.derive_certificate())
            is TrustViolationKind.UNTRUSTED_CHAIN
        )

    def test_tampered_signature(self, root: RsaKey, intermediate: RsaKey) -> None:
        chain = ChainOfTrust([root.derive_certificate()])
        tampered = _tamper(intermediate.derive_certificate())
        assert _kind(chain, tampered) is TrustViolationKind.SIGNATURE_INVALID

    def test_ambiguous_signer(
        self, root: RsaKey, intermediate: RsaKey, stranger: RsaKey
    ) -> None:
        original = root.derive_certificate()
        resigned = stranger.sign_certificate(original)
        assert resigned.identity_digest == original.identity_digest
        assert resigned != original

        chain = ChainOfTrust([original, resigned])
        assert (
            _kind(chain, intermediate.derive_certificate())
            is TrustViolationKind.AMBIGUOUS_SIGNER
        )

    def test_duplicate_equal_anchor_is_ambiguous(
        self, root: RsaKey, intermediate: RsaKey
    ) -> None:
        chain = ChainOfTrust([root.derive_certificate(), root.derive_certificate()])
        assert (
            _kind(chain, intermediate.derive_certificate())
            is TrustViolationKind.AMBIGUOUS_SIGNER
        )

    def test_violation_is_logged(
        self, root: RsaKey, caplog: pytest.LogCaptureFixture
    ) -> None:
        chain = ChainOfTrust([root.derive_certificate()])
        with caplog.at_level(logging.WARNING, logger="keytrust.chain"):
            chain.is_trusted(root.derive_certificate())
        assert "unsigned" in caplog.text


# ---------------------------------------------------------------------------
# Located intermediates
# ---------------------------------------------------------------------------


class TestLocatedChain:
    def test_locator_resolves_intermediate(
        self, root: RsaKey, intermediate: RsaKey, leaf: RsaKey
    ) -> None:
        locator = MagicMock(spec=CertificateLocator)
        locator.get.return_value = intermediate.derive_certificate()
        chain = ChainOfTrust([root.derive_certificate()], locator=locator)

        chain.verify(leaf.derive_certificate())

        locator.get.assert_called_once_with(intermediate.certificate_digest)

    def test_locator_not_called_for_trusted_signer(
        self, root: RsaKey, intermediate: RsaKey
    ) -> None:
        locator = MagicMock(spec=CertificateLocator)
        chain = ChainOfTrust([root.derive_certificate()], locator=locator)
        chain.verify(intermediate.derive_certificate())
        locator.get.assert_not_called()

    def test_signer_not_found(self, root: RsaKey, leaf: RsaKey) -> None:
        chain = ChainOfTrust(
            [root.derive_certificate()], locator=InMemoryCertificateLocator()
        )
        assert _kind(chain, leaf.derive_certificate()) is TrustViolationKind.SIGNER_NOT_FOUND

    def test_located_wrong_certificate(
        self, root: RsaKey, leaf: RsaKey, stranger: RsaKey
    ) -> None:
        locator = MagicMock(spec=CertificateLocator)
        locator.get.return_value = stranger.derive_certificate()
        chain = ChainOfTrust([root.derive_certificate()], locator=locator)
        assert _kind(chain, leaf.derive_certificate()) is TrustViolationKind.SIGNER_MISMATCH

    def test_located_unsigned_intermediate(
        self, root: RsaKey, stranger: RsaKey
    ) -> None:
        child = RsaKey.generate_signed(stranger.sign, settings=SETTINGS)
        locator = InMemoryCertificateLocator([stranger.derive_certificate()])
        chain = ChainOfTrust([root.derive_certificate()], locator=locator)
        assert _kind(chain, child.derive_certificate()) is TrustViolationKind.UNSIGNED

    def test_located_tampered_intermediate(
        self, root: RsaKey, intermediate: RsaKey, leaf: RsaKey
    ) -> None:
        locator = InMemoryCertificateLocator([_tamper(intermediate.derive_certificate())])
        chain = ChainOfTrust([root.derive_certificate()], locator=locator)
        assert _kind(chain, leaf.derive_certificate()) is TrustViolationKind.SIGNATURE_INVALID

    def test_three_located_links(self, root: RsaKey, intermediate: RsaKey) -> None:
        second = RsaKey.generate_signed(intermediate.sign, settings=SETTINGS)
        third = RsaKey.generate_signed(second.sign, settings=SETTINGS)
        tip = RsaKey.generate_signed(third.sign, settings=SETTINGS)
        locator = InMemoryCertificateLocator(
            [
                intermediate.derive_certificate(),
                second.derive_certificate(),
                third.derive_certificate(),
            ]
        )
        chain = ChainOfTrust([root.derive_certificate()], locator=locator)
        chain.verify(tip.derive_certificate())

        bounded = ChainOfTrust([root.derive_certificate()], locator=locator, max_depth=2)
        assert _kind(bounded, tip.derive_certificate()) is TrustViolationKind.CHAIN_TOO_LONG


class TestMaxDepth:
    def test_zero_depth_blocks_lookup(
        self, root: RsaKey, intermediate: RsaKey, leaf: RsaKey
    ) -> None:
        locator = InMemoryCertificateLocator([intermediate.derive_certificate()])
        chain = ChainOfTrust([root.derive_certificate()], locator=locator, max_depth=0)
        assert _kind(chain, leaf.derive_certificate()) is TrustViolationKind.CHAIN_TOO_LONG

    def test_zero_depth_allows_direct_trust(
        self, root: RsaKey, intermediate: RsaKey
    ) -> None:
        chain = ChainOfTrust(
            [root.derive_certificate()],
            locator=InMemoryCertificateLocator(),
            max_depth=0,
        )
        chain.verify(intermediate.derive_certificate())

    def test_depth_one_allows_single_link(
        self, root: RsaKey, intermediate: RsaKey, leaf: RsaKey
    ) -> None:
        locator = InMemoryCertificateLocator([intermediate.derive_certificate()])
        chain = ChainOfTrust([root.derive_certificate()], locator=locator, max_depth=1)
        chain.verify(leaf.derive_certificate())


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestScenario:
    def test_root_signed_key_verifies_and_tampering_fails(self) -> None:
        root = RsaKey.generate(settings=SETTINGS)
        root_certificate = root.derive_certificate()
        key = RsaKey.generate_signed(root.sign, settings=SETTINGS)
        chain = ChainOfTrust({root_certificate})

        certificate = key.derive_certificate()
        chain.verify(certificate)

        with pytest.raises(TrustViolation):
            chain.verify(_tamper(certificate))
