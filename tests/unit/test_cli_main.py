"""Tests for keytrust.cli.main — CLI commands via Click test runner."""
from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from keytrust.cli.main import cli
from keytrust.config import CryptoSettings
from keytrust.key import RsaKey
from keytrust.locator import FilesystemCertificateLocator
from keytrust.serialization import (
    dumps_certificate,
    dumps_key,
    loads_certificate,
    loads_key,
)

SETTINGS = CryptoSettings(key_size=1024)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.delenv("KEYTRUST_KEY_SIZE", raising=False)
    monkeypatch.delenv("KEYTRUST_PUBLIC_EXPONENT", raising=False)
    return CliRunner()


@pytest.fixture(scope="module")
def root() -> RsaKey:
    return RsaKey.generate(settings=SETTINGS)


@pytest.fixture(scope="module")
def intermediate(root: RsaKey) -> RsaKey:
    return RsaKey.generate_signed(root.sign, settings=SETTINGS)


@pytest.fixture(scope="module")
def leaf(intermediate: RsaKey) -> RsaKey:
    return RsaKey.generate_signed(intermediate.sign, settings=SETTINGS)


@pytest.fixture()
def root_key_file(tmp_path: Path, root: RsaKey) -> Path:
    path = tmp_path / "root.key.json"
    path.write_text(dumps_key(root), encoding="utf-8")
    return path


@pytest.fixture()
def root_cert_file(tmp_path: Path, root: RsaKey) -> Path:
    path = tmp_path / "root.cert.json"
    path.write_text(dumps_certificate(root.derive_certificate()), encoding="utf-8")
    return path


def _write_certificate(path: Path, key: RsaKey) -> Path:
    path.write_text(dumps_certificate(key.derive_certificate()), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "verify" in result.output

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "keytrust" in result.output.lower()


# ---------------------------------------------------------------------------
# key generate / certificate / sign
# ---------------------------------------------------------------------------


class TestKeyCommands:
    def test_generate_unsigned(self, runner: CliRunner, tmp_path: Path) -> None:
        output = tmp_path / "new.key.json"
        result = runner.invoke(cli, ["key", "generate", str(output), "--key-size", "1024"])
        assert result.exit_code == 0, result.output
        key = loads_key(output.read_text(encoding="utf-8"))
        assert key.key_size == 1024
        assert key.signature is None

    def test_generate_signed(
        self, runner: CliRunner, tmp_path: Path, root: RsaKey, root_key_file: Path
    ) -> None:
        output = tmp_path / "child.key.json"
        result = runner.invoke(
            cli,
            [
                "key",
                "generate",
                str(output),
                "--key-size",
                "1024",
                "--signer",
                str(root_key_file),
            ],
        )
        assert result.exit_code == 0, result.output
        key = loads_key(output.read_text(encoding="utf-8"))
        assert key.signature is not None
        assert key.signature.signer_certificate_digest == root.certificate_digest

    def test_generate_invalid_key_size(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["key", "generate", str(tmp_path / "bad.json"), "--key-size", "1000"]
        )
        assert result.exit_code == 1
        assert "Invalid key settings" in result.output

    def test_generate_reads_environment(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KEYTRUST_KEY_SIZE", "1024")
        output = tmp_path / "env.key.json"
        result = runner.invoke(cli, ["key", "generate", str(output)])
        assert result.exit_code == 0, result.output
        assert loads_key(output.read_text(encoding="utf-8")).key_size == 1024

    def test_certificate(
        self, runner: CliRunner, tmp_path: Path, root: RsaKey, root_key_file: Path
    ) -> None:
        output = tmp_path / "derived.cert.json"
        result = runner.invoke(cli, ["key", "certificate", str(root_key_file), str(output)])
        assert result.exit_code == 0, result.output
        certificate = loads_certificate(output.read_text(encoding="utf-8"))
        assert certificate == root.derive_certificate()

    def test_sign(
        self,
        runner: CliRunner,
        tmp_path: Path,
        root: RsaKey,
        leaf: RsaKey,
        root_key_file: Path,
    ) -> None:
        cert_file = _write_certificate(tmp_path / "leaf.cert.json", leaf)
        output = tmp_path / "resigned.cert.json"
        result = runner.invoke(
            cli, ["key", "sign", str(root_key_file), str(cert_file), str(output)]
        )
        assert result.exit_code == 0, result.output
        signed = loads_certificate(output.read_text(encoding="utf-8"))
        assert signed.identity_digest == leaf.certificate_digest
        assert signed.signature is not None
        assert signed.signature.signer_certificate_digest == root.certificate_digest

    def test_corrupt_key_file(self, runner: CliRunner, tmp_path: Path) -> None:
        key_file = tmp_path / "corrupt.json"
        key_file.write_text("{}", encoding="utf-8")
        result = runner.invoke(
            cli, ["key", "certificate", str(key_file), str(tmp_path / "out.json")]
        )
        assert result.exit_code == 1
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------


class TestVerifyCommand:
    def test_directly_trusted(
        self,
        runner: CliRunner,
        tmp_path: Path,
        intermediate: RsaKey,
        root_cert_file: Path,
    ) -> None:
        cert_file = _write_certificate(tmp_path / "intermediate.cert.json", intermediate)
        result = runner.invoke(cli, ["verify", str(cert_file), "-t", str(root_cert_file)])
        assert result.exit_code == 0, result.output
        assert "PASS" in result.output

    def test_untrusted(
        self, runner: CliRunner, tmp_path: Path, leaf: RsaKey, root_cert_file: Path
    ) -> None:
        cert_file = _write_certificate(tmp_path / "leaf.cert.json", leaf)
        result = runner.invoke(cli, ["verify", str(cert_file), "-t", str(root_cert_file)])
        assert result.exit_code == 1
        assert "FAIL" in result.output

    def test_with_locator_dir(
        self,
        runner: CliRunner,
        tmp_path: Path,
        intermediate: RsaKey,
        leaf: RsaKey,
        root_cert_file: Path,
    ) -> None:
        locator_dir = tmp_path / "store"
        FilesystemCertificateLocator(locator_dir).save(intermediate.derive_certificate())
        cert_file = _write_certificate(tmp_path / "leaf.cert.json", leaf)
        result = runner.invoke(
            cli,
            [
                "verify",
                str(cert_file),
                "-t",
                str(root_cert_file),
                "--locator-dir",
                str(locator_dir),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "PASS" in result.output

    def test_max_depth_exceeded(
        self,
        runner: CliRunner,
        tmp_path: Path,
        intermediate: RsaKey,
        leaf: RsaKey,
        root_cert_file: Path,
    ) -> None:
        locator_dir = tmp_path / "store"
        FilesystemCertificateLocator(locator_dir).save(intermediate.derive_certificate())
        cert_file = _write_certificate(tmp_path / "leaf.cert.json", leaf)
        result = runner.invoke(
            cli,
            [
                "verify",
                str(cert_file),
                "-t",
                str(root_cert_file),
                "--locator-dir",
                str(locator_dir),
                "--max-depth",
                "0",
            ],
        )
        assert result.exit_code == 1
        assert "FAIL" in result.output

    def test_corrupt_locator_document(
        self,
        runner: CliRunner,
        tmp_path: Path,
        intermediate: RsaKey,
        leaf: RsaKey,
        root_cert_file: Path,
    ) -> None:
        locator_dir = tmp_path / "store"
        locator_dir.mkdir()
        corrupt = locator_dir / f"{intermediate.certificate_digest.hex()}.json"
        corrupt.write_text("{not json", encoding="utf-8")
        cert_file = _write_certificate(tmp_path / "leaf.cert.json", leaf)
        result = runner.invoke(
            cli,
            [
                "verify",
                str(cert_file),
                "-t",
                str(root_cert_file),
                "--locator-dir",
                str(locator_dir),
            ],
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error:" in result.output

    def test_trusted_is_required(
        self, runner: CliRunner, root_cert_file: Path
    ) -> None:
        result = runner.invoke(cli, ["verify", str(root_cert_file)])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# demo
# ---------------------------------------------------------------------------


class TestDemoCommand:
    def test_demo(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KEYTRUST_KEY_SIZE", "1024")
        result = runner.invoke(cli, ["demo", "hello"])
        assert result.exit_code == 0, result.output
        assert "Own certificate" in result.output
        assert "invalid" in result.output
