"""CLI entry point for keytrust.

Invoked as::

    keytrust [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m keytrust.cli.main

Commands
--------
key generate      Generate a key, optionally signed by another key
key certificate   Derive the certificate of a key
key sign          Sign a certificate with a key
verify            Verify a certificate against trusted certificates
demo              Sign and verify a text with a throwaway key
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from keytrust.certificate import RsaCertificate
from keytrust.chain import ChainOfTrust
from keytrust.config import CryptoSettings
from keytrust.digest import Sha512Digest
from keytrust.exceptions import KeyTrustError, TrustViolation
from keytrust.key import RsaKey
from keytrust.locator import FilesystemCertificateLocator
from keytrust.serialization import (
    dumps_certificate,
    dumps_key,
    loads_certificate,
    loads_key,
)
from keytrust.signature import RsaSignature

console = Console()


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="keytrust")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """RSA keys, certificates and chain-of-trust verification"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from keytrust import __version__

    console.print(f"[bold]keytrust[/bold] v{__version__}")


# ------------------------------------------------------------------
# key command group
# ------------------------------------------------------------------


@cli.group(name="key")
def key_group() -> None:
    """Manage keys and certificates."""


@key_group.command(name="generate")
@click.argument("output", type=click.Path(dir_okay=False))
@click.option(
    "--key-size",
    type=int,
    default=None,
    help="RSA key size in bits (default: KEYTRUST_KEY_SIZE or 2048).",
)
@click.option(
    "--signer",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Key file of the party that signs the new key.",
)
def generate_command(output: str, key_size: int | None, signer: str | None) -> None:
    """Generate a new key and write it to OUTPUT."""
    try:
        settings = CryptoSettings.from_env()
        if key_size is not None:
            settings = CryptoSettings(key_size=key_size, public_exponent=settings.public_exponent)
    except ValidationError as exc:
        _fail(f"Invalid key settings: {exc.errors()[0]['msg']}")

    try:
        if signer:
            signer_key = _read_key(signer)
            key = RsaKey.generate_signed(signer_key.sign, settings=settings)
        else:
            key = RsaKey.generate(settings=settings)
    except KeyTrustError as exc:
        _fail(str(exc))

    Path(output).write_text(dumps_key(key), encoding="utf-8")
    console.print(f"[green]Generated[/green] {key.key_size}-bit key [bold]{output}[/bold]")
    console.print(f"  Key hash:         {_abbr(key.identity_digest)}")
    console.print(f"  Certificate hash: {_abbr(key.certificate_digest)}")
    if key.signature is not None:
        console.print(f"  Signed by:        {_abbr(key.signature.signer_certificate_digest)}")


@key_group.command(name="certificate")
@click.argument("key_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
def certificate_command(key_file: str, output: str) -> None:
    """Derive the certificate of the key in KEY_FILE and write it to OUTPUT."""
    certificate = _read_key(key_file).derive_certificate()
    Path(output).write_text(dumps_certificate(certificate), encoding="utf-8")
    console.print(f"[green]Derived[/green] certificate [bold]{output}[/bold]")
    console.print(f"  Certificate hash: {_abbr(certificate.identity_digest)}")


@key_group.command(name="sign")
@click.argument("key_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("cert_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
def sign_command(key_file: str, cert_file: str, output: str) -> None:
    """Sign the certificate in CERT_FILE with KEY_FILE and write it to OUTPUT."""
    key = _read_key(key_file)
    certificate = _read_certificate(cert_file)
    signed = key.sign_certificate(certificate)
    Path(output).write_text(dumps_certificate(signed), encoding="utf-8")
    console.print(f"[green]Signed[/green] certificate [bold]{output}[/bold]")
    console.print(f"  Certificate hash: {_abbr(signed.identity_digest)}")
    console.print(f"  Signed by:        {_abbr(key.certificate_digest)}")


# ------------------------------------------------------------------
# verify
# ------------------------------------------------------------------


@cli.command(name="verify")
@click.argument("cert_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--trusted",
    "-t",
    multiple=True,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Trusted certificate file (repeatable).",
)
@click.option(
    "--locator-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory of certificates to look up intermediate signers in.",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=None,
    help="Maximum number of intermediate certificates to walk.",
)
def verify_command(
    cert_file: str,
    trusted: tuple[str, ...],
    locator_dir: str | None,
    max_depth: int | None,
) -> None:
    """Verify the certificate in CERT_FILE up to a trusted certificate."""
    certificate = _read_certificate(cert_file)
    anchors = [_read_certificate(path) for path in trusted]
    locator = FilesystemCertificateLocator(Path(locator_dir)) if locator_dir else None

    chain = ChainOfTrust(anchors, locator=locator, max_depth=max_depth)
    try:
        chain.verify(certificate)
    except TrustViolation as exc:
        console.print(f"  [red]FAIL[/red]  {exc} ({exc.kind.value})")
        sys.exit(1)
    except KeyTrustError as exc:
        _fail(str(exc))

    console.print(f"  [green]PASS[/green]  Certificate {_abbr(certificate.identity_digest)} is trusted.")


# ------------------------------------------------------------------
# demo
# ------------------------------------------------------------------


@cli.command(name="demo")
@click.argument("text")
def demo_command(text: str) -> None:
    """Sign TEXT with a throwaway key and verify the signature."""
    try:
        settings = CryptoSettings.from_env()
    except ValidationError as exc:
        _fail(f"Invalid key settings: {exc.errors()[0]['msg']}")

    key = RsaKey.generate(settings=settings)
    certificate = key.derive_certificate()
    text_digest = Sha512Digest.compute(text.encode("utf-8"))
    signature = key.sign(text_digest)

    table = Table(title="keytrust demo", show_header=True)
    table.add_column("Item", style="cyan")
    table.add_column("Hash (abbr.)")
    table.add_row("Private key", _abbr(key.identity_digest))
    table.add_row("Certificate", _abbr(certificate.identity_digest))
    table.add_row("Input", _abbr(text_digest))
    table.add_row("Signature", signature.signature[:4].hex())
    console.print(table)

    other = RsaKey.generate(settings=settings).derive_certificate()
    console.print(f"  Own certificate:   {_check(certificate, text_digest, signature)}")
    console.print(f"  Other certificate: {_check(other, text_digest, signature)}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _check(certificate: RsaCertificate, digest: Sha512Digest, signature: RsaSignature) -> str:
    try:
        certificate.verify(digest, signature)
    except TrustViolation as exc:
        return f"[red]invalid[/red] ({exc})"
    return "[green]valid[/green]"


def _abbr(digest: Sha512Digest) -> str:
    return digest.hex()[:8]


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def _read_key(path: str) -> RsaKey:
    try:
        return loads_key(Path(path).read_text(encoding="utf-8"))
    except KeyTrustError as exc:
        _fail(f"Could not read key {path}: {exc}")


def _read_certificate(path: str) -> RsaCertificate:
    try:
        return loads_certificate(Path(path).read_text(encoding="utf-8"))
    except KeyTrustError as exc:
        _fail(f"Could not read certificate {path}: {exc}")


if __name__ == "__main__":
    cli()
