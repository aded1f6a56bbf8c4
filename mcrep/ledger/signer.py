"""OpenPGP key management and cleartext signing via gpg.

Key material lives as armored files in the data directory (``privateKey``,
``publicKey`` and optionally ``revocationCertificate``). Signing imports
the private key into a client-owned gnupg home and clearsigns with it, so
the service can re-parse the signed text and check it against the public
key sent at registration.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import bittensor as bt
import gnupg

from mcrep.config import UserID
from mcrep.errors import ConfigurationError, SigningError

PRIVATE_KEY_FILENAME = "privateKey"
PUBLIC_KEY_FILENAME = "publicKey"
REVOCATION_CERT_FILENAME = "revocationCertificate"
GNUPG_HOME_DIRNAME = ".gnupg"

KEY_KINDS = ("ecc", "rsa")
RSA_BITS = 4096


def _key_params(kind: str) -> dict[str, object]:
    if kind == "ecc":
        return {
            "key_type": "EDDSA",
            "key_curve": "ed25519",
            "key_usage": "sign",
            "subkey_type": "ECDH",
            "subkey_curve": "cv25519",
            "subkey_usage": "encrypt",
        }
    if kind == "rsa":
        return {"key_type": "RSA", "key_length": RSA_BITS}
    raise ConfigurationError("init", f"unknown key type {kind!r}, expected one of {KEY_KINDS}")


def _write_key_file(path: Path, armored: str, private: bool = False) -> None:
    path.write_text(armored, encoding="utf-8")
    if private:
        os.chmod(path, 0o600)


def generate_keypair(
    key_dir: Path,
    kind: str,
    user_id: UserID,
    passphrase: str,
    gnupg_home: Path | None = None,
    force: bool = False,
) -> str:
    """Generate a passphrase-protected keypair and write the armored files.

    Returns:
        Fingerprint of the new primary key.
    """
    key_dir = Path(key_dir)
    gnupg_home = Path(gnupg_home) if gnupg_home else key_dir / GNUPG_HOME_DIRNAME
    params = _key_params(kind)

    if not passphrase:
        raise ConfigurationError("init", "a passphrase is required to protect the private key")
    private_path = key_dir / PRIVATE_KEY_FILENAME
    if private_path.exists() and not force:
        raise ConfigurationError("init", f"{private_path} exists - use --force to replace it")

    key_dir.mkdir(parents=True, exist_ok=True)
    gnupg_home.mkdir(mode=0o700, parents=True, exist_ok=True)
    gpg = gnupg.GPG(gnupghome=str(gnupg_home))
    input_data = gpg.gen_key_input(
        name_real=user_id.name,
        name_email=user_id.email,
        name_comment=user_id.comment,
        passphrase=passphrase,
        **params,
    )
    key = gpg.gen_key(input_data)
    if not key.fingerprint:
        raise SigningError("init", f"gpg key generation failed: {key.stderr.strip()}")
    fingerprint = str(key.fingerprint)

    public_armored = gpg.export_keys(fingerprint)
    private_armored = gpg.export_keys(fingerprint, secret=True, passphrase=passphrase)
    if not public_armored or not private_armored:
        raise SigningError("init", f"gpg could not export key {fingerprint}")

    _write_key_file(private_path, private_armored, private=True)
    _write_key_file(key_dir / PUBLIC_KEY_FILENAME, public_armored)

    # gpg >= 2.1 writes a revocation certificate next to the keyring
    rev_path = gnupg_home / "openpgp-revocs.d" / f"{fingerprint}.rev"
    if rev_path.exists():
        _write_key_file(
            key_dir / REVOCATION_CERT_FILENAME,
            rev_path.read_text(encoding="utf-8"),
            private=True,
        )

    bt.logging.info({"mcrep_keys": {"generated": kind, "fingerprint": fingerprint}})
    return fingerprint


class GPGSigner:
    """MessageSigner backed by the armored key files and a gnupg home."""

    def __init__(
        self,
        key_dir: Path,
        passphrase: str,
        gnupg_home: Path | None = None,
    ):
        self.key_dir = Path(key_dir)
        self.gnupg_home = Path(gnupg_home) if gnupg_home else self.key_dir / GNUPG_HOME_DIRNAME
        self.passphrase = passphrase
        self._gpg: gnupg.GPG | None = None
        self._fingerprint: str | None = None

    def _read_key_file(self, filename: str) -> str:
        path = self.key_dir / filename
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigurationError("sign", f"{path} not found - run `mcrep init` first") from e

    def public_key(self) -> str:
        return self._read_key_file(PUBLIC_KEY_FILENAME)

    def _load_signing_key(self) -> tuple[gnupg.GPG, str]:
        if self._gpg is not None and self._fingerprint is not None:
            return self._gpg, self._fingerprint
        if not self.passphrase:
            raise ConfigurationError("sign", "passphrase is not configured")

        armored = self._read_key_file(PRIVATE_KEY_FILENAME)
        self.gnupg_home.mkdir(mode=0o700, parents=True, exist_ok=True)
        gpg = gnupg.GPG(gnupghome=str(self.gnupg_home))
        result = gpg.import_keys(armored, passphrase=self.passphrase)
        if not result.fingerprints:
            raise SigningError("sign", f"cannot import private key: {result.stderr.strip()}")

        self._gpg = gpg
        self._fingerprint = result.fingerprints[0]
        return gpg, self._fingerprint

    def sign_sync(self, message: str) -> str:
        """Clearsign ``message`` and return the armored signed text."""
        gpg, fingerprint = self._load_signing_key()
        signed = gpg.sign(
            message,
            keyid=fingerprint,
            passphrase=self.passphrase,
            clearsign=True,
        )
        if not signed or not signed.data:
            raise SigningError("sign", f"gpg signing failed: {signed.status or signed.stderr.strip()}")
        return str(signed)

    async def sign(self, message: str) -> str:
        # gpg runs as a subprocess; keep it off the event loop
        return await asyncio.to_thread(self.sign_sync, message)


__all__ = [
    "GNUPG_HOME_DIRNAME",
    "GPGSigner",
    "KEY_KINDS",
    "PRIVATE_KEY_FILENAME",
    "PUBLIC_KEY_FILENAME",
    "REVOCATION_CERT_FILENAME",
    "generate_keypair",
]
