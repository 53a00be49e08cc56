"""Document cipher.

X25519Cipher derives an AES-256-GCM key from the X25519 agreement between
the sender's private key and the recipient's public key. Private keys are
PKCS8 PEM encrypted with the user's passphrase; public keys are
SubjectPublicKeyInfo PEM.

Ciphertext layout: 12-byte nonce || AES-GCM ciphertext and tag.
"""

import os
from typing import Protocol, Tuple, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from dcap.domain.errors import CryptoError


NONCE_SIZE = 12
HKDF_INFO = b"dcap-document-v1"

KeyMaterial = Union[str, bytes]


class Cipher(Protocol):
    """Protocol for document encryption."""

    def encrypt(self, plaintext: bytes, pub_key: KeyMaterial, priv_key: KeyMaterial, passphrase: str) -> bytes:
        ...

    def decrypt(self, ciphertext: bytes, pub_key: KeyMaterial, priv_key: KeyMaterial, passphrase: str) -> bytes:
        ...


def _as_bytes(value: KeyMaterial) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def generate_keypair(passphrase: str) -> Tuple[str, str]:
    """Generate an X25519 key pair.

    Returns:
        (private_pem, public_pem); the private key is encrypted with ``passphrase``.
    """
    private_key = X25519PrivateKey.generate()
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.BestAvailableEncryption(passphrase.encode("utf-8")),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem.decode("ascii"), public_pem.decode("ascii")


class X25519Cipher:
    """X25519 + HKDF-SHA256 + AES-256-GCM."""

    def _load_private(self, priv_key: KeyMaterial, passphrase: str) -> X25519PrivateKey:
        try:
            key = serialization.load_pem_private_key(
                _as_bytes(priv_key),
                password=passphrase.encode("utf-8"),
            )
        except (ValueError, TypeError) as e:
            raise CryptoError("Unable to load private key: wrong passphrase or malformed key") from e
        if not isinstance(key, X25519PrivateKey):
            raise CryptoError("Private key must be an X25519 key")
        return key

    def _load_public(self, pub_key: KeyMaterial) -> X25519PublicKey:
        try:
            key = serialization.load_pem_public_key(_as_bytes(pub_key))
        except (ValueError, TypeError) as e:
            raise CryptoError("Unable to load public key: malformed key") from e
        if not isinstance(key, X25519PublicKey):
            raise CryptoError("Public key must be an X25519 key")
        return key

    def _derive_key(self, pub_key: KeyMaterial, priv_key: KeyMaterial, passphrase: str) -> bytes:
        private_key = self._load_private(priv_key, passphrase)
        public_key = self._load_public(pub_key)
        shared = private_key.exchange(public_key)
        return HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=HKDF_INFO,
        ).derive(shared)

    def encrypt(self, plaintext: bytes, pub_key: KeyMaterial, priv_key: KeyMaterial, passphrase: str) -> bytes:
        key = self._derive_key(pub_key, priv_key, passphrase)
        nonce = os.urandom(NONCE_SIZE)
        return nonce + AESGCM(key).encrypt(nonce, plaintext, None)

    def decrypt(self, ciphertext: bytes, pub_key: KeyMaterial, priv_key: KeyMaterial, passphrase: str) -> bytes:
        if len(ciphertext) <= NONCE_SIZE:
            raise CryptoError("Ciphertext is truncated")
        key = self._derive_key(pub_key, priv_key, passphrase)
        nonce, body = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
        try:
            return AESGCM(key).decrypt(nonce, body, None)
        except InvalidTag as e:
            raise CryptoError("Decryption failed: key does not match ciphertext") from e
