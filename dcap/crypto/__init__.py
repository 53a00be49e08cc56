"""Document encryption for encrypted types."""

from dcap.crypto.cipher import Cipher, X25519Cipher, generate_keypair

__all__ = ["Cipher", "X25519Cipher", "generate_keypair"]
