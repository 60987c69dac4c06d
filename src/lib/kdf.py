"""Password-based key derivation (PBKDF2-HMAC-SHA256 -> AES-256 key)."""
from __future__ import annotations
import secrets
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from config.settings import PBKDF2_ITERATIONS, SALT_LENGTH, KEY_LENGTH

def generate_salt() -> bytes:
	return secrets.token_bytes(SALT_LENGTH)

def derive_key(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
	"""Derive a 256-bit key from ``password`` and ``salt``.

	Deterministic for a given (password, salt). An empty password is
	accepted; it yields a valid but weak key.
	"""
	kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=salt, iterations=iterations)
	return kdf.derive(password.encode('utf-8'))

def derive_cipher(password: str, salt: bytes) -> AESGCM:
	"""Return an AES-256-GCM cipher keyed from (password, salt).

	The raw key does not escape this function; callers only get an
	object that can encrypt and decrypt.
	"""
	return AESGCM(derive_key(password, salt))
