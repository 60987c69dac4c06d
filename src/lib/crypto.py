"""Envelope codec: password-protected AES-256-GCM envelopes for notes and images.

Envelope layout (shared by both encodings)::

	[ 16 bytes salt ][ 12 bytes nonce ][ ciphertext || 16-byte tag ]

Text envelopes are that layout in standard base64; binary envelopes are
the raw bytes. Each encryption draws a fresh salt and nonce, so the key
is derived anew on every call and never kept around.
"""
from __future__ import annotations
import base64, binascii, logging, secrets
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from config.settings import SALT_LENGTH, NONCE_LENGTH, HEADER_LENGTH, AUTH_TAG_LENGTH
from .kdf import derive_cipher, generate_salt

log = logging.getLogger(__name__)

DECRYPTION_FAILED = 'Incorrect password or corrupted data'

class DecryptionError(Exception):
	"""Decryption could not produce verified plaintext.

	Wrong password, tampering, truncation and bad encoding all look the
	same from the outside.
	"""

	def __init__(self, message: str = DECRYPTION_FAILED):
		super().__init__(message)


@dataclass(frozen=True)
class Envelope:
	salt: bytes
	nonce: bytes
	ciphertext: bytes  # includes the trailing GCM tag

	def to_bytes(self) -> bytes:
		return self.salt + self.nonce + self.ciphertext

	@classmethod
	def from_bytes(cls, raw: bytes) -> 'Envelope':
		raw = bytes(raw)
		if len(raw) < HEADER_LENGTH:
			raise ValueError('Envelope shorter than header')
		return cls(raw[:SALT_LENGTH], raw[SALT_LENGTH:HEADER_LENGTH], raw[HEADER_LENGTH:])


def encrypt_bytes(data: bytes, password: str) -> bytes:
	salt = generate_salt()
	nonce = secrets.token_bytes(NONCE_LENGTH)
	ct = derive_cipher(password, salt).encrypt(nonce, bytes(data), None)
	log.debug("encrypted %d bytes", len(data))
	return Envelope(salt, nonce, ct).to_bytes()

def encrypt_text(content: str, password: str) -> str:
	return base64.b64encode(encrypt_bytes(content.encode('utf-8'), password)).decode('ascii')

def decrypt_bytes(envelope: bytes, password: str) -> bytes:
	"""Open a raw envelope. Any failure is reported as DecryptionError."""
	try:
		env = Envelope.from_bytes(envelope)
		data = derive_cipher(password, env.salt).decrypt(env.nonce, env.ciphertext, None)
	except Exception:
		log.debug("decryption failed")
		raise DecryptionError() from None
	log.debug("decrypted %d bytes", len(data))
	return data

def decrypt_text(token: str, password: str) -> str:
	try:
		raw = base64.b64decode(token, validate=True)
	except (binascii.Error, ValueError, TypeError):
		log.debug("decryption failed: envelope is not base64")
		raise DecryptionError() from None
	data = decrypt_bytes(raw, password)
	try:
		return data.decode('utf-8')
	except UnicodeDecodeError:
		raise DecryptionError() from None

def is_envelope_text(token: str) -> bool:
	"""Structural check only: valid base64 long enough to hold header and tag."""
	try:
		raw = base64.b64decode(token, validate=True)
	except (binascii.Error, ValueError, TypeError):
		return False
	return len(raw) >= HEADER_LENGTH + AUTH_TAG_LENGTH


def _run_all(fn, items: Iterable[bytes], password: str, max_workers: Optional[int]) -> List[bytes]:
	items = list(items)
	if not items:
		return []
	with ThreadPoolExecutor(max_workers=max_workers) as pool:
		return list(pool.map(lambda item: fn(item, password), items))

def encrypt_many(items: Iterable[bytes], password: str, max_workers: Optional[int] = None) -> List[bytes]:
	"""Encrypt each item into its own envelope, concurrently; order is preserved."""
	return _run_all(encrypt_bytes, items, password, max_workers)

def decrypt_many(envelopes: Iterable[bytes], password: str, max_workers: Optional[int] = None) -> List[bytes]:
	"""Decrypt each envelope concurrently. Raises DecryptionError if any fails."""
	return _run_all(decrypt_bytes, envelopes, password, max_workers)


_SYMBOLS = '!@#$%^&*()_+-=[]{}|;:,.<>?'
_COMMON = ('password', 'qwerty', 'abc', '123', '111', 'letmein')

def check_password_strength(password: str) -> Tuple[int, str]:
	"""Score a password 0-100 with short advice. Advisory only."""
	score = 0; fb = []
	n = len(password)
	if n >= 12: score += 30
	elif n >= 8: score += 20; fb.append('Use 12+ chars')
	elif n == 0: fb.append('Empty password offers no protection')
	else: fb.append('Too short (min 8)')
	classes = [
		any(c.islower() for c in password),
		any(c.isupper() for c in password),
		any(c.isdigit() for c in password),
		any(c in _SYMBOLS or not c.isascii() for c in password),
	]
	score += sum(classes) * 15
	if n and sum(classes) < 3: fb.append('Mix letters, digits and symbols')
	if any(p in password.lower() for p in _COMMON):
		score -= 20; fb.append('Avoid common patterns')
	if n and len(set(password)) < n * 0.5:
		score -= 10; fb.append('Too many repeats')
	score = max(0, min(100, score))
	if score >= 80: label = 'Very Strong'
	elif score >= 60: label = 'Strong'
	elif score >= 40: label = 'Moderate'
	elif score >= 20: label = 'Weak'
	else: label = 'Very Weak'
	text = f"{label} ({score}/100)"
	if fb: text += ' - ' + ', '.join(fb)
	return score, text
