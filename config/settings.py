"""Project configuration settings.

The envelope parameters below are a frozen wire format: changing any of
them makes existing envelopes undecryptable, since envelopes carry no
version byte.
"""

from pathlib import Path
import os

# Envelope / crypto
PBKDF2_ITERATIONS = 100_000
SALT_LENGTH = 16
NONCE_LENGTH = 12  # GCM recommended IV size
KEY_LENGTH = 32    # AES-256
AUTH_TAG_LENGTH = 16  # GCM default tag length
HEADER_LENGTH = SALT_LENGTH + NONCE_LENGTH

# Note store
DEFAULT_STORE_PATH = Path(os.environ.get("NOTES_PATH", "notes_data/notes.json"))

# Limits
MAX_NOTE_SIZE = 1024 * 1024        # 1MB note bodies
MAX_STORED_NOTE_SIZE = 4 * ((MAX_NOTE_SIZE + HEADER_LENGTH + AUTH_TAG_LENGTH + 2) // 3)  # base64 envelope of a full note
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif")

# Logging
LOG_LEVEL = os.environ.get("NOTECRYPT_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

__all__ = [
	'PBKDF2_ITERATIONS','SALT_LENGTH','NONCE_LENGTH','KEY_LENGTH','AUTH_TAG_LENGTH','HEADER_LENGTH',
	'DEFAULT_STORE_PATH','MAX_NOTE_SIZE','MAX_STORED_NOTE_SIZE','MAX_IMAGE_SIZE','ALLOWED_IMAGE_TYPES','LOG_LEVEL','LOG_FORMAT'
]
