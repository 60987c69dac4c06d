"""Image attachment helpers: type sniffing, validation and a blob store.

The blob store keeps whatever bytes it is given. For encrypted notes
those are raw envelopes, so nothing here ever sees key material.
"""
from __future__ import annotations
import logging, os, secrets
from pathlib import Path
from typing import Optional
from config.settings import ALLOWED_IMAGE_TYPES, MAX_IMAGE_SIZE

log = logging.getLogger(__name__)

class ImageError(Exception): ...

_SIGNATURES = (
	(b'\x89PNG\r\n\x1a\n', 'image/png'),
	(b'\xff\xd8\xff', 'image/jpeg'),
	(b'GIF87a', 'image/gif'),
	(b'GIF89a', 'image/gif'),
)

def sniff_image_type(data: bytes) -> Optional[str]:
	for magic, mime in _SIGNATURES:
		if data.startswith(magic):
			return mime
	return None

def validate_image(data: bytes) -> str:
	"""Return the MIME type of ``data`` or raise ImageError."""
	if len(data) > MAX_IMAGE_SIZE:
		raise ImageError('File size exceeds 10MB limit')
	mime = sniff_image_type(data)
	if mime not in ALLOWED_IMAGE_TYPES:
		raise ImageError('Invalid file type. Only JPEG, PNG, and GIF images are supported')
	return mime


class ImageStore:
	def __init__(self, directory: Path):
		self.directory = Path(directory)

	def _path(self, ref: str) -> Path:
		if not ref or '/' in ref or '\\' in ref or ref.startswith('.'):
			raise ImageError(f'Bad image reference: {ref!r}')
		return self.directory / ref

	def put(self, data: bytes) -> str:
		self.directory.mkdir(parents=True, exist_ok=True)
		ref = secrets.token_hex(16)
		path = self._path(ref)
		tmp = path.with_suffix('.tmp')
		tmp.write_bytes(data)
		os.replace(tmp, path)
		log.debug("stored blob %s (%d bytes)", ref, len(data))
		return ref

	def get(self, ref: str) -> bytes:
		path = self._path(ref)
		if not path.exists():
			raise ImageError(f'Image not found: {ref}')
		return path.read_bytes()

	def delete(self, ref: str) -> None:
		self._path(ref).unlink(missing_ok=True)
