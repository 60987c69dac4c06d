"""Note storage plus the glue between notes and the envelope codec.

The store persists note content verbatim alongside an ``encrypted``
flag; it never inspects or validates envelopes. Only the helpers at the
bottom (add_note, seal_note, open_note, unseal_note, edit_note) touch passwords,
and they hand them straight to the codec.
"""
from __future__ import annotations
import json, os, logging
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any, Iterable, Tuple
from config.settings import DEFAULT_STORE_PATH, MAX_NOTE_SIZE, MAX_STORED_NOTE_SIZE
from .crypto import encrypt_text, decrypt_text, encrypt_many, decrypt_many, is_envelope_text
from .images import ImageStore, validate_image

log = logging.getLogger(__name__)

class NoteError(Exception): ...
class StorageError(Exception): ...
class TextImportError(Exception): ...

_UNSET: Any = object()

def _check_size(content: str, limit: int = MAX_NOTE_SIZE) -> None:
	if len(content.encode('utf-8')) > limit: raise NoteError('Content too large')

@dataclass
class Note:
	id: str
	title: str
	content: str
	image_refs: List[str] = field(default_factory=list)
	encrypted: bool = False
	timestamp: str = ''

	@classmethod
	def from_dict(cls, raw: Dict[str, Any]) -> 'Note':
		return cls(
			id=raw['id'], title=raw.get('title', ''), content=raw.get('content', ''),
			image_refs=list(raw.get('image_refs') or []), encrypted=bool(raw.get('encrypted', False)),
			timestamp=raw.get('timestamp', ''),
		)


class NoteStore:
	"""JSON-file note store, one file per user."""

	def __init__(self, path: Path | None = None):
		# Resolve path dynamically to honor environment overrides in tests
		if path is not None:
			self.path = Path(path)
		else:
			env_path = os.environ.get('NOTES_PATH')
			self.path = Path(env_path) if env_path else DEFAULT_STORE_PATH
		self.images = ImageStore(self.path.with_name(f"{self.path.stem}.images"))

	def _read(self) -> Dict[str, Any]:
		if not self.path.exists() or self.path.stat().st_size == 0:
			return {'metadata': {'version': '1.0', 'last_id': 0}, 'notes': {}}
		try:
			data = json.loads(self.path.read_text(encoding='utf-8'))
		except (OSError, ValueError) as e:
			raise StorageError(f'Unreadable note store: {self.path}') from e
		if not isinstance(data, dict) or not isinstance(data.get('notes', {}), dict):
			raise StorageError(f'Unreadable note store: {self.path}')
		return data

	def _write(self, data: Dict[str, Any]) -> None:
		self.path.parent.mkdir(parents=True, exist_ok=True)
		tmp = self.path.with_suffix('.tmp')
		tmp.write_text(json.dumps(data, indent=2), encoding='utf-8')
		os.replace(tmp, self.path)

	def create(self, title: str, content: str, encrypted: bool = False, image_refs: List[str] | None = None) -> Note:
		_check_size(content, MAX_STORED_NOTE_SIZE)
		data = self._read()
		meta = data.setdefault('metadata', {})
		last = meta.get('last_id', 0) + 1
		meta['last_id'] = last
		note = Note(str(last), title, content, list(image_refs or []), encrypted, datetime.now().isoformat())
		data.setdefault('notes', {})[note.id] = asdict(note)
		self._write(data)
		log.info("created note %s (encrypted=%s)", note.id, encrypted)
		return note

	def get(self, note_id: str) -> Note:
		raw = self._read().get('notes', {}).get(note_id)
		if not raw: raise NoteError(f'Note not found: {note_id}')
		return Note.from_dict(raw)

	def update(self, note_id: str, title: str = _UNSET, content: str = _UNSET,
			encrypted: bool = _UNSET, image_refs: List[str] = _UNSET) -> Note:
		data = self._read()
		raw = data.get('notes', {}).get(note_id)
		if not raw: raise NoteError(f'Note not found: {note_id}')
		note = Note.from_dict(raw)
		if title is not _UNSET: note.title = title
		if content is not _UNSET:
			_check_size(content, MAX_STORED_NOTE_SIZE)
			note.content = content
		if encrypted is not _UNSET: note.encrypted = encrypted
		if image_refs is not _UNSET: note.image_refs = list(image_refs)
		note.timestamp = datetime.now().isoformat()
		data['notes'][note_id] = asdict(note)
		self._write(data)
		log.info("updated note %s", note_id)
		return note

	def delete(self, note_id: str) -> None:
		data = self._read()
		raw = data.get('notes', {}).pop(note_id, None)
		if not raw: raise NoteError(f'Note not found: {note_id}')
		for ref in raw.get('image_refs') or []:
			self.images.delete(ref)
		self._write(data)
		log.info("deleted note %s", note_id)

	def list(self) -> List[Note]:
		notes = [Note.from_dict(v) for v in self._read().get('notes', {}).values()]
		return sorted(notes, key=lambda n: (n.timestamp, int(n.id)), reverse=True)


def filter_notes(notes: Iterable[Note], query: str) -> List[Note]:
	"""Case-insensitive substring match on title or content."""
	notes = list(notes)
	q = query.strip().lower()
	if not q:
		return notes
	return [n for n in notes if q in n.title.lower() or q in n.content.lower()]

def read_text_file(path: Path) -> str:
	path = Path(path)
	if path.suffix.lower() != '.txt':
		raise TextImportError('Invalid file type. Only .txt files are supported')
	try:
		return path.read_text(encoding='utf-8')
	except (OSError, UnicodeDecodeError) as e:
		raise TextImportError(f'Failed to read file: {path.name}') from e


# --- Encryption glue ---
#
# New blobs get fresh refs; old blobs are removed only after the note
# record has been written.

def _check_fields(title: str, content: str) -> None:
	if not title.strip(): raise NoteError('Title is required')
	if not content.strip(): raise NoteError('Content is required')
	_check_size(content)

def _commit(store: NoteStore, note_id: str, keep_refs: List[str], new_blobs: List[bytes],
		drop_refs: Iterable[str], **changes) -> Note:
	new_refs: List[str] = []
	try:
		for blob in new_blobs:
			new_refs.append(store.images.put(blob))
		note = store.update(note_id, image_refs=keep_refs + new_refs, **changes)
	except Exception:
		for ref in new_refs:
			store.images.delete(ref)
		raise
	for ref in drop_refs:
		store.images.delete(ref)
	return note

def add_note(store: NoteStore, title: str, content: str, password: Optional[str] = None,
		images: Iterable[bytes] = ()) -> Note:
	"""Create a note, encrypting content and images first when a password is given."""
	_check_fields(title, content)
	images = list(images)
	for img in images:
		validate_image(img)
	if password is not None:
		content = encrypt_text(content, password)
		images = encrypt_many(images, password)
	refs: List[str] = []
	try:
		for img in images:
			refs.append(store.images.put(img))
		return store.create(title, content, encrypted=password is not None, image_refs=refs)
	except Exception:
		for ref in refs:
			store.images.delete(ref)
		raise

def seal_note(store: NoteStore, note_id: str, password: str) -> Note:
	"""Encrypt an existing plaintext note and its attachments."""
	note = store.get(note_id)
	if note.encrypted:
		raise NoteError('Note is already encrypted')
	_check_size(note.content)
	if is_envelope_text(note.content):
		log.warning("note %s content looks like an envelope; encrypting anyway", note_id)
	blobs = encrypt_many([store.images.get(r) for r in note.image_refs], password)
	return _commit(store, note_id, [], blobs, note.image_refs,
		content=encrypt_text(note.content, password), encrypted=True)

def open_note(store: NoteStore, note_id: str, password: Optional[str] = None) -> Tuple[Note, str, List[bytes]]:
	"""Return (note, content, images) with plaintext only in memory.

	Raises DecryptionError for an encrypted note when the password is
	wrong or anything was tampered with.
	"""
	note = store.get(note_id)
	blobs = [store.images.get(r) for r in note.image_refs]
	if not note.encrypted:
		return note, note.content, blobs
	if password is None:
		raise NoteError('Password required for encrypted note')
	return note, decrypt_text(note.content, password), decrypt_many(blobs, password)

def unseal_note(store: NoteStore, note_id: str, password: str) -> Note:
	"""Remove encryption from a note, persisting its plaintext."""
	note, content, images = open_note(store, note_id, password)
	if not note.encrypted:
		raise NoteError('Note is not encrypted')
	return _commit(store, note_id, [], images, note.image_refs, content=content, encrypted=False)

def edit_note(store: NoteStore, note_id: str, password: Optional[str] = None, title: str = _UNSET,
		content: str = _UNSET, add_images: Iterable[bytes] = (), remove_refs: Iterable[str] = ()) -> Note:
	"""Change title, content or attachments of a note.

	An encrypted note must be unlocked with its password first; new
	content and new images are then encrypted with that same password.
	Kept images are left untouched.
	"""
	note = store.get(note_id)
	if note.encrypted:
		if password is None:
			raise NoteError('Password required for encrypted note')
		current = decrypt_text(note.content, password)
	else:
		current = note.content
	new_title = note.title if title is _UNSET else title
	new_content = current if content is _UNSET else content
	_check_fields(new_title, new_content)
	remove_refs = list(remove_refs)
	unknown = [r for r in remove_refs if r not in note.image_refs]
	if unknown:
		raise NoteError(f'Image not attached to note {note_id}: {unknown[0]}')
	add_images = list(add_images)
	for img in add_images:
		validate_image(img)
	changes: Dict[str, Any] = {'title': new_title}
	if content is not _UNSET:
		changes['content'] = encrypt_text(new_content, password) if note.encrypted else new_content
	if note.encrypted:
		add_images = encrypt_many(add_images, password)
	keep = [r for r in note.image_refs if r not in remove_refs]
	return _commit(store, note_id, keep, add_images, remove_refs, **changes)
