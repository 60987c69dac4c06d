"""CLI commands implemented with click.

- One-off codec commands: encrypt/decrypt text and files.
- `notecrypt note ...`: a small note store whose bodies and images can be
  password protected.
"""
from __future__ import annotations
import logging, click
from pathlib import Path
from config.settings import LOG_LEVEL, LOG_FORMAT
from src.lib.crypto import (
	encrypt_text, decrypt_text, encrypt_bytes, decrypt_bytes, check_password_strength, DecryptionError
)
from src.lib.images import ImageError
from src.lib.notes import (
	NoteStore, NoteError, StorageError, TextImportError, add_note, seal_note, open_note, unseal_note,
	edit_note, filter_notes, read_text_file
)

def _fail(msg: str):
	click.echo(f'Error: {msg}', err=True)
	raise SystemExit(1)

def _weak_password_hint(password: str):
	score, fb = check_password_strength(password)
	if score < 40:
		click.echo(f'Warning: weak password: {fb}', err=True)

@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Debug logging (never includes secrets).')
def cli(verbose):
	"""notecrypt: password-encrypted notes and images."""
	logging.basicConfig(level=logging.DEBUG if verbose else LOG_LEVEL, format=LOG_FORMAT)

@cli.command('pw-strength')
@click.argument('password')
def pw_strength_cmd(password):
	score, fb = check_password_strength(password)
	click.echo(f"Score: {score} -> {fb}")

@cli.command('encrypt-text')
@click.argument('text', required=False)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def encrypt_text_cmd(text, password):
	"""Encrypt TEXT (or stdin) and print a base64 envelope."""
	if text is None:
		text = click.get_text_stream('stdin').read()
		# drop the newline added by echo / the terminal
		if text.endswith('\n'): text = text[:-1]
	_weak_password_hint(password)
	click.echo(encrypt_text(text, password))

@cli.command('decrypt-text')
@click.argument('token')
@click.option('--password', prompt=True, hide_input=True)
def decrypt_text_cmd(token, password):
	"""Decrypt a base64 envelope produced by encrypt-text."""
	try:
		click.echo(decrypt_text(token.strip(), password))
	except DecryptionError as e:
		_fail(str(e))

@cli.command('encrypt-file')
@click.argument('src', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('dest', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def encrypt_file_cmd(src, dest, password):
	"""Encrypt SRC into a raw binary envelope at DEST."""
	_weak_password_hint(password)
	dest.write_bytes(encrypt_bytes(src.read_bytes(), password))
	click.echo(f'Encrypted -> {dest}')

@cli.command('decrypt-file')
@click.argument('src', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('dest', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--password', prompt=True, hide_input=True)
def decrypt_file_cmd(src, dest, password):
	"""Decrypt a binary envelope SRC into DEST."""
	try:
		data = decrypt_bytes(src.read_bytes(), password)
	except DecryptionError as e:
		_fail(str(e))
	dest.write_bytes(data)
	click.echo(f'Decrypted -> {dest}')


# --- Note subcommands ---

@cli.group()
def note():
	"""Manage notes (optionally encrypted)."""

@note.command('add')
@click.option('--title', prompt=True)
@click.option('--content', prompt=True)
@click.option('--image', 'images', multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--encrypt', is_flag=True, help='Protect content and images with a password.')
def note_add(title, content, images, encrypt):
	"""Create a note."""
	password = None
	if encrypt:
		password = click.prompt('Password', hide_input=True, confirmation_prompt=True)
		_weak_password_hint(password)
	try:
		n = add_note(NoteStore(), title, content, password, [p.read_bytes() for p in images])
		click.echo(f'Added note {n.id}.' + (' (encrypted)' if n.encrypted else ''))
	except (NoteError, StorageError, ImageError) as e:
		_fail(str(e))

@note.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--title', default=None, help='Defaults to the file name.')
@click.option('--encrypt', is_flag=True)
def note_import(path, title, encrypt):
	"""Create a note from a .txt file."""
	try:
		content = read_text_file(path)
		password = click.prompt('Password', hide_input=True, confirmation_prompt=True) if encrypt else None
		n = add_note(NoteStore(), title or path.stem, content, password)
		click.echo(f'Imported note {n.id}.')
	except (TextImportError, NoteError, StorageError) as e:
		_fail(str(e))

@note.command('list')
def note_list():
	try:
		for n in NoteStore().list():
			flag = ' (encrypted)' if n.encrypted else ''
			click.echo(f"{n.id}: {n.title}{flag}")
	except StorageError as e:
		_fail(str(e))

@note.command('search')
@click.argument('query')
def note_search(query):
	"""Search titles, and content of unencrypted notes."""
	try:
		notes = NoteStore().list()
	except StorageError as e:
		_fail(str(e))
	plain = [n for n in notes if not n.encrypted]
	locked = [n for n in notes if n.encrypted]
	hits = filter_notes(plain, query) + [n for n in locked if query.strip().lower() in n.title.lower()]
	for n in hits:
		click.echo(f"{n.id}: {n.title}")

@note.command('show')
@click.argument('note_id')
def note_show(note_id):
	"""Show a note, asking for the password if it is encrypted."""
	store = NoteStore()
	try:
		n = store.get(note_id)
		password = click.prompt('Password', hide_input=True) if n.encrypted else None
		n, content, images = open_note(store, note_id, password)
	except (DecryptionError, NoteError, StorageError, ImageError) as e:
		_fail(str(e))
	refs = ''.join(f"\n  - {r}" for r in n.image_refs)
	click.echo(f"ID: {n.id}\nTitle: {n.title}\nModified: {n.timestamp}\nImages: {len(images)}{refs}\n---\n{content}")

@note.command('edit')
@click.argument('note_id')
@click.option('--title', default=None)
@click.option('--content', default=None)
@click.option('--image', 'images', multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help='Attach another image.')
@click.option('--remove-image', 'remove', multiple=True, help='Image ref to detach (see `note show`).')
def note_edit(note_id, title, content, images, remove):
	"""Edit a note; encrypted notes stay encrypted with the same password."""
	store = NoteStore()
	try:
		password = click.prompt('Password', hide_input=True) if store.get(note_id).encrypted else None
		kw = {}
		if title is not None: kw['title'] = title
		if content is not None: kw['content'] = content
		edit_note(store, note_id, password, add_images=[p.read_bytes() for p in images], remove_refs=remove, **kw)
		click.echo(f'Note {note_id} updated.')
	except (DecryptionError, NoteError, StorageError, ImageError) as e:
		_fail(str(e))

@note.command('lock')
@click.argument('note_id')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def note_lock(note_id, password):
	"""Encrypt an existing note and its images."""
	_weak_password_hint(password)
	try:
		seal_note(NoteStore(), note_id, password)
		click.echo(f'Note {note_id} encrypted.')
	except (NoteError, StorageError, ImageError) as e:
		_fail(str(e))

@note.command('unlock')
@click.argument('note_id')
@click.option('--password', prompt=True, hide_input=True)
def note_unlock(note_id, password):
	"""Remove encryption from a note."""
	try:
		unseal_note(NoteStore(), note_id, password)
		click.echo(f'Note {note_id} decrypted.')
	except (DecryptionError, NoteError, StorageError, ImageError) as e:
		_fail(str(e))

@note.command('delete')
@click.argument('note_id')
def note_delete(note_id):
	try:
		NoteStore().delete(note_id)
		click.echo(f'Deleted note {note_id}.')
	except (NoteError, StorageError) as e:
		_fail(str(e))
