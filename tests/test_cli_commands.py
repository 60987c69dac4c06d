from click.testing import CliRunner
from src.cli.commands import cli

def test_encrypt_decrypt_text_cli():
    runner = CliRunner()
    enc = runner.invoke(cli, ['encrypt-text', 'hello world', '--password', 'correct horse'])
    assert enc.exit_code == 0
    token = enc.output.strip().splitlines()[-1]
    dec = runner.invoke(cli, ['decrypt-text', token, '--password', 'correct horse'])
    assert dec.exit_code == 0
    assert dec.output.strip() == 'hello world'
    bad = runner.invoke(cli, ['decrypt-text', token, '--password', 'wrong password'])
    assert bad.exit_code == 1
    assert 'Incorrect password or corrupted data' in bad.output
    assert 'hello' not in bad.output

def test_encrypt_text_prompts_for_password():
    runner = CliRunner()
    enc = runner.invoke(cli, ['encrypt-text', 'abc'], input='pw\npw\n')
    assert enc.exit_code == 0
    assert 'Warning: weak password' in enc.output

def test_encrypt_decrypt_file_cli(tmp_path):
    src = tmp_path / 'img.bin'; src.write_bytes(bytes([0x89, 0x50, 0x4E]))
    env = tmp_path / 'img.enc'; out = tmp_path / 'img.out'
    runner = CliRunner()
    r = runner.invoke(cli, ['encrypt-file', str(src), str(env), '--password', 'img-pass'])
    assert r.exit_code == 0
    assert len(env.read_bytes()) == 28 + 3 + 16
    r = runner.invoke(cli, ['decrypt-file', str(env), str(out), '--password', 'img-pass'])
    assert r.exit_code == 0
    assert out.read_bytes() == bytes([0x89, 0x50, 0x4E])
    r = runner.invoke(cli, ['decrypt-file', str(env), str(tmp_path / 'nope'), '--password', 'nope'])
    assert r.exit_code == 1
    assert not (tmp_path / 'nope').exists()

def test_note_add_list_show(monkeypatch, tmp_path):
    monkeypatch.setenv('NOTES_PATH', str(tmp_path / 'notes.json'))
    runner = CliRunner()
    add = runner.invoke(cli, ['note', 'add'], input='Title\nContent body\n')
    assert add.exit_code == 0
    assert 'Added note 1.' in add.output
    lst = runner.invoke(cli, ['note', 'list'])
    assert '1: Title' in lst.output
    show = runner.invoke(cli, ['note', 'show', '1'])
    assert show.exit_code == 0
    assert 'Content body' in show.output

def test_encrypted_note_lifecycle(monkeypatch, tmp_path):
    monkeypatch.setenv('NOTES_PATH', str(tmp_path / 'notes.json'))
    img = tmp_path / 'pic.png'; img.write_bytes(b'\x89PNG\r\n\x1a\n' + b'\x00' * 8)
    runner = CliRunner()
    add = runner.invoke(cli, ['note', 'add', '--encrypt', '--image', str(img)], input='Diary\nDear diary\nsecret\nsecret\n')
    assert add.exit_code == 0
    assert '(encrypted)' in add.output
    assert 'Dear diary' not in (tmp_path / 'notes.json').read_text()
    show = runner.invoke(cli, ['note', 'show', '1'], input='secret\n')
    assert 'Dear diary' in show.output and 'Images: 1' in show.output
    bad = runner.invoke(cli, ['note', 'show', '1'], input='guess\n')
    assert bad.exit_code == 1
    assert 'Incorrect password or corrupted data' in bad.output
    unlock = runner.invoke(cli, ['note', 'unlock', '1'], input='secret\n')
    assert unlock.exit_code == 0
    assert 'Dear diary' in (tmp_path / 'notes.json').read_text()
    lock = runner.invoke(cli, ['note', 'lock', '1'], input='secret\nsecret\n')
    assert lock.exit_code == 0
    assert 'Dear diary' not in (tmp_path / 'notes.json').read_text()

def test_note_import_search_delete(monkeypatch, tmp_path):
    monkeypatch.setenv('NOTES_PATH', str(tmp_path / 'notes.json'))
    txt = tmp_path / 'shopping.txt'; txt.write_text('buy milk')
    runner = CliRunner()
    imp = runner.invoke(cli, ['note', 'import', str(txt)])
    assert imp.exit_code == 0
    runner.invoke(cli, ['note', 'add', '--encrypt'], input='Locked milk\nhidden milk\npw\npw\n')
    found = runner.invoke(cli, ['note', 'search', 'MILK'])
    assert '1: shopping' in found.output and '2: Locked milk' in found.output
    hidden = runner.invoke(cli, ['note', 'search', 'hidden'])
    assert hidden.output.strip() == ''
    dl = runner.invoke(cli, ['note', 'delete', '1'])
    assert dl.exit_code == 0
    missing = runner.invoke(cli, ['note', 'show', '1'])
    assert missing.exit_code == 1
    assert 'Note not found' in missing.output

def test_import_rejects_non_txt(monkeypatch, tmp_path):
    monkeypatch.setenv('NOTES_PATH', str(tmp_path / 'notes.json'))
    md = tmp_path / 'x.md'; md.write_text('# hi')
    r = CliRunner().invoke(cli, ['note', 'import', str(md)])
    assert r.exit_code == 1
    assert 'Only .txt' in r.output

def test_encrypt_text_from_stdin_drops_trailing_newline():
    runner = CliRunner()
    enc = runner.invoke(cli, ['encrypt-text', '--password', 'correct horse'], input='hi\n')
    assert enc.exit_code == 0
    token = enc.output.strip().splitlines()[-1]
    dec = runner.invoke(cli, ['decrypt-text', token, '--password', 'correct horse'])
    assert dec.output == 'hi\n'

def test_note_edit(monkeypatch, tmp_path):
    monkeypatch.setenv('NOTES_PATH', str(tmp_path / 'notes.json'))
    img = tmp_path / 'pic.gif'; img.write_bytes(b'GIF89a' + b'\x00' * 8)
    runner = CliRunner()
    runner.invoke(cli, ['note', 'add', '--encrypt'], input='Diary\nfirst entry\nsecret\nsecret\n')
    bad = runner.invoke(cli, ['note', 'edit', '1', '--content', 'x'], input='guess\n')
    assert bad.exit_code == 1
    assert 'Incorrect password or corrupted data' in bad.output
    blank = runner.invoke(cli, ['note', 'edit', '1', '--title', ''], input='secret\n')
    assert blank.exit_code == 1
    assert 'Title is required' in blank.output
    ok = runner.invoke(cli, ['note', 'edit', '1', '--content', 'second entry', '--image', str(img)], input='secret\n')
    assert ok.exit_code == 0
    assert 'Note 1 updated.' in ok.output
    assert 'second entry' not in (tmp_path / 'notes.json').read_text()
    show = runner.invoke(cli, ['note', 'show', '1'], input='secret\n')
    assert 'second entry' in show.output and 'Images: 1' in show.output
    ref = show.output.split('  - ')[1].splitlines()[0]
    rm = runner.invoke(cli, ['note', 'edit', '1', '--remove-image', ref], input='secret\n')
    assert rm.exit_code == 0
    show = runner.invoke(cli, ['note', 'show', '1'], input='secret\n')
    assert 'Images: 0' in show.output
