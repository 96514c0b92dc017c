import io
import json
from pathlib import Path

import pytest

from russembly.__main__ import main

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_cli_runs_program(capsys):
    main(['--no-progress', str(EXAMPLES / 'program_1.rusm')])
    out = capsys.readouterr().out
    assert 'Output:' in out
    assert 'Hello World!!' in out
    assert 'Interpreting the tokens returned 0 errors' in out


def test_cli_missing_file(capsys):
    with pytest.raises(SystemExit) as info:
        main(['does-not-exist.rusm'])
    assert info.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_cli_dump_and_show_state(tmp_path, capsys):
    dump = tmp_path / 'state.json'
    main(['--no-progress', '--show-state', '--dump-state', str(dump), str(EXAMPLES / 'program_3.rusm')])
    out = capsys.readouterr().out
    assert 'Accumulator:    5' in out
    state = json.loads(dump.read_text(encoding='utf-8'))
    assert state['ports'][7] == 255


def test_cli_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr('sys.stdin', io.StringIO('fn main ( ) {~prnt "piped"~}'))
    main(['--no-progress', '--tilde-newlines', '-'])
    assert 'piped' in capsys.readouterr().out


def test_cli_runtime_error_exits_nonzero(tmp_path, capsys):
    program = tmp_path / 'bad.rusm'
    program.write_text('fn main ( ) {\n    adds\n}\n', encoding='utf-8')
    with pytest.raises(SystemExit) as info:
        main(['--no-progress', str(program)])
    assert info.value.code == 1
    captured = capsys.readouterr()
    assert 'Runtime error' in captured.err
    assert 'returned 1 errors' in captured.out


def test_cli_html_export(tmp_path, capsys):
    html = tmp_path / 'run.html'
    main(['--no-progress', '--html', str(html), str(EXAMPLES / 'program_1.rusm')])
    assert 'Hello World!!' in html.read_text(encoding='utf-8')
