import pathlib
import subprocess
import sys

import pytest

import json_cursor as jc

ROOT = pathlib.Path(__file__).resolve().parents[2]
DOC = '{"users": [{"name": "ann", "tags": ["a/b", "c~d"]}, {"name": "bob"}], "n": 2}'


@pytest.fixture
def doc_file(tmp_path):
    path = tmp_path / "doc.json"
    path.write_text(DOC, encoding="utf-8")
    return str(path)


def _run(*args):
    cmd = [sys.executable, str(ROOT / "json_cursor.py"), *args]
    return subprocess.run(cmd, capture_output=True, text=True, cwd=str(ROOT))


def test_cli_prints_compact_document(doc_file):
    cp = _run(doc_file)
    assert cp.returncode == 0
    assert cp.stdout.strip() == DOC.replace(": ", ":").replace(", ", ",")


def test_cli_invalid_json_returns_1(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"a": }', encoding="utf-8")
    cp = _run(str(bad))
    assert cp.returncode == 1
    assert "SyntaxError" in cp.stderr


def test_cli_bad_arguments_return_2():
    cp = _run()
    assert cp.returncode == 2


def test_cli_pointer_and_indent(doc_file, capsys):
    assert jc._cli([doc_file, "--pointer", "/users/0", "--indent", "1"]) == 0
    out = capsys.readouterr().out
    assert out == '{\n "name": "ann",\n "tags": [\n  "a/b",\n  "c~d"\n ]\n}\n'


def test_cli_unresolved_pointer(doc_file, capsys):
    assert jc._cli([doc_file, "--pointer", "/users/5"]) == 1
    assert "does not resolve" in capsys.readouterr().err


def test_cli_tokens(doc_file, capsys):
    assert jc._cli([doc_file, "--tokens"]) == 0
    first = capsys.readouterr().out.splitlines()[0]
    assert first == "('BRACE', '{', 0)"


def test_pointer_escapes():
    tree = {"a/b": {"m~n": [0, 1, {"": "empty"}]}}
    cur = jc.JsonCursor(tree)
    assert jc.seek_pointer(cur, "/a~1b/m~0n/2/")
    assert cur.expect_string() == "empty"


def test_pointer_empty_selects_root():
    cur = jc.JsonCursor([1])
    assert jc.seek_pointer(cur, "")
    assert cur.check_array()


@pytest.mark.parametrize("pointer", ["/x", "/0/z", "/01", "/-", "/5", "/\u00b2", "/\u0661", "/+0"])
def test_pointer_misses(pointer):
    tree = [{"k": 1}] if pointer != "/x" else {"y": 1}
    assert not jc.seek_pointer(jc.JsonCursor(tree), pointer)


def test_pointer_must_start_with_slash():
    with pytest.raises(ValueError):
        jc.seek_pointer(jc.JsonCursor({}), "a")


def test_pointer_index_accepts_only_ascii_digits():
    cur = jc.JsonCursor(["a", "b"])
    assert not jc.seek_pointer(cur.copy(), "/١")
    assert jc.seek_pointer(cur, "/1")
    assert cur.expect_string() == "b"


def test_cli_deep_nesting_past_recursion_limit(tmp_path, capsys):
    depth = sys.getrecursionlimit() * 3
    deep = tmp_path / "deep.json"
    deep.write_text("[" * depth + "]" * depth, encoding="utf-8")
    assert jc._cli([str(deep), "--max-depth", str(depth * 2)]) == 1
    assert "nesting too deep" in capsys.readouterr().err
