from __future__ import annotations

from pathlib import Path

import pytest

from csvstore.storage.file_store import append_text, iter_lines, read_first_line, write_text_atomic


def test_iter_lines_across_chunk_boundaries(tmp_path: Path) -> None:
    path = tmp_path / "data.csv"
    lines = [f"row-{i:05d}" for i in range(2000)]
    path.write_text("\n".join(lines), encoding="utf-8")
    assert list(iter_lines(path, chunk_size=1024)) == lines


def test_iter_lines_strips_carriage_returns(tmp_path: Path) -> None:
    path = tmp_path / "crlf.csv"
    path.write_bytes(b"a,b\r\n1,2\r\n")
    assert list(iter_lines(path)) == ["a,b", "1,2"]


def test_read_first_line(tmp_path: Path) -> None:
    path = tmp_path / "h.csv"
    path.write_text("id,name\n1,x", encoding="utf-8")
    assert read_first_line(path) == "id,name"
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    assert read_first_line(empty) is None


def test_append_text(tmp_path: Path) -> None:
    path = tmp_path / "a.csv"
    path.write_text("id", encoding="utf-8")
    append_text(path, "\n1", fsync=True)
    assert path.read_text(encoding="utf-8") == "id\n1"


def test_write_text_atomic_accepts_line_iterables(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "out.csv"
    write_text_atomic(path, ["id", "\n1", "\n2"], fsync=True)
    assert path.read_text(encoding="utf-8") == "id\n1\n2"


def test_failed_atomic_write_keeps_original(tmp_path: Path) -> None:
    path = tmp_path / "keep.csv"
    path.write_text("original", encoding="utf-8")

    def broken():
        yield "partial"
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        write_text_atomic(path, broken())
    assert path.read_text(encoding="utf-8") == "original"
    assert [p.name for p in tmp_path.iterdir()] == ["keep.csv"]


def test_encoding_errors_follow_policy(tmp_path: Path) -> None:
    path = tmp_path / "latin.csv"
    path.write_bytes(b"name\ncaf\xe9")
    with pytest.raises(UnicodeDecodeError):
        list(iter_lines(path))
    assert list(iter_lines(path, errors="replace")) == ["name", "caf�"]
