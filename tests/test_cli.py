from __future__ import annotations

import json
from pathlib import Path

import pytest

from csvstore.ui import cli


def _run(capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, str, str]:
    code = cli.main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_init_append_read(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = str(tmp_path / "people.csv")
    assert _run(capsys, "init", path, "--headers", "name", "n:age", "b:isAlive?")[0] == 0
    assert _run(capsys, "append", path, '{"name": "John", "age": 21}', '[{"name": "Jane", "age": 19}]')[0] == 0

    code, out, _ = _run(capsys, "read", path)
    assert code == 0
    assert [json.loads(line) for line in out.splitlines()] == [
        {"name": "John", "age": 21, "isAlive": None},
        {"name": "Jane", "age": 19, "isAlive": None},
    ]

    code, out, _ = _run(capsys, "count", path)
    assert out.strip() == "2"


def test_sort_write_and_delete(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "people.csv"
    path.write_text("name,age\nJohn,21\nJane,19\nAnn,40", encoding="utf-8")

    assert _run(capsys, "sort", str(path), "--by", "age", "--write")[0] == 0
    assert path.read_text(encoding="utf-8") == "name,age\nJane,19\nJohn,21\nAnn,40"

    assert _run(capsys, "delete", str(path), "--where", "name=John")[0] == 0
    assert _run(capsys, "delete", str(path), "--index", "0")[0] == 0
    assert path.read_text(encoding="utf-8") == "name,age\nAnn,40"


def test_json_round_trip_commands(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "in.json"
    source.write_text('[{"id": 1, "tag": "a;b"}]', encoding="utf-8")
    csv_path = tmp_path / "data.csv"
    out_json = tmp_path / "out.json"

    assert _run(capsys, "from-json", str(source), str(csv_path), "--delimiter", ";")[0] == 0
    assert csv_path.read_text(encoding="utf-8") == 'id;tag\n1;"a;b"'
    assert _run(capsys, "to-json", str(csv_path), str(out_json), "--delimiter", ";")[0] == 0
    assert json.loads(out_json.read_text(encoding="utf-8")) == [{"id": 1, "tag": "a;b"}]


def test_clear_and_operation_log(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "p.csv"
    path.write_text("id\n1\n2", encoding="utf-8")
    log_path = tmp_path / "ops.jsonl"
    assert _run(capsys, "clear", str(path), "--operation-log", str(log_path))[0] == 0
    assert path.read_text(encoding="utf-8") == "id"
    assert json.loads(log_path.read_text(encoding="utf-8"))["operation"] == "clear"


def test_invalid_header_reports_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code, _, err = _run(capsys, "init", str(tmp_path / "x.csv"), "--headers", "na me")
    assert code == 1
    assert "SCHEMA_ERROR" in err


def test_unknown_sort_field(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "p.csv"
    path.write_text("id\n1", encoding="utf-8")
    code, _, err = _run(capsys, "sort", str(path), "--by", "missing")
    assert code == 1
    assert "missing" in err


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    code, out, _ = _run(capsys)
    assert code == 0
    assert "usage" in out


def test_main_dispatches_to_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    invoked: dict[str, str] = {}

    def fake_command(args) -> None:  # type: ignore[override]
        invoked["path"] = args.path
        invoked["profile"] = args.profile

    monkeypatch.setattr(cli, "command_count", fake_command)
    assert cli.main(["count", str(tmp_path / "x.csv"), "--profile", "durable"]) == 0
    assert invoked == {"path": str(tmp_path / "x.csv"), "profile": "durable"}
