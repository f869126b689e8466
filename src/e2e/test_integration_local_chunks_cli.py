import asyncio
import json
from pathlib import Path

import pytest

from chunksearch.__main__ import main as cli_main
from chunksearch.transport.api import make_transport
from chunksearch.transport.local_transport import LocalTransport


def _seed(tmp: Path) -> tuple[str, str]:
    root = tmp / "json_chunks"; root.mkdir()
    (root / "chunk_0001.ndjson").write_text(
        json.dumps({"schema": ["mk", "sn", "or", "pc", "fd"]}) + "\n"
        + json.dumps(["ACME LOCK", "11111111", "Acme Inc", "006", "20200131"]) + "\n"
        + json.dumps(["BOLT", "22222222", "Bolt Co", "009", "19991231"]) + "\n",
        encoding="utf-8",
    )
    (root / "chunk_0002.ndjson").write_text(
        json.dumps({"mk": "LOCKSMITH PRO", "sn": "33333333"}) + "\n", encoding="utf-8"
    )
    range_map = tmp / "range_map.json"
    range_map.write_text(json.dumps([
        {"file": "chunk_0001.ndjson", "start": "!", "end": "locka"},
        {"file": "chunk_0002.ndjson", "start": "lockb", "end": "zzz"},
    ]), encoding="utf-8")
    return str(root), str(range_map)


def test_make_transport_picks_local_for_directories(tmp_path: Path):
    root, _ = _seed(tmp_path)
    assert isinstance(make_transport(root), LocalTransport)
    assert isinstance(make_transport("file://" + root), LocalTransport)
    with pytest.raises(FileNotFoundError):
        make_transport(str(tmp_path / "missing"))


def test_local_transport_stays_inside_root(tmp_path: Path):
    root, _ = _seed(tmp_path)
    (tmp_path / "secret.ndjson").write_text("{}", encoding="utf-8")
    t = LocalTransport(root)
    assert asyncio.run(t.fetch("../secret.ndjson")) is None
    assert asyncio.run(t.exists("../secret.ndjson")) is False
    assert asyncio.run(t.exists("chunk_0002.ndjson")) is True


@pytest.mark.e2e
def test_cli_single_query_json(tmp_path: Path, capsys):
    root, range_map = _seed(tmp_path)
    rc = cli_main(["--source", root, "--range-map", range_map, "--q", "lock", "--json", "--no-delay"])
    assert rc == 0
    lines = [json.loads(ln) for ln in capsys.readouterr().out.splitlines() if ln.strip()]
    assert [r["mk"] for r in lines] == ["LOCKSMITH PRO", "ACME LOCK"]


@pytest.mark.e2e
def test_cli_table_output(tmp_path: Path, capsys):
    root, range_map = _seed(tmp_path)
    rc = cli_main(["--source", root, "--range-map", range_map, "--q", "acme", "--no-delay"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "ACME LOCK" in out
    assert "31-01-2020" in out
    assert "Showing 1 of 1 results" in out


@pytest.mark.e2e
def test_cli_probe_mode(tmp_path: Path, capsys):
    root, _ = _seed(tmp_path)
    rc = cli_main(["--source", root, "--probe", "1", "5", "--q", "bolt", "--json", "--no-delay"])
    assert rc == 0
    lines = [json.loads(ln) for ln in capsys.readouterr().out.splitlines() if ln.strip()]
    assert [r["mk"] for r in lines] == ["BOLT"]


@pytest.mark.e2e
def test_cli_fails_when_index_missing(tmp_path: Path):
    root, _ = _seed(tmp_path)
    empty = tmp_path / "empty.json"
    empty.write_text("[]", encoding="utf-8")
    assert cli_main(["--source", root, "--range-map", str(empty), "--q", "lock", "--no-delay"]) == 1
