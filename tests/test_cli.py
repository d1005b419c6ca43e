from __future__ import annotations

import os

import orjson
import pytest

from slicemetrics import cli
from slicemetrics.env import reset_dotenv_cache

LIB_RS = "fn main_fn() {\n    let x = 1;\n}\n"


def _position(line, column):
    return {"line": line, "column": column}


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.delenv("OUTPUT_PATH", raising=False)
    monkeypatch.delenv("ONLY_RUN", raising=False)
    monkeypatch.chdir(tmp_path)
    reset_dotenv_cache()

    crate = tmp_path / "crate"
    (crate / "src").mkdir(parents=True)
    (crate / "src" / "lib.rs").write_text(LIB_RS, encoding="utf-8")
    focus = {
        "functions": {
            "k::main_fn": {
                "basic_blocks": [2, 0],
                "samples": [
                    {
                        "range": {"start": _position(1, 8), "end": _position(1, 9), "filename": "src/lib.rs"},
                        "forward": [{"start": _position(1, 4), "end": _position(1, 14), "filename": "src/lib.rs"}],
                        "backward": [],
                    }
                ],
            }
        }
    }
    focus_path = tmp_path / "focus.json"
    focus_path.write_bytes(orjson.dumps(focus))
    yield crate, focus_path
    reset_dotenv_cache()


def test_end_to_end_run_writes_results(workspace, tmp_path):
    crate, focus_path = workspace
    output = tmp_path / "out" / "results.json"

    code = cli.main([str(crate), "--focus", str(focus_path), "--output", str(output), "--crate-name", "k"])

    assert code == 0
    rows = orjson.loads(output.read_bytes())
    assert [row["direction"] for row in rows] == ["Forward", "Backward", "Both"]
    forward = rows[0]
    assert forward["function_path"] == "k::main_fn"
    assert forward["num_instructions"] == 4
    assert forward["num_tokens"] == 7
    assert forward["num_lines"] == 3
    assert forward["num_relevant_tokens"] == 5
    assert forward["num_relevant_lines"] == 1
    assert forward["line_iqr"] == 1
    assert forward["range"]["start"] == {"line": 1, "column": 8}
    assert rows[1]["num_relevant_tokens"] == 0


def test_output_path_can_come_from_dotenv(workspace, tmp_path):
    crate, focus_path = workspace
    (tmp_path / ".env").write_text("OUTPUT_PATH=from_dotenv.json\n", encoding="utf-8")

    try:
        code = cli.main([str(crate), "--focus", str(focus_path), "--crate-name", "k", "--only-run", "1"])
    finally:
        os.environ.pop("OUTPUT_PATH", None)

    assert code == 0
    assert len(orjson.loads((tmp_path / "from_dotenv.json").read_bytes())) == 3


def test_missing_output_path_exits_with_config_error(workspace):
    crate, focus_path = workspace

    assert cli.main([str(crate), "--focus", str(focus_path)]) == 2


def test_missing_focus_dump_is_fatal(workspace, tmp_path):
    crate, _ = workspace

    code = cli.main([str(crate), "--focus", str(tmp_path / "nope.json"), "--output", str(tmp_path / "o.json")])

    assert code == 1
    assert not (tmp_path / "o.json").exists()
