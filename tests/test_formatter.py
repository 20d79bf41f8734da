# tests/test_formatter.py
from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from sqlshell.config import ANSI_COLORS, SessionConfig
from sqlshell.db import open_database
from sqlshell.engine import SQLExecutionEngine
from sqlshell.formatter import OutputFormatter, display_value


class Capture:
    def __init__(self):
        self.chunks: list[str] = []

    def __call__(self, text: str) -> None:
        self.chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self.chunks)


@pytest.fixture
def out() -> Capture:
    return Capture()


def records(n: int) -> list[dict]:
    return [{"id": i, "name": f"n{i}"} for i in range(n)]


# ----------------------------------------------------------------
# Values
# ----------------------------------------------------------------


def test_display_value() -> None:
    assert display_value(True) == "true"
    assert display_value(False) == "false"
    assert display_value(b"\xab\x01") == "ab01"
    assert display_value(1.5) == "1.5"


# ----------------------------------------------------------------
# pairs
# ----------------------------------------------------------------


def test_pairs_pads_keys_and_separates_records(out: Capture) -> None:
    fmt = OutputFormatter(SessionConfig(), out)

    shown = fmt.render([{"id": 1, "name": "alice"}, {"id": 2}])

    assert shown == 2
    assert out.text == "\n  id: 1\nname: alice\n\nid: 2\n"


def test_pairs_colors_keys(out: Capture) -> None:
    fmt = OutputFormatter(SessionConfig(color=True), out)

    fmt.render([{"id": 1}])

    assert f"{ANSI_COLORS['cyan']}id{ANSI_COLORS['reset']}: 1" in out.text


# ----------------------------------------------------------------
# json
# ----------------------------------------------------------------


def test_json_one_object_per_line(out: Capture) -> None:
    fmt = OutputFormatter(SessionConfig(format="json"), out)

    fmt.render([{"id": 1, "ok": True}, {"blob": b"\x00\xff"}])

    lines = out.text.splitlines()
    assert json.loads(lines[0]) == {"id": 1, "ok": True}
    assert json.loads(lines[1]) == {"blob": "AP8="}


# ----------------------------------------------------------------
# rows
# ----------------------------------------------------------------


def test_column_width_rounds_to_tab_stop() -> None:
    fmt = OutputFormatter(SessionConfig(format="rows"), Capture())

    assert fmt.column_width("id") == 8
    assert fmt.column_width("description") == 16


def test_column_width_respects_min_width() -> None:
    settings = SessionConfig(format="rows", min_width=10, tab_width=4, padding=2)
    fmt = OutputFormatter(settings, Capture())

    assert fmt.column_width("id") == 12


def test_rows_header_once_and_aligned(out: Capture) -> None:
    fmt = OutputFormatter(SessionConfig(format="rows"), out)

    fmt.render(records(2), ["id", "name"])

    assert out.text.splitlines() == [
        "id      name",
        "0       n0",
        "1       n1",
    ]


def test_rows_missing_value_keeps_alignment(out: Capture) -> None:
    fmt = OutputFormatter(SessionConfig(format="rows"), out)

    fmt.render([{"name": "x"}], ["id", "name"])

    assert out.text.splitlines()[1] == "        x"


def test_rows_window_prints_header_once(out: Capture) -> None:
    settings = SessionConfig(format="rows", start_index=2, limit=4)
    fmt = OutputFormatter(settings, out)

    shown = fmt.render(records(10), ["id", "name"])

    lines = out.text.splitlines()
    assert shown == 3
    assert lines[0].startswith("id")
    assert [line.split()[0] for line in lines[1:]] == ["2", "3", "4"]


def test_window_beyond_results_prints_nothing(out: Capture) -> None:
    settings = SessionConfig(format="rows", start_index=5)
    fmt = OutputFormatter(settings, out)

    assert fmt.render(records(3), ["id", "name"]) == 0
    assert out.text == ""


@pytest.mark.parametrize(
    "start, limit, expected",
    [
        (0, 0, [0, 1, 2, 3, 4]),
        (0, 2, [0, 1, 2]),
        (3, 0, [3, 4]),
        (1, 1, [1]),
    ],
)
def test_window_selection(start: int, limit: int, expected: list[int]) -> None:
    out = Capture()
    fmt = OutputFormatter(
        SessionConfig(format="json", start_index=start, limit=limit), out
    )

    fmt.render(records(5))

    assert [json.loads(line)["id"] for line in out.text.splitlines()] == expected


def test_rendering_stops_reading_after_limit(out: Capture) -> None:
    pulled = []

    def stream():
        for record in records(1000):
            pulled.append(record["id"])
            yield record

    fmt = OutputFormatter(SessionConfig(format="json", limit=2), out)

    assert fmt.render(stream()) == 3
    assert len(pulled) == 4


def test_limit_over_result_set_renders_window(tmp_path: Path) -> None:
    path = tmp_path / "many.db"
    conn = sqlite3.connect(str(path))
    conn.execute("CREATE TABLE t (id INTEGER)")
    conn.executemany("INSERT INTO t VALUES (?)", [(i,) for i in range(50)])
    conn.commit()
    conn.close()

    engine = SQLExecutionEngine(open_database(str(path)))
    out = Capture()
    fmt = OutputFormatter(SessionConfig(format="json", limit=1), out)
    with engine.execute("select id from t order by id") as result:
        fmt.render(result, result.columns)

    assert out.text == '{"id": 0}\n{"id": 1}\n'
    engine.close()
