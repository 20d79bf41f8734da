# tests/test_buffer.py
"""
LineBuffer tests: pure data structure, cursor always within [0, len].
"""
from __future__ import annotations

import random

from sqlshell.buffer import LineBuffer

# ----------------------------------------------------------------
# Insert semantics
# ----------------------------------------------------------------


def test_insert_appends_at_end() -> None:
    buf = LineBuffer()
    for ch in "abc":
        buf.insert(ch)

    assert buf.text == "abc"
    assert buf.cursor == 3


def test_insert_mid_buffer_shifts_tail_right() -> None:
    """Insert at position p keeps [0, p) and shifts [p, n) right by one."""
    buf = LineBuffer("abcdef")
    buf.cursor = 2

    buf.insert("X")

    assert buf.text == "abXcdef"
    assert buf.cursor == 3


def test_insert_at_start() -> None:
    buf = LineBuffer("bc")
    buf.home()
    buf.insert("a")

    assert buf.text == "abc"
    assert buf.cursor == 1


# ----------------------------------------------------------------
# Backspace + movement
# ----------------------------------------------------------------


def test_backspace_removes_char_before_cursor_and_keeps_tail() -> None:
    buf = LineBuffer("abcd")
    buf.cursor = 2

    assert buf.backspace() is True
    assert buf.text == "acd"
    assert buf.cursor == 1


def test_backspace_at_start_is_noop() -> None:
    buf = LineBuffer("abc")
    buf.home()

    assert buf.backspace() is False
    assert buf.text == "abc"
    assert buf.cursor == 0


def test_left_right_are_clamped() -> None:
    buf = LineBuffer("ab")
    buf.right()
    buf.right()
    assert buf.cursor == 2

    buf.home()
    buf.left()
    assert buf.cursor == 0


def test_home_end() -> None:
    buf = LineBuffer("select")
    buf.home()
    assert buf.cursor == 0
    buf.end()
    assert buf.cursor == 6


def test_replace_moves_cursor_to_end() -> None:
    buf = LineBuffer("x")
    buf.home()
    buf.replace("select 1")

    assert buf.text == "select 1"
    assert buf.cursor == len("select 1")


def test_freeze_returns_text_and_clears() -> None:
    buf = LineBuffer("ls -l")

    assert buf.freeze() == "ls -l"
    assert buf.text == ""
    assert buf.cursor == 0


# ----------------------------------------------------------------
# Properties over random edit sequences
# ----------------------------------------------------------------


def test_random_edit_sequences_keep_invariants() -> None:
    rng = random.Random(1234)
    ops = ["insert", "backspace", "left", "right"]

    for _ in range(200):
        buf = LineBuffer()
        net = 0
        for _ in range(rng.randint(0, 40)):
            op = rng.choice(ops)
            if op == "insert":
                buf.insert(rng.choice("abc xyz"))
                net += 1
            elif op == "backspace":
                if buf.backspace():
                    net -= 1
            elif op == "left":
                buf.left()
            else:
                buf.right()

            assert 0 <= buf.cursor <= len(buf)

        assert len(buf) == net
