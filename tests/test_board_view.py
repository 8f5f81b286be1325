"""Tests for the pure helpers of the board widget."""
import pytest

pytest.importorskip("tkinter")

from gui.board_view import STATUS_COLORS, header_text_color  # noqa: E402


@pytest.mark.parametrize("background, expected", [
    ("#FFFFFF", "black"),
    ("#000", "white"),
    ("#10B981", "white"),
    ("CBD5E1", "black"),
    ("#12", "black"),
    ("#zzzzzz", "black"),
])
def test_header_text_color(background, expected):
    assert header_text_color(background) == expected


def test_every_status_header_gets_a_color():
    assert {header_text_color(c) for c in STATUS_COLORS.values()} <= {"black", "white"}
