"""
Tests for the pure board logic: task records, column projection, moves.
"""
import pytest

from core.columns import check_invariants, column_ids, project_columns
from core.models import DONE, IN_PROGRESS, TODO, Task, normalize_status
from core.move import diff_boards, move_task, normalize_orders


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Task records
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_task_from_record_keeps_server_metadata():
    task = Task.from_record({
        "_id": "t1", "title": "Write docs", "status": "IN_PROGRESS", "order": 2,
        "project": "p1", "createdAt": "2024-01-01T00:00:00Z", "__v": 0,
    })
    assert task.id == "t1"
    assert task.status == IN_PROGRESS
    assert task.order == 2
    assert task.extra == {"createdAt": "2024-01-01T00:00:00Z", "__v": 0}


def test_task_from_record_defaults():
    task = Task.from_record({"id": "t2", "title": "x", "status": "archived", "order": None})
    assert task.id == "t2"
    assert task.status == TODO
    assert task.order == 0


def test_task_from_record_requires_id():
    with pytest.raises(ValueError):
        Task.from_record({"title": "no id"})


def test_normalize_status_variants():
    assert normalize_status("in-progress") == IN_PROGRESS
    assert normalize_status("done") == DONE
    assert normalize_status(None) == TODO


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Column projection
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_project_columns_sorts_by_order_and_has_every_status():
    board = {
        "b": Task(id="b", title="b", status=TODO, order=1),
        "a": Task(id="a", title="a", status=TODO, order=0),
        "c": Task(id="c", title="c", status=DONE, order=0),
    }
    columns = project_columns(board)
    assert [t.id for t in columns[TODO]] == ["a", "b"]
    assert columns[IN_PROGRESS] == []
    assert [t.id for t in columns[DONE]] == ["c"]


def test_check_invariants_reports_gaps(make_board):
    board = make_board({TODO: ["a", "b"]})
    assert check_invariants(board) == []
    board["b"] = Task(id="b", title="b", status=TODO, order=5)
    issues = check_invariants(board)
    assert len(issues) == 1
    assert "TODO" in issues[0]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Move operation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestMoveTask:

    def test_move_across_columns_to_empty_column(self, make_board):
        board = make_board({TODO: ["a", "b"], DONE: []})
        moved = move_task(board, "b", DONE, 0)
        assert column_ids(moved) == {TODO: ["a"], IN_PROGRESS: [], DONE: ["b"]}
        assert moved["a"].order == 0
        assert moved["b"].order == 0
        assert moved["b"].status == DONE

    def test_move_does_not_mutate_input(self, make_board):
        board = make_board({TODO: ["a", "b"]})
        before = dict(board)
        move_task(board, "a", DONE, 0)
        assert board == before
        assert board["a"].status == TODO

    def test_reorder_within_column(self, make_board):
        board = make_board({IN_PROGRESS: ["a", "b", "c"]})
        moved = move_task(board, "a", IN_PROGRESS, 2)
        assert column_ids(moved)[IN_PROGRESS] == ["b", "c", "a"]
        assert [moved[i].order for i in ("b", "c", "a")] == [0, 1, 2]

    def test_index_is_counted_without_the_moved_task(self, make_board):
        board = make_board({TODO: ["a", "b", "c"]})
        # index 1 among [b, c] -> between b and c
        moved = move_task(board, "a", TODO, 1)
        assert column_ids(moved)[TODO] == ["b", "a", "c"]

    def test_index_past_end_appends(self, make_board):
        board = make_board({TODO: ["a"], DONE: ["x", "y"]})
        moved = move_task(board, "a", DONE, 99)
        assert column_ids(moved)[DONE] == ["x", "y", "a"]
        assert moved["a"].order == 2

    def test_negative_index_clamps_to_front(self, make_board):
        board = make_board({TODO: ["a"], DONE: ["x"]})
        moved = move_task(board, "a", DONE, -3)
        assert column_ids(moved)[DONE] == ["a", "x"]

    def test_unknown_task_is_a_noop(self, make_board):
        board = make_board({TODO: ["a"]})
        assert move_task(board, "ghost", DONE, 0) == board

    def test_unknown_status_is_a_noop(self, make_board):
        board = make_board({TODO: ["a"]})
        assert move_task(board, "a", "ARCHIVED", 0) == board

    def test_repeating_a_move_changes_nothing(self, make_board):
        board = make_board({TODO: ["a", "b", "c"], DONE: ["d"]})
        once = move_task(board, "b", DONE, 1)
        twice = move_task(once, "b", DONE, 1)
        assert twice == once

    def test_move_to_current_position_is_identity(self, make_board):
        board = make_board({TODO: ["a", "b", "c"]})
        assert move_task(board, "b", TODO, 1) == board

    def test_every_move_keeps_columns_dense(self, make_board):
        board = make_board({TODO: ["a", "b", "c"], IN_PROGRESS: ["d"], DONE: ["e", "f"]})
        for task_id in board:
            for status in (TODO, IN_PROGRESS, DONE):
                for index in range(0, 5):
                    moved = move_task(board, task_id, status, index)
                    assert check_invariants(moved) == [], (task_id, status, index)
                    assert sorted(moved) == sorted(board)

    def test_gapped_input_is_densified_everywhere(self):
        board = {
            "a": Task(id="a", title="a", status=TODO, order=3),
            "b": Task(id="b", title="b", status=TODO, order=7),
            "c": Task(id="c", title="c", status=DONE, order=4),
        }
        moved = move_task(board, "a", TODO, 1)
        assert check_invariants(moved) == []
        assert moved["c"].order == 0


def test_normalize_orders_preserves_relative_order():
    board = {
        "a": Task(id="a", title="a", status=IN_PROGRESS, order=0),
        "c": Task(id="c", title="c", status=IN_PROGRESS, order=2),
    }
    normalized = normalize_orders(board)
    assert column_ids(normalized)[IN_PROGRESS] == ["a", "c"]
    assert normalized["c"].order == 1
    assert normalized["a"] is board["a"]


def test_diff_boards(make_board):
    before = make_board({TODO: ["a", "b"]})
    after = move_task(before, "a", DONE, 0)
    del after["b"]
    patch = diff_boards(before, after)
    assert patch == {"a": after["a"], "b": None}
