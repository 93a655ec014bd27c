"""
Unit tests per la board kanban e lo spostamento dei task.
"""

import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from devpilot.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from devpilot.models.task import TaskStatus
from devpilot.schemas.project import TaskMoveRequest
from devpilot.services.kanban import (
    KanbanColumn,
    MoveState,
    TaskMove,
    calculate_progress,
    canonical_status,
    group_tasks_by_column,
    map_status_to_column,
)
from devpilot.services.task_service import TaskService

from conftest import make_result, make_task


# ============================================================
# Tests per la mappatura stato → colonna
# ============================================================


class TestStatusMapping:
    """Mappatura totale e idempotente dei 5 stati sulle 3 colonne."""

    @pytest.mark.parametrize(
        "status,column",
        [
            ("backlog", KanbanColumn.TODO),
            ("todo", KanbanColumn.TODO),
            ("in_progress", KanbanColumn.IN_PROGRESS),
            ("review", KanbanColumn.IN_PROGRESS),
            ("done", KanbanColumn.DONE),
        ],
    )
    def test_mapping(self, status, column):
        assert map_status_to_column(status) is column

    def test_accepts_enum(self):
        assert map_status_to_column(TaskStatus.REVIEW) is KanbanColumn.IN_PROGRESS

    def test_idempotent(self):
        for status in TaskStatus:
            column = map_status_to_column(status)
            assert map_status_to_column(column.value) is column

    def test_image_is_three_columns(self):
        columns = {map_status_to_column(s) for s in TaskStatus}
        assert columns == set(KanbanColumn)

    def test_unknown_status_raises(self):
        with pytest.raises(BusinessValidationError):
            map_status_to_column("blocked")

    def test_canonical_status(self):
        assert canonical_status("review") is TaskStatus.IN_PROGRESS
        assert canonical_status("backlog") is TaskStatus.TODO
        assert canonical_status(KanbanColumn.DONE) is TaskStatus.DONE


# ============================================================
# Tests per raggruppamento e avanzamento
# ============================================================


class TestBoardGrouping:
    """Tests per group_tasks_by_column e calculate_progress."""

    def test_collapsed_board(self, user_id):
        project_id = uuid.uuid4()
        tasks = [
            make_task(user_id, project_id, "review", 0),
            make_task(user_id, project_id, "in_progress", 1),
            make_task(user_id, project_id, "in_progress", 0),
            make_task(user_id, project_id, "backlog", 0),
            make_task(user_id, project_id, "done", 0),
        ]

        board = group_tasks_by_column(tasks)

        assert list(board) == ["todo", "in_progress", "done"]
        assert [t.status for t in board["todo"]] == ["backlog"]
        assert len(board["in_progress"]) == 3
        # ordinamento stabile per order_index
        assert [t.order_index for t in board["in_progress"]] == [0, 0, 1]
        assert len(board["done"]) == 1

    def test_full_board_keeps_all_statuses(self, user_id):
        project_id = uuid.uuid4()
        tasks = [make_task(user_id, project_id, "review", 0)]

        board = group_tasks_by_column(tasks, collapsed=False)

        assert list(board) == ["backlog", "todo", "in_progress", "review", "done"]
        assert len(board["review"]) == 1
        assert board["in_progress"] == []

    def test_empty_board_has_all_columns(self):
        assert group_tasks_by_column([]) == {"todo": [], "in_progress": [], "done": []}

    def test_progress(self, user_id):
        project_id = uuid.uuid4()
        tasks = [
            make_task(user_id, project_id, "done", 0),
            make_task(user_id, project_id, "done", 1),
            make_task(user_id, project_id, "todo", 0),
        ]

        assert calculate_progress(tasks) == 67

    def test_progress_without_tasks(self):
        assert calculate_progress([]) == 0


# ============================================================
# Tests per TaskMove
# ============================================================


class TestTaskMove:
    """Macchina a stati pending → committed | reverted."""

    def test_apply_and_commit(self, user_id):
        task = make_task(user_id, uuid.uuid4(), "todo", 4)
        move = TaskMove(task=task, target_status=TaskStatus.DONE, target_order_index=2)

        move.apply()
        move.commit()

        assert task.status == "done"
        assert task.order_index == 2
        assert move.state is MoveState.COMMITTED

    def test_revert_restores_previous_position(self, user_id):
        task = make_task(user_id, uuid.uuid4(), "review", 3)
        move = TaskMove(task=task, target_status=TaskStatus.IN_PROGRESS, target_order_index=0)
        error = SQLAlchemyError("write failed")

        move.apply()
        move.revert(error)

        assert task.status == "review"
        assert task.order_index == 3
        assert move.state is MoveState.REVERTED
        assert move.error is error

    def test_cannot_revert_after_commit(self, user_id):
        task = make_task(user_id, uuid.uuid4(), "todo", 0)
        move = TaskMove(task=task, target_status=TaskStatus.DONE, target_order_index=0)
        move.commit()

        with pytest.raises(BusinessValidationError):
            move.revert()

    def test_noop_when_same_status(self, user_id):
        task = make_task(user_id, uuid.uuid4(), "in_progress", 0)
        move = TaskMove(task=task, target_status=TaskStatus.IN_PROGRESS, target_order_index=5)

        assert move.is_noop is True


# ============================================================
# Tests per TaskService.move_task
# ============================================================


class TestMoveTaskService:
    """Tests per lo spostamento con AsyncSession mockata."""

    async def test_review_moved_to_in_progress(self, mock_db, user_id):
        task = make_task(user_id, uuid.uuid4(), "review", 1)
        mock_db.execute.side_effect = [make_result(one=task), make_result(count=2)]

        moved = await TaskService().move_task(mock_db, user_id, task.id, "in_progress")

        assert moved.status == "in_progress"
        assert moved.order_index == 2
        mock_db.flush.assert_awaited_once()

    async def test_same_column_is_noop(self, mock_db, user_id):
        task = make_task(user_id, uuid.uuid4(), "done", 3)
        mock_db.execute.side_effect = [make_result(one=task), make_result(count=7)]

        moved = await TaskService().move_task(mock_db, user_id, task.id, "done")

        assert moved.order_index == 3
        mock_db.flush.assert_not_awaited()

    async def test_failed_write_is_reverted(self, mock_db, user_id):
        task = make_task(user_id, uuid.uuid4(), "todo", 0)
        mock_db.execute.side_effect = [make_result(one=task), make_result(count=1)]
        mock_db.flush.side_effect = SQLAlchemyError("connection lost")

        with pytest.raises(ConflictError):
            await TaskService().move_task(mock_db, user_id, task.id, "done")

        assert task.status == "todo"
        assert task.order_index == 0
        mock_db.rollback.assert_awaited_once()

    async def test_invalid_column_rejected_before_query(self, mock_db, user_id):
        with pytest.raises(BusinessValidationError):
            await TaskService().move_task(mock_db, user_id, uuid.uuid4(), "archived")

        mock_db.execute.assert_not_awaited()

    async def test_task_not_found(self, mock_db, user_id):
        mock_db.execute.return_value = make_result(one=None)

        with pytest.raises(NotFoundError):
            await TaskService().move_task(mock_db, user_id, uuid.uuid4(), "done")

    async def test_full_board_keeps_review(self, mock_db, user_id):
        task = make_task(user_id, uuid.uuid4(), "in_progress", 0)
        mock_db.execute.side_effect = [make_result(one=task), make_result(count=1)]

        moved = await TaskService().move_task(mock_db, user_id, task.id, "review", collapsed=False)

        assert moved.status == "review"
        assert moved.order_index == 1
        mock_db.flush.assert_awaited_once()

    async def test_full_board_keeps_backlog(self, mock_db, user_id):
        task = make_task(user_id, uuid.uuid4(), "todo", 2)
        mock_db.execute.side_effect = [make_result(one=task), make_result(count=0)]

        moved = await TaskService().move_task(mock_db, user_id, task.id, TaskStatus.BACKLOG, collapsed=False)

        assert moved.status == "backlog"
        assert moved.order_index == 0

    async def test_collapsed_board_drops_review(self, mock_db, user_id):
        task = make_task(user_id, uuid.uuid4(), "in_progress", 0)
        mock_db.execute.side_effect = [make_result(one=task), make_result(count=3)]

        moved = await TaskService().move_task(mock_db, user_id, task.id, "review")

        assert moved.status == "in_progress"
        mock_db.flush.assert_not_awaited()

    async def test_full_board_unknown_status(self, mock_db, user_id):
        with pytest.raises(BusinessValidationError):
            await TaskService().move_task(mock_db, user_id, uuid.uuid4(), "archived", collapsed=False)

        mock_db.execute.assert_not_awaited()

    def test_move_request_defaults_to_collapsed(self):
        assert TaskMoveRequest(target_column="done").collapsed is True
        assert TaskMoveRequest(target_column="review", collapsed=False).collapsed is False
