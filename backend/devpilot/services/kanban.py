"""
Board kanban: mappatura stati e spostamenti
Progetto: DevPilot (Gestionale Freelance)

Lo stato di un task ha 5 valori persistiti, ma la board principale
mostra solo 3 colonne. La mappatura è totale e idempotente:

    backlog     → todo
    todo        → todo
    in_progress → in_progress
    review      → in_progress
    done        → done

Trascinare un task in una colonna ne sovrascrive lo stato con quello
canonico della colonna: un task in review spostato su "In Progress"
diventa in_progress (la distinzione review va persa). La board a 5
stati invece salva lo stato scelto invariato.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from devpilot.core.exceptions import BusinessValidationError
from devpilot.models.task import TaskStatus

logger = logging.getLogger(__name__)


class KanbanColumn(str, Enum):
    """Colonne della board compatta."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


COLUMN_TITLES = {
    KanbanColumn.TODO: "To Do",
    KanbanColumn.IN_PROGRESS: "In Progress",
    KanbanColumn.DONE: "Done",
}

FULL_BOARD_TITLES = {
    TaskStatus.BACKLOG: "Backlog",
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.REVIEW: "Review",
    TaskStatus.DONE: "Done",
}

_STATUS_TO_COLUMN = {
    TaskStatus.BACKLOG: KanbanColumn.TODO,
    TaskStatus.TODO: KanbanColumn.TODO,
    TaskStatus.IN_PROGRESS: KanbanColumn.IN_PROGRESS,
    TaskStatus.REVIEW: KanbanColumn.IN_PROGRESS,
    TaskStatus.DONE: KanbanColumn.DONE,
}


def parse_task_status(value: Any) -> TaskStatus:
    """Converte una stringa in TaskStatus, con errore di business se sconosciuta."""
    if isinstance(value, Enum):
        value = value.value
    try:
        return TaskStatus(value)
    except ValueError:
        raise BusinessValidationError(f"Stato task non valido: {value!r}")


def map_status_to_column(status: Any) -> KanbanColumn:
    """
    Colonna della board compatta per uno stato task.

    Raises:
        BusinessValidationError: Se lo stato non appartiene al dominio
    """
    return _STATUS_TO_COLUMN[parse_task_status(status)]


def canonical_status(column: Any) -> TaskStatus:
    """Stato persistito assegnato a un task rilasciato nella colonna."""
    return TaskStatus(map_status_to_column(column).value)


def group_tasks_by_column(
    tasks: Iterable[Any],
    collapsed: bool = True,
) -> dict[str, list[Any]]:
    """
    Raggruppa i task per colonna, ordinati per order_index.

    Args:
        tasks: Task (oggetti con status e order_index)
        collapsed: True per la board a 3 colonne, False per quella a 5

    Returns:
        dict colonna → lista di task; tutte le colonne sono presenti
    """
    keys = [c.value for c in KanbanColumn] if collapsed else [s.value for s in TaskStatus]
    board: dict[str, list[Any]] = {key: [] for key in keys}

    for task in tasks:
        key = map_status_to_column(task.status).value if collapsed else parse_task_status(task.status).value
        board[key].append(task)

    for column_tasks in board.values():
        column_tasks.sort(key=lambda t: t.order_index)
    return board


def calculate_progress(tasks: Iterable[Any]) -> int:
    """Percentuale (intera) di task completati; 0 se non ci sono task."""
    tasks = list(tasks)
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.status == TaskStatus.DONE.value)
    return round(done / len(tasks) * 100)


# ------------------------------------------------------------
# Spostamento ottimistico
# ------------------------------------------------------------

class MoveState(str, Enum):
    """Stati di uno spostamento sulla board."""
    PENDING = "pending"
    COMMITTED = "committed"
    REVERTED = "reverted"


@dataclass
class TaskMove:
    """
    Spostamento di un task con macchina a stati esplicita.

    pending → committed quando il database conferma la scrittura,
    pending → reverted quando la scrittura fallisce: in quel caso il task
    in memoria torna allo stato e alla posizione precedenti.
    """

    task: Any
    target_status: TaskStatus
    target_order_index: int
    previous_status: str = field(init=False)
    previous_order_index: int = field(init=False)
    state: MoveState = field(default=MoveState.PENDING, init=False)
    error: Optional[BaseException] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.previous_status = self.task.status
        self.previous_order_index = self.task.order_index

    @property
    def is_noop(self) -> bool:
        return self.previous_status == self.target_status.value

    def apply(self) -> None:
        """Applica lo spostamento all'oggetto in memoria."""
        if self.state is not MoveState.PENDING:
            raise BusinessValidationError(f"Spostamento già concluso ({self.state.value})")
        self.task.status = self.target_status.value
        self.task.order_index = self.target_order_index

    def commit(self) -> None:
        if self.state is not MoveState.PENDING:
            raise BusinessValidationError(f"Spostamento già concluso ({self.state.value})")
        self.state = MoveState.COMMITTED

    def revert(self, error: Optional[BaseException] = None) -> None:
        """Ripristina stato e posizione precedenti."""
        if self.state is not MoveState.PENDING:
            raise BusinessValidationError(f"Spostamento già concluso ({self.state.value})")
        self.task.status = self.previous_status
        self.task.order_index = self.previous_order_index
        self.state = MoveState.REVERTED
        self.error = error
        logger.warning(
            "Spostamento task %s annullato: %s → %s (%s)",
            getattr(self.task, "id", None), self.previous_status, self.target_status.value, error,
        )


__all__ = [
    "COLUMN_TITLES",
    "FULL_BOARD_TITLES",
    "KanbanColumn",
    "MoveState",
    "TaskMove",
    "calculate_progress",
    "canonical_status",
    "group_tasks_by_column",
    "map_status_to_column",
    "parse_task_status",
]
