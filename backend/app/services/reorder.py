"""Moving an issue to a slot of a Kanban column.

A move reads the destination column and writes the moved issue's new key in
one transaction. Writes into the same (project, status) column are serialized
by an in-process lock and by row locks on the column (where the database
supports ``SELECT ... FOR UPDATE``); writes into different columns proceed
independently.
"""
import logging
import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.core.errors import ConcurrencyConflictError, InvalidInputError, NotFoundError
from app.db.models import ISSUE_STATUSES, Issue
from app.services.positions import PositionCollapsed, allocate, neighbors, renumber


logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
# Entries disappear once no thread holds or waits on the lock.
_column_locks: "weakref.WeakValueDictionary[tuple[int, str], threading.Lock]" = weakref.WeakValueDictionary()


@contextmanager
def column_lock(project_id: int, status: str) -> Iterator[None]:
    with _registry_lock:
        lock = _column_locks.get((project_id, status))
        if lock is None:
            lock = threading.Lock()
            _column_locks[(project_id, status)] = lock
    with lock:
        yield


def load_column(db: Session, project_id: int, status: str, exclude_id: int | None = None) -> list[Issue]:
    query = db.query(Issue).filter(Issue.project_id == project_id, Issue.status == status)
    if exclude_id is not None:
        query = query.filter(Issue.id != exclude_id)
    return query.order_by(Issue.list_position.asc(), Issue.id.asc()).with_for_update().all()


def renumber_column(column: list[Issue], issue: Issue, destination_index: int) -> None:
    ordered = list(column)
    ordered.insert(destination_index, issue)
    for item, position in zip(ordered, renumber(len(ordered))):
        item.list_position = position


def has_collision(db: Session, issue: Issue) -> bool:
    return (
        db.query(Issue.id)
        .filter(
            Issue.project_id == issue.project_id,
            Issue.status == issue.status,
            Issue.list_position == issue.list_position,
            Issue.id != issue.id,
        )
        .first()
        is not None
    )


def place_in_column(db: Session, issue: Issue, destination_index: int) -> None:
    """Give ``issue`` the key of slot ``destination_index`` in its status column and flush.

    The caller holds ``column_lock`` for the column and owns the transaction.
    """
    column = load_column(db, issue.project_id, issue.status, exclude_id=issue.id)
    if destination_index > len(column):
        raise InvalidInputError({"destination_index": f"Must be between 0 and {len(column)}"})

    before, after = neighbors([item.list_position for item in column], destination_index)
    try:
        issue.list_position = allocate(before, after)
    except PositionCollapsed:
        logger.info(
            "Renumbering column %s of project %s: no key left between %r and %r",
            issue.status,
            issue.project_id,
            before,
            after,
        )
        renumber_column(column, issue, destination_index)
    db.flush()

    if has_collision(db, issue):
        logger.warning(
            "Key %r collided in column %s of project %s, renumbering",
            issue.list_position,
            issue.status,
            issue.project_id,
        )
        column = load_column(db, issue.project_id, issue.status, exclude_id=issue.id)
        renumber_column(column, issue, min(destination_index, len(column)))
        db.flush()
        if has_collision(db, issue):
            raise ConcurrencyConflictError(
                f"Could not place issue {issue.id} in column {issue.status}",
                {"issue_id": issue.id, "status": issue.status},
            )


def reorder_issue(
    db: Session,
    issue_id: int,
    new_status: str,
    destination_index: int,
    project_id: int | None = None,
) -> Issue:
    if new_status not in ISSUE_STATUSES:
        raise InvalidInputError({"status": f"Must be one of: {', '.join(ISSUE_STATUSES)}"})
    if destination_index < 0:
        raise InvalidInputError({"destination_index": "Must not be negative"})

    issue = db.query(Issue).filter(Issue.id == issue_id).first()
    if not issue or (project_id is not None and issue.project_id != project_id):
        raise NotFoundError("Issue", issue_id)

    with column_lock(issue.project_id, new_status):
        try:
            issue.status = new_status
            place_in_column(db, issue, destination_index)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(issue)
    return issue
