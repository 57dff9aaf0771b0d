from typing import Any

from sqlalchemy import case, or_
from sqlalchemy.orm import Session, selectinload

from app.core.errors import InvalidInputError, NotFoundError
from app.db.models import ISSUE_STATUSES, Issue, User
from app.services.reorder import column_lock, place_in_column
from app.services.validation import ISSUE_RULES, validate_entity


LIKE_ESCAPE = "\\"

STATUS_ORDER = case(
    {status: index for index, status in enumerate(ISSUE_STATUSES)},
    value=Issue.status,
)

ISSUE_FIELDS = (
    "title",
    "type",
    "status",
    "priority",
    "list_position",
    "description",
    "estimate",
    "time_spent",
    "time_remaining",
    "reporter_id",
)


def _like_pattern(term: str) -> str:
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def list_issues(db: Session, project_id: int, search_term: str | None = None) -> list[Issue]:
    query = (
        db.query(Issue)
        .options(selectinload(Issue.users))
        .filter(Issue.project_id == project_id)
    )

    if search_term and search_term.strip():
        pattern = _like_pattern(search_term)
        query = query.filter(
            or_(
                Issue.title.ilike(pattern, escape=LIKE_ESCAPE),
                Issue.description_text.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    return query.order_by(STATUS_ORDER, Issue.list_position.asc(), Issue.id.asc()).all()


def get_issue(db: Session, issue_id: int, project_id: int | None = None) -> Issue:
    issue = (
        db.query(Issue)
        .options(selectinload(Issue.users), selectinload(Issue.comments))
        .filter(Issue.id == issue_id)
        .first()
    )
    if not issue or (project_id is not None and issue.project_id != project_id):
        raise NotFoundError("Issue", issue_id)
    return issue


def _project_users(db: Session, project_id: int, user_ids: list[int]) -> list[User]:
    wanted = set(user_ids)
    if not wanted:
        return []
    users = db.query(User).filter(User.project_id == project_id, User.id.in_(wanted)).all()
    missing = wanted - {user.id for user in users}
    if missing:
        raise InvalidInputError({"user_ids": f"Unknown users: {', '.join(str(item) for item in sorted(missing))}"})
    return users


def _check_reporter(db: Session, project_id: int, reporter_id: int) -> None:
    found = db.query(User.id).filter(User.id == reporter_id, User.project_id == project_id).first()
    if found is None:
        raise InvalidInputError({"reporter_id": f"Unknown user: {reporter_id}"})


def _place_at_head(db: Session, issue: Issue) -> None:
    with column_lock(issue.project_id, issue.status):
        try:
            place_in_column(db, issue, 0)
            db.commit()
        except Exception:
            db.rollback()
            raise


def create_issue(db: Session, project_id: int, values: dict[str, Any]) -> Issue:
    values = dict(values)
    user_ids = values.pop("user_ids", None) or []

    issue = Issue(project_id=project_id, **{key: value for key, value in values.items() if key in ISSUE_FIELDS})
    validate_entity(issue, ISSUE_RULES)
    _check_reporter(db, project_id, issue.reporter_id)
    issue.users = _project_users(db, project_id, user_ids)

    db.add(issue)
    _place_at_head(db, issue)
    db.refresh(issue)
    return issue


def update_issue(db: Session, issue: Issue, values: dict[str, Any]) -> Issue:
    values = dict(values)
    user_ids = values.pop("user_ids", None)
    previous_status = issue.status

    try:
        for key, value in values.items():
            if key in ISSUE_FIELDS:
                setattr(issue, key, value)
        validate_entity(issue, ISSUE_RULES)

        if "reporter_id" in values:
            _check_reporter(db, issue.project_id, issue.reporter_id)
        if user_ids is not None:
            issue.users = _project_users(db, issue.project_id, user_ids)
    except InvalidInputError:
        db.rollback()
        raise

    if issue.status != previous_status and "list_position" not in values:
        _place_at_head(db, issue)
    else:
        db.commit()
    db.refresh(issue)
    return issue


def delete_issue(db: Session, issue: Issue) -> None:
    db.delete(issue)
    db.commit()


def on_issue_description_write(db: Session, issue_id: int, html: str | None) -> str | None:
    """Store a new rich-text description and return its plain-text projection."""
    issue = db.query(Issue).filter(Issue.id == issue_id).first()
    if not issue:
        raise NotFoundError("Issue", issue_id)

    issue.description = html
    db.commit()
    db.refresh(issue)
    return issue.description_text
