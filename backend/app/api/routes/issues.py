from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.db.models import User
from app.db.schemas import IssueBrief, IssueCreate, IssueOut, IssuePatch, IssueReorder
from app.db.session import get_db
from app.services.access import can_update_issue
from app.services.issues import create_issue, delete_issue, get_issue, list_issues, update_issue
from app.services.reorder import reorder_issue


router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("", response_model=list[IssueBrief])
def get_project_issues(
    search_term: str | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_issues(db, current_user.project_id, search_term)


@router.get("/{issue_id}", response_model=IssueOut)
def get_issue_with_users_and_comments(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_issue(db, issue_id, current_user.project_id)


@router.post("", response_model=IssueOut)
def create(
    payload: IssueCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    values = payload.model_dump()
    if values["reporter_id"] is None:
        values["reporter_id"] = current_user.id
    return create_issue(db, current_user.project_id, values)


@router.put("/{issue_id}", response_model=IssueOut)
def update(
    issue_id: int,
    payload: IssuePatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    issue = get_issue(db, issue_id, current_user.project_id)

    patch_data = payload.model_dump(exclude_unset=True)
    if not patch_data:
        return issue

    if not can_update_issue(current_user, issue):
        raise HTTPException(status_code=403, detail="Forbidden")

    return update_issue(db, issue, patch_data)


@router.delete("/{issue_id}", response_model=IssueBrief)
def delete(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    issue = get_issue(db, issue_id, current_user.project_id)
    if not can_update_issue(current_user, issue):
        raise HTTPException(status_code=403, detail="Forbidden")

    deleted = IssueBrief.model_validate(issue)
    delete_issue(db, issue)
    return deleted


@router.put("/{issue_id}/reorder", response_model=IssueOut)
def reorder(
    issue_id: int,
    payload: IssueReorder,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    issue = reorder_issue(db, issue_id, payload.status, payload.destination_index, current_user.project_id)
    return get_issue(db, issue.id, current_user.project_id)
