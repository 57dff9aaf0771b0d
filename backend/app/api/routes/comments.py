from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.core.errors import InvalidInputError, NotFoundError
from app.db.models import Comment, User
from app.db.schemas import CommentCreate, CommentOut, CommentPatch
from app.db.session import get_db
from app.services.access import can_update_comment
from app.services.issues import get_issue
from app.services.validation import COMMENT_RULES, validate_entity


router = APIRouter(prefix="/comments", tags=["comments"])


def _get_comment(db: Session, comment_id: int, current_user: User) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment or comment.issue.project_id != current_user.project_id:
        raise NotFoundError("Comment", comment_id)
    if not can_update_comment(current_user, comment):
        raise HTTPException(status_code=403, detail="Forbidden")
    return comment


@router.post("", response_model=CommentOut)
def create_comment(
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    issue = get_issue(db, payload.issue_id, current_user.project_id)
    comment = Comment(body=payload.body, issue_id=issue.id, user_id=current_user.id)
    validate_entity(comment, COMMENT_RULES)

    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.put("/{comment_id}", response_model=CommentOut)
def update_comment(
    comment_id: int,
    payload: CommentPatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = _get_comment(db, comment_id, current_user)
    comment.body = payload.body

    try:
        validate_entity(comment, COMMENT_RULES)
    except InvalidInputError:
        db.rollback()
        raise

    db.commit()
    db.refresh(comment)
    return comment


@router.delete("/{comment_id}", response_model=CommentOut)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment = _get_comment(db, comment_id, current_user)
    deleted = CommentOut.model_validate(comment)
    db.delete(comment)
    db.commit()
    return deleted
