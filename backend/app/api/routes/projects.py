from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.core.errors import InvalidInputError, NotFoundError
from app.db.models import Project, User
from app.db.schemas import ProjectDetail, ProjectOut, ProjectPatch
from app.db.session import get_db
from app.services.issues import list_issues
from app.services.validation import PROJECT_RULES, validate_entity


router = APIRouter(prefix="/project", tags=["project"])


def _get_project(db: Session, current_user: User) -> Project:
    project = db.query(Project).filter(Project.id == current_user.project_id).first()
    if not project:
        raise NotFoundError("Project", current_user.project_id)
    return project


@router.get("", response_model=ProjectDetail)
def get_project_with_users_and_issues(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = _get_project(db, current_user)
    return {
        **ProjectOut.model_validate(project).model_dump(),
        "users": project.users,
        "issues": list_issues(db, project.id),
    }


@router.put("", response_model=ProjectOut)
def update_project(
    payload: ProjectPatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = _get_project(db, current_user)

    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(project, key, value)

    try:
        validate_entity(project, PROJECT_RULES)
    except InvalidInputError:
        db.rollback()
        raise

    db.commit()
    db.refresh(project)
    return project
