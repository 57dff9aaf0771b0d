from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.db.models import ISSUE_STATUSES, User
from app.db.schemas import BoardOut
from app.db.session import get_db
from app.services.issues import list_issues


router = APIRouter(prefix="/project", tags=["board"])


@router.get("/board", response_model=BoardOut)
def get_board(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    columns = {status: [] for status in ISSUE_STATUSES}

    # list_issues already yields render order within each column
    for issue in list_issues(db, current_user.project_id):
        columns[issue.status].append(issue)

    return {"project_id": current_user.project_id, "columns": columns}
