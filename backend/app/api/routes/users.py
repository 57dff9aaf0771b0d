from fastapi import APIRouter, Depends

from app.core.deps import get_current_user
from app.db.models import User
from app.db.schemas import UserOut


router = APIRouter(tags=["users"])


@router.get("/currentUser", response_model=UserOut)
def current_user(current_user: User = Depends(get_current_user)):
    return current_user
