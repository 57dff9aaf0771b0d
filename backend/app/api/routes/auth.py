from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import create_access_token
from app.db.schemas import TokenResponse
from app.db.session import get_db
from app.services.guest import seed_guest_account


router = APIRouter(prefix="/authentication", tags=["authentication"])


@router.post("/guest", response_model=TokenResponse)
def create_guest_account(db: Session = Depends(get_db)):
    user = seed_guest_account(db)
    token = create_access_token(subject=str(user.id))
    return TokenResponse(access_token=token)
