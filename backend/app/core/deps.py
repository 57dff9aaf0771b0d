from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.errors import InvalidTokenError
from app.core.security import decode_token
from app.db.models import User
from app.db.session import get_db

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise InvalidTokenError("Authentication token not found.")

    subject = decode_token(credentials.credentials)
    if not subject or not subject.isdigit():
        raise InvalidTokenError()

    user = db.query(User).filter(User.id == int(subject)).first()
    if not user:
        raise InvalidTokenError("Authentication token is invalid: User not found.")
    return user
