from app.core.logging_config import configure_logging
from app.core.security import create_access_token
from app.db.session import DATABASE_URL, SessionLocal, init_db
from app.services.guest import seed_guest_account


def main() -> None:
    configure_logging()
    init_db()

    db = SessionLocal()
    try:
        user = seed_guest_account(db)
        token = create_access_token(subject=str(user.id))
    finally:
        db.close()

    print(f"Guest seed complete: {DATABASE_URL}")
    print(f"User {user.id} ({user.name}) of project {user.project_id}")
    print(f"Authorization: Bearer {token}")


if __name__ == "__main__":
    main()
