from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.db.session import DATABASE_URL, reset_database


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.app_env == "production":
        raise SystemExit("Refusing to reset a production database")

    reset_database()
    print(f"Database reset: {DATABASE_URL}")


if __name__ == "__main__":
    main()
