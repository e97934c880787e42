from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from signin_api.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared between the request thread and the scheduler
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """Dependency for FastAPI endpoints to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
