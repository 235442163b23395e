from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from kiosk_pos.core.config import settings
from kiosk_pos.models.kiosk import Base


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # SQLite connections are shared across the threadpool FastAPI runs sync routes in
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Create tables in dev/test without running Alembic
    import kiosk_pos.models  # noqa: F401  registers every table on Base.metadata

    if settings.env in {"dev", "test"}:
        Base.metadata.create_all(bind=engine)
