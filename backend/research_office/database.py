from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from . import config

# purpose: engine, session factory and request-scoped session dependency
# status: active


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {"pool_pre_ping": True, "pool_size": config.DB_POOL_SIZE}


engine = create_engine(config.DATABASE_URL, echo=config.DB_ECHO, **_engine_options(config.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """Yield one session per request; routes decide when to commit."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
