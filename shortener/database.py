import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Explicitly load .env from project root (parent of shortener/)
ENV_PATH = Path(__file__).parent.parent / ".env"
load_dotenv(ENV_PATH)
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# SQLite for local dev — stored next to the package folder
DEV_DB_PATH = Path(__file__).parent.parent / "shortener_dev.db"

Base = declarative_base()


def get_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if ENVIRONMENT == "prod" and not url:
        raise RuntimeError("DATABASE_URL must be set in production")
    return url or f"sqlite:///{DEV_DB_PATH}"


def create_db_engine(database_url: str | None = None) -> Engine:
    # Dev: SQLite (zero config), Prod: PostgreSQL
    url = database_url or get_database_url()
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},  # needed for SQLite + FastAPI
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=int(os.getenv("DB_POOL_SIZE", 5)),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),
        pool_timeout=30,
        pool_recycle=1800,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    import shortener.models  # noqa: F401  registers the links table

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    db = request.app.state.SessionLocal()
    try:
        yield db
    finally:
        db.close()
