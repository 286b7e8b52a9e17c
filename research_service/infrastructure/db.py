import structlog
from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = structlog.get_logger()


class DatabaseConnectionError(RuntimeError):
    """Raised when the database cannot be reached at startup."""


class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, url: str):
        self.url = url
        self.engine = create_engine(url, **self._engine_options(url))
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @staticmethod
    def _engine_options(url: str) -> dict:
        if url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            # in-memory databases live as long as their single connection
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                options["poolclass"] = StaticPool
            return options
        connect_args = {}
        if url.startswith("postgresql"):
            connect_args = {"client_encoding": "utf8"}
        return {
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
            "connect_args": connect_args,
        }

    def connect(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(f"cannot connect to database: {e}") from e
        logger.info("Database connection established", url=self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connection closed")

    def new_session(self) -> Session:
        return self.SessionLocal()


def get_db(request: Request):
    db = request.app.state.database.new_session()
    try:
        yield db
    finally:
        db.close()
