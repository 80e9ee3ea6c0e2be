from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from chatterm.core.config import settings


def _normalize_url(db_url: str) -> str:
    # Replace any escaped colons in the URL
    db_url = db_url.replace("\\x3a", ":")
    # A bare path is treated as a SQLite file
    if "://" not in db_url:
        db_url = f"sqlite:///{db_url}"
    return db_url


def build_engine(db_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create the engine backing a ChatStore."""
    url = _normalize_url(db_url or settings.DATABASE_URL)
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        url,
        echo=settings.DB_ECHO if echo is None else echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
