# marketplace/database.py
from sqlmodel import SQLModel, create_engine, Session

from marketplace.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
#
# SQLite URLs (local runs, tests) skip the pool settings and allow the
# connection to be used from FastAPI's threadpool.
# ---------------------------------------------------------


def _build_engine_args(url: str) -> tuple[str, dict]:
    if url.startswith("sqlite"):
        return url, {"connect_args": {"check_same_thread": False}}

    # Append sslmode=require if it is not already present
    if "sslmode=" not in url:
        url = url + ("&" if "?" in url else "?") + "sslmode=require"

    return url, {"pool_pre_ping": True, "pool_size": 1, "max_overflow": 0}


db_url, engine_kwargs = _build_engine_args(settings.DATABASE_URL)

engine = create_engine(
    db_url,
    echo=False,  # set to True if you want to debug SQL queries
    **engine_kwargs,
)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
