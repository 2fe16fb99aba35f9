# catalog_api/db.py

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from fastapi import Request


class Base(DeclarativeBase):
    pass


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def _on_sqlite_connect(dbapi_conn, _record):
    # SQLite ignores ON DELETE SET NULL unless asked per connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # built-in lower() only folds ASCII
    dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)


def make_engine(database_url: str) -> Engine:
    is_sqlite = database_url.startswith("sqlite")
    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )
    if is_sqlite:
        event.listen(engine, "connect", _on_sqlite_connect)
    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
