import math

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings


def _null_safe(func):
    def wrapper(*args):
        if any(arg is None for arg in args):
            return None
        return func(*args)
    return wrapper


def _register_sqlite_math(dbapi_connection, connection_record) -> None:
    """Expose the functions used by the distance formula to SQLite."""
    for name, func in (
        ("radians", math.radians),
        ("sin", math.sin),
        ("cos", math.cos),
        ("acos", math.acos),
    ):
        dbapi_connection.create_function(name, 1, _null_safe(func), deterministic=True)
    dbapi_connection.create_function("least", 2, _null_safe(min), deterministic=True)
    dbapi_connection.create_function("greatest", 2, _null_safe(max), deterministic=True)


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _register_sqlite_math)
        return engine
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
