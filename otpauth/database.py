from functools import lru_cache
from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from .core.config import settings

# Importing the models registers their tables on SQLModel.metadata
from .db import models  # noqa: F401


def build_engine(db_url: str, echo: bool = False) -> Engine:
    """Choose engine options based on database scheme"""
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })

    return create_engine(db_url, echo=echo, **engine_kwargs)


@lru_cache()
def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, built on first use"""
    return build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def create_db_and_tables(bind: Engine = None):
    SQLModel.metadata.create_all(bind or get_engine())
