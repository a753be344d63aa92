"""
Database Engine & Session Management
SQLAlchemy engine/session factory for the durable record store.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the engine, making sure the SQLite data directory exists."""
    connect_args = {}
    if database_url.startswith("sqlite:///"):
        db_path = database_url.replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        connect_args["check_same_thread"] = False  # Store calls run in a threadpool

    return create_engine(database_url, connect_args=connect_args, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine):
    """Create all tables. Called once when the application is assembled."""
    from samwad.models import session_record as _session_model   # noqa: F401
    from samwad.models import grievance as _grievance_model      # noqa: F401

    Base.metadata.create_all(bind=engine)
