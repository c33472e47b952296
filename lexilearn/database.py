from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from lexilearn.config import settings


def make_engine(database_url: str):
    """Create an engine; SQLite connections may be shared across threads"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create all tables"""
    # Import models so they register with Base.metadata
    from lexilearn import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
