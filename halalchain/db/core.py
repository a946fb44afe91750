from sqlmodel import SQLModel, Session, create_engine

from halalchain.core.config import settings


connect_args = {}
if settings.database_url.startswith("sqlite"):
    # Sessions are used from FastAPI's worker threads
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args)


def create_db_and_tables(bind=None):
    # Registers the table models on SQLModel.metadata
    from halalchain.db import schema  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
