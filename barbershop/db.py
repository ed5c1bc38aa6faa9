# barbershop/db.py

from sqlmodel import SQLModel, create_engine, Session

from .config import get_settings

settings = get_settings()

connect_args = {}
if settings.database_url.startswith("sqlite"):
    # required for SQLite + FastAPI
    connect_args["check_same_thread"] = False

# Engine = connection to the database
engine = create_engine(
    settings.database_url,
    echo=False,          # set to True to see SQL
    connect_args=connect_args,
)


def create_db_and_tables(bind=engine):
    # Import for the side effect of registering every table on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
