from sqlmodel import SQLModel, create_engine

from ..settings import get_settings

# Needed for SQLModel to create tables for all models
from .models import *  # noqa: F403

settings = get_settings()

connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)
engine = create_engine(
    settings.DATABASE_URL, echo=settings.DATABASE_ECHO, connect_args=connect_args
)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)
