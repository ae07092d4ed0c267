from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from helper_api.models import ConfigEntry
from helper_engine.config.settings import DATABASE_URL, ensure_data_dir


def make_engine(url: str = DATABASE_URL) -> Engine:
    if url == DATABASE_URL:
        ensure_data_dir()
    engine = create_engine(url)
    SQLModel.metadata.create_all(engine)
    return engine


class SqlConfigStore:
    """Config store persisted in the config_entry table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get(self, key: str, default: Any = None) -> Any:
        with Session(self.engine) as session:
            entry = session.get(ConfigEntry, key)
        if entry is None or entry.value is None:
            return default
        return entry.value

    def set(self, key: str, value: Any) -> None:
        with Session(self.engine) as session:
            entry = session.get(ConfigEntry, key)
            if entry is None:
                entry = ConfigEntry(key=key, value=value)
            else:
                entry.value = value
            session.add(entry)
            session.commit()

    def delete(self, key: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(ConfigEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()
