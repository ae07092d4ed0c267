from typing import Any, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class ConfigEntry(SQLModel, table=True):
    __tablename__ = "config_entry"

    key: str = Field(primary_key=True)
    value: Optional[Any] = Field(default=None, sa_column=Column(JSON))
