"""Key-value configuration store and the labor rate group book kept in it."""

from typing import Any, Protocol

from loguru import logger

from helper_engine.config.settings import LABOR_RATE_GROUPS_KEY
from helper_engine.src.models import LaborRateGroup


class ConfigStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryConfigStore:
    """Process-local store."""

    def __init__(self, initial: dict | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def load_groups(store: ConfigStore) -> list[LaborRateGroup]:
    """Read the ordered labor rate groups from the store."""
    raw = store.get(LABOR_RATE_GROUPS_KEY) or []
    return [LaborRateGroup.model_validate(item) for item in raw]


class LaborRateGroupBook:
    """Add, edit and remove labor rate groups by position."""

    def __init__(self, store: ConfigStore):
        self.store = store

    def all(self) -> list[LaborRateGroup]:
        return load_groups(self.store)

    def _save(self, groups: list[LaborRateGroup]) -> None:
        self.store.set(LABOR_RATE_GROUPS_KEY, [g.to_store() for g in groups])

    def add(self, group: LaborRateGroup) -> int:
        groups = self.all()
        groups.append(group)
        self._save(groups)
        logger.info(f"Added labor rate group '{group.name}' at ${group.labor_rate / 100:.2f}")
        return len(groups) - 1

    def replace(self, index: int, group: LaborRateGroup) -> LaborRateGroup:
        groups = self.all()
        if not 0 <= index < len(groups):
            raise IndexError(f"No labor rate group at position {index}")
        groups[index] = group
        self._save(groups)
        return group

    def remove(self, index: int) -> LaborRateGroup:
        groups = self.all()
        if not 0 <= index < len(groups):
            raise IndexError(f"No labor rate group at position {index}")
        removed = groups.pop(index)
        self._save(groups)
        logger.info(f"Removed labor rate group '{removed.name}'")
        return removed

    def replace_all(self, groups: list[LaborRateGroup]) -> None:
        self._save(groups)
