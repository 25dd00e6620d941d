"""Repository access point used by the API layer."""

from __future__ import annotations

from typing import Iterable, List, Optional

from ..models.property import Agent, ImportedProperty, PropertyRecord
from ..utils.logging import get_logger
from .csv_repo import CSVRepository

LOGGER = get_logger("db.repo")


class Repo:
    def __init__(self) -> None:
        self._csv_repo = CSVRepository()
        LOGGER.info("Repository running in CSV mode")

    def list_agents(self) -> List[Agent]:
        return self._csv_repo.list_agents()

    def agent_ids(self) -> List[int]:
        return [agent.id for agent in self._csv_repo.list_agents()]

    def list_properties(self, limit: Optional[int] = None) -> List[PropertyRecord]:
        return self._csv_repo.list_properties(limit=limit)

    def get_property(self, property_id: int) -> Optional[PropertyRecord]:
        return self._csv_repo.get_property(property_id)

    def add_imported(self, properties: Iterable[ImportedProperty]) -> List[PropertyRecord]:
        created = [self._csv_repo.add_property(prop.model_dump()) for prop in properties]
        LOGGER.info("properties_imported count=%d", len(created))
        return created


_repo_singleton: Repo | None = None


def get_repository() -> Repo:
    global _repo_singleton
    if _repo_singleton is None:
        _repo_singleton = Repo()
    return _repo_singleton


def reset_repository() -> None:
    global _repo_singleton
    _repo_singleton = None
