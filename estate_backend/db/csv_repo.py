"""CSV-backed snapshot of agents and properties."""

from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd

from ..models.property import Agent, PropertyRecord
from ..utils.coerce import to_bool, to_float, to_int, to_str
from ..utils.io import load_csv

AGENTS_CSV = "agents.csv"
PROPERTIES_CSV = "properties.csv"


class CSVRepository:
    def __init__(self, agents_csv: str = AGENTS_CSV, properties_csv: str = PROPERTIES_CSV) -> None:
        self._agents = self._load_agents(load_csv(agents_csv))
        self._properties = self._load_properties(load_csv(properties_csv))

    def list_agents(self) -> List[Agent]:
        return list(self._agents)

    def list_properties(self, limit: Optional[int] = None) -> List[PropertyRecord]:
        items = list(self._properties)
        if limit is not None:
            items = items[:limit]
        return items

    def get_property(self, property_id: int) -> Optional[PropertyRecord]:
        for prop in self._properties:
            if prop.id == property_id:
                return prop
        return None

    def add_property(self, record: Dict) -> PropertyRecord:
        next_id = max((p.id or 0 for p in self._properties), default=0) + 1
        prop = PropertyRecord(id=next_id, **record)
        self._properties.append(prop)
        return prop

    @staticmethod
    def _load_agents(df: pd.DataFrame) -> List[Agent]:
        agents = []
        for row in df.to_dict("records"):
            agent_id = to_int(row.get("id"))
            if not isinstance(agent_id, int):
                continue
            agents.append(Agent(id=agent_id, name=to_str(row.get("name")).strip()))
        return agents

    @staticmethod
    def _load_properties(df: pd.DataFrame) -> List[PropertyRecord]:
        records = []
        for row in df.to_dict("records"):
            images = [url.strip() for url in to_str(row.get("images")).split("|") if url.strip()]
            records.append(
                PropertyRecord(
                    id=to_int(row.get("id")),
                    title=to_str(row.get("title")),
                    description=to_str(row.get("description")),
                    price=to_float(row.get("price")) or 0.0,
                    location=to_str(row.get("location")),
                    address=to_str(row.get("address")),
                    bedrooms=to_int(row.get("bedrooms")) or 0,
                    bathrooms=to_float(row.get("bathrooms")) or 0.0,
                    size=to_int(row.get("size")) or 0,
                    status=to_str(row.get("status")),
                    featured=to_bool(row.get("featured")),
                    agent_id=to_int(row.get("agent_id")) or 0,
                    images=images,
                    created_at=to_str(row.get("created_at")) or None,
                )
            )
        return records
