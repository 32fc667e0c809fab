"""
Court catalog loaded from YAML.

The catalog file lists venues and their courts::

    courts:
      - id: court-a
        venue_id: venue-1
        name: Court A
        price_per_hour: 600
        operating_hours:
          monday: {is_open: true, open_time: "06:00", close_time: "22:00"}
        excluded_times:
          - {name: Lunch, start_time: "12:00", end_time: "13:00"}

Every entry is validated into a :class:`Court`; an invalid file fails at
startup rather than at request time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml

from quickcourt.models import Court

logger = logging.getLogger(__name__)


class CourtCatalog:
    """In-memory court directory, optionally backed by a YAML file."""

    def __init__(self, courts: Iterable[Court] = ()) -> None:
        self._courts: dict[str, Court] = {}
        for court in courts:
            self.add(court)

    @classmethod
    def from_yaml(cls, path: str | Path) -> CourtCatalog:
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        entries = raw.get("courts", []) if isinstance(raw, dict) else raw
        catalog = cls(Court.model_validate(entry) for entry in entries)
        logger.info("Loaded %d courts from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._courts)

    def add(self, court: Court) -> None:
        if court.id in self._courts:
            raise ValueError(f"Duplicate court id: {court.id}")
        self._courts[court.id] = court

    def replace(self, court: Court) -> None:
        """Insert or overwrite a court (e.g. after an admin edit)."""
        self._courts[court.id] = court

    async def get_court(self, court_id: str) -> Court | None:
        return self._courts.get(court_id)

    async def list_courts(
        self,
        venue_id: str | None = None,
        court_type: str | None = None,
        active: bool | None = None,
    ) -> list[Court]:
        courts = list(self._courts.values())
        if venue_id:
            courts = [c for c in courts if c.venue_id == venue_id]
        if court_type:
            courts = [c for c in courts if c.court_type.lower() == court_type.lower()]
        if active is not None:
            courts = [c for c in courts if c.is_active == active]
        return courts
