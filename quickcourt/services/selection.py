"""
Selection state for a browsing session.

``SelectionState`` is an immutable value: every transition returns a new
state and leaves the original untouched, so a rejected transition is a
no-op by construction. It is not tied to any web framework and can be
rebuilt from a client payload on every request.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from quickcourt.errors import CapacityExceeded, SlotUnavailable
from quickcourt.models import TimeSlot


@dataclass(frozen=True)
class SelectionState:
    """
    Chosen slots (unique by id, insertion ordered) plus the player count.

    ``active_date`` and ``court_filter`` describe what the user can see;
    when set, every selected slot must belong to that context.
    """

    slots: tuple[TimeSlot, ...] = ()
    player_count: int = 1
    active_date: date | None = None
    court_filter: frozenset[str] | None = None
    _index: frozenset[str] = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ids = [s.id for s in self.slots]
        if len(ids) != len(set(ids)):
            raise ValueError("A slot id may appear only once in a selection")
        object.__setattr__(self, "_index", frozenset(ids))

    # ── Queries ────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, slot_id: object) -> bool:
        return slot_id in self._index

    @property
    def slot_ids(self) -> list[str]:
        return [s.id for s in self.slots]

    @property
    def court_ids(self) -> set[str]:
        return {s.court_id for s in self.slots}

    @property
    def is_empty(self) -> bool:
        return not self.slots

    def max_players(self) -> int | None:
        """Smallest capacity among represented courts, or None when empty."""
        if not self.slots:
            return None
        return min(s.capacity for s in self.slots)

    def total_price(self) -> Decimal:
        """Sum of the already-rounded per-slot prices."""
        return sum((s.price for s in self.slots), Decimal(0))

    def in_context(self, slot: TimeSlot) -> bool:
        if self.active_date is not None and slot.slot_date != self.active_date:
            return False
        if self.court_filter is not None and slot.court_id not in self.court_filter:
            return False
        return True

    # ── Transitions ────────────────────────────────────────────────────

    def toggle(self, slot: TimeSlot) -> SelectionState:
        """Deselect *slot* if chosen, otherwise select it."""
        if slot.id in self._index:
            return self.remove(slot.id)
        if not slot.is_available:
            raise SlotUnavailable(slot.id)
        if not self.in_context(slot):
            raise SlotUnavailable(slot.id, "Slot is outside the selected date or courts")
        if self.player_count > slot.capacity:
            raise CapacityExceeded(self.player_count, slot.capacity, slot.court_id)
        return replace(self, slots=self.slots + (slot,))

    def remove(self, slot_id: str) -> SelectionState:
        if slot_id not in self._index:
            return self
        return replace(self, slots=tuple(s for s in self.slots if s.id != slot_id))

    def set_player_count(self, n: int) -> SelectionState:
        if n < 1:
            raise ValueError("Player count must be at least 1")
        limit = self.max_players()
        if limit is not None and n > limit:
            court_id = min(self.slots, key=lambda s: s.capacity).court_id
            raise CapacityExceeded(n, limit, court_id)
        return replace(self, player_count=n)

    def clear(self) -> SelectionState:
        return replace(self, slots=())

    def with_context(
        self,
        active_date: date | None,
        court_ids: Iterable[str] | None = None,
    ) -> SelectionState:
        """Switch the visible context, dropping every slot outside it."""
        court_filter = frozenset(court_ids) if court_ids is not None else None
        state = replace(self, slots=(), active_date=active_date, court_filter=court_filter)
        kept = tuple(s for s in self.slots if state.in_context(s))
        return replace(state, slots=kept)

    def change_date(self, active_date: date) -> SelectionState:
        return self.with_context(active_date, self.court_filter)

    def remove_court(self, court_id: str) -> SelectionState:
        """Take a court out of the filter and drop its slots."""
        if self.court_filter is None:
            return replace(self, slots=tuple(s for s in self.slots if s.court_id != court_id))
        return self.with_context(self.active_date, self.court_filter - {court_id})

    def reconcile(self, fresh_slots: Iterable[TimeSlot]) -> tuple[SelectionState, list[str]]:
        """
        Align the selection with freshly resolved availability.

        Selected slots that the fresh data reports as unavailable are
        dropped; returns the new state and the dropped ids.
        """
        unavailable = {s.id for s in fresh_slots if not s.is_available}
        dropped = [s.id for s in self.slots if s.id in unavailable]
        if not dropped:
            return self, []
        kept = tuple(s for s in self.slots if s.id not in unavailable)
        return replace(self, slots=kept), dropped

    @classmethod
    def from_slots(cls, slots: Iterable[TimeSlot], player_count: int = 1) -> SelectionState:
        """Build a selection without selection-time checks, de-duplicating by id."""
        unique: dict[str, TimeSlot] = {}
        for slot in slots:
            unique.setdefault(slot.id, slot)
        return cls(slots=tuple(unique.values()), player_count=player_count)
