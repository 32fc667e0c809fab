"""Tests for availability resolution and the popularity heuristic."""

from datetime import datetime, timedelta, timezone

import pytest

from quickcourt.errors import AvailabilityFetchError
from quickcourt.services.availability import (
    AvailabilityResolver,
    PopularityHeuristic,
    is_past,
)
from quickcourt.services.slot_generator import slot_generator
from tests.mocks.models import MOCK_COURT, MOCK_COURT_SMALL, MONDAY, NOW, make_slot

IST = timezone(timedelta(hours=5, minutes=30))


@pytest.fixture()
def resolver() -> AvailabilityResolver:
    return AvailabilityResolver()


@pytest.fixture()
def monday_slots():
    return slot_generator.generate_slots(MOCK_COURT, MONDAY)


class TestResolve:
    def test_booked_slots_are_unavailable(self, resolver, monday_slots):
        booked = {"court-a-2030-06-03-09:00", "court-a-2030-06-03-18:00"}
        resolved = resolver.resolve(monday_slots, booked, NOW)

        unavailable = {s.id for s in resolved if not s.is_available}
        assert unavailable == booked
        assert len(resolved) == len(monday_slots)

    def test_input_slots_are_not_modified(self, resolver, monday_slots):
        resolver.resolve(monday_slots, {monday_slots[0].id}, NOW)
        assert monday_slots[0].is_available is True

    def test_unknown_booked_ids_are_ignored(self, resolver, monday_slots):
        resolved = resolver.resolve(monday_slots, {"court-z-2030-06-03-09:00"}, NOW)
        assert all(s.is_available for s in resolved)

    def test_past_slots_are_unavailable(self, resolver, monday_slots):
        now = datetime(2030, 6, 3, 10, 30)
        resolved = resolver.resolve(monday_slots, set(), now)
        past = [s.start_time for s in resolved if not s.is_available]
        assert past == ["06:00", "07:00", "08:00", "09:00", "10:00"]

    def test_slot_starting_now_is_still_available(self, resolver, monday_slots):
        now = datetime(2030, 6, 3, 10, 0)
        resolved = {s.start_time: s for s in resolver.resolve(monday_slots, set(), now)}
        assert resolved["09:00"].is_available is False
        assert resolved["10:00"].is_available is True

    def test_aware_clock_uses_venue_timezone(self, resolver, monday_slots):
        # 04:00 UTC is 09:30 in the venue
        now = datetime(2030, 6, 3, 4, 0, tzinfo=timezone.utc)
        resolved = {s.start_time: s for s in resolver.resolve(monday_slots, set(), now, tz=IST)}
        assert resolved["09:00"].is_available is False
        assert resolved["10:00"].is_available is True

    def test_empty_slot_list(self, resolver):
        assert resolver.resolve([], {"anything"}, NOW) == []


class TestIsPast:
    def test_naive(self):
        slot = make_slot(start_time="09:00")
        assert is_past(slot, datetime(2030, 6, 3, 9, 1)) is True
        assert is_past(slot, datetime(2030, 6, 3, 8, 59)) is False

    def test_aware_defaults_to_clock_timezone(self):
        slot = make_slot(start_time="09:00")
        assert is_past(slot, datetime(2030, 6, 3, 9, 1, tzinfo=IST)) is True
        assert is_past(slot, datetime(2030, 6, 3, 3, 0, tzinfo=timezone.utc), IST) is False


class TestPopularity:
    def test_threshold(self, resolver, monday_slots):
        history = {
            ("court-a", "monday", "18:00"): 3,
            ("court-a", "monday", "19:00"): 2,
            ("court-a", "tuesday", "07:00"): 9,
        }
        popularity = PopularityHeuristic(history, min_bookings=3)
        resolved = {s.start_time: s for s in resolver.resolve(monday_slots, set(), NOW, popularity=popularity)}

        assert resolved["18:00"].is_popular is True
        assert resolved["19:00"].is_popular is False
        assert resolved["07:00"].is_popular is False

    def test_popular_and_booked_are_independent(self, resolver, monday_slots):
        popularity = PopularityHeuristic({("court-a", "monday", "18:00"): 5}, min_bookings=1)
        booked = {"court-a-2030-06-03-18:00"}
        slot = next(
            s for s in resolver.resolve(monday_slots, booked, NOW, popularity=popularity)
            if s.start_time == "18:00"
        )
        assert slot.is_popular is True
        assert slot.is_available is False

    def test_broken_history_never_fails_resolution(self, resolver, monday_slots):
        class _BrokenHistory(dict):
            def get(self, key, default=None):
                raise KeyError("history backend gone")

        popularity = PopularityHeuristic(_BrokenHistory())
        resolved = resolver.resolve(monday_slots, set(), NOW, popularity=popularity)
        assert all(s.is_popular is False for s in resolved)
        assert all(s.is_available for s in resolved)

    def test_no_heuristic_means_not_popular(self, resolver, monday_slots):
        resolved = resolver.resolve(monday_slots, set(), NOW)
        assert not any(s.is_popular for s in resolved)


class TestResolveBatch:
    @pytest.mark.asyncio
    async def test_one_failing_court_does_not_affect_others(self, resolver):
        async def load(court_id):
            if court_id == "court-b":
                raise AvailabilityFetchError(court_id, "Upstream timed out")
            if court_id == "court-x":
                raise RuntimeError("boom")
            return slot_generator.generate_slots(MOCK_COURT, MONDAY), {"court-a-2030-06-03-09:00"}, None

        results = await resolver.resolve_batch(
            ["court-a", "court-b", "court-x"], load, NOW, availability_date=MONDAY,
        )

        assert [r.court_id for r in results] == ["court-a", "court-b", "court-x"]
        court_a, court_b, court_x = results
        assert court_a.error is None
        assert court_a.court_name == "Court A"
        assert len(court_a.time_slots) == 15
        assert sum(not s.is_available for s in court_a.time_slots) == 1

        assert court_b.error == "Upstream timed out"
        assert court_b.time_slots == []
        assert court_x.error == "Failed to load availability"

    @pytest.mark.asyncio
    async def test_each_court_keeps_its_own_slots(self, resolver):
        async def load(court_id):
            court = MOCK_COURT if court_id == "court-a" else MOCK_COURT_SMALL
            return slot_generator.generate_slots(court, MONDAY), set(), None

        results = await resolver.resolve_batch(
            ["court-a", "court-b"], load, NOW, availability_date=MONDAY,
        )
        assert len(results[0].time_slots) == 15
        assert len(results[1].time_slots) == 8
        assert all(s.court_id == "court-b" for s in results[1].time_slots)
