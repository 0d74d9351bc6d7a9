"""
Unit tests for HoldSeatsUseCase

Focus:
1. All-or-nothing: one unavailable seat fails the whole call, nothing changes
2. Overlapping concurrent holds: exactly one wins, the other gets the contended ids
3. Lazy expiry: a lapsed hold can be taken before any sweep
"""

import anyio
import pytest

from src.platform.exception.exceptions import ConflictError, NotFoundError, ValidationError
from src.platform.state.keyed_lock import KeyedLock
from src.service.booking.app.command.hold_seats_use_case import HoldSeatsUseCase
from src.service.booking.domain.entity.seat_entity import SeatStatus
from tests.service.booking.booking_fakes import SHOW_TIME_ID


@pytest.fixture
def use_case(seat_repo, show_time_repo, keyed_lock, clock):
    return HoldSeatsUseCase(
        seat_command_repo=seat_repo,
        show_time_query_repo=show_time_repo,
        keyed_lock=keyed_lock,
        clock=clock,
    )


@pytest.mark.unit
class TestHoldSeats:
    @pytest.mark.asyncio
    async def test_hold_returns_session_with_amount(self, use_case, seat_repo, clock):
        session = await use_case.execute(
            show_time_id=SHOW_TIME_ID, seat_ids=[12, 11], ttl_seconds=300
        )

        assert session.selected_seat_ids == [11, 12]
        assert session.amount == 150000
        assert (session.hold_expiry - clock.now).total_seconds() == 300
        for seat_id in (11, 12):
            seat = seat_repo.get(seat_id)
            assert seat.status == SeatStatus.HOLDING
            assert seat.hold_session_id == session.session_id
            assert seat.hold_expires_at == session.hold_expiry

    @pytest.mark.asyncio
    async def test_default_ttl_from_settings(self, use_case, clock):
        session = await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11])

        assert (session.hold_expiry - clock.now).total_seconds() == 600

    @pytest.mark.asyncio
    async def test_caller_session_id_is_kept(self, use_case):
        session = await use_case.execute(
            show_time_id=SHOW_TIME_ID, seat_ids=[11], session_id='my-session'
        )

        assert session.session_id == 'my-session'

    @pytest.mark.asyncio
    async def test_one_unavailable_seat_fails_whole_call(self, use_case, seat_repo):
        """
        Given: A5 is DISABLED
        When: A1, A2 and A5 are requested together
        Then: ConflictError names A5 and A1/A2 stay AVAILABLE
        """
        with pytest.raises(ConflictError) as exc_info:
            await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11, 12, 15])

        assert exc_info.value.seat_ids == [15]
        assert seat_repo.get(11).status == SeatStatus.AVAILABLE
        assert seat_repo.get(12).status == SeatStatus.AVAILABLE
        assert seat_repo.save_calls == 0

    @pytest.mark.asyncio
    async def test_held_seat_conflicts(self, use_case, seat_repo):
        await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11])

        with pytest.raises(ConflictError) as exc_info:
            await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11, 12])

        assert exc_info.value.seat_ids == [11]
        assert seat_repo.get(12).status == SeatStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_expired_hold_can_be_taken(self, use_case, seat_repo, clock):
        first = await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11], ttl_seconds=60)
        clock.advance(seconds=61)

        second = await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11])

        assert second.session_id != first.session_id
        assert seat_repo.get(11).hold_session_id == second.session_id

    @pytest.mark.asyncio
    async def test_unknown_show_time(self, use_case):
        with pytest.raises(NotFoundError):
            await use_case.execute(show_time_id=999, seat_ids=[11])

    @pytest.mark.asyncio
    async def test_unknown_seat(self, use_case, seat_repo):
        with pytest.raises(NotFoundError):
            await use_case.execute(show_time_id=SHOW_TIME_ID, seat_ids=[11, 99])

        assert seat_repo.get(11).status == SeatStatus.AVAILABLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'seat_ids, ttl_seconds',
        [
            ([], None),
            ([11, 11], None),
            ([0], None),
            ([11], 0),
            ([11], 999999),
            (list(range(1, 12)), None),
        ],
    )
    async def test_invalid_requests(self, use_case, seat_ids, ttl_seconds):
        with pytest.raises(ValidationError):
            await use_case.execute(
                show_time_id=SHOW_TIME_ID, seat_ids=seat_ids, ttl_seconds=ttl_seconds
            )


@pytest.mark.unit
class TestConcurrentHolds:
    """
    Given: two sessions requesting overlapping seat sets at the same time
    When: both holds run concurrently
    Then: exactly one succeeds and the other gets ConflictError naming the overlap;
          no seat is left partially held
    """

    async def _race(self, first, second):
        results: dict[str, object] = {}

        async def run(name, use_case, seat_ids):
            try:
                results[name] = await use_case.execute(
                    show_time_id=SHOW_TIME_ID, seat_ids=seat_ids
                )
            except ConflictError as e:
                results[name] = e

        async with anyio.create_task_group() as tg:
            tg.start_soon(run, 'a', first, [11, 12])
            tg.start_soon(run, 'b', second, [12, 13])
        return results

    def _assert_one_winner(self, results, seat_repo):
        errors = [r for r in results.values() if isinstance(r, ConflictError)]
        winners = [r for r in results.values() if not isinstance(r, ConflictError)]
        assert len(errors) == 1 and len(winners) == 1
        assert 12 in errors[0].seat_ids

        winner = winners[0]
        held = {
            seat_id
            for seat_id in (11, 12, 13)
            if seat_repo.get(seat_id).status == SeatStatus.HOLDING
        }
        assert held == set(winner.selected_seat_ids)

    @pytest.mark.asyncio
    async def test_shared_lock(self, seat_repo, show_time_repo, keyed_lock, clock):
        use_case = HoldSeatsUseCase(
            seat_command_repo=seat_repo,
            show_time_query_repo=show_time_repo,
            keyed_lock=keyed_lock,
            clock=clock,
        )

        results = await self._race(use_case, use_case)

        self._assert_one_winner(results, seat_repo)

    @pytest.mark.asyncio
    async def test_compare_and_set_without_shared_lock(self, seat_repo, show_time_repo, clock):
        """Two processes (separate locks) still cannot both hold seat A2."""

        def build():
            return HoldSeatsUseCase(
                seat_command_repo=seat_repo,
                show_time_query_repo=show_time_repo,
                keyed_lock=KeyedLock(),
                clock=clock,
            )

        results = await self._race(build(), build())

        self._assert_one_winner(results, seat_repo)
