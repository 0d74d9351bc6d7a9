"""
Unit tests for the Seat state machine

Focus:
1. Lazy expiry: a lapsed hold reads as AVAILABLE before any sweep
2. Ownership: only the holding session may release or confirm
3. DISABLED is reachable only from AVAILABLE
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.platform.exception.exceptions import ConflictError, ExpiredHoldError, ForbiddenError
from src.service.booking.domain.entity.seat_entity import Seat, SeatStatus


NOW = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(minutes=10)


def _seat(**overrides) -> Seat:
    fields = {'id': 1, 'show_time_id': 1, 'code': 'A1', 'price': 75000}
    fields.update(overrides)
    return Seat(**fields)


def _held(session_id: str = 'S1', expires_at: datetime = LATER) -> Seat:
    return _seat().hold(session_id=session_id, expires_at=expires_at, now=NOW)


@pytest.mark.unit
class TestSeatHold:
    def test_hold_available_seat(self):
        seat = _held()

        assert seat.status == SeatStatus.HOLDING
        assert seat.hold_session_id == 'S1'
        assert seat.hold_expires_at == LATER
        assert seat.is_held_by('S1', now=NOW)

    def test_hold_held_seat_conflicts_even_for_same_session(self):
        with pytest.raises(ConflictError) as exc_info:
            _held().hold(session_id='S1', expires_at=LATER, now=NOW)
        assert exc_info.value.seat_ids == [1]

    @pytest.mark.parametrize('status', [SeatStatus.BOOKED, SeatStatus.DISABLED])
    def test_hold_unavailable_seat_conflicts(self, status):
        with pytest.raises(ConflictError):
            _seat(status=status).hold(session_id='S1', expires_at=LATER, now=NOW)

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValueError):
            _seat(price=-1)


@pytest.mark.unit
class TestLazyExpiry:
    """
    Given: a seat held until LATER
    When: it is read at or after LATER
    Then: it is AVAILABLE for every reader and can be held again
    """

    def test_expired_hold_reads_available(self):
        seat = _held()

        assert seat.effective_status(now=LATER - timedelta(seconds=1)) == SeatStatus.HOLDING
        assert seat.effective_status(now=LATER) == SeatStatus.AVAILABLE
        assert seat.status == SeatStatus.HOLDING

    def test_snapshot_hides_expired_hold(self):
        snapshot = _held().snapshot(now=LATER)

        assert snapshot.status == SeatStatus.AVAILABLE
        assert snapshot.hold_session_id is None
        assert snapshot.hold_expires_at is None

    def test_expired_hold_can_be_taken_by_another_session(self):
        seat = _held().hold(session_id='S2', expires_at=LATER + timedelta(minutes=10), now=LATER)

        assert seat.hold_session_id == 'S2'


@pytest.mark.unit
class TestSeatRelease:
    def test_owner_releases(self):
        seat = _held().release(session_id='S1', now=NOW)

        assert seat.status == SeatStatus.AVAILABLE
        assert seat.hold_session_id is None

    def test_release_available_seat_is_noop(self):
        seat = _seat()

        assert seat.release(session_id='S1', now=NOW) is seat

    def test_release_foreign_hold_is_forbidden(self):
        with pytest.raises(ForbiddenError):
            _held('S2').release(session_id='S1', now=NOW)

    def test_release_foreign_expired_hold_is_noop(self):
        seat = _held('S2')

        assert seat.release(session_id='S1', now=LATER) is seat

    def test_owner_can_release_own_expired_hold(self):
        seat = _held().release(session_id='S1', now=LATER)

        assert seat.status == SeatStatus.AVAILABLE

    def test_release_booked_seat_conflicts(self):
        booked = _held().confirm(session_id='S1', invoice_id='INV1', now=NOW)

        with pytest.raises(ConflictError):
            booked.release(session_id='S1', now=NOW)


@pytest.mark.unit
class TestSeatConfirm:
    def test_owner_confirms(self):
        seat = _held().confirm(session_id='S1', invoice_id='INV1', now=NOW)

        assert seat.status == SeatStatus.BOOKED
        assert seat.invoice_id == 'INV1'
        assert seat.hold_session_id is None

    def test_confirm_same_invoice_twice_is_idempotent(self):
        booked = _held().confirm(session_id='S1', invoice_id='INV1', now=NOW)

        assert booked.confirm(session_id='S1', invoice_id='INV1', now=NOW) is booked

    def test_confirm_after_expiry_raises_expired_hold(self):
        with pytest.raises(ExpiredHoldError):
            _held().confirm(session_id='S1', invoice_id='INV1', now=LATER)

    def test_confirm_foreign_hold_conflicts(self):
        with pytest.raises(ConflictError) as exc_info:
            _held('S2').confirm(session_id='S1', invoice_id='INV1', now=NOW)
        assert not isinstance(exc_info.value, ExpiredHoldError)

    def test_confirm_booked_for_other_invoice_conflicts(self):
        booked = _held().confirm(session_id='S1', invoice_id='INV1', now=NOW)

        with pytest.raises(ConflictError):
            booked.confirm(session_id='S1', invoice_id='INV2', now=NOW)


@pytest.mark.unit
class TestSeatDisable:
    def test_disable_available_seat(self):
        assert _seat().disable(now=NOW).status == SeatStatus.DISABLED

    def test_disable_expired_hold(self):
        seat = _held().disable(now=LATER)

        assert seat.status == SeatStatus.DISABLED
        assert seat.hold_session_id is None

    def test_disable_held_seat_conflicts(self):
        with pytest.raises(ConflictError):
            _held().disable(now=NOW)
