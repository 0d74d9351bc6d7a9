"""
Unit tests for ReservationSession, PaymentTransaction and Invoice
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.platform.exception.exceptions import ConflictError, ValidationError
from src.service.booking.domain.entity.invoice_entity import (
    CancelReason,
    Invoice,
    InvoiceStatus,
    generate_booking_code,
)
from src.service.booking.domain.entity.payment_transaction_entity import (
    PaymentStatus,
    PaymentTransaction,
)
from src.service.booking.domain.entity.reservation_session_entity import ReservationSession
from src.service.booking.domain.entity.seat_entity import Seat, SeatStatus


NOW = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)


def _seats() -> list[Seat]:
    return [
        Seat(id=11, show_time_id=1, code='A1', price=75000),
        Seat(id=12, show_time_id=1, code='A2', price=75000),
    ]


def _invoice(amount: int = 150000) -> Invoice:
    return Invoice.create(
        user_id=5,
        show_time_id=1,
        txn_ref='TXN1',
        session_id='S1',
        seats=_seats(),
        amount=amount,
        now=NOW,
    )


@pytest.mark.unit
class TestReservationSession:
    def test_amount_is_sum_of_selected_prices(self):
        """
        Given: seats A1 (75 000) and A2 (75 000)
        When: both are selected
        Then: the session amount is 150 000
        """
        session = ReservationSession.begin(show_time_id=1)
        for seat in _seats():
            session = session.select(seat, now=NOW)

        assert session.amount == 150000
        assert session.selected_seat_ids == [11, 12]

    def test_selecting_twice_does_not_duplicate(self):
        seat = _seats()[0]
        session = ReservationSession.begin(show_time_id=1).select(seat, now=NOW)

        assert session.select(seat, now=NOW) is session
        assert session.amount == 75000

    def test_deselect_updates_amount(self):
        session = ReservationSession.begin(show_time_id=1)
        for seat in _seats():
            session = session.select(seat, now=NOW)

        session = session.deselect(11)

        assert session.selected_seat_ids == [12]
        assert session.amount == 75000

    def test_select_unavailable_seat_conflicts(self):
        booked = Seat(id=11, show_time_id=1, code='A1', price=75000, status=SeatStatus.BOOKED)

        with pytest.raises(ConflictError):
            ReservationSession.begin(show_time_id=1).select(booked, now=NOW)

    def test_select_seat_of_other_show_time_is_invalid(self):
        seat = Seat(id=21, show_time_id=2, code='B1', price=75000)

        with pytest.raises(ValidationError):
            ReservationSession.begin(show_time_id=1).select(seat, now=NOW)

    def test_expiry(self):
        session = ReservationSession.begin(show_time_id=1).with_hold(
            expires_at=NOW + timedelta(minutes=10)
        )

        assert not session.is_expired(now=NOW)
        assert session.is_expired(now=NOW + timedelta(minutes=10))


@pytest.mark.unit
class TestPaymentTransaction:
    def _transaction(self) -> PaymentTransaction:
        return PaymentTransaction.create(
            txn_ref='TXN1', amount=150000, bank_code='NCB', gateway_url='https://pay', now=NOW
        )

    @pytest.mark.parametrize('amount', [0, -100])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            PaymentTransaction.create(
                txn_ref='TXN1', amount=amount, bank_code='NCB', gateway_url='https://pay', now=NOW
            )

    def test_record_success(self):
        txn = self._transaction().record_result(response_code='00', now=NOW)

        assert txn.status == PaymentStatus.SUCCESS
        assert txn.response_code == '00'
        assert txn.is_final

    def test_record_failure(self):
        txn = self._transaction().record_result(response_code='24', now=NOW)

        assert txn.status == PaymentStatus.FAILED

    def test_same_result_again_is_noop(self):
        txn = self._transaction().record_result(response_code='00', now=NOW)

        assert txn.record_result(response_code='00', now=NOW) is txn

    def test_conflicting_result_is_rejected(self):
        txn = self._transaction().record_result(response_code='00', now=NOW)

        with pytest.raises(ConflictError):
            txn.record_result(response_code='24', now=NOW)


@pytest.mark.unit
class TestInvoice:
    def test_create_freezes_seat_prices(self):
        invoice = _invoice()

        assert invoice.status == InvoiceStatus.PENDING
        assert invoice.total_money == 150000
        assert invoice.seat_ids == [11, 12]
        assert len(invoice.booking_code) == 8

    def test_amount_mismatch_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _invoice(amount=140000)
        assert exc_info.value.result == {'expected_amount': 150000}

    def test_finalize_confirmed(self):
        invoice = _invoice().finalize(outcome=InvoiceStatus.CONFIRMED, now=NOW)

        assert invoice.status == InvoiceStatus.CONFIRMED
        assert invoice.cancel_reason is None
        assert invoice.finalized_at == NOW

    def test_finalize_same_outcome_is_idempotent(self):
        invoice = _invoice().finalize(
            outcome=InvoiceStatus.CANCELLED, now=NOW, reason=CancelReason.PAYMENT_FAILED
        )

        again = invoice.finalize(outcome=InvoiceStatus.CANCELLED, now=NOW + timedelta(seconds=5))

        assert again is invoice

    def test_finalize_conflicting_outcome_is_rejected(self):
        invoice = _invoice().finalize(outcome=InvoiceStatus.CONFIRMED, now=NOW)

        with pytest.raises(ConflictError):
            invoice.finalize(outcome=InvoiceStatus.CANCELLED, now=NOW)

    def test_finalize_to_pending_is_invalid(self):
        with pytest.raises(ValidationError):
            _invoice().finalize(outcome=InvoiceStatus.PENDING, now=NOW)

    def test_booking_code_alphabet(self):
        code = generate_booking_code()

        assert code.isalnum() and code.upper() == code
