"""
Unit tests for the background jobs: SweepExpiredHoldsUseCase and
ExpirePendingInvoicesUseCase
"""

import pytest

from src.platform.config.core_setting import settings
from src.service.booking.app.command.checkout_use_case import CheckoutUseCase
from src.service.booking.app.command.expire_pending_invoices_use_case import (
    ExpirePendingInvoicesUseCase,
)
from src.service.booking.app.command.sweep_expired_holds_use_case import (
    SweepExpiredHoldsUseCase,
)
from src.service.booking.domain.entity.invoice_entity import CancelReason, InvoiceStatus
from src.service.booking.domain.entity.payment_transaction_entity import PaymentStatus
from src.service.booking.domain.entity.seat_entity import SeatStatus
from tests.service.booking.booking_fakes import SHOW_TIME_ID, hold_in_place


@pytest.fixture
def sweep(seat_repo, keyed_lock, clock):
    return SweepExpiredHoldsUseCase(seat_command_repo=seat_repo, keyed_lock=keyed_lock, clock=clock)


@pytest.fixture
def expire(invoice_repo, payment_transaction_repo, seat_repo, keyed_lock, clock):
    return ExpirePendingInvoicesUseCase.build(
        invoice_repo=invoice_repo,
        payment_transaction_repo=payment_transaction_repo,
        seat_command_repo=seat_repo,
        keyed_lock=keyed_lock,
        clock=clock,
    )


@pytest.fixture
async def pending(seat_repo, invoice_repo, payment_transaction_repo, payment_gateway, clock):
    hold_in_place(seat_repo, [11, 12], session_id='S1', now=clock.now)
    checkout = CheckoutUseCase.build(
        seat_command_repo=seat_repo,
        invoice_repo=invoice_repo,
        payment_transaction_repo=payment_transaction_repo,
        payment_gateway=payment_gateway,
        clock=clock,
    )
    return await checkout.execute(
        user_id=42, show_time_id=SHOW_TIME_ID, seat_ids=[11, 12], bank_code='NCB'
    )


@pytest.mark.unit
class TestSweepExpiredHolds:
    @pytest.mark.asyncio
    async def test_only_lapsed_holds_are_reset(self, sweep, seat_repo, clock):
        hold_in_place(seat_repo, [11, 12], session_id='S1', now=clock.now, ttl_seconds=60)
        hold_in_place(seat_repo, [13], session_id='S2', now=clock.now, ttl_seconds=600)
        clock.advance(seconds=120)

        swept = await sweep.execute()

        assert swept == 2
        for seat_id in (11, 12):
            seat = seat_repo.get(seat_id)
            assert seat.status == SeatStatus.AVAILABLE
            assert seat.hold_session_id is None
            assert seat.hold_expires_at is None
        assert seat_repo.get(13).status == SeatStatus.HOLDING

    @pytest.mark.asyncio
    async def test_nothing_to_sweep(self, sweep, seat_repo):
        assert await sweep.execute() == 0
        assert seat_repo.save_calls == 0

    @pytest.mark.asyncio
    async def test_sweep_does_not_change_what_readers_see(self, sweep, seat_repo, clock):
        hold_in_place(seat_repo, [11], session_id='S1', now=clock.now, ttl_seconds=60)
        clock.advance(seconds=61)
        before = seat_repo.get(11).snapshot(now=clock.now)

        await sweep.execute()

        after = seat_repo.get(11).snapshot(now=clock.now)
        assert (after.status, after.hold_session_id) == (before.status, before.hold_session_id)


@pytest.mark.unit
class TestExpirePendingInvoices:
    @pytest.mark.asyncio
    async def test_fresh_invoices_are_left_alone(self, expire, pending, invoice_repo):
        assert await expire.execute() == 0

        invoice = await invoice_repo.get_by_txn_ref(txn_ref=pending.txn_ref)
        assert invoice.status == InvoiceStatus.PENDING

    @pytest.mark.asyncio
    async def test_abandoned_invoice_times_out(
        self, expire, pending, invoice_repo, seat_repo, clock
    ):
        clock.advance(seconds=settings.PENDING_INVOICE_TIMEOUT_SECONDS + 1)

        assert await expire.execute() == 1

        invoice = await invoice_repo.get_by_txn_ref(txn_ref=pending.txn_ref)
        assert invoice.status == InvoiceStatus.CANCELLED
        assert invoice.cancel_reason == CancelReason.PAYMENT_TIMEOUT
        assert seat_repo.get(11).status == SeatStatus.AVAILABLE
        assert seat_repo.get(12).status == SeatStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_recorded_result_is_reconciled_instead(
        self, expire, pending, invoice_repo, payment_transaction_repo, clock
    ):
        txn = await payment_transaction_repo.get_by_txn_ref(txn_ref=pending.txn_ref)
        await payment_transaction_repo.record_result(
            transaction=txn.record_result(response_code='24', now=clock.now)
        )
        clock.advance(seconds=settings.PENDING_INVOICE_TIMEOUT_SECONDS + 1)

        assert await expire.execute() == 1

        invoice = await invoice_repo.get_by_txn_ref(txn_ref=pending.txn_ref)
        assert invoice.cancel_reason == CancelReason.PAYMENT_FAILED
        txn = await payment_transaction_repo.get_by_txn_ref(txn_ref=pending.txn_ref)
        assert txn.status == PaymentStatus.FAILED
