"""
Unit tests for CheckoutUseCase
"""

import pytest

from src.platform.exception.exceptions import (
    ConflictError,
    ExpiredHoldError,
    GatewayError,
    NotFoundError,
)
from src.service.booking.app.command.checkout_use_case import CheckoutUseCase
from src.service.booking.domain.entity.invoice_entity import InvoiceStatus
from tests.service.booking.booking_fakes import (
    SEAT_PRICE,
    SHOW_TIME_ID,
    VIP_PRICE,
    hold_in_place,
)


@pytest.fixture
def checkout(seat_repo, invoice_repo, payment_transaction_repo, payment_gateway, clock):
    return CheckoutUseCase.build(
        seat_command_repo=seat_repo,
        invoice_repo=invoice_repo,
        payment_transaction_repo=payment_transaction_repo,
        payment_gateway=payment_gateway,
        clock=clock,
    )


@pytest.mark.unit
class TestCheckout:
    @pytest.mark.asyncio
    async def test_amount_is_sum_of_held_seat_prices(
        self, checkout, seat_repo, invoice_repo, payment_transaction_repo, clock
    ):
        hold_in_place(seat_repo, [11, 13, 14], session_id='S1', now=clock.now)

        result = await checkout.execute(
            user_id=42, show_time_id=SHOW_TIME_ID, seat_ids=[11, 13, 14], bank_code='NCB'
        )

        assert result.amount == SEAT_PRICE + 2 * VIP_PRICE
        assert result.payment_url.endswith(result.txn_ref)
        txn = await payment_transaction_repo.get_by_txn_ref(txn_ref=result.txn_ref)
        assert txn.amount == result.amount
        invoice = await invoice_repo.get_by_txn_ref(txn_ref=result.txn_ref)
        assert invoice.id == result.invoice_id
        assert invoice.status == InvoiceStatus.PENDING
        assert invoice.session_id == 'S1'

    @pytest.mark.asyncio
    async def test_explicit_session_must_own_every_seat(self, checkout, seat_repo, clock):
        hold_in_place(seat_repo, [11], session_id='S1', now=clock.now)
        hold_in_place(seat_repo, [12], session_id='S2', now=clock.now)

        with pytest.raises(ConflictError) as exc_info:
            await checkout.execute(
                user_id=42,
                show_time_id=SHOW_TIME_ID,
                seat_ids=[11, 12],
                bank_code='NCB',
                session_id='S1',
            )

        assert exc_info.value.seat_ids == [12]

    @pytest.mark.asyncio
    async def test_lapsed_hold_never_reaches_the_gateway(
        self, checkout, seat_repo, payment_gateway, clock
    ):
        hold_in_place(seat_repo, [11], session_id='S1', now=clock.now, ttl_seconds=60)
        clock.advance(seconds=61)

        with pytest.raises(ExpiredHoldError):
            await checkout.execute(
                user_id=42, show_time_id=SHOW_TIME_ID, seat_ids=[11], bank_code='NCB'
            )

        assert payment_gateway.calls == 0

    @pytest.mark.asyncio
    async def test_gateway_failure_leaves_no_invoice(
        self, checkout, seat_repo, payment_gateway, invoice_repo, clock
    ):
        hold_in_place(seat_repo, [11], session_id='S1', now=clock.now)
        payment_gateway.fail_with = GatewayError('provider rejected the request')

        with pytest.raises(GatewayError):
            await checkout.execute(
                user_id=42, show_time_id=SHOW_TIME_ID, seat_ids=[11], bank_code='NCB'
            )

        assert await invoice_repo.list_by_user(user_id=42) == []

    @pytest.mark.asyncio
    async def test_unknown_seat(self, checkout):
        with pytest.raises(NotFoundError):
            await checkout.execute(
                user_id=42, show_time_id=SHOW_TIME_ID, seat_ids=[404], bank_code='NCB'
            )
