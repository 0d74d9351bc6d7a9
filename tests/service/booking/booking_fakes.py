"""
In-memory adapters for unit tests

They honour the same contracts as the SQLAlchemy repositories: seat writes
are compare-and-set on `version`, invoices are unique per txn_ref and
finalize/record_result only land on PENDING rows.
"""

import datetime as dt
from datetime import datetime, timedelta
import itertools
from typing import Dict, Iterable, List, Mapping, Optional

import anyio
import attrs

from src.platform.exception.exceptions import ConflictError, GatewayError
from src.service.booking.app.dto import ProviderPaymentResult
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo
from src.service.booking.app.interface.i_seat_query_repo import ISeatQueryRepo
from src.service.booking.app.interface.i_show_time_query_repo import IShowTimeQueryRepo
from src.service.booking.domain.entity.invoice_entity import Invoice, InvoiceStatus
from src.service.booking.domain.entity.payment_transaction_entity import (
    PaymentStatus,
    PaymentTransaction,
)
from src.service.booking.domain.entity.seat_entity import Seat, SeatStatus
from src.service.booking.domain.entity.show_time_entity import ShowTime


SHOW_TIME_ID = 1
SEAT_PRICE = 75000
VIP_PRICE = 90000


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, *, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def default_show_time() -> ShowTime:
    return ShowTime(
        id=SHOW_TIME_ID,
        movie_id=7,
        cinema_id=3,
        screen_room_id=2,
        date=dt.date(2025, 1, 10),
        start_time=dt.time(19, 30),
        end_time=dt.time(21, 45),
        movie_name='Dune: Part Two',
    )


def default_seats() -> List[Seat]:
    """A1-A2 standard, A3-A4 VIP, A5 disabled."""
    return [
        Seat(id=11, show_time_id=SHOW_TIME_ID, code='A1', price=SEAT_PRICE),
        Seat(id=12, show_time_id=SHOW_TIME_ID, code='A2', price=SEAT_PRICE),
        Seat(id=13, show_time_id=SHOW_TIME_ID, code='A3', price=VIP_PRICE, seat_type='VIP'),
        Seat(id=14, show_time_id=SHOW_TIME_ID, code='A4', price=VIP_PRICE, seat_type='VIP'),
        Seat(
            id=15,
            show_time_id=SHOW_TIME_ID,
            code='A5',
            price=SEAT_PRICE,
            status=SeatStatus.DISABLED,
        ),
    ]


class InMemoryShowTimeRepo(IShowTimeQueryRepo):
    def __init__(self, show_times: Iterable[ShowTime] = ()) -> None:
        self._rows = {show_time.id: show_time for show_time in show_times}

    async def get_by_id(self, *, show_time_id: int) -> Optional[ShowTime]:
        return self._rows.get(show_time_id)


class InMemorySeatRepo(ISeatCommandRepo, ISeatQueryRepo):
    def __init__(self, seats: Iterable[Seat] = ()) -> None:
        self._rows: Dict[int, Seat] = {seat.id: seat for seat in seats}
        self.save_calls = 0

    def get(self, seat_id: int) -> Seat:
        return self._rows[seat_id]

    def put(self, seat: Seat) -> None:
        self._rows[seat.id] = seat

    async def get_seats(self, *, show_time_id: int, seat_ids: List[int]) -> List[Seat]:
        # Yield so concurrent callers interleave between read and write
        await anyio.sleep(0)
        return [
            self._rows[seat_id]
            for seat_id in sorted(seat_ids)
            if seat_id in self._rows and self._rows[seat_id].show_time_id == show_time_id
        ]

    async def save_all(self, *, seats: List[Seat]) -> List[Seat]:
        self.save_calls += 1
        stale = [seat.id for seat in seats if self._rows[seat.id].version != seat.version]
        if stale:
            raise ConflictError(f'Seats {stale} were modified concurrently', seat_ids=stale)
        saved = [attrs.evolve(seat, version=seat.version + 1) for seat in seats]
        for seat in saved:
            self._rows[seat.id] = seat
        return saved

    async def list_expired_holds(self, *, now: datetime, limit: int = 500) -> List[Seat]:
        expired = [seat for seat in self._rows.values() if seat.is_hold_expired(now=now)]
        return sorted(expired, key=lambda seat: (seat.show_time_id, seat.id))[:limit]

    async def list_by_show_time(self, *, show_time_id: int) -> List[Seat]:
        seats = [seat for seat in self._rows.values() if seat.show_time_id == show_time_id]
        return sorted(seats, key=lambda seat: seat.code)


class InMemoryInvoiceRepo(IInvoiceRepo):
    def __init__(self) -> None:
        self._rows: Dict[str, Invoice] = {}
        self.finalize_calls = 0

    async def create(self, *, invoice: Invoice) -> Invoice:
        if invoice.txn_ref in self._rows:
            return self._rows[invoice.txn_ref]
        self._rows[invoice.txn_ref] = invoice
        return invoice

    async def get_by_txn_ref(self, *, txn_ref: str) -> Optional[Invoice]:
        return self._rows.get(txn_ref)

    async def get_by_id(self, *, invoice_id: str) -> Optional[Invoice]:
        return next((inv for inv in self._rows.values() if inv.id == invoice_id), None)

    async def list_by_user(self, *, user_id: int) -> List[Invoice]:
        invoices = [inv for inv in self._rows.values() if inv.user_id == user_id]
        return sorted(invoices, key=lambda inv: inv.created_at or datetime.min, reverse=True)

    async def list_pending_before(
        self, *, created_before: datetime, limit: int = 100
    ) -> List[Invoice]:
        pending = [
            inv
            for inv in self._rows.values()
            if inv.status == InvoiceStatus.PENDING
            and inv.created_at is not None
            and inv.created_at < created_before
        ]
        return pending[:limit]

    async def finalize(self, *, invoice: Invoice) -> Optional[Invoice]:
        self.finalize_calls += 1
        stored = self._rows[invoice.txn_ref]
        if stored.status != InvoiceStatus.PENDING:
            return None
        self._rows[invoice.txn_ref] = invoice
        return invoice


class InMemoryPaymentTransactionRepo(IPaymentTransactionRepo):
    def __init__(self, *, invoice_repo: InMemoryInvoiceRepo) -> None:
        self._rows: Dict[str, PaymentTransaction] = {}
        self._invoice_repo = invoice_repo
        self.record_calls = 0

    async def create(self, *, transaction: PaymentTransaction) -> PaymentTransaction:
        self._rows[transaction.txn_ref] = transaction
        return transaction

    async def get_by_txn_ref(self, *, txn_ref: str) -> Optional[PaymentTransaction]:
        return self._rows.get(txn_ref)

    async def record_result(
        self, *, transaction: PaymentTransaction
    ) -> Optional[PaymentTransaction]:
        self.record_calls += 1
        if self._rows[transaction.txn_ref].status != PaymentStatus.PENDING:
            return None
        self._rows[transaction.txn_ref] = transaction
        return transaction

    async def list_unreconciled(self, *, limit: int = 100) -> List[PaymentTransaction]:
        unreconciled = []
        for txn in self._rows.values():
            if txn.status != PaymentStatus.SUCCESS:
                continue
            invoice = await self._invoice_repo.get_by_txn_ref(txn_ref=txn.txn_ref)
            if invoice is None or invoice.status != InvoiceStatus.CONFIRMED:
                unreconciled.append(txn)
        return unreconciled[:limit]


class FakePaymentGateway(IPaymentGateway):
    def __init__(self, *, clock: FakeClock) -> None:
        self._clock = clock
        self._counter = itertools.count(1)
        self.fail_with: Optional[GatewayError] = None
        self.signature_valid = True
        self.calls = 0
        # What the provider reports per txn_ref when queried; absent means not paid yet
        self.provider_results: Dict[str, ProviderPaymentResult] = {}
        self.query_calls: List[str] = []

    async def create_transaction(
        self, *, amount: int, bank_code: str, client_ip: str = '127.0.0.1'
    ) -> PaymentTransaction:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        txn_ref = f'TXN{next(self._counter):06d}'
        return PaymentTransaction.create(
            txn_ref=txn_ref,
            amount=amount,
            bank_code=bank_code,
            gateway_url=f'https://pay.example/vpcpay.html?vnp_TxnRef={txn_ref}',
            now=self._clock(),
        )

    def settle(self, txn_ref: str, *, response_code: str, amount: Optional[int] = None) -> None:
        self.provider_results[txn_ref] = ProviderPaymentResult(
            response_code=response_code, amount=amount
        )

    async def query_transaction(
        self, *, transaction: PaymentTransaction, client_ip: str = '127.0.0.1'
    ) -> Optional[ProviderPaymentResult]:
        self.query_calls.append(transaction.txn_ref)
        if self.fail_with is not None:
            raise self.fail_with
        return self.provider_results.get(transaction.txn_ref)

    def verify_result_signature(self, *, params: Mapping[str, str]) -> bool:
        return self.signature_valid


def hold_in_place(
    seat_repo: InMemorySeatRepo,
    seat_ids: Iterable[int],
    *,
    session_id: str,
    now: datetime,
    ttl_seconds: int = 600,
) -> None:
    """Put seats straight into HOLDING, skipping the use case."""
    for seat_id in seat_ids:
        seat = seat_repo.get(seat_id)
        seat_repo.put(
            attrs.evolve(
                seat.hold(
                    session_id=session_id,
                    expires_at=now + timedelta(seconds=ttl_seconds),
                    now=now,
                ),
                version=seat.version + 1,
            )
        )
