from datetime import datetime
from typing import AsyncContextManager, Callable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.db_setting import as_utc
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.domain.entity.invoice_entity import (
    CancelReason,
    Invoice,
    InvoiceSeat,
    InvoiceStatus,
)
from src.service.booking.driven_adapter.model.invoice_model import InvoiceModel


class InvoiceRepoImpl(IInvoiceRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @staticmethod
    def _model_to_entity(model: InvoiceModel) -> Invoice:
        return Invoice(
            id=model.id,
            user_id=model.user_id,
            show_time_id=model.show_time_id,
            txn_ref=model.txn_ref,
            session_id=model.session_id,
            seats=[InvoiceSeat(**seat) for seat in model.seats],
            total_money=model.total_money,
            booking_code=model.booking_code,
            status=InvoiceStatus(model.status),
            cancel_reason=CancelReason(model.cancel_reason) if model.cancel_reason else None,
            refund_required=model.refund_required,
            created_at=as_utc(model.created_at),
            finalized_at=as_utc(model.finalized_at),
        )

    @Logger.io
    async def create(self, *, invoice: Invoice) -> Invoice:
        try:
            async with self.session_factory() as session:
                session.add(
                    InvoiceModel(
                        id=invoice.id,
                        user_id=invoice.user_id,
                        show_time_id=invoice.show_time_id,
                        txn_ref=invoice.txn_ref,
                        session_id=invoice.session_id,
                        seats=[
                            {'seat_id': s.seat_id, 'code': s.code, 'price': s.price}
                            for s in invoice.seats
                        ],
                        total_money=invoice.total_money,
                        booking_code=invoice.booking_code,
                        status=invoice.status.value,
                        refund_required=invoice.refund_required,
                        created_at=invoice.created_at,
                    )
                )
                await session.commit()
                return invoice
        except IntegrityError:
            # A concurrent call for the same txn_ref won the insert
            existing = await self.get_by_txn_ref(txn_ref=invoice.txn_ref)
            if existing is None:
                raise
            Logger.base.info(
                f'♻️ [INVOICE] Reusing invoice {existing.id} for txn {invoice.txn_ref}'
            )
            return existing

    @Logger.io
    async def get_by_txn_ref(self, *, txn_ref: str) -> Optional[Invoice]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(InvoiceModel).where(InvoiceModel.txn_ref == txn_ref)
            )
            model = result.scalar_one_or_none()
            return self._model_to_entity(model) if model else None

    @Logger.io
    async def get_by_id(self, *, invoice_id: str) -> Optional[Invoice]:
        async with self.session_factory() as session:
            model = await session.get(InvoiceModel, invoice_id)
            return self._model_to_entity(model) if model else None

    @Logger.io
    async def list_by_user(self, *, user_id: int) -> List[Invoice]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(InvoiceModel)
                .where(InvoiceModel.user_id == user_id)
                .order_by(InvoiceModel.created_at.desc())
            )
            return [self._model_to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def list_pending_before(
        self, *, created_before: datetime, limit: int = 100
    ) -> List[Invoice]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(InvoiceModel)
                .where(
                    InvoiceModel.status == InvoiceStatus.PENDING.value,
                    InvoiceModel.created_at < created_before,
                )
                .order_by(InvoiceModel.created_at)
                .limit(limit)
            )
            return [self._model_to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def finalize(self, *, invoice: Invoice) -> Optional[Invoice]:
        async with self.session_factory() as session:
            result = await session.execute(
                update(InvoiceModel)
                .where(
                    InvoiceModel.id == invoice.id,
                    InvoiceModel.status == InvoiceStatus.PENDING.value,
                )
                .values(
                    status=invoice.status.value,
                    cancel_reason=invoice.cancel_reason.value if invoice.cancel_reason else None,
                    refund_required=invoice.refund_required,
                    finalized_at=invoice.finalized_at,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return invoice if result.rowcount == 1 else None  # type: ignore[attr-defined]
