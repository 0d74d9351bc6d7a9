from typing import AsyncContextManager, Callable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.db_setting import as_utc
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.domain.entity.invoice_entity import InvoiceStatus
from src.service.booking.domain.entity.payment_transaction_entity import (
    PaymentStatus,
    PaymentTransaction,
)
from src.service.booking.driven_adapter.model.invoice_model import InvoiceModel
from src.service.booking.driven_adapter.model.payment_transaction_model import (
    PaymentTransactionModel,
)


class PaymentTransactionRepoImpl(IPaymentTransactionRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @staticmethod
    def _model_to_entity(model: PaymentTransactionModel) -> PaymentTransaction:
        return PaymentTransaction(
            txn_ref=model.txn_ref,
            amount=model.amount,
            bank_code=model.bank_code,
            gateway_url=model.gateway_url,
            status=PaymentStatus(model.status),
            response_code=model.response_code,
            created_at=as_utc(model.created_at),
            completed_at=as_utc(model.completed_at),
        )

    @Logger.io
    async def create(self, *, transaction: PaymentTransaction) -> PaymentTransaction:
        async with self.session_factory() as session:
            session.add(
                PaymentTransactionModel(
                    txn_ref=transaction.txn_ref,
                    amount=transaction.amount,
                    bank_code=transaction.bank_code,
                    gateway_url=transaction.gateway_url,
                    status=transaction.status.value,
                    created_at=transaction.created_at,
                )
            )
            await session.commit()
            return transaction

    @Logger.io
    async def get_by_txn_ref(self, *, txn_ref: str) -> Optional[PaymentTransaction]:
        async with self.session_factory() as session:
            model = await session.get(PaymentTransactionModel, txn_ref)
            return self._model_to_entity(model) if model else None

    @Logger.io
    async def record_result(
        self, *, transaction: PaymentTransaction
    ) -> Optional[PaymentTransaction]:
        async with self.session_factory() as session:
            result = await session.execute(
                update(PaymentTransactionModel)
                .where(
                    PaymentTransactionModel.txn_ref == transaction.txn_ref,
                    PaymentTransactionModel.status == PaymentStatus.PENDING.value,
                )
                .values(
                    status=transaction.status.value,
                    response_code=transaction.response_code,
                    completed_at=transaction.completed_at,
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return transaction if result.rowcount == 1 else None  # type: ignore[attr-defined]

    @Logger.io
    async def list_unreconciled(self, *, limit: int = 100) -> List[PaymentTransaction]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PaymentTransactionModel)
                .outerjoin(
                    InvoiceModel, InvoiceModel.txn_ref == PaymentTransactionModel.txn_ref
                )
                .where(
                    PaymentTransactionModel.status == PaymentStatus.SUCCESS.value,
                    or_(
                        InvoiceModel.id.is_(None),
                        InvoiceModel.status != InvoiceStatus.CONFIRMED.value,
                    ),
                )
                .order_by(PaymentTransactionModel.created_at)
                .limit(limit)
            )
            return [self._model_to_entity(model) for model in result.scalars().all()]
