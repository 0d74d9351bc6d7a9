from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.domain.entity.invoice_entity import Invoice


class GetInvoiceUseCase:
    def __init__(self, *, invoice_repo: IInvoiceRepo) -> None:
        self.invoice_repo = invoice_repo

    @classmethod
    @inject
    def depends(
        cls, invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo])
    ) -> Self:
        return cls(invoice_repo=invoice_repo)

    @Logger.io
    async def execute(self, *, invoice_id: str, user_id: int, is_admin: bool = False) -> Invoice:
        invoice = await self.invoice_repo.get_by_id(invoice_id=invoice_id)
        if invoice is None:
            raise NotFoundError('Invoice not found')
        if invoice.user_id != user_id and not is_admin:
            raise ForbiddenError('Invoice belongs to another user')
        return invoice
