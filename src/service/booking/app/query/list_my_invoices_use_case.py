from typing import Dict, List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto import InvoiceSummary
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_show_time_query_repo import IShowTimeQueryRepo
from src.service.booking.domain.entity.show_time_entity import ShowTime


class ListMyInvoicesUseCase:
    def __init__(
        self, *, invoice_repo: IInvoiceRepo, show_time_query_repo: IShowTimeQueryRepo
    ) -> None:
        self.invoice_repo = invoice_repo
        self.show_time_query_repo = show_time_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo]),
        show_time_query_repo: IShowTimeQueryRepo = Depends(
            Provide[Container.show_time_query_repo]
        ),
    ) -> Self:
        return cls(invoice_repo=invoice_repo, show_time_query_repo=show_time_query_repo)

    @Logger.io
    async def execute(self, *, user_id: int) -> List[InvoiceSummary]:
        invoices = await self.invoice_repo.list_by_user(user_id=user_id)

        show_times: Dict[int, Optional[ShowTime]] = {}
        for invoice in invoices:
            if invoice.show_time_id not in show_times:
                show_times[invoice.show_time_id] = await self.show_time_query_repo.get_by_id(
                    show_time_id=invoice.show_time_id
                )
        return [
            InvoiceSummary(invoice=invoice, show_time=show_times[invoice.show_time_id])
            for invoice in invoices
        ]
