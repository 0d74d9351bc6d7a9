from typing import Optional

import attrs

from src.service.booking.domain.entity.invoice_entity import Invoice
from src.service.booking.domain.entity.show_time_entity import ShowTime


@attrs.define(frozen=True)
class InvoiceSummary:
    """An invoice with the showtime it was sold for (None if the catalog lost it)."""

    invoice: Invoice
    show_time: Optional[ShowTime] = None
