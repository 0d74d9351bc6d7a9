"""Payment result obtained from a trusted provider channel."""

from typing import Optional

import attrs


@attrs.define(frozen=True)
class ProviderPaymentResult:
    """
    Either carried by a signature-verified redirect/IPN or fetched from the
    provider's transaction query. `amount` is in currency units.
    """

    response_code: str
    amount: Optional[int] = None
