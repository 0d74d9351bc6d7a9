import attrs


@attrs.define(frozen=True)
class CheckoutResult:
    txn_ref: str
    payment_url: str
    invoice_id: str
    amount: int
