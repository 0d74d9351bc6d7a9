"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.app.command import (
    checkout_use_case,
    confirm_booking_use_case,
    create_payment_transaction_use_case,
    create_pending_invoice_use_case,
    disable_seats_use_case,
    expire_pending_invoices_use_case,
    finalize_invoice_use_case,
    handle_payment_result_use_case,
    hold_seats_use_case,
    release_seats_use_case,
    resolve_payment_return_use_case,
    sweep_expired_holds_use_case,
)
from src.service.booking.app.query import (
    get_invoice_use_case,
    get_seat_map_use_case,
    list_my_invoices_use_case,
    list_unreconciled_payments_use_case,
)
from src.service.booking.driving_adapter.background import hold_sweeper
from src.service.booking.driving_adapter.http_controller import payment_controller
from src.service.booking.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    hold_seats_use_case,
    release_seats_use_case,
    confirm_booking_use_case,
    disable_seats_use_case,
    sweep_expired_holds_use_case,
    create_payment_transaction_use_case,
    create_pending_invoice_use_case,
    finalize_invoice_use_case,
    handle_payment_result_use_case,
    resolve_payment_return_use_case,
    checkout_use_case,
    expire_pending_invoices_use_case,
    get_seat_map_use_case,
    get_invoice_use_case,
    list_my_invoices_use_case,
    list_unreconciled_payments_use_case,
    payment_controller,
    role_auth,
    hold_sweeper,
]
