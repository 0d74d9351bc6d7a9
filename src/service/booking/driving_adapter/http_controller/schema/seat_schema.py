from datetime import datetime
from typing import List, Optional

from pydantic import Field

from src.service.booking.domain.entity.reservation_session_entity import ReservationSession
from src.service.booking.domain.entity.seat_entity import Seat
from src.service.booking.driving_adapter.http_controller.schema.common_schema import CamelModel


class SeatResponse(CamelModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': 11,
                'code': 'A1',
                'price': 75000,
                'seatType': 'STANDARD',
                'status': 'AVAILABLE',
            }
        },
    }

    id: int
    code: str
    price: int
    seat_type: str
    status: str

    @classmethod
    def from_entity(cls, seat: Seat) -> 'SeatResponse':
        return cls(
            id=seat.id,
            code=seat.code,
            price=seat.price,
            seat_type=seat.seat_type,
            status=seat.status.value,
        )


class HoldSeatsRequest(CamelModel):
    model_config = {
        'json_schema_extra': {'example': {'seatIds': [11, 12], 'ttlSeconds': 600}},
    }

    seat_ids: List[int] = Field(min_length=1)
    session_id: Optional[str] = None
    ttl_seconds: Optional[int] = Field(default=None, gt=0)


class ReleaseSeatsRequest(CamelModel):
    seat_ids: List[int] = Field(min_length=1)
    session_id: str = Field(min_length=1)


class DisableSeatsRequest(CamelModel):
    seat_ids: List[int] = Field(min_length=1)


class ReservationSessionResponse(CamelModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'showtimeId': 1,
                'sessionId': '0193a2f07c2e7d35b1f2c3d4e5f60718',
                'seatIds': [11, 12],
                'seatCodes': ['A1', 'A2'],
                'amount': 150000,
                'holdExpiry': '2025-01-10T10:40:00Z',
            }
        },
    }

    show_time_id: int = Field(alias='showtimeId')
    session_id: str
    seat_ids: List[int]
    seat_codes: List[str]
    amount: int
    hold_expiry: Optional[datetime] = None

    @classmethod
    def from_session(cls, session: ReservationSession) -> 'ReservationSessionResponse':
        return cls(
            show_time_id=session.show_time_id,
            session_id=session.session_id,
            seat_ids=session.selected_seat_ids,
            seat_codes=[session.seat_codes[seat_id] for seat_id in session.selected_seat_ids],
            amount=session.amount,
            hold_expiry=session.hold_expiry,
        )


class SeatChangeResponse(CamelModel):
    seat_ids: List[int]
