from typing import List

from fastapi import APIRouter, Depends, Path
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.disable_seats_use_case import DisableSeatsUseCase
from src.service.booking.app.command.hold_seats_use_case import HoldSeatsUseCase
from src.service.booking.app.command.release_seats_use_case import ReleaseSeatsUseCase
from src.service.booking.app.query.get_seat_map_use_case import GetSeatMapUseCase
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import AuthenticatedUser
from src.service.booking.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
    require_admin,
)
from src.service.booking.driving_adapter.http_controller.schema.common_schema import (
    ApiResponse,
    ok,
)
from src.service.booking.driving_adapter.http_controller.schema.seat_schema import (
    DisableSeatsRequest,
    HoldSeatsRequest,
    ReleaseSeatsRequest,
    ReservationSessionResponse,
    SeatChangeResponse,
    SeatResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get('/{show_time_id}')
@Logger.io
async def get_seat_map(
    show_time_id: int = Path(gt=0),
    use_case: GetSeatMapUseCase = Depends(GetSeatMapUseCase.depends),
) -> ApiResponse[List[SeatResponse]]:
    """Seat map snapshot; expired holds are reported as AVAILABLE."""
    seats = await use_case.execute(show_time_id=show_time_id)
    return ok([SeatResponse.from_entity(seat) for seat in seats])


@router.post('/{show_time_id}/hold')
@Logger.io
async def hold_seats(
    request: HoldSeatsRequest,
    show_time_id: int = Path(gt=0),
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: HoldSeatsUseCase = Depends(HoldSeatsUseCase.depends),
) -> ApiResponse[ReservationSessionResponse]:
    with tracer.start_as_current_span('controller.hold_seats') as span:
        span.set_attribute('user.id', current_user.id)
        session = await use_case.execute(
            show_time_id=show_time_id,
            seat_ids=request.seat_ids,
            session_id=request.session_id,
            ttl_seconds=request.ttl_seconds,
        )
        span.set_attribute('reservation.session_id', session.session_id)
        return ok(ReservationSessionResponse.from_session(session))


@router.post('/{show_time_id}/release')
@Logger.io
async def release_seats(
    request: ReleaseSeatsRequest,
    show_time_id: int = Path(gt=0),
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: ReleaseSeatsUseCase = Depends(ReleaseSeatsUseCase.depends),
) -> ApiResponse[SeatChangeResponse]:
    released = await use_case.execute(
        show_time_id=show_time_id, seat_ids=request.seat_ids, session_id=request.session_id
    )
    return ok(SeatChangeResponse(seat_ids=[seat.id for seat in released]))


@router.post('/{show_time_id}/disable')
@Logger.io
async def disable_seats(
    request: DisableSeatsRequest,
    show_time_id: int = Path(gt=0),
    current_user: AuthenticatedUser = Depends(require_admin),
    use_case: DisableSeatsUseCase = Depends(DisableSeatsUseCase.depends),
) -> ApiResponse[SeatChangeResponse]:
    disabled = await use_case.execute(show_time_id=show_time_id, seat_ids=request.seat_ids)
    return ok(SeatChangeResponse(seat_ids=[seat.id for seat in disabled]))
