import datetime as dt

import attrs


@attrs.define
class ShowTime:
    """Read-only input owned by the catalog."""

    id: int
    movie_id: int
    cinema_id: int
    screen_room_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    movie_name: str = ''
