import datetime as dt

from sqlalchemy import Date, Integer, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.db_setting import Base


class ShowTimeModel(Base):
    """Catalog-owned; read only from this service."""

    __tablename__ = 'show_time'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    movie_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    movie_name: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    cinema_id: Mapped[int] = mapped_column(Integer, nullable=False)
    screen_room_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
