import datetime
from pydantic import BaseModel
from tably.schemas.entry import CamelModel


class LoginRequest(BaseModel):
    username: str
    password: str


class Stats(CamelModel):
    total_customers: int
    total_visits: int


class DayStats(CamelModel):
    date: datetime.date
    total: int
    accepted: int
    cancelled: int
    avg_wait_time: float
