from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, StrictInt, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from tably.configs import MAX_PARTY_SIZE, PHONE_DIGITS
from tably.core.models import StatusEnum


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class JoinRequest(CamelModel):
    name: str
    phone_number: str
    number_of_people: StrictInt

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("value_error", "Name is required")
        return value

    @field_validator("phone_number")
    @classmethod
    def phone_digits(cls, value: str) -> str:
        value = value.strip()
        if len(value) != PHONE_DIGITS:
            raise PydanticCustomError(
                "value_error", f"Phone number must be exactly {PHONE_DIGITS} digits")
        if not (value.isascii() and value.isdigit()):
            raise PydanticCustomError(
                "value_error", "Phone number must only contain digits")
        return value

    @field_validator("number_of_people")
    @classmethod
    def party_size(cls, value: int) -> int:
        if value < 1:
            raise PydanticCustomError("value_error", "At least 1 person required")
        if value > MAX_PARTY_SIZE:
            raise PydanticCustomError("value_error", f"Maximum {MAX_PARTY_SIZE} people")
        return value


class QueueEntry(CamelModel):
    id: int
    name: str
    phone_number: str
    number_of_people: int
    position: int
    status: StatusEnum
    created_at: datetime
    called_at: Optional[datetime] = None
    visit_count: int = 1

    @field_serializer("created_at", "called_at")
    def as_utc(self, value: Optional[datetime]):
        # Stored timestamps are naive UTC; emit them with an explicit offset
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class JoinResponse(QueueEntry):
    is_existing: bool = False
    is_re_used: bool = False


class Position(CamelModel):
    position: int
    total_waiting: int
