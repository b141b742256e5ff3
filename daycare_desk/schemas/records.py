"""
Domain records returned by every store variant and serialized by the API.
Wire names are camelCase; Python attributes stay snake_case.
"""
import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CHILD_ACTIVE = "active"
CHILD_PICKED_UP = "picked_up"
CHILD_STATUSES = (CHILD_ACTIVE, CHILD_PICKED_UP)


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_validator("*")
    @classmethod
    def utc_timestamps(cls, value):
        # SQLite hands back naive values; every record holds aware UTC timestamps
        if isinstance(value, datetime.datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=datetime.timezone.utc)
            return value.astimezone(datetime.timezone.utc)
        return value


class Child(Record):
    id: str
    name: str
    daily_id: int
    parent_phone: str
    parent_phone2: Optional[str] = None
    pickup_time: str
    status: str = CHILD_ACTIVE
    registered_at: datetime.datetime
    registered_on: Optional[datetime.date] = Field(default=None, exclude=True)


class ActionLog(Record):
    id: str
    child_id: str
    child_name: str
    action_type: str
    parent_phone: str
    message: str
    timestamp: datetime.datetime


class User(Record):
    id: str
    username: str
    password_hash: str = Field(default="", exclude=True, repr=False)
    created_at: datetime.datetime


class AuthSession(Record):
    id: str
    user_id: str
    created_at: datetime.datetime
