"""
Request and response bodies for the HTTP API.
Required fields are declared Optional so the services can report missing
values with the same validation error as blank ones.
"""
from typing import List, Optional

from pydantic import BaseModel

from daycare_desk.schemas.records import Child, Record, User


class Credentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SessionResponse(Record):
    token: str
    user: User


class ChildCreate(Record):
    name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_phone2: Optional[str] = None
    pickup_time: Optional[str] = None


class ActionCreate(Record):
    child_id: Optional[str] = None
    child_name: Optional[str] = None
    action_type: Optional[str] = None
    parent_phone: Optional[str] = None
    message: Optional[str] = None


class NotifyRequest(Record):
    action_type: Optional[str] = None
    message: Optional[str] = None


class NotificationRequest(Record):
    phone: Optional[str] = None
    message: Optional[str] = None
    child_name: Optional[str] = None


class NotificationResponse(Record):
    success: bool
    timestamp: str


class SettingUpdate(BaseModel):
    value: str = ""


class SummaryResponse(Record):
    date: str
    active_count: int
    picked_up_count: int
    upcoming_pickups: List[Child]
