"""
SQLAlchemy ORM models defining the database schema.
Core tables: children, action logs, settings, users, auth sessions and daily counters.
"""
from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text

from daycare_desk.data.database import Base


class Child(Base):
    """
    A daycare attendance record.

    Attributes:
        id: Opaque unique identifier (uuid4 string)
        name: Child's name
        daily_id: Sequence number unique within registered_on
        parent_phone: Primary guardian contact
        parent_phone2: Optional secondary contact
        pickup_time: Scheduled pickup time (HH:MM)
        status: 'active' or 'picked_up'
        registered_at: Creation timestamp
        registered_on: Calendar date the child was checked in on (configured timezone)
    """
    __tablename__ = "children"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    daily_id = Column(Integer, nullable=False)
    parent_phone = Column(Text, nullable=False)
    parent_phone2 = Column("parent_phone_2", Text, nullable=True)
    pickup_time = Column(String(8), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active, picked_up
    registered_at = Column(DateTime(timezone=True), nullable=False)
    registered_on = Column(Date, nullable=False, index=True)

    __table_args__ = (Index("ix_children_day_daily_id", "registered_on", "daily_id", unique=True),)


class ActionLog(Base):
    """
    Append-only record of a parent notification attempt.
    child_name is a snapshot taken when the log is written.
    """
    __tablename__ = "action_logs"

    id = Column(String(36), primary_key=True)
    child_id = Column(String(36), nullable=False, index=True)
    child_name = Column(Text, nullable=False)
    action_type = Column(String(40), nullable=False)  # emergency, child_wishes, pickup_time, ...
    parent_phone = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)


class Setting(Base):
    """Key/value configuration entry (webhook URL, message templates, last reset date)."""
    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    username = Column(String(150), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class AuthSession(Base):
    """Server-side half of a session token; deleting the row logs the token out."""
    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class DailyCounter(Base):
    """
    Last daily ID handed out for a calendar date.
    Owned by the daily identity allocator; incremented with a single upsert.
    """
    __tablename__ = "daily_counters"

    date = Column(String(10), primary_key=True)  # YYYY-MM-DD
    counter = Column(Integer, nullable=False, default=0)
