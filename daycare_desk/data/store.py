"""
Record store interface and its durable SQLAlchemy implementation.
The store is the only component that mutates persisted state; services hold no
writable copies across calls.
"""
import abc
import datetime
import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from daycare_desk.data import models
from daycare_desk.data.database import Base, build_session_factory
from daycare_desk.errors import ConflictError
from daycare_desk.schemas.records import ActionLog, AuthSession, Child, User

logger = logging.getLogger(__name__)


class RecordStore(abc.ABC):
    """
    Persistence contract shared by the durable and in-memory variants.
    Listing operations return records newest first.
    """

    #: False for stores whose contents are lost on restart and reset at rollover
    durable = True

    def initialize(self) -> None:
        """Prepare the backing storage (create tables, etc.)."""

    def discard_before(self, start_of_day: datetime.datetime) -> None:
        """Drop day-scoped records from before ``start_of_day`` (aware local midnight); durable stores keep history."""

    # Children
    @abc.abstractmethod
    def add_child(self, child: Child) -> Child:
        """
        Persist ``child`` under the next daily ID of its ``registered_on`` date
        and return the numbered copy. Allocation and insert commit together.
        """

    @abc.abstractmethod
    def get_child(self, child_id: str) -> Optional[Child]: ...

    @abc.abstractmethod
    def list_children(self, on_date: Optional[datetime.date] = None, status: Optional[str] = None) -> List[Child]: ...

    @abc.abstractmethod
    def set_child_status(self, child_id: str, status: str) -> Optional[Child]: ...

    # Action logs
    @abc.abstractmethod
    def add_action_log(self, log: ActionLog) -> ActionLog: ...

    @abc.abstractmethod
    def list_action_logs(self) -> List[ActionLog]: ...

    # Daily counter
    @abc.abstractmethod
    def next_daily_id(self, day: datetime.date) -> int:
        """Atomically increment and return the counter for ``day``, starting at 1."""

    # Settings
    @abc.abstractmethod
    def get_setting(self, key: str) -> Optional[str]: ...

    @abc.abstractmethod
    def list_settings(self) -> Dict[str, str]: ...

    @abc.abstractmethod
    def upsert_setting(self, key: str, value: str) -> None: ...

    # Users and sessions
    @abc.abstractmethod
    def add_user(self, user: User) -> User:
        """Persist a user; raises ConflictError when the username is taken."""

    @abc.abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abc.abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abc.abstractmethod
    def add_session(self, auth_session: AuthSession) -> AuthSession: ...

    @abc.abstractmethod
    def get_session(self, session_id: str) -> Optional[AuthSession]: ...

    @abc.abstractmethod
    def delete_session(self, session_id: str) -> None: ...


def _upsert_statement(dialect_name: str):
    if dialect_name == "sqlite":
        return sqlite.insert
    if dialect_name == "postgresql":
        return postgresql.insert
    raise ValueError(f"Unsupported database dialect: {dialect_name}")


class SqlRecordStore(RecordStore):
    """
    Durable store backed by SQLite or PostgreSQL.
    Every operation runs in its own short transaction.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._sessions = build_session_factory(engine)
        self._insert = _upsert_statement(engine.dialect.name)

    def initialize(self) -> None:
        Base.metadata.create_all(bind=self._engine)
        logger.info("Database ready at %s", self._engine.url.render_as_string(hide_password=True))

    def add_child(self, child: Child) -> Child:
        # A failed insert rolls the counter bump back with it
        with self._sessions.begin() as session:
            daily_id = session.execute(self._counter_statement(child.registered_on)).scalar_one()
            child = child.model_copy(update={"daily_id": daily_id})
            session.add(
                models.Child(
                    id=child.id,
                    name=child.name,
                    daily_id=child.daily_id,
                    parent_phone=child.parent_phone,
                    parent_phone2=child.parent_phone2,
                    pickup_time=child.pickup_time,
                    status=child.status,
                    registered_at=child.registered_at,
                    registered_on=child.registered_on,
                )
            )
        return child

    def get_child(self, child_id: str) -> Optional[Child]:
        with self._sessions() as session:
            row = session.get(models.Child, child_id)
            return Child.model_validate(row) if row else None

    def list_children(self, on_date: Optional[datetime.date] = None, status: Optional[str] = None) -> List[Child]:
        query = select(models.Child)
        if on_date is not None:
            query = query.where(models.Child.registered_on == on_date)
        if status is not None:
            query = query.where(models.Child.status == status)
        query = query.order_by(models.Child.registered_at.desc(), models.Child.daily_id.desc())
        with self._sessions() as session:
            return [Child.model_validate(row) for row in session.execute(query).scalars().all()]

    def set_child_status(self, child_id: str, status: str) -> Optional[Child]:
        with self._sessions.begin() as session:
            row = session.get(models.Child, child_id)
            if row is None:
                return None
            row.status = status
            session.flush()
            return Child.model_validate(row)

    def add_action_log(self, log: ActionLog) -> ActionLog:
        with self._sessions.begin() as session:
            session.add(models.ActionLog(**log.model_dump()))
        return log

    def list_action_logs(self) -> List[ActionLog]:
        query = select(models.ActionLog).order_by(models.ActionLog.timestamp.desc())
        with self._sessions() as session:
            return [ActionLog.model_validate(row) for row in session.execute(query).scalars().all()]

    def _counter_statement(self, day: datetime.date):
        # Single INSERT ... ON CONFLICT DO UPDATE ... RETURNING, never read-then-write
        return (
            self._insert(models.DailyCounter)
            .values(date=day.isoformat(), counter=1)
            .on_conflict_do_update(
                index_elements=[models.DailyCounter.date],
                set_={"counter": models.DailyCounter.counter + 1},
            )
            .returning(models.DailyCounter.counter)
        )

    def next_daily_id(self, day: datetime.date) -> int:
        with self._sessions.begin() as session:
            return session.execute(self._counter_statement(day)).scalar_one()

    def get_setting(self, key: str) -> Optional[str]:
        with self._sessions() as session:
            row = session.get(models.Setting, key)
            return row.value if row else None

    def list_settings(self) -> Dict[str, str]:
        with self._sessions() as session:
            rows = session.execute(select(models.Setting).order_by(models.Setting.key)).scalars().all()
            return {row.key: row.value for row in rows}

    def upsert_setting(self, key: str, value: str) -> None:
        statement = (
            self._insert(models.Setting)
            .values(key=key, value=value)
            .on_conflict_do_update(index_elements=[models.Setting.key], set_={"value": value})
        )
        with self._sessions.begin() as session:
            session.execute(statement)

    def add_user(self, user: User) -> User:
        try:
            with self._sessions.begin() as session:
                session.add(
                    models.User(
                        id=user.id,
                        username=user.username,
                        password_hash=user.password_hash,
                        created_at=user.created_at,
                    )
                )
        except IntegrityError as exc:
            raise ConflictError("Username already exists") from exc
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._sessions() as session:
            row = session.get(models.User, user_id)
            return User.model_validate(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        query = select(models.User).where(models.User.username == username)
        with self._sessions() as session:
            row = session.execute(query).scalar_one_or_none()
            return User.model_validate(row) if row else None

    def add_session(self, auth_session: AuthSession) -> AuthSession:
        with self._sessions.begin() as session:
            session.add(models.AuthSession(**auth_session.model_dump()))
        return auth_session

    def get_session(self, session_id: str) -> Optional[AuthSession]:
        with self._sessions() as session:
            row = session.get(models.AuthSession, session_id)
            return AuthSession.model_validate(row) if row else None

    def delete_session(self, session_id: str) -> None:
        with self._sessions.begin() as session:
            session.execute(delete(models.AuthSession).where(models.AuthSession.id == session_id))
