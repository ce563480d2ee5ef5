"""Durable key-value storage shared by the MindEase services."""
import json
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from .models import Setting

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Minimal string key-value contract the services depend on."""

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def contains(self, key: str) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Corrupt value stored under '{key}'") from e

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))


class SqlKeyValueStore(KeyValueStore):
    """KeyValueStore backed by the ``settings`` table.

    Every call runs in its own short transaction, so one instance can be
    shared between the event thread, the reporter and API handlers.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        try:
            with self.session_factory() as session:
                row = session.query(Setting).filter_by(key=key).one_or_none()
                return row.value if row is not None else default
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}'") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as session, session.begin():
                row = session.query(Setting).filter_by(key=key).one_or_none()
                if row is None:
                    session.add(Setting(key=key, value=value))
                else:
                    row.value = value
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write '{key}'") from e
        logger.debug("Stored setting %s", key)

    def contains(self, key: str) -> bool:
        try:
            with self.session_factory() as session:
                return session.query(Setting.id).filter_by(key=key).first() is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}'") from e

    def delete(self, key: str) -> None:
        try:
            with self.session_factory() as session, session.begin():
                session.query(Setting).filter_by(key=key).delete()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete '{key}'") from e
