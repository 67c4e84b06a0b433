"""Key/value store backed by the ``preferences`` table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from pushsync.adapters.sqlalchemy.mappings import preference_table

from .session import session_factory as default_session_factory

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.orm import Session, sessionmaker

    from pushsync.domain.ports import JsonValue


class SqlAlchemyPreferenceStore:
    """``Store`` implementation; each call commits before it returns."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory or default_session_factory()

    def get_long(self, key: str, default: int) -> int:
        value = self.get_json(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value

    def put_long(self, key: str, value: int) -> None:
        self.put_json(key, value)

    def get_json(self, key: str, default: JsonValue = None) -> JsonValue:
        with self.session_factory() as session:
            row = session.execute(
                select(preference_table.c.value).where(preference_table.c.key == key)
            ).one_or_none()
        if row is None or row.value is None:
            return default
        return row.value

    def put_json(self, key: str, value: JsonValue) -> None:
        self.put_many({key: value})

    def put_many(self, values: Mapping[str, JsonValue]) -> None:
        with self.session_factory.begin() as session:
            for key, value in values.items():
                self._upsert(session, key, value)

    def keys(self) -> list[str]:
        with self.session_factory() as session:
            return list(
                session.execute(select(preference_table.c.key).order_by(preference_table.c.key))
                .scalars()
                .all()
            )

    @staticmethod
    def _upsert(session: Session, key: str, value: JsonValue) -> None:
        exists = session.execute(
            select(preference_table.c.key).where(preference_table.c.key == key)
        ).first()
        if exists is None:
            session.execute(insert(preference_table).values(key=key, value=value))
        else:
            session.execute(
                update(preference_table).where(preference_table.c.key == key).values(value=value)
            )
