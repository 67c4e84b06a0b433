"""SQLAlchemy table metadata for pushsync persistence."""

from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Column, Index, Integer, MetaData, String, Table

metadata = MetaData()

preference_table = Table(
    "preferences",
    metadata,
    Column("key", String, primary_key=True),
    Column("value", JSON, nullable=True),
)

schedule_table = Table(
    "schedules",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("message_id", String, nullable=False),
    Column("source", String, nullable=False),
    Column("message", JSON, nullable=False),
    Column("audience", JSON, nullable=True),
    Column("triggers", JSON, nullable=False),
    Column("start", BigInteger, nullable=True),
    Column("end", BigInteger, nullable=True),
    Column("priority", Integer, nullable=False, default=0),
    Column("limit", Integer, nullable=False, default=1),
    Column("metadata", JSON, nullable=False),
    Column("created_at", BigInteger, nullable=False),
    Column("updated_at", BigInteger, nullable=False),
    Index("ix_schedules_message_id", "message_id"),
)

