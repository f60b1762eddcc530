"""
Checkins Backend — Checkin SQLAlchemy Model
=============================================

What:  ORM model for the `checkins` table.
Who:   Used by CheckinRepository for inserts and reads, and by
       ConnectionPool.create_schema() to create the table.

Table Design Rationale:
    - id: Integer primary key assigned by the database (SERIAL)
    - gps: One PostgreSQL POINT, x = gps[0], y = gps[1], in the order the
      client sent them. Stored as a single value so the pair cannot drift
      apart or be swapped between columns.
    - missing_goods: TEXT[] in PostgreSQL (JSON on SQLite, used by tests)
    - created_at: Assigned by the database at insert time (UTC), never by
      the caller; fetched back in the same INSERT via eager_defaults.

    Index on created_at DESC:
        The read path always asks for the most recent check-in first.
"""

from datetime import datetime
from typing import Any, List, Optional, Sequence

from sqlalchemy import ARRAY, JSON, DateTime, Index, Integer, String, Text, text
from sqlalchemy.types import TypeDecorator, UserDefinedType
from sqlalchemy.orm import Mapped, mapped_column

from checkins.database import Base


class _PgPoint(UserDefinedType):
    """The PostgreSQL geometric `point` type."""

    cache_ok = True

    def get_col_spec(self, **kw: Any) -> str:
        return "POINT"


class PointType(TypeDecorator):
    """
    A coordinate pair stored as a single point value.

    Python side: a two-element sequence `[x, y]` (returned as a list).
    PostgreSQL:  native POINT. asyncpg takes and returns tuples; other
                 drivers exchange the text form "(x,y)".
    Elsewhere:   the text form "(x,y)" in a VARCHAR column.

    The axis order is never changed: x is always the first element.
    """

    impl = String(64)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(_PgPoint())
        return dialect.type_descriptor(String(64))

    def process_bind_param(self, value: Optional[Sequence[float]], dialect) -> Any:
        if value is None:
            return None
        x, y = (float(v) for v in value)
        if dialect.name == "postgresql" and dialect.driver == "asyncpg":
            return (x, y)
        return f"({x!r},{y!r})"

    def process_result_value(self, value: Any, dialect) -> Optional[List[float]]:
        if value is None:
            return None
        if isinstance(value, str):
            x, y = value.strip().strip("()").split(",")
            return [float(x), float(y)]
        # asyncpg.types.Point is a tuple subclass
        x, y = value
        return [float(x), float(y)]


class Checkin(Base):
    """
    One reported check-in: a user at a location with a crowding level.

    Lifecycle:
        Inserted once by POST /v1/checkins; never updated or deleted.
        Read back only through GET /v1/checkins.
    """

    __tablename__ = "checkins"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    gps: Mapped[List[float]] = mapped_column(
        PointType(),
        nullable=False,
        comment="Coordinate pair as received: x = gps[0], y = gps[1]",
    )

    location_name: Mapped[str] = mapped_column(Text, nullable=False)

    # No range is enforced; clients define the scale
    crowded_level: Mapped[int] = mapped_column(Integer, nullable=False)

    user_id: Mapped[str] = mapped_column(Text, nullable=False)

    client_id: Mapped[str] = mapped_column(Text, nullable=False)

    missing_goods: Mapped[List[str]] = mapped_column(
        ARRAY(Text).with_variant(JSON(), "sqlite"),
        nullable=False,
        comment="Names of goods reported missing; may be empty",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this check-in was stored (UTC)",
    )

    __table_args__ = (
        Index("idx_checkins_created_at", created_at.desc()),
    )

    # Fetch server-generated id/created_at in the INSERT itself (RETURNING)
    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return (
            f"<Checkin(id={self.id}, location_name='{self.location_name}', "
            f"created_at='{self.created_at}')>"
        )
