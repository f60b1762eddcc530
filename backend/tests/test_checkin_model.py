"""
Checkins Backend — Checkin Model Tests
========================================

What:  Tests for the POINT column type and the checkins table DDL.
Why:   The coordinate pair must survive storage in the order it was sent,
       whichever driver the database is reached through.
"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.dialects.postgresql.asyncpg import PGDialect_asyncpg
from sqlalchemy.schema import CreateTable

from checkins.models.checkin import Checkin, PointType


class TestPointType:
    """Bind/result conversion for PointType."""

    def setup_method(self):
        self.point = PointType()
        self.asyncpg = PGDialect_asyncpg()
        self.pg_text = postgresql.dialect()
        self.sqlite = sqlite.dialect()

    def test_bind_asyncpg_uses_tuple(self):
        assert self.point.process_bind_param([1.1, 2.2], self.asyncpg) == (1.1, 2.2)

    def test_bind_text_form(self):
        assert self.point.process_bind_param((1.1, 2.2), self.sqlite) == "(1.1,2.2)"
        assert self.point.process_bind_param((1.1, 2.2), self.pg_text) == "(1.1,2.2)"

    def test_bind_none(self):
        assert self.point.process_bind_param(None, self.sqlite) is None

    def test_result_from_text(self):
        assert self.point.process_result_value("(1.1,2.2)", self.sqlite) == [1.1, 2.2]
        assert self.point.process_result_value(" (-3,4.5) ", self.pg_text) == [-3.0, 4.5]

    def test_result_from_native_point(self):
        # asyncpg returns a tuple subclass
        assert self.point.process_result_value((2.2, 1.1), self.asyncpg) == [2.2, 1.1]

    def test_result_none(self):
        assert self.point.process_result_value(None, self.sqlite) is None

    def test_text_round_trip_keeps_order(self):
        stored = self.point.process_bind_param([0.1, -179.9999], self.sqlite)
        assert self.point.process_result_value(stored, self.sqlite) == [0.1, -179.9999]


class TestCheckinTable:
    """DDL for the checkins table."""

    def test_postgresql_ddl(self):
        ddl = str(CreateTable(Checkin.__table__).compile(dialect=postgresql.dialect()))

        assert "gps POINT NOT NULL" in ddl
        assert "missing_goods TEXT[] NOT NULL" in ddl
        assert "created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP NOT NULL" in ddl
        assert "SERIAL" in ddl

    def test_sqlite_ddl(self):
        ddl = str(CreateTable(Checkin.__table__).compile(dialect=sqlite.dialect()))

        assert "gps VARCHAR(64) NOT NULL" in ddl
        assert "missing_goods JSON NOT NULL" in ddl

    def test_caller_never_sets_id_or_timestamp(self):
        checkin = Checkin(
            gps=[1.0, 2.0],
            location_name="x",
            crowded_level=1,
            user_id="u",
            client_id="c",
            missing_goods=[],
        )
        assert checkin.id is None
        assert checkin.created_at is None
