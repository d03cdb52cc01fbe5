"""Tests for SQLAlchemy ORM schema.

Covers:
- All tables are created
- Schema version recorded by init_db
- RefRow and IndexEntryRow composite PKs
- FileMode enum round-trip
- Indexes exist on expected columns
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import insert, inspect, select
from sqlalchemy.exc import IntegrityError

from arbor.models.objects import FileMode
from arbor.storage.engine import SCHEMA_VERSION, create_arbor_engine, init_db
from arbor.storage.schema import ArborMetaRow, IndexEntryRow, ObjectRow, RefRow


class TestTableCreation:
    def test_all_tables_exist(self, engine):
        """Verify all expected tables are created."""
        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())
        expected = {"objects", "refs", "index_entries", "_arbor_meta"}
        assert expected <= table_names, f"Missing tables: {expected - table_names}"

    def test_meta_has_schema_version(self, session):
        """Schema version should be set by init_db."""
        row = session.execute(
            select(ArborMetaRow).where(ArborMetaRow.key == "schema_version")
        ).scalar_one_or_none()
        assert row is not None
        assert row.value == SCHEMA_VERSION

    def test_init_db_is_idempotent(self, tmp_path):
        eng = create_arbor_engine(str(tmp_path / "arbor.db"))
        init_db(eng)
        init_db(eng)
        with eng.connect() as conn:
            rows = conn.execute(select(ArborMetaRow)).all()
        assert len(rows) == 1
        eng.dispose()

    def test_file_engine_applies_pragmas(self, tmp_path):
        eng = create_arbor_engine(str(tmp_path / "arbor.db"))
        with eng.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA journal_mode").scalar() == "wal"
            assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == 5000
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1
        eng.dispose()

    def test_url_overrides_path(self, tmp_path):
        eng = create_arbor_engine(str(tmp_path / "unused.db"), url="sqlite://")
        init_db(eng)
        assert not (tmp_path / "unused.db").exists()
        eng.dispose()

    def test_objects_type_index(self, engine):
        indexes = {ix["name"] for ix in inspect(engine).get_indexes("objects")}
        assert "ix_objects_type" in indexes


class TestObjectRow:
    def test_round_trip(self, session):
        session.add(
            ObjectRow(
                object_hash="a" * 40,
                object_type="blob",
                size=3,
                data=b"\x00\x01\x02",
                created_at=datetime.now(timezone.utc),
            )
        )
        session.flush()
        row = session.get(ObjectRow, "a" * 40)
        assert row.data == b"\x00\x01\x02"
        assert row.size == 3


class TestRefRow:
    def test_composite_pk_allows_same_name_in_two_repos(self, session):
        session.add(RefRow(repo_id="r1", ref_name="HEAD", symbolic_target="refs/heads/main"))
        session.add(RefRow(repo_id="r2", ref_name="HEAD", commit_hash="b" * 40))
        session.flush()
        assert session.get(RefRow, ("r2", "HEAD")).commit_hash == "b" * 40

    def test_duplicate_pk_rejected(self, session):
        values = {"repo_id": "r1", "ref_name": "refs/heads/main", "commit_hash": "a" * 40}
        session.execute(insert(RefRow).values(**values))
        with pytest.raises(IntegrityError):
            session.execute(insert(RefRow).values(**values))


class TestIndexEntryRow:
    def test_mode_enum_round_trip(self, session):
        session.add(
            IndexEntryRow(
                repo_id="r1",
                path="bin/run",
                mode=FileMode.EXECUTABLE,
                content_hash="c" * 40,
                updated_at=datetime.now(timezone.utc),
            )
        )
        session.flush()
        session.expire_all()
        row = session.get(IndexEntryRow, ("r1", "bin/run"))
        assert row.mode is FileMode.EXECUTABLE
