"""Tests for the database connection manager."""

import pytest
from sqlalchemy import inspect

from medialend.catalog.models import CatalogEntry
from medialend.db.sqlite import Database, get_db, reset_db

TABLES = {"catalog_items", "media_copies", "loans"}


class TestDatabase:
    """Tests for opening, creating and dropping the schema."""

    def test_memory_database(self):
        assert Database(":memory:").is_memory

    def test_file_database_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "library.db"

        db = Database(str(path))
        assert not db.is_memory
        assert path.parent.is_dir()

    def test_create_and_drop_tables(self):
        db = Database(":memory:")
        db.create_tables()
        assert TABLES <= set(inspect(db.engine).get_table_names())

        db.drop_tables()
        assert not TABLES & set(inspect(db.engine).get_table_names())

    def test_session_rolls_back_on_error(self, db: Database):
        with pytest.raises(RuntimeError):
            with db.get_session() as session:
                session.add(
                    CatalogEntry(
                        key="b1",
                        identifier="B1",
                        media_type="book",
                        title="Dune",
                        author="Frank Herbert",
                    )
                )
                session.flush()
                raise RuntimeError("write interrupted")

        with db.get_session() as session:
            assert session.get(CatalogEntry, "b1") is None

    def test_global_instance(self, tmp_path):
        first = get_db(str(tmp_path / "library.db"))
        assert get_db() is first

        reset_db()
        assert get_db(str(tmp_path / "other.db")) is not first
