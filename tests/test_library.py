"""Tests for the Library composition root."""

import pytest

from medialend.catalog import DuplicateItemError, MediaItemCreate, MediaType
from medialend.library import Library
from medialend.notify import SmtpMailer
from medialend.users import User, UserDirectory

from conftest import FakeClock


@pytest.fixture
def library(db, library_config) -> Library:
    users = UserDirectory([User(username="alice", email="alice@example.com")])
    return Library(db=db, config=library_config, users=users, clock=FakeClock())


class TestAddItem:
    """Tests for cataloguing items with copies."""

    def test_add_book(self, library: Library):
        item = library.add_item(
            MediaItemCreate(title="Dune", author="Frank Herbert", identifier="B1"), copies=3
        )

        assert item.available
        assert [c.copy_id for c in library.copies.copies_for("B1")] == ["B1-1", "B1-2", "B1-3"]

    def test_add_cd(self, library: Library):
        item = library.add_item(
            MediaItemCreate(
                title="Kind of Blue", author="Miles Davis", identifier="C1", media_type=MediaType.CD
            )
        )
        assert item.media_type == MediaType.CD
        assert library.copies.available_count("C1") == 1

    def test_copies_must_be_positive(self, library: Library):
        with pytest.raises(ValueError):
            library.add_item(MediaItemCreate(title="Dune", author="Frank Herbert", identifier="B1"), 0)
        assert len(library.catalog) == 0

    def test_duplicate_across_types(self, library: Library):
        library.add_item(MediaItemCreate(title="Dune", author="Frank Herbert", identifier="X1"))

        with pytest.raises(DuplicateItemError):
            library.add_item(
                MediaItemCreate(
                    title="Blue", author="Joni Mitchell", identifier="x1", media_type=MediaType.CD
                )
            )


class TestWiring:
    """Tests for how the library assembles its parts."""

    def test_login(self, library: Library):
        assert library.login("alice").email == "alice@example.com"
        assert library.lending.current_user.username == "alice"

    def test_login_unknown(self, library: Library):
        assert library.login("mallory") is None
        assert library.lending.current_user is None

    def test_reload_keeps_user_and_data(self, library: Library):
        library.add_item(MediaItemCreate(title="Dune", author="Frank Herbert", identifier="B1"))
        library.login("alice")
        catalog = library.catalog

        library.reload()

        assert library.catalog is not catalog
        assert library.catalog.find_by_identifier("B1") is not None
        assert library.lending.current_user.username == "alice"

    def test_waiting_list_enabled_by_default(self, library: Library):
        assert library.hub is not None
        assert library.lending.hub is library.hub

    def test_waiting_list_disabled(self, db, library_config):
        library = Library(db=db, config=library_config, users=UserDirectory(), notify_waiting=False)
        assert library.hub is None
        assert library.lending.hub is None

    def test_no_mailer_without_credentials(self, library: Library):
        assert library.mailer is None

    def test_mailer_from_config(self, db, library_config):
        library_config.email_username = "library@example.com"
        library_config.email_password = "secret"

        library = Library(db=db, config=library_config, users=UserDirectory())
        assert isinstance(library.mailer, SmtpMailer)
        assert library.mailer.host == "smtp.example.com"

    def test_users_read_from_config(self, db, library_config):
        library_config.users_path.write_text("bob;pw;customer;;\n", encoding="utf-8")

        library = Library(db=db, config=library_config)
        assert library.login("bob") is not None
