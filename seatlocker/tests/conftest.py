from __future__ import annotations

from pathlib import Path

import pytest

from seatlocker.core.entities.identity import Identity
from seatlocker.infrastructure.database import make_engine, make_session_factory
from seatlocker.infrastructure.repositories.assignment_repository_sql_impl import SqlAssignmentRepositoryImpl
from seatlocker.tests.fakes import NAMESPACE, FakeLockerGateway, FakeProfileRepository


@pytest.fixture()
def session_factory():
    return make_session_factory(make_engine("sqlite+pysqlite:///:memory:"))


@pytest.fixture()
def assignment_repo(session_factory) -> SqlAssignmentRepositoryImpl:
    return SqlAssignmentRepositoryImpl(session_factory, namespace=NAMESPACE)


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "seatlocker.db"


@pytest.fixture()
def gateway() -> FakeLockerGateway:
    return FakeLockerGateway()


@pytest.fixture()
def profile_repo() -> FakeProfileRepository:
    return FakeProfileRepository()


@pytest.fixture()
def alice() -> Identity:
    return Identity(external_id="uid-alice", display_name="Alice (Google)", email="alice@gmail.example")


@pytest.fixture()
def bob() -> Identity:
    return Identity(external_id="uid-bob", display_name="Bob", email="bob@example.com")
