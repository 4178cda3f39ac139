"""
Configuration partagée pour tous les tests.

- `client` : override de get_gateway par un MagicMock, aucune connexion réelle.
- `local_store` / `remote_store` : vraies bases SQLite en mémoire (StaticPool),
  pour tester les upserts, contraintes d'unicité et le last-write-wins.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import MagicMock

import rolecaller.models  # noqa: F401
from rolecaller.config import settings
from rolecaller.database import Base
from rolecaller.dependencies import get_gateway
from rolecaller.main import app
from rolecaller.models.school import School
from rolecaller.models.school_class import SchoolClass
from rolecaller.models.student import Student
from rolecaller.services.connectivity import ConnectivityOracle
from rolecaller.services.local_store import LocalStore
from rolecaller.services.remote_store import RemoteStore


def make_sqlite_engine():
    """Base SQLite en mémoire partagée par toutes les sessions du test."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def gateway_mock():
    gateway = MagicMock()
    gateway.restore_session.return_value = None
    return gateway


@pytest.fixture
def client(gateway_mock, monkeypatch):
    """Client HTTP de test avec la façade mockée et le scheduler désactivé."""
    monkeypatch.setattr(settings, "SCHEDULER_ENABLED", False)
    app.dependency_overrides[get_gateway] = lambda: gateway_mock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def local_store():
    """Cache local initialisé sur une base SQLite en mémoire."""
    engine = make_sqlite_engine()
    store = LocalStore(session_factory=sessionmaker(bind=engine), engine=engine)
    store.init()
    yield store
    engine.dispose()


@pytest.fixture
def remote_session_factory():
    """Base « distante » : mêmes modèles que PostgreSQL, sur SQLite en mémoire."""
    engine = make_sqlite_engine()
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def remote_store(remote_session_factory):
    return RemoteStore(session_factory=remote_session_factory)


@pytest.fixture
def online():
    return ConnectivityOracle(probe=lambda: True)


@pytest.fixture
def offline():
    return ConnectivityOracle(probe=lambda: False, initial=False)


def seed_remote(session_factory, school_id="s1", classes=(("c1", "1A"),), students=(("st1", "c1", "Alice"),)):
    """Insère une école, ses classes et ses élèves dans la base distante de test."""
    db = session_factory()
    try:
        db.add(School(
            id=school_id, name="École du Centre", email="centre@ecole.be",
            password="secret", created_at=datetime(2026, 9, 1),
        ))
        for class_id, name in classes:
            db.add(SchoolClass(id=class_id, school_id=school_id, name=name, created_at=datetime(2026, 9, 1)))
        for student_id, class_id, name in students:
            db.add(Student(
                id=student_id, school_id=school_id, class_id=class_id, name=name,
                created_at=datetime(2026, 9, 1),
            ))
        db.commit()
    finally:
        db.close()
