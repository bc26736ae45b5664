import os
from datetime import date

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from appointmentcare.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from appointmentcare.dependencies import get_db  # noqa: E402
from appointmentcare.main import app  # noqa: E402
from appointmentcare.models.doctor import Doctor  # noqa: E402
from appointmentcare.models.lookups import Genre, Neighbourhood, Speciality  # noqa: E402
from appointmentcare.models.patient import Patient  # noqa: E402
from appointmentcare.models import appointment  # noqa: E402,F401
from appointmentcare.store import AppointmentStore  # noqa: E402


def seed_reference_data(db) -> None:
    db.add_all([
        Speciality(id=1, name='Cardiology'),
        Speciality(id=2, name='Dermatology'),
        Genre(id=1, name='Female'),
        Neighbourhood(id=1, name='Centro'),
    ])
    db.flush()
    db.add_all([
        Doctor(id=5, name='Ana Souza', crm='12345-SP', speciality_id=1),
        Doctor(id=7, name='Bruno Lima', crm='67890-SP', speciality_id=2),
        Patient(id=3, name='Carla Dias', birth_date=date(1990, 4, 2), phone='11999990000', genre_id=1, neighbourhood_id=1),
        Patient(id=4, name='Davi Rocha', genre_id=1, neighbourhood_id=1),
    ])
    db.commit()


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    seed_db = testing_session_local()
    try:
        seed_reference_data(seed_db)
    finally:
        seed_db.close()

    return testing_session_local


@pytest.fixture
def appointment_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(appointment_db):
    return AppointmentStore(appointment_db)


@pytest.fixture
def client(session_factory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('appointmentcare.dependencies.ensure_database_ready', lambda: None)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
