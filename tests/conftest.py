# tests/conftest.py
import os

# Settings are read on first import of the package
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BOOTSTRAP_ADMIN_EMAILS", "admin@mail.com")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SEED_SAMPLE_DATA", "false")

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from healthconnect import crud, models, schemas
from healthconnect.database import Base, get_db
from healthconnect.main import app

ADMIN_EMAIL = "admin@mail.com"
PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(db, email, full_name=None):
    user = crud.register_identity(db, email=email, password=PASSWORD, full_name=full_name)
    return crud.actor_for(db, user.id)


@pytest.fixture
def owner(db):
    return register(db, "owner@mail.com", "Olivia Owner")


@pytest.fixture
def stranger(db):
    return register(db, "stranger@mail.com", "Sam Stranger")


@pytest.fixture
def admin(db):
    return register(db, ADMIN_EMAIL, "Ada Admin")


@pytest.fixture
def bank_account(db):
    account = models.BankAccount(bank_name="Chase Bank", account_name="HealthConnect Medical Services",
                                 account_number="9876543210", routing_number="021000021")
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def booking(consultation_type=models.ConsultationType.video_call, amount=None):
    return schemas.ConsultationCreate(
        doctor_name="Dr. Smith",
        consultation_type=consultation_type,
        preferred_date=date(2026, 11, 2),
        preferred_time=time(14, 30),
        symptoms="Persistent headache",
        amount=amount,
    )


@pytest.fixture
def consultation(db, owner):
    return crud.create_consultation(db, owner, booking())
