from __future__ import annotations

import os

# Must be set before the app (and its module-level engine) is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"

import itertools
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import get_db
from main import app
from models import Base, Hall, Staff


EPOCH = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def make_staff(db):
    """Insert staff in a fixed roster order (created_at strictly increasing)."""
    seq = itertools.count()

    def _make(name: str, subject1: str = "", subject2: str = "", *, designation: str = "Assistant Professor", invigilation_count=None):
        staff = Staff(
            name=name,
            designation=designation,
            subject1=subject1,
            subject2=subject2,
            email=f"{name.lower().replace(' ', '.')}@college.test",
            invigilation_count=invigilation_count or {},
            created_at=EPOCH + timedelta(minutes=next(seq)),
        )
        db.add(staff)
        db.commit()
        return staff

    return _make


@pytest.fixture()
def make_hall(db):
    seq = itertools.count()

    def _make(exam_hall: str, block: str):
        hall = Hall(exam_hall=exam_hall, block=block, created_at=EPOCH + timedelta(minutes=next(seq)))
        db.add(hall)
        db.commit()
        return hall

    return _make


def exam_dates(n: int, start: date = date(2024, 9, 2)) -> list[date]:
    return [start + timedelta(days=i) for i in range(n)]


def build_request(subjects, *, blocks=("X",), caps=None, start: date = date(2024, 9, 2), **scope) -> dict:
    """Request payload with one exam per consecutive date."""
    subjects = [subjects] * 5 if isinstance(subjects, str) else list(subjects)
    payload = {
        "academic_year": scope.get("academic_year", "2024-25"),
        "exam_type": scope.get("exam_type", "IA1"),
        "exam_year": scope.get("exam_year", "Higher Semester"),
        "blocks": list(blocks),
        "exam_schedule": [
            {"date": d.isoformat(), "subject": s} for d, s in zip(exam_dates(len(subjects), start), subjects)
        ],
    }
    if caps is not None:
        payload["caps"] = caps
    return payload


@pytest.fixture()
def make_assignment(db):
    from services import ledger

    def _make(staff, *, exam_date=date(2024, 9, 2), subject="Physics", block="X", hall="H1", **scope):
        return ledger.create_assignment(
            db,
            academic_year=scope.get("academic_year", "2024-25"),
            exam_type=scope.get("exam_type", "IA1"),
            exam_year=scope.get("exam_year", "Higher Semester"),
            exam_date=exam_date,
            subject=subject,
            block=block,
            hall=hall,
            staff_id=staff.id,
            staff_name=staff.name,
            staff_email=staff.email,
            designation=staff.designation,
        )

    return _make
