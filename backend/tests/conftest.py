import uuid
from dataclasses import dataclass
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.database import get_db
from app.main import app
from app.config import settings
from app.services.dispatcher import dispatcher
from app.services.identity_service import identity_service

API = "/api/v1"


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def tmp_data(tmp_path):
    data_path = tmp_path / "FairwayJobs"
    data_path.mkdir()
    return data_path


@pytest.fixture
def test_db(tmp_data):
    db_path = tmp_data / "db.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    from app.database import init_db
    init_db(db_path)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    original_factory = dispatcher._session_factory
    dispatcher.session_factory = TestSession
    yield TestSession
    app.dependency_overrides.clear()
    dispatcher.session_factory = original_factory
    engine.dispose()


@pytest.fixture
def client(tmp_data, test_db):
    original_data_path = settings.data_path
    settings.data_path = tmp_data
    c = TestClient(app)
    yield c
    settings.data_path = original_data_path


@dataclass
class Account:
    id: str
    user_type: str

    @property
    def headers(self) -> dict:
        token = identity_service.issue(self.id, email=f"{self.id}@example.com")
        return {"Authorization": f"Bearer {token}"}


def job_payload(**overrides) -> dict:
    payload = {
        "title": "Aerate the back nine",
        "description": "Core aeration on holes 10 through 18, topdressing to follow.",
        "job_type": "greenskeeping",
        "location": {"lat": 36.57, "lng": -121.95, "address": "1700 17 Mile Dr, Pebble Beach, CA"},
        "start_date": (date.today() + timedelta(days=7)).isoformat(),
        "hourly_rate": 35,
        "required_certifications": ["Turf_Management"],
        "required_experience": "intermediate",
        "urgency_level": "normal",
    }
    payload.update(overrides)
    return payload


class Marketplace:
    """Drives the API the way the web client does."""

    def __init__(self, client: TestClient):
        self.client = client

    def account(self, user_type: str) -> Account:
        account = Account(id=f"{user_type}-{uuid.uuid4().hex[:8]}", user_type=user_type)
        r = self.client.put(f"{API}/profiles/me", json={
            "user_type": user_type,
            "full_name": account.id,
        }, headers=account.headers)
        assert r.status_code == 200, r.text
        return account

    def post_job(self, course: Account, **overrides) -> str:
        r = self.client.post(f"{API}/jobs", json=job_payload(**overrides), headers=course.headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]["id"]

    def get_job(self, account: Account, job_id: str) -> dict:
        r = self.client.get(f"{API}/jobs/{job_id}", headers=account.headers)
        assert r.status_code == 200, r.text
        return r.json()["data"]

    def apply(self, professional: Account, job_id: str, **extra) -> str:
        body = {"job_id": job_id, "message": "Ten years on bentgrass greens.", "proposed_rate": 40, **extra}
        r = self.client.post(f"{API}/applications", json=body, headers=professional.headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]["id"]

    def act(self, account: Account, application_id: str, action: str):
        return self.client.patch(
            f"{API}/applications/{application_id}", json={"action": action}, headers=account.headers
        )

    def application(self, account: Account, application_id: str) -> dict:
        r = self.client.get(f"{API}/applications/{application_id}", headers=account.headers)
        assert r.status_code == 200, r.text
        return r.json()["data"]

    def job_status(self, account: Account, job_id: str, action: str, **extra):
        return self.client.patch(
            f"{API}/jobs/{job_id}/status", json={"action": action, **extra}, headers=account.headers
        )

    def notifications(self, account: Account) -> list[dict]:
        r = self.client.get(f"{API}/notifications", headers=account.headers)
        assert r.status_code == 200, r.text
        return r.json()["data"]

    def hire(self, course: Account, professional: Account, **job_overrides) -> tuple[str, str]:
        """Post a job and walk one applicant through to confirmed."""
        job_id = self.post_job(course, **job_overrides)
        application_id = self.apply(professional, job_id)
        assert self.act(course, application_id, "accept").status_code == 200
        assert self.act(professional, application_id, "confirm").status_code == 200
        return job_id, application_id


@pytest.fixture
def market(client):
    return Marketplace(client)


@pytest.fixture
def course(market):
    return market.account("course")


@pytest.fixture
def pro(market):
    return market.account("professional")


@pytest.fixture
def pro2(market):
    return market.account("professional")


@pytest.fixture
def pro3(market):
    return market.account("professional")
